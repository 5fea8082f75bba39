import pytest

from app.exceptions import (
    GenerationTransportError,
    InvalidIntakeError,
    OrderNotEligibleError,
    ReportInFlightError,
    ReportStateError,
)
from app.schemas.report import GenerateReportRequest, Report, ReportStatus
from app.services import report_parser
from app.services.order_service import OrderService
from app.services.report_service import PLACEHOLDER_TITLE, ReportService
from app.services.report_store import ReportStore
from app.utils.datetime_helper import now_utc

from tests.conftest import SAMPLE_INTAKE, SAMPLE_NARRATIVE, FakeNarrativeProvider

OWNER = "user-1"


def _request(order_id="order-1", intake=SAMPLE_INTAKE) -> GenerateReportRequest:
    return GenerateReportRequest(
        order_id=order_id,
        intake_record=intake,
        subject_name="Jordan Lee",
        subject_email="jordan@example.com",
    )


def _service(db, composer, provider, **kwargs) -> ReportService:
    kwargs.setdefault("max_attempts", 2)
    kwargs.setdefault("retry_delay", 0)
    return ReportService(db, provider=provider, composer=composer, **kwargs)


def _count_puts(service: ReportService):
    calls = []
    original = service.store.put

    async def put(report):
        calls.append(report.status)
        await original(report)

    service.store.put = put
    return calls


@pytest.mark.asyncio
async def test_generate_completes_report(db_session, composer):
    provider = FakeNarrativeProvider(SAMPLE_NARRATIVE)
    service = _service(db_session, composer, provider)
    puts = _count_puts(service)

    report = await service.generate(OWNER, _request())

    assert report.status is ReportStatus.COMPLETED
    assert report.report_id.startswith("report-order-1-")
    assert report.title == "Personalized Health Analysis Report"
    assert report.full_content == SAMPLE_NARRATIVE
    assert report.conclusions == "Your outlook is positive with small lifestyle changes."
    assert len(report.recommendations) == 3
    assert report.summary.startswith("# Personalized Health Analysis Report")
    assert report.user_email == "jordan@example.com"
    assert puts == [ReportStatus.GENERATING, ReportStatus.COMPLETED]

    # Prompt 由问卷组装
    assert len(provider.prompts) == 1
    assert "Name: Jordan Lee" in provider.prompts[0]


@pytest.mark.asyncio
async def test_completed_report_is_persisted(db_session, session_factory, composer):
    service = _service(db_session, composer, FakeNarrativeProvider())
    report = await service.generate(OWNER, _request())

    async with session_factory() as other:
        stored = await ReportStore(other).get(OWNER, report.report_id)

    assert stored.status is ReportStatus.COMPLETED
    assert stored.sections == report.sections
    assert stored.recommendations == report.recommendations
    assert stored.generated_at == report.generated_at


@pytest.mark.asyncio
async def test_transport_error_fails_report(db_session, session_factory, composer):
    observed = {}

    async def inspect_then_fail(prompt):
        async with session_factory() as other:
            observed["report"] = await ReportStore(other).latest_for_order(OWNER, "order-1")
        return GenerationTransportError("connection reset")

    service = _service(db_session, composer, FakeNarrativeProvider(inspect_then_fail), max_attempts=1)
    puts = _count_puts(service)

    report = await service.generate(OWNER, _request())

    # 调用生成服务之前占位报告已提交
    placeholder = observed["report"]
    assert placeholder.status is ReportStatus.GENERATING
    assert placeholder.title == PLACEHOLDER_TITLE
    assert placeholder.report_id == report.report_id

    assert report.status is ReportStatus.FAILED
    assert report.error == "connection reset"
    assert puts == [ReportStatus.GENERATING, ReportStatus.FAILED]

    async with session_factory() as other:
        stored = await ReportStore(other).get(OWNER, report.report_id)
    assert stored.status is ReportStatus.FAILED
    assert stored.full_content == ""


@pytest.mark.asyncio
async def test_transport_error_is_retried(db_session, composer):
    provider = FakeNarrativeProvider(GenerationTransportError("503"), SAMPLE_NARRATIVE)
    service = _service(db_session, composer, provider, max_attempts=2)

    report = await service.generate(OWNER, _request())

    assert report.status is ReportStatus.COMPLETED
    assert len(provider.prompts) == 2


@pytest.mark.asyncio
async def test_empty_narrative_fails_after_retries(db_session, composer):
    provider = FakeNarrativeProvider("   ")
    service = _service(db_session, composer, provider, max_attempts=3)

    report = await service.generate(OWNER, _request())

    assert report.status is ReportStatus.FAILED
    assert "empty" in report.error
    assert len(provider.prompts) == 3


@pytest.mark.asyncio
async def test_error_without_message_uses_class_name(db_session, composer):
    service = _service(db_session, composer, FakeNarrativeProvider(GenerationTransportError()), max_attempts=1)

    report = await service.generate(OWNER, _request())

    assert report.error == "GenerationTransportError"


@pytest.mark.asyncio
async def test_invalid_intake_writes_nothing(db_session, composer):
    provider = FakeNarrativeProvider()
    service = _service(db_session, composer, provider)

    with pytest.raises(InvalidIntakeError):
        await service.generate(OWNER, _request(intake="not a record"))

    assert await service.get_latest_report_for_order(OWNER, "order-1") is None
    assert provider.prompts == []


@pytest.mark.asyncio
async def test_missing_intake_without_order(db_session, composer):
    service = _service(db_session, composer, FakeNarrativeProvider())

    with pytest.raises(InvalidIntakeError):
        await service.generate(OWNER, _request(intake=None))


@pytest.mark.asyncio
async def test_intake_taken_from_stored_order(db_session, composer):
    order = await OrderService(db_session).create_order(OWNER, "Jordan Lee", None, SAMPLE_INTAKE)
    provider = FakeNarrativeProvider()
    service = _service(db_session, composer, provider)

    report = await service.generate(OWNER, _request(order_id=order.order_id, intake=None))

    assert report.status is ReportStatus.COMPLETED
    assert "Blood Group: O+" in provider.prompts[0]


@pytest.mark.asyncio
async def test_cancelled_order_is_not_eligible(db_session, composer):
    orders = OrderService(db_session)
    order = await orders.create_order(OWNER, "Jordan Lee", None, SAMPLE_INTAKE)
    await orders.update_status(OWNER, order.order_id, "cancelled")
    service = _service(db_session, composer, FakeNarrativeProvider())

    with pytest.raises(OrderNotEligibleError):
        await service.generate(OWNER, _request(order_id=order.order_id))

    assert await service.get_latest_report_for_order(OWNER, order.order_id) is None


@pytest.mark.asyncio
async def test_in_flight_report_blocks_new_attempt(db_session, composer):
    service = _service(db_session, composer, FakeNarrativeProvider())
    await service.begin_generation(OWNER, "order-1", "Jordan Lee")

    with pytest.raises(ReportInFlightError):
        await service.generate(OWNER, _request())


@pytest.mark.asyncio
async def test_stale_placeholder_does_not_block(db_session, composer):
    service = _service(db_session, composer, FakeNarrativeProvider(), inflight_ttl_seconds=0)
    stale = await service.begin_generation(OWNER, "order-1", "Jordan Lee")

    report = await service.generate(OWNER, _request())

    assert report.status is ReportStatus.COMPLETED
    assert report.report_id != stale.report_id
    # 超时的占位报告不会自动变更状态
    still_stale = await service.get_report(OWNER, stale.report_id)
    assert still_stale.status is ReportStatus.GENERATING


@pytest.mark.asyncio
async def test_terminal_report_cannot_be_finalized_again(db_session, composer):
    service = _service(db_session, composer, FakeNarrativeProvider())
    placeholder = await service.begin_generation(OWNER, "order-1", "Jordan Lee")
    await service.fail(placeholder, "timeout")

    # 内存中的旧对象仍为 generating，以存储中的状态为准
    with pytest.raises(ReportStateError):
        await service.finalize(placeholder, SAMPLE_NARRATIVE)
    with pytest.raises(ReportStateError):
        await service.fail(placeholder, "again")


@pytest.mark.asyncio
async def test_parser_error_fails_report(db_session, session_factory, composer, monkeypatch):
    def broken_split(text):
        raise RuntimeError("parser bug")

    monkeypatch.setattr(report_parser, "split_sections", broken_split)
    service = _service(db_session, composer, FakeNarrativeProvider(SAMPLE_NARRATIVE))
    puts = _count_puts(service)

    report = await service.generate(OWNER, _request())

    assert report.status is ReportStatus.FAILED
    assert report.error == "parser bug"
    assert puts == [ReportStatus.GENERATING, ReportStatus.FAILED]

    async with session_factory() as other:
        stored = await ReportStore(other).get(OWNER, report.report_id)
    assert stored.status is ReportStatus.FAILED

    # 不会残留 generating 报告阻塞后续请求
    monkeypatch.undo()
    retry = await service.generate(OWNER, _request())
    assert retry.status is ReportStatus.COMPLETED


@pytest.mark.asyncio
async def test_unstored_report_cannot_be_finalized(db_session, composer):
    service = _service(db_session, composer, FakeNarrativeProvider())
    puts = _count_puts(service)
    now = now_utc()
    report = Report(
        report_id="report-order-1-1",
        order_id="order-1",
        owner_id=OWNER,
        user_name="Jordan Lee",
        generated_at=now,
        updated_at=now,
        status=ReportStatus.GENERATING,
        title=PLACEHOLDER_TITLE,
    )

    with pytest.raises(ReportStateError):
        await service.finalize(report, SAMPLE_NARRATIVE)
    with pytest.raises(ReportStateError):
        await service.fail(report, "timeout")

    assert puts == []
    assert await service.get_report(OWNER, report.report_id) is None


@pytest.mark.asyncio
async def test_list_reports_newest_first_with_preview(db_session, composer):
    service = _service(db_session, composer, FakeNarrativeProvider(), inflight_ttl_seconds=0)
    first = await service.generate(OWNER, _request(order_id="order-1"))
    placeholder = await service.begin_generation(OWNER, "order-2", "Jordan Lee")

    items = await service.list_reports(OWNER)

    assert [item.report_id for item in items] == [placeholder.report_id, first.report_id]
    assert items[0].summary == ""
    assert items[0].title == PLACEHOLDER_TITLE
    assert items[1].summary == first.summary[:100] + "..."
    assert await service.list_reports("someone-else") == []
