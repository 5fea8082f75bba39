from datetime import datetime, timedelta

import pytest
import pytz
from pydantic import TypeAdapter, ValidationError

from app.exceptions import ReportStateError
from app.schemas.report import (
    GenerationOutcome,
    Report,
    ReportCompleted,
    ReportFailed,
    ReportStatus,
    Section,
)

NOW = datetime(2025, 3, 1, 8, 30, tzinfo=pytz.utc)


def _placeholder() -> Report:
    return Report(
        report_id="report-order-1-1",
        order_id="order-1",
        owner_id="user-1",
        user_name="Alex",
        generated_at=NOW,
        updated_at=NOW,
    )


def _completed_outcome() -> ReportCompleted:
    return ReportCompleted(
        title="Personalized Health Analysis Report",
        summary="All good.",
        sections=[Section(title="Executive Summary", content="All good.")],
        recommendations=["Sleep eight hours"],
        conclusions="Healthy.",
        full_content="## Executive Summary\nAll good.",
    )


def test_placeholder_starts_generating():
    report = _placeholder()
    assert report.status is ReportStatus.GENERATING
    assert not report.status.is_terminal
    assert report.full_content == ""
    assert report.summary == ""


def test_complete_transition():
    later = NOW + timedelta(minutes=1)
    report = _placeholder().apply(_completed_outcome(), later)

    assert report.status is ReportStatus.COMPLETED
    assert report.report_id == "report-order-1-1"
    assert report.full_content == "## Executive Summary\nAll good."
    assert report.updated_at == later
    assert report.generated_at == NOW
    assert report.error is None


def test_fail_transition_keeps_derived_fields_empty():
    report = _placeholder().apply(ReportFailed(error="timeout"), NOW)

    assert report.status is ReportStatus.FAILED
    assert report.error == "timeout"
    assert report.sections == []
    assert report.recommendations == []
    assert report.full_content == ""


@pytest.mark.parametrize("outcome", [_completed_outcome(), ReportFailed(error="again")])
def test_terminal_reports_cannot_transition(outcome):
    completed = _placeholder().apply(_completed_outcome(), NOW)
    failed = _placeholder().apply(ReportFailed(error="boom"), NOW)

    with pytest.raises(ReportStateError):
        completed.apply(outcome, NOW)
    with pytest.raises(ReportStateError):
        failed.apply(outcome, NOW)


def test_apply_does_not_mutate_original():
    placeholder = _placeholder()
    placeholder.apply(ReportFailed(error="boom"), NOW)
    assert placeholder.status is ReportStatus.GENERATING


def test_outcome_union_is_tagged():
    adapter = TypeAdapter(GenerationOutcome)
    outcome = adapter.validate_python({"kind": "failed", "error": "offline"})
    assert isinstance(outcome, ReportFailed)


def test_recommendations_limit_enforced():
    with pytest.raises(ValidationError):
        ReportCompleted(
            title="t",
            sections=[],
            recommendations=[f"Recommendation {i}" for i in range(9)],
            full_content="x",
        )


def test_failed_outcome_requires_message():
    with pytest.raises(ValidationError):
        ReportFailed(error="")
