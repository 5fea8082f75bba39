"""
报告服务 - 健康分析报告的生成与查询

一次生成尝试的生命周期：
    1. 校验问卷并组装Prompt（失败直接抛出，不写入任何数据）
    2. 写入 generating 占位报告
    3. 调用叙述生成服务（有限次重试）
    4. 解析叙述文本，写入 completed 报告；或写入 failed 报告
整个尝试只使用一个 report_id。
"""
import asyncio
import logging
from datetime import timedelta
from typing import Any, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession

from app.ai.base import NarrativeProvider
from app.ai.prompt_composer import PromptComposer
from app.config import settings
from app.exceptions import (
    EmptyNarrativeError,
    GenerationTransportError,
    InvalidIntakeError,
    OrderNotEligibleError,
    ReportInFlightError,
    ReportStateError,
)
from app.schemas.report import (
    DEFAULT_REPORT_TITLE,
    GenerateReportRequest,
    Report,
    ReportCompleted,
    ReportFailed,
    ReportListItem,
    ReportStatus,
)
from app.services import report_parser
from app.services.order_service import BLOCKED_ORDER_STATUSES, OrderService
from app.services.report_store import ReportStore
from app.utils.datetime_helper import epoch_millis, now_utc

logger = logging.getLogger(__name__)

PLACEHOLDER_TITLE = "Generating Your Personalized Health Analysis Report..."
PREVIEW_LENGTH = 100


class ReportService:
    """报告服务"""

    def __init__(
        self,
        db: AsyncSession,
        provider: Optional[NarrativeProvider] = None,
        composer: Optional[PromptComposer] = None,
        max_attempts: int = None,
        retry_delay: float = None,
        inflight_ttl_seconds: int = None,
    ):
        self.db = db
        self.provider = provider
        self.composer = composer
        self.store = ReportStore(db)
        self.orders = OrderService(db)
        self.max_attempts = max(1, max_attempts if max_attempts is not None else settings.AI_MAX_RETRIES)
        self.retry_delay = retry_delay if retry_delay is not None else settings.AI_RETRY_DELAY
        self.inflight_ttl = timedelta(
            seconds=inflight_ttl_seconds
            if inflight_ttl_seconds is not None
            else settings.REPORT_INFLIGHT_TTL_SECONDS
        )

    # ========== 生成 ==========

    async def generate(self, owner_id: str, request: GenerateReportRequest) -> Report:
        """
        生成健康分析报告

        Args:
            owner_id: 当前用户ID
            request: 生成请求

        Returns:
            终态报告（completed 或 failed）

        Raises:
            InvalidIntakeError: 问卷数据缺失或格式错误
            OrderNotEligibleError: 订单已取消
            ReportInFlightError: 该订单已有正在生成的报告
        """
        if self.provider is None or self.composer is None:
            raise RuntimeError("ReportService 未配置叙述生成服务")

        order = await self.orders.get_order(owner_id, request.order_id)
        if order is not None and order.status in BLOCKED_ORDER_STATUSES:
            logger.warning(
                f"订单状态不允许生成报告: order_id={request.order_id}, status={order.status}"
            )
            raise OrderNotEligibleError(
                f"Order {request.order_id} is {order.status} and cannot generate a report"
            )

        intake = self._resolve_intake(request.intake_record, order)

        # 组装失败时不写入占位报告
        prompt = self.composer.compose(intake, request.subject_name)

        await self._ensure_not_in_flight(owner_id, request.order_id)

        report = await self.begin_generation(
            owner_id=owner_id,
            order_id=request.order_id,
            user_name=request.subject_name,
            user_email=request.subject_email,
        )

        try:
            narrative = await self._generate_with_retries(prompt, report)
        except Exception as e:
            logger.error(
                f"报告生成失败: order_id={report.order_id}, report_id={report.report_id} - {str(e)}",
                exc_info=True,
            )
            return await self.fail(report, str(e) or type(e).__name__)

        try:
            return await self.finalize(report, narrative)
        except ReportStateError:
            raise
        except Exception as e:
            logger.error(
                f"报告解析失败: order_id={report.order_id}, report_id={report.report_id} - {str(e)}",
                exc_info=True,
            )
            await self.db.rollback()
            return await self.fail(report, str(e) or type(e).__name__)

    async def begin_generation(
        self,
        owner_id: str,
        order_id: str,
        user_name: str,
        user_email: Optional[str] = None,
    ) -> Report:
        """写入 generating 占位报告"""
        now = now_utc()

        # 同一毫秒内的重复ID顺延，不覆盖其他尝试的报告
        millis = epoch_millis(now)
        while await self.store.get(owner_id, f"report-{order_id}-{millis}") is not None:
            millis += 1

        report = Report(
            report_id=f"report-{order_id}-{millis}",
            order_id=order_id,
            owner_id=owner_id,
            user_name=user_name,
            user_email=user_email,
            generated_at=now,
            updated_at=now,
            status=ReportStatus.GENERATING,
            title=PLACEHOLDER_TITLE,
        )

        await self.store.put(report)
        await self.db.commit()

        logger.info(f"占位报告已创建: order_id={order_id}, report_id={report.report_id}")
        return report

    async def finalize(self, report: Report, narrative: str) -> Report:
        """
        解析叙述文本，写入 completed 报告

        Raises:
            ReportStateError: 报告已处于终态或未写入占位报告
        """
        await self._ensure_stored_generating(report)

        outcome = ReportCompleted(
            title=self._completed_title(),
            summary=report_parser.build_summary(narrative),
            sections=report_parser.split_sections(narrative),
            recommendations=report_parser.extract_recommendations(narrative),
            conclusions=report_parser.extract_conclusions(narrative),
            full_content=narrative,
        )
        completed = report.apply(outcome, now_utc())

        await self.store.put(completed)
        await self.db.commit()

        logger.info(
            f"报告生成完成: report_id={completed.report_id}, "
            f"章节数={len(completed.sections)}, 建议数={len(completed.recommendations)}"
        )
        return completed

    async def fail(self, report: Report, error: str) -> Report:
        """
        写入 failed 报告

        Raises:
            ReportStateError: 报告已处于终态或未写入占位报告
        """
        await self._ensure_stored_generating(report)

        failed = report.apply(ReportFailed(error=error or "Unknown error"), now_utc())

        await self.store.put(failed)
        await self.db.commit()

        logger.info(f"报告已标记为失败: report_id={failed.report_id}, error={failed.error}")
        return failed

    # ========== 查询 ==========

    async def get_report(self, owner_id: str, report_id: str) -> Optional[Report]:
        """获取报告"""
        return await self.store.get(owner_id, report_id)

    async def get_latest_report_for_order(self, owner_id: str, order_id: str) -> Optional[Report]:
        """获取订单最新的报告"""
        return await self.store.latest_for_order(owner_id, order_id)

    async def list_reports(self, owner_id: str, limit: int = 50) -> List[ReportListItem]:
        """获取用户报告列表（按生成时间倒序）"""
        reports = await self.store.list_by_owner(owner_id, limit=limit)
        return [
            ReportListItem(
                report_id=report.report_id,
                order_id=report.order_id,
                title=report.title or DEFAULT_REPORT_TITLE,
                generated_at=report.generated_at,
                status=report.status,
                summary=self._preview(report.summary),
            )
            for report in reports
        ]

    # ========== 内部方法 ==========

    @staticmethod
    def _resolve_intake(intake_record: Any, order) -> Any:
        """请求中没有问卷时使用订单保存的问卷"""
        if intake_record is not None:
            return intake_record
        if order is not None and order.intake:
            return order.intake
        raise InvalidIntakeError("Intake record is required")

    async def _ensure_not_in_flight(self, owner_id: str, order_id: str):
        """同一订单存在未超时的 generating 报告时拒绝新的生成请求"""
        latest = await self.store.latest_for_order(owner_id, order_id)
        if latest is None or latest.status is not ReportStatus.GENERATING:
            return

        age = now_utc() - latest.generated_at
        if age < self.inflight_ttl:
            logger.warning(
                f"报告正在生成中，拒绝重复请求: order_id={order_id}, report_id={latest.report_id}"
            )
            raise ReportInFlightError(
                f"A report for order {order_id} is already being generated"
            )

        logger.info(f"忽略超时的占位报告: report_id={latest.report_id}, age={age}")

    async def _ensure_stored_generating(self, report: Report):
        """终态只能由已写入的 generating 占位报告变更而来"""
        stored = await self.store.get(report.owner_id, report.report_id)
        if stored is None:
            raise ReportStateError(f"Report {report.report_id} has no stored placeholder")
        if stored.status.is_terminal:
            raise ReportStateError(
                f"Report {report.report_id} is already {stored.status.value}"
            )

    async def _generate_with_retries(self, prompt: str, report: Report) -> str:
        """调用叙述生成服务，传输错误和空响应按配置重试"""
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                narrative = await self.provider.generate_narrative(prompt)
                if not narrative or not narrative.strip():
                    raise EmptyNarrativeError("Narrative generator returned empty content")
                return narrative
            except GenerationTransportError as e:
                last_error = e
                if attempt < self.max_attempts:
                    logger.warning(
                        f"叙述生成失败，{self.retry_delay}秒后重试 "
                        f"({attempt}/{self.max_attempts}): report_id={report.report_id} - {str(e)}"
                    )
                    await asyncio.sleep(self.retry_delay)

        raise last_error

    def _completed_title(self) -> str:
        return self.composer.prompt_loader.report_title

    @staticmethod
    def _preview(summary: str) -> str:
        if not summary:
            return ""
        return summary[:PREVIEW_LENGTH] + "..."
