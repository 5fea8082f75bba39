"""
报告存储 - 以 (owner_id, report_id) 为键的文档存储
"""
import logging
from typing import List, Optional
from sqlalchemy import select, desc, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.report import HealthReport
from app.schemas.report import Report, ReportStatus, Section
from app.utils.datetime_helper import as_utc

logger = logging.getLogger(__name__)


class ReportStore:
    """报告文档存储"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def put(self, report: Report) -> None:
        """整行覆盖写入（不提交事务）"""
        await self.db.merge(self._to_row(report))
        await self.db.flush()
        logger.debug(f"报告已写入: report_id={report.report_id}, status={report.status.value}")

    async def get(self, owner_id: str, report_id: str) -> Optional[Report]:
        """按 (owner_id, report_id) 获取报告"""
        row = await self.db.get(HealthReport, (owner_id, report_id))
        if row is None:
            return None
        return self._to_domain(row)

    async def latest_for_order(self, owner_id: str, order_id: str) -> Optional[Report]:
        """获取订单最新的一份报告"""
        result = await self.db.execute(
            select(HealthReport)
            .where(
                and_(
                    HealthReport.owner_id == owner_id,
                    HealthReport.order_id == order_id,
                )
            )
            .order_by(desc(HealthReport.generated_at), desc(HealthReport.report_id))
            .limit(1)
        )
        row = result.scalar_one_or_none()
        return self._to_domain(row) if row else None

    async def list_by_owner(self, owner_id: str, limit: int = 50) -> List[Report]:
        """获取用户的报告（按生成时间倒序）"""
        result = await self.db.execute(
            select(HealthReport)
            .where(HealthReport.owner_id == owner_id)
            .order_by(desc(HealthReport.generated_at), desc(HealthReport.report_id))
            .limit(limit)
        )
        return [self._to_domain(row) for row in result.scalars().all()]

    @staticmethod
    def _to_row(report: Report) -> HealthReport:
        return HealthReport(
            owner_id=report.owner_id,
            report_id=report.report_id,
            order_id=report.order_id,
            user_name=report.user_name,
            user_email=report.user_email,
            status=report.status.value,
            title=report.title,
            summary=report.summary,
            sections=[section.model_dump() for section in report.sections],
            recommendations=list(report.recommendations),
            conclusions=report.conclusions,
            full_content=report.full_content,
            error=report.error,
            generated_at=report.generated_at,
            updated_at=report.updated_at,
        )

    @staticmethod
    def _to_domain(row: HealthReport) -> Report:
        return Report(
            report_id=row.report_id,
            order_id=row.order_id,
            owner_id=row.owner_id,
            user_name=row.user_name,
            user_email=row.user_email,
            generated_at=as_utc(row.generated_at),
            updated_at=as_utc(row.updated_at),
            status=ReportStatus(row.status),
            title=row.title,
            summary=row.summary or "",
            sections=[Section(**section) for section in (row.sections or [])],
            recommendations=list(row.recommendations or []),
            conclusions=row.conclusions or "",
            full_content=row.full_content or "",
            error=row.error,
        )
