"""
健康报告模型 - 问卷分析报告文档
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional
from sqlalchemy import String, Text, JSON, DateTime, Index
from sqlalchemy.orm import Mapped, mapped_column

from app.database.base import Base


class HealthReport(Base):
    """
    健康分析报告

    以 (owner_id, report_id) 为主键，每次写入整行覆盖。
    """
    __tablename__ = "health_reports"

    owner_id: Mapped[str] = mapped_column(String(128), primary_key=True, comment="所属用户ID")
    report_id: Mapped[str] = mapped_column(String(200), primary_key=True, comment="报告ID")
    order_id: Mapped[str] = mapped_column(String(128), nullable=False, comment="订单ID")

    # 受检者信息
    user_name: Mapped[str] = mapped_column(String(200), nullable=False)
    user_email: Mapped[Optional[str]] = mapped_column(String(320))

    # 状态 generating / completed / failed
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="generating")

    # 报告内容
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    summary: Mapped[str] = mapped_column(Text, nullable=False, default="")
    sections: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    recommendations: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    conclusions: Mapped[str] = mapped_column(Text, nullable=False, default="")
    full_content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    error: Mapped[Optional[str]] = mapped_column(Text, comment="失败原因")

    # 时间戳（UTC）
    generated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_health_reports_owner_order", "owner_id", "order_id"),
    )

    def __repr__(self):
        return f"<HealthReport {self.report_id} ({self.status})>"
