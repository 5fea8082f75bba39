"""
订单模型 - 问卷订单（仅用于报告生成的准入判断）
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional
from sqlalchemy import String, Text, JSON, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from app.database.base import Base


class HealthOrder(Base):
    """问卷订单"""

    __tablename__ = "health_orders"

    owner_id: Mapped[str] = mapped_column(String(128), primary_key=True, comment="所属用户ID")
    order_id: Mapped[str] = mapped_column(String(128), primary_key=True, comment="订单ID")

    user_name: Mapped[str] = mapped_column(String(200), nullable=False)
    user_email: Mapped[Optional[str]] = mapped_column(String(320))

    # pending / confirmed / completed / cancelled
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")

    # 问卷数据（原始提交内容）
    intake: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<HealthOrder {self.order_id} ({self.status})>"
