"""
订单服务 - 问卷订单的保存与查询
"""
import logging
import uuid
from typing import Any, List, Optional
from sqlalchemy import select, desc, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.order import HealthOrder
from app.schemas.intake import IntakeRecord
from app.utils.datetime_helper import now_utc

logger = logging.getLogger(__name__)

ORDER_STATUSES = ("pending", "confirmed", "completed", "cancelled")

# 不允许生成报告的订单状态
BLOCKED_ORDER_STATUSES = ("cancelled",)


class OrderService:
    """订单服务"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_order(
        self,
        owner_id: str,
        user_name: str,
        user_email: Optional[str],
        intake: Any,
    ) -> HealthOrder:
        """
        保存问卷订单（状态为 pending）

        Raises:
            InvalidIntakeError: 问卷数据格式错误
        """
        record = IntakeRecord.from_payload(intake)
        now = now_utc()

        order = HealthOrder(
            owner_id=owner_id,
            order_id=uuid.uuid4().hex,
            user_name=user_name,
            user_email=user_email,
            status="pending",
            intake=record.model_dump(mode="json"),
            notes="",
            created_at=now,
            updated_at=now,
        )
        self.db.add(order)

        await self.db.commit()
        await self.db.refresh(order)

        logger.info(f"订单保存成功: owner_id={owner_id}, order_id={order.order_id}")
        return order

    async def get_order(self, owner_id: str, order_id: str) -> Optional[HealthOrder]:
        """获取订单"""
        return await self.db.get(HealthOrder, (owner_id, order_id))

    async def list_orders(
        self,
        owner_id: str,
        limit: int = 50,
        status: Optional[str] = None,
    ) -> List[HealthOrder]:
        """获取用户订单（按创建时间倒序）"""
        conditions = [HealthOrder.owner_id == owner_id]
        if status:
            conditions.append(HealthOrder.status == status)

        result = await self.db.execute(
            select(HealthOrder)
            .where(and_(*conditions))
            .order_by(desc(HealthOrder.created_at))
            .limit(limit)
        )
        return list(result.scalars().all())

    async def update_status(
        self,
        owner_id: str,
        order_id: str,
        status: str,
        notes: Optional[str] = None,
    ) -> Optional[HealthOrder]:
        """
        更新订单状态

        Returns:
            更新后的订单，订单不存在时返回None

        Raises:
            ValueError: 未知的订单状态
        """
        if status not in ORDER_STATUSES:
            raise ValueError(f"未知的订单状态: {status}")

        order = await self.get_order(owner_id, order_id)
        if order is None:
            return None

        order.status = status
        if notes is not None:
            order.notes = notes
        order.updated_at = now_utc()

        await self.db.commit()
        await self.db.refresh(order)

        logger.info(f"订单状态已更新: order_id={order_id}, status={status}")
        return order
