"""
订单 Schemas
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field, field_validator

from app.utils.datetime_helper import as_utc

OrderStatus = Literal["pending", "confirmed", "completed", "cancelled"]


class OrderCreateRequest(BaseModel):
    """提交订单请求"""
    intake_record: Any = Field(..., description="问卷数据")
    user_name: Optional[str] = Field(None, description="受检者姓名（默认使用邮箱）")
    user_email: Optional[str] = Field(None, description="受检者邮箱（默认使用登录邮箱）")


class OrderStatusUpdate(BaseModel):
    """订单状态更新请求"""
    status: OrderStatus
    notes: Optional[str] = None


class OrderResponse(BaseModel):
    """订单响应"""
    order_id: str
    status: OrderStatus
    user_name: str
    user_email: Optional[str]
    intake_record: Dict[str, Any] = Field(..., validation_alias="intake")
    notes: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True, "populate_by_name": True}

    @field_validator("created_at", "updated_at", mode="after")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class OrderListResponse(BaseModel):
    """订单列表响应"""
    orders: List[OrderResponse]
    total: int
