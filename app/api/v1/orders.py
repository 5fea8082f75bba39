"""
问卷订单API
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import CurrentUser, get_current_user
from app.database.session import get_db
from app.exceptions import InvalidIntakeError
from app.schemas.order import (
    OrderCreateRequest,
    OrderListResponse,
    OrderResponse,
    OrderStatus,
    OrderStatusUpdate,
)
from app.services.order_service import OrderService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    request: OrderCreateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """提交问卷订单"""
    try:
        user_email = request.user_email or current_user.email
        user_name = request.user_name or current_user.name or user_email or current_user.user_id

        service = OrderService(db)
        order = await service.create_order(
            owner_id=current_user.user_id,
            user_name=user_name,
            user_email=user_email,
            intake=request.intake_record,
        )
        return OrderResponse.model_validate(order)

    except InvalidIntakeError as e:
        logger.warning(f"问卷数据无效: user_id={current_user.user_id} - {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except Exception as e:
        logger.error(f"保存订单失败: user_id={current_user.user_id} - {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="保存订单失败，请稍后重试"
        )


@router.get("", response_model=OrderListResponse)
async def list_orders(
    limit: int = Query(50, ge=1, le=200, description="返回条数"),
    order_status: Optional[OrderStatus] = Query(None, alias="status", description="按状态筛选"),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """获取当前用户的订单（按创建时间倒序）"""
    service = OrderService(db)
    orders = await service.list_orders(current_user.user_id, limit=limit, status=order_status)
    return OrderListResponse(
        orders=[OrderResponse.model_validate(order) for order in orders],
        total=len(orders),
    )


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """获取订单详情"""
    service = OrderService(db)
    order = await service.get_order(current_user.user_id, order_id)

    if not order:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="订单不存在"
        )

    return OrderResponse.model_validate(order)


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    request: OrderStatusUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """更新订单状态"""
    service = OrderService(db)
    order = await service.update_status(
        current_user.user_id, order_id, request.status, notes=request.notes
    )

    if not order:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="订单不存在"
        )

    logger.info(f"订单状态更新: user_id={current_user.user_id}, order_id={order_id}, status={request.status}")
    return OrderResponse.model_validate(order)
