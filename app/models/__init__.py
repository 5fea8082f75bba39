"""
数据库模型
"""
from app.models.order import HealthOrder
from app.models.report import HealthReport

__all__ = [
    # 订单
    "HealthOrder",
    # 健康报告
    "HealthReport",
]
