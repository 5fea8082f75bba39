"""
日期时间辅助函数
"""
from datetime import datetime
import pytz

# 统一使用UTC存储
UTC = pytz.utc


def now_utc() -> datetime:
    """获取当前UTC时间"""
    return datetime.now(UTC)


def as_utc(dt: datetime) -> datetime:
    """
    转为带时区的UTC时间

    SQLite 读出的时间不带时区，按UTC处理。
    """
    if dt.tzinfo is None:
        return UTC.localize(dt)
    return dt.astimezone(UTC)


def epoch_millis(dt: datetime) -> int:
    """毫秒时间戳（用于生成报告ID）"""
    return int(as_utc(dt).timestamp() * 1000)


def format_display(dt: datetime) -> str:
    """格式化为展示用时间（导出报告时使用）"""
    return as_utc(dt).strftime("%Y-%m-%d %H:%M UTC")
