"""
ORM基类
"""
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """所有ORM模型的基类"""
    pass
