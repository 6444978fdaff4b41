"""
数据库模型基类（SQLAlchemy 2.0 风格）
"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """带时区的时间列：读回时保证为 UTC aware（SQLite 不保存时区）"""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class Base(DeclarativeBase):
    pass


class CreatedAtMixin:
    created_at = Column(UTCDateTime, default=utcnow, nullable=False, comment="创建时间")


class TimestampMixin(CreatedAtMixin):
    """创建 / 更新时间；updated_at 在 ORM 更新时自动刷新"""
    updated_at = Column(
        UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False, comment="更新时间"
    )


# 元数据对象用于数据库迁移
metadata = Base.metadata
