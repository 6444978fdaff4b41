"""
会话数据库模型 - SQLAlchemy ORM模型
"""
from sqlalchemy import Column, String, ForeignKey, Index

from .base import Base, CreatedAtMixin, UTCDateTime


class SessionModel(CreatedAtMixin, Base):
    """
    会话数据库模型

    - 只存储令牌的 SHA-256 摘要，不存明文
    - 记录存在且未过期即为有效会话；过期记录不会被后台清理，只在查询时排除
    """
    __tablename__ = "sessions"

    id = Column(String(36), primary_key=True, comment="会话ID（UUID，写入令牌的 sid）")

    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="用户ID"
    )

    token_hash = Column(String(255), nullable=False, comment="令牌SHA-256哈希")

    expires_at = Column(UTCDateTime, nullable=False, comment="过期时间")

    # 客户端信息（可选，用于安全审计）
    user_agent = Column(String(500), nullable=True, comment="User-Agent")
    ip_address = Column(String(45), nullable=True, comment="IP地址（支持IPv6）")

    __table_args__ = (
        Index("ix_sessions_user_expires", "user_id", "expires_at"),
    )

    def __repr__(self):
        return f"<SessionModel(id={self.id}, user_id={self.user_id}, expires_at={self.expires_at})>"
