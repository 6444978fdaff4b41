"""
互动（点赞）数据库模型
"""
from sqlalchemy import Column, String, ForeignKey, Index, UniqueConstraint

from .base import Base, CreatedAtMixin


class ReactionModel(CreatedAtMixin, Base):
    """互动记录；同一用户对同一目标的同类互动至多一条"""
    __tablename__ = "reactions"

    id = Column(String(36), primary_key=True)
    user_id = Column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, comment="用户ID"
    )
    target_type = Column(String(20), nullable=False, comment="目标类型：article")
    target_id = Column(String(36), nullable=False, comment="目标ID")
    reaction_type = Column(String(20), nullable=False, comment="互动类型：like")

    __table_args__ = (
        UniqueConstraint("user_id", "target_type", "target_id", "reaction_type", name="uq_reactions_user_target"),
        Index("ix_reactions_target", "target_type", "target_id"),
    )
