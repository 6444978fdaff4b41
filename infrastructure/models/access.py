"""
用户组 / 权限 / 成员关系数据库模型
"""
from sqlalchemy import Column, Integer, String, Text, ForeignKey

from .base import Base, CreatedAtMixin, UTCDateTime, utcnow


class GroupModel(CreatedAtMixin, Base):
    """用户组"""
    __tablename__ = "user_groups"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), unique=True, nullable=False, comment="用户组标识")
    display_name = Column(String(100), nullable=False, comment="显示名称")
    description = Column(Text, nullable=True, comment="描述")

    def __repr__(self):
        return f"<GroupModel(id={self.id}, name='{self.name}')>"


class RightModel(Base):
    """权限"""
    __tablename__ = "user_rights"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), unique=True, nullable=False, comment="权限标识，* 表示全部权限")
    description = Column(Text, nullable=True, comment="描述")

    def __repr__(self):
        return f"<RightModel(id={self.id}, name='{self.name}')>"


class GroupRightModel(Base):
    """用户组 - 权限 关联"""
    __tablename__ = "user_group_rights"

    group_id = Column(
        Integer, ForeignKey("user_groups.id", ondelete="CASCADE"), primary_key=True
    )
    right_id = Column(
        Integer, ForeignKey("user_rights.id", ondelete="CASCADE"), primary_key=True
    )


class MembershipModel(Base):
    """用户 - 用户组 成员关系

    表结构允许多对多；“每个用户只属于一个组”由服务层保证。
    """
    __tablename__ = "user_group_membership"

    user_id = Column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    group_id = Column(
        Integer, ForeignKey("user_groups.id", ondelete="CASCADE"), primary_key=True
    )
    assigned_at = Column(UTCDateTime, default=utcnow, nullable=False, comment="分配时间")
    assigned_by = Column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        comment="分配人（注册时为空）"
    )
