"""
用户数据库模型
注意：这是基础设施层的实现细节，业务规则在 domain.user.entity.User 中
"""
from sqlalchemy import Column, String, Text

from .base import Base, TimestampMixin


class UserModel(TimestampMixin, Base):
    """用户表：用户名与邮箱各自唯一，密码只存 bcrypt 哈希"""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, comment="用户ID（UUID）")
    username = Column(String(50), unique=True, index=True, nullable=False, comment="用户名")
    email = Column(String(255), unique=True, index=True, nullable=False, comment="邮箱")
    password_hash = Column(String(255), nullable=False, comment="密码哈希（bcrypt）")

    # 公开资料
    display_name = Column(String(100), nullable=True, comment="显示名称")
    avatar_url = Column(String(500), nullable=True, comment="头像URL")
    bio = Column(Text, nullable=True, comment="个人简介")

    def __repr__(self):
        return f"<UserModel(id={self.id}, username='{self.username}')>"
