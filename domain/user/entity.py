"""
用户领域实体 - 包含核心业务规则
"""
from datetime import datetime, timezone
from typing import Optional
from dataclasses import dataclass, field
import re
import uuid

from domain.common.exceptions import DomainValidationException


USERNAME_PATTERN = re.compile(r'^[a-zA-Z0-9_]{3,50}$')
EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


def normalize_email(email: str) -> str:
    """邮箱不区分大小写，统一以小写比较和存储"""
    return (email or "").strip().lower()


DISPLAY_NAME_MAX = 100
BIO_MAX = 1000
AVATAR_URL_MAX = 500


@dataclass
class User:
    """用户实体 - 领域核心"""

    id: str
    username: str
    email: str
    password_hash: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    # 派生数据：当前所属用户组（不持久化在 users 表中）
    groups: list = field(default_factory=list)

    def __post_init__(self):
        """初始化后的业务规则验证"""
        self.validate_username()
        self.validate_email()

    @classmethod
    def register(cls, username: str, email: str, password_hash: str,
                 display_name: Optional[str] = None) -> "User":
        """注册新用户：生成ID，显示名默认取用户名；邮箱统一存为小写"""
        now = datetime.now(timezone.utc)
        return cls(
            id=str(uuid.uuid4()),
            username=username,
            email=normalize_email(email),
            password_hash=password_hash,
            display_name=display_name or username,
            created_at=now,
            updated_at=now,
        )

    def validate_username(self) -> None:
        """业务规则：用户名 3-50 位，只能包含字母、数字和下划线"""
        if not USERNAME_PATTERN.match(self.username or ""):
            raise DomainValidationException(
                "Username must be 3-50 characters of letters, digits or underscores",
                field="username",
            )

    def validate_email(self) -> None:
        """业务规则：邮箱格式验证"""
        if not EMAIL_PATTERN.match(self.email or ""):
            raise DomainValidationException("Invalid email address", field="email")

    def update_profile(self, changes: dict) -> None:
        """业务规则：更新个人资料（仅允许 display_name / bio / avatar_url）"""
        if "display_name" in changes:
            value = changes["display_name"]
            if value is not None and len(value) > DISPLAY_NAME_MAX:
                raise DomainValidationException("Display name is too long", field="display_name")
            self.display_name = value
        if "bio" in changes:
            value = changes["bio"]
            if value is not None and len(value) > BIO_MAX:
                raise DomainValidationException("Bio is too long", field="bio")
            self.bio = value
        if "avatar_url" in changes:
            value = changes["avatar_url"]
            if value is not None and len(value) > AVATAR_URL_MAX:
                raise DomainValidationException("Avatar URL is too long", field="avatar_url")
            self.avatar_url = value
        self.updated_at = datetime.now(timezone.utc)

    def change_password(self, new_password_hash: str) -> None:
        """业务规则：修改密码"""
        if not new_password_hash:
            raise DomainValidationException("Password hash must not be empty", field="password")
        self.password_hash = new_password_hash
        self.updated_at = datetime.now(timezone.utc)
