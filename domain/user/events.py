"""
用户领域事件 - 记录重要的业务事件
"""
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Optional
import uuid


@dataclass
class _Event:
    event_name = "domain_event"

    def payload(self) -> dict:
        data = asdict(self)
        data.pop("event_id", None)
        data.pop("occurred_at", None)
        return data


@dataclass
class UserRegistered(_Event):
    """用户注册事件"""
    user_id: str
    username: str
    group: str
    bootstrap_admin: bool = False
    event_id: Optional[str] = field(default_factory=lambda: str(uuid.uuid4()))
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_name = "user_registered"


@dataclass
class PasswordChanged(_Event):
    """密码修改事件"""
    user_id: str
    revoked_sessions: int = 0
    event_id: Optional[str] = field(default_factory=lambda: str(uuid.uuid4()))
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_name = "user_password_changed"


@dataclass
class UserGroupsChanged(_Event):
    """用户组变更事件"""
    user_id: str
    group: str
    assigned_by: str
    event_id: Optional[str] = field(default_factory=lambda: str(uuid.uuid4()))
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_name = "user_groups_updated"
