"""
权限集合值对象 - 通配权限 `*` 只在这里处理一次
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable


WILDCARD = "*"


class Rights:
    """内置权限名（权限目录本身是数据驱动的，这里只列出代码中用到的）"""

    CREATE_CONTENT = "create_content"
    EDIT_OWN_CONTENT = "edit_own_content"
    EDIT_ANY_CONTENT = "edit_any_content"
    DELETE_OWN_CONTENT = "delete_own_content"
    DELETE_ANY_CONTENT = "delete_any_content"
    UPLOAD_FILES = "upload_files"
    PUBLISH_CONTENT = "publish_content"
    READ_CONTENT = "read_content"
    COMMENT = "comment"
    LIKE = "like"
    EDIT_OWN_PROFILE = "edit_own_profile"
    MANAGE_USERS = "manage_users"
    MANAGE_GROUPS = "manage_groups"
    MANAGE_RIGHTS = "manage_rights"
    VIEW_ADMIN_PANEL = "view_admin_panel"
    ALL = WILDCARD


@dataclass(frozen=True)
class PermissionSet:
    """用户的有效权限集合

    由 成员关系 -> 用户组 -> 组权限 推导而来。管理员的判定基于能力
    （持有 `*`），而不是基于名为 administrator 的用户组。
    """

    names: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def of(cls, names: Iterable[str]) -> "PermissionSet":
        return cls(frozenset(names))

    @classmethod
    def empty(cls) -> "PermissionSet":
        return cls(frozenset())

    def satisfies(self, required: str) -> bool:
        """是否满足某项权限：持有 `*` 即满足一切"""
        return WILDCARD in self.names or required in self.names

    @property
    def is_administrator(self) -> bool:
        return WILDCARD in self.names

    def __contains__(self, right: str) -> bool:
        return self.satisfies(right)

    def __bool__(self) -> bool:
        return bool(self.names)

    def sorted(self) -> list[str]:
        return sorted(self.names)
