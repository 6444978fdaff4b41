"""
用户组 / 权限仓储接口
"""
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Set

from .entity import Group, Right


class AccessRepository(ABC):
    """权限数据访问抽象：成员关系、用户组、权限目录"""

    @abstractmethod
    async def get_user_rights(self, user_id: str) -> Set[str]:
        """成员关系 -> 用户组 -> 组权限 的并集"""

    @abstractmethod
    async def get_user_groups(self, user_id: str) -> List[str]:
        """用户当前所属用户组名（按名称排序）"""

    @abstractmethod
    async def get_groups_for_users(self, user_ids: Iterable[str]) -> Dict[str, List[str]]:
        """批量获取用户组名"""

    @abstractmethod
    async def list_groups(self) -> List[Group]:
        """全部用户组（按名称排序）"""

    @abstractmethod
    async def get_group_by_name(self, name: str) -> Optional[Group]:
        pass

    @abstractmethod
    async def add_membership(self, user_id: str, group_id: int,
                             assigned_by: Optional[str] = None) -> None:
        pass

    @abstractmethod
    async def remove_all_memberships(self, user_id: str) -> int:
        pass

    # ---- 权限目录（种子数据） ----

    @abstractmethod
    async def list_rights(self) -> List[Right]:
        pass

    @abstractmethod
    async def create_right(self, name: str, description: Optional[str]) -> Right:
        pass

    @abstractmethod
    async def create_group(self, name: str, display_name: str,
                           description: Optional[str]) -> Group:
        pass

    @abstractmethod
    async def get_group_right_ids(self, group_id: int) -> Set[int]:
        pass

    @abstractmethod
    async def grant_right(self, group_id: int, right_id: int) -> None:
        pass
