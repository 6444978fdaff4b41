"""
权限应用服务 - 每次检查都重新查询有效权限（不缓存）
"""
from typing import Callable, Optional

from domain.access.permissions import PermissionSet
from domain.access.repository import AccessRepository
from domain.common.unit_of_work import AbstractUnitOfWork


async def load_permissions(access_repository: AccessRepository,
                           user_id: Optional[str]) -> PermissionSet:
    """在已打开的 Unit of Work 中解析用户的有效权限；匿名用户为空集合"""
    if not user_id:
        return PermissionSet.empty()
    return PermissionSet.of(await access_repository.get_user_rights(user_id))


class AccessService:
    def __init__(self, uow_factory: Callable[..., AbstractUnitOfWork]):
        self._uow_factory = uow_factory

    async def permissions_for(self, user_id: Optional[str]) -> PermissionSet:
        if not user_id:
            return PermissionSet.empty()
        async with self._uow_factory(readonly=True) as uow:
            return await load_permissions(uow.access_repository, user_id)

    async def has_right(self, user_id: Optional[str], right: str) -> bool:
        return (await self.permissions_for(user_id)).satisfies(right)

    async def is_administrator(self, user_id: Optional[str]) -> bool:
        return (await self.permissions_for(user_id)).is_administrator
