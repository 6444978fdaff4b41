"""
权限目录种子数据

启动时幂等执行：缺失的权限 / 用户组 / 组权限补齐，已有数据不做修改。
"""
from typing import Callable

from core.logging_config import get_logger
from domain.access.catalog import DEFAULT_GROUPS, RIGHT_CATALOG
from domain.common.unit_of_work import AbstractUnitOfWork


logger = get_logger(__name__)


async def seed_access_catalog(uow_factory: Callable[..., AbstractUnitOfWork]) -> None:
    async with uow_factory() as uow:
        repo = uow.access_repository

        rights = {right.name: right for right in await repo.list_rights()}
        created_rights = 0
        for name, description in RIGHT_CATALOG:
            if name not in rights:
                rights[name] = await repo.create_right(name, description)
                created_rights += 1

        created_groups = 0
        granted = 0
        for definition in DEFAULT_GROUPS:
            group = await repo.get_group_by_name(definition.name)
            if group is None:
                group = await repo.create_group(
                    definition.name, definition.display_name, definition.description
                )
                created_groups += 1
            existing = await repo.get_group_right_ids(group.id)
            for right_name in definition.rights:
                right_id = rights[right_name].id
                if right_id not in existing:
                    await repo.grant_right(group.id, right_id)
                    granted += 1

    logger.info(
        "access_catalog_seeded",
        created_rights=created_rights,
        created_groups=created_groups,
        granted_rights=granted,
    )
