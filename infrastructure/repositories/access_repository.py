"""
用户组 / 权限仓储实现
"""
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy import delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.access.entity import Group, Right
from domain.access.repository import AccessRepository
from infrastructure.models.access import (
    GroupModel,
    GroupRightModel,
    MembershipModel,
    RightModel,
)


class SQLAlchemyAccessRepository(AccessRepository):
    """权限仓储的SQLAlchemy实现（每次调用都重新查询，不做缓存）"""

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _to_group(model: GroupModel) -> Group:
        return Group(
            id=model.id,
            name=model.name,
            display_name=model.display_name,
            description=model.description,
            created_at=model.created_at,
        )

    async def get_user_rights(self, user_id: str) -> Set[str]:
        result = await self.session.execute(
            select(RightModel.name)
            .join(GroupRightModel, GroupRightModel.right_id == RightModel.id)
            .join(MembershipModel, MembershipModel.group_id == GroupRightModel.group_id)
            .where(MembershipModel.user_id == user_id)
            .distinct()
        )
        return set(result.scalars().all())

    async def get_user_groups(self, user_id: str) -> List[str]:
        result = await self.session.execute(
            select(GroupModel.name)
            .join(MembershipModel, MembershipModel.group_id == GroupModel.id)
            .where(MembershipModel.user_id == user_id)
            .order_by(GroupModel.name)
        )
        return list(result.scalars().all())

    async def get_groups_for_users(self, user_ids: Iterable[str]) -> Dict[str, List[str]]:
        ids = list(user_ids)
        groups: Dict[str, List[str]] = defaultdict(list)
        if not ids:
            return groups
        result = await self.session.execute(
            select(MembershipModel.user_id, GroupModel.name)
            .join(GroupModel, GroupModel.id == MembershipModel.group_id)
            .where(MembershipModel.user_id.in_(ids))
            .order_by(GroupModel.name)
        )
        for user_id, name in result.all():
            groups[user_id].append(name)
        return groups

    async def list_groups(self) -> List[Group]:
        result = await self.session.execute(select(GroupModel).order_by(GroupModel.name))
        return [self._to_group(m) for m in result.scalars().all()]

    async def get_group_by_name(self, name: str) -> Optional[Group]:
        result = await self.session.execute(select(GroupModel).where(GroupModel.name == name))
        model = result.scalar_one_or_none()
        return self._to_group(model) if model else None

    async def add_membership(self, user_id: str, group_id: int,
                             assigned_by: Optional[str] = None) -> None:
        # 使用 Core INSERT，避免与同一会话中被批量删除的行发生身份映射冲突
        await self.session.execute(
            insert(MembershipModel).values(
                user_id=user_id,
                group_id=group_id,
                assigned_by=assigned_by,
                assigned_at=datetime.now(timezone.utc),
            )
        )

    async def remove_all_memberships(self, user_id: str) -> int:
        result = await self.session.execute(
            delete(MembershipModel).where(MembershipModel.user_id == user_id)
        )
        return result.rowcount or 0

    async def list_rights(self) -> List[Right]:
        result = await self.session.execute(select(RightModel).order_by(RightModel.id))
        return [Right(id=m.id, name=m.name, description=m.description) for m in result.scalars().all()]

    async def create_right(self, name: str, description: Optional[str]) -> Right:
        model = RightModel(name=name, description=description)
        self.session.add(model)
        await self.session.flush()
        return Right(id=model.id, name=model.name, description=model.description)

    async def create_group(self, name: str, display_name: str,
                           description: Optional[str]) -> Group:
        model = GroupModel(
            name=name,
            display_name=display_name,
            description=description,
            created_at=datetime.now(timezone.utc),
        )
        self.session.add(model)
        await self.session.flush()
        return self._to_group(model)

    async def get_group_right_ids(self, group_id: int) -> Set[int]:
        result = await self.session.execute(
            select(GroupRightModel.right_id).where(GroupRightModel.group_id == group_id)
        )
        return set(result.scalars().all())

    async def grant_right(self, group_id: int, right_id: int) -> None:
        self.session.add(GroupRightModel(group_id=group_id, right_id=right_id))
        await self.session.flush()
