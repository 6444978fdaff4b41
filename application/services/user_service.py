"""
用户应用服务（application/services）- 个人资料、改密、用户列表与用户组管理
"""
from typing import Callable, Optional

from application.dto import (
    ChangePasswordDTO,
    CurrentIdentity,
    GroupListDTO,
    PasswordChangedDTO,
    ProfileDTO,
    UpdateProfileDTO,
    UpdateUserGroupsDTO,
    UserGroupsDTO,
    UserListDTO,
    UserListQuery,
    UserResultDTO,
)
from application.services.events import log_domain_events
from application.services.mappers import to_group_dto, to_user_dto
from core.config import settings
from core.logging_config import get_logger
from core.response import OffsetPagination
from domain.common.exceptions import (
    GroupAssignmentException,
    NothingToUpdateException,
    SelfGroupChangeForbiddenException,
    UserNotFoundException,
)
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.user.events import UserGroupsChanged
from domain.user.service import PasswordService, UserDomainService


logger = get_logger(__name__)


class UserApplicationService:
    """用户应用服务 - 处理应用层逻辑"""

    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        *,
        password_service: Optional[PasswordService] = None,
    ):
        self._uow_factory = uow_factory
        self._password_service = password_service or PasswordService(rounds=settings.BCRYPT_ROUNDS)

    async def get_profile(self, user_id: str, viewer_id: Optional[str] = None) -> ProfileDTO:
        """公开资料；邮箱只对本人可见"""
        async with self._uow_factory(readonly=True) as uow:
            user = await uow.user_repository.get_by_id(user_id)
            if not user:
                raise UserNotFoundException(user_id)
            user.groups = await uow.access_repository.get_user_groups(user_id)

        is_owner = viewer_id is not None and viewer_id == user.id
        return ProfileDTO(user=to_user_dto(user, include_email=is_owner), is_owner=is_owner)

    async def update_profile(self, user_id: str, data: UpdateProfileDTO) -> UserResultDTO:
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            raise NothingToUpdateException()

        async with self._uow_factory() as uow:
            user = await uow.user_repository.get_by_id(user_id)
            if not user:
                raise UserNotFoundException(user_id)
            user.update_profile(changes)
            updated = await uow.user_repository.update(user)
            updated.groups = await uow.access_repository.get_user_groups(user_id)

        logger.info("user_profile_updated", user_id=user_id, fields=sorted(changes))
        return UserResultDTO(user=to_user_dto(updated))

    async def change_password(self, identity: CurrentIdentity,
                              data: ChangePasswordDTO) -> PasswordChangedDTO:
        """修改密码：除当前会话外的所有会话立即失效"""
        async with self._uow_factory() as uow:
            domain_service = UserDomainService(
                uow.user_repository, uow.access_repository, self._password_service
            )
            await domain_service.change_user_password(
                identity.id, data.current_password, data.new_password
            )
            revoked = await uow.session_repository.delete_others_for_user(
                identity.id, identity.session_id
            )
            events = domain_service.get_domain_events()

        for event in events:
            event.revoked_sessions = revoked
        log_domain_events(events)
        return PasswordChangedDTO(revoked_sessions=revoked)

    async def list_users(self, query: UserListQuery) -> UserListDTO:
        """用户列表（不含邮箱）"""
        async with self._uow_factory(readonly=True) as uow:
            users = await uow.user_repository.list_page(
                sort=query.sort, order=query.order, offset=query.offset, limit=query.limit
            )
            total = await uow.user_repository.count()
            groups = await uow.access_repository.get_groups_for_users(u.id for u in users)

        for user in users:
            user.groups = groups.get(user.id, [])
        return UserListDTO(
            users=[to_user_dto(u, include_email=False) for u in users],
            pagination=OffsetPagination(total=total, limit=query.limit, offset=query.offset),
        )

    async def list_groups(self) -> GroupListDTO:
        async with self._uow_factory(readonly=True) as uow:
            groups = await uow.access_repository.list_groups()
        return GroupListDTO(groups=[to_group_dto(g) for g in groups])

    async def update_user_groups(self, target_user_id: str, data: UpdateUserGroupsDTO,
                                 acting_user_id: str) -> UserGroupsDTO:
        """
        替换目标用户的用户组（调用方已通过 manage_users 权限检查）

        检查顺序：目标不存在 -> 空列表 -> 多个组 -> 修改自己 -> 未知组名，
        全部通过后在同一事务内删除旧成员关系并插入新关系。
        """
        names = list(dict.fromkeys(name.strip() for name in data.groups if name and name.strip()))

        async with self._uow_factory() as uow:
            if not await uow.user_repository.get_by_id(target_user_id):
                raise UserNotFoundException(target_user_id)
            if not names:
                raise GroupAssignmentException("At least one group is required")
            if len(names) > 1:
                raise GroupAssignmentException(
                    "A user can belong to only one group", details={"groups": names}
                )
            if target_user_id == acting_user_id:
                raise SelfGroupChangeForbiddenException()

            group = await uow.access_repository.get_group_by_name(names[0])
            if group is None:
                raise GroupAssignmentException("Unknown group", details={"group": names[0]})

            await uow.access_repository.remove_all_memberships(target_user_id)
            await uow.access_repository.add_membership(
                target_user_id, group.id, assigned_by=acting_user_id
            )
            current = await uow.access_repository.get_user_groups(target_user_id)

        log_domain_events([UserGroupsChanged(
            user_id=target_user_id, group=group.name, assigned_by=acting_user_id
        )])
        return UserGroupsDTO(groups=current)
