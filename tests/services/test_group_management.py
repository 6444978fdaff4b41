import pytest

from application.dto import UpdateProfileDTO, UpdateUserGroupsDTO, UserListQuery
from application.services.access_service import AccessService
from domain.access.permissions import Rights
from domain.common.exceptions import (
    GroupAssignmentException,
    NothingToUpdateException,
    SelfGroupChangeForbiddenException,
    UserNotFoundException,
)
from infrastructure.seed import seed_access_catalog


@pytest.mark.asyncio
async def test_seed_is_idempotent(uow_factory, user_service):
    await seed_access_catalog(uow_factory)
    await seed_access_catalog(uow_factory)

    groups = await user_service.list_groups()
    assert sorted(g.name for g in groups.groups) == ["administrator", "creator", "user"]


@pytest.mark.asyncio
async def test_promote_member_to_creator(user_service, uow_factory, admin, member):
    _, admin_identity, _ = admin
    _, member_identity, _ = member
    access = AccessService(uow_factory)
    assert not await access.has_right(member_identity.id, Rights.CREATE_CONTENT)

    result = await user_service.update_user_groups(
        member_identity.id, UpdateUserGroupsDTO(groups=["creator"]), admin_identity.id
    )

    assert result.groups == ["creator"]
    assert await access.has_right(member_identity.id, Rights.CREATE_CONTENT)
    assert not await access.is_administrator(member_identity.id)


@pytest.mark.asyncio
async def test_membership_is_exclusive(user_service, admin, member):
    _, admin_identity, _ = admin
    _, member_identity, _ = member

    await user_service.update_user_groups(
        member_identity.id, UpdateUserGroupsDTO(groups=["creator"]), admin_identity.id
    )
    result = await user_service.update_user_groups(
        member_identity.id, UpdateUserGroupsDTO(groups=["user"]), admin_identity.id
    )
    assert result.groups == ["user"]


@pytest.mark.asyncio
async def test_group_assignment_checks_in_order(user_service, admin, member):
    _, admin_identity, _ = admin
    _, member_identity, _ = member

    with pytest.raises(UserNotFoundException):
        await user_service.update_user_groups(
            "00000000-0000-0000-0000-000000000000",
            UpdateUserGroupsDTO(groups=[]),
            admin_identity.id,
        )
    with pytest.raises(GroupAssignmentException) as empty:
        await user_service.update_user_groups(
            admin_identity.id, UpdateUserGroupsDTO(groups=[]), admin_identity.id
        )
    assert empty.value.message == "At least one group is required"

    with pytest.raises(GroupAssignmentException) as multiple:
        await user_service.update_user_groups(
            admin_identity.id, UpdateUserGroupsDTO(groups=["user", "creator"]), admin_identity.id
        )
    assert multiple.value.message == "A user can belong to only one group"

    with pytest.raises(SelfGroupChangeForbiddenException):
        await user_service.update_user_groups(
            admin_identity.id, UpdateUserGroupsDTO(groups=["no-such-group"]), admin_identity.id
        )

    with pytest.raises(GroupAssignmentException) as unknown:
        await user_service.update_user_groups(
            member_identity.id, UpdateUserGroupsDTO(groups=["no-such-group"]), admin_identity.id
        )
    assert unknown.value.message == "Unknown group"


@pytest.mark.asyncio
async def test_duplicate_group_names_count_once(user_service, admin, member):
    _, admin_identity, _ = admin
    _, member_identity, _ = member

    result = await user_service.update_user_groups(
        member_identity.id, UpdateUserGroupsDTO(groups=["creator", " creator "]), admin_identity.id
    )
    assert result.groups == ["creator"]


@pytest.mark.asyncio
async def test_profile_hides_email_from_others(user_service, admin, member):
    _, admin_identity, _ = admin
    _, member_identity, _ = member

    own = await user_service.get_profile(member_identity.id, member_identity.id)
    other = await user_service.get_profile(member_identity.id, admin_identity.id)
    anonymous = await user_service.get_profile(member_identity.id, None)

    assert own.is_owner and own.user.email == "member@example.com"
    assert not other.is_owner and other.user.email is None
    assert anonymous.user.email is None
    assert other.user.groups == ["user"]


@pytest.mark.asyncio
async def test_update_profile(user_service, member):
    _, identity, _ = member

    with pytest.raises(NothingToUpdateException):
        await user_service.update_profile(identity.id, UpdateProfileDTO())

    result = await user_service.update_profile(
        identity.id, UpdateProfileDTO(display_name="Member One", bio="hi")
    )
    assert result.user.display_name == "Member One"
    assert result.user.bio == "hi"


@pytest.mark.asyncio
async def test_list_users_paginates_without_emails(user_service, admin, member):
    result = await user_service.list_users(UserListQuery(limit=1, offset=0, sort="username", order="asc"))

    assert result.pagination.total == 2
    assert len(result.users) == 1
    assert result.users[0].username == "admin"
    assert result.users[0].email is None
