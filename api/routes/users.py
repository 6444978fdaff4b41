"""
用户API路由 - 个人资料、用户列表与用户组管理
"""
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from api.dependencies import (
    get_current_identity,
    get_optional_identity,
    get_user_service,
    require_right,
)
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
from application.services.user_service import UserApplicationService
from core.response import Response as ApiResponse, success_response
from domain.access.permissions import Rights


router = APIRouter(prefix="/users", tags=["用户管理"])


@router.get(
    "",
    summary="获取用户列表",
    response_model=ApiResponse[UserListDTO],
    dependencies=[Depends(get_optional_identity)],
)
async def list_users(
    query: Annotated[UserListQuery, Query()],
    service: UserApplicationService = Depends(get_user_service),
):
    """用户列表，不包含邮箱地址"""
    result = await service.list_users(query)
    return success_response(data=result)


@router.get("/groups/list", summary="获取用户组列表", response_model=ApiResponse[GroupListDTO])
async def list_groups(service: UserApplicationService = Depends(get_user_service)):
    result = await service.list_groups()
    return success_response(data=result)


@router.patch("/me", summary="更新当前用户资料", response_model=ApiResponse[UserResultDTO])
async def update_me(
    data: UpdateProfileDTO,
    identity: CurrentIdentity = Depends(get_current_identity),
    service: UserApplicationService = Depends(get_user_service),
):
    """只更新请求体中出现的字段；显式传 null 会清空该字段"""
    result = await service.update_profile(identity.id, data)
    return success_response(data=result, message="Profile updated")


@router.post(
    "/me/change-password",
    summary="修改密码",
    response_model=ApiResponse[PasswordChangedDTO],
)
async def change_password(
    data: ChangePasswordDTO,
    identity: CurrentIdentity = Depends(get_current_identity),
    service: UserApplicationService = Depends(get_user_service),
):
    """修改当前用户的密码；除当前会话外的其他会话全部失效"""
    result = await service.change_password(identity, data)
    return success_response(data=result, message="Password changed")


@router.get("/{user_id}", summary="获取用户资料", response_model=ApiResponse[ProfileDTO])
async def get_profile(
    user_id: str,
    identity: Optional[CurrentIdentity] = Depends(get_optional_identity),
    service: UserApplicationService = Depends(get_user_service),
):
    result = await service.get_profile(user_id, identity.id if identity else None)
    return success_response(data=result)


@router.patch(
    "/{user_id}/groups",
    summary="修改用户所属用户组（管理员）",
    response_model=ApiResponse[UserGroupsDTO],
)
async def update_user_groups(
    user_id: str,
    data: UpdateUserGroupsDTO,
    identity: CurrentIdentity = Depends(require_right(Rights.MANAGE_USERS)),
    service: UserApplicationService = Depends(get_user_service),
):
    """
    替换用户的用户组

    - 用户同一时间只能属于一个用户组
    - 管理员不能修改自己的用户组
    """
    result = await service.update_user_groups(user_id, data, identity.id)
    return success_response(data=result, message="Groups updated")
