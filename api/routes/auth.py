"""
认证API路由 - 注册、登录、登出与会话管理
"""
from fastapi import APIRouter, Depends, Request, status
from fastapi.security import OAuth2PasswordRequestForm

from api.dependencies import get_auth_service, get_current_identity
from api.middleware import resolve_client_ip
from application.dto import (
    AuthResultDTO,
    CurrentIdentity,
    LoginDTO,
    RegisterDTO,
    RevokedSessionsDTO,
    SessionListDTO,
    UserResultDTO,
)
from application.services.auth_service import AuthApplicationService
from core.response import Response as ApiResponse, success_response


router = APIRouter(prefix="/auth", tags=["认证"])


def _client_info(request: Request) -> dict:
    return {
        "user_agent": request.headers.get("user-agent"),
        "ip_address": resolve_client_ip(request),
    }


@router.post(
    "/register",
    summary="用户注册",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[AuthResultDTO],
)
async def register(
    request: Request,
    data: RegisterDTO,
    service: AuthApplicationService = Depends(get_auth_service),
):
    """
    注册新用户并直接登录

    - 系统中的第一个用户自动成为管理员，其余用户加入默认用户组
    - 用户名或邮箱冲突统一返回同一个错误信息
    """
    result = await service.register(data, **_client_info(request))
    return success_response(data=result, message="Registration successful")


@router.post("/login", summary="用户登录", response_model=ApiResponse[AuthResultDTO])
async def login(
    request: Request,
    data: LoginDTO,
    service: AuthApplicationService = Depends(get_auth_service),
):
    """
    使用用户名或邮箱登录

    `remember_me` 为 true 时会话使用更长的有效期
    """
    result = await service.login(data, **_client_info(request))
    return success_response(data=result, message="Login successful")


@router.post("/token", summary="OAuth2 表单登录（交互式文档使用）", include_in_schema=False)
async def token(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    service: AuthApplicationService = Depends(get_auth_service),
):
    result = await service.login(
        LoginDTO(login=form_data.username, password=form_data.password),
        **_client_info(request),
    )
    # 返回扁平结构，符合 OAuth2 密码模式的期望
    return {"access_token": result.token, "token_type": "bearer"}


@router.post("/logout", summary="登出当前会话", response_model=ApiResponse[None])
async def logout(
    identity: CurrentIdentity = Depends(get_current_identity),
    service: AuthApplicationService = Depends(get_auth_service),
):
    await service.logout(identity)
    return success_response(message="Logged out")


@router.post("/logout-all", summary="登出全部会话", response_model=ApiResponse[RevokedSessionsDTO])
async def logout_all(
    identity: CurrentIdentity = Depends(get_current_identity),
    service: AuthApplicationService = Depends(get_auth_service),
):
    result = await service.logout_all(identity)
    return success_response(data=result, message="All sessions revoked")


@router.get("/me", summary="获取当前用户信息", response_model=ApiResponse[UserResultDTO])
async def me(
    identity: CurrentIdentity = Depends(get_current_identity),
    service: AuthApplicationService = Depends(get_auth_service),
):
    result = await service.get_current_user(identity.id)
    return success_response(data=result)


@router.get("/sessions", summary="当前用户的有效会话", response_model=ApiResponse[SessionListDTO])
async def sessions(
    identity: CurrentIdentity = Depends(get_current_identity),
    service: AuthApplicationService = Depends(get_auth_service),
):
    result = await service.list_sessions(identity)
    return success_response(data=result)
