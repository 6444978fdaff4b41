"""
API依赖项 - 数据库资源注入、认证和授权
"""
from functools import partial
from typing import Callable, Optional

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer, OAuth2PasswordBearer

from application.dto import CurrentIdentity
from application.services.access_service import AccessService
from application.services.article_service import ArticleApplicationService
from application.services.auth_service import AuthApplicationService
from application.services.reaction_service import ReactionApplicationService
from application.services.user_service import UserApplicationService
from domain.common.exceptions import BusinessException, PermissionDeniedException, TokenMissingException
from infrastructure.database import Database
from infrastructure.external.locking import get_redis_client
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork
from shared.codes import ErrorKind

# OAuth2 password bearer for Swagger UI
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="/api/v1/auth/token",
    scheme_name="OAuth2",
    description="Login with username or email to get a token",
    auto_error=False,
)

# HTTP Bearer for direct API calls
http_bearer = HTTPBearer(
    scheme_name="Bearer",
    description="Session token authentication",
    auto_error=False,
)


def get_database(request: Request) -> Database:
    """应用生命周期内创建的数据库资源"""
    return request.app.state.database


def get_uow_factory(database: Database = Depends(get_database)) -> Callable[..., SQLAlchemyUnitOfWork]:
    return partial(SQLAlchemyUnitOfWork, database.session_factory)


def get_auth_service(uow_factory=Depends(get_uow_factory)) -> AuthApplicationService:
    return AuthApplicationService(uow_factory, cache=get_redis_client())


def get_user_service(uow_factory=Depends(get_uow_factory)) -> UserApplicationService:
    return UserApplicationService(uow_factory)


def get_access_service(uow_factory=Depends(get_uow_factory)) -> AccessService:
    return AccessService(uow_factory)


def get_article_service(uow_factory=Depends(get_uow_factory)) -> ArticleApplicationService:
    return ArticleApplicationService(uow_factory)


def get_reaction_service(uow_factory=Depends(get_uow_factory)) -> ReactionApplicationService:
    return ReactionApplicationService(uow_factory)


async def get_token(
    oauth2_token: Optional[str] = Depends(oauth2_scheme),
    bearer_token: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
) -> Optional[str]:
    """从OAuth2或Bearer token中提取token；未提供时返回 None"""
    # 优先使用OAuth2 token (from Swagger UI)
    if oauth2_token:
        return oauth2_token

    # 然后尝试Bearer token (from direct API calls)
    if bearer_token and bearer_token.credentials:
        return bearer_token.credentials

    return None


async def get_current_identity(
    token: Optional[str] = Depends(get_token),
    service: AuthApplicationService = Depends(get_auth_service),
) -> CurrentIdentity:
    """强制认证：缺少或无效的令牌返回 401"""
    if not token:
        raise TokenMissingException()
    identity = await service.authenticate(token)
    structlog.contextvars.bind_contextvars(user_id=identity.id)
    return identity


async def get_optional_identity(
    token: Optional[str] = Depends(get_token),
    service: AuthApplicationService = Depends(get_auth_service),
) -> Optional[CurrentIdentity]:
    """可选认证：无令牌或令牌无效时按匿名处理；数据库故障不吞掉"""
    if not token:
        return None
    try:
        identity = await service.authenticate(token)
    except BusinessException as e:
        if e.kind is not ErrorKind.AUTHENTICATION:
            raise
        return None
    structlog.contextvars.bind_contextvars(user_id=identity.id)
    return identity


def require_right(right: str):
    """要求当前用户持有某项权限（持有 `*` 视为满足）"""

    async def _checker(
        identity: CurrentIdentity = Depends(get_current_identity),
        access: AccessService = Depends(get_access_service),
    ) -> CurrentIdentity:
        permissions = await access.permissions_for(identity.id)
        if not permissions.satisfies(right):
            raise PermissionDeniedException(right=right)
        return identity

    return _checker
