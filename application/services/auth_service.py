"""
认证应用服务 - 注册、登录、会话签发与校验

令牌是签名的 JWT（`sub` 用户ID、`sid` 会话ID、`exp`、`iat`），会话表只保存
令牌的 SHA-256 哈希。令牌有效的前提是会话行存在、未过期且哈希一致，因此
登出 / 全部登出 / 修改密码会在下一次请求时立即生效。
"""
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Tuple
import hashlib
import hmac
import uuid

import jwt
from sqlalchemy.exc import SQLAlchemyError

from application.dto import (
    AuthResultDTO,
    CurrentIdentity,
    LoginDTO,
    RegisterDTO,
    RevokedSessionsDTO,
    SessionListDTO,
    UserResultDTO,
)
from application.services.events import log_domain_events
from application.services.mappers import to_session_dto, to_user_dto
from core.config import settings
from core.logging_config import get_logger
from domain.auth.entity import Session
from domain.common.exceptions import (
    DatastoreUnavailableException,
    PasswordErrorException,
    SessionInvalidException,
    TokenExpiredException,
    TokenInvalidException,
    UserNotFoundException,
)
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.user.entity import User
from domain.user.service import PasswordService, UserDomainService
from infrastructure.external.locking import RedisClient


logger = get_logger(__name__)

BOOTSTRAP_LOCK_KEY = "bootstrap_admin_init"


def hash_token(token: str) -> str:
    """计算令牌的SHA-256哈希"""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class AuthApplicationService:
    """认证应用服务"""

    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        *,
        password_service: Optional[PasswordService] = None,
        cache: Optional[RedisClient] = None,
    ):
        self._uow_factory = uow_factory
        self._password_service = password_service or PasswordService(rounds=settings.BCRYPT_ROUNDS)
        self._cache = cache

    # ============= 令牌与会话 =============

    def _encode_token(self, user_id: str, session_id: str,
                      issued_at: datetime, expires_at: datetime) -> str:
        payload = {
            "sub": user_id,
            "sid": session_id,
            "iat": issued_at,
            "exp": expires_at,
        }
        return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    async def _issue_session(
        self,
        uow: AbstractUnitOfWork,
        user_id: str,
        ttl: timedelta,
        user_agent: Optional[str],
        ip_address: Optional[str],
    ) -> Tuple[str, Session]:
        """在调用方的事务内创建会话并签发令牌"""
        now = datetime.now(timezone.utc)
        session_id = str(uuid.uuid4())
        expires_at = now + ttl
        token = self._encode_token(user_id, session_id, now, expires_at)
        session = await uow.session_repository.create(Session(
            id=session_id,
            user_id=user_id,
            token_hash=hash_token(token),
            expires_at=expires_at,
            created_at=now,
            user_agent=user_agent,
            ip_address=ip_address,
        ))
        return token, session

    async def authenticate(self, token: str) -> CurrentIdentity:
        """校验令牌并确认会话仍然有效"""
        try:
            payload = jwt.decode(
                token,
                settings.SECRET_KEY,
                algorithms=[settings.ALGORITHM],
                options={"require": ["exp", "sub", "sid"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredException()
        except jwt.PyJWTError:
            raise TokenInvalidException()

        user_id = payload.get("sub")
        session_id = payload.get("sid")
        if not isinstance(user_id, str) or not isinstance(session_id, str):
            raise TokenInvalidException()

        try:
            async with self._uow_factory(readonly=True) as uow:
                session = await uow.session_repository.get_active(
                    session_id, user_id, datetime.now(timezone.utc)
                )
        except SQLAlchemyError as e:
            # 数据库故障不能降级为“未登录”
            logger.error("session_lookup_failed", error=str(e))
            raise DatastoreUnavailableException() from e

        if session is None or not hmac.compare_digest(session.token_hash, hash_token(token)):
            raise SessionInvalidException()

        return CurrentIdentity(id=user_id, session_id=session_id)

    # ============= 注册 / 登录 =============

    async def _is_first_user_candidate(self) -> bool:
        """判断当前是否可能为首个用户（只读查询）。"""
        async with self._uow_factory(readonly=True) as uow:
            return await uow.user_repository.count() == 0

    async def register(
        self,
        data: RegisterDTO,
        *,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> AuthResultDTO:
        """注册新用户（可能的首个用户场景使用分布式锁避免并发竞态）"""

        async def _do_register() -> AuthResultDTO:
            async with self._uow_factory() as uow:
                domain_service = UserDomainService(
                    uow.user_repository, uow.access_repository, self._password_service
                )
                user = await domain_service.register_user(
                    username=data.username,
                    email=str(data.email),
                    password=data.password,
                    display_name=data.display_name,
                )
                token, session = await self._issue_session(
                    uow, user.id, settings.session_ttl, user_agent, ip_address
                )
                events = domain_service.get_domain_events()

            log_domain_events(events)
            logger.info("session_created", user_id=user.id, session_id=session.id, reason="register")
            return AuthResultDTO(token=token, user=to_user_dto(user))

        if self._cache is not None and await self._is_first_user_candidate():
            # 锁内由领域服务再次统计用户数，确保只有一个请求看到 0
            async with self._cache.lock(
                BOOTSTRAP_LOCK_KEY,
                timeout=settings.BOOTSTRAP_ADMIN_LOCK_TIMEOUT,
                blocking_timeout=settings.BOOTSTRAP_ADMIN_LOCK_BLOCKING_TIMEOUT,
            ):
                return await _do_register()

        # 未配置 Redis：首个用户判断存在极小的并发窗口
        return await _do_register()

    async def login(
        self,
        data: LoginDTO,
        *,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> AuthResultDTO:
        """用户登录：任何失败都返回同一个通用错误"""
        ttl = settings.session_remember_ttl if data.remember_me else settings.session_ttl
        async with self._uow_factory() as uow:
            domain_service = UserDomainService(
                uow.user_repository, uow.access_repository, self._password_service
            )
            try:
                user = await domain_service.authenticate_user(data.login, data.password)
            except PasswordErrorException:
                logger.info("login_failed")
                raise
            token, session = await self._issue_session(uow, user.id, ttl, user_agent, ip_address)
            user.groups = await uow.access_repository.get_user_groups(user.id)

        logger.info(
            "session_created",
            user_id=user.id,
            session_id=session.id,
            reason="login",
            remember_me=data.remember_me,
        )
        return AuthResultDTO(token=token, user=to_user_dto(user))

    # ============= 会话管理 =============

    async def logout(self, identity: CurrentIdentity) -> None:
        async with self._uow_factory() as uow:
            await uow.session_repository.delete(identity.session_id)
        logger.info("session_revoked", user_id=identity.id, session_id=identity.session_id)

    async def logout_all(self, identity: CurrentIdentity) -> RevokedSessionsDTO:
        async with self._uow_factory() as uow:
            revoked = await uow.session_repository.delete_all_for_user(identity.id)
        logger.info("sessions_revoked", user_id=identity.id, count=revoked)
        return RevokedSessionsDTO(revoked=revoked)

    async def list_sessions(self, identity: CurrentIdentity) -> SessionListDTO:
        async with self._uow_factory(readonly=True) as uow:
            sessions = await uow.session_repository.list_active_for_user(
                identity.id, datetime.now(timezone.utc)
            )
        return SessionListDTO(
            sessions=[to_session_dto(s, identity.session_id) for s in sessions]
        )

    async def get_current_user(self, user_id: str) -> UserResultDTO:
        async with self._uow_factory(readonly=True) as uow:
            user = await self._load_user(uow, user_id)
        return UserResultDTO(user=to_user_dto(user))

    @staticmethod
    async def _load_user(uow: AbstractUnitOfWork, user_id: str) -> User:
        user = await uow.user_repository.get_by_id(user_id)
        if not user:
            raise UserNotFoundException(user_id)
        user.groups = await uow.access_repository.get_user_groups(user_id)
        return user
