"""
用户领域服务 - 处理注册、认证、改密等业务流程
"""
from functools import lru_cache
from typing import Optional, List

import anyio
import bcrypt

from .entity import User
from .repository import UserRepository
from .events import UserRegistered, PasswordChanged
from domain.access.catalog import ADMINISTRATOR_GROUP, DEFAULT_GROUP
from domain.access.repository import AccessRepository
from domain.common.exceptions import (
    AccessCatalogMissingException,
    DomainValidationException,
    InvalidCurrentPasswordException,
    PasswordErrorException,
    UserAlreadyExistsException,
    UserNotFoundException,
)


PASSWORD_MIN_LENGTH = 8
# bcrypt 只使用前 72 字节
_BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


@lru_cache(maxsize=8)
def _dummy_hash(rounds: int) -> bytes:
    # 用户不存在时也执行一次完整的 bcrypt 校验，避免时序差异泄露账号是否存在
    return bcrypt.hashpw(b"dummy-password-for-timing", bcrypt.gensalt(rounds=rounds))


class PasswordService:
    """密码服务 - bcrypt 加盐哈希，工作因子可配置"""

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    def _hash(self, password: str) -> str:
        return bcrypt.hashpw(_encode(password), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def _verify(self, plain_password: str, hashed_password: Optional[str]) -> bool:
        if not hashed_password:
            bcrypt.checkpw(_encode(plain_password), _dummy_hash(self.rounds))
            return False
        try:
            return bcrypt.checkpw(_encode(plain_password), hashed_password.encode("utf-8"))
        except ValueError:
            # 存储的哈希格式损坏
            return False

    # bcrypt 是 CPU 密集的阻塞调用，放到工作线程执行，避免阻塞事件循环
    async def hash_password(self, password: str) -> str:
        """密码哈希"""
        return await anyio.to_thread.run_sync(self._hash, password)

    async def verify_password(self, plain_password: str, hashed_password: Optional[str]) -> bool:
        """验证密码；hashed_password 为空时对哑哈希做一次校验并返回 False"""
        return await anyio.to_thread.run_sync(self._verify, plain_password, hashed_password)

    @staticmethod
    def validate_password_strength(password: str) -> None:
        """业务规则：密码长度至少8位"""
        if len(password or "") < PASSWORD_MIN_LENGTH:
            raise DomainValidationException(
                f"Password must be at least {PASSWORD_MIN_LENGTH} characters",
                field="password",
            )


class UserDomainService:
    """用户领域服务 - 编排复杂的业务流程"""

    def __init__(self, user_repository: UserRepository,
                 access_repository: AccessRepository,
                 password_service: Optional[PasswordService] = None):
        self.user_repository = user_repository
        self.access_repository = access_repository
        self.password_service = password_service or PasswordService()
        self.events: List = []  # 领域事件收集

    async def register_user(self,
                            username: str,
                            email: str,
                            password: str,
                            display_name: Optional[str] = None) -> User:
        """用户注册的业务流程"""
        # 业务规则1：验证密码强度
        self.password_service.validate_password_strength(password)

        # 业务规则2：用户名或邮箱冲突统一报告，不区分字段
        if await self.user_repository.identity_taken(username, email):
            raise UserAlreadyExistsException()

        # 业务规则3：创建用户实体
        user = User.register(
            username=username,
            email=email,
            password_hash=await self.password_service.hash_password(password),
            display_name=display_name,
        )

        # 业务规则4：首个用户加入管理员组，其余加入默认组
        bootstrap = await self.user_repository.count() == 0
        group_name = ADMINISTRATOR_GROUP if bootstrap else DEFAULT_GROUP
        group = await self.access_repository.get_group_by_name(group_name)
        if group is None:
            raise AccessCatalogMissingException(group_name)

        created_user = await self.user_repository.create(user)
        await self.access_repository.add_membership(created_user.id, group.id, assigned_by=None)
        created_user.groups = [group.name]

        self.events.append(UserRegistered(
            user_id=created_user.id,
            username=created_user.username,
            group=group.name,
            bootstrap_admin=bootstrap,
        ))
        return created_user

    async def authenticate_user(self, login: str, password: str) -> User:
        """用户认证的业务流程：任何失败都返回同一个通用错误"""
        user = await self.user_repository.get_by_login(login)
        if not user:
            await self.password_service.verify_password(password, None)
            raise PasswordErrorException()

        if not await self.password_service.verify_password(password, user.password_hash):
            raise PasswordErrorException()

        return user

    async def change_user_password(self, user_id: str,
                                   current_password: str,
                                   new_password: str) -> User:
        """修改密码的业务流程"""
        user = await self.user_repository.get_by_id(user_id)
        if not user:
            raise UserNotFoundException(user_id)

        if not await self.password_service.verify_password(current_password, user.password_hash):
            raise InvalidCurrentPasswordException()

        self.password_service.validate_password_strength(new_password)

        user.change_password(await self.password_service.hash_password(new_password))
        updated_user = await self.user_repository.update(user)

        self.events.append(PasswordChanged(user_id=user_id))
        return updated_user

    def get_domain_events(self) -> List:
        """获取并清空领域事件"""
        events = self.events.copy()
        self.events.clear()
        return events
