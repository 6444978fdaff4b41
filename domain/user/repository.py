"""
用户仓储接口
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from .entity import User


class UserRepository(ABC):
    """用户账户的持久化端口；实现负责把唯一约束冲突翻译为领域异常"""

    @abstractmethod
    async def create(self, user: User) -> User:
        """插入新用户；用户名或邮箱冲突时抛出 UserAlreadyExistsException"""

    @abstractmethod
    async def get_by_id(self, user_id: str) -> Optional[User]:
        ...

    @abstractmethod
    async def get_by_login(self, login: str) -> Optional[User]:
        """login 可以是用户名，也可以是邮箱"""

    @abstractmethod
    async def identity_taken(self, username: str, email: str) -> bool:
        """用户名或邮箱任一已被占用即为 True"""

    @abstractmethod
    async def list_page(self, *, sort: str = "created_at", order: str = "desc",
                        offset: int = 0, limit: int = 50) -> List[User]:
        """按排序字段分页；同值时以 ID 保证顺序稳定"""

    @abstractmethod
    async def update(self, user: User) -> User:
        """保存资料与密码哈希的变更"""

    @abstractmethod
    async def count(self) -> int:
        """用户总数（首个注册者成为管理员依赖于此）"""
