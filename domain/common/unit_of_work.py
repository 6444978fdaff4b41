"""Unit of Work 抽象：一次业务操作的事务边界"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from domain.access.repository import AccessRepository
from domain.article.repository import ArticleRepository
from domain.auth.repository import SessionRepository
from domain.reaction.repository import ReactionRepository
from domain.user.repository import UserRepository


class AbstractUnitOfWork(ABC):
    """
    应用层通过它拿到仓储并控制提交 / 回滚。

    - 正常退出且未显式提交：自动提交（只读模式除外）
    - 异常退出：回滚，异常继续向上传播
    仓储只在 `async with` 块内可用。
    """

    user_repository: Optional[UserRepository] = None
    session_repository: Optional[SessionRepository] = None
    access_repository: Optional[AccessRepository] = None
    article_repository: Optional[ArticleRepository] = None
    reaction_repository: Optional[ReactionRepository] = None

    def __init__(self, *, readonly: bool = False) -> None:
        self._committed = False
        self._readonly = readonly

    @property
    def readonly(self) -> bool:
        return self._readonly

    async def __aenter__(self) -> "AbstractUnitOfWork":
        self._committed = False
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc is not None:
            await self.rollback()
        elif not self._readonly and not self._committed:
            await self.commit()

    @abstractmethod
    async def commit(self) -> None:
        """提交事务"""

    @abstractmethod
    async def rollback(self) -> None:
        """回滚事务"""
