"""SQLAlchemy Unit of Work 实现"""
from __future__ import annotations

from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from domain.common.unit_of_work import AbstractUnitOfWork
from infrastructure.repositories.access_repository import SQLAlchemyAccessRepository
from infrastructure.repositories.article_repository import SQLAlchemyArticleRepository
from infrastructure.repositories.reaction_repository import SQLAlchemyReactionRepository
from infrastructure.repositories.session_repository import SQLAlchemySessionRepository
from infrastructure.repositories.user_repository import SQLAlchemyUserRepository


# 属性名 -> 仓储实现；进入上下文时绑定到同一个会话
_REPOSITORIES = {
    "user_repository": SQLAlchemyUserRepository,
    "session_repository": SQLAlchemySessionRepository,
    "access_repository": SQLAlchemyAccessRepository,
    "article_repository": SQLAlchemyArticleRepository,
    "reaction_repository": SQLAlchemyReactionRepository,
}


class SQLAlchemyUnitOfWork(AbstractUnitOfWork):
    """基于 AsyncSession 的 Unit of Work

    会话工厂由 `Database` 资源注入（通常是 `partial(SQLAlchemyUnitOfWork, database.session_factory)`），
    不依赖模块级全局引擎。只读模式不显式开启事务，也不提交。
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession],
        *,
        readonly: bool = False,
    ) -> None:
        super().__init__(readonly=readonly)
        self._session_factory = session_factory
        self.session: Optional[AsyncSession] = None

    async def __aenter__(self) -> "SQLAlchemyUnitOfWork":
        await super().__aenter__()
        self.session = self._session_factory()
        for attr, repository_cls in _REPOSITORIES.items():
            setattr(self, attr, repository_cls(self.session))
        if not self._readonly:
            await self.session.begin()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            await super().__aexit__(exc_type, exc, tb)
        finally:
            if self.session is not None:
                await self.session.close()
                self.session = None
            for attr in _REPOSITORIES:
                setattr(self, attr, None)

    async def commit(self) -> None:
        if not self._readonly and self.session is not None and self.session.in_transaction():
            await self.session.commit()
        self._committed = True

    async def rollback(self) -> None:
        if self.session is not None and self.session.in_transaction():
            await self.session.rollback()
        self._committed = False
