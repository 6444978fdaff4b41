"""
数据库连接管理

`Database` 是显式构造的资源：在应用启动时创建、关闭时释放，
通过依赖注入传给 Unit of Work，而不是作为模块级全局引擎被导入。
"""
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, async_sessionmaker
from sqlalchemy.engine import make_url

from core.logging_config import get_logger
from infrastructure.models import Base


logger = get_logger(__name__)


def build_async_url(database_url: str) -> str:
    """确保数据库URL使用异步驱动"""
    url = make_url(database_url)
    drivername = url.drivername

    if "+" in drivername:
        return database_url

    driver_map = {
        "postgresql": "postgresql+asyncpg",
        "postgres": "postgresql+asyncpg",
        "mysql": "mysql+aiomysql",
        "sqlite": "sqlite+aiosqlite",
    }

    if drivername not in driver_map:
        raise ValueError(f"不支持的数据库驱动: {drivername}. 请使用 async 驱动或更新 DATABASE__URL")

    return url.set(drivername=driver_map[drivername]).render_as_string(hide_password=False)


class Database:
    """异步数据库资源：引擎 + 会话工厂"""

    def __init__(self, url: str, *, echo: bool = False, **engine_kwargs: Any) -> None:
        self.url = build_async_url(url)
        self.engine: AsyncEngine = create_async_engine(self.url, echo=echo, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            expire_on_commit=False,
        )

    async def create_tables(self) -> None:
        """
        创建所有表

        根据models中定义的所有模型创建对应的数据库表；生产环境应使用 Alembic 迁移
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_tables(self) -> None:
        """
        删除所有表

        警告：仅用于测试环境，会删除所有数据！
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        """释放连接池"""
        await self.engine.dispose()
        logger.info("database_disposed", driver=self.engine.url.drivername)
