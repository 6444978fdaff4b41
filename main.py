"""
应用入口：组装 FastAPI 应用（中间件、异常处理、路由）与生命周期资源
"""
from contextlib import asynccontextmanager
from functools import partial

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.exceptions import RedisError

from api.middleware import LoggingMiddleware, RequestIDMiddleware
from api.routes import articles, auth, reactions, users
from core.config import settings
from core.exceptions import register_exception_handlers
from core.logging_config import configure_logging, get_logger
from core.response import success_response
from infrastructure.database import Database
from infrastructure.external.locking import (
    get_redis_client,
    init_redis_client,
    shutdown_redis_client,
)
from infrastructure.seed import seed_access_catalog
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork


configure_logging()
logger = get_logger(__name__)

API_PREFIX = "/api/v1"


async def _start_redis() -> None:
    # Redis 只承担首个管理员注册锁，连不上时继续以数据库约束运行
    try:
        await init_redis_client()
    except (RedisError, OSError) as exc:
        logger.error("redis_lock_unavailable", error=str(exc))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    启动：准备 Database 资源，按配置建表，补齐权限目录，连接 Redis（可选）。
    关闭：按相反顺序释放；外部注入的 Database 由注入方负责释放。
    """
    database = getattr(app.state, "database", None)
    owns_database = database is None
    if owns_database:
        database = Database(settings.database.url, echo=settings.database.echo)
        app.state.database = database

    if settings.auto_create_tables:
        await database.create_tables()
        logger.info("database_tables_created")
    else:
        logger.info("database_migrations_required", hint="alembic upgrade head")

    await seed_access_catalog(partial(SQLAlchemyUnitOfWork, database.session_factory))

    if settings.redis.url:
        await _start_redis()

    logger.info("application_started", version=settings.VERSION)
    yield

    await shutdown_redis_client()
    if owns_database:
        await database.dispose()
        app.state.database = None
    logger.info("application_shutdown")


def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
        description="AI 模型目录与文章平台：会话认证、分组权限、文章与点赞",
    )

    # add_middleware 后加入的先执行：CORS -> RequestID -> 日志 -> 路由
    application.add_middleware(LoggingMiddleware)
    application.add_middleware(RequestIDMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(application)

    for module in (auth, users, articles, reactions):
        application.include_router(module.router, prefix=API_PREFIX)

    @application.get("/", tags=["Root"])
    async def root():
        return success_response(
            data={
                "name": settings.PROJECT_NAME,
                "version": settings.VERSION,
                "api": API_PREFIX,
                "docs": "/docs",
            },
            message="Welcome",
        )

    @application.get("/health", tags=["Health"])
    async def health_check():
        """存活检查；配置了 Redis 时附带锁服务状态"""
        data = {"status": "healthy"}
        redis_client = get_redis_client()
        if redis_client is not None:
            data["redis"] = "up" if await redis_client.health_check() else "down"
        return success_response(data=data)

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info",
    )
