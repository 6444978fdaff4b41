"""Pytest bootstrap configuration.

Ensure mandatory environment variables are set before test collection
and module imports that depend on application settings.
"""
import os

# Mandatory secret key for settings validation
os.environ.setdefault("SECRET_KEY", "test-secret-key")
# bcrypt 最低工作因子，加快测试
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DEBUG", "false")

from functools import partial

import httpx
import pytest
from sqlalchemy.pool import StaticPool

from application.dto import RegisterDTO, UpdateUserGroupsDTO
from application.services.article_service import ArticleApplicationService
from application.services.auth_service import AuthApplicationService
from application.services.reaction_service import ReactionApplicationService
from application.services.user_service import UserApplicationService
from domain.user.service import PasswordService
from infrastructure.database import Database
from infrastructure.seed import seed_access_catalog
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork


@pytest.fixture
async def database():
    """内存 SQLite：单连接共享，每个测试一个全新库"""
    db = Database(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await db.create_tables()
    await seed_access_catalog(partial(SQLAlchemyUnitOfWork, db.session_factory))
    yield db
    await db.dispose()


@pytest.fixture
def uow_factory(database):
    return partial(SQLAlchemyUnitOfWork, database.session_factory)


@pytest.fixture
def password_service():
    return PasswordService(rounds=4)


@pytest.fixture
def auth_service(uow_factory, password_service):
    return AuthApplicationService(uow_factory, password_service=password_service)


@pytest.fixture
def user_service(uow_factory, password_service):
    return UserApplicationService(uow_factory, password_service=password_service)


@pytest.fixture
def article_service(uow_factory):
    return ArticleApplicationService(uow_factory)


@pytest.fixture
def reaction_service(uow_factory):
    return ReactionApplicationService(uow_factory)


@pytest.fixture
def register(auth_service):
    """注册用户并返回 (token, identity, user)"""

    async def _register(username: str, password: str = "password123"):
        result = await auth_service.register(RegisterDTO(
            username=username,
            email=f"{username}@example.com",
            password=password,
        ))
        identity = await auth_service.authenticate(result.token)
        return result.token, identity, result.user

    return _register


@pytest.fixture
async def admin(register):
    return await register("admin")


@pytest.fixture
async def member(admin, register):
    return await register("member")


@pytest.fixture
async def creator(admin, register, user_service):
    token, identity, user = await register("creator")
    _, admin_identity, _ = admin
    await user_service.update_user_groups(
        identity.id, UpdateUserGroupsDTO(groups=["creator"]), admin_identity.id
    )
    return token, identity, user


@pytest.fixture
async def client(database):
    """直接驱动 ASGI 应用；生命周期不运行，数据库资源手动注入"""
    from main import app

    app.state.database = database
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
    app.state.database = None


@pytest.fixture
def auth_header():
    def _header(token: str) -> dict:
        return {"Authorization": f"Bearer {token}"}

    return _header
