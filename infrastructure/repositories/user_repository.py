"""
用户仓储的 SQLAlchemy 实现
"""
from typing import List, Optional

from sqlalchemy import exists, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.logging_config import get_logger
from domain.common.exceptions import UserAlreadyExistsException, UserNotFoundException
from domain.user.entity import User, normalize_email
from domain.user.repository import UserRepository
from infrastructure.models.user import UserModel


logger = get_logger(__name__)

_SORT_COLUMNS = {
    "created_at": UserModel.created_at,
    "username": UserModel.username,
    "display_name": UserModel.display_name,
}

# 资料更新时允许写回的列
_MUTABLE_FIELDS = ("password_hash", "display_name", "avatar_url", "bio", "updated_at")


def _to_entity(model: UserModel) -> User:
    return User(
        id=model.id,
        username=model.username,
        email=model.email,
        password_hash=model.password_hash,
        display_name=model.display_name,
        avatar_url=model.avatar_url,
        bio=model.bio,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


class SQLAlchemyUserRepository(UserRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, user: User) -> User:
        """唯一约束是最终裁决：并发注册同名时只有一个能插入成功"""
        model = UserModel(
            id=user.id,
            username=user.username,
            email=user.email,
            password_hash=user.password_hash,
            display_name=user.display_name,
            avatar_url=user.avatar_url,
            bio=user.bio,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )
        self.session.add(model)
        try:
            await self.session.flush()
        except IntegrityError:
            await self.session.rollback()
            logger.warning("create_user_conflict", username=user.username)
            raise UserAlreadyExistsException()
        return _to_entity(model)

    async def get_by_id(self, user_id: str) -> Optional[User]:
        model = await self.session.get(UserModel, user_id)
        return _to_entity(model) if model else None

    async def get_by_login(self, login: str) -> Optional[User]:
        result = await self.session.execute(
            select(UserModel)
            .where(or_(
                UserModel.username == login,
                func.lower(UserModel.email) == normalize_email(login),
            ))
            .limit(1)
        )
        model = result.scalar_one_or_none()
        return _to_entity(model) if model else None

    async def identity_taken(self, username: str, email: str) -> bool:
        stmt = select(
            exists().where(or_(
                UserModel.username == username,
                func.lower(UserModel.email) == normalize_email(email),
            ))
        )
        return bool(await self.session.scalar(stmt))

    async def list_page(self, *, sort: str = "created_at", order: str = "desc",
                        offset: int = 0, limit: int = 50) -> List[User]:
        column = _SORT_COLUMNS.get(sort, UserModel.created_at)
        ordering = column.asc() if order == "asc" else column.desc()
        result = await self.session.execute(
            select(UserModel)
            # 同值时按ID排序，保证分页稳定
            .order_by(ordering, UserModel.id.asc())
            .offset(offset)
            .limit(limit)
        )
        return [_to_entity(model) for model in result.scalars()]

    async def update(self, user: User) -> User:
        model = await self.session.get(UserModel, user.id)
        if model is None:
            raise UserNotFoundException(user.id)
        for field in _MUTABLE_FIELDS:
            setattr(model, field, getattr(user, field))
        await self.session.flush()
        return _to_entity(model)

    async def count(self) -> int:
        return int(await self.session.scalar(select(func.count()).select_from(UserModel)) or 0)
