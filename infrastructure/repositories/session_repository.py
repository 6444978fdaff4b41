"""
会话仓储实现 - 使用SQLAlchemy实现数据访问
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.logging_config import get_logger
from domain.auth.entity import Session
from domain.auth.repository import SessionRepository
from infrastructure.models.session import SessionModel


logger = get_logger(__name__)


class SQLAlchemySessionRepository(SessionRepository):
    """会话仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: SessionModel) -> Session:
        return Session(
            id=model.id,
            user_id=model.user_id,
            token_hash=model.token_hash,
            expires_at=model.expires_at,
            created_at=model.created_at,
            user_agent=model.user_agent,
            ip_address=model.ip_address,
        )

    async def create(self, session: Session) -> Session:
        """创建会话记录"""
        db_session = SessionModel(
            id=session.id,
            user_id=session.user_id,
            token_hash=session.token_hash,
            expires_at=session.expires_at,
            created_at=session.created_at,
            user_agent=session.user_agent[:500] if session.user_agent else None,
            ip_address=session.ip_address,
        )
        self.session.add(db_session)
        await self.session.flush()
        return self._to_entity(db_session)

    async def get_active(self, session_id: str, user_id: str, now: datetime) -> Optional[Session]:
        """有效会话：记录存在且 expires_at > now"""
        result = await self.session.execute(
            select(SessionModel).where(
                and_(
                    SessionModel.id == session_id,
                    SessionModel.user_id == user_id,
                    SessionModel.expires_at > now,
                )
            )
        )
        db_session = result.scalar_one_or_none()
        return self._to_entity(db_session) if db_session else None

    async def delete(self, session_id: str) -> bool:
        """删除单个会话，幂等"""
        result = await self.session.execute(
            delete(SessionModel).where(SessionModel.id == session_id)
        )
        return (result.rowcount or 0) > 0

    async def delete_all_for_user(self, user_id: str) -> int:
        result = await self.session.execute(
            delete(SessionModel).where(SessionModel.user_id == user_id)
        )
        count = result.rowcount or 0
        logger.info("sessions_deleted", user_id=user_id, count=count)
        return count

    async def delete_others_for_user(self, user_id: str, keep_session_id: str) -> int:
        result = await self.session.execute(
            delete(SessionModel).where(
                and_(
                    SessionModel.user_id == user_id,
                    SessionModel.id != keep_session_id,
                )
            )
        )
        count = result.rowcount or 0
        logger.info("other_sessions_deleted", user_id=user_id, kept=keep_session_id, count=count)
        return count

    async def list_active_for_user(self, user_id: str, now: datetime) -> List[Session]:
        result = await self.session.execute(
            select(SessionModel)
            .where(
                and_(
                    SessionModel.user_id == user_id,
                    SessionModel.expires_at > now,
                )
            )
            .order_by(SessionModel.created_at.desc())
        )
        return [self._to_entity(m) for m in result.scalars().all()]
