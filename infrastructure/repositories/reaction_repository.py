"""
互动仓储实现 - 使用SQLAlchemy实现数据访问
"""
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import and_, delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.logging_config import get_logger
from domain.common.exceptions import ReactionConflictException
from domain.reaction.entity import Reaction, ReactionTarget, ReactionType
from domain.reaction.repository import ReactionRepository
from infrastructure.models.reaction import ReactionModel


logger = get_logger(__name__)


class SQLAlchemyReactionRepository(ReactionRepository):
    """互动仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: ReactionModel) -> Reaction:
        return Reaction(
            id=model.id,
            user_id=model.user_id,
            target_type=ReactionTarget(model.target_type),
            target_id=model.target_id,
            reaction_type=ReactionType(model.reaction_type),
            created_at=model.created_at,
        )

    async def find(self, user_id: str, target_type: str, target_id: str,
                   reaction_type: str) -> Optional[Reaction]:
        result = await self.session.execute(
            select(ReactionModel).where(
                and_(
                    ReactionModel.user_id == user_id,
                    ReactionModel.target_type == target_type,
                    ReactionModel.target_id == target_id,
                    ReactionModel.reaction_type == reaction_type,
                )
            )
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def add(self, reaction: Reaction) -> Reaction:
        model = ReactionModel(
            id=reaction.id,
            user_id=reaction.user_id,
            target_type=reaction.target_type.value,
            target_id=reaction.target_id,
            reaction_type=reaction.reaction_type.value,
            created_at=reaction.created_at,
        )
        try:
            self.session.add(model)
            await self.session.flush()
        except IntegrityError:
            await self.session.rollback()
            logger.warning(
                "reaction_conflict",
                user_id=reaction.user_id,
                target_id=reaction.target_id,
            )
            raise ReactionConflictException(reaction.target_id)
        return self._to_entity(model)

    async def remove(self, reaction_id: str) -> bool:
        result = await self.session.execute(
            delete(ReactionModel).where(ReactionModel.id == reaction_id)
        )
        return (result.rowcount or 0) > 0

    async def counts(self, target_type: str, target_ids: Iterable[str]) -> Dict[str, Dict[str, int]]:
        ids = list(target_ids)
        counts: Dict[str, Dict[str, int]] = defaultdict(dict)
        if not ids:
            return counts
        result = await self.session.execute(
            select(ReactionModel.target_id, ReactionModel.reaction_type, func.count())
            .where(
                and_(
                    ReactionModel.target_type == target_type,
                    ReactionModel.target_id.in_(ids),
                )
            )
            .group_by(ReactionModel.target_id, ReactionModel.reaction_type)
        )
        for target_id, reaction_type, n in result.all():
            counts[target_id][reaction_type] = int(n)
        return counts

    async def user_reactions(self, user_id: str, target_type: str,
                             target_ids: Iterable[str]) -> Dict[str, str]:
        ids = list(target_ids)
        if not ids:
            return {}
        result = await self.session.execute(
            select(ReactionModel.target_id, ReactionModel.reaction_type).where(
                and_(
                    ReactionModel.user_id == user_id,
                    ReactionModel.target_type == target_type,
                    ReactionModel.target_id.in_(ids),
                )
            )
        )
        return {target_id: reaction_type for target_id, reaction_type in result.all()}

    async def list_for_user(self, user_id: str, *, target_type: Optional[str] = None,
                            limit: int = 50, offset: int = 0) -> Tuple[List[Reaction], int]:
        conditions = [ReactionModel.user_id == user_id]
        if target_type:
            conditions.append(ReactionModel.target_type == target_type)

        total = await self.session.execute(
            select(func.count()).select_from(ReactionModel).where(and_(*conditions))
        )
        result = await self.session.execute(
            select(ReactionModel)
            .where(and_(*conditions))
            .order_by(ReactionModel.created_at.desc(), ReactionModel.id.asc())
            .offset(offset)
            .limit(limit)
        )
        return [self._to_entity(m) for m in result.scalars().all()], int(total.scalar() or 0)

    async def delete_for_target(self, target_type: str, target_id: str) -> int:
        result = await self.session.execute(
            delete(ReactionModel).where(
                and_(
                    ReactionModel.target_type == target_type,
                    ReactionModel.target_id == target_id,
                )
            )
        )
        return result.rowcount or 0
