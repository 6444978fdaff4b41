"""
互动应用服务 - 点赞切换与统计
"""
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, Optional
import uuid

from application.dto import (
    CurrentIdentity,
    ReactionBatchDTO,
    ReactionBatchRequestDTO,
    ReactionDTO,
    ReactionListDTO,
    ReactionListQuery,
    ReactionStatsDTO,
    ReactionToggleDTO,
    ReactionToggleResultDTO,
)
from application.services.access_service import load_permissions
from core.logging_config import get_logger
from core.response import OffsetPagination
from domain.common.exceptions import ArticleNotFoundException
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.reaction.entity import Reaction, ReactionTarget, ReactionType


logger = get_logger(__name__)


def _stats(target_type: ReactionTarget, target_id: str, counts: Dict[str, int],
           user_reaction: Optional[str]) -> ReactionStatsDTO:
    # 所有互动类型都返回计数（没有记录时为 0）
    full_counts = {rt.value: counts.get(rt.value, 0) for rt in ReactionType}
    return ReactionStatsDTO(
        target_type=target_type,
        target_id=target_id,
        counts=full_counts,
        total=sum(full_counts.values()),
        user_reaction=user_reaction,
    )


class ReactionApplicationService:
    def __init__(self, uow_factory: Callable[..., AbstractUnitOfWork]):
        self._uow_factory = uow_factory

    async def _collect_stats(self, uow: AbstractUnitOfWork, target_type: ReactionTarget,
                             target_ids: Iterable[str],
                             viewer_id: Optional[str]) -> Dict[str, ReactionStatsDTO]:
        ids = list(dict.fromkeys(target_ids))
        counts = await uow.reaction_repository.counts(target_type.value, ids)
        mine = (
            await uow.reaction_repository.user_reactions(viewer_id, target_type.value, ids)
            if viewer_id else {}
        )
        return {
            target_id: _stats(target_type, target_id, counts.get(target_id, {}), mine.get(target_id))
            for target_id in ids
        }

    async def toggle(self, identity: CurrentIdentity, data: ReactionToggleDTO) -> ReactionToggleResultDTO:
        """已存在则移除，否则添加；只能对自己可见的文章操作"""
        async with self._uow_factory() as uow:
            article = await uow.article_repository.get_by_id(data.target_id)
            if article is None:
                raise ArticleNotFoundException(data.target_id)
            if not article.is_published:
                permissions = await load_permissions(uow.access_repository, identity.id)
                if not article.is_visible_to(identity.id, permissions):
                    raise ArticleNotFoundException(data.target_id)

            repo = uow.reaction_repository
            existing = await repo.find(
                identity.id, data.target_type.value, data.target_id, data.reaction_type.value
            )
            if existing:
                await repo.remove(existing.id)
                action = "removed"
            else:
                await repo.add(Reaction(
                    id=str(uuid.uuid4()),
                    user_id=identity.id,
                    target_type=data.target_type,
                    target_id=data.target_id,
                    reaction_type=data.reaction_type,
                    created_at=datetime.now(timezone.utc),
                ))
                action = "added"

            stats = await self._collect_stats(uow, data.target_type, [data.target_id], identity.id)

        logger.info(
            "reaction_toggled",
            action=action,
            target_type=data.target_type.value,
            target_id=data.target_id,
            reaction_type=data.reaction_type.value,
        )
        return ReactionToggleResultDTO(
            action=action,
            reaction_type=data.reaction_type,
            stats=stats[data.target_id],
        )

    async def stats(self, target_type: ReactionTarget, target_id: str,
                    viewer_id: Optional[str] = None) -> ReactionStatsDTO:
        async with self._uow_factory(readonly=True) as uow:
            stats = await self._collect_stats(uow, target_type, [target_id], viewer_id)
        return stats[target_id]

    async def batch_stats(self, data: ReactionBatchRequestDTO,
                          viewer_id: Optional[str] = None) -> ReactionBatchDTO:
        async with self._uow_factory(readonly=True) as uow:
            stats = await self._collect_stats(uow, data.target_type, data.target_ids, viewer_id)
        return ReactionBatchDTO(stats=stats)

    async def list_mine(self, identity: CurrentIdentity, query: ReactionListQuery) -> ReactionListDTO:
        async with self._uow_factory(readonly=True) as uow:
            reactions, total = await uow.reaction_repository.list_for_user(
                identity.id,
                target_type=query.target_type.value if query.target_type else None,
                limit=query.limit,
                offset=query.offset,
            )
        return ReactionListDTO(
            reactions=[ReactionDTO.model_validate(r) for r in reactions],
            pagination=OffsetPagination(total=total, limit=query.limit, offset=query.offset),
        )
