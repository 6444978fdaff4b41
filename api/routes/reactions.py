"""
互动（点赞）API路由
"""
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_current_identity, get_optional_identity, get_reaction_service
from application.dto import (
    CurrentIdentity,
    ReactionBatchDTO,
    ReactionBatchRequestDTO,
    ReactionListDTO,
    ReactionListQuery,
    ReactionStatsDTO,
    ReactionToggleDTO,
    ReactionToggleResultDTO,
)
from application.services.reaction_service import ReactionApplicationService
from core.response import Response as ApiResponse, success_response
from domain.reaction.entity import ReactionTarget


router = APIRouter(prefix="/reactions", tags=["互动"])


@router.post("/toggle", summary="切换点赞", response_model=ApiResponse[ReactionToggleResultDTO])
async def toggle_reaction(
    data: ReactionToggleDTO,
    identity: CurrentIdentity = Depends(get_current_identity),
    service: ReactionApplicationService = Depends(get_reaction_service),
):
    result = await service.toggle(identity, data)
    return success_response(data=result)


@router.get("/stats", summary="互动统计", response_model=ApiResponse[ReactionStatsDTO])
async def reaction_stats(
    target_id: str = Query(..., min_length=1, max_length=36),
    target_type: ReactionTarget = Query(ReactionTarget.ARTICLE),
    identity: Optional[CurrentIdentity] = Depends(get_optional_identity),
    service: ReactionApplicationService = Depends(get_reaction_service),
):
    result = await service.stats(target_type, target_id, identity.id if identity else None)
    return success_response(data=result)


@router.post("/stats/batch", summary="批量互动统计", response_model=ApiResponse[ReactionBatchDTO])
async def batch_reaction_stats(
    data: ReactionBatchRequestDTO,
    identity: Optional[CurrentIdentity] = Depends(get_optional_identity),
    service: ReactionApplicationService = Depends(get_reaction_service),
):
    result = await service.batch_stats(data, identity.id if identity else None)
    return success_response(data=result)


@router.get("/my", summary="我的互动", response_model=ApiResponse[ReactionListDTO])
async def my_reactions(
    query: Annotated[ReactionListQuery, Query()],
    identity: CurrentIdentity = Depends(get_current_identity),
    service: ReactionApplicationService = Depends(get_reaction_service),
):
    result = await service.list_mine(identity, query)
    return success_response(data=result)
