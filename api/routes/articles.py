"""
文章API路由

静态路径（/my、/tags、/can-create、/user/{user_id}）必须在 /{id_or_slug} 之前注册。
"""
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, status

from api.dependencies import get_article_service, get_current_identity, get_optional_identity
from application.dto import (
    ArticleCreateDTO,
    ArticleDTO,
    ArticleListDTO,
    ArticleListQuery,
    ArticleStatsDTO,
    ArticleStatusDTO,
    ArticleUpdateDTO,
    CanCreateDTO,
    CurrentIdentity,
    DeletedDTO,
    TagListDTO,
)
from application.services.article_service import ArticleApplicationService
from core.response import Response as ApiResponse, success_response


router = APIRouter(prefix="/articles", tags=["文章"])


def _viewer_id(identity: Optional[CurrentIdentity]) -> Optional[str]:
    return identity.id if identity else None


@router.post(
    "",
    summary="创建文章",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[ArticleDTO],
)
async def create_article(
    data: ArticleCreateDTO,
    identity: CurrentIdentity = Depends(get_current_identity),
    service: ArticleApplicationService = Depends(get_article_service),
):
    """
    创建文章（需要 create_content 权限）

    - 未提供 slug 时由标题生成，冲突时自动追加 -1、-2 ...
    - 直接以 published 状态创建时记录发布时间
    """
    result = await service.create(identity, data)
    return success_response(data=result, message="Article created")


@router.get("", summary="文章列表", response_model=ApiResponse[ArticleListDTO])
async def list_articles(
    query: Annotated[ArticleListQuery, Query()],
    identity: Optional[CurrentIdentity] = Depends(get_optional_identity),
    service: ArticleApplicationService = Depends(get_article_service),
):
    """除管理员外，只能看到已发布文章和自己的文章（与 status 过滤条件无关）"""
    result = await service.list(query, _viewer_id(identity))
    return success_response(data=result)


@router.get("/tags", summary="标签使用统计", response_model=ApiResponse[TagListDTO])
async def list_tags(
    limit: int = Query(100, ge=1, le=100),
    service: ArticleApplicationService = Depends(get_article_service),
):
    result = await service.tags(limit)
    return success_response(data=result)


@router.get("/my", summary="我的文章", response_model=ApiResponse[ArticleListDTO])
async def my_articles(
    query: Annotated[ArticleListQuery, Query()],
    identity: CurrentIdentity = Depends(get_current_identity),
    service: ArticleApplicationService = Depends(get_article_service),
):
    result = await service.list_mine(identity, query)
    return success_response(data=result)


@router.get("/my/stats", summary="我的文章统计", response_model=ApiResponse[ArticleStatsDTO])
async def my_stats(
    identity: CurrentIdentity = Depends(get_current_identity),
    service: ArticleApplicationService = Depends(get_article_service),
):
    result = await service.my_stats(identity)
    return success_response(data=result)


@router.get("/can-create", summary="是否可以创建文章", response_model=ApiResponse[CanCreateDTO])
async def can_create(
    identity: CurrentIdentity = Depends(get_current_identity),
    service: ArticleApplicationService = Depends(get_article_service),
):
    result = await service.can_create(identity)
    return success_response(data=result)


@router.get("/user/{user_id}", summary="某用户的文章", response_model=ApiResponse[ArticleListDTO])
async def user_articles(
    user_id: str,
    query: Annotated[ArticleListQuery, Query()],
    identity: Optional[CurrentIdentity] = Depends(get_optional_identity),
    service: ArticleApplicationService = Depends(get_article_service),
):
    """本人查看时返回全部状态，否则只返回已发布文章"""
    result = await service.list_by_user(user_id, query, _viewer_id(identity))
    return success_response(data=result)


@router.get("/{id_or_slug}", summary="获取文章", response_model=ApiResponse[ArticleDTO])
async def get_article(
    id_or_slug: str,
    identity: Optional[CurrentIdentity] = Depends(get_optional_identity),
    service: ArticleApplicationService = Depends(get_article_service),
):
    """UUID 按ID查找，其他按 slug 查找；非作者阅读已发布文章时浏览数 +1"""
    result = await service.get(id_or_slug, _viewer_id(identity))
    return success_response(data=result)


@router.patch("/{article_id}", summary="更新文章", response_model=ApiResponse[ArticleDTO])
async def update_article(
    article_id: str,
    data: ArticleUpdateDTO,
    identity: CurrentIdentity = Depends(get_current_identity),
    service: ArticleApplicationService = Depends(get_article_service),
):
    result = await service.update(identity, article_id, data)
    return success_response(data=result, message="Article updated")


@router.patch("/{article_id}/status", summary="修改文章状态", response_model=ApiResponse[ArticleDTO])
async def change_article_status(
    article_id: str,
    data: ArticleStatusDTO,
    identity: CurrentIdentity = Depends(get_current_identity),
    service: ArticleApplicationService = Depends(get_article_service),
):
    result = await service.change_status(identity, article_id, data)
    return success_response(data=result, message="Status updated")


@router.delete("/{article_id}", summary="删除文章", response_model=ApiResponse[DeletedDTO])
async def delete_article(
    article_id: str,
    identity: CurrentIdentity = Depends(get_current_identity),
    service: ArticleApplicationService = Depends(get_article_service),
):
    result = await service.delete(identity, article_id)
    return success_response(data=result, message="Article deleted")
