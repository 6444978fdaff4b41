"""
文章应用服务 - 内容授权（所有权 / 角色）、slug 唯一性、可见性与浏览计数
"""
from datetime import datetime, timezone
from typing import Callable, Optional
import re

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
    TagCountDTO,
    TagListDTO,
)
from application.services.access_service import load_permissions
from application.services.mappers import to_article_dto, to_article_summary_dto
from core.logging_config import get_logger
from core.response import OffsetPagination
from domain.access.permissions import Rights
from domain.article.entity import Article, ArticleStatus, normalize_tags
from domain.article.repository import ArticleQuery, ArticleRepository
from domain.article.slug import slugify, with_suffix
from domain.common.exceptions import (
    ArticleNotFoundException,
    NothingToUpdateException,
    PermissionDeniedException,
    SlugAlreadyExistsException,
)
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.reaction.entity import ReactionTarget


logger = get_logger(__name__)

# 插入时与并发请求争用同一 slug 的最大重试次数
MAX_SLUG_ATTEMPTS = 5
TAG_LIST_LIMIT = 100

_UUID_PATTERN = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)


def is_uuid(value: str) -> bool:
    return bool(_UUID_PATTERN.match(value or ""))


async def unique_slug(repository: ArticleRepository, base: str,
                      exclude_id: Optional[str] = None) -> str:
    """base, base-1, base-2, ... 中第一个未被占用的 slug"""
    counter = 0
    slug = base
    while await repository.slug_exists(slug, exclude_id):
        counter += 1
        slug = with_suffix(base, counter)
    return slug


class ArticleApplicationService:
    """文章应用服务"""

    def __init__(self, uow_factory: Callable[..., AbstractUnitOfWork]):
        self._uow_factory = uow_factory

    async def _get_modifiable(self, uow: AbstractUnitOfWork, article_id: str,
                              user_id: str, action: str) -> Article:
        """作者本人或持有 `*` 才能修改；不存在为 404，无权限为 403"""
        article = await uow.article_repository.get_by_id(article_id)
        if article is None:
            raise ArticleNotFoundException(article_id)
        permissions = await load_permissions(uow.access_repository, user_id)
        if not article.can_be_modified_by(user_id, permissions):
            logger.info("article_access_denied", article_id=article_id, action=action)
            raise PermissionDeniedException(f"You can only {action} your own articles")
        return article

    # ============= 写操作 =============

    async def create(self, identity: CurrentIdentity, data: ArticleCreateDTO) -> ArticleDTO:
        async with self._uow_factory(readonly=True) as uow:
            permissions = await load_permissions(uow.access_repository, identity.id)
        if not permissions.satisfies(Rights.CREATE_CONTENT):
            raise PermissionDeniedException(
                "You do not have permission to create articles", right=Rights.CREATE_CONTENT
            )

        base_slug = data.slug or slugify(data.title)
        tags = normalize_tags(data.tags)

        # 唯一约束是最终裁决：预检查之后仍可能与并发插入冲突，冲突时换新后缀重试
        for attempt in range(1, MAX_SLUG_ATTEMPTS + 1):
            try:
                async with self._uow_factory() as uow:
                    slug = await unique_slug(uow.article_repository, base_slug)
                    article = Article.create(
                        author_id=identity.id,
                        title=data.title,
                        slug=slug,
                        content=data.content,
                        status=data.status,
                        header_image=data.header_image,
                        excerpt=data.excerpt,
                        tags=tags,
                    )
                    created = await uow.article_repository.create(article)
            except SlugAlreadyExistsException:
                logger.warning("article_slug_race", slug=base_slug, attempt=attempt)
                continue

            logger.info(
                "article_created",
                article_id=created.id,
                slug=created.slug,
                status=created.status.value,
            )
            return to_article_dto(created)

        raise SlugAlreadyExistsException(base_slug)

    async def update(self, identity: CurrentIdentity, article_id: str,
                     data: ArticleUpdateDTO) -> ArticleDTO:
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            raise NothingToUpdateException()
        tags = changes.pop("tags", None)

        async with self._uow_factory() as uow:
            article = await self._get_modifiable(uow, article_id, identity.id, "edit")
            repo = uow.article_repository

            new_slug = changes.get("slug")
            if new_slug is not None and new_slug != article.slug:
                if await repo.slug_exists(new_slug, exclude_id=article.id):
                    raise SlugAlreadyExistsException(new_slug)

            await repo.update(article.id, changes, datetime.now(timezone.utc))
            if tags is not None:
                await repo.replace_tags(article.id, normalize_tags(tags))
            updated = await repo.get_by_id(article.id)

        if "status" in changes and changes["status"] != article.status:
            self._log_status_change(article, updated)
        logger.info("article_updated", article_id=article.id, fields=sorted(changes))
        return to_article_dto(updated)

    async def change_status(self, identity: CurrentIdentity, article_id: str,
                            data: ArticleStatusDTO) -> ArticleDTO:
        async with self._uow_factory() as uow:
            article = await self._get_modifiable(uow, article_id, identity.id, "change the status of")
            await uow.article_repository.update(
                article.id, {"status": data.status}, datetime.now(timezone.utc)
            )
            updated = await uow.article_repository.get_by_id(article.id)

        self._log_status_change(article, updated)
        return to_article_dto(updated)

    async def delete(self, identity: CurrentIdentity, article_id: str) -> DeletedDTO:
        async with self._uow_factory() as uow:
            article = await self._get_modifiable(uow, article_id, identity.id, "delete")
            removed_reactions = await uow.reaction_repository.delete_for_target(
                ReactionTarget.ARTICLE.value, article.id
            )
            await uow.article_repository.delete(article.id)

        logger.info("article_deleted", article_id=article.id, reactions_removed=removed_reactions)
        return DeletedDTO(id=article.id)

    @staticmethod
    def _log_status_change(before: Article, after: Article) -> None:
        logger.info(
            "article_status_changed",
            article_id=after.id,
            from_status=before.status.value,
            to_status=after.status.value,
            published_at=after.published_at.isoformat() if after.published_at else None,
        )

    # ============= 读操作 =============

    async def get(self, id_or_slug: str, viewer_id: Optional[str] = None) -> ArticleDTO:
        """UUID 按ID查找，其余按 slug；不可见的文章一律按不存在处理"""
        async with self._uow_factory() as uow:
            repo = uow.article_repository
            if is_uuid(id_or_slug):
                article = await repo.get_by_id(id_or_slug)
            else:
                article = await repo.get_by_slug(id_or_slug)
            if article is None:
                raise ArticleNotFoundException(id_or_slug)

            if not article.is_published:
                permissions = await load_permissions(uow.access_repository, viewer_id)
                if not article.is_visible_to(viewer_id, permissions):
                    raise ArticleNotFoundException(id_or_slug)

            if article.counts_view_from(viewer_id):
                await repo.increment_views(article.id)
                article = await repo.get_by_id(article.id)

        return to_article_dto(article)

    async def _list(self, uow: AbstractUnitOfWork, query: ArticleQuery) -> ArticleListDTO:
        articles, total = await uow.article_repository.list(query)
        return ArticleListDTO(
            articles=[to_article_summary_dto(a) for a in articles],
            pagination=OffsetPagination(total=total, limit=query.limit, offset=query.offset),
        )

    async def list(self, params: ArticleListQuery, viewer_id: Optional[str] = None) -> ArticleListDTO:
        """文章列表：除持有 `*` 的用户外，只能看到已发布文章和自己的文章"""
        async with self._uow_factory(readonly=True) as uow:
            permissions = await load_permissions(uow.access_repository, viewer_id)
            query = ArticleQuery(
                sort=params.sort,
                order=params.order,
                limit=params.limit,
                offset=params.offset,
                status=params.status,
                author_id=params.author_id,
                tag=params.tag,
                search=params.search,
                viewer_id=viewer_id,
                include_hidden=permissions.is_administrator,
            )
            return await self._list(uow, query)

    async def list_mine(self, identity: CurrentIdentity, params: ArticleListQuery) -> ArticleListDTO:
        async with self._uow_factory(readonly=True) as uow:
            query = ArticleQuery(
                sort=params.sort,
                order=params.order,
                limit=params.limit,
                offset=params.offset,
                status=params.status,
                author_id=identity.id,
                tag=params.tag,
                search=params.search,
                viewer_id=identity.id,
            )
            return await self._list(uow, query)

    async def list_by_user(self, user_id: str, params: ArticleListQuery,
                           viewer_id: Optional[str] = None) -> ArticleListDTO:
        """本人查看时返回全部状态，否则只返回已发布文章"""
        own = viewer_id is not None and viewer_id == user_id
        async with self._uow_factory(readonly=True) as uow:
            query = ArticleQuery(
                sort=params.sort,
                order=params.order,
                limit=params.limit,
                offset=params.offset,
                status=params.status if own else ArticleStatus.PUBLISHED.value,
                author_id=user_id,
                tag=params.tag,
                search=params.search,
                viewer_id=user_id if own else None,
            )
            return await self._list(uow, query)

    async def my_stats(self, identity: CurrentIdentity) -> ArticleStatsDTO:
        async with self._uow_factory(readonly=True) as uow:
            stats = await uow.article_repository.author_stats(identity.id)
        return ArticleStatsDTO(**stats)

    async def can_create(self, identity: CurrentIdentity) -> CanCreateDTO:
        async with self._uow_factory(readonly=True) as uow:
            permissions = await load_permissions(uow.access_repository, identity.id)
        return CanCreateDTO(can_create=permissions.satisfies(Rights.CREATE_CONTENT))

    async def tags(self, limit: int = TAG_LIST_LIMIT) -> TagListDTO:
        async with self._uow_factory(readonly=True) as uow:
            counts = await uow.article_repository.tag_counts(limit=min(limit, TAG_LIST_LIMIT))
        return TagListDTO(tags=[TagCountDTO(tag=tag, count=count) for tag, count in counts])
