"""
文章仓储实现 - 使用SQLAlchemy实现数据访问
"""
from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import and_, delete, func, insert, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.logging_config import get_logger
from domain.article.entity import Article, ArticleAuthor, ArticleStatus
from domain.article.repository import ArticleQuery, ArticleRepository
from domain.common.exceptions import SlugAlreadyExistsException
from infrastructure.models.article import ArticleModel, ArticleTagModel
from infrastructure.models.user import UserModel


logger = get_logger(__name__)

_SORT_COLUMNS = {
    "created_at": ArticleModel.created_at,
    "updated_at": ArticleModel.updated_at,
    "title": ArticleModel.title,
    "views": ArticleModel.views,
}


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SQLAlchemyArticleRepository(ArticleRepository):
    """文章仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: ArticleModel, author: Optional[UserModel],
                   tags: List[str]) -> Article:
        return Article(
            id=model.id,
            author_id=model.author_id,
            title=model.title,
            slug=model.slug,
            content=model.content,
            status=ArticleStatus(model.status),
            header_image=model.header_image,
            excerpt=model.excerpt,
            views=model.views or 0,
            tags=list(tags),
            created_at=model.created_at,
            updated_at=model.updated_at,
            published_at=model.published_at,
            author=ArticleAuthor(
                id=author.id,
                username=author.username,
                display_name=author.display_name,
                avatar_url=author.avatar_url,
            ) if author is not None else None,
        )

    def _select_with_author(self):
        # 批量 UPDATE 不同步会话，查询时强制刷新已加载的对象
        return (
            select(ArticleModel, UserModel)
            .join(UserModel, UserModel.id == ArticleModel.author_id)
            .execution_options(populate_existing=True)
        )

    async def _tags_for(self, article_ids: Iterable[str]) -> Dict[str, List[str]]:
        ids = list(article_ids)
        tags: Dict[str, List[str]] = defaultdict(list)
        if not ids:
            return tags
        result = await self.session.execute(
            select(ArticleTagModel.article_id, ArticleTagModel.tag)
            .where(ArticleTagModel.article_id.in_(ids))
            .order_by(ArticleTagModel.tag)
        )
        for article_id, tag in result.all():
            tags[article_id].append(tag)
        return tags

    async def _get_one(self, condition) -> Optional[Article]:
        result = await self.session.execute(self._select_with_author().where(condition))
        row = result.first()
        if row is None:
            return None
        model, author = row
        tags = await self._tags_for([model.id])
        return self._to_entity(model, author, tags.get(model.id, []))

    async def create(self, article: Article) -> Article:
        """创建文章；slug 唯一约束是最终裁决"""
        try:
            self.session.add(ArticleModel(
                id=article.id,
                author_id=article.author_id,
                title=article.title,
                slug=article.slug,
                header_image=article.header_image,
                excerpt=article.excerpt,
                content=article.content,
                status=article.status.value,
                views=article.views,
                created_at=article.created_at,
                updated_at=article.updated_at,
                published_at=article.published_at,
            ))
            await self.session.flush()
        except IntegrityError as e:
            await self.session.rollback()
            if "slug" in str(e).lower():
                logger.warning("create_article_slug_conflict", slug=article.slug)
                raise SlugAlreadyExistsException(article.slug)
            raise
        await self.replace_tags(article.id, article.tags)
        return await self.get_by_id(article.id)

    async def get_by_id(self, article_id: str) -> Optional[Article]:
        return await self._get_one(ArticleModel.id == article_id)

    async def get_by_slug(self, slug: str) -> Optional[Article]:
        return await self._get_one(ArticleModel.slug == slug)

    async def slug_exists(self, slug: str, exclude_id: Optional[str] = None) -> bool:
        query = select(func.count()).select_from(ArticleModel).where(ArticleModel.slug == slug)
        if exclude_id:
            query = query.where(ArticleModel.id != exclude_id)
        result = await self.session.execute(query)
        return result.scalar() > 0

    async def update(self, article_id: str, changes: dict, now: datetime) -> None:
        """更新文章；发布时 published_at = COALESCE(published_at, now)，只写一次"""
        values = dict(changes)
        if isinstance(values.get("status"), ArticleStatus):
            values["status"] = values["status"].value
        values["updated_at"] = now
        if values.get("status") == ArticleStatus.PUBLISHED.value:
            values["published_at"] = func.coalesce(ArticleModel.published_at, now)

        try:
            await self.session.execute(
                update(ArticleModel)
                .where(ArticleModel.id == article_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
        except IntegrityError as e:
            await self.session.rollback()
            if "slug" in str(e).lower():
                logger.warning("update_article_slug_conflict", article_id=article_id)
                raise SlugAlreadyExistsException(values.get("slug", ""))
            raise

    async def delete(self, article_id: str) -> bool:
        await self.session.execute(
            delete(ArticleTagModel).where(ArticleTagModel.article_id == article_id)
        )
        result = await self.session.execute(
            delete(ArticleModel).where(ArticleModel.id == article_id)
        )
        return (result.rowcount or 0) > 0

    async def increment_views(self, article_id: str) -> None:
        await self.session.execute(
            update(ArticleModel)
            .where(ArticleModel.id == article_id)
            .values(views=ArticleModel.views + 1)
            .execution_options(synchronize_session=False)
        )

    async def replace_tags(self, article_id: str, tags: List[str]) -> None:
        await self.session.execute(
            delete(ArticleTagModel).where(ArticleTagModel.article_id == article_id)
        )
        if tags:
            await self.session.execute(
                insert(ArticleTagModel),
                [{"article_id": article_id, "tag": tag} for tag in tags],
            )

    def _conditions(self, query: ArticleQuery) -> list:
        conditions = []
        if not query.include_hidden:
            visible = ArticleModel.status == ArticleStatus.PUBLISHED.value
            if query.viewer_id:
                visible = or_(visible, ArticleModel.author_id == query.viewer_id)
            conditions.append(visible)
        if query.status and query.status != "all":
            conditions.append(ArticleModel.status == query.status)
        if query.author_id:
            conditions.append(ArticleModel.author_id == query.author_id)
        if query.tag:
            conditions.append(
                ArticleModel.id.in_(
                    select(ArticleTagModel.article_id)
                    .where(ArticleTagModel.tag == query.tag.strip().lower())
                )
            )
        if query.search:
            pattern = f"%{_escape_like(query.search.strip())}%"
            conditions.append(or_(
                ArticleModel.title.ilike(pattern, escape="\\"),
                ArticleModel.excerpt.ilike(pattern, escape="\\"),
            ))
        return conditions

    async def list(self, query: ArticleQuery) -> Tuple[List[Article], int]:
        conditions = self._conditions(query)
        where = and_(*conditions) if conditions else None

        count_query = select(func.count()).select_from(ArticleModel)
        if where is not None:
            count_query = count_query.where(where)
        total = int((await self.session.execute(count_query)).scalar() or 0)

        column = _SORT_COLUMNS.get(query.sort, ArticleModel.created_at)
        ordering = column.asc() if query.order == "asc" else column.desc()
        items_query = self._select_with_author()
        if where is not None:
            items_query = items_query.where(where)
        items_query = (
            items_query
            .order_by(ordering, ArticleModel.id.asc())
            .offset(query.offset)
            .limit(query.limit)
        )
        rows = (await self.session.execute(items_query)).all()
        tags = await self._tags_for(model.id for model, _ in rows)
        return [self._to_entity(model, author, tags.get(model.id, [])) for model, author in rows], total

    async def author_stats(self, author_id: str) -> Dict[str, int]:
        result = await self.session.execute(
            select(ArticleModel.status, func.count())
            .where(ArticleModel.author_id == author_id)
            .group_by(ArticleModel.status)
        )
        by_status = {status: int(count) for status, count in result.all()}
        return {
            "total": sum(by_status.values()),
            "published": by_status.get(ArticleStatus.PUBLISHED.value, 0),
            "drafts": by_status.get(ArticleStatus.DRAFT.value, 0),
            "private": by_status.get(ArticleStatus.PRIVATE.value, 0),
        }

    async def tag_counts(self, limit: int = 100) -> List[Tuple[str, int]]:
        count = func.count().label("count")
        result = await self.session.execute(
            select(ArticleTagModel.tag, count)
            .join(ArticleModel, ArticleModel.id == ArticleTagModel.article_id)
            .where(ArticleModel.status == ArticleStatus.PUBLISHED.value)
            .group_by(ArticleTagModel.tag)
            .order_by(count.desc(), ArticleTagModel.tag.asc())
            .limit(limit)
        )
        return [(tag, int(n)) for tag, n in result.all()]
