"""
文章领域实体 - 状态机与可见性/所有权规则
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, List, Optional
import uuid

from domain.access.permissions import PermissionSet, Rights
from domain.common.exceptions import DomainValidationException


MAX_TAGS = 10
TAG_MAX_LENGTH = 50


class ArticleStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    PRIVATE = "private"


@dataclass
class ArticleAuthor:
    """文章作者摘要（只读投影）"""
    id: str
    username: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None


@dataclass
class Article:
    """文章实体

    published_at 只在第一次进入 published 状态时写入，之后不会被清空或重置。
    """

    id: str
    author_id: str
    title: str
    slug: str
    content: str
    status: ArticleStatus = ArticleStatus.DRAFT
    header_image: Optional[str] = None
    excerpt: Optional[str] = None
    views: int = 0
    tags: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    published_at: Optional[datetime] = None
    author: Optional[ArticleAuthor] = None

    @classmethod
    def create(cls, *, author_id: str, title: str, slug: str, content: str,
               status: ArticleStatus = ArticleStatus.DRAFT,
               header_image: Optional[str] = None, excerpt: Optional[str] = None,
               tags: Iterable[str] = ()) -> "Article":
        now = datetime.now(timezone.utc)
        article = cls(
            id=str(uuid.uuid4()),
            author_id=author_id,
            title=title,
            slug=slug,
            content=content,
            status=ArticleStatus(status),
            header_image=header_image,
            excerpt=excerpt,
            tags=normalize_tags(tags),
            created_at=now,
            updated_at=now,
        )
        if article.is_published:
            article.published_at = now
        return article

    @property
    def is_published(self) -> bool:
        return self.status == ArticleStatus.PUBLISHED

    def is_authored_by(self, user_id: Optional[str]) -> bool:
        return user_id is not None and self.author_id == user_id

    def is_visible_to(self, viewer_id: Optional[str], permissions: PermissionSet) -> bool:
        """已发布的文章对所有人可见；其余只对作者或持有 `*` 的用户可见"""
        if self.is_published:
            return True
        return self.is_authored_by(viewer_id) or permissions.is_administrator

    def can_be_modified_by(self, user_id: str, permissions: PermissionSet) -> bool:
        """编辑 / 改状态 / 删除：作者本人或持有 `*`"""
        return self.is_authored_by(user_id) or permissions.satisfies(Rights.ALL)

    def counts_view_from(self, viewer_id: Optional[str]) -> bool:
        """只有非作者阅读已发布文章时计数（匿名访问也计数）"""
        return self.is_published and not self.is_authored_by(viewer_id)


def normalize_tags(tags: Optional[Iterable[str]]) -> List[str]:
    """标签去空白、转小写、去重（保持原顺序）"""
    result: List[str] = []
    for raw in tags or ():
        tag = (raw or "").strip().lower()
        if not tag or tag in result:
            continue
        if len(tag) > TAG_MAX_LENGTH:
            raise DomainValidationException(
                f"Tag must be at most {TAG_MAX_LENGTH} characters", field="tags"
            )
        result.append(tag)
    if len(result) > MAX_TAGS:
        raise DomainValidationException(f"At most {MAX_TAGS} tags are allowed", field="tags")
    return result
