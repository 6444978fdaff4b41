"""
文章仓储接口
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from .entity import Article


@dataclass
class ArticleQuery:
    """文章列表查询条件

    viewer_id / include_hidden 描述可见性：include_hidden 为 False 时，
    只返回已发布文章以及 viewer 自己的文章，与 status 过滤条件叠加。
    """

    sort: str = "created_at"
    order: str = "desc"
    limit: int = 20
    offset: int = 0
    status: Optional[str] = None  # None / "all" 表示不过滤
    author_id: Optional[str] = None
    tag: Optional[str] = None
    search: Optional[str] = None
    viewer_id: Optional[str] = None
    include_hidden: bool = False


class ArticleRepository(ABC):
    """文章仓储抽象接口"""

    @abstractmethod
    async def create(self, article: Article) -> Article:
        """创建文章（slug 唯一约束冲突时抛出 SlugAlreadyExistsException）"""

    @abstractmethod
    async def get_by_id(self, article_id: str) -> Optional[Article]:
        pass

    @abstractmethod
    async def get_by_slug(self, slug: str) -> Optional[Article]:
        pass

    @abstractmethod
    async def slug_exists(self, slug: str, exclude_id: Optional[str] = None) -> bool:
        pass

    @abstractmethod
    async def update(self, article_id: str, changes: dict, now: datetime) -> None:
        """更新字段；当 status 变为 published 时 published_at = COALESCE(published_at, now)"""

    @abstractmethod
    async def delete(self, article_id: str) -> bool:
        pass

    @abstractmethod
    async def increment_views(self, article_id: str) -> None:
        pass

    @abstractmethod
    async def replace_tags(self, article_id: str, tags: List[str]) -> None:
        pass

    @abstractmethod
    async def list(self, query: ArticleQuery) -> Tuple[List[Article], int]:
        """返回 (当前页文章, 总数)"""

    @abstractmethod
    async def author_stats(self, author_id: str) -> Dict[str, int]:
        """作者文章按状态统计"""

    @abstractmethod
    async def tag_counts(self, limit: int = 100) -> List[Tuple[str, int]]:
        """已发布文章的标签使用次数"""
