"""
文章 / 标签数据库模型
"""
from sqlalchemy import Column, Integer, String, Text, ForeignKey, Index

from .base import Base, CreatedAtMixin, UTCDateTime, utcnow


class ArticleModel(CreatedAtMixin, Base):
    """文章；updated_at 由服务层显式维护，浏览计数不刷新它"""
    __tablename__ = "articles"

    id = Column(String(36), primary_key=True, comment="文章ID（UUID）")
    author_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="作者ID"
    )
    title = Column(String(200), nullable=False, comment="标题")
    slug = Column(String(200), unique=True, nullable=False, comment="URL 标识")
    header_image = Column(String(500), nullable=True, comment="头图URL")
    excerpt = Column(Text, nullable=True, comment="摘要")
    content = Column(Text, nullable=False, comment="正文（序列化的富文本文档）")
    status = Column(String(20), nullable=False, default="draft", comment="状态：draft/published/private")
    views = Column(Integer, nullable=False, default=0, comment="浏览次数")

    updated_at = Column(UTCDateTime, default=utcnow, nullable=False, comment="更新时间")
    published_at = Column(UTCDateTime, nullable=True, comment="首次发布时间")

    __table_args__ = (
        Index("ix_articles_status_created", "status", "created_at"),
    )

    def __repr__(self):
        return f"<ArticleModel(id={self.id}, slug='{self.slug}', status='{self.status}')>"


class ArticleTagModel(Base):
    """文章标签"""
    __tablename__ = "article_tags"

    article_id = Column(
        String(36), ForeignKey("articles.id", ondelete="CASCADE"), primary_key=True
    )
    tag = Column(String(50), primary_key=True, comment="标签（小写）")

    __table_args__ = (
        Index("ix_article_tags_tag", "tag"),
    )
