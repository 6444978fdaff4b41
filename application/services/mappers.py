"""领域实体 -> DTO 转换"""
from typing import Optional

from application.dto import (
    ArticleDTO,
    ArticleSummaryDTO,
    AuthorDTO,
    GroupDTO,
    SessionDTO,
    UserDTO,
)
from domain.access.entity import Group
from domain.article.entity import Article
from domain.auth.entity import Session
from domain.user.entity import User


def to_user_dto(user: User, *, include_email: bool = True) -> UserDTO:
    """邮箱只对本人（或认证结果）可见"""
    return UserDTO(
        id=user.id,
        username=user.username,
        email=user.email if include_email else None,
        display_name=user.display_name,
        avatar_url=user.avatar_url,
        bio=user.bio,
        groups=list(user.groups),
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def to_group_dto(group: Group) -> GroupDTO:
    return GroupDTO.model_validate(group)


def to_session_dto(session: Session, current_session_id: Optional[str] = None) -> SessionDTO:
    return SessionDTO(
        id=session.id,
        created_at=session.created_at,
        expires_at=session.expires_at,
        user_agent=session.user_agent,
        ip_address=session.ip_address,
        current=session.id == current_session_id,
    )


def _article_fields(article: Article) -> dict:
    return dict(
        id=article.id,
        author_id=article.author_id,
        title=article.title,
        slug=article.slug,
        header_image=article.header_image,
        excerpt=article.excerpt,
        status=article.status,
        views=article.views,
        tags=list(article.tags),
        author=AuthorDTO.model_validate(article.author) if article.author else None,
        created_at=article.created_at,
        updated_at=article.updated_at,
        published_at=article.published_at,
    )


def to_article_dto(article: Article) -> ArticleDTO:
    return ArticleDTO(content=article.content, **_article_fields(article))


def to_article_summary_dto(article: Article) -> ArticleSummaryDTO:
    return ArticleSummaryDTO(**_article_fields(article))
