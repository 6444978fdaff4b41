"""
数据传输对象（DTO）- 应用层与表现层之间的数据传输
"""
from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_serializer

from core.response import OffsetPagination, utc_isoformat
from domain.article.entity import ArticleStatus, MAX_TAGS, TAG_MAX_LENGTH
from domain.reaction.entity import ReactionTarget, ReactionType


USERNAME_REGEX = r"^[a-zA-Z0-9_]+$"
SLUG_REGEX = r"^[a-z0-9-]+$"


class DTOBase(BaseModel):
    """Base DTO: unify datetime serialization to UTC-Z for all subclasses."""

    @model_serializer(mode="wrap")
    def _serialize_model(self, handler):  # type: ignore[override]
        data = handler(self)

        def convert(value):
            if isinstance(value, datetime):
                return utc_isoformat(value)
            if isinstance(value, list):
                return [convert(v) for v in value]
            if isinstance(value, tuple):
                return tuple(convert(v) for v in value)
            if isinstance(value, dict):
                return {k: convert(v) for k, v in value.items()}
            return value

        return convert(data)

    @field_validator("*", mode="after")
    @classmethod
    def _assume_utc(cls, value):
        # 部分数据库驱动（SQLite）读回的是不带时区的时间，统一视为 UTC
        if isinstance(value, datetime) and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


def _validate_http_url(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("must be an http or https URL")
    return value


# ============= 认证 =============

class CurrentIdentity(BaseModel):
    """已认证请求的身份：用户ID + 会话ID"""
    id: str
    session_id: str

    model_config = ConfigDict(frozen=True)


class RegisterDTO(DTOBase):
    """注册DTO"""
    username: str = Field(..., min_length=3, max_length=50, pattern=USERNAME_REGEX,
                          description="用户名，3-50个字符，只能包含字母、数字和下划线")
    email: EmailStr = Field(..., description="邮箱地址")
    password: str = Field(..., min_length=8, max_length=128, description="密码，至少8位")
    display_name: Optional[str] = Field(None, max_length=100, description="显示名，默认为用户名")


class LoginDTO(DTOBase):
    """登录DTO"""
    login: str = Field(..., min_length=1, description="用户名或邮箱")
    password: str = Field(..., min_length=1, description="密码")
    remember_me: bool = Field(False, description="记住我：使用更长的会话有效期")


class UserDTO(DTOBase):
    """用户响应DTO（从不包含密码哈希）"""
    id: str
    username: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    groups: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class UserResultDTO(DTOBase):
    user: UserDTO


class AuthResultDTO(DTOBase):
    """注册 / 登录结果"""
    token: str
    user: UserDTO


class SessionDTO(DTOBase):
    id: str
    created_at: Optional[datetime] = None
    expires_at: datetime
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None
    current: bool = False


class SessionListDTO(DTOBase):
    sessions: List[SessionDTO]


class RevokedSessionsDTO(DTOBase):
    revoked: int


# ============= 用户 / 用户组 =============

class ProfileDTO(DTOBase):
    """公开资料：只有本人可见邮箱"""
    user: UserDTO
    is_owner: bool = Field(..., alias="isOwner")

    model_config = ConfigDict(populate_by_name=True)


class UpdateProfileDTO(DTOBase):
    """个人资料更新DTO：未提供的字段保持不变，显式 null 表示清空"""
    display_name: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = Field(None, max_length=1000)
    avatar_url: Optional[str] = Field(None, max_length=500)

    @field_validator("avatar_url")
    def validate_avatar_url(cls, v):
        return _validate_http_url(v)


class ChangePasswordDTO(DTOBase):
    """修改密码DTO"""
    current_password: str = Field(..., min_length=1, description="当前密码")
    new_password: str = Field(..., min_length=8, max_length=128, description="新密码")


class UserListQuery(BaseModel):
    """用户列表查询参数"""
    sort: Literal["created_at", "username", "display_name"] = "created_at"
    order: Literal["asc", "desc"] = "desc"
    limit: int = Field(50, ge=1, le=100)
    offset: int = Field(0, ge=0)


class UserListDTO(DTOBase):
    users: List[UserDTO]
    pagination: OffsetPagination


class GroupDTO(DTOBase):
    id: int
    name: str
    display_name: str
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class GroupListDTO(DTOBase):
    groups: List[GroupDTO]


class UpdateUserGroupsDTO(DTOBase):
    groups: List[str] = Field(..., description="目标用户组名；用户同一时间只能属于一个组")


class UserGroupsDTO(DTOBase):
    groups: List[str]


class PasswordChangedDTO(DTOBase):
    revoked_sessions: int


# ============= 文章 =============

class ArticleCreateDTO(DTOBase):
    """创建文章DTO"""
    title: str = Field(..., min_length=1, max_length=200)
    slug: Optional[str] = Field(None, min_length=3, max_length=200, pattern=SLUG_REGEX)
    header_image: Optional[str] = Field(None, max_length=500)
    excerpt: Optional[str] = Field(None, max_length=500)
    content: str = Field(..., min_length=1, description="正文（序列化的文档，服务端不解析）")
    status: ArticleStatus = ArticleStatus.DRAFT
    tags: List[str] = Field(default_factory=list, max_length=MAX_TAGS)

    @field_validator("header_image")
    def validate_header_image(cls, v):
        return _validate_http_url(v)

    @field_validator("tags")
    def validate_tags(cls, v):
        for tag in v:
            if len(tag.strip()) > TAG_MAX_LENGTH:
                raise ValueError(f"each tag must be at most {TAG_MAX_LENGTH} characters")
        return v


class ArticleUpdateDTO(DTOBase):
    """更新文章DTO：只更新显式提供的字段"""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    slug: Optional[str] = Field(None, min_length=3, max_length=200, pattern=SLUG_REGEX)
    header_image: Optional[str] = Field(None, max_length=500)
    excerpt: Optional[str] = Field(None, max_length=500)
    content: Optional[str] = Field(None, min_length=1)
    status: Optional[ArticleStatus] = None
    tags: Optional[List[str]] = Field(None, max_length=MAX_TAGS)

    @field_validator("header_image")
    def validate_header_image(cls, v):
        return _validate_http_url(v)

    @field_validator("title", "slug", "content", "status")
    def reject_null(cls, v):
        if v is None:
            raise ValueError("must not be null")
        return v


class ArticleStatusDTO(DTOBase):
    status: ArticleStatus


class ArticleListQuery(BaseModel):
    """文章列表查询参数"""
    sort: Literal["created_at", "updated_at", "title", "views"] = "created_at"
    order: Literal["asc", "desc"] = "desc"
    limit: int = Field(20, ge=1, le=100)
    offset: int = Field(0, ge=0)
    status: Optional[Literal["draft", "published", "private", "all"]] = None
    author_id: Optional[str] = None
    tag: Optional[str] = Field(None, max_length=TAG_MAX_LENGTH)
    search: Optional[str] = Field(None, max_length=200)


class AuthorDTO(DTOBase):
    id: str
    username: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ArticleSummaryDTO(DTOBase):
    """列表项：不含正文"""
    id: str
    author_id: str
    title: str
    slug: str
    header_image: Optional[str] = None
    excerpt: Optional[str] = None
    status: ArticleStatus
    views: int = 0
    tags: List[str] = Field(default_factory=list)
    author: Optional[AuthorDTO] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    published_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ArticleDTO(ArticleSummaryDTO):
    content: str


class ArticleListDTO(DTOBase):
    articles: List[ArticleSummaryDTO]
    pagination: OffsetPagination


class ArticleStatsDTO(DTOBase):
    total: int
    published: int
    drafts: int
    private: int


class TagCountDTO(DTOBase):
    tag: str
    count: int


class TagListDTO(DTOBase):
    tags: List[TagCountDTO]


class CanCreateDTO(DTOBase):
    can_create: bool


class DeletedDTO(DTOBase):
    id: str
    deleted: bool = True


# ============= 互动 =============

class ReactionToggleDTO(DTOBase):
    target_type: ReactionTarget = ReactionTarget.ARTICLE
    target_id: str = Field(..., min_length=1, max_length=36)
    reaction_type: ReactionType = ReactionType.LIKE


class ReactionStatsDTO(DTOBase):
    target_type: ReactionTarget
    target_id: str
    counts: Dict[str, int]
    total: int
    user_reaction: Optional[str] = None


class ReactionToggleResultDTO(DTOBase):
    action: Literal["added", "removed"]
    reaction_type: ReactionType
    stats: ReactionStatsDTO


class ReactionBatchRequestDTO(DTOBase):
    target_type: ReactionTarget = ReactionTarget.ARTICLE
    target_ids: List[str] = Field(..., min_length=1, max_length=100)


class ReactionBatchDTO(DTOBase):
    stats: Dict[str, ReactionStatsDTO]


class ReactionDTO(DTOBase):
    id: str
    target_type: ReactionTarget
    target_id: str
    reaction_type: ReactionType
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ReactionListQuery(BaseModel):
    target_type: Optional[ReactionTarget] = None
    limit: int = Field(50, ge=1, le=100)
    offset: int = Field(0, ge=0)


class ReactionListDTO(DTOBase):
    reactions: List[ReactionDTO]
    pagination: OffsetPagination

