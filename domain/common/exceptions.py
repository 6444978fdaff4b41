"""领域层业务异常定义，供领域与基础设施使用。

每个异常携带一个 `ErrorKind`（封闭的错误分类），HTTP 状态码只在 API 边界
由 core.exceptions 中的映射表决定；核心（core）层仅负责全局映射与异常处理，
尽量避免领域层反向依赖核心层。
"""
from __future__ import annotations

from typing import Optional
from shared.codes import BusinessCode, ErrorKind


class BusinessException(Exception):
    """业务异常基类"""

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
        kind: Optional[ErrorKind] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        if kind is not None:
            self.kind = kind
        super().__init__(self.message)


# ---------- 用户 / 认证 ----------

class UserNotFoundException(BusinessException):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, user_id: Optional[str] = None):
        details = {"user_id": user_id} if user_id else None
        super().__init__(
            code=BusinessCode.USER_NOT_FOUND,
            message="User not found",
            error_type="UserNotFound",
            details=details,
        )


class UserAlreadyExistsException(BusinessException):
    """用户名或邮箱冲突：不区分具体字段，避免账号枚举"""

    kind = ErrorKind.CONFLICT

    def __init__(self):
        super().__init__(
            code=BusinessCode.USER_ALREADY_EXISTS,
            message="User with this username or email already exists",
            error_type="UserAlreadyExists",
        )


class PasswordErrorException(BusinessException):
    kind = ErrorKind.AUTHENTICATION

    def __init__(self):
        super().__init__(
            code=BusinessCode.PASSWORD_ERROR,
            message="Invalid login or password",
            error_type="InvalidCredentials",
        )


class InvalidCurrentPasswordException(BusinessException):
    kind = ErrorKind.VALIDATION

    def __init__(self):
        super().__init__(
            code=BusinessCode.INVALID_CURRENT_PASSWORD,
            message="Current password is incorrect",
            error_type="InvalidCurrentPassword",
            field="current_password",
        )


class TokenMissingException(BusinessException):
    kind = ErrorKind.AUTHENTICATION

    def __init__(self):
        super().__init__(
            code=BusinessCode.UNAUTHORIZED,
            message="Token not provided",
            error_type="Unauthorized",
        )


class TokenInvalidException(BusinessException):
    kind = ErrorKind.AUTHENTICATION

    def __init__(self):
        super().__init__(
            code=BusinessCode.TOKEN_INVALID,
            message="Invalid token",
            error_type="TokenInvalid",
        )


class TokenExpiredException(BusinessException):
    kind = ErrorKind.AUTHENTICATION

    def __init__(self):
        super().__init__(
            code=BusinessCode.TOKEN_EXPIRED,
            message="Token expired",
            error_type="TokenExpired",
        )


class SessionInvalidException(BusinessException):
    kind = ErrorKind.AUTHENTICATION

    def __init__(self):
        super().__init__(
            code=BusinessCode.SESSION_INVALID,
            message="Session expired or invalid",
            error_type="SessionInvalid",
        )


# ---------- 权限 / 用户组 ----------

class PermissionDeniedException(BusinessException):
    kind = ErrorKind.AUTHORIZATION

    def __init__(self, message: str = "Insufficient permissions", *, right: Optional[str] = None):
        super().__init__(
            code=BusinessCode.FORBIDDEN,
            message=message,
            error_type="PermissionDenied",
            details={"required_right": right} if right else None,
        )


class SelfGroupChangeForbiddenException(BusinessException):
    kind = ErrorKind.AUTHORIZATION

    def __init__(self):
        super().__init__(
            code=BusinessCode.SELF_GROUP_CHANGE_FORBIDDEN,
            message="You cannot change your own groups",
            error_type="SelfGroupChangeForbidden",
        )


class GroupAssignmentException(BusinessException):
    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, *, details: Optional[dict] = None):
        super().__init__(
            code=BusinessCode.GROUP_ASSIGNMENT_INVALID,
            message=message,
            error_type="GroupAssignmentInvalid",
            details=details,
            field="groups",
        )


class AccessCatalogMissingException(BusinessException):
    """默认用户组未初始化（种子数据缺失），属于服务端配置问题"""

    kind = ErrorKind.INTERNAL

    def __init__(self, group: str):
        super().__init__(
            code=BusinessCode.SYSTEM_ERROR,
            message="Access catalog is not initialised",
            error_type="AccessCatalogMissing",
            details={"group": group},
        )


# ---------- 文章 ----------

class ArticleNotFoundException(BusinessException):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, article: Optional[str] = None):
        super().__init__(
            code=BusinessCode.ARTICLE_NOT_FOUND,
            message="Article not found",
            error_type="ArticleNotFound",
            details={"article": article} if article else None,
        )


class SlugAlreadyExistsException(BusinessException):
    kind = ErrorKind.CONFLICT

    def __init__(self, slug: str):
        super().__init__(
            code=BusinessCode.SLUG_ALREADY_EXISTS,
            message="This slug is already in use",
            error_type="SlugAlreadyExists",
            details={"slug": slug},
            field="slug",
        )


class ReactionConflictException(BusinessException):
    """并发切换同一互动时唯一约束冲突"""

    kind = ErrorKind.CONFLICT

    def __init__(self, target_id: str):
        super().__init__(
            code=BusinessCode.BUSINESS_ERROR,
            message="Reaction was changed concurrently, please retry",
            error_type="ReactionConflict",
            details={"target_id": target_id},
        )


# ---------- 通用 ----------

class DatastoreUnavailableException(BusinessException):
    """数据存储不可用：不能被当作“未登录”处理"""

    kind = ErrorKind.INTERNAL

    def __init__(self):
        super().__init__(
            code=BusinessCode.DATABASE_ERROR,
            message="Datastore unavailable",
            error_type="DatastoreUnavailable",
        )


class NothingToUpdateException(BusinessException):
    kind = ErrorKind.VALIDATION

    def __init__(self):
        super().__init__(
            code=BusinessCode.PARAM_MISSING,
            message="No data to update",
            error_type="NothingToUpdate",
        )


class DomainValidationException(BusinessException):
    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=message,
            error_type="DomainValidationError",
            details=details,
            field=field,
        )
