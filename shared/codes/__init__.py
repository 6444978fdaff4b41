"""
跨层共享的错误分类与业务码（Domain / Core / API 共用）。

`ErrorKind` 是封闭的错误分类，只有 API 边界把它映射为 HTTP 状态码；
`BusinessCode` 是返回给客户端的数值码，按分类分段编号。
"""
from enum import Enum, IntEnum


class ErrorKind(str, Enum):
    """封闭错误分类，与传输层状态码无关"""

    VALIDATION = "validation"
    CONFLICT = "conflict"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    INTERNAL = "internal"


class BusinessCode(IntEnum):
    """业务码：1xxxx 输入，2xxxx 业务规则，3xxxx 身份与权限，4xxxx 系统"""

    SUCCESS = 0

    # 输入校验
    PARAM_MISSING = 10001
    PARAM_VALIDATION_ERROR = 10003

    # 业务规则
    BUSINESS_ERROR = 20000
    USER_NOT_FOUND = 20001
    USER_ALREADY_EXISTS = 20002
    NOT_FOUND = 20006
    GROUP_ASSIGNMENT_INVALID = 20009
    ARTICLE_NOT_FOUND = 20010
    SLUG_ALREADY_EXISTS = 20011

    # 身份与权限
    PASSWORD_ERROR = 30010
    TOKEN_INVALID = 30011
    TOKEN_EXPIRED = 30012
    SESSION_INVALID = 30013
    INVALID_CURRENT_PASSWORD = 30014
    UNAUTHORIZED = 30001
    FORBIDDEN = 30002
    SELF_GROUP_CHANGE_FORBIDDEN = 30003

    # 系统
    SYSTEM_ERROR = 40000
    DATABASE_ERROR = 40001
    SERVICE_UNAVAILABLE = 40003


__all__ = ["BusinessCode", "ErrorKind"]
