"""
统一响应信封：{code, message, data, error}
"""
from datetime import datetime, timezone
from typing import Any, Generic, Mapping, Optional, TypeVar

from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_serializer

from shared.codes import BusinessCode, ErrorKind


T = TypeVar("T")


def utc_isoformat(value: datetime) -> str:
    """UTC ISO8601，统一以 Z 结尾；无时区的时间视为 UTC"""
    ts = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


class ErrorDetail(BaseModel):
    """错误详情：kind 是封闭的错误分类，type 是具体异常名"""
    type: str
    kind: ErrorKind
    details: Optional[dict] = None
    field: Optional[str] = None
    request_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_serializer("timestamp")
    def _serialize_timestamp(self, timestamp: datetime) -> str:
        return utc_isoformat(timestamp)


class Response(BaseModel, Generic[T]):
    """统一响应模型"""
    code: int
    message: str
    data: Optional[T] = None
    error: Optional[ErrorDetail] = None


class OffsetPagination(BaseModel):
    """偏移分页信息（limit/offset）"""
    total: int
    limit: int
    offset: int


def success_response(
    data: Any = None,
    message: str = "Success",
    code: int = BusinessCode.SUCCESS
) -> Response:
    """成功响应；data 为 DTO 或 None"""
    return Response(code=code, message=message, data=data)


def error_response(
    *,
    status_code: int,
    code: int,
    message: str,
    kind: ErrorKind,
    error_type: str = "BusinessError",
    details: Optional[dict] = None,
    field: Optional[str] = None,
    request_id: Optional[str] = None,
    headers: Optional[Mapping[str, str]] = None,
) -> JSONResponse:
    """
    构建错误响应

    Args:
        status_code: HTTP 状态码（由 ErrorKind 映射表决定）
        code: 业务状态码
        message: 面向客户端的错误消息
        kind: 错误分类
        error_type: 具体错误类型名
        details: 附加信息
        field: 出错字段
        request_id: 请求追踪ID
        headers: 额外响应头（如 401 的 WWW-Authenticate）
    """
    body = Response(
        code=code,
        message=message,
        error=ErrorDetail(
            type=error_type,
            kind=kind,
            details=details,
            field=field,
            request_id=request_id,
        ),
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json"),
        headers=dict(headers) if headers else None,
    )
