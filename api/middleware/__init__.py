"""HTTP 中间件：请求追踪与访问日志"""
from .logging import LoggingMiddleware
from .request_id import REQUEST_ID_HEADER, RequestIDMiddleware, resolve_client_ip

__all__ = [
    "LoggingMiddleware",
    "RequestIDMiddleware",
    "REQUEST_ID_HEADER",
    "resolve_client_ip",
]
