"""
请求/响应日志中间件

记录请求开始与结束（状态码、耗时）；请求体按开关记录，凭据类字段一律脱敏。
"""
import json
import time
from typing import Any, Optional
from urllib.parse import parse_qs

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from core.config import settings
from core.logging_config import REDACTED, SENSITIVE_KEYS, get_logger


logger = get_logger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """请求日志中间件"""

    SKIP_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.enable_body_log_default: bool = settings.LOG_REQUEST_BODY_ENABLE_BY_DEFAULT
        self.max_body_log_bytes: int = settings.LOG_REQUEST_BODY_MAX_BYTES
        self.allow_multipart_body_log: bool = settings.LOG_REQUEST_BODY_ALLOW_MULTIPART

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.SKIP_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        request_info = await self._request_info(request)
        logger.info("request_started", **request_info)

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "request_failed",
                duration=round(time.perf_counter() - started, 4),
                error=str(exc),
                error_type=type(exc).__name__,
                exc_info=True,
            )
            raise

        duration = time.perf_counter() - started
        self._log_response(response, duration)
        response.headers["X-Process-Time"] = f"{duration:.3f}"
        return response

    async def _request_info(self, request: Request) -> dict:
        info: dict = {}
        if request.query_params:
            info["query_params"] = dict(request.query_params)
        user_agent = request.headers.get("User-Agent")
        if user_agent:
            info["user_agent"] = user_agent

        if request.method in ("POST", "PUT", "PATCH") and self._should_log_body(request):
            body = await self._sanitized_body(request)
            if body is not None:
                info["body"] = body
        return info

    def _should_log_body(self, request: Request) -> bool:
        # 请求头 X-Log-Body 可显式开启/关闭，否则按配置且仅在 DEBUG 下记录
        header = (request.headers.get("X-Log-Body") or "").lower()
        if header in {"true", "1", "yes"}:
            return True
        if header in {"false", "0", "no"}:
            return False
        return bool(self.enable_body_log_default and settings.DEBUG)

    async def _sanitized_body(self, request: Request) -> Optional[Any]:
        body = await request.body()
        if not body:
            return None

        text = body[: self.max_body_log_bytes].decode("utf-8", errors="ignore")
        content_type = request.headers.get("content-type", "").lower()

        if "application/json" in content_type:
            try:
                return self._sanitize(json.loads(text))
            except ValueError:
                # 截断后的 JSON 无法解析时不记录原文，避免泄露凭据
                return {"truncated": True}
        if "application/x-www-form-urlencoded" in content_type:
            parsed = {k: v if len(v) > 1 else v[0] for k, v in parse_qs(text).items()}
            return self._sanitize(parsed)
        if "multipart/form-data" in content_type:
            return {"multipart": True} if self.allow_multipart_body_log else None
        return text

    def _sanitize(self, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                k: REDACTED if str(k).lower() in SENSITIVE_KEYS else self._sanitize(v)
                for k, v in data.items()
            }
        if isinstance(data, list):
            return [self._sanitize(v) for v in data]
        return data

    def _log_response(self, response: Response, duration: float) -> None:
        log_data = {"status_code": response.status_code, "duration": round(duration, 4)}
        if response.status_code < 400:
            logger.info("request_completed", **log_data)
        elif response.status_code < 500:
            logger.warning("request_client_error", **log_data)
        else:
            logger.error("request_server_error", **log_data)
