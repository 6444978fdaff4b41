"""
错误分类到 HTTP 状态码的映射与全局异常处理器
"""
import traceback
import uuid

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette import status as http_status
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.logging_config import get_logger
from core.response import error_response
from domain.common.exceptions import BusinessException
from shared.codes import BusinessCode, ErrorKind


logger = get_logger(__name__)


# 唯一的 ErrorKind -> HTTP 状态码映射表
KIND_TO_STATUS: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: http_status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT: http_status.HTTP_400_BAD_REQUEST,
    ErrorKind.AUTHENTICATION: http_status.HTTP_401_UNAUTHORIZED,
    ErrorKind.AUTHORIZATION: http_status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: http_status.HTTP_404_NOT_FOUND,
    ErrorKind.INTERNAL: http_status.HTTP_500_INTERNAL_SERVER_ERROR,
}

# 框架抛出的 HTTPException 按状态码反查 (分类, 业务码)
_FRAMEWORK_STATUS: dict[int, tuple[ErrorKind, BusinessCode]] = {
    400: (ErrorKind.VALIDATION, BusinessCode.PARAM_VALIDATION_ERROR),
    401: (ErrorKind.AUTHENTICATION, BusinessCode.UNAUTHORIZED),
    403: (ErrorKind.AUTHORIZATION, BusinessCode.FORBIDDEN),
    404: (ErrorKind.NOT_FOUND, BusinessCode.NOT_FOUND),
    405: (ErrorKind.VALIDATION, BusinessCode.PARAM_VALIDATION_ERROR),
    503: (ErrorKind.INTERNAL, BusinessCode.SERVICE_UNAVAILABLE),
}


def status_for_kind(kind: ErrorKind) -> int:
    return KIND_TO_STATUS[kind]


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


def _challenge(kind: ErrorKind):
    # 401 必须携带 Bearer 质询头
    if kind is ErrorKind.AUTHENTICATION:
        return {"WWW-Authenticate": "Bearer"}
    return None


def register_exception_handlers(app: FastAPI):
    """
    注册全局异常处理器

    业务异常按 ErrorKind 查表得到状态码；框架异常反查分类；
    数据库与未捕获异常一律 500，且不向客户端暴露内部细节。
    """

    @app.exception_handler(BusinessException)
    async def business_exception_handler(request: Request, exc: BusinessException):
        status_code = status_for_kind(exc.kind)
        log = logger.error if status_code >= 500 else logger.info
        log(
            "business_exception",
            error_type=exc.error_type,
            kind=exc.kind.value,
            status_code=status_code,
        )
        return error_response(
            status_code=status_code,
            code=exc.code,
            message=exc.message,
            kind=exc.kind,
            error_type=exc.error_type,
            details=exc.details,
            field=exc.field,
            request_id=_request_id(request),
            headers=_challenge(exc.kind),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """参数校验失败统一 400"""
        errors = jsonable_encoder(exc.errors())
        first_error = errors[0] if errors else {}
        field = ".".join(str(loc) for loc in first_error.get("loc", [])[1:])

        return error_response(
            status_code=status_for_kind(ErrorKind.VALIDATION),
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=f"Validation failed: {first_error.get('msg', 'unknown')}",
            kind=ErrorKind.VALIDATION,
            error_type="ValidationError",
            details={"errors": errors},
            field=field or None,
            request_id=_request_id(request),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """路由不存在、方法不允许等框架异常"""
        kind, code = _FRAMEWORK_STATUS.get(
            exc.status_code, (ErrorKind.INTERNAL, BusinessCode.SYSTEM_ERROR)
        )
        return error_response(
            status_code=exc.status_code,
            code=code,
            message=str(exc.detail),
            kind=kind,
            error_type="HTTPError",
            details={"status_code": exc.status_code},
            request_id=_request_id(request),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(SQLAlchemyError)
    async def datastore_exception_handler(request: Request, exc: SQLAlchemyError):
        """数据库异常：统一 500，不向客户端暴露SQL细节"""
        request_id = _request_id(request)
        logger.error(
            "datastore_error",
            request_id=request_id,
            error_type=type(exc).__name__,
            error=str(exc),
        )
        return error_response(
            status_code=status_for_kind(ErrorKind.INTERNAL),
            code=BusinessCode.DATABASE_ERROR,
            message="Datastore error",
            kind=ErrorKind.INTERNAL,
            error_type="DatastoreError",
            request_id=request_id,
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """其余未捕获异常统一 500；调试模式附带堆栈"""
        request_id = _request_id(request)
        logger.error(
            "unhandled_exception",
            request_id=request_id,
            error=str(exc),
            exc_info=True,
        )

        details = None
        if app.debug:
            details = {
                "exception": str(exc),
                "traceback": traceback.format_exc(),
            }
        return error_response(
            status_code=status_for_kind(ErrorKind.INTERNAL),
            code=BusinessCode.SYSTEM_ERROR,
            message="Internal server error",
            kind=ErrorKind.INTERNAL,
            error_type="SystemError",
            details=details,
            request_id=request_id,
        )
