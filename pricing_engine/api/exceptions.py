"""
全局异常处理器
业务拒绝统一返回 {"success": false, "error": 类型, "message": 提示}
"""

import logging

from fastapi import Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from pricing_engine.core.config import settings
from pricing_engine.core.exceptions import BusinessException, PricingException

logger = logging.getLogger(__name__)

__all__ = [
    "BusinessException",
    "PricingException",
    "validation_exception_handler",
    "http_exception_handler",
    "database_exception_handler",
    "business_exception_handler",
    "general_exception_handler"
]


def _error_body(error: str, message: str, **extra) -> dict:
    body = {"success": False, "error": error, "message": message}
    body.update(extra)
    return body


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """请求参数校验失败"""
    logger.info(f"请求参数校验失败 {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content=_error_body(
            "VALIDATION_ERROR",
            "请求参数不合法",
            details=[{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()]
        )
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    """HTTP异常"""
    message = exc.detail if isinstance(exc.detail, str) else "请求失败"
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body("HTTP_ERROR", message),
        headers=getattr(exc, "headers", None)
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    """数据库异常"""
    logger.error(f"数据库异常 {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content=_error_body("DATABASE_ERROR", "数据库操作失败，请稍后重试")
    )


async def business_exception_handler(request: Request, exc: BusinessException):
    """业务异常，包括所有定价拒绝"""
    if isinstance(exc, PricingException):
        logger.info(f"定价拒绝 {request.url.path}: {exc.kind.value} {exc.message}")
    else:
        logger.warning(f"业务异常 {request.url.path}: {exc.code} {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.code, exc.message)
    )


async def general_exception_handler(request: Request, exc: Exception):
    """未预期的异常"""
    logger.error(f"未处理的异常 {request.url.path}: {exc}", exc_info=True)
    message = str(exc) if settings.debug else "服务器内部错误"
    return JSONResponse(
        status_code=500,
        content=_error_body("INTERNAL_ERROR", message)
    )
