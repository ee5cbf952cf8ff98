"""
统一异常处理：将 BaseAppException 转为统一 JSON 格式
"""
import logging

from django.http import JsonResponse

from .exceptions import BaseAppException

logger = logging.getLogger(__name__)


def app_exception_handler(request, exception):
    """
    处理 BaseAppException 及其子类，转为统一 JSON
    其他异常返回 None，交给 Django 默认处理（500）
    """
    if not isinstance(exception, BaseAppException):
        return None

    _record_exception_metric(exception)
    if exception.http_status >= 500:
        logger.error(
            "%s %s failed: %s (%s)",
            request.method, request.path, exception.message, exception.code,
        )
    else:
        logger.info(
            "%s %s rejected: %s (%s)",
            request.method, request.path, exception.message, exception.code,
        )
    return JsonResponse(
        exception.to_dict(),
        status=exception.http_status,
        json_dumps_params={"ensure_ascii": False},
    )


def _record_exception_metric(exception):
    """记录异常指标（延迟导入，避免循环导入）"""
    from crm.metrics import AUTH_ERROR, BLOCK_ERROR, GATEWAY_ERROR, VALIDATION_ERROR
    from .exceptions import AuthError, BlockError, GatewayError, ValidationError

    if isinstance(exception, ValidationError):
        VALIDATION_ERROR.labels(code=exception.code).inc()
    elif isinstance(exception, BlockError):
        BLOCK_ERROR.labels(code=exception.code).inc()
    elif isinstance(exception, AuthError):
        AUTH_ERROR.inc()
    elif isinstance(exception, GatewayError):
        GATEWAY_ERROR.labels(code=exception.code).inc()
