"""
View 抛出的异常：BaseAppException 转成统一 JSON，其他异常记日志后交给 Django（500）
"""
import logging

from .exception_handler import app_exception_handler

logger = logging.getLogger(__name__)


class AppExceptionMiddleware:

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_exception(self, request, exception):
        response = app_exception_handler(request, exception)
        if response is None:
            logger.exception("Unhandled error on %s %s", request.method, request.path)
        return response
