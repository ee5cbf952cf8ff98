"""
Prometheus 指标中间件：记录请求耗时、状态码、错误类型
"""
import time

from .metrics import (
    API_APPOINTMENTS_DURATION,
    API_DASHBOARD_DURATION,
    API_PATIENTS_DURATION,
    HTTP_4XX,
    HTTP_5XX,
)
from clinic_crm.exceptions import BaseAppException


class MetricsMiddleware:
    """记录 HTTP 请求指标"""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        start = time.perf_counter()
        try:
            response = self.get_response(request)
            self._record(request, response.status_code, time.perf_counter() - start)
            return response
        except Exception as exc:
            duration = time.perf_counter() - start
            status = self._status_from_exception(exc)
            self._record(request, status, duration)
            raise

    def _status_from_exception(self, exc):
        if isinstance(exc, BaseAppException):
            return exc.http_status
        return 500

    def _record(self, request, status, duration):
        path = getattr(request, "path", "") or ""
        if status >= 500:
            HTTP_5XX.inc()
        elif status >= 400:
            HTTP_4XX.labels(code=str(status)).inc()

        if path.startswith("/api/patients/"):
            API_PATIENTS_DURATION.observe(duration)
        elif path.startswith("/api/appointments/"):
            API_APPOINTMENTS_DURATION.observe(duration)
        elif path.startswith("/api/dashboard/"):
            API_DASHBOARD_DURATION.observe(duration)
