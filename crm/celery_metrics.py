"""
Celery Worker 暴露 Prometheus /metrics（Worker 与 Web 是不同进程）
Gateway 调用指标（crm_gateway_*）在 Worker 里同样会产生
"""
import logging

from django.conf import settings
from prometheus_client import start_http_server

logger = logging.getLogger(__name__)


def start_metrics_server(port: int | None = None):
    """daemon 线程，非阻塞"""
    import crm.metrics  # noqa: F401 - 注册 collectors
    port = port or settings.WORKER_METRICS_PORT
    start_http_server(port)
    logger.info("Worker metrics server listening on :%s", port)
