"""
Worker 指标走 StatsD UDP，由 statsd_exporter 转给 Prometheus
prefork 多进程下各进程各自发送，聚合在 exporter 完成
"""
import statsd
from django.conf import settings

_client = None


def _get_client():
    global _client
    if _client is None:
        _client = statsd.StatsClient(settings.STATSD_HOST, settings.STATSD_PORT, prefix=settings.STATSD_PREFIX)
    return _client


def campaign_sent():
    _get_client().incr("campaign.sent")


def campaign_send_failed(reason: str):
    # reason 放进 metric 名，statsd_exporter mapping 转成 label
    _get_client().incr(f"campaign.send_failed.{reason}")


def celery_task_duration_seconds(task: str, seconds: float):
    _get_client().timing(f"celery.{task}.duration", int(seconds * 1000))


def celery_task_retry(task: str):
    _get_client().incr(f"celery.{task}.retry")
