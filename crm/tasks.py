"""
Celery 异步任务：调用 Gateway 发送 Campaign
支持失败重试（最多 3 次，指数退避）
"""
import logging
import time

from celery import shared_task

from clinic_crm.exceptions import AuthError, BlockError

from .gateway import CrmGatewayClient
from .statsd_metrics import (
    campaign_send_failed,
    campaign_sent,
    celery_task_duration_seconds,
    celery_task_retry,
)

logger = logging.getLogger(__name__)

TASK_NAME = "send_campaign"


@shared_task(bind=True, max_retries=3)
def send_campaign_task(self, campaign_id, token):
    """
    POST /campaigns/{id}/send
    token 失效或 campaign 不存在时不重试；其他失败按 2^retries 秒退避重试
    """
    start = time.perf_counter()
    client = CrmGatewayClient(token)
    try:
        result = client.send_campaign(campaign_id)
    except (AuthError, BlockError) as exc:
        logger.error("Campaign %s send rejected: %s", campaign_id, exc.message)
        campaign_send_failed(exc.code.lower())
        celery_task_duration_seconds(TASK_NAME, time.perf_counter() - start)
        raise
    except Exception as exc:
        if self.request.retries >= self.max_retries:
            logger.error("Campaign %s send failed after %s retries: %s",
                         campaign_id, self.request.retries, exc)
            campaign_send_failed("exhausted")
            celery_task_duration_seconds(TASK_NAME, time.perf_counter() - start)
            raise
        logger.warning("Campaign %s send failed, retrying: %s", campaign_id, exc)
        celery_task_retry(TASK_NAME)
        raise self.retry(exc=exc, countdown=2 ** self.request.retries)

    campaign_sent()
    celery_task_duration_seconds(TASK_NAME, time.perf_counter() - start)
    logger.info("Campaign %s sent", campaign_id)
    return result
