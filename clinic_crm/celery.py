"""
Celery 应用：Redis broker，任务定义在 crm.tasks
"""
import os

from celery import Celery
from celery.signals import worker_ready

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'clinic_crm.settings')

app = Celery('clinic_crm')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks(['crm'])


@worker_ready.connect
def start_worker_metrics(sender, **kwargs):
    from crm.celery_metrics import start_metrics_server
    start_metrics_server()
