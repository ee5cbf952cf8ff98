import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.getenv('DJANGO_SECRET_KEY', 'django-insecure-dev-key-change-in-production')
DEBUG = os.getenv('DJANGO_DEBUG', '1') == '1'
ALLOWED_HOSTS = ['*']

INSTALLED_APPS = [
    'crm',
]

MIDDLEWARE = [
    'crm.middleware_metrics.MetricsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
    'clinic_crm.middleware.AppExceptionMiddleware',
]

ROOT_URLCONF = 'clinic_crm.urls'

# 本服务不持有任何持久化数据，所有数据都在 CRM Gateway
DATABASES = {}

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

# CRM Gateway（第三方后端）
CRM_API_BASE_URL = os.getenv('CRM_API_BASE_URL', 'https://pw-crm-gateway-1.onrender.com')
CRM_API_TIMEOUT = float(os.getenv('CRM_API_TIMEOUT', '15'))

# 参考数据缓存 TTL（秒）
PATIENTS_CACHE_TTL = int(os.getenv('PATIENTS_CACHE_TTL', '120'))
TEAM_CACHE_TTL = int(os.getenv('TEAM_CACHE_TTL', '300'))
DASHBOARD_CACHE_TTL = int(os.getenv('DASHBOARD_CACHE_TTL', '300'))

# Dashboard 收入估算：每个有效预约的金额
REVENUE_PER_BOOKING = int(os.getenv('REVENUE_PER_BOOKING', '100'))

# Redis（Celery broker + result backend）
REDIS_HOST = os.getenv('REDIS_HOST', 'redis')
REDIS_PORT = int(os.getenv('REDIS_PORT', '6379'))
REDIS_URL = f'redis://{REDIS_HOST}:{REDIS_PORT}/0'

# Celery
CELERY_BROKER_URL = REDIS_URL
CELERY_RESULT_BACKEND = REDIS_URL

# StatsD（Worker 指标）
STATSD_HOST = os.getenv('STATSD_HOST', 'statsd_exporter')
STATSD_PORT = int(os.getenv('STATSD_PORT', '9125'))
STATSD_PREFIX = os.getenv('STATSD_PREFIX', 'crm')
WORKER_METRICS_PORT = int(os.getenv('WORKER_METRICS_PORT', '9090'))

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '%(asctime)s %(levelname)s %(name)s %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'loggers': {
        'crm': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'clinic_crm': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
    },
}
