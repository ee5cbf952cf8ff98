"""
Prometheus 指标定义
"""
from prometheus_client import Counter, Histogram

# 业务指标
ADAPTER_CONVERTED = Counter(
    "adapter_records_converted_total",
    "Gateway 记录成功转换为 UI 模型的数量",
    ["resource"],
)
ADAPTER_DROPPED = Counter(
    "adapter_records_dropped_total",
    "因缺少 id 或格式错误被丢弃的 Gateway 记录数",
    ["resource"],
)
CAMPAIGN_SEND_QUEUED = Counter(
    "campaign_send_queued_total",
    "投递到 Celery 的 campaign 发送任务数",
)
CACHE_HIT = Counter(
    "reference_cache_hit_total",
    "参考数据缓存命中次数",
    ["key"],
)
CACHE_MISS = Counter(
    "reference_cache_miss_total",
    "参考数据缓存未命中（需要刷新）次数",
    ["key"],
)

# Gateway 调用（Histogram 自动提供 _count, _sum, _bucket）
GATEWAY_REQUESTS = Counter(
    "crm_gateway_requests_total",
    "对 CRM Gateway 的请求数",
    ["resource", "method", "status"],
)
GATEWAY_LATENCY = Histogram(
    "crm_gateway_latency_seconds",
    "CRM Gateway 请求耗时",
    ["resource"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 15.0),
)

# 性能指标
API_PATIENTS_DURATION = Histogram(
    "api_patients_duration_seconds",
    "/api/patients/ 响应时间",
    buckets=(0.1, 0.25, 0.5, 1.0, 2.0, 3.0, 5.0),
)
API_APPOINTMENTS_DURATION = Histogram(
    "api_appointments_duration_seconds",
    "/api/appointments/ 响应时间",
    buckets=(0.1, 0.25, 0.5, 1.0, 2.0, 3.0, 5.0),
)
API_DASHBOARD_DURATION = Histogram(
    "api_dashboard_duration_seconds",
    "/api/dashboard/ 响应时间",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

# 错误指标
HTTP_5XX = Counter("http_5xx_total", "5xx 错误数")
HTTP_4XX = Counter("http_4xx_total", "4xx 错误数", ["code"])
VALIDATION_ERROR = Counter("validation_error_total", "数据格式校验失败次数", ["code"])
BLOCK_ERROR = Counter("block_error_total", "Block 错误次数", ["code"])
AUTH_ERROR = Counter("auth_error_total", "未授权请求次数")
GATEWAY_ERROR = Counter("gateway_error_total", "CRM Gateway 调用失败次数", ["code"])
