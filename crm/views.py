"""
JSON API：校验请求 -> services -> JsonResponse
BaseAppException 由 AppExceptionMiddleware 统一转成错误响应
"""
from functools import wraps

from django.http import HttpResponse, JsonResponse
from django.views.decorators.cache import never_cache
from django.views.decorators.csrf import csrf_exempt
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

from clinic_crm.exceptions import AuthError, BlockError

from . import serializers, services
from .gateway import CrmGatewayClient


def _bearer_token(request):
    """取 Authorization: Bearer <token>，原样转发给 Gateway"""
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthError(message="Access denied. No token provided.", code="UNAUTHORIZED")
    return token.strip()


def _client(request):
    return CrmGatewayClient(_bearer_token(request))


def _method_not_allowed(request):
    return BlockError(
        message=f"Method {request.method} not allowed",
        code="METHOD_NOT_ALLOWED",
        detail={"method": request.method},
        http_status=405,
    )


def _allow(*methods):
    """方法不在列表里时返回 JSON 格式的 405；在鉴权之前检查"""
    def decorator(view):
        @wraps(view)
        def wrapper(request, *args, **kwargs):
            if request.method not in methods:
                raise _method_not_allowed(request)
            return view(request, *args, **kwargs)
        return wrapper
    return decorator


_get_only = _allow("GET")


def _created(result):
    return JsonResponse(result, status=201)


@_get_only
def health(request):
    return JsonResponse({"success": True, "status": "ok"})


@_get_only
@never_cache
def metrics(request):
    """Prometheus 抓取端点"""
    return HttpResponse(generate_latest(REGISTRY), content_type=CONTENT_TYPE_LATEST)


# ==================== AUTH ====================

@csrf_exempt
@_allow("POST")
def login(request):
    data = serializers.parse_login_request(request.body)
    return JsonResponse(services.login(CrmGatewayClient(), data["user_name"], data["password"]))


@csrf_exempt
@_allow("POST")
def check_auth(request):
    return JsonResponse(services.check_auth(_client(request)))


# ==================== PATIENTS ====================

@csrf_exempt
@_allow("GET", "POST")
def patients(request):
    client = _client(request)
    if request.method == "GET":
        return JsonResponse(services.list_patients(
            client,
            status=request.GET.get("status"),
            q=request.GET.get("q"),
        ))
    data = serializers.parse_patient_request(request.body)
    return _created(services.create_patient(client, data))


@csrf_exempt
@_allow("GET", "PUT", "PATCH", "DELETE")
def patient_detail(request, patient_id):
    client = _client(request)
    if request.method == "GET":
        return JsonResponse(services.get_patient(client, patient_id))
    if request.method == "DELETE":
        return JsonResponse(services.delete_patient(client, patient_id))
    data = serializers.parse_patient_request(request.body, partial=True)
    return JsonResponse(services.update_patient(client, patient_id, data))


# ==================== APPOINTMENTS ====================

@csrf_exempt
@_allow("GET", "POST")
def appointments(request):
    client = _client(request)
    if request.method == "GET":
        return JsonResponse(services.list_appointments(
            client,
            date=request.GET.get("date"),
            status=request.GET.get("status"),
            patient_id=request.GET.get("patient_id"),
        ))
    data = serializers.parse_appointment_request(request.body)
    return _created(services.create_appointment(client, data))


@_get_only
def search_appointments(request):
    return JsonResponse(services.search_appointments(
        _client(request),
        date=request.GET.get("date"),
        status=request.GET.get("status"),
        patient_id=request.GET.get("patient_id"),
    ))


@csrf_exempt
@_allow("GET", "PUT", "PATCH", "DELETE")
def appointment_detail(request, appointment_id):
    client = _client(request)
    if request.method == "GET":
        return JsonResponse(services.get_appointment(client, appointment_id))
    if request.method == "DELETE":
        return JsonResponse(services.delete_appointment(client, appointment_id))
    data = serializers.parse_appointment_request(request.body, partial=True)
    return JsonResponse(services.update_appointment(client, appointment_id, data))


# ==================== DASHBOARD / REPORTS ====================

@_get_only
def dashboard_stats(request):
    return JsonResponse(services.dashboard_stats(_client(request)))


@_get_only
def dashboard_activity(request):
    return JsonResponse(services.patient_activity(_client(request)))


@_get_only
def today_appointments(request):
    return JsonResponse(services.today_appointments(_client(request)))


@_get_only
def daily_report(request):
    return JsonResponse(services.daily_report(_client(request), date=request.GET.get("date")))


# ==================== TEMPLATES / CAMPAIGNS / TEAM ====================

@csrf_exempt
@_allow("GET", "POST")
def templates(request):
    client = _client(request)
    if request.method == "GET":
        return JsonResponse(services.list_templates(client, org_id=request.GET.get("org_id")))
    data = serializers.parse_template_request(request.body)
    return _created(services.create_template(client, data))


@csrf_exempt
@_allow("PUT", "DELETE")
def template_detail(request, template_id):
    client = _client(request)
    if request.method == "DELETE":
        return JsonResponse(services.delete_template(client, template_id))
    data = serializers.parse_template_request(request.body)
    return JsonResponse(services.update_template(client, template_id, data))


@csrf_exempt
@_allow("GET", "POST")
def campaigns(request):
    client = _client(request)
    if request.method == "GET":
        return JsonResponse(services.list_campaigns(client, org_id=request.GET.get("org_id")))
    data = serializers.parse_campaign_request(request.body)
    return _created(services.create_campaign(client, data))


@_get_only
def campaign_detail(request, campaign_id):
    return JsonResponse(services.get_campaign(_client(request), campaign_id))


@csrf_exempt
@_allow("POST")
def send_campaign(request, campaign_id):
    token = _bearer_token(request)
    return JsonResponse(services.queue_campaign_send(campaign_id, token), status=202)


@_get_only
def team(request):
    return JsonResponse(services.list_team(_client(request)))


@_get_only
def team_member(request, member_id):
    return JsonResponse(services.get_team_member(_client(request), member_id))
