"""
业务逻辑：调 Gateway、用 adapters 转换格式、放队列
返回 {"success": True, "data": ...}，出错时抛 BaseAppException 子类
"""
import logging
from datetime import datetime, timezone

from django.conf import settings

from clinic_crm.exceptions import GatewayError, ValidationError

from .adapters import get_adapter
from .adapters.base import clean_str
from .adapters.dates import format_ymd, parse_datetime
from .adapters.status import (
    AppointmentStatus,
    CampaignStatus,
    normalize_appointment_status,
    to_display_format,
)
from .cache import TTLCache
from .metrics import CAMPAIGN_SEND_QUEUED

logger = logging.getLogger(__name__)

# 进程内共享：团队、患者列表、dashboard 统计
_cache = TTLCache()

PATIENTS_KEY = "patients"
TEAM_KEY = "team"
DASHBOARD_STATS_KEY = "dashboard:stats"
DASHBOARD_ACTIVITY_KEY = "dashboard:activity"

# 今日预约最多返回条数
TODAY_LIMIT = 10
BOOKED_STATUSES = (AppointmentStatus.CONFIRMED, AppointmentStatus.PENDING)


def _ok(data, **extra):
    return {"success": True, "data": data, **extra}


def _today():
    return datetime.now(timezone.utc).date()


def _single(resource, record):
    """Gateway 单条返回 -> UI 模型；没有 id 说明 Gateway 返回格式不对"""
    item = get_adapter(resource).to_ui(record)
    if item is None:
        raise GatewayError(
            message=f"CRM gateway returned an invalid {resource} record",
            code="INVALID_GATEWAY_RESPONSE",
            detail={"body": record},
        )
    return item


def _invalidate_patients():
    _cache.invalidate(PATIENTS_KEY)
    _cache.invalidate(DASHBOARD_STATS_KEY)
    _cache.invalidate(DASHBOARD_ACTIVITY_KEY)


def _invalidate_appointments():
    _cache.invalidate(DASHBOARD_STATS_KEY)


# ==================== AUTH ====================

def login(client, user_name, password):
    """换取 Gateway token；返回 access_token / expires_at / role"""
    result = client.login(user_name, password)
    if not isinstance(result, dict) or not result.get("access_token"):
        raise GatewayError(
            message="CRM gateway returned no access token",
            code="INVALID_GATEWAY_RESPONSE",
            detail={"body": result},
        )
    logger.info("User %s logged in", user_name)
    return _ok({
        "access_token": result["access_token"],
        "expires_at": result.get("expires_at"),
        "role": result.get("role"),
    })


def check_auth(client):
    """token 无效时 Gateway 返回 401，由 gateway 抛 AuthError"""
    result = client.check_auth()
    return _ok({"valid": True, "message": result if isinstance(result, str) else None})


# ==================== PATIENTS ====================

def _all_patients(client):
    return _cache.get_or_refresh(
        PATIENTS_KEY,
        settings.PATIENTS_CACHE_TTL,
        lambda: get_adapter("patients").to_ui_list(client.list_customers()),
    )


def _matches_query(patient, q):
    q = q.lower()
    return any(q in (value or "").lower() for value in (patient.name, patient.phone, patient.email))


def list_patients(client, status=None, q=None):
    """
    患者列表，可按 status（active / booked / follow-up / inactive，任意写法）
    和关键字（姓名 / 电话 / 邮箱）过滤
    """
    patients = _all_patients(client)
    if status:
        wanted = to_display_format(status)
        patients = [p for p in patients if p.status == wanted]
    if q and q.strip():
        patients = [p for p in patients if _matches_query(p, q.strip())]
    return _ok([p.to_dict() for p in patients], count=len(patients))


def get_patient(client, patient_id):
    return _ok(_single("patients", client.get_customer(patient_id)).to_dict())


def create_patient(client, data):
    request = get_adapter("patients").to_wire(data)
    created = _single("patients", client.create_customer(request))
    _invalidate_patients()
    logger.info("Created patient %s", created.id)
    return _ok(created.to_dict())


def update_patient(client, patient_id, data):
    """
    部分更新：先取当前记录，合并前端提交的字段后整体写回
    """
    current = _single("patients", client.get_customer(patient_id)).to_dict()
    merged = {**current, **data}
    request = get_adapter("patients").to_wire(merged)
    updated = _single("patients", client.update_customer(patient_id, request))
    _invalidate_patients()
    return _ok(updated.to_dict())


def delete_patient(client, patient_id):
    client.delete_customer(patient_id)
    _invalidate_patients()
    logger.info("Deleted patient %s", patient_id)
    return _ok({"id": str(patient_id)})


# ==================== TEAM ====================

def _all_team(client):
    return _cache.get_or_refresh(
        TEAM_KEY,
        settings.TEAM_CACHE_TTL,
        lambda: get_adapter("teams").to_ui_list(client.list_teams()),
    )


def list_team(client):
    members = _all_team(client)
    return _ok([m.to_dict() for m in members], count=len(members))


def get_team_member(client, member_id):
    return _ok(_single("teams", client.get_team(member_id)).to_dict())


# ==================== APPOINTMENTS ====================

def _enrich_doctors(client, appointments):
    """
    doctor 是 id 时用团队列表补全成 {"id", "name"}
    团队列表取不到时保留原值
    """
    if not any(a.doctor_is_id for a in appointments):
        return appointments
    try:
        members = {m.id: m for m in _all_team(client)}
    except GatewayError as e:
        logger.warning("Team lookup failed, doctor names not resolved: %s", e.message)
        return appointments

    for appointment in appointments:
        member = members.get(appointment.doctor) if appointment.doctor_is_id else None
        if member is not None:
            appointment.doctor = {"id": member.id, "name": member.name}
    return appointments


def _fetch_appointments(client, date=None, status=None, patient_id=None):
    params = {
        "date": date,
        "status": normalize_appointment_status(status).value if status else None,
        "customer_id": patient_id,
    }
    return get_adapter("appointments").to_ui_list(client.list_appointments(params))


def list_appointments(client, date=None, status=None, patient_id=None):
    """
    预约列表；Gateway 不一定支持全部过滤参数，返回后再本地过滤一遍
    """
    appointments = _fetch_appointments(client, date=date, status=status, patient_id=patient_id)
    if date:
        appointments = [a for a in appointments if a.date.isoformat() == date]
    if status:
        wanted = normalize_appointment_status(status)
        appointments = [a for a in appointments if a.status == wanted]
    if patient_id:
        appointments = [a for a in appointments if a.patient == str(patient_id)]
    appointments = _enrich_doctors(client, appointments)
    return _ok([a.to_dict() for a in appointments], count=len(appointments))


def search_appointments(client, date=None, status=None, patient_id=None):
    """报表页用的 Gateway 搜索接口，过滤在 Gateway 端完成"""
    params = {
        "date": _report_date(date),
        "status": normalize_appointment_status(status).value if status else None,
        "customer_id": patient_id,
    }
    appointments = get_adapter("appointments").to_ui_list(client.search_appointments(params))
    appointments = _enrich_doctors(client, appointments)
    return _ok([a.to_dict() for a in appointments], count=len(appointments))


def get_appointment(client, appointment_id):
    appointment = _single("appointments", client.get_appointment(appointment_id))
    _enrich_doctors(client, [appointment])
    return _ok(appointment.to_dict())


def create_appointment(client, data):
    request = get_adapter("appointments").to_wire(data)
    created = _single("appointments", client.create_appointment(request))
    _invalidate_appointments()
    logger.info("Created appointment %s for patient %s", created.id, created.patient)
    return _ok(created.to_dict())


def _current_appointment_form(appointment, record, data):
    """
    把当前记录转成表单格式，再合并前端提交的字段
    备注三个字段读出来是同一个值，只有前端都没提交时才沿用旧备注
    """
    current = appointment.to_dict()
    notes = current.pop("notes")
    current.pop("reason")
    current.pop("medicalNotes")
    if appointment.doctor_is_id:
        # 保留 Gateway 里原来的医生姓名
        current["doctor"] = {"id": appointment.doctor, "name": clean_str(record.get("assigned_to"))}
    elif appointment.doctor:
        # 老数据里 doctor 是姓名
        current["doctor"] = {"id": "", "name": appointment.doctor}
    if parse_datetime(record.get("scheduled_at")) is None:
        # 读出来的今天 00:00 只是展示用，不能写回
        current.pop("date")
        current.pop("time")

    merged = {**current, **data}
    if not any(key in data for key in ("notes", "reason", "medicalNotes", "medical_notes")):
        merged["notes"] = notes
    return merged


def update_appointment(client, appointment_id, data):
    record = client.get_appointment(appointment_id)
    current = _single("appointments", record)
    request = get_adapter("appointments").to_wire(_current_appointment_form(current, record, data))
    updated = _single("appointments", client.update_appointment(appointment_id, request))
    _invalidate_appointments()
    return _ok(updated.to_dict())


def delete_appointment(client, appointment_id):
    client.delete_appointment(appointment_id)
    _invalidate_appointments()
    logger.info("Deleted appointment %s", appointment_id)
    return _ok({"id": str(appointment_id)})


def _enrich_patients(client, appointments):
    """今日预约卡片需要患者姓名和联系方式"""
    patients = {p.id: p for p in _all_patients(client)}
    for appointment in appointments:
        patient = patients.get(appointment.patient) if isinstance(appointment.patient, str) else None
        if patient is not None:
            appointment.patient = {
                "id": patient.id,
                "name": patient.name,
                "phone": patient.phone,
                "email": patient.email,
                "initials": patient.initials,
            }
    return appointments


def today_appointments(client):
    """今天（UTC）已确认或待确认的预约，按时间排序，最多 10 条"""
    today = _today()
    appointments = _fetch_appointments(client, date=today.isoformat())
    appointments = [
        a for a in appointments
        if a.date == today and a.status in BOOKED_STATUSES
    ]
    appointments.sort(key=lambda a: a.time)
    appointments = appointments[:TODAY_LIMIT]
    _enrich_patients(client, appointments)
    _enrich_doctors(client, appointments)
    return _ok([a.to_dict() for a in appointments], count=len(appointments))


# ==================== TEMPLATES ====================

def list_templates(client, org_id=None):
    templates = get_adapter("templates").to_ui_list(client.list_templates(org_id=org_id))
    return _ok([t.to_dict() for t in templates], count=len(templates))


def create_template(client, data):
    request = get_adapter("templates").to_wire(data)
    created = _single("templates", client.create_template(request))
    return _ok(created.to_dict())


def update_template(client, template_id, data):
    current = _single("templates", client.get_template(template_id)).to_dict()
    request = get_adapter("templates").to_wire({**current, **data})
    updated = _single("templates", client.update_template(template_id, request))
    return _ok(updated.to_dict())


def delete_template(client, template_id):
    client.delete_template(template_id)
    return _ok({"id": str(template_id)})


# ==================== CAMPAIGNS ====================

def list_campaigns(client, org_id=None):
    campaigns = get_adapter("campaigns").to_ui_list(client.list_campaigns(org_id=org_id))
    return _ok([c.to_dict() for c in campaigns], count=len(campaigns))


def get_campaign(client, campaign_id):
    return _ok(_single("campaigns", client.get_campaign(campaign_id)).to_dict())


def create_campaign(client, data):
    request = get_adapter("campaigns").to_wire(data)
    created = _single("campaigns", client.create_campaign(request))
    _cache.invalidate(DASHBOARD_STATS_KEY)
    logger.info("Created campaign %s (%s)", created.id, created.status.value)
    return _ok(created.to_dict())


def queue_campaign_send(campaign_id, token):
    """投递 Celery 任务，立即返回"""
    from .tasks import send_campaign_task

    send_campaign_task.delay(str(campaign_id), token)
    CAMPAIGN_SEND_QUEUED.inc()
    logger.info("Queued send for campaign %s", campaign_id)
    return _ok({"id": str(campaign_id), "status": "queued"})


# ==================== DASHBOARD ====================

def _compute_stats(client):
    today = _today()
    appointments = get_adapter("appointments").to_ui_list(client.list_appointments())
    patients = _all_patients(client)
    campaigns = get_adapter("campaigns").to_ui_list(client.list_campaigns())

    booked = [a for a in appointments if a.status in BOOKED_STATUSES]
    total_bookings = len(booked)
    return {
        "totalBookings": {"value": total_bookings},
        "totalPatients": {"value": len(patients)},
        "followUps": {"value": sum(1 for p in patients if p.status == "follow-up")},
        "revenue": {"value": total_bookings * settings.REVENUE_PER_BOOKING},
        "todayAppointments": {"value": sum(1 for a in booked if a.date == today)},
        "activeCampaigns": {"value": sum(1 for c in campaigns if c.status == CampaignStatus.DRAFT)},
    }


def dashboard_stats(client):
    stats = _cache.get_or_refresh(
        DASHBOARD_STATS_KEY,
        settings.DASHBOARD_CACHE_TTL,
        lambda: _compute_stats(client),
    )
    return _ok(stats)


def _percentage(count, total):
    # 四舍五入（.5 向上）
    return int(count * 100 / total + 0.5) if total else 0


def _compute_activity(client):
    patients = _all_patients(client)
    total = len(patients)
    activity = {"total": total}
    for status in ("active", "booked", "inactive"):
        count = sum(1 for p in patients if p.status == status)
        activity[status] = {"count": count, "percentage": _percentage(count, total)}
    return activity


def patient_activity(client):
    activity = _cache.get_or_refresh(
        DASHBOARD_ACTIVITY_KEY,
        settings.DASHBOARD_CACHE_TTL,
        lambda: _compute_activity(client),
    )
    return _ok(activity)


# ==================== REPORTS ====================

def _report_date(value):
    """报表日期统一成 YYYY-MM-DD；非法日期直接报 400"""
    if not value:
        return None
    day = format_ymd(value)
    if day is None:
        raise ValidationError(
            message="Invalid report date",
            code="VALIDATION_ERROR",
            detail={"errors": [{"field": "date", "message": "Date must be a valid date (YYYY-MM-DD)"}]},
        )
    return day


def daily_report(client, date=None):
    """日报原样转发；不传日期时由 Gateway 决定（当天）"""
    return _ok(client.daily_report(_report_date(date)))


def reset_cache():
    """清空所有缓存（测试 / 运维用）"""
    _cache.invalidate()
