"""
预约 Adapter：Gateway appointment <-> UI Appointment

Gateway 用一个 scheduled_at 时间戳，UI 用分开的 date + time（HH:MM）；
医生引用在 Gateway 里有两个字段：assigned_to（应为姓名，但老数据里存的是 id）
和 assigned_to_id（id）
"""
import logging
import re
from datetime import datetime, timezone
from typing import Any

from clinic_crm.exceptions import ValidationError

from .base import BaseRecordAdapter, clean_str, pick
from .dates import combine_date_time, format_iso_utc, parse_datetime, split_time
from .status import normalize_appointment_status
from .types import Appointment

logger = logging.getLogger(__name__)

_ALNUM = re.compile(r"^[a-zA-Z0-9]+$")


def looks_like_id(value: str) -> bool:
    """
    判断 assigned_to 是 id 还是姓名：长度 > 15、无空格、只有字母数字 => id
    仅用于兼容未迁移的老数据
    """
    return len(value) > 15 and " " not in value and bool(_ALNUM.match(value))


def _reference_id(ref: Any) -> str:
    """患者/医生引用：字符串直接用，对象取 id"""
    if isinstance(ref, dict):
        return clean_str(ref.get("id"))
    if hasattr(ref, "id"):
        return clean_str(ref.id)
    return clean_str(ref)


def _to_duration(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class AppointmentAdapter(BaseRecordAdapter):
    """
    Gateway appointment 字段：customer_id, appointment_type, assigned_to, assigned_to_id,
    scheduled_at, duration, status, priority, location, notes
    """

    resource = "appointments"

    def resolve_doctor(self, record: dict) -> tuple[str, bool]:
        """
        返回 (doctor 引用, 是否为 id)
        有 assigned_to_id 时优先使用；否则按 looks_like_id 判断 assigned_to
        """
        assigned_to = clean_str(record.get("assigned_to"))
        assigned_to_id = clean_str(record.get("assigned_to_id"))
        if assigned_to_id:
            return assigned_to_id, True
        if assigned_to:
            return assigned_to, looks_like_id(assigned_to)
        return "", False

    def transform(self, record: dict) -> Appointment:
        scheduled = parse_datetime(record.get("scheduled_at"))
        if scheduled is None:
            if record.get("scheduled_at"):
                logger.warning(
                    "Failed to parse scheduled_at %r for appointment %s",
                    record.get("scheduled_at"), record.get("id"),
                )
            day, hhmm = datetime.now(timezone.utc).date(), "00:00"
        else:
            day, hhmm = scheduled.date(), split_time(scheduled)

        doctor, doctor_is_id = self.resolve_doctor(record)
        notes = record.get("notes")

        return Appointment(
            id=str(record["id"]).strip(),
            patient=clean_str(record.get("customer_id")),
            doctor=doctor,
            date=day,
            time=hhmm,
            status=normalize_appointment_status(record.get("status")),
            type=record.get("appointment_type"),
            reason=notes,
            notes=notes,
            medical_notes=notes,
            duration=_to_duration(record.get("duration")),
            priority=record.get("priority"),
            location=record.get("location"),
            doctor_is_id=doctor_is_id,
            created_at=parse_datetime(record.get("created_at")),
            updated_at=parse_datetime(record.get("updated_at")),
        )

    def build_request(self, model: Any) -> dict:
        scheduled_at = None
        day = pick(model, "date")
        if day:
            combined = combine_date_time(day, pick(model, "time"))
            if combined is None:
                logger.warning("Unparsable appointment date %r, scheduled_at not sent", day)
            else:
                scheduled_at = format_iso_utc(combined)

        assigned_to = assigned_to_id = None
        doctor = pick(model, "doctor")
        if isinstance(doctor, str):
            assigned_to_id = doctor.strip() or None
            assigned_to = assigned_to_id
        elif doctor:
            assigned_to_id = _reference_id(doctor) or None
            name = clean_str(doctor.get("name") if isinstance(doctor, dict) else getattr(doctor, "name", ""))
            assigned_to = name or assigned_to_id

        notes = pick(model, "notes") or pick(model, "reason") or pick(model, "medical_notes", "medicalNotes")

        return {
            "customer_id": _reference_id(pick(model, "patient")),
            "appointment_type": pick(model, "type"),
            "assigned_to": assigned_to,
            "assigned_to_id": assigned_to_id,
            "scheduled_at": scheduled_at,
            "duration": pick(model, "duration"),
            "status": normalize_appointment_status(pick(model, "status")).value,
            "priority": pick(model, "priority"),
            "location": pick(model, "location"),
            "notes": notes or None,
        }

    def validate(self, request: dict) -> None:
        if not request["customer_id"]:
            raise ValidationError(
                message="Customer ID (patient) is required and must be a valid ID",
                code="PATIENT_REQUIRED",
                detail={"errors": [{"field": "patient", "message": "Patient is required"}]},
            )
