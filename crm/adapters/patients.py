"""
患者 Adapter：Gateway customer <-> UI Patient
"""
from typing import Any

from clinic_crm.exceptions import ValidationError

from .base import BaseRecordAdapter, clean_str, pick
from .dates import format_ymd, parse_date, parse_datetime
from .medical_history import encode_medical_history, parse_medical_history
from .status import to_display_format, to_wire_format
from .types import Patient

_GENDERS = {
    "m": "male",
    "male": "male",
    "f": "female",
    "female": "female",
    "o": "other",
    "other": "other",
}


def normalize_gender(value: Any) -> str:
    """M / male / Male -> 'male'；无法识别返回 ''"""
    return _GENDERS.get(clean_str(value).lower(), "")


def gender_to_wire(value: Any) -> str | None:
    """写给 Gateway：Male / Female / Other；无法识别时不写"""
    gender = normalize_gender(value)
    return gender.capitalize() if gender else None


def split_name(name: str) -> tuple[str, str]:
    """'John van Doe' -> ('John', 'van Doe')；单个词时 last name 为 ''"""
    parts = clean_str(name).split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def initials_for(first_name: str, last_name: str) -> str:
    initials = (first_name[:1] + last_name[:1]).upper()
    return initials or "P"


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


class PatientAdapter(BaseRecordAdapter):
    """
    Gateway customer 字段：first_name, last_name, email, phone, address, age, gender,
    assigned_to, status, medical_history, date_of_birth, last_visit, next_visit
    """

    resource = "patients"

    def transform(self, record: dict) -> Patient:
        first_name = clean_str(record.get("first_name"))
        last_name = clean_str(record.get("last_name"))

        return Patient(
            id=str(record["id"]).strip(),
            name=f"{first_name} {last_name}".strip(),
            age=_to_int(record.get("age")),
            gender=normalize_gender(record.get("gender")),
            phone=clean_str(record.get("phone")),
            email=clean_str(record.get("email")),
            address=clean_str(record.get("address")),
            assigned_doctor=clean_str(record.get("assigned_to")) or None,
            status=to_display_format(record.get("status")),
            medical_notes=parse_medical_history(record.get("medical_history")),
            date_of_birth=parse_date(record.get("date_of_birth")),
            last_visit=parse_date(record.get("last_visit")),
            next_appointment=parse_datetime(record.get("next_visit")),
            initials=initials_for(first_name, last_name),
            created_at=parse_datetime(record.get("created_at")),
            updated_at=parse_datetime(record.get("updated_at")),
        )

    def build_request(self, model: Any) -> dict:
        first_name, last_name = split_name(pick(model, "name", default=""))
        if not first_name:
            first_name = clean_str(pick(model, "first_name", "firstName"))
            last_name = clean_str(pick(model, "last_name", "lastName"))

        age = _to_int(pick(model, "age"))
        address = pick(model, "address")

        return {
            "first_name": first_name,
            "last_name": last_name,
            "email": clean_str(pick(model, "email")),
            "phone": clean_str(pick(model, "phone")),
            "address": clean_str(address) if address is not None else None,
            "age": age or None,
            "gender": gender_to_wire(pick(model, "gender")),
            "assigned_to": clean_str(pick(model, "assigned_doctor", "assignedDoctor")) or None,
            "status": to_wire_format(pick(model, "status")),
            "medical_history": encode_medical_history(pick(model, "medical_notes", "medicalNotes")),
            "date_of_birth": format_ymd(pick(model, "date_of_birth", "dateOfBirth")),
            "last_visit": format_ymd(pick(model, "last_visit", "lastVisit")),
        }

    def validate(self, request: dict) -> None:
        if not request["first_name"]:
            raise ValidationError(
                message="Patient name is required",
                code="INVALID_PATIENT",
                detail={"errors": [{"field": "name", "message": "Name is required"}]},
            )
