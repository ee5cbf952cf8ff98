"""
团队成员 Adapter：Gateway team <-> UI TeamMember
"""
from typing import Any

from clinic_crm.exceptions import ValidationError

from .base import BaseRecordAdapter, clean_str, pick
from .dates import parse_datetime
from .types import TeamMember

_ROLES = {"admin", "doctor", "staff"}

_STATUSES = {
    "active": "active",
    "leave": "leave",
    "onleave": "leave",
    "on leave": "leave",
    "on-leave": "leave",
    "inactive": "inactive",
}


def normalize_role(value: Any) -> str:
    role = clean_str(value).lower()
    return role if role in _ROLES else "staff"


def normalize_member_status(value: Any) -> str:
    return _STATUSES.get(clean_str(value).lower(), "active")


def member_initials(name: str) -> str:
    """首个词和最后一个词的首字母；空名字返回 'U'"""
    words = clean_str(name).split()
    if not words:
        return "U"
    if len(words) == 1:
        return words[0][0].upper()
    return (words[0][0] + words[-1][0]).upper()


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


class TeamAdapter(BaseRecordAdapter):
    resource = "teams"

    def transform(self, record: dict) -> TeamMember:
        name = clean_str(record.get("name"))
        return TeamMember(
            id=str(record["id"]).strip(),
            name=name,
            role=normalize_role(record.get("role")),
            department=clean_str(record.get("department")),
            specialization=clean_str(record.get("specialization")),
            experience=clean_str(record.get("experience")),
            phone=clean_str(record.get("phone")),
            status=normalize_member_status(record.get("status")),
            initials=member_initials(name),
            appointment_count=_to_int(record.get("appointment_count")),
            created_at=parse_datetime(record.get("created_at")),
            updated_at=parse_datetime(record.get("updated_at")),
        )

    def build_request(self, model: Any) -> dict:
        # Gateway 的 additional_info 写入时要求 JSON 对象
        additional_info = pick(model, "additional_info", "additionalInfo")
        if additional_info is not None and not isinstance(additional_info, dict):
            additional_info = {"notes": clean_str(additional_info)}

        return {
            "name": clean_str(pick(model, "name")),
            "org_id": pick(model, "org_id", "orgId"),
            "role": normalize_role(pick(model, "role")),
            "status": normalize_member_status(pick(model, "status")),
            "department": clean_str(pick(model, "department")) or None,
            "specialization": clean_str(pick(model, "specialization")) or None,
            "experience": clean_str(pick(model, "experience")) or None,
            "phone": clean_str(pick(model, "phone")) or None,
            "additional_info": additional_info,
        }

    def validate(self, request: dict) -> None:
        if not request["name"]:
            raise ValidationError(
                message="Team member name is required",
                code="INVALID_TEAM_MEMBER",
                detail={"errors": [{"field": "name", "message": "Name is required"}]},
            )
