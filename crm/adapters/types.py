"""
UI 模型：adapter 的输出格式，views 只认识这些类型
to_dict() 输出前端使用的 camelCase JSON
"""
from dataclasses import dataclass, field, fields
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from .dates import format_iso_utc
from .status import AppointmentStatus, CampaignStatus


def _camel(name: str) -> str:
    first, *rest = name.split("_")
    return first + "".join(part.title() for part in rest)


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return format_iso_utc(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    return value


class ViewModel:
    def to_dict(self) -> dict:
        return {_camel(f.name): _jsonable(getattr(self, f.name)) for f in fields(self)}


@dataclass
class Patient(ViewModel):
    """患者（UI 模型）"""
    id: str
    name: str
    age: int = 0
    gender: str = ""  # male / female / other / ""
    phone: str = ""
    email: str = ""
    address: str = ""
    assigned_doctor: Optional[str] = None
    status: str = "active"  # active / booked / follow-up / inactive
    medical_notes: str = ""
    date_of_birth: Optional[date] = None
    last_visit: Optional[date] = None
    next_appointment: Optional[datetime] = None
    initials: str = "P"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Appointment(ViewModel):
    """
    预约（UI 模型）
    patient / doctor 可能是 id 字符串，也可能是补全后的对象 dict
    """
    id: str
    patient: Any
    doctor: Any
    date: date
    time: str  # HH:MM，24 小时制
    status: AppointmentStatus = AppointmentStatus.PENDING
    type: Optional[str] = None
    reason: Optional[str] = None
    notes: Optional[str] = None
    medical_notes: Optional[str] = None
    duration: Optional[int] = None
    priority: Optional[str] = None
    location: Optional[str] = None
    doctor_is_id: bool = False  # doctor 字段是否是 id（需要用团队列表补全姓名）
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Campaign(ViewModel):
    id: str
    name: str
    title: str
    message: str
    recipients: list = field(default_factory=list)
    recipient_tags: list = field(default_factory=list)
    recipient_count: int = 0
    status: CampaignStatus = CampaignStatus.DRAFT
    scheduled_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Template(ViewModel):
    """消息模板，content 的顺序就是消息发送顺序"""
    id: str
    name: str
    content: list = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class TeamMember(ViewModel):
    id: str
    name: str
    role: str = "staff"  # admin / doctor / staff
    department: str = ""
    specialization: str = ""
    experience: str = ""
    phone: str = ""
    status: str = "active"  # active / leave / inactive
    initials: str = "U"
    appointment_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
