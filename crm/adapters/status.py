"""
状态/标签标准化

所有状态值在这里统一：Gateway 发来的、UI 提交的，不管大小写和分隔符写法，
都先归一到封闭枚举，再按需输出 Gateway 格式（wire）或 UI 格式（display）
"""
import re
from enum import Enum


class CustomerStatus(Enum):
    """患者状态，value 为 Gateway 期望的写入格式"""
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    BOOKED = "Booked"
    FOLLOW_UP = "FollowUp"


class CampaignTag(Enum):
    """Campaign 收件人筛选标签，value 为 Gateway 格式"""
    ALL = "All"
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    BOOKED = "Booked"
    FOLLOW_UP = "FollowUp"
    NEW = "New"
    BIRTHDAY = "Birthday"


class AppointmentStatus(Enum):
    CONFIRMED = "Confirmed"
    PENDING = "Pending"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class CampaignStatus(Enum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    SENDING = "sending"
    SENT = "sent"
    FAILED = "failed"


_CUSTOMER_DISPLAY = {
    CustomerStatus.ACTIVE: "active",
    CustomerStatus.INACTIVE: "inactive",
    CustomerStatus.BOOKED: "booked",
    CustomerStatus.FOLLOW_UP: "follow-up",
}

_CAMPAIGN_TAG_LABELS = {
    CampaignTag.ALL: "All Patients",
    CampaignTag.ACTIVE: "Active",
    CampaignTag.INACTIVE: "Inactive",
    CampaignTag.BOOKED: "Booked",
    CampaignTag.FOLLOW_UP: "Follow-up",
    CampaignTag.NEW: "New Patients",
    CampaignTag.BIRTHDAY: "Birthday",
}

# 按顺序匹配：inactive 必须排在 active 前面，否则 "inactive" 会被 "active" 子串吃掉
_CUSTOMER_KEYWORDS = (
    ("inactive", CustomerStatus.INACTIVE),
    ("active", CustomerStatus.ACTIVE),
    ("booked", CustomerStatus.BOOKED),
    ("follow", CustomerStatus.FOLLOW_UP),
)

_CAMPAIGN_TAG_KEYWORDS = (
    ("inactive", CampaignTag.INACTIVE),
    ("active", CampaignTag.ACTIVE),
    ("booked", CampaignTag.BOOKED),
    ("follow", CampaignTag.FOLLOW_UP),
    ("new", CampaignTag.NEW),
    ("birthday", CampaignTag.BIRTHDAY),
    ("all", CampaignTag.ALL),
)

_APPOINTMENT_KEYWORDS = (
    ("confirmed", AppointmentStatus.CONFIRMED),
    ("pending", AppointmentStatus.PENDING),
    ("completed", AppointmentStatus.COMPLETED),
    ("cancelled", AppointmentStatus.CANCELLED),
    ("canceled", AppointmentStatus.CANCELLED),
)

_CAMPAIGN_STATUS_ALIASES = {
    "draft": CampaignStatus.DRAFT,
    "scheduled": CampaignStatus.SCHEDULED,
    "sending": CampaignStatus.SENDING,
    "sent": CampaignStatus.SENT,
    "delivered": CampaignStatus.SENT,
    "failed": CampaignStatus.FAILED,
}

_SEPARATORS = re.compile(r"[\s_\-]+")


def _squash(value) -> str:
    """小写并去掉分隔符：'Follow-up' / 'follow_up' / 'FollowUp' -> 'followup'"""
    return _SEPARATORS.sub("", str(value).strip().lower())


def _match(value, keywords):
    key = _squash(value)
    if not key:
        return None
    for keyword, member in keywords:
        if keyword in key:
            return member
    return None


def normalize_customer_status(value) -> CustomerStatus:
    """任意写法 -> CustomerStatus；空值或无法识别时默认 Active，不抛异常"""
    if isinstance(value, CustomerStatus):
        return value
    if not value:
        return CustomerStatus.ACTIVE
    return _match(value, _CUSTOMER_KEYWORDS) or CustomerStatus.ACTIVE


def to_wire_format(status) -> str:
    """写给 Gateway：Active / Inactive / Booked / FollowUp"""
    return normalize_customer_status(status).value


def to_display_format(status) -> str:
    """UI 模型：active / inactive / booked / follow-up"""
    return _CUSTOMER_DISPLAY[normalize_customer_status(status)]


def normalize_campaign_tag(value) -> CampaignTag | None:
    """任意写法 -> CampaignTag；无法识别返回 None"""
    if isinstance(value, CampaignTag):
        return value
    if not value:
        return None
    return _match(value, _CAMPAIGN_TAG_KEYWORDS)


def campaign_tag_to_wire(tag) -> str | None:
    tag = normalize_campaign_tag(tag)
    return tag.value if tag else None


def campaign_tag_label(tag) -> str | None:
    tag = normalize_campaign_tag(tag)
    return _CAMPAIGN_TAG_LABELS[tag] if tag else None


def normalize_appointment_status(value) -> AppointmentStatus:
    """Confirmed / Pending / Completed / Cancelled，无法识别时默认 Pending"""
    if isinstance(value, AppointmentStatus):
        return value
    if not value:
        return AppointmentStatus.PENDING
    return _match(value, _APPOINTMENT_KEYWORDS) or AppointmentStatus.PENDING


def normalize_campaign_status(value) -> CampaignStatus:
    if isinstance(value, CampaignStatus):
        return value
    if not value:
        return CampaignStatus.DRAFT
    return _CAMPAIGN_STATUS_ALIASES.get(str(value).strip().lower(), CampaignStatus.DRAFT)
