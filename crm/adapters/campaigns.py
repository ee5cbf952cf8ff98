"""
Campaign Adapter：Gateway campaign <-> UI Campaign
收件人标签统一转成 Gateway 格式（Active, FollowUp, New ...）
"""
from datetime import datetime, timezone
from typing import Any, Callable

from clinic_crm.exceptions import ValidationError

from .base import BaseRecordAdapter, clean_str, pick
from .dates import format_iso_utc, parse_datetime
from .status import CampaignStatus, campaign_tag_to_wire, normalize_campaign_status
from .types import Campaign


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_tags(tags: Any) -> list:
    """去掉无法识别的标签，去重并保持顺序"""
    if not isinstance(tags, (list, tuple)):
        return []
    result = []
    for tag in tags:
        wire = campaign_tag_to_wire(tag)
        if wire and wire not in result:
            result.append(wire)
    return result


def _recipients(value: Any) -> list:
    if not isinstance(value, (list, tuple)):
        return []
    return [clean_str(r) for r in value if clean_str(r)]


class CampaignAdapter(BaseRecordAdapter):
    resource = "campaigns"

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self._clock = clock

    def transform(self, record: dict) -> Campaign:
        name = clean_str(record.get("name"))
        recipients = _recipients(record.get("recipients"))
        return Campaign(
            id=str(record["id"]).strip(),
            name=name,
            title=name,
            message=clean_str(record.get("message")),
            recipients=recipients,
            recipient_tags=normalize_tags(record.get("tags")),
            recipient_count=len(recipients),
            status=normalize_campaign_status(record.get("status")),
            scheduled_date=parse_datetime(record.get("scheduled_at")),
            created_at=parse_datetime(record.get("created_at")),
            updated_at=parse_datetime(record.get("updated_at")),
        )

    def build_request(self, model: Any) -> dict:
        scheduled = parse_datetime(pick(model, "scheduled_date", "scheduledDate"))

        if scheduled is None:
            status = CampaignStatus.DRAFT
        elif scheduled > self._clock():
            status = CampaignStatus.SCHEDULED
        else:
            status = normalize_campaign_status(pick(model, "status"))

        return {
            "name": clean_str(pick(model, "title") or pick(model, "name")),
            "message": clean_str(pick(model, "message")),
            "tags": normalize_tags(pick(model, "recipient_tags", "recipientTags", "tags")),
            "recipients": _recipients(pick(model, "recipients")),
            "is_scheduled": scheduled is not None,
            "scheduled_at": format_iso_utc(scheduled) if scheduled else None,
            "status": status.value,
        }

    def validate(self, request: dict) -> None:
        if not request["message"]:
            raise ValidationError(
                message="Campaign message is required",
                code="INVALID_CAMPAIGN",
                detail={"errors": [{"field": "message", "message": "Message is required"}]},
            )
