"""
消息模板 Adapter：content 是有序的字符串列表（顺序即发送顺序）
"""
from typing import Any

from clinic_crm.exceptions import ValidationError

from .base import BaseRecordAdapter, clean_str, pick
from .dates import parse_datetime
from .types import Template


def _as_content(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [item if isinstance(item, str) else str(item) for item in value if item is not None]
    return [str(value)]


class TemplateAdapter(BaseRecordAdapter):
    resource = "templates"

    def transform(self, record: dict) -> Template:
        return Template(
            id=str(record["id"]).strip(),
            name=clean_str(record.get("name")),
            content=_as_content(record.get("content")),
            created_at=parse_datetime(record.get("created_at")),
            updated_at=parse_datetime(record.get("updated_at")),
        )

    def build_request(self, model: Any) -> dict:
        return {
            "name": clean_str(pick(model, "name")),
            "content": _as_content(pick(model, "content")),
            "org_id": pick(model, "org_id", "orgId"),
        }

    def validate(self, request: dict) -> None:
        if not request["name"]:
            raise ValidationError(
                message="Template name is required",
                code="INVALID_TEMPLATE",
                detail={"errors": [{"field": "name", "message": "Name is required"}]},
            )
