"""
病历（medical_history）解析与编码

Gateway 返回的 medical_history 有多种形态：
- 键值对数组：[{"Key": "notes", "Value": "text"}]
- 扁平对象：{"notes": "text"} 或 {"Key": "notes", "Value": "text"}
- 纯文本："text"
- JSON 字符串（可能多层编码）："[{\"Key\":\"notes\",\"Value\":\"text\"}]"

先用 classify 把原始值归到一个确定的形态，再按形态取出展示用的文本。
写回 Gateway 时统一使用扁平对象 {"notes": text}。
"""
import json
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Empty:
    """空值：None、空字符串、空数组、空对象"""


@dataclass(frozen=True)
class PlainString:
    text: str


@dataclass(frozen=True)
class ArrayOfPairs:
    items: list


@dataclass(frozen=True)
class FlatObject:
    data: dict


@dataclass(frozen=True)
class Scalar:
    """数字、布尔等其他类型"""
    value: Any


MedicalHistory = Empty | PlainString | ArrayOfPairs | FlatObject | Scalar


def _looks_like_json(text: str) -> bool:
    s = text.strip()
    return s.startswith("[") or s.startswith("{")


def classify(raw: Any) -> MedicalHistory:
    """
    把原始值归类
    看起来像 JSON 的字符串会先解析再递归归类（处理多层编码）；
    解析失败时按纯文本处理
    """
    if not raw:
        return Empty()
    if isinstance(raw, str):
        if _looks_like_json(raw):
            try:
                parsed = json.loads(raw)
            except json.JSONDecodeError:
                return PlainString(raw)
            return classify(parsed)
        return PlainString(raw)
    if isinstance(raw, list):
        return ArrayOfPairs(raw)
    if isinstance(raw, dict):
        return FlatObject(raw)
    return Scalar(raw)


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def _key_value(entry: dict):
    key = entry.get("Key") or entry.get("key")
    value = entry.get("Value") or entry.get("value")
    return key, value


def _is_notes_pair(entry: dict) -> bool:
    key, value = _key_value(entry)
    return bool(key and value and str(key).lower() == "notes")


def _notes_field(entry: dict):
    return entry.get("notes") or entry.get("Notes")


def _text_from_pairs(items: list) -> str:
    entries = [item for item in items if isinstance(item, dict)]

    for entry in entries:
        if _is_notes_pair(entry):
            return _stringify(_key_value(entry)[1])
    for entry in entries:
        value = _key_value(entry)[1]
        if value:
            return _stringify(value)
    for entry in entries:
        notes = _notes_field(entry)
        if notes:
            return _stringify(notes)
    return ""


def _text_from_object(data: dict) -> str:
    if _is_notes_pair(data):
        return _stringify(_key_value(data)[1])

    notes = _notes_field(data)
    if notes:
        return _stringify(notes)

    value = _key_value(data)[1]
    if value:
        return _stringify(value)

    for value in data.values():
        if isinstance(value, str) and value.strip():
            return value
    return json.dumps(data, ensure_ascii=False)


def parse_medical_history(raw: Any) -> str:
    """Gateway 的 medical_history -> 展示用纯文本；任何输入都不抛异常"""
    variant = classify(raw)
    if isinstance(variant, Empty):
        return ""
    if isinstance(variant, PlainString):
        return variant.text
    if isinstance(variant, ArrayOfPairs):
        return _text_from_pairs(variant.items)
    if isinstance(variant, FlatObject):
        return _text_from_object(variant.data)
    return _stringify(variant.value)


def encode_medical_history(notes: Any) -> dict | None:
    """
    展示文本 -> Gateway 的 medical_history（扁平对象）
    - 空文本返回 None（字段不写）
    - 文本本身是键值对数组 JSON 时，取第一项的 Value
    - 文本本身是对象 JSON 时，原样透传
    """
    if isinstance(notes, str):
        notes = notes.strip()
    variant = classify(notes)
    if isinstance(variant, Empty):
        return None
    if isinstance(variant, FlatObject):
        return variant.data
    if isinstance(variant, ArrayOfPairs):
        first = variant.items[0] if isinstance(variant.items[0], dict) else {}
        value = _key_value(first)[1]
        return {"notes": _stringify(value) if value else _stringify(notes)}
    if isinstance(variant, PlainString):
        return {"notes": variant.text}
    return {"notes": _stringify(variant.value)}
