"""
请求体解析和表单校验（前端 -> 本服务）
校验失败统一抛出 ValidationError，detail.errors 包含所有字段错误
"""
import json
import re

from clinic_crm.exceptions import ValidationError

from .adapters.dates import parse_datetime, resolve_day

PATIENT_REQUIRED_FIELDS = ["name", "phone", "email", "age"]

# 只允许字母、空格、连字符、撇号，不允许数字
NAME_PATTERN = re.compile(r"^[a-zA-Z\s'-]+$")
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
ADDRESS_PATTERN = re.compile(r"^[a-zA-Z0-9\s.,'\-/#]+$")
TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")
PHONE_SEPARATORS = re.compile(r"[\s\-()+]")
GENDERS = {"male", "female", "other", "m", "f", "o"}


def _validate_name(value):
    if not isinstance(value, str) or not value.strip():
        return "Name is required"
    s = value.strip()
    if len(s) < 2:
        return "Name must be at least 2 characters"
    if len(s) > 100:
        return "Name must be less than 100 characters"
    if not NAME_PATTERN.match(s):
        return "Name can only contain letters, spaces, hyphens, and apostrophes. Numbers are not allowed."
    return None


def _phone_digits(value: str) -> str:
    digits = PHONE_SEPARATORS.sub("", value.strip())
    # 带 91 国家码时去掉（+91 98765 43210）
    if len(digits) == 12 and digits.startswith("91"):
        digits = digits[2:]
    return digits


def _validate_phone(value):
    if not isinstance(value, str) or not value.strip():
        return "Phone number is required"
    digits = _phone_digits(value)
    if not digits.isdigit():
        return "Phone number can only contain digits. Letters are not allowed."
    if len(digits) != 10:
        return "Phone number must be exactly 10 digits"
    return None


def _validate_age(value):
    if value is None or (isinstance(value, str) and not value.strip()):
        return "Age is required"
    s = str(value).strip()
    if not s.isdigit():
        return "Age can only contain digits. Letters are not allowed."
    age = int(s)
    if age < 1:
        return "Age must be at least 1"
    if age > 99 or len(s) > 2:
        return "Age must be maximum 2 digits (1-99)"
    return None


def _validate_email(value):
    if not isinstance(value, str) or not value.strip():
        return "Email address is required"
    s = value.strip()
    if len(s) > 255:
        return "Email must be less than 255 characters"
    if s.count("@") != 1:
        return "Email must contain exactly one @ symbol (e.g., name@gmail.com)"
    local_part, domain = s.split("@")
    if not local_part or not domain:
        return "Email format is invalid. Use format: name@domain.com"
    if "." not in domain or domain.startswith(".") or domain.endswith("."):
        return "Email domain must include a domain extension (e.g., .com, .in, .org)"
    if not EMAIL_PATTERN.match(s):
        return "Please enter a valid email address (e.g., name@gmail.com)"
    return None


def _validate_address(value):
    """地址可选，空值合法"""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if not isinstance(value, str):
        return "Address must be a string"
    if len(value) > 500:
        return "Address must be less than 500 characters"
    if not ADDRESS_PATTERN.match(value):
        return "Address contains invalid characters"
    return None


def _validate_gender(value):
    if value is None or value == "":
        return None
    if not isinstance(value, str) or value.strip().lower() not in GENDERS:
        return "Gender must be male, female or other"
    return None


def _validate_date(value):
    if value is None or value == "":
        return None
    if resolve_day(value) is None:
        return "Date must be a valid date (YYYY-MM-DD)"
    return None


def _validate_time(value):
    if value is None or value == "":
        return None
    match = TIME_PATTERN.match(str(value).strip())
    if not match or int(match.group(1)) > 23 or int(match.group(2)) > 59:
        return "Time must be in HH:MM (24-hour) format"
    return None


def _validate_duration(value):
    if value is None or value == "":
        return None
    if isinstance(value, bool) or not str(value).strip().isdigit() or int(value) <= 0:
        return "Duration must be a positive number of minutes"
    return None


def format_phone_for_api(phone: str) -> str:
    """Gateway 要求 91 前缀（无加号）+ 10 位号码"""
    if not phone:
        return ""
    digits = re.sub(r"\D", "", _phone_digits(phone))[:10]
    return f"91{digits}"


def _raise_if_errors(errors):
    if errors:
        raise ValidationError(
            message="数据格式校验失败",
            code="VALIDATION_ERROR",
            detail={"errors": errors},
        )


def _require_object(data):
    if not isinstance(data, dict):
        raise ValidationError(
            message="请求体必须是 JSON 对象",
            code="INVALID_REQUEST",
            detail={"errors": [{"field": "_", "message": "请求体必须是 JSON 对象"}]},
        )


def _run_validators(data, validators, errors):
    for field, validator in validators:
        if field in data:
            msg = validator(data[field])
            if msg:
                errors.append({"field": field, "message": msg})


def validate_patient_data(data, partial=False):
    """
    校验患者表单
    partial=True（更新）时只校验出现的字段
    """
    _require_object(data)
    errors = []
    if not partial:
        for field in PATIENT_REQUIRED_FIELDS:
            if field not in data:
                errors.append({"field": field, "message": "该字段为必填"})

    _run_validators(data, [
        ("name", _validate_name),
        ("phone", _validate_phone),
        ("age", _validate_age),
        ("email", _validate_email),
        ("address", _validate_address),
        ("gender", _validate_gender),
        ("dateOfBirth", _validate_date),
        ("lastVisit", _validate_date),
    ], errors)
    _raise_if_errors(errors)


def validate_appointment_data(data, partial=False):
    _require_object(data)
    errors = []
    if not partial:
        for field in ("patient", "date"):
            if not data.get(field):
                errors.append({"field": field, "message": "该字段为必填"})

    _run_validators(data, [
        ("date", _validate_date),
        ("time", _validate_time),
        ("duration", _validate_duration),
    ], errors)
    _raise_if_errors(errors)


def validate_template_data(data):
    _require_object(data)
    errors = []
    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        errors.append({"field": "name", "message": "name 不能为空"})
    content = data.get("content")
    if isinstance(content, str):
        content = [content]
    if not isinstance(content, list) or not content:
        errors.append({"field": "content", "message": "content 必须是非空的字符串列表"})
    elif not all(isinstance(item, str) for item in content):
        errors.append({"field": "content", "message": "content 只能包含字符串"})
    _raise_if_errors(errors)


def validate_campaign_data(data):
    _require_object(data)
    errors = []
    message = data.get("message")
    if not isinstance(message, str) or not message.strip():
        errors.append({"field": "message", "message": "message 不能为空"})
    tags = data.get("recipientTags")
    if tags is not None and not isinstance(tags, list):
        errors.append({"field": "recipientTags", "message": "recipientTags 必须是列表"})
    scheduled = data.get("scheduledDate")
    if scheduled and parse_datetime(scheduled) is None:
        errors.append({"field": "scheduledDate", "message": "scheduledDate 必须是合法的 ISO 时间"})
    _raise_if_errors(errors)


def parse_json_body(body):
    """
    解析 POST/PUT body (JSON) -> dict
    JSON 格式错误时抛出 ValidationError
    """
    try:
        data = json.loads(body or b"{}")
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError(
            message="Invalid JSON format",
            code="INVALID_JSON",
            detail={"error": str(e)},
        )
    _require_object(data)
    return data


def parse_patient_request(body, partial=False):
    """解析并校验患者表单；手机号转成 Gateway 格式"""
    data = parse_json_body(body)
    validate_patient_data(data, partial=partial)
    if data.get("phone"):
        data["phone"] = format_phone_for_api(data["phone"])
    return data


def parse_appointment_request(body, partial=False):
    data = parse_json_body(body)
    validate_appointment_data(data, partial=partial)
    return data


def parse_template_request(body):
    data = parse_json_body(body)
    validate_template_data(data)
    return data


def parse_campaign_request(body):
    data = parse_json_body(body)
    validate_campaign_data(data)
    return data


def parse_login_request(body):
    """登录：user_name（也接受 username）+ password"""
    data = parse_json_body(body)
    _require_object(data)
    user_name = data.get("user_name") or data.get("username")
    password = data.get("password")
    errors = []
    if not isinstance(user_name, str) or not user_name.strip():
        errors.append({"field": "user_name", "message": "用户名不能为空"})
    if not isinstance(password, str) or not password:
        errors.append({"field": "password", "message": "密码不能为空"})
    _raise_if_errors(errors)
    return {"user_name": user_name.strip(), "password": password}
