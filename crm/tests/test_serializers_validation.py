"""
Unit tests for request parsing and form validation
"""
import json

import pytest

from clinic_crm.exceptions import ValidationError
from crm.serializers import (
    format_phone_for_api,
    parse_appointment_request,
    parse_campaign_request,
    parse_json_body,
    parse_patient_request,
    parse_template_request,
    validate_patient_data,
)


def _fields(exc_info):
    return {e["field"] for e in exc_info.value.detail["errors"]}


@pytest.fixture
def patient_form():
    return {
        "name": "Mary O'Neil",
        "phone": "98765 43210",
        "email": "mary@example.com",
        "age": "34",
        "gender": "female",
        "address": "12/B Main St, Pune",
    }


class TestParseJsonBody:

    def test_invalid_json(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_json_body(b"not json")
        assert exc_info.value.code == "INVALID_JSON"

    def test_non_object(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_json_body(b"[1, 2]")
        assert exc_info.value.code == "INVALID_REQUEST"

    def test_empty_body_is_empty_object(self):
        assert parse_json_body(b"") == {}


class TestPatientValidation:

    def test_valid_form_formats_phone(self, patient_form):
        data = parse_patient_request(json.dumps(patient_form).encode())
        assert data["phone"] == "919876543210"

    def test_missing_required_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_patient_data({"name": "Mary"})
        assert exc_info.value.code == "VALIDATION_ERROR"
        assert _fields(exc_info) == {"phone", "email", "age"}

    def test_partial_update_only_checks_present_fields(self):
        validate_patient_data({"age": "40"}, partial=True)

    @pytest.mark.parametrize("name", ["J", "John3", "x" * 101])
    def test_invalid_names(self, patient_form, name):
        patient_form["name"] = name
        with pytest.raises(ValidationError) as exc_info:
            validate_patient_data(patient_form)
        assert _fields(exc_info) == {"name"}

    @pytest.mark.parametrize("phone", ["12345", "98765abcde", "123456789012"])
    def test_invalid_phones(self, patient_form, phone):
        patient_form["phone"] = phone
        with pytest.raises(ValidationError) as exc_info:
            validate_patient_data(patient_form)
        assert _fields(exc_info) == {"phone"}

    def test_phone_with_country_code_is_accepted(self, patient_form):
        patient_form["phone"] = "+91 98765-43210"
        validate_patient_data(patient_form)

    @pytest.mark.parametrize("age", ["0", "100", "abc", "", 120])
    def test_invalid_ages(self, patient_form, age):
        patient_form["age"] = age
        with pytest.raises(ValidationError) as exc_info:
            validate_patient_data(patient_form)
        assert _fields(exc_info) == {"age"}

    @pytest.mark.parametrize("email", ["mary", "a@@b.com", "@b.com", "mary@example", "mary@.com", "mary@example.c"])
    def test_invalid_emails(self, patient_form, email):
        patient_form["email"] = email
        with pytest.raises(ValidationError) as exc_info:
            validate_patient_data(patient_form)
        assert _fields(exc_info) == {"email"}

    def test_invalid_address_and_gender(self, patient_form):
        patient_form["address"] = "Main St <script>"
        patient_form["gender"] = "robot"
        with pytest.raises(ValidationError) as exc_info:
            validate_patient_data(patient_form)
        assert _fields(exc_info) == {"address", "gender"}

    def test_empty_address_is_allowed(self, patient_form):
        patient_form["address"] = ""
        validate_patient_data(patient_form)

    def test_format_phone_for_api(self):
        assert format_phone_for_api("98765 43210") == "919876543210"
        assert format_phone_for_api("+91 98765 43210") == "919876543210"
        assert format_phone_for_api("") == ""


class TestOtherRequests:

    def test_appointment_requires_patient_and_date(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_appointment_request(b'{"time": "10:00"}')
        assert _fields(exc_info) == {"patient", "date"}

    def test_appointment_time_and_duration(self):
        body = json.dumps({"patient": "c1", "date": "2024-03-10", "time": "25:00", "duration": -5}).encode()
        with pytest.raises(ValidationError) as exc_info:
            parse_appointment_request(body)
        assert _fields(exc_info) == {"time", "duration"}

    def test_appointment_partial_update(self):
        assert parse_appointment_request(b'{"status": "cancelled"}', partial=True) == {"status": "cancelled"}

    def test_appointment_invalid_date(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_appointment_request(b'{"patient": "c1", "date": "2024-02-30"}')
        assert _fields(exc_info) == {"date"}

    def test_template(self):
        assert parse_template_request(b'{"name": "T", "content": "Hello"}')["name"] == "T"
        with pytest.raises(ValidationError) as exc_info:
            parse_template_request(b'{"name": "", "content": [1]}')
        assert _fields(exc_info) == {"name", "content"}

    def test_campaign(self):
        body = json.dumps({"message": "", "recipientTags": "Active", "scheduledDate": "tomorrow"}).encode()
        with pytest.raises(ValidationError) as exc_info:
            parse_campaign_request(body)
        assert _fields(exc_info) == {"message", "recipientTags", "scheduledDate"}
