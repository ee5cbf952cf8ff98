"""
Unit tests for medical history decoding/encoding
"""
import json

import pytest

from crm.adapters.medical_history import (
    ArrayOfPairs,
    Empty,
    FlatObject,
    PlainString,
    Scalar,
    classify,
    encode_medical_history,
    parse_medical_history,
)


class TestClassify:
    """Raw values are mapped onto exactly one variant."""

    @pytest.mark.parametrize("raw", [None, "", [], {}])
    def test_empty(self, raw):
        assert classify(raw) == Empty()

    def test_plain_string(self):
        assert classify("no allergies") == PlainString("no allergies")

    def test_json_string_is_decoded(self):
        raw = json.dumps([{"Key": "notes", "Value": "x"}])
        assert classify(raw) == ArrayOfPairs([{"Key": "notes", "Value": "x"}])

    def test_object(self):
        assert classify({"notes": "x"}) == FlatObject({"notes": "x"})

    def test_malformed_json_is_plain_text(self):
        assert classify("[not json") == PlainString("[not json")

    def test_scalar(self):
        assert classify(42) == Scalar(42)


class TestParseMedicalHistory:

    def test_array_of_pairs_notes(self):
        assert parse_medical_history([{"Key": "notes", "Value": "penicillin allergy"}]) == "penicillin allergy"

    def test_json_encoded_array(self):
        raw = '[{"Key":"notes","Value":"penicillin allergy"}]'
        assert parse_medical_history(raw) == "penicillin allergy"

    def test_notes_pair_found_after_other_pairs(self):
        raw = [{"Key": "allergy", "Value": "dust"}, {"key": "Notes", "value": "asthma"}]
        assert parse_medical_history(raw) == "asthma"

    def test_first_value_when_no_notes_pair(self):
        assert parse_medical_history([{"Key": "allergy", "Value": "dust"}]) == "dust"

    def test_notes_field_inside_array(self):
        assert parse_medical_history([{"notes": "diabetic"}]) == "diabetic"

    def test_flat_object(self):
        assert parse_medical_history({"notes": "diabetic"}) == "diabetic"
        assert parse_medical_history({"Key": "notes", "Value": "diabetic"}) == "diabetic"

    def test_object_falls_back_to_first_string_value(self):
        assert parse_medical_history({"summary": "stable"}) == "stable"

    def test_object_without_strings_is_serialized(self):
        assert parse_medical_history({"count": 1}) == '{"count": 1}'

    def test_plain_string_is_idempotent(self):
        once = parse_medical_history("penicillin allergy")
        assert parse_medical_history(once) == once == "penicillin allergy"

    @pytest.mark.parametrize("raw", [None, "", [], {}, [{"Key": "notes"}]])
    def test_empty_inputs(self, raw):
        assert parse_medical_history(raw) == ""

    def test_scalar(self):
        assert parse_medical_history(7) == "7"


class TestEncodeMedicalHistory:

    def test_plain_text(self):
        assert encode_medical_history("penicillin allergy") == {"notes": "penicillin allergy"}

    @pytest.mark.parametrize("notes", [None, "", "   "])
    def test_empty_is_not_written(self, notes):
        assert encode_medical_history(notes) is None

    def test_object_json_passes_through(self):
        assert encode_medical_history('{"notes": "x", "allergy": "dust"}') == {"notes": "x", "allergy": "dust"}

    def test_pairs_json_uses_first_value(self):
        assert encode_medical_history('[{"Key":"notes","Value":"x"}]') == {"notes": "x"}

    def test_decoded_text_encodes_back_to_notes(self):
        text = parse_medical_history([{"Key": "notes", "Value": "asthma"}])
        assert encode_medical_history(text) == {"notes": "asthma"}
