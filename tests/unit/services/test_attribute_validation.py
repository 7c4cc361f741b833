"""
Tests for listing attribute validation against category schemas
"""

import pytest

from app.schemas.attributes import NumberAttribute, SelectAttribute, TextAttribute, parse_attribute_schema
from app.services.attribute_validation import is_empty, is_numeric, validate_attribute, validate_attributes

BRAND_SCHEMA = {"brand": {"type": "select", "required": True, "options": ["Apple", "Samsung"]}}


class TestEmptiness:
    @pytest.mark.parametrize("value", [None, False, "", "   ", [], {}, 0, 0.0, "0"])
    def test_empty_values(self, value):
        assert is_empty(value)

    @pytest.mark.parametrize("value", ["x", "00", " 0 ", 1, -0.5, ["a"], True])
    def test_non_empty_values(self, value):
        assert not is_empty(value)


class TestNumeric:
    @pytest.mark.parametrize("value", [1, 2.5, "42", " -3.5 ", "1e3", ".5"])
    def test_numeric(self, value):
        assert is_numeric(value)

    @pytest.mark.parametrize("value", ["abc", "12abc", "", True, None])
    def test_not_numeric(self, value):
        assert not is_numeric(value)


class TestSchemaParsing:
    def test_unknown_type_is_text(self):
        schema = parse_attribute_schema({"color": {"type": "colour-picker"}, "notes": {}})
        assert isinstance(schema["color"], TextAttribute)
        assert isinstance(schema["notes"], TextAttribute)

    def test_typed_entries(self):
        schema = parse_attribute_schema({"year": {"type": "number", "min": 4}, **BRAND_SCHEMA})
        assert isinstance(schema["year"], NumberAttribute)
        assert isinstance(schema["brand"], SelectAttribute)
        assert schema["brand"].options == ["Apple", "Samsung"]

    def test_non_mapping_entry_rejected(self):
        with pytest.raises(ValueError):
            parse_attribute_schema({"brand": "select"})

    def test_empty_schema(self):
        assert parse_attribute_schema(None) == {}
        assert parse_attribute_schema({}) == {}


class TestValidateAttributes:
    def test_select_valid_option(self):
        assert validate_attributes(BRAND_SCHEMA, {"brand": "Apple"}) == {}

    def test_select_invalid_option(self):
        errors = validate_attributes(BRAND_SCHEMA, {"brand": "Nokia"})
        assert errors == {"brand": "The selected brand is invalid."}

    def test_required_missing(self):
        errors = validate_attributes(BRAND_SCHEMA, {})
        assert errors == {"brand": "The brand field is required for this category."}

    def test_required_blank_string(self):
        errors = validate_attributes(BRAND_SCHEMA, {"brand": "  "})
        assert "brand" in errors

    def test_optional_empty_skips_checks(self):
        schema = {"year": {"type": "number"}}
        assert validate_attributes(schema, {"year": ""}) == {}

    def test_number(self):
        schema = {"year": {"type": "number"}}
        assert validate_attributes(schema, {"year": "2019"}) == {}
        assert validate_attributes(schema, {"year": "twenty"}) == {"year": "The year must be a number."}

    @pytest.mark.parametrize("value", ["0", 0, 0.0])
    def test_zero_fails_required(self, value):
        schema = {"doors": {"type": "number", "required": True}}
        assert validate_attributes(schema, {"doors": value}) == {
            "doors": "The doors field is required for this category."
        }

    def test_optional_zero_skips_checks(self):
        schema = {"code": {"type": "text", "min": 2}}
        assert validate_attributes(schema, {"code": "0"}) == {}

    def test_email(self):
        schema = {"contact": {"type": "email"}}
        assert validate_attributes(schema, {"contact": "seller@example.com"}) == {}
        assert validate_attributes(schema, {"contact": "not-an-email"}) == {
            "contact": "The contact must be a valid email address."
        }

    def test_url(self):
        schema = {"website": {"type": "url"}}
        assert validate_attributes(schema, {"website": "https://example.com/item"}) == {}
        assert validate_attributes(schema, {"website": "example"}) == {
            "website": "The website must be a valid URL."
        }

    def test_length_bounds_apply_to_strings(self):
        schema = {"model": {"type": "text", "min": 2, "max": 5}}
        assert validate_attributes(schema, {"model": "X"}) == {"model": "The model must be at least 2 characters."}
        assert validate_attributes(schema, {"model": "Galaxy S"}) == {
            "model": "The model must not exceed 5 characters."
        }
        assert validate_attributes(schema, {"model": "S24"}) == {}

    def test_length_bounds_apply_to_numbers(self):
        # 1900 as a bound means four characters, not a minimum value
        schema = {"year": {"type": "number", "min": 4, "max": 4}}
        assert validate_attributes(schema, {"year": 2019}) == {}
        assert validate_attributes(schema, {"year": 19}) == {"year": "The year must be at least 4 characters."}

    def test_length_error_wins_over_type_error(self):
        schema = {"year": {"type": "number", "max": 4}}
        assert validate_attributes(schema, {"year": "abcdefg"}) == {"year": "The year must not exceed 4 characters."}

    def test_undeclared_keys_ignored(self):
        assert validate_attributes(BRAND_SCHEMA, {"brand": "Samsung", "colour": "red"}) == {}

    def test_no_schema_accepts_anything(self):
        assert validate_attributes(None, {"anything": "goes"}) == {}

    def test_multiple_errors(self):
        schema = {**BRAND_SCHEMA, "year": {"type": "number", "required": True}}
        errors = validate_attributes(schema, {"brand": "Nokia"})
        assert set(errors) == {"brand", "year"}


def test_validate_single_attribute():
    spec = parse_attribute_schema({"brand": BRAND_SCHEMA["brand"]})["brand"]
    assert validate_attribute("brand", spec, "Samsung") is None
    assert validate_attribute("brand", spec, None) == "The brand field is required for this category."
