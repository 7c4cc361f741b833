"""
Validation of submitted listing data against a category attribute schema
"""

import re
from typing import Any, Callable, Dict, Mapping, Optional

from pydantic import AnyUrl, EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from app.schemas.attributes import (
    AttributeSpec,
    AttributeSpecBase,
    EmailAttribute,
    NumberAttribute,
    SelectAttribute,
    TextAttribute,
    UrlAttribute,
    parse_attribute_schema,
)

# Integers, decimals and exponents with optional sign and surrounding whitespace
NUMERIC_PATTERN = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")

_email_adapter = TypeAdapter(EmailStr)
_url_adapter = TypeAdapter(AnyUrl)


def is_empty(value: Any) -> bool:
    """
    A value that does not satisfy a required field

    Zero counts as empty, whether submitted as 0, 0.0 or "0".
    """
    if value is None or value is False:
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    if isinstance(value, str):
        return not value.strip() or value == "0"
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    return isinstance(value, str) and bool(NUMERIC_PATTERN.match(value))


def _check_text(key: str, spec: TextAttribute, value: Any) -> Optional[str]:
    return None


def _check_number(key: str, spec: NumberAttribute, value: Any) -> Optional[str]:
    if not is_numeric(value):
        return f"The {key} must be a number."
    return None


def _check_email(key: str, spec: EmailAttribute, value: Any) -> Optional[str]:
    try:
        _email_adapter.validate_python(str(value))
    except PydanticValidationError:
        return f"The {key} must be a valid email address."
    return None


def _check_url(key: str, spec: UrlAttribute, value: Any) -> Optional[str]:
    try:
        url = _url_adapter.validate_python(str(value))
    except PydanticValidationError:
        return f"The {key} must be a valid URL."
    if not url.host:
        return f"The {key} must be a valid URL."
    return None


def _check_select(key: str, spec: SelectAttribute, value: Any) -> Optional[str]:
    if value in spec.options or str(value) in (str(option) for option in spec.options):
        return None
    return f"The selected {key} is invalid."


_TYPE_CHECKS: Dict[type, Callable[[str, Any, Any], Optional[str]]] = {
    TextAttribute: _check_text,
    NumberAttribute: _check_number,
    EmailAttribute: _check_email,
    UrlAttribute: _check_url,
    SelectAttribute: _check_select,
}


def _format_bound(bound: float) -> str:
    return str(int(bound)) if float(bound).is_integer() else str(bound)


def _check_length(key: str, spec: AttributeSpecBase, value: Any) -> Optional[str]:
    # Bounds are string lengths for every type, numbers included
    length = len(str(value))
    error = None
    if spec.min is not None and length < spec.min:
        error = f"The {key} must be at least {_format_bound(spec.min)} characters."
    if spec.max is not None and length > spec.max:
        error = f"The {key} must not exceed {_format_bound(spec.max)} characters."
    return error


def validate_attribute(key: str, spec: AttributeSpec, value: Any) -> Optional[str]:
    """
    Validate one submitted value against its schema entry.

    Returns an error message, or None when the value is acceptable.
    Empty optional values are accepted without further checks. A length
    error takes precedence over a type error for the same field.
    """
    if is_empty(value):
        if spec.required:
            return f"The {key} field is required for this category."
        return None

    error = _TYPE_CHECKS[type(spec)](key, spec, value)
    return _check_length(key, spec, value) or error


def validate_attributes(attributes: Optional[Mapping[str, Any]], data: Mapping[str, Any]) -> Dict[str, str]:
    """
    Validate submitted listing data against a category's attribute schema.

    Keys in ``data`` that the schema does not define are ignored.
    Returns a mapping of field key to error message; empty means valid.
    """
    errors: Dict[str, str] = {}
    for key, spec in parse_attribute_schema(attributes).items():
        error = validate_attribute(key, spec, data.get(key))
        if error:
            errors[key] = error
    return errors
