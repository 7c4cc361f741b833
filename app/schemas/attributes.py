"""
Dynamic per-category attribute schema

A category's ``attributes`` column maps an attribute key to a schema entry.
Entries are parsed into a tagged union keyed on ``type``; unknown or missing
types are treated as plain text.
"""

from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class AttributeSpecBase(BaseModel):
    """Fields shared by every attribute type"""

    model_config = ConfigDict(extra="allow")

    label: Optional[str] = None
    required: bool = False
    min: Optional[Union[int, float]] = None
    max: Optional[Union[int, float]] = None
    placeholder: Optional[str] = None
    help_text: Optional[str] = None


class TextAttribute(AttributeSpecBase):
    type: Literal["text", "textarea"] = "text"


class NumberAttribute(AttributeSpecBase):
    type: Literal["number"] = "number"
    step: Optional[Union[int, float]] = None


class SelectAttribute(AttributeSpecBase):
    type: Literal["select"] = "select"
    options: List[Any] = Field(default_factory=list)


class EmailAttribute(AttributeSpecBase):
    type: Literal["email"] = "email"


class UrlAttribute(AttributeSpecBase):
    type: Literal["url"] = "url"


AttributeSpec = Annotated[
    Union[TextAttribute, NumberAttribute, SelectAttribute, EmailAttribute, UrlAttribute],
    Field(discriminator="type"),
]

ATTRIBUTE_TYPES = frozenset({"text", "textarea", "number", "select", "email", "url"})

_spec_adapter: TypeAdapter = TypeAdapter(AttributeSpec)


def parse_attribute_spec(raw: Mapping[str, Any]) -> AttributeSpec:
    """Parse one schema entry; raises pydantic.ValidationError if malformed"""
    data = dict(raw)
    if data.get("type") not in ATTRIBUTE_TYPES:
        data["type"] = "text"
    return _spec_adapter.validate_python(data)


def parse_attribute_schema(attributes: Optional[Mapping[str, Any]]) -> Dict[str, AttributeSpec]:
    """Parse a whole ``attributes`` mapping, preserving key order"""
    if not attributes:
        return {}
    schema = {}
    for key, raw in attributes.items():
        if not isinstance(raw, Mapping):
            raise ValueError(f"Attribute '{key}' must be an object")
        schema[key] = parse_attribute_spec(raw)
    return schema
