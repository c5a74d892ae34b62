"""Shared schema base: camelCase on the wire, snake_case in Python"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def normalize_wing(value):
    """Wings are stored upper-case ("a " -> "A"); blank means not given"""
    if value is None:
        return None
    value = str(value).strip().upper()
    return value or None


def normalize_flat_no(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None
