"""Custom SQLAlchemy types for cross-database compatibility"""
import enum
from typing import Type

from sqlalchemy import TypeDecorator, String, Enum as SQLEnum
import uuid


def generate_uuid():
    """Generate a UUID string"""
    return str(uuid.uuid4())


class GUID(TypeDecorator):
    """Platform-independent GUID type that stores UUIDs as VARCHAR(36)"""
    impl = String(36)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        return dialect.type_descriptor(String(36))

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return value

    def process_result_value(self, value, dialect):
        if value is not None:
            return str(value)
        return value


def value_enum(enum_cls: Type[enum.Enum], name: str) -> SQLEnum:
    """Enum column persisted by value ("admin") rather than member name ("ADMIN")"""
    return SQLEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
        native_enum=False,
        validate_strings=True,
    )
