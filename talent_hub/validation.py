"""Input checks shared by routers and services; all fail before any write."""
import enum
import uuid
from typing import Type, TypeVar

from talent_hub.errors import InvalidInput, InvalidStatus

E = TypeVar("E", bound=enum.Enum)


def require_uuid(value: str, label: str = "ID") -> str:
    try:
        uuid.UUID(str(value))
    except ValueError:
        raise InvalidInput(
            f"Invalid {label} format",
            code="INVALID_UUID",
            details=f"{label} must be a valid UUID",
        )
    return str(value)


def parse_status(enum_cls: Type[E], value, label: str = "status") -> E:
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidStatus(f"Invalid {label}", details=f"{label} must be one of: {allowed}")
