"""Shared conversion helpers between models, store records and JSON."""

from dataclasses import fields, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any


def to_decimal(value: Any) -> Decimal:
    """Coerce an int, float, str or Decimal into a Decimal.

    Floats go through ``str`` so ``0.1`` becomes ``Decimal("0.1")``.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("Boolean is not a monetary amount")
    if isinstance(value, (int, str)):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(str(value))
    raise TypeError(f"Cannot convert {type(value).__name__} to Decimal")


def to_record(obj: Any) -> dict:
    """Convert a dataclass to a store record.

    Unlike ``serialize_value`` this keeps Decimal and datetime values
    intact; only enums are flattened to their values.
    """
    return {f.name: _record_value(getattr(obj, f.name)) for f in fields(obj)}


def _record_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


def to_dict(obj: Any) -> dict:
    """Convert object to a JSON-ready dictionary."""
    if is_dataclass(obj):
        return {f.name: serialize_value(getattr(obj, f.name)) for f in fields(obj)}
    elif isinstance(obj, dict):
        return serialize_value(obj)
    else:
        return {"value": str(obj)}


def serialize_value(value: Any) -> Any:
    """Serialize a value for JSON output."""
    if isinstance(value, Decimal):
        return str(value)
    elif isinstance(value, Enum):
        return value.value
    elif isinstance(value, datetime):
        return value.isoformat()
    elif isinstance(value, date):
        return value.isoformat()
    elif isinstance(value, dict):
        return {k: serialize_value(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple)):
        return [serialize_value(v) for v in value]
    return value
