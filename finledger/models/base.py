"""Base models shared across entities."""

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, ClassVar

from finledger.serialization import to_record


@dataclass(frozen=True)
class Caller:
    """Identity of the user on whose behalf an operation runs.

    Passed explicitly into every service call instead of being read from
    a session global.
    """

    user_id: str


class RecordModel:
    """Mixin mapping a dataclass entity onto a store record keyed by ``id``.

    Subclasses set ``TABLE`` and ``PRIMARY_KEY`` (the dataclass field that
    holds the record ``id``) and list enum-typed columns in ``ENUM_FIELDS``.
    """

    TABLE: ClassVar[str]
    PRIMARY_KEY: ClassVar[str]
    ENUM_FIELDS: ClassVar[dict[str, type[Enum]]] = {}

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Any:
        """Build an entity from a store record, ignoring unknown columns."""
        names = {f.name for f in fields(cls)}  # type: ignore[arg-type]
        data = {key: value for key, value in record.items() if key in names}
        data[cls.PRIMARY_KEY] = record["id"]
        for name, enum_type in cls.ENUM_FIELDS.items():
            if data.get(name) is not None:
                data[name] = enum_type(data[name])
        return cls(**data)

    def to_record(self) -> dict[str, Any]:
        """Convert the entity into a store record."""
        record = to_record(self)
        record["id"] = record.pop(self.PRIMARY_KEY)
        return record
