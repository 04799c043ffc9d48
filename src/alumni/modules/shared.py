"""
Shared helpers for feature modules.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Pydantic base whose JSON keys are camelCase (fields stay snake_case).

    Datetimes are always timezone-aware UTC, including naive values read
    back from databases without timezone support.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    @field_validator("*")
    @classmethod
    def datetimes_as_utc(cls, v):
        if isinstance(v, datetime):
            return ensure_utc(v)
        return v


def utcnow() -> datetime:
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes read back from the database as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
