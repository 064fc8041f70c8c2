"""Column helpers shared by the models."""

from datetime import datetime, timezone
from enum import Enum
from typing import Type


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def enum_values(enum_cls: Type[Enum]) -> list[str]:
    """Persist enum values ("hired") instead of member names ("HIRED")."""
    return [member.value for member in enum_cls]
