"""
Small helpers shared by the request/response models.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

__all__ = [
    "as_dict",
    "as_list",
    "enum_or_text",
    "enum_value",
    "format_date",
    "format_timestamp",
    "omit_empty",
    "parse_date",
    "parse_timestamp",
    "to_int",
]


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp; ``None`` and ``""`` map to ``None``."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    # fromisoformat only accepts 3 or 6 fractional digits before Python 3.11.
    if "." in text:
        head, _, tail = text.partition(".")
        digits = ""
        while tail and tail[0].isdigit():
            digits, tail = digits + tail[0], tail[1:]
        text = f"{head}.{digits[:6].ljust(6, '0')}{tail}"
    return datetime.fromisoformat(text)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat().replace("+00:00", "Z")


def parse_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value)
    if "T" in text:
        return parse_timestamp(text).date()
    return date.fromisoformat(text)


def format_date(value: date | str) -> str:
    """Render a due date as ``YYYY-MM-DD``."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return parse_date(value).isoformat()


def to_int(value: Any) -> int:
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise TypeError("expected a number, got a boolean")
    return int(value)


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, list, dict)) and not value:
        return True
    if value is False or (isinstance(value, int) and not isinstance(value, bool) and value == 0):
        return True
    return False


def omit_empty(payload: Dict[str, Any], *keys: str) -> Dict[str, Any]:
    """Drop ``keys`` whose value is empty (``None``, ``""``, ``0``, ``False``, ``[]``)."""
    return {
        key: value
        for key, value in payload.items()
        if not (key in keys and _is_empty(value))
    }


def enum_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


def enum_or_text(enum_cls: type, value: Any) -> Any:
    """Return the member of ``enum_cls`` for ``value``, or the raw text if unknown."""
    if value is None or value == "":
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return value


def as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise TypeError(f"expected a JSON list, got {type(value).__name__}")
    return value


def as_dict(value: Any) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise TypeError(f"expected a JSON object, got {type(value).__name__}")
    return value
