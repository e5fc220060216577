"""Lane ordering rule shared by the HTTP store and the board engine.

Items sort by ``order`` ascending. Equal (or missing) orders fall back to the
creation timestamp, then to the id, so the same inputs always sort the same way.
"""
import sys
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Iterable, List, Mapping, Tuple

MISSING_ORDER = sys.maxsize


def _parse_timestamp(s: str):
    try:
        return datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        pass
    # Flask's JSON provider renders datetimes as RFC 822 ("Mon, 01 Jan 2024 00:00:00 GMT")
    try:
        return parsedate_to_datetime(s)
    except (TypeError, ValueError, IndexError):
        return None


def normalize_timestamp(value: Any) -> str:
    """Comparable UTC ISO string for ISO/RFC 822 strings, datetimes and Firestore timestamps."""
    if value is None:
        return ""
    if isinstance(value, str):
        parsed = _parse_timestamp(value)
        return normalize_timestamp(parsed) if parsed is not None else value
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()
    to_datetime = getattr(value, "to_datetime", None)
    if callable(to_datetime):
        return normalize_timestamp(to_datetime())
    return str(value)


def sort_key(order: Any, created_at: Any, item_id: Any) -> Tuple[int, str, str]:
    if isinstance(order, bool) or not isinstance(order, int):
        order = MISSING_ORDER
    return (order, normalize_timestamp(created_at), str(item_id or ""))


def work_sort_key(work: Mapping[str, Any]) -> Tuple[int, str, str]:
    return sort_key(work.get("order"), work.get("createdAt"), work.get("id"))


def sort_works(works: Iterable[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
    return sorted(works, key=work_sort_key)
