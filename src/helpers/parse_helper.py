"""Helpers for reading loosely-typed exchange payloads.

This module provides:
- safe_float / safe_integer / safe_string: tolerant field readers that return
  a default (``None`` unless given) instead of raising on missing or
  non-numeric values.
- milliseconds / iso8601 / parse_datetime_ms: timestamp conversions.
- filter_by_since_limit: the ``since`` / ``limit`` window used by every
  list-returning fetch method.
"""

from __future__ import annotations

import math
import time
from typing import Any, Callable, List, Mapping, Optional, TypeVar

import pandas as pd

T = TypeVar("T")


def safe_value(obj: Any, key: Any, default: Any = None) -> Any:
    if not isinstance(obj, Mapping):
        return default
    value = obj.get(key)
    return default if value is None or value == "" else value


def safe_float(obj: Any, key: Any, default: Optional[float] = None) -> Optional[float]:
    """Return ``obj[key]`` as float, or *default* if absent or not numeric."""
    value = safe_value(obj, key)
    if value is None or isinstance(value, bool):
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(result):
        return default
    return result


def safe_integer(obj: Any, key: Any, default: Optional[int] = None) -> Optional[int]:
    result = safe_float(obj, key)
    return default if result is None or math.isinf(result) else int(result)


def safe_string(obj: Any, key: Any, default: Optional[str] = None) -> Optional[str]:
    """Return ``obj[key]`` as str.  Booleans are rendered lower-case."""
    value = safe_value(obj, key)
    if value is None:
        return default
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def milliseconds() -> int:
    return int(time.time() * 1000)


def iso8601(timestamp: Optional[int]) -> Optional[str]:
    """Render a UTC millisecond timestamp as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    if timestamp is None:
        return None
    ts = pd.Timestamp(int(timestamp), unit="ms", tz="UTC")
    return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"


def parse_datetime_ms(value: Optional[str]) -> Optional[int]:
    """Parse a date string as naive UTC and return epoch milliseconds.

    Strings without a zone are taken at face value; no local-time
    interpretation is applied.  Unparseable input returns ``None``.
    """
    if not value:
        return None
    try:
        ts = pd.Timestamp(value)
    except (TypeError, ValueError):
        return None
    if ts is pd.NaT:
        return None
    if ts.tzinfo is None:
        ts = ts.tz_localize("UTC")
    return int(ts.value // 1_000_000)


def filter_by_since_limit(
    items: List[T],
    since: Optional[int] = None,
    limit: Optional[int] = None,
    key: Callable[[T], Optional[int]] = lambda item: getattr(item, "timestamp", None),
) -> List[T]:
    """Keep items at or after *since* (ms), then the first *limit* of them."""
    result = items
    if since is not None:
        result = [item for item in result if (key(item) or 0) >= since]
    if limit is not None:
        result = result[:limit]
    return result
