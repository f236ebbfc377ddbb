"""Gate.io error-code classification (https://gate.io/api2#errCode)."""

from __future__ import annotations

import json
from typing import Dict, Optional, Type

from src.core.errors import (
    ExchangeError,
    InsufficientFunds,
    OrderNotFound,
    RateLimited,
    UnsupportedOperation,
)
from src.helpers.parse_helper import safe_string

EXCEPTIONS: Dict[str, Type[ExchangeError]] = {
    "4": RateLimited,
    "7": UnsupportedOperation,
    "8": UnsupportedOperation,
    "9": UnsupportedOperation,
    "15": RateLimited,
    "16": OrderNotFound,
    "17": OrderNotFound,
    "21": InsufficientFunds,
}

ERROR_CODE_NAMES: Dict[str, str] = {
    "1": "Invalid request",
    "2": "Invalid version",
    "3": "Invalid request",
    "4": "Too many attempts",
    "5": "Invalid sign",
    "6": "Invalid sign",
    "7": "Currency is not supported",
    "8": "Currency is not supported",
    "9": "Currency is not supported",
    "10": "Verified failed",
    "11": "Obtaining address failed",
    "12": "Empty params",
    "13": "Internal error, please report to administrator",
    "14": "Invalid user",
    "15": "Cancel order too fast, please wait 1 min and try again",
    "16": "Invalid order id or order is already closed",
    "17": "Invalid orderid",
    "18": "Invalid amount",
    "19": "Not permitted or trade is disabled",
    "20": "Your order size is too small",
    "21": "You don't have enough fund",
}


def classify_error(body: Optional[str], exchange_id: str = "gateio") -> Optional[ExchangeError]:
    """
    Return the canonical error a raw response body signals, or ``None``.

    Only bodies that are JSON objects with ``result == "false"`` and a known
    ``code`` are classified; anything else is left to the request layer.
    """
    if not body or not body.startswith("{"):
        return None
    try:
        parsed = json.loads(body)
    except ValueError:
        return None
    if safe_string(parsed, "result", "") != "false":
        return None
    code = safe_string(parsed, "code")
    if code is None or code not in EXCEPTIONS:
        return None
    message = ERROR_CODE_NAMES.get(code) or safe_string(parsed, "message", "(unknown)")
    return EXCEPTIONS[code](message, exchange_id, parsed)


def handle_errors(body: Optional[str], exchange_id: str = "gateio") -> None:
    """Raise the classified error for *body*, if any."""
    error = classify_error(body, exchange_id)
    if error is not None:
        raise error
