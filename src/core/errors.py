"""
Canonical error kinds raised by exchange adapters.

Each kind subclasses the matching ``ccxt`` exception so callers that already
catch ``ccxt.ExchangeError`` / ``ccxt.NetworkError`` keep working.  Every
instance carries the originating ``exchange_id`` and, where one exists, the
raw ``payload`` that triggered it.
"""

from __future__ import annotations

from typing import Any, Optional

import ccxt


class _ExchangeErrorContext:
    def __init__(
        self,
        message: str,
        exchange_id: Optional[str] = None,
        payload: Any = None,
    ) -> None:
        self.exchange_id = exchange_id
        self.payload = payload
        text = f"{exchange_id} {message}" if exchange_id else message
        super().__init__(text)


class ExchangeError(_ExchangeErrorContext, ccxt.ExchangeError):
    """Catch-all for malformed or unsuccessful responses."""


class ConfigurationError(ExchangeError):
    """The market catalog response did not have the expected shape."""


class AuthenticationError(_ExchangeErrorContext, ccxt.AuthenticationError):
    pass


class RateLimited(_ExchangeErrorContext, ccxt.DDoSProtection):
    pass


class UnsupportedOperation(_ExchangeErrorContext, ccxt.NotSupported):
    pass


class OrderNotFound(_ExchangeErrorContext, ccxt.OrderNotFound):
    pass


class InsufficientFunds(_ExchangeErrorContext, ccxt.InsufficientFunds):
    pass


class InvalidAddressError(_ExchangeErrorContext, ccxt.InvalidAddress):
    pass


class NetworkError(_ExchangeErrorContext, ccxt.NetworkError):
    """Transport-level failure (timeout, refused connection, ...)."""


__all__ = [
    "ExchangeError",
    "ConfigurationError",
    "AuthenticationError",
    "RateLimited",
    "UnsupportedOperation",
    "OrderNotFound",
    "InsufficientFunds",
    "InvalidAddressError",
    "NetworkError",
]
