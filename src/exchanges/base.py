from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests

from src.core.errors import ExchangeError, NetworkError
from src.core.models import (
    Balances,
    DepositAddress,
    Market,
    MyTrade,
    Order,
    OrderBook,
    OrderSide,
    Ticker,
    Trade,
    Withdrawal,
)
from src.core.registry import MarketRegistry

_REQUEST_TIMEOUT = 10


class ExchangeAdapter(ABC):
    """
    Shared plumbing for REST exchange adapters.

    Subclasses provide ``sign`` (build the HTTP request) and may override
    ``handle_errors`` (inspect the raw body) and ``validate_response``
    (inspect the decoded JSON).  ``request`` runs the whole chain::

        sign -> send -> handle_errors -> raise_for_status -> json -> validate_response
    """

    id: str = ""

    def __init__(
        self,
        timeout: float = _REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.logger = logger or logging.getLogger(__name__)
        self.timeout = timeout
        self.session = session or requests.Session()
        self.registry = MarketRegistry(self.id, self.logger)

    # ------------------------------------------------------------------
    # Request pipeline
    # ------------------------------------------------------------------

    @abstractmethod
    def sign(self, path: str, api: str = "public", method: str = "GET", params: Optional[dict] = None):
        """Return an object with ``url``, ``method``, ``body`` and ``headers``."""

    def handle_errors(self, status: int, body: str) -> None:
        pass

    def validate_response(self, response: Any) -> Any:
        return response

    def request(self, path: str, api: str = "public", method: str = "GET", params: Optional[dict] = None) -> Any:
        signed = self.sign(path, api, method, params)
        self.logger.debug(f"{self.id} {signed.method} {signed.url}")
        try:
            resp = self.session.request(
                signed.method,
                signed.url,
                data=signed.body,
                headers=signed.headers or None,
                timeout=self.timeout,
            )
        except (requests.Timeout, requests.ConnectionError) as exc:
            raise NetworkError(f"{signed.method} {signed.url} {exc}", self.id) from exc

        body = resp.text or ""
        self.handle_errors(resp.status_code, body)
        try:
            resp.raise_for_status()
        except requests.HTTPError as exc:
            raise ExchangeError(f"{resp.status_code} {signed.method} {signed.url}", self.id, body) from exc

        try:
            decoded = json.loads(body)
        except ValueError as exc:
            raise ExchangeError(f"returned a non-JSON response from {signed.url}", self.id, body) from exc
        return self.validate_response(decoded)

    # ------------------------------------------------------------------
    # Markets
    # ------------------------------------------------------------------

    @abstractmethod
    def fetch_markets(self) -> List[Market]:
        pass

    def load_markets(self, reload: bool = False) -> Dict[str, Market]:
        return self.registry.load(self.fetch_markets, reload=reload)

    def market(self, symbol: str) -> Market:
        self.load_markets()
        return self.registry.market(symbol)

    # Market Data Methods
    @abstractmethod
    def fetch_ticker(self, symbol: str) -> Ticker:
        pass

    @abstractmethod
    def fetch_tickers(self, symbols: Optional[List[str]] = None) -> Dict[str, Ticker]:
        pass

    @abstractmethod
    def fetch_order_book(self, symbol: str, limit: Optional[int] = None) -> OrderBook:
        pass

    @abstractmethod
    def fetch_trades(self, symbol: str, since: Optional[int] = None, limit: Optional[int] = None) -> List[Trade]:
        pass

    # Account Methods
    @abstractmethod
    def fetch_balance(self) -> Balances:
        pass

    @abstractmethod
    def fetch_deposit_address(self, code: str) -> DepositAddress:
        pass

    @abstractmethod
    def withdraw(self, code: str, amount: float, address: str, tag: Optional[str] = None) -> Withdrawal:
        pass

    # Trading Methods
    @abstractmethod
    def create_order(self, symbol: str, type: str, side: OrderSide, amount: float, price: Optional[float] = None) -> Order:
        pass

    @abstractmethod
    def cancel_order(self, id: str, symbol: str) -> dict:
        pass

    @abstractmethod
    def fetch_order(self, id: str, symbol: str) -> Order:
        pass

    @abstractmethod
    def fetch_open_orders(self, symbol: Optional[str] = None, since: Optional[int] = None, limit: Optional[int] = None) -> List[Order]:
        pass

    @abstractmethod
    def fetch_my_trades(self, symbol: str, since: Optional[int] = None, limit: Optional[int] = None) -> List[MyTrade]:
        pass
