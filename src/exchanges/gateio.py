"""
Gate.io spot adapter (REST API v2).

Translates Gate.io's market, trading and wallet endpoints into the canonical
records of ``src.core.models``.  Request signing lives in
``gateio_signer``, error-code classification in ``gateio_errors`` and all
payload normalization in ``gateio_parsers``; this module wires them to the
request pipeline of ``ExchangeAdapter``.

Usage::

    from src.exchanges.gateio import GateioAdapter

    adapter = GateioAdapter(config, logger)
    adapter.load_markets()
    ticker = adapter.fetch_ticker("ETH/BTC")
    order = adapter.create_order("ETH/BTC", "limit", "buy", 1.0, 0.03)

Reads configuration from a dict::

    {
        "gateio": {"api_key": "...", "api_secret": "...", "timeout": 10},
        "options": {
            "limits": {"cost": {"min": {"BTC": 0.0001, "ETH": 0.001, "USDT": 1}}},
            "common_currencies": {"XBT": "BTC"}
        }
    }

Empty credentials fall back to ``GATEIO_API_KEY`` / ``GATEIO_API_SECRET``.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List, Optional, Union

import requests

from src.core.errors import ExchangeError, InvalidAddressError, UnsupportedOperation
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
from src.core.registry import CurrencyCodes
from src.exchanges.base import ExchangeAdapter
from src.exchanges.gateio_errors import classify_error
from src.exchanges.gateio_parsers import (
    DEFAULT_MIN_COST,
    parse_balance,
    parse_deposit_address,
    parse_markets,
    parse_my_trade,
    parse_order,
    parse_order_book,
    parse_ticker,
    parse_trade,
    split_pair_id,
)
from src.exchanges.gateio_signer import API_URL, GateioSigner, SignedRequest
from src.helpers.parse_helper import filter_by_since_limit, safe_string, safe_value

PUBLIC_ENDPOINTS = [
    "pairs",
    "marketinfo",
    "marketlist",
    "tickers",
    "ticker/{id}",
    "orderBook/{id}",
    "trade/{id}",
    "tradeHistory/{id}",
    "tradeHistory/{id}/{tid}",
]

PRIVATE_ENDPOINTS = [
    "balances",
    "depositAddress",
    "newAddress",
    "depositsWithdrawals",
    "buy",
    "sell",
    "cancelOrder",
    "cancelAllOrders",
    "getOrder",
    "openOrders",
    "tradeHistory",
    "withdraw",
]

ORDER_ENDPOINTS: Dict[OrderSide, str] = {
    OrderSide.BUY: "buy",
    OrderSide.SELL: "sell",
}

# cancelAllOrders "type" parameter
_CANCEL_ALL_TYPES: Dict[Optional[OrderSide], int] = {
    None: -1,
    OrderSide.SELL: 0,
    OrderSide.BUY: 1,
}

_DEPOSIT_ADDRESS_ENDPOINTS = {
    "deposit": "depositAddress",
    "new": "newAddress",
}


def _sort_by_timestamp(items: list) -> list:
    return sorted(items, key=lambda item: item.timestamp or 0)


class GateioAdapter(ExchangeAdapter):
    """
    Gate.io spot adapter.

    Parameters
    ----------
    config : dict, optional
        Adapter config containing ``gateio`` and ``options`` sections.
    logger : logging.Logger, optional
    session : requests.Session, optional
        Injected HTTP session (useful for testing).
    """

    id = "gateio"

    def __init__(
        self,
        config: Optional[dict] = None,
        logger: Optional[logging.Logger] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        config = config or {}
        gateio_cfg = config.get("gateio", {})
        options = config.get("options", {})

        super().__init__(
            timeout=gateio_cfg.get("timeout", 10),
            session=session,
            logger=logger,
        )

        self.signer = GateioSigner(
            api_key=gateio_cfg.get("api_key") or os.getenv("GATEIO_API_KEY"),
            secret=gateio_cfg.get("api_secret") or os.getenv("GATEIO_API_SECRET"),
            base_url=gateio_cfg.get("base_url", API_URL),
            exchange_id=self.id,
        )
        self.currency_codes = CurrencyCodes(options.get("common_currencies"))
        min_cost = (((options.get("limits") or {}).get("cost") or {}).get("min")) or {}
        self.min_cost = {**DEFAULT_MIN_COST, **min_cost}

        mode = "authenticated" if self.signer.api_key else "public-only"
        self.logger.debug(f"GateioAdapter initialised — {mode}, timeout={self.timeout}s")

    # ------------------------------------------------------------------
    # Request pipeline
    # ------------------------------------------------------------------

    def sign(self, path: str, api: str = "public", method: str = "GET", params: Optional[dict] = None) -> SignedRequest:
        endpoints = PRIVATE_ENDPOINTS if api == "private" else PUBLIC_ENDPOINTS
        if path not in endpoints:
            raise ExchangeError(f"has no {api} endpoint {path}", self.id)
        return self.signer.sign(path, api, method, params)

    def handle_errors(self, status: int, body: str) -> None:
        error = classify_error(body, self.id)
        if error is not None:
            self.logger.warning(f"{self.id} request rejected (HTTP {status}): {error}")
            raise error

    def validate_response(self, response: Any) -> Any:
        """Reject responses whose ``result`` field is present but not truthy."""
        if isinstance(response, dict) and "result" in response:
            result = response["result"]
            failed = (
                result is None
                or (isinstance(result, str) and result != "true")
                or (not isinstance(result, str) and not result)
            )
            if failed:
                raise ExchangeError(json.dumps(response), self.id, response)
        return response

    def public(self, path: str, params: Optional[dict] = None) -> Any:
        return self.request(path, "public", "GET", params)

    def private(self, path: str, params: Optional[dict] = None) -> Any:
        return self.request(path, "private", "POST", params)

    def _field(self, response: Any, key: str, method: str) -> Any:
        value = safe_value(response, key)
        if value is None and not (isinstance(response, dict) and key in response):
            raise ExchangeError(f"{method} got a response without \"{key}\"", self.id, response)
        return value

    def _require_symbol(self, symbol: Optional[str], method: str) -> Market:
        if symbol is None:
            raise ExchangeError(f"{method} requires a symbol argument", self.id)
        return self.market(symbol)

    def _order_side(self, side: Union[OrderSide, str]) -> OrderSide:
        try:
            return OrderSide(side)
        except ValueError:
            raise ExchangeError(f"invalid side {side}", self.id) from None

    # ------------------------------------------------------------------
    # Market data
    # ------------------------------------------------------------------

    def fetch_markets(self) -> List[Market]:
        response = self.public("marketinfo")
        markets = parse_markets(response, self.currency_codes, self.min_cost)
        self.logger.info(f"{self.id} fetched {len(markets)} markets")
        return markets

    def fetch_ticker(self, symbol: str) -> Ticker:
        market = self.market(symbol)
        response = self.public("ticker/{id}", {"id": market.id})
        return parse_ticker(response, market)

    def fetch_tickers(self, symbols: Optional[List[str]] = None) -> Dict[str, Ticker]:
        self.load_markets()
        response = self.public("tickers")
        result: Dict[str, Ticker] = {}
        for pair_id, raw in response.items():
            if not isinstance(raw, dict) or "_" not in pair_id:
                continue
            base, quote, _, _ = split_pair_id(pair_id, self.currency_codes)
            symbol = f"{base}/{quote}"
            if symbols is not None and symbol not in symbols:
                continue
            market = self.registry.find_market(symbol=symbol, market_id=pair_id)
            result[symbol] = parse_ticker(raw, market, symbol=symbol)
        return result

    def fetch_order_book(self, symbol: str, limit: Optional[int] = None) -> OrderBook:
        market = self.market(symbol)
        response = self.public("orderBook/{id}", {"id": market.id})
        return parse_order_book(response, limit)

    def fetch_trades(self, symbol: str, since: Optional[int] = None, limit: Optional[int] = None) -> List[Trade]:
        market = self.market(symbol)
        response = self.public("tradeHistory/{id}", {"id": market.id})
        trades = [parse_trade(t, market) for t in self._field(response, "data", "fetch_trades") or []]
        return filter_by_since_limit(_sort_by_timestamp(trades), since, limit)

    # ------------------------------------------------------------------
    # Account
    # ------------------------------------------------------------------

    def fetch_balance(self) -> Balances:
        self.load_markets()
        response = self.private("balances")
        return parse_balance(response, self.registry)

    def _query_deposit_address(self, kind: str, code: str) -> DepositAddress:
        self.load_markets()
        currency = self.registry.currency(code)
        response = self.private(_DEPOSIT_ADDRESS_ENDPOINTS[kind], {"currency": currency.id})
        return parse_deposit_address(response, code)

    def fetch_deposit_address(self, code: str) -> DepositAddress:
        return self._query_deposit_address("deposit", code)

    def create_deposit_address(self, code: str) -> DepositAddress:
        return self._query_deposit_address("new", code)

    def check_address(self, address: Optional[str]) -> str:
        if not address or " " in address or len(set(address)) == 1:
            raise InvalidAddressError(f"address is invalid or has less than 1 characters: {address!r}", self.id)
        return address

    def withdraw(self, code: str, amount: float, address: str, tag: Optional[str] = None) -> Withdrawal:
        """Withdraw to an address registered in the account's address book."""
        self.check_address(address)
        self.load_markets()
        destination = f"{address}/{tag}" if tag else address
        response = self.private("withdraw", {
            "currency": code.lower(),
            "amount": amount,
            "address": destination,
        })
        self.logger.info(f"{self.id} withdrawal requested — {amount} {code} to {destination}")
        return Withdrawal(id=None, info=response)

    # ------------------------------------------------------------------
    # Trading
    # ------------------------------------------------------------------

    def create_order(
        self,
        symbol: str,
        type: str,
        side: Union[OrderSide, str],
        amount: float,
        price: Optional[float] = None,
    ) -> Order:
        """Place a limit order.  Gate.io v2 has no market orders."""
        if type != "limit":
            raise UnsupportedOperation("allows limit orders only", self.id)
        if price is None:
            raise ExchangeError("create_order requires a price for limit orders", self.id)
        side = self._order_side(side)
        market = self.market(symbol)
        response = self.private(ORDER_ENDPOINTS[side], {
            "currencyPair": market.id,
            "rate": price,
            "amount": amount,
        })
        order = parse_order({
            "status": "open",
            "type": side.value,
            "initialAmount": amount,
            **response,
        }, market)
        self.logger.info(
            f"[{market.symbol}] ORDER PLACED — id={order.id}, side={side.value}, "
            f"amount={amount}, price={price}"
        )
        return order

    def cancel_order(self, id: str, symbol: str) -> dict:
        market = self._require_symbol(symbol, "cancel_order")
        response = self.private("cancelOrder", {
            "orderNumber": id,
            "currencyPair": market.id,
        })
        self.logger.info(f"[{market.symbol}] ORDER CANCELLED — id={id}")
        return response

    def cancel_all_orders(self, symbol: str, side: Optional[Union[OrderSide, str]] = None) -> dict:
        market = self._require_symbol(symbol, "cancel_all_orders")
        side = self._order_side(side) if side is not None else None
        response = self.private("cancelAllOrders", {
            "type": _CANCEL_ALL_TYPES[side],
            "currencyPair": market.id,
        })
        self.logger.info(f"[{market.symbol}] ALL ORDERS CANCELLED — side={side.value if side else 'all'}")
        return response

    def fetch_order(self, id: str, symbol: str) -> Order:
        market = self._require_symbol(symbol, "fetch_order")
        response = self.private("getOrder", {
            "orderNumber": id,
            "currencyPair": market.id,
        })
        return parse_order(self._field(response, "order", "fetch_order"), market)

    def fetch_open_orders(
        self,
        symbol: Optional[str] = None,
        since: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[Order]:
        market = self.market(symbol) if symbol is not None else None
        self.load_markets()
        response = self.private("openOrders")
        orders = []
        for raw in self._field(response, "orders", "fetch_open_orders") or []:
            order_market = self.registry.find_market(market_id=safe_string(raw, "currencyPair")) or market
            orders.append(parse_order(raw, order_market))
        if symbol is not None:
            orders = [o for o in orders if o.symbol == market.symbol]
        return filter_by_since_limit(_sort_by_timestamp(orders), since, limit)

    def fetch_my_trades(self, symbol: str, since: Optional[int] = None, limit: Optional[int] = None) -> List[MyTrade]:
        market = self._require_symbol(symbol, "fetch_my_trades")
        response = self.private("tradeHistory", {"currencyPair": market.id})
        raw_trades = self._field(response, "trades", "fetch_my_trades") or []
        if isinstance(raw_trades, dict):
            raw_trades = list(raw_trades.values())
        trades = [parse_my_trade(t, market) for t in raw_trades]
        return filter_by_since_limit(_sort_by_timestamp(trades), since, limit)
