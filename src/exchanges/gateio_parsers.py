"""
Gate.io (API v2) response normalizers.

Pure functions that turn raw Gate.io JSON into the canonical records in
``src.core.models``.  None of them perform I/O or touch shared state; market
context is passed in explicitly.

Two upstream quirks are reproduced on purpose:

* Public trades report ``date`` in exchange-local time (UTC+8) and are shifted
  back by a fixed 8 hours, while private trades carry ``time_unix`` and are
  used as-is.  The two feeds therefore disagree for the same nominal time.
* Order fees are computed from ``feePercentage`` and always denominated in the
  market's base currency, which is wrong for sell orders.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd

from src.core.errors import ConfigurationError, InvalidAddressError
from src.core.models import (
    Balances,
    BalanceEntry,
    DepositAddress,
    Fee,
    Limits,
    Market,
    MinMax,
    MyTrade,
    Order,
    OrderBook,
    Precision,
    Ticker,
    Trade,
)
from src.core.registry import CurrencyCodes, MarketRegistry
from src.helpers.parse_helper import (
    iso8601,
    milliseconds,
    parse_datetime_ms,
    safe_float,
    safe_integer,
    safe_string,
    safe_value,
)

EXCHANGE_ID = "gateio"

logger = logging.getLogger(__name__)

# Exchange-local clock is UTC+8.
EXCHANGE_UTC_OFFSET_MS = int(pd.Timedelta(hours=8).total_seconds() * 1000)

AMOUNT_PRECISION = 8

# Minimum order cost per quote currency; other quotes fall back to
# min_amount * min_price.
DEFAULT_MIN_COST: Dict[str, float] = {
    "BTC": 0.0001,
    "ETH": 0.001,
    "USDT": 1,
}

TAGGED_CURRENCIES = ("XRP",)


def split_pair_id(pair_id: str, currency_codes: CurrencyCodes) -> tuple[str, str, str, str]:
    """``"eth_btc"`` -> ``("ETH", "BTC", "ETH", "BTC")`` as (base, quote, base_id, quote_id)."""
    base_id, quote_id = (part.upper() for part in pair_id.split("_", 1))
    return (
        currency_codes.common_currency_code(base_id),
        currency_codes.common_currency_code(quote_id),
        base_id,
        quote_id,
    )


# ---------------------------------------------------------------------------
# Market catalog
# ---------------------------------------------------------------------------

def parse_markets(
    response: Any,
    currency_codes: Optional[CurrencyCodes] = None,
    min_cost: Optional[Mapping[str, float]] = None,
) -> List[Market]:
    """
    Build the market list from a ``marketinfo`` response.

    Parameters
    ----------
    response : dict
        ``{"result": "true", "pairs": [{"eth_btc": {...}}, ...]}``
    currency_codes : CurrencyCodes, optional
        Canonicalizer for base/quote codes.
    min_cost : mapping, optional
        Per-quote minimum order cost; defaults to ``DEFAULT_MIN_COST``.

    Raises
    ------
    ConfigurationError
        If the response has no ``pairs`` list, or a pair entry is not a
        single ``{pair_id: details}`` mapping with ``decimal_places``.
    """
    pairs = safe_value(response, "pairs")
    if not isinstance(pairs, list):
        raise ConfigurationError("fetch_markets got an unrecognized response", EXCHANGE_ID, response)

    codes = currency_codes or CurrencyCodes()
    cost_table = DEFAULT_MIN_COST if min_cost is None else min_cost

    markets = []
    for entry in pairs:
        if not isinstance(entry, dict) or len(entry) != 1:
            raise ConfigurationError("fetch_markets got a malformed pair entry", EXCHANGE_ID, entry)
        pair_id, details = next(iter(entry.items()))
        decimal_places = safe_integer(details, "decimal_places")
        if decimal_places is None or not isinstance(pair_id, str) or "_" not in pair_id:
            raise ConfigurationError(f"fetch_markets got an invalid pair {pair_id}", EXCHANGE_ID, entry)
        base, quote, base_id, quote_id = split_pair_id(pair_id, codes)

        amount_limits = MinMax(min=safe_float(details, "min_amount"))
        price_limits = MinMax(min=10 ** -decimal_places)
        default_cost = None
        if amount_limits.min is not None:
            default_cost = amount_limits.min * price_limits.min
        cost_limits = MinMax(min=safe_float(cost_table, quote, default_cost))

        fee = safe_float(details, "fee")
        fee_rate = fee / 100 if fee is not None else None

        markets.append(Market(
            id=pair_id,
            symbol=f"{base}/{quote}",
            base=base,
            quote=quote,
            base_id=base_id,
            quote_id=quote_id,
            precision=Precision(amount=AMOUNT_PRECISION, price=decimal_places),
            limits=Limits(amount=amount_limits, price=price_limits, cost=cost_limits),
            maker=fee_rate,
            taker=fee_rate,
            info=entry,
        ))
    return markets


# ---------------------------------------------------------------------------
# Market data
# ---------------------------------------------------------------------------

def parse_ticker(
    ticker: Mapping[str, Any],
    market: Optional[Market] = None,
    symbol: Optional[str] = None,
    timestamp: Optional[int] = None,
) -> Ticker:
    """
    Normalize one ticker.

    ``open``, ``change`` and ``average`` are only derived when both ``last``
    and ``percentChange`` are present; a -100% change leaves them unset.
    Gate.io labels its volumes the other way round, so ``quoteVolume`` feeds
    ``base_volume`` and vice versa.
    """
    ts = milliseconds() if timestamp is None else timestamp
    if market is not None:
        symbol = market.symbol
    last = safe_float(ticker, "last")
    percentage = safe_float(ticker, "percentChange")
    open_ = change = average = None
    if last is not None and percentage is not None and percentage != -100:
        open_ = last / (1 + percentage / 100)
        change = last - open_
        average = (last + open_) / 2
    return Ticker(
        symbol=symbol,
        timestamp=ts,
        datetime=iso8601(ts),
        high=safe_float(ticker, "high24hr"),
        low=safe_float(ticker, "low24hr"),
        bid=safe_float(ticker, "highestBid"),
        ask=safe_float(ticker, "lowestAsk"),
        open=open_,
        close=last,
        last=last,
        change=change,
        percentage=percentage,
        average=average,
        base_volume=safe_float(ticker, "quoteVolume"),
        quote_volume=safe_float(ticker, "baseVolume"),
        info=ticker,
    )


def parse_order_book(
    orderbook: Mapping[str, Any],
    limit: Optional[int] = None,
    timestamp: Optional[int] = None,
) -> OrderBook:
    def side(key: str, descending: bool) -> List[List[float]]:
        levels = [[float(price), float(amount)] for price, amount in (orderbook.get(key) or [])]
        levels.sort(key=lambda level: level[0], reverse=descending)
        return levels[:limit] if limit is not None else levels

    return OrderBook(
        bids=side("bids", descending=True),
        asks=side("asks", descending=False),
        timestamp=timestamp,
        info=orderbook,
    )


def parse_trade(trade: Mapping[str, Any], market: Optional[Market] = None) -> Trade:
    """Public trade.  ``date`` is exchange-local (UTC+8) and shifted back 8 h."""
    local_ms = parse_datetime_ms(safe_string(trade, "date"))
    timestamp = None if local_ms is None else local_ms - EXCHANGE_UTC_OFFSET_MS
    return Trade(
        id=safe_string(trade, "tradeID"),
        timestamp=timestamp,
        datetime=iso8601(timestamp),
        symbol=market.symbol if market else None,
        side=safe_string(trade, "type"),
        price=safe_float(trade, "rate"),
        amount=safe_float(trade, "amount"),
        info=trade,
    )


def parse_my_trade(trade: Mapping[str, Any], market: Optional[Market] = None) -> MyTrade:
    """Private trade.  ``time_unix`` is already UTC; no offset is applied."""
    seconds = safe_integer(trade, "time_unix")
    timestamp = None if seconds is None else seconds * 1000
    return MyTrade(
        id=safe_string(trade, "tradeID"),
        order=safe_string(trade, "orderNumber"),
        timestamp=timestamp,
        datetime=iso8601(timestamp),
        symbol=market.symbol if market else None,
        side=safe_string(trade, "type"),
        price=safe_float(trade, "rate"),
        amount=safe_float(trade, "amount"),
        info=trade,
    )


# ---------------------------------------------------------------------------
# Account data
# ---------------------------------------------------------------------------

def parse_order(order: Mapping[str, Any], market: Optional[Market] = None) -> Order:
    """
    Normalize an order from ``getOrder``, ``openOrders`` or ``buy``/``sell``.

    ``initialAmount`` / ``initialRate`` are dropped by the exchange once an
    order has been queried later, so ``amount`` / ``rate`` are used when the
    initial values are zero or missing.
    """
    seconds = safe_integer(order, "timestamp")
    timestamp = None if seconds is None else seconds * 1000

    amount = safe_float(order, "initialAmount")
    if not amount:
        amount = safe_float(order, "amount")
    price = safe_float(order, "initialRate")
    if not price:
        price = safe_float(order, "rate")
    filled = safe_float(order, "filledAmount")
    remaining = None
    if amount is not None and filled is not None:
        remaining = amount - filled

    fee = None
    fee_percentage = safe_float(order, "feePercentage")
    if fee_percentage and amount is not None and market is not None:
        # Base currency regardless of side: matches the exchange's own report.
        fee = Fee(currency=market.base, cost=amount * fee_percentage / 100)
    elif fee_percentage and market is None:
        logger.debug(f"order {safe_string(order, 'orderNumber')} has feePercentage but no market, fee dropped")

    return Order(
        id=safe_string(order, "orderNumber"),
        timestamp=timestamp,
        datetime=iso8601(timestamp),
        status=safe_string(order, "status"),
        symbol=market.symbol if market else None,
        type="limit",
        side=safe_string(order, "type"),
        price=price,
        amount=amount,
        filled=filled,
        remaining=remaining,
        average=safe_float(order, "filledRate"),
        fee=fee,
        info=order,
    )


def parse_balance(response: Mapping[str, Any], registry: MarketRegistry) -> Balances:
    """
    One entry per currency known to *registry*, present in the response or not.
    """
    available = safe_value(response, "available") or {}
    locked = safe_value(response, "locked") or {}
    balances = Balances(info=response)
    for code, currency in registry.currencies.items():
        free = safe_float(available, currency.id, 0.0)
        used = safe_float(locked, currency.id, 0.0)
        balances.entries[code] = BalanceEntry(free=free, used=used, total=free + used)
    return balances


def parse_deposit_address(response: Mapping[str, Any], code: str) -> DepositAddress:
    """
    Raises
    ------
    InvalidAddressError
        When ``addr`` holds an error message (it contains ``"address"``)
        instead of an address.
    """
    address = safe_string(response, "addr")
    tag = None
    if address is not None and "address" in address:
        raise InvalidAddressError(f"query deposit address {address}", EXCHANGE_ID, response)
    if code in TAGGED_CURRENCIES and address is not None:
        parts = address.split("/", 1)
        address = parts[0]
        tag = parts[1] if len(parts) > 1 else None
    return DepositAddress(
        currency=code,
        address=address,
        tag=tag,
        status="ok" if address is not None else "none",
        info=response,
    )
