"""
Market and currency lookup tables shared by an adapter and its normalizers.

A ``MarketRegistry`` is owned by the caller (normally the adapter instance)
and filled exactly once from the market catalog.  After that it is read-only;
normalizers receive it, or a ``Market`` taken from it, explicitly.

Usage::

    registry = MarketRegistry()
    registry.load(lambda: parse_markets(raw, codes))
    market = registry.market("BTC/USDT")
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from src.core.errors import ExchangeError
from src.core.models import Currency, Market

# Aliases applied to every exchange-native currency code.
DEFAULT_COMMON_CURRENCIES: Dict[str, str] = {
    "XBT": "BTC",
    "BCC": "BCH",
    "BCHABC": "BCH",
    "BCHSV": "BSV",
    "DRK": "DASH",
}


class CurrencyCodes:
    """Maps exchange-native currency symbols to canonical codes."""

    def __init__(self, overrides: Optional[Mapping[str, str]] = None) -> None:
        self._aliases = dict(DEFAULT_COMMON_CURRENCIES)
        if overrides:
            self._aliases.update({k.upper(): v for k, v in overrides.items()})

    def common_currency_code(self, code: str) -> str:
        return self._aliases.get(code, code)

    __call__ = common_currency_code


class MarketRegistry:
    """
    Load-once lookup tables keyed by symbol and by exchange-native id.

    Parameters
    ----------
    exchange_id : str
        Used to tag errors raised on failed lookups.
    logger : logging.Logger, optional
    """

    def __init__(self, exchange_id: str = "", logger: Optional[logging.Logger] = None) -> None:
        self.exchange_id = exchange_id
        self.logger = logger or logging.getLogger(__name__)
        self.markets: Dict[str, Market] = {}
        self.markets_by_id: Dict[str, Market] = {}
        self.currencies: Dict[str, Currency] = {}
        self._loaded = False
        self._lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self._loaded

    def load(self, fetch: Callable[[], List[Market]], reload: bool = False) -> Dict[str, Market]:
        """
        Populate the tables from *fetch* unless already loaded.

        Concurrent first calls are serialized so *fetch* runs once.
        """
        if self._loaded and not reload:
            return self.markets
        with self._lock:
            if self._loaded and not reload:
                return self.markets
            self.install(fetch())
        return self.markets

    def install(self, markets: Iterable[Market]) -> None:
        markets = list(markets)
        self.markets = {m.symbol: m for m in markets}
        self.markets_by_id = {m.id: m for m in markets}
        currencies: Dict[str, Currency] = {}
        for m in markets:
            currencies.setdefault(m.base, Currency(id=m.base_id, code=m.base))
            currencies.setdefault(m.quote, Currency(id=m.quote_id, code=m.quote))
        self.currencies = dict(sorted(currencies.items()))
        self._loaded = True
        self.logger.info(
            f"{self.exchange_id} registry loaded — "
            f"{len(self.markets)} markets, {len(self.currencies)} currencies"
        )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def market(self, symbol: str) -> Market:
        if not self._loaded:
            raise ExchangeError("markets not loaded", self.exchange_id)
        if symbol in self.markets:
            return self.markets[symbol]
        if symbol in self.markets_by_id:
            return self.markets_by_id[symbol]
        raise ExchangeError(f"does not have market symbol {symbol}", self.exchange_id)

    def market_id(self, symbol: str) -> str:
        return self.market(symbol).id

    def find_market(self, symbol: Optional[str] = None, market_id: Optional[str] = None) -> Optional[Market]:
        """Lenient lookup: by id first, then symbol; ``None`` if unknown."""
        if market_id is not None and market_id in self.markets_by_id:
            return self.markets_by_id[market_id]
        if symbol is not None:
            return self.markets.get(symbol)
        return None

    def currency(self, code: str) -> Currency:
        if not self._loaded:
            raise ExchangeError("currencies not loaded", self.exchange_id)
        if code not in self.currencies:
            raise ExchangeError(f"does not have currency code {code}", self.exchange_id)
        return self.currencies[code]
