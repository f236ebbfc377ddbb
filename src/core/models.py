from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class OrderSide(str, Enum):
    BUY = "buy"
    SELL = "sell"


@dataclass
class MinMax:
    min: Optional[float] = None
    max: Optional[float] = None


@dataclass
class Limits:
    amount: MinMax
    price: MinMax
    cost: MinMax


@dataclass
class Precision:
    amount: int      # decimal places accepted for order amounts
    price: int       # decimal places accepted for order prices


@dataclass
class Market:
    id: str          # exchange-native pair id, e.g. "btc_usdt"
    symbol: str      # canonical, e.g. "BTC/USDT"
    base: str
    quote: str
    base_id: str     # raw upper-cased id before currency-code canonicalization
    quote_id: str
    precision: Precision
    limits: Limits
    maker: Optional[float]
    taker: Optional[float]
    info: Any = None


@dataclass
class Currency:
    id: str          # code as the exchange reports it
    code: str        # canonical code


@dataclass
class Ticker:
    symbol: Optional[str]
    timestamp: int   # capture time (ms), the exchange does not report one
    datetime: str
    high: Optional[float]
    low: Optional[float]
    bid: Optional[float]
    ask: Optional[float]
    open: Optional[float]
    close: Optional[float]
    last: Optional[float]
    change: Optional[float]
    percentage: Optional[float]
    average: Optional[float]
    base_volume: Optional[float]
    quote_volume: Optional[float]
    info: Any = None


@dataclass
class Trade:
    id: Optional[str]
    timestamp: Optional[int]   # UTC ms
    datetime: Optional[str]
    symbol: Optional[str]
    side: Optional[str]
    price: Optional[float]
    amount: Optional[float]
    info: Any = None


@dataclass
class MyTrade:
    id: Optional[str]
    order: Optional[str]
    timestamp: Optional[int]   # UTC ms
    datetime: Optional[str]
    symbol: Optional[str]
    side: Optional[str]
    price: Optional[float]
    amount: Optional[float]
    info: Any = None


@dataclass
class Fee:
    currency: str
    cost: float


@dataclass
class Order:
    id: Optional[str]
    timestamp: Optional[int]
    datetime: Optional[str]
    status: Optional[str]
    symbol: Optional[str]
    type: str
    side: Optional[str]
    price: Optional[float]
    amount: Optional[float]
    filled: Optional[float]
    remaining: Optional[float]
    average: Optional[float]
    fee: Optional[Fee] = None
    info: Any = None


@dataclass
class BalanceEntry:
    free: float = 0.0
    used: float = 0.0
    total: float = 0.0


@dataclass
class Balances:
    entries: Dict[str, BalanceEntry] = field(default_factory=dict)
    info: Any = None

    def __getitem__(self, code: str) -> BalanceEntry:
        return self.entries[code]

    def __contains__(self, code: str) -> bool:
        return code in self.entries

    @property
    def free(self) -> Dict[str, float]:
        return {code: e.free for code, e in self.entries.items()}

    @property
    def used(self) -> Dict[str, float]:
        return {code: e.used for code, e in self.entries.items()}

    @property
    def total(self) -> Dict[str, float]:
        return {code: e.total for code, e in self.entries.items()}


@dataclass
class DepositAddress:
    currency: str
    address: Optional[str]
    tag: Optional[str]
    status: str      # "ok" or "none"
    info: Any = None


@dataclass
class OrderBook:
    bids: List[List[float]]    # [price, amount], best (highest) first
    asks: List[List[float]]    # [price, amount], best (lowest) first
    timestamp: Optional[int] = None
    info: Any = None


@dataclass
class Withdrawal:
    id: Optional[str]
    info: Any = None
