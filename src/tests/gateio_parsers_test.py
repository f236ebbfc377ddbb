"""Tests for the Gate.io response normalizers

Tests cover:
- Market catalog (symbols, precision, limits, fees, currency aliases)
- Ticker derivations and the swapped volume fields
- Public vs private trade timestamps
- Order amount/price fallbacks and the base-currency fee
- Balances, deposit addresses and order books
"""

import logging

import ccxt
import pytest

from src.core.errors import ConfigurationError, InvalidAddressError
from src.core.registry import CurrencyCodes
from src.exchanges.gateio_parsers import (
    EXCHANGE_UTC_OFFSET_MS,
    parse_balance,
    parse_deposit_address,
    parse_markets,
    parse_my_trade,
    parse_order,
    parse_order_book,
    parse_ticker,
    parse_trade,
)

from conftest import MARKETINFO

# 2018-01-01 12:00:00 UTC
NOON_MS = 1514808000000


class TestParseMarkets:
    """Test the market catalog builder."""

    def test_symbol_precision_and_price_limit(self, markets):
        for market, entry in zip(markets, MARKETINFO["pairs"]):
            details = next(iter(entry.values()))
            assert market.symbol == market.base + "/" + market.quote
            assert market.precision.price == details["decimal_places"]
            assert market.precision.amount == 8
            assert market.limits.price.min == 10 ** (-details["decimal_places"])
            assert market.limits.amount.min == details["min_amount"]
            assert market.limits.amount.max is None

    def test_ids_and_fees(self, markets):
        eth_btc = markets[0]
        assert eth_btc.id == "eth_btc"
        assert (eth_btc.base, eth_btc.quote) == ("ETH", "BTC")
        assert eth_btc.maker == pytest.approx(0.002)
        assert eth_btc.taker == pytest.approx(0.002)
        assert eth_btc.info == MARKETINFO["pairs"][0]

    def test_cost_limit_from_quote_table(self, markets):
        by_symbol = {m.symbol: m for m in markets}
        assert by_symbol["ETH/BTC"].limits.cost.min == 0.0001
        assert by_symbol["BTC/USDT"].limits.cost.min == 1
        assert by_symbol["XRP/USDT"].limits.cost.min == 1

    def test_cost_limit_falls_back_to_amount_times_price(self, markets):
        ltc = {m.symbol: m for m in markets}["LTC/CNYX"]
        assert ltc.limits.cost.min == pytest.approx(0.1 * 0.001)

    def test_currency_codes_are_canonicalized(self, markets):
        bch = {m.id: m for m in markets}["bcc_btc"]
        assert bch.symbol == "BCH/BTC"
        assert bch.base_id == "BCC"

    def test_custom_alias(self):
        markets = parse_markets(
            {"pairs": [{"xbt_usdt": {"decimal_places": 1, "min_amount": 1, "fee": 0.2}}]},
            CurrencyCodes({"usdt": "USD"}),
        )
        assert markets[0].symbol == "BTC/USD"

    @pytest.mark.parametrize("response", [{}, {"result": "true"}, None, {"pairs": "nope"}])
    def test_missing_pairs_raises(self, response):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_markets(response)
        assert isinstance(exc_info.value, ccxt.ExchangeError)
        assert exc_info.value.exchange_id == "gateio"

    @pytest.mark.parametrize("entry", [
        {"eth_btc": {"min_amount": "0.1", "fee": "0.2"}},
        {},
        {"eth_btc": {"decimal_places": 6}, "btc_usdt": {"decimal_places": 2}},
        {"ethbtc": {"decimal_places": 6}},
        "eth_btc",
    ])
    def test_malformed_pair_entry_raises(self, entry):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_markets({"pairs": [entry]})
        assert exc_info.value.exchange_id == "gateio"
        assert exc_info.value.payload == entry


class TestParseTicker:
    """Test ticker normalization."""

    RAW = {
        "last": "100",
        "percentChange": "10",
        "high24hr": "110",
        "low24hr": "90",
        "highestBid": "99",
        "lowestAsk": "101",
        "baseVolume": "5000",
        "quoteVolume": "50",
    }

    def test_derived_fields(self, markets):
        ticker = parse_ticker(self.RAW, markets[0])
        assert ticker.symbol == "ETH/BTC"
        assert ticker.last == 100

    def test_total_loss_leaves_derived_fields_unset(self):
        ticker = parse_ticker({"last": "0.5", "percentChange": "-100"})
        assert ticker.last == 0.5
        assert ticker.percentage == -100
        assert ticker.open is None
        assert ticker.change is None
        assert ticker.average is None
        assert ticker.close == 100
        assert ticker.percentage == 10
        assert ticker.open == pytest.approx(90.909, abs=1e-3)
        assert ticker.change == pytest.approx(9.091, abs=1e-3)
        assert ticker.average == pytest.approx(95.455, abs=1e-3)

    def test_volumes_are_swapped(self):
        ticker = parse_ticker(self.RAW)
        assert ticker.base_volume == 50
        assert ticker.quote_volume == 5000

    def test_missing_percent_change(self):
        raw = {k: v for k, v in self.RAW.items() if k != "percentChange"}
        ticker = parse_ticker(raw)
        assert ticker.open is None
        assert ticker.change is None
        assert ticker.average is None
        assert ticker.last == 100
        assert ticker.close == 100

    def test_non_numeric_fields_become_none(self):
        ticker = parse_ticker({"last": "n/a", "high24hr": "", "percentChange": "5"})
        assert ticker.last is None
        assert ticker.high is None
        assert ticker.open is None
        assert ticker.percentage == 5

    def test_capture_timestamp(self):
        ticker = parse_ticker(self.RAW, symbol="ETH/BTC", timestamp=1514764800000)
        assert ticker.symbol == "ETH/BTC"
        assert ticker.timestamp == 1514764800000
        assert ticker.datetime == "2018-01-01T00:00:00.000Z"


class TestTradeTimestamps:
    """Public trades are shifted from UTC+8, private trades are not."""

    PUBLIC = {"tradeID": "123", "date": "2018-01-01 12:00:00", "type": "buy", "rate": "0.05", "amount": "1.5"}
    PRIVATE = {
        "tradeID": "7",
        "orderNumber": "99",
        "type": "sell",
        "rate": "0.05",
        "amount": "1",
        "time_unix": "1514808000",
    }

    def test_public_trade(self, markets):
        trade = parse_trade(self.PUBLIC, markets[0])
        assert trade.timestamp == NOON_MS - 28_800_000
        assert trade.datetime == "2018-01-01T04:00:00.000Z"
        assert trade.id == "123"
        assert trade.symbol == "ETH/BTC"
        assert trade.side == "buy"
        assert trade.price == 0.05
        assert trade.amount == 1.5

    def test_my_trade(self, markets):
        trade = parse_my_trade(self.PRIVATE, markets[0])
        assert trade.timestamp == NOON_MS
        assert trade.order == "99"
        assert trade.side == "sell"
        assert trade.symbol == "ETH/BTC"

    def test_feeds_differ_for_same_nominal_time(self, markets):
        public = parse_trade(self.PUBLIC, markets[0])
        private = parse_my_trade(self.PRIVATE, markets[0])
        assert private.timestamp - public.timestamp == EXCHANGE_UTC_OFFSET_MS == 28_800_000

    def test_unparseable_date(self):
        trade = parse_trade({"tradeID": "1", "date": "yesterday-ish"})
        assert trade.timestamp is None
        assert trade.datetime is None


class TestParseOrder:
    """Test order normalization."""

    RAW = {
        "orderNumber": "1",
        "status": "open",
        "currencyPair": "eth_btc",
        "type": "buy",
        "rate": "0.05",
        "amount": "2",
        "initialRate": "0.05",
        "initialAmount": "0",
        "filledRate": "0.049",
        "filledAmount": "0.5",
        "feePercentage": 0.2,
        "timestamp": "1514808000",
    }

    def test_amount_falls_back_when_initial_is_zero(self, markets):
        order = parse_order(self.RAW, markets[0])
        assert order.amount == 2
        assert order.filled == 0.5
        assert order.remaining == order.amount - order.filled == 1.5
        assert order.price == 0.05
        assert order.average == 0.049
        assert order.type == "limit"
        assert order.timestamp == NOON_MS
        assert order.symbol == "ETH/BTC"

    def test_initial_values_preferred(self, markets):
        raw = dict(self.RAW, initialAmount="3", initialRate="0.06")
        order = parse_order(raw, markets[0])
        assert order.amount == 3
        assert order.price == 0.06
        assert order.remaining == 2.5

    def test_fee_in_base_currency_for_both_sides(self, markets):
        for side in ("buy", "sell"):
            order = parse_order(dict(self.RAW, type=side), markets[0])
            assert order.fee.currency == "ETH"
            assert order.fee.cost == pytest.approx(2 * 0.2 / 100)

    def test_no_fee_without_market(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="src.exchanges.gateio_parsers"):
            order = parse_order(self.RAW)
        assert "fee dropped" in caplog.text
        assert order.symbol is None
        assert order.fee is None
        assert order.amount == 2

    def test_no_fee_without_percentage(self, markets):
        raw = {k: v for k, v in self.RAW.items() if k != "feePercentage"}
        assert parse_order(raw, markets[0]).fee is None

    def test_missing_timestamp_and_fill(self, markets):
        order = parse_order({"orderNumber": "5", "initialAmount": 1}, markets[0])
        assert order.timestamp is None
        assert order.filled is None
        assert order.remaining is None


class TestParseBalance:
    """Test balance normalization."""

    def test_every_known_currency_is_reported(self, registry):
        response = {
            "result": "true",
            "available": {"BTC": "1.5", "ETH": "10", "BCC": "3"},
            "locked": {"BTC": "0.5"},
        }
        balances = parse_balance(response, registry)
        assert set(balances.entries) == set(registry.currencies)
        assert (balances["BTC"].free, balances["BTC"].used, balances["BTC"].total) == (1.5, 0.5, 2.0)
        assert balances["ETH"].total == 10
        assert balances["BCH"].free == 3
        assert balances.info is response

    def test_absent_currency_is_zero(self, registry):
        balances = parse_balance({"result": "true"}, registry)
        usdt = balances["USDT"]
        assert (usdt.free, usdt.used, usdt.total) == (0, 0, 0)
        assert balances.total["XRP"] == 0


class TestParseDepositAddress:
    """Test deposit address normalization."""

    def test_error_sentinel_raises(self):
        with pytest.raises(InvalidAddressError):
            parse_deposit_address({"result": "true", "addr": "1xrpaddresserror"}, "XRP")

    def test_xrp_tag_is_split(self):
        deposit = parse_deposit_address({"result": "true", "addr": "rAddr123/456"}, "XRP")
        assert deposit.address == "rAddr123"
        assert deposit.tag == "456"
        assert deposit.status == "ok"
        assert deposit.currency == "XRP"

    def test_plain_address(self):
        deposit = parse_deposit_address({"addr": "1BoatSLRHtKNngkdXEeobR76b53LETtpyT"}, "BTC")
        assert deposit.address == "1BoatSLRHtKNngkdXEeobR76b53LETtpyT"
        assert deposit.tag is None

    def test_missing_address(self):
        deposit = parse_deposit_address({"result": "true"}, "BTC")
        assert deposit.address is None
        assert deposit.status == "none"


class TestParseOrderBook:
    """Test order book normalization."""

    RAW = {"result": "true", "asks": [[0.052, 1], [0.051, 2]], "bids": [["0.049", "1"], [0.05, 3]]}

    def test_sorted_sides(self):
        book = parse_order_book(self.RAW)
        assert book.asks == [[0.051, 2.0], [0.052, 1.0]]
        assert book.bids == [[0.05, 3.0], [0.049, 1.0]]

    def test_limit(self):
        book = parse_order_book(self.RAW, limit=1)
        assert book.asks == [[0.051, 2.0]]
        assert book.bids == [[0.05, 3.0]]
