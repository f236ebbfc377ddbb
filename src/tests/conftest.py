"""Shared Gate.io payloads and a routed fake HTTP session."""

import json
from unittest.mock import Mock

import pytest
import requests

from src.core.registry import CurrencyCodes, MarketRegistry
from src.exchanges.gateio_parsers import parse_markets

MARKETINFO = {
    "result": "true",
    "pairs": [
        {"eth_btc": {"decimal_places": 6, "min_amount": 0.001, "fee": 0.2}},
        {"btc_usdt": {"decimal_places": 2, "min_amount": 0.0001, "fee": 0.2}},
        {"xrp_usdt": {"decimal_places": 4, "min_amount": 1, "fee": 0.2}},
        {"bcc_btc": {"decimal_places": 5, "min_amount": 0.01, "fee": 0.2}},
        {"ltc_cnyx": {"decimal_places": 3, "min_amount": 0.1, "fee": 0.1}},
    ],
}


def make_response(payload, status=200):
    resp = Mock()
    resp.status_code = status
    resp.text = payload if isinstance(payload, str) else json.dumps(payload)
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} Error")
    return resp


def routed_session(routes):
    """
    Fake ``requests.Session`` answering by API path, e.g.
    ``{"tickers": {...}, "private/balances": {...}}``.
    """
    session = Mock(spec=requests.Session)

    def _request(method, url, **kwargs):
        path = url.split("/api2/1/", 1)[1].split("?", 1)[0]
        if path not in routes:
            raise AssertionError(f"unexpected request {method} {url}")
        payload = routes[path]
        if isinstance(payload, Exception):
            raise payload
        if isinstance(payload, tuple):
            return make_response(*payload)
        return make_response(payload)

    session.request.side_effect = _request
    return session


def calls_to(session, path):
    return [c for c in session.request.call_args_list if c.args[1].split("/api2/1/", 1)[1].split("?", 1)[0] == path]


@pytest.fixture
def markets():
    return parse_markets(MARKETINFO, CurrencyCodes())


@pytest.fixture
def registry(markets):
    reg = MarketRegistry("gateio")
    reg.install(markets)
    return reg


@pytest.fixture
def config():
    return {"gateio": {"api_key": "key", "api_secret": "secret"}}
