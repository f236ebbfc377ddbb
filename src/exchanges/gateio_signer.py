"""
Request signer for the Gate.io v2 REST API.

Public calls are plain GETs with the non-path parameters in the query string.
Private calls are form-encoded POSTs::

    body    = urlencode({"nonce": <ms>, **params})
    Key:  <api key>
    Sign: hex(HMAC-SHA512(secret, body))
"""

from __future__ import annotations

import hashlib
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from ccxt.base.exchange import Exchange

from src.core.errors import AuthenticationError
from src.helpers.parse_helper import milliseconds

API_URL = "https://data.gate.io/api"
API_VERSION = "2"


@dataclass
class SignedRequest:
    url: str
    method: str
    body: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)


class NonceGenerator:
    """Millisecond nonces that never repeat or go backwards."""

    def __init__(self) -> None:
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            self._last = max(milliseconds(), self._last + 1)
            return self._last


class GateioSigner:
    """
    Parameters
    ----------
    api_key, secret : str, optional
        Credentials; only needed for private endpoints.
    base_url : str
        Override the API root (useful for testing).
    exchange_id : str
        Prefix for raised errors.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        secret: Optional[str] = None,
        base_url: str = API_URL,
        exchange_id: str = "gateio",
        nonce: Optional[NonceGenerator] = None,
    ) -> None:
        self.api_key = api_key
        self.secret = secret
        self.base_url = base_url.rstrip("/")
        self.exchange_id = exchange_id
        self.nonce = nonce or NonceGenerator()

    def check_required_credentials(self) -> None:
        missing = [name for name, value in (("api_key", self.api_key), ("secret", self.secret)) if not value]
        if missing:
            raise AuthenticationError(f"requires \"{', '.join(missing)}\" credential", self.exchange_id)

    def url(self, path: str, api: str, params: Mapping[str, Any]) -> str:
        prefix = "private/" if api == "private" else ""
        return f"{self.base_url}{API_VERSION}/1/{prefix}{Exchange.implode_params(path, dict(params))}"

    def sign(
        self,
        path: str,
        api: str = "public",
        method: str = "GET",
        params: Optional[Mapping[str, Any]] = None,
    ) -> SignedRequest:
        params = dict(params or {})
        url = self.url(path, api, params)
        path_keys = Exchange.extract_params(path)
        query = {k: v for k, v in params.items() if k not in path_keys}

        if api == "public":
            if query:
                url += "?" + Exchange.urlencode(query)
            return SignedRequest(url=url, method=method)

        self.check_required_credentials()
        body = Exchange.urlencode({"nonce": self.nonce(), **query})
        signature = Exchange.hmac(
            Exchange.encode(body),
            Exchange.encode(self.secret),
            hashlib.sha512,
        )
        headers = {
            "Key": self.api_key,
            "Sign": signature,
            "Content-Type": "application/x-www-form-urlencoded",
        }
        return SignedRequest(url=url, method=method, body=body, headers=headers)
