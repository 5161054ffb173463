# spotbot/services/binance_rest.py
# -*- coding: utf-8 -*-
"""
Binance spot REST gateway: tradable pairs, maintenance flag, balances and
signed order placement.

Signed calls build the query string once, in parameter order, append a
strictly increasing millisecond timestamp and send exactly the string that
was signed.
"""
from __future__ import annotations

import hashlib
import hmac
import logging
import time
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import httpx

from ..auto.state import InstrumentMeta, to_asset, to_symbol
from ..core.config import CFG
from ..core.exceptions import GatewayTimeoutFailure, StatusCodeFailure

log = logging.getLogger("binance_rest")

ENDPOINTS = {
    "exchange_info": "/api/v3/exchangeInfo",
    "system_status": "/sapi/v1/system/status",
    "account": "/api/v3/account",
    "order": "/api/v3/order",
}

STATUS_CAUSES = {
    400: "Bad Request. Something in the request is malformed",
    401: "Not Authorized",
    403: "WAF (Web Application Firewall) limit has been violated",
    418: "You are banned from using the Binance API for a while.",
    429: "Request limit has been exceeded. Be careful.",
}

LEVERAGED_MARKERS = ("UP", "DOWN")


class BinanceGateway:
    def __init__(
        self,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        base_url: Optional[str] = None,
        quote_asset: Optional[str] = None,
        timeout: Optional[float] = None,
        recv_window: Optional[int] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key if api_key is not None else CFG.BINANCE_API_KEY
        self._secret = (api_secret if api_secret is not None else CFG.BINANCE_API_SECRET).encode()
        self.base_url = (base_url or CFG.BINANCE_API_URL).rstrip("/")
        self.quote_asset = (quote_asset or CFG.QUOTE_ASSET).upper()
        self.timeout = timeout if timeout is not None else CFG.REQUEST_TIMEOUT
        self.recv_window = recv_window if recv_window is not None else CFG.RECV_WINDOW
        self._client = client or httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)
        self._last_ts = 0

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "BinanceGateway":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Signing
    # ------------------------------------------------------------------

    def _ts_ms(self) -> int:
        now = int(time.time() * 1000)
        self._last_ts = max(now, self._last_ts + 1)
        return self._last_ts

    def sign(self, query: str) -> str:
        return hmac.new(self._secret, query.encode(), hashlib.sha256).hexdigest()

    def signed_query(self, params: Dict[str, Any]) -> str:
        p = {k: v for k, v in params.items() if v is not None}
        p["recvWindow"] = self.recv_window
        p["timestamp"] = self._ts_ms()
        q = urlencode(p)
        return f"{q}&signature={self.sign(q)}"

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request(self, method: str, path: str, params: Dict[str, Any] = None, signed: bool = False) -> Any:
        headers = {"X-MBX-APIKEY": self.api_key} if signed else {}
        url = path
        if signed:
            url = f"{path}?{self.signed_query(params or {})}"
            params = None
        log.debug("%s %s signed=%s", method, path, signed)
        try:
            r = await self._client.request(method, url, params=params, headers=headers)
        except httpx.TimeoutException as e:
            raise GatewayTimeoutFailure(f"{method} {path} timed out after {self.timeout}s") from e

        if r.status_code in STATUS_CAUSES:
            raise StatusCodeFailure(r.status_code, STATUS_CAUSES[r.status_code], r.text)
        r.raise_for_status()
        return r.json()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def get_maintenance_status(self) -> bool:
        data = await self._request("GET", ENDPOINTS["system_status"])
        return int(data.get("status", 1)) != 0

    async def list_tradable_instruments(self) -> List[InstrumentMeta]:
        """Spot pairs quoted in the stable asset, leveraged tokens excluded."""
        data = await self._request("GET", ENDPOINTS["exchange_info"])
        pairs: List[InstrumentMeta] = []
        for s in data.get("symbols", []):
            base = s.get("baseAsset", "")
            if (
                s.get("status") != "TRADING"
                or s.get("quoteAsset") != self.quote_asset
                or s.get("isSpotTradingAllowed") is not True
                or any(marker in base for marker in LEVERAGED_MARKERS)
            ):
                continue
            lot = next((f for f in s.get("filters", []) if f.get("filterType") == "LOT_SIZE"), None)
            if lot is None:
                log.warning("No LOT_SIZE filter for %s, skipped", s.get("symbol"))
                continue
            pairs.append(
                InstrumentMeta(
                    symbol=to_symbol(s["symbol"]),
                    base_asset=to_asset(base),
                    minimum_quantity=float(lot["minQty"]),
                    maximum_quantity=float(lot["maxQty"]),
                )
            )
        return pairs

    async def get_account_balances(self) -> List[Dict[str, Any]]:
        data = await self._request("GET", ENDPOINTS["account"], signed=True)
        return [{"asset": b["asset"], "free": float(b["free"])} for b in data.get("balances", [])]

    async def place_order(self, params: Dict[str, Any]) -> Dict[str, Any]:
        p = dict(params)
        p.setdefault("newOrderRespType", "RESULT")
        return await self._request("POST", ENDPOINTS["order"], p, signed=True)
