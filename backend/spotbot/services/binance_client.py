# spotbot/services/binance_client.py
# -*- coding: utf-8 -*-
"""
Binance spot kline streams via WebSocket.

We multiplex every loaded pair with the /stream?streams=... endpoint and
yield raw frames:
  {"stream": "<symbol>@kline_<interval>", "data": {...}}

No reconnect: a dropped connection ends the stream and the engine with it.
"""

import logging
from typing import AsyncIterator, Iterable, List, Optional

import websockets

from ..core.config import CFG

log = logging.getLogger("binance_ws")

_ALLOWED_KLINES = {"1m","3m","5m","15m","30m","1h","2h","4h","6h","8h","12h","1d","3d","1w","1M"}

def _normalize_interval(iv: str) -> str:
    iv = (iv or "1m").strip()
    return iv if iv in _ALLOWED_KLINES else "1m"

def _build_streams(symbols: Iterable[str], kline_interval: str) -> List[str]:
    return [f"{s.lower()}@kline_{kline_interval}" for s in symbols]

def _build_url(host: str, symbols: Iterable[str], kline_interval: str) -> str:
    streams = _build_streams(symbols, kline_interval)
    return f"{host.rstrip('/')}/stream?streams={'/'.join(streams)}"


class BinanceWs:
    """
    Usage:
        ws = BinanceWs(["BTCUSDT","ETHUSDT"], kline_interval="1m")
        async for raw in ws.stream():
            ...
    """
    def __init__(
        self,
        symbols: Iterable[str],
        host: Optional[str] = None,
        kline_interval: Optional[str] = None,
        ping_interval: int = 20,
        ping_timeout: int = 20,
    ):
        self.symbols = [s.upper().strip() for s in symbols if s and s.strip()]
        self.host = host or CFG.BINANCE_WS_URL
        self.kline_interval = _normalize_interval(kline_interval or CFG.KLINE_INTERVAL)
        self.ping_interval = ping_interval
        self.ping_timeout = ping_timeout
        self._ws = None

        self.url = _build_url(self.host, self.symbols, self.kline_interval)
        log.info(f"[BinanceWs] {len(self.symbols)} streams, URL length {len(self.url)}")

    async def stream(self) -> AsyncIterator[str]:
        async with websockets.connect(
            self.url,
            ping_interval=self.ping_interval,
            ping_timeout=self.ping_timeout,
            close_timeout=5,
            max_size=None,
        ) as ws:
            self._ws = ws
            log.info("[BinanceWs] Connected.")
            try:
                async for raw in ws:
                    yield raw
            finally:
                self._ws = None
        log.warning("[BinanceWs] Connection closed.")

    async def close(self) -> None:
        if self._ws is not None:
            await self._ws.close()
