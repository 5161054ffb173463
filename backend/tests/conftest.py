"""
Shared test fixtures for the spot bot.

Provides:
- Instrument metadata and a reconciled EngineState
- An AsyncMock exchange gateway
- A scripted market feed
"""

import json

import pytest
from unittest.mock import AsyncMock

from spotbot.auto.state import BalanceEntry, EngineState, InstrumentMeta, Stage
from spotbot.logs.logger import clear_journal


def make_meta(symbol="BTCUSDT", base="BTC", min_qty=0.5, max_qty=1000.0):
    return InstrumentMeta(symbol=symbol, base_asset=base, minimum_quantity=min_qty, maximum_quantity=max_qty)


def kline_frame(symbol, close):
    return json.dumps({
        "stream": f"{symbol.lower()}@kline_1m",
        "data": {"e": "kline", "s": symbol, "k": {"c": str(close), "x": False}},
    })


class FakeFeed:
    """Replays frames, then ends (or raises `error`)."""

    def __init__(self, frames, error=None):
        self.frames = list(frames)
        self.error = error
        self.symbols = None
        self.closed = False

    async def stream(self):
        for f in self.frames:
            yield f
        if self.error is not None:
            raise self.error

    async def close(self):
        self.closed = True


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _clean_journal():
    clear_journal()
    yield
    clear_journal()


@pytest.fixture
def ready_state():
    """Window of 3 ticks, BTCUSDT listed, 100 USDT and 2 BTC held."""
    st = EngineState(window_size=3, quote_asset="USDT")
    st.replace_pairs([make_meta()])
    st.replace_balances({
        "USDT": BalanceEntry(balance=100.0, price=1.0, value=100.0),
        "BTC": BalanceEntry(balance=2.0, price=10.0, value=20.0),
    })
    st.bot.can_trade = True
    st.bot.stage = Stage.READY
    return st


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------


@pytest.fixture
def gateway():
    gw = AsyncMock()
    gw.get_maintenance_status.return_value = False
    gw.list_tradable_instruments.return_value = [make_meta()]
    gw.get_account_balances.return_value = [
        {"asset": "BTC", "free": 2.0},
        {"asset": "USDT", "free": 100.0},
    ]
    gw.place_order.return_value = {"orderId": 1, "status": "NEW"}
    return gw
