import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, NamedTuple, NewType, Optional

from ..core.exceptions import ProcessingFailure

Symbol = NewType("Symbol", str)
Asset = NewType("Asset", str)


def to_symbol(raw) -> Symbol:
    """Canonical instrument key: upper-case alphanumeric, e.g. BTCUSDT."""
    if not isinstance(raw, str):
        raise ValueError(f"symbol must be a string, got {type(raw).__name__}")
    s = raw.strip().upper()
    if not s or not s.isalnum():
        raise ValueError(f"invalid symbol {raw!r}")
    return Symbol(s)


def to_asset(raw) -> Asset:
    if not isinstance(raw, str):
        raise ValueError(f"asset must be a string, got {type(raw).__name__}")
    a = raw.strip().upper()
    if not a or not a.isalnum():
        raise ValueError(f"invalid asset {raw!r}")
    return Asset(a)


class Stage(str, Enum):
    IDLE = "IDLE"
    CHECKING_MAINTENANCE = "CHECKING_MAINTENANCE"
    LOADING = "LOADING"
    READY = "READY"


@dataclass(frozen=True)
class InstrumentMeta:
    symbol: Symbol
    base_asset: Asset
    minimum_quantity: float
    maximum_quantity: float   # not enforced when sizing


@dataclass
class BalanceEntry:
    balance: float
    price: float = 0.0
    value: float = 0.0

    def mark(self, price: float) -> None:
        self.price = price
        self.value = self.balance * price


class WindowUpdate(NamedTuple):
    length: int
    average: Optional[float]    # set only when the window is exactly full


class InstrumentState:
    def __init__(self, symbol: Symbol, window_size: int, last_buy_price: float = 0.0):
        if window_size < 1:
            raise ValueError("window_size must be >= 1")
        self.symbol = symbol
        self.window_size = window_size
        self.prices = deque(maxlen=window_size)   # oldest evicted first
        self.last_buy_price = last_buy_price
        self.last_signal_ts = time.time()          # kept, not used for gating

    def push(self, price: float) -> WindowUpdate:
        self.prices.append(price)
        length = len(self.prices)
        if length == self.window_size:
            # left-to-right sum, same order as a plain reduce
            return WindowUpdate(length, sum(self.prices) / length)
        return WindowUpdate(length, None)


@dataclass
class BotState:
    window_size: int
    hold_minutes: int = 10     # cooldown, declared only
    can_trade: bool = False
    is_trading: bool = False
    is_loading: bool = False
    stale: bool = False        # last cycle aborted on a timeout
    stage: Stage = Stage.IDLE


class EngineState:
    """
    Everything the engine mutates: bot flags, lot metadata, per-instrument
    price windows and the balance book.
    """

    def __init__(self, window_size: int, quote_asset: str = "USDT", hold_minutes: int = 10):
        self.quote_asset = to_asset(quote_asset)
        self.bot = BotState(window_size=window_size, hold_minutes=hold_minutes)
        self.pairs: Dict[Symbol, InstrumentMeta] = {}
        self.instruments: Dict[Symbol, InstrumentState] = {}
        self.balances: Dict[Asset, BalanceEntry] = {}

    # -- lookups ---------------------------------------------------------

    def base_asset(self, symbol: Symbol) -> Asset:
        meta = self.pairs.get(symbol)
        if meta is not None:
            return meta.base_asset
        return Asset(symbol[: -len(self.quote_asset)] if symbol.endswith(self.quote_asset) else symbol)

    def instrument(self, symbol: Symbol) -> InstrumentState:
        try:
            return self.instruments[symbol]
        except KeyError:
            raise ProcessingFailure(f"tick for unknown instrument {symbol}") from None

    # -- price window ----------------------------------------------------

    def update_price(self, symbol: Symbol, price: float) -> WindowUpdate:
        """Append a tick to the symbol's window and re-mark the held base asset."""
        inst = self.instrument(symbol)
        entry = self.balances.get(self.base_asset(symbol))
        if entry is not None:
            entry.mark(price)
        return inst.push(price)

    # -- wholesale replacement on reconciliation ---------------------------

    def replace_pairs(self, metas: Iterable[InstrumentMeta]) -> None:
        previous = self.instruments
        self.pairs = {m.symbol: m for m in metas}
        self.instruments = {}
        for symbol in self.pairs:
            old = previous.get(symbol)
            self.instruments[symbol] = InstrumentState(
                symbol,
                self.bot.window_size,
                last_buy_price=old.last_buy_price if old is not None else 0.0,
            )

    def replace_balances(self, balances: Dict[Asset, BalanceEntry]) -> None:
        self.balances = dict(balances)

    def snapshot(self) -> dict:
        bot = self.bot
        return {
            "stage": bot.stage.value,
            "can_trade": bot.can_trade,
            "is_trading": bot.is_trading,
            "is_loading": bot.is_loading,
            "stale": bot.stale,
            "window_size": bot.window_size,
            "instruments": len(self.instruments),
            "full_windows": sum(1 for i in self.instruments.values() if len(i.prices) == i.window_size),
            "balances": {
                a: {"balance": b.balance, "price": b.price, "value": b.value}
                for a, b in self.balances.items()
            },
        }
