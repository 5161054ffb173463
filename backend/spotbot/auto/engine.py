# spotbot/auto/engine.py
# -*- coding: utf-8 -*-
"""
Signal-and-execution engine.

Feed frames are queued and handled one at a time by a single worker, so
an activation that is awaiting an order or a reconciliation is never
interleaved with the next tick. Direct callers of `process_tick` are
serialized by a lock held for the whole activation, from the window
update through reconciliation.

Ticks for pairs that a reload delisted are ignored; pairs listed after
startup are not subscribed until the engine is restarted.

Per tick:
    window update -> classify -> guard -> size -> order -> reconcile
"""
from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any, Callable, Optional, Set

from ..core.exceptions import GatewayTimeoutFailure, ProcessingFailure
from ..logs.logger import log_signal
from .market_stream import parse_tick
from .order_exec import build_order, execute
from .reconcile import reload
from .risk_manager import MIN_NOTIONAL, can_trade
from .sizing import order_quantity
from .state import EngineState, Symbol
from .triggers import Signal, classify, percent_deviation

log = logging.getLogger("engine")

STARTED_SUBJECT = "Bot has been started"


class _FeedClosed:
    def __init__(self, error: Optional[BaseException] = None):
        self.error = error


class TradingEngine:
    def __init__(
        self,
        state: EngineState,
        gateway,
        feed_factory: Optional[Callable[[list], Any]] = None,
        notifier=None,
        min_notional: float = MIN_NOTIONAL,
    ):
        self.state = state
        self.gateway = gateway
        self.notifier = notifier
        self.min_notional = min_notional
        self._feed_factory = feed_factory
        self.feed = None
        self.running = False
        self.stop_reason: Optional[str] = None
        self.subscribed: Set[Symbol] = set()
        self._queue: asyncio.Queue = asyncio.Queue()
        self._lock = asyncio.Lock()
        self._background: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def run(self) -> None:
        """
        Reconcile, open the feed and process it until it closes or fails.

        ProcessingFailure stops the engine; any other error propagates
        after the feed is torn down. There is no reconnect.
        """
        await reload(self.state, self.gateway)
        self.subscribed = set(self.state.instruments)
        self.feed = self._make_feed(list(self.subscribed))
        self.running = True
        self.stop_reason = None
        self._notify(STARTED_SUBJECT, "Initial balances:\n" + self._balances_json())

        reader = asyncio.create_task(self._pump(), name="feed-reader")
        try:
            await self._consume()
        finally:
            self.running = False
            reader.cancel()
            try:
                await reader
            except asyncio.CancelledError:
                pass
            await self.feed.close()
            log.info("[engine] feed torn down (%s)", self.stop_reason or "closed")

    async def stop(self, reason: str = "stopped") -> None:
        self.stop_reason = reason
        if self.feed is not None:
            await self.feed.close()

    def _make_feed(self, symbols):
        if self._feed_factory is not None:
            return self._feed_factory(symbols)
        from ..services.binance_client import BinanceWs
        return BinanceWs(symbols)

    async def _pump(self) -> None:
        try:
            async for raw in self.feed.stream():
                await self._queue.put(raw)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            await self._queue.put(_FeedClosed(e))
            return
        await self._queue.put(_FeedClosed())

    async def _consume(self) -> None:
        while True:
            item = await self._queue.get()
            if isinstance(item, _FeedClosed):
                if item.error is not None:
                    raise item.error
                return
            try:
                await self.handle(item)
            except ProcessingFailure as e:
                self.stop_reason = str(e)
                log.error("[engine] %s", e)
                return

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def handle(self, raw) -> Optional[Signal]:
        tick = parse_tick(raw)
        return await self.process_tick(tick.symbol, tick.close_price)

    async def process_tick(self, symbol: Symbol, price: float) -> Optional[Signal]:
        """
        Returns the acted-upon signal, Signal.NONE when nothing is done, or
        None while the window is filling or the activation was aborted.
        """
        async with self._lock:
            try:
                return await self._activate(symbol, price)
            except GatewayTimeoutFailure as e:
                log.warning("[engine] activation aborted: %s", e)
                return None

    async def _activate(self, symbol: Symbol, price: float) -> Optional[Signal]:
        if self.state.bot.stale:
            await self._reconcile()
            if self.state.bot.stale:
                return None

        if symbol not in self.state.instruments and symbol in self.subscribed:
            # delisted by a reload; the stream opened at startup still carries it
            log.debug("[engine] tick for delisted %s ignored", symbol)
            return None

        update = self.state.update_price(symbol, price)
        if update.average is None:
            return None

        signal = classify(price, update.average)
        if signal is Signal.NONE:
            return signal

        pct = percent_deviation(price, update.average)
        if not can_trade(self.state, symbol, signal, price, self.min_notional):
            log_signal(symbol, signal.value, price, update.average, pct, acted=False)
            return Signal.NONE
        log_signal(symbol, signal.value, price, update.average, pct)
        await self._trade(symbol, signal, price)
        return signal

    async def _trade(self, symbol: Symbol, signal: Signal, price: float) -> None:
        state = self.state
        inst = state.instrument(symbol)
        funding = state.quote_asset if signal is Signal.BUY else state.base_asset(symbol)
        balance = state.balances[funding].balance
        step = state.pairs[symbol].minimum_quantity
        order = build_order(symbol, signal, order_quantity(signal, balance, price, step), price)

        state.bot.is_trading = True
        outcome = "failed"
        try:
            try:
                await execute(self.gateway, order)
            except Exception as order_error:
                try:
                    await self._reconcile()
                except Exception as reconcile_error:
                    log.error("[engine] reconciliation after failed %s %s also failed: %s",
                              signal.value, symbol, reconcile_error)
                    raise order_error from reconcile_error
                raise
            outcome = "sent"
            if signal is Signal.BUY:
                inst.last_buy_price = price
            inst.last_signal_ts = time.time()
            await self._reconcile()
        finally:
            state.bot.is_trading = False
            self._notify(
                f"{signal.value} {symbol} {outcome}",
                f"quantity={order.quantity} price={order.price}",
            )

    async def _reconcile(self) -> None:
        try:
            await reload(self.state, self.gateway)
        except GatewayTimeoutFailure as e:
            self.state.bot.stale = True
            self.state.bot.can_trade = False
            log.warning("[engine] reconciliation timed out, retrying on next tick: %s", e)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def _balances_json(self) -> str:
        return json.dumps(
            {a: {"balance": b.balance, "price": b.price, "value": b.value} for a, b in self.state.balances.items()}
        )

    def _notify(self, subject: str, body: str) -> None:
        if self.notifier is None:
            return
        task = asyncio.create_task(self.notifier.notify(subject, body))
        self._background.add(task)
        task.add_done_callback(self._notified)

    def _notified(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if not task.cancelled() and task.exception() is not None:
            log.warning("[engine] notification failed: %s", task.exception())

    async def drain_notifications(self) -> None:
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
