# auto_runner.py
import asyncio
import logging
from typing import Optional

from ..core.config import CFG
from ..logs.logger import setup_logging
from ..services.binance_rest import BinanceGateway
from ..services.notifier import default_notifier
from .engine import TradingEngine
from .state import EngineState

log = logging.getLogger("auto_runner")

ENGINE: Optional[TradingEngine] = None


def build_engine(gateway: BinanceGateway) -> TradingEngine:
    state = EngineState(
        window_size=CFG.WINDOW_SIZE,
        quote_asset=CFG.QUOTE_ASSET,
        hold_minutes=CFG.HOLD_MINUTES,
    )
    return TradingEngine(
        state,
        gateway,
        notifier=default_notifier(),
        min_notional=CFG.MIN_NOTIONAL,
    )


def get_engine() -> Optional[TradingEngine]:
    return ENGINE


async def run_bot() -> None:
    """Run one engine until its feed ends; restarting is left to the supervisor."""
    global ENGINE
    async with BinanceGateway() as gateway:
        ENGINE = build_engine(gateway)
        try:
            await ENGINE.run()
        finally:
            await ENGINE.drain_notifications()
            log.info("[auto_runner] engine stopped: %s", ENGINE.stop_reason or "feed closed")


def main() -> None:
    setup_logging(CFG.LOG_LEVEL)
    try:
        asyncio.run(run_bot())
    except KeyboardInterrupt:
        log.info("[auto_runner] interrupted")
