# spotbot/api/routes_status.py
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter

from ..auto.auto_runner import get_engine
from ..logs.logger import get_recent_orders, get_recent_signals

router = APIRouter(prefix="/status", tags=["status"])


@router.get("")
async def status(limit: int = 20) -> Dict[str, Any]:
    engine = get_engine()
    signals = get_recent_signals(limit)
    orders = get_recent_orders(limit)

    return {
        "running": bool(engine and engine.running),
        "stop_reason": engine.stop_reason if engine else None,
        "engine": engine.state.snapshot() if engine else None,
        "signals_count": len(signals),
        "orders_count": len(orders),
        "recent_signals": signals,
        "recent_orders": orders,
    }
