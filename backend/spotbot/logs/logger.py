# spotbot/logs/logger.py
from __future__ import annotations

import logging
from collections import deque
from datetime import datetime
from typing import Any, Deque, Dict, List

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# In-memory journal for the status API; not persisted.
SIGNALS: Deque[Dict[str, Any]] = deque(maxlen=500)
ORDERS: Deque[Dict[str, Any]] = deque(maxlen=1000)

_signal_log = logging.getLogger("signals")


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def log_signal(symbol: str, side: str, current_price: float, average_price: float, percentage: float,
               acted: bool = True) -> None:
    """Journal a BUY/SELL signal; `acted` is False when the guard blocked it."""
    SIGNALS.append({
        "symbol": symbol,
        "side": side,
        "current_price": current_price,
        "average_price": average_price,
        "percentage": percentage,
        "acted": acted,
        "logged_at": datetime.utcnow().isoformat(),
    })
    _signal_log.log(
        logging.INFO if acted else logging.DEBUG,
        "%s %s%s | current $%s | average $%s | change %.2f%%",
        symbol, side, "" if acted else " (gated)", f"{current_price:.8g}", f"{average_price:.8g}", percentage,
    )


def log_order(order: Dict[str, Any]) -> None:
    order["logged_at"] = datetime.utcnow().isoformat()
    ORDERS.append(order)


def get_recent_signals(limit: int = 100) -> List[Dict[str, Any]]:
    if limit <= 0:
        return []
    return list(SIGNALS)[-limit:]


def get_recent_orders(limit: int = 100) -> List[Dict[str, Any]]:
    if limit <= 0:
        return []
    return list(ORDERS)[-limit:]


def clear_journal() -> None:
    SIGNALS.clear()
    ORDERS.clear()
