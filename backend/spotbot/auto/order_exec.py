# spotbot/auto/order_exec.py
# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from ..logs.logger import log_order
from .sizing import format_decimal, format_price
from .triggers import Signal

log = logging.getLogger("order_exec")


@dataclass
class OrderRequest:
    symbol: str
    side: str
    quantity: str
    price: str
    type: str = "LIMIT"
    timeInForce: str = "GTC"

    def params(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "side": self.side,
            "type": self.type,
            "timeInForce": self.timeInForce,
            "quantity": self.quantity,
            "price": self.price,
        }


def build_order(symbol: str, side: Signal, quantity, current_price: float) -> OrderRequest:
    return OrderRequest(
        symbol=symbol,
        side=Signal(side).value,
        quantity=format_decimal(quantity),
        price=format_price(current_price),
    )


async def execute(gateway, order: OrderRequest) -> Optional[Dict[str, Any]]:
    """
    Send a LIMIT GTC order. The response is logged, not inspected; gateway
    failures are journaled and re-raised to the caller.
    """
    record = {"ts": time.time(), **asdict(order)}
    try:
        response = await gateway.place_order(order.params())
    except Exception as e:
        record.update({"ok": False, "error": str(e)})
        log_order(record)
        log.error("[order_exec] %s %s failed: %s", order.side, order.symbol, e)
        raise
    record.update({"ok": True, "response": response})
    log_order(record)
    log.info("[order_exec] %s %s qty=%s @ %s -> %s", order.side, order.symbol, order.quantity, order.price, response)
    return response
