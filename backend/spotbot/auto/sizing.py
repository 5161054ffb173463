# spotbot/auto/sizing.py
"""
Order sizing against the LOT_SIZE step.

BUY spends the quote balance, so it is converted to base units and floored
to the step. SELL already holds base units and sends the balance as-is.
maximum_quantity is never applied here.
"""
from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP

from .triggers import Signal

PRICE_SIGNIFICANT_DIGITS = 8


def _d(x) -> Decimal:
    return x if isinstance(x, Decimal) else Decimal(str(x))


def floor_to_step(qty, step) -> Decimal:
    d_qty, d_step = _d(qty), _d(step)
    if d_step <= 0:
        return d_qty
    return (d_qty / d_step).to_integral_value(rounding=ROUND_DOWN) * d_step


def buy_quantity(quote_balance, current_price, step_size) -> Decimal:
    return floor_to_step(_d(quote_balance) / _d(current_price), step_size)


def sell_quantity(base_balance) -> Decimal:
    return _d(base_balance)


def order_quantity(side, balance, current_price, step_size) -> Decimal:
    if side == Signal.BUY:
        return buy_quantity(balance, current_price, step_size)
    if side == Signal.SELL:
        return sell_quantity(balance)
    raise ValueError(f"cannot size side {side!r}")


def format_decimal(value) -> str:
    return format(_d(value), "f")


def format_price(price: float, digits: int = PRICE_SIGNIFICANT_DIGITS) -> str:
    """Round to `digits` significant digits, always in plain notation."""
    d = _d(price)
    if d == 0:
        return "0"
    quantum = Decimal(1).scaleb(d.adjusted() - digits + 1)
    return format(d.quantize(quantum, rounding=ROUND_HALF_UP), "f")
