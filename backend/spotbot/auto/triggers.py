from enum import Enum

# Strategy constants, both inclusive.
BUY_THRESHOLD_PCT = -1.0
SELL_THRESHOLD_PCT = 1.5


class Signal(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    NONE = "NONE"


def percent_deviation(current_price: float, average_price: float) -> float:
    return (current_price - average_price) / average_price * 100


def classify(current_price: float, average_price: float) -> Signal:
    """BUY at or below -1% from the moving average, SELL at or above +1.5%."""
    pct = percent_deviation(current_price, average_price)
    if pct <= BUY_THRESHOLD_PCT:
        return Signal.BUY
    if pct >= SELL_THRESHOLD_PCT:
        return Signal.SELL
    return Signal.NONE
