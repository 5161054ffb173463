from .state import EngineState, Symbol
from .triggers import Signal

MIN_NOTIONAL = 10.0


def bot_available(state: EngineState) -> bool:
    bot = state.bot
    return bot.can_trade and not bot.is_loading and not bot.is_trading


def can_trade(state: EngineState, symbol: Symbol, side, current_price: float,
              min_notional: float = MIN_NOTIONAL) -> bool:
    """
    Pure gate on a classified tick. Never mutates state.

    SELL is allowed only below the recorded buy price; this mirrors the
    deployed rule and is kept as-is until the policy is confirmed.
    """
    if not bot_available(state):
        return False
    base = state.base_asset(symbol)
    base_entry = state.balances.get(base)
    if base_entry is None:
        return False

    if side == Signal.BUY:
        quote_entry = state.balances.get(state.quote_asset)
        return quote_entry is not None and quote_entry.value >= min_notional
    if side == Signal.SELL:
        inst = state.instruments.get(symbol)
        if inst is None:
            return False
        return base_entry.value >= min_notional and current_price < inst.last_buy_price
    return False
