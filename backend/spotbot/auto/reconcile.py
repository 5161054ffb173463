# spotbot/auto/reconcile.py
# -*- coding: utf-8 -*-
"""
Reconciliation cycle: IDLE -> CHECKING_MAINTENANCE -> LOADING -> READY.

Runs at startup and after every trade attempt. A failure leaves the bot
unable to trade until the next successful cycle; flags already set are not
rolled back.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List

from ..core.exceptions import MaintenanceFailure, NoBalancesFailure, NoInstrumentsFailure
from .state import Asset, BalanceEntry, EngineState, InstrumentMeta, Stage, to_asset

log = logging.getLogger("reconcile")


def build_balances(raw: List[Dict[str, Any]], pairs: Iterable[InstrumentMeta], quote_asset: Asset) -> Dict[Asset, BalanceEntry]:
    """Keep positive free amounts of tradable base assets, plus the quote asset at 1:1."""
    known = {m.base_asset for m in pairs}
    out: Dict[Asset, BalanceEntry] = {}
    for row in raw:
        asset = to_asset(row["asset"])
        free = float(row["free"])
        if free <= 0:
            continue
        if asset == quote_asset:
            out[asset] = BalanceEntry(balance=free, price=1.0, value=free)
        elif asset in known:
            out[asset] = BalanceEntry(balance=free)
    return out


async def reload(state: EngineState, gateway) -> None:
    bot = state.bot
    try:
        bot.stage = Stage.CHECKING_MAINTENANCE
        if await gateway.get_maintenance_status():
            bot.can_trade = False
            raise MaintenanceFailure()

        bot.is_loading = True
        bot.can_trade = False
        bot.stage = Stage.LOADING

        pairs = await gateway.list_tradable_instruments()
        if not pairs:
            raise NoInstrumentsFailure()
        state.replace_pairs(pairs)

        raw = await gateway.get_account_balances()
        balances = build_balances(raw, state.pairs.values(), state.quote_asset)
        if not balances:
            raise NoBalancesFailure()
        state.replace_balances(balances)
    except Exception:
        bot.can_trade = False
        raise

    bot.is_loading = False
    bot.can_trade = True
    bot.stale = False
    bot.stage = Stage.READY
    log.info("[reconcile] ready: %d pairs, balances %s", len(state.pairs), sorted(state.balances))
