# spotbot/core/exceptions.py
"""
Failure taxonomy of the trading engine.

Gateway and reconciliation failures propagate to the caller untouched;
only ProcessingFailure is handled at the feed-event boundary, where it
tears the feed down.
"""
from __future__ import annotations

from typing import Optional


class BotError(Exception):
    """Base class for every error raised by the bot."""


class StatusCodeFailure(BotError):
    """The exchange answered with one of the mapped HTTP status codes."""

    def __init__(self, status_code: int, cause: str, body: Optional[str] = None):
        self.status_code = status_code
        self.cause = cause
        self.body = body
        super().__init__(f"HTTP {status_code}: {cause}")


class MaintenanceFailure(BotError):
    def __init__(self, message: str = "Unfortunately the server is on maintenance"):
        super().__init__(
            f"Binance servers are on maintenance, please wait a couple of hours and try again.\n{message}"
        )


class NoInstrumentsFailure(BotError):
    def __init__(self, message: str = "No market pairs are available at this time, try again in 1 hour."):
        super().__init__(f"Seems like the market is empty.\n{message}")


class NoBalancesFailure(BotError):
    def __init__(
        self,
        message: str = "You have no balances in your account, the bot needs at least one balance worth $10",
    ):
        super().__init__(f"Seems like your balance is empty.\n{message}")


class ProcessingFailure(BotError):
    """Malformed or unexpected feed event."""


class GatewayTimeoutFailure(BotError):
    """A gateway call exceeded its timeout. Recoverable: the activation is aborted."""


class NotificationFailure(BotError):
    """Mail or chat delivery failed."""
