# spotbot/services/notifier.py
"""
Outbound notifications (Telegram chat, e-mail).

The engine only knows the `notify(subject, body)` hook; delivery failures
are logged here and never reach the trading path.
"""
from __future__ import annotations

import asyncio
import logging
import smtplib
from email.mime.text import MIMEText
from typing import Iterable, List, Optional, Protocol

import httpx

from ..core.config import CFG
from ..core.exceptions import NotificationFailure

log = logging.getLogger("notifier")

TELEGRAM_API = "https://api.telegram.org"


class Notifier(Protocol):
    async def notify(self, subject: str, body: str) -> None: ...


class TelegramNotifier:
    def __init__(self, token: Optional[str] = None, chat_id: Optional[str] = None,
                 client: Optional[httpx.AsyncClient] = None, timeout: float = 10.0):
        self.token = token if token is not None else CFG.TELEGRAM_BOT_TOKEN
        self.chat_id = chat_id if chat_id is not None else CFG.TELEGRAM_CHAT_ID
        self._client = client
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.token and self.chat_id)

    async def notify(self, subject: str, body: str) -> None:
        text = f"{subject}\n\n{body}" if body else subject
        url = f"{TELEGRAM_API}/bot{self.token}/sendMessage"
        try:
            if self._client is not None:
                r = await self._client.post(url, json={"chat_id": self.chat_id, "text": text})
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as c:
                    r = await c.post(url, json={"chat_id": self.chat_id, "text": text})
            r.raise_for_status()
        except httpx.HTTPError as e:
            raise NotificationFailure(f"Something happened with your telegram bot.\n{e}") from e


class MailNotifier:
    def __init__(self, host: Optional[str] = None, port: Optional[int] = None, use_ssl: Optional[bool] = None,
                 username: Optional[str] = None, password: Optional[str] = None,
                 address: Optional[str] = None, subject_prefix: Optional[str] = None):
        self.host = host if host is not None else CFG.SMTP_HOST
        self.port = port if port is not None else CFG.SMTP_PORT
        self.use_ssl = use_ssl if use_ssl is not None else CFG.SMTP_USE_SSL
        self.username = username if username is not None else CFG.SMTP_USERNAME
        self.password = password if password is not None else CFG.SMTP_PASSWORD
        self.address = address if address is not None else CFG.MAIL_ADDRESS
        self.subject_prefix = subject_prefix if subject_prefix is not None else CFG.MAIL_SUBJECT

    @property
    def enabled(self) -> bool:
        return bool(self.host and self.address)

    def build_message(self, subject: str, body: str) -> MIMEText:
        msg = MIMEText(body, "plain", "utf-8")
        msg["Subject"] = f"{self.subject_prefix} - {subject}" if self.subject_prefix else subject
        msg["From"] = self.username or self.address
        msg["To"] = self.address
        return msg

    def _send(self, msg: MIMEText) -> None:
        smtp_cls = smtplib.SMTP_SSL if self.use_ssl else smtplib.SMTP
        with smtp_cls(self.host, self.port, timeout=30) as server:
            if self.username:
                server.login(self.username, self.password)
            server.sendmail(msg["From"], [self.address], msg.as_string())

    async def notify(self, subject: str, body: str) -> None:
        msg = self.build_message(subject, body)
        try:
            await asyncio.to_thread(self._send, msg)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationFailure(
                f"Could not send any mail, please check your mailer configuration.\n{e}"
            ) from e


class CompositeNotifier:
    """Deliver to every enabled notifier; a failing one is logged and skipped."""

    def __init__(self, notifiers: Iterable[Notifier]):
        self.notifiers: List[Notifier] = [n for n in notifiers if getattr(n, "enabled", True)]

    async def notify(self, subject: str, body: str) -> None:
        for n in self.notifiers:
            try:
                await n.notify(subject, body)
            except NotificationFailure as e:
                log.warning("[notifier] %s: %s", type(n).__name__, e)


def default_notifier() -> CompositeNotifier:
    return CompositeNotifier([TelegramNotifier(), MailNotifier()])
