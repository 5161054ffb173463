"""
Tests for spotbot/services/notifier.py
"""

import json

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from spotbot.core.exceptions import NotificationFailure
from spotbot.services.notifier import CompositeNotifier, MailNotifier, TelegramNotifier


class TestTelegramNotifier:
    @pytest.mark.asyncio
    async def test_posts_message(self):
        seen = {}

        def handler(request):
            seen["request"] = request
            return httpx.Response(200, json={"ok": True})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            tg = TelegramNotifier(token="T0K", chat_id="42", client=client)
            await tg.notify("Bot has been started", "hello")

        req = seen["request"]
        assert req.url.path == "/botT0K/sendMessage"
        assert json.loads(req.content) == {"chat_id": "42", "text": "Bot has been started\n\nhello"}

    @pytest.mark.asyncio
    async def test_http_error_becomes_notification_failure(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(401, json={"ok": False}))
        async with httpx.AsyncClient(transport=transport) as client:
            tg = TelegramNotifier(token="bad", chat_id="42", client=client)
            with pytest.raises(NotificationFailure):
                await tg.notify("subject", "")

    def test_disabled_without_credentials(self):
        assert TelegramNotifier(token="", chat_id="").enabled is False


class TestMailNotifier:
    def _mailer(self, **kw):
        opts = dict(host="smtp.test", port=465, use_ssl=True, username="bot@test",
                    password="pw", address="me@test", subject_prefix="Spot bot")
        opts.update(kw)
        return MailNotifier(**opts)

    def test_message_headers(self):
        msg = self._mailer().build_message("Bot has been started", "Initial balances:\n{}")
        assert msg["Subject"] == "Spot bot - Bot has been started"
        assert msg["From"] == "bot@test"
        assert msg["To"] == "me@test"

    @pytest.mark.asyncio
    async def test_sends_over_ssl(self):
        with patch("spotbot.services.notifier.smtplib.SMTP_SSL") as smtp:
            server = smtp.return_value.__enter__.return_value
            await self._mailer().notify("subject", "body")

        smtp.assert_called_once_with("smtp.test", 465, timeout=30)
        server.login.assert_called_once_with("bot@test", "pw")
        server.sendmail.assert_called_once()
        assert server.sendmail.call_args.args[1] == ["me@test"]

    @pytest.mark.asyncio
    async def test_smtp_error_becomes_notification_failure(self):
        with patch("spotbot.services.notifier.smtplib.SMTP") as smtp:
            smtp.side_effect = OSError("connection refused")
            with pytest.raises(NotificationFailure):
                await self._mailer(use_ssl=False).notify("subject", "body")


class TestCompositeNotifier:
    @pytest.mark.asyncio
    async def test_failure_is_logged_not_raised(self):
        bad = MagicMock(enabled=True)
        bad.notify = AsyncMock(side_effect=NotificationFailure("down"))
        good = MagicMock(enabled=True)
        good.notify = AsyncMock()

        await CompositeNotifier([bad, good]).notify("s", "b")

        good.notify.assert_awaited_once_with("s", "b")

    def test_disabled_notifiers_skipped(self):
        off = MagicMock(enabled=False)
        on = MagicMock(enabled=True)
        assert CompositeNotifier([off, on]).notifiers == [on]
