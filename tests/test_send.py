"""Tests for chunked Telegram delivery with retry."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from telegram.error import TelegramError

from telehtml.send import (
    NETWORK_ERROR_HINTS,
    _is_recoverable_error,
    _plain_text,
    _send_with_retry,
    send_html,
)


@pytest.fixture
def quick_retries(monkeypatch, fresh_config):
    monkeypatch.setenv("TELEHTML_SEND_RETRIES", "4")
    monkeypatch.setenv("TELEHTML_SEND_BASE_DELAY", "0.25")


@pytest.fixture
def bot():
    mock_bot = MagicMock()
    mock_bot.send_message = AsyncMock()
    return mock_bot


class TestIsRecoverableError:
    """Which failures are worth another attempt."""

    @pytest.mark.parametrize("code", ["429", "500", "502", "503", "504"])
    def test_rate_limit_and_server_errors(self, code):
        assert _is_recoverable_error(TelegramError(f"{code}: try again later")) is True

    def test_status_code_outside_telegram_error_is_not_enough(self):
        assert _is_recoverable_error(ValueError("got 500 items")) is False

    def test_entity_parse_failure_is_final(self):
        assert _is_recoverable_error(TelegramError("Bad Request: can't parse entities")) is False

    @pytest.mark.parametrize("message", ["Read timeout", "Connection reset by peer", "Network is unreachable"])
    def test_network_failures(self, message):
        assert _is_recoverable_error(OSError(message)) is True

    def test_hints_are_lower_case(self):
        assert all(hint == hint.lower() for hint in NETWORK_ERROR_HINTS)


class TestSendWithRetry:
    """Retry count and backoff follow the send_* settings."""

    @pytest.mark.asyncio
    async def test_passes_options_through(self, bot, fresh_config):
        await _send_with_retry(bot, chat_id=7, text="Hello", parse_mode="HTML")

        bot.send_message.assert_awaited_once_with(chat_id=7, text="Hello", parse_mode="HTML")

    @pytest.mark.asyncio
    async def test_backoff_uses_configured_delay(self, bot, quick_retries):
        bot.send_message.side_effect = [OSError("Timed out")] * 3 + [None]

        with patch("telehtml.send.asyncio.sleep", new_callable=AsyncMock) as sleep:
            await _send_with_retry(bot, chat_id=7, text="Hello")

        assert bot.send_message.await_count == 4
        assert [c.args[0] for c in sleep.await_args_list] == [0.25, 0.5, 1.0]

    @pytest.mark.asyncio
    async def test_gives_up_after_configured_attempts(self, bot, quick_retries):
        bot.send_message.side_effect = OSError("Timed out")

        with patch("telehtml.send.asyncio.sleep", new_callable=AsyncMock) as sleep:
            with pytest.raises(OSError, match="Timed out"):
                await _send_with_retry(bot, chat_id=7, text="Hello")

        assert bot.send_message.await_count == 4
        assert sleep.await_count == 3

    @pytest.mark.asyncio
    async def test_single_attempt_never_sleeps(self, bot, monkeypatch, fresh_config):
        monkeypatch.setenv("TELEHTML_SEND_RETRIES", "1")
        bot.send_message.side_effect = OSError("Timed out")

        with patch("telehtml.send.asyncio.sleep", new_callable=AsyncMock) as sleep:
            with pytest.raises(OSError):
                await _send_with_retry(bot, chat_id=7, text="Hello")

        assert bot.send_message.await_count == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_final_errors_are_not_retried(self, bot, quick_retries):
        bot.send_message.side_effect = TelegramError("Chat not found")

        with pytest.raises(TelegramError):
            await _send_with_retry(bot, chat_id=7, text="Hello")

        assert bot.send_message.await_count == 1


class TestSendHtml:
    """Cleaning, splitting and the plain-text fallback."""

    @pytest.mark.asyncio
    async def test_single_message(self, bot, fresh_config):
        sent = await send_html(bot, 42, "<p>Hi <strong>there</strong></p>")

        assert sent == 1
        bot.send_message.assert_awaited_once_with(chat_id=42, text="Hi <b>there</b>", parse_mode="HTML")

    @pytest.mark.asyncio
    async def test_long_message_is_split(self, bot, fresh_config):
        sent = await send_html(bot, 42, "One sentence here. " * 20, limit=60)

        assert sent > 1
        assert bot.send_message.await_count == sent
        for call in bot.send_message.await_args_list:
            assert len(call.kwargs["text"]) <= 60

    @pytest.mark.asyncio
    async def test_falls_back_to_plain_text(self, bot, fresh_config):
        bot.send_message.side_effect = [TelegramError("Bad Request: can't parse entities"), None]

        sent = await send_html(bot, 42, "<b>a &amp; b</b>")

        assert sent == 1
        assert bot.send_message.await_args_list[-1].kwargs == {"chat_id": 42, "text": "a & b"}

    @pytest.mark.asyncio
    async def test_recoverable_failure_propagates(self, bot, quick_retries):
        bot.send_message.side_effect = OSError("Connection refused")

        with patch("telehtml.send.asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(OSError, match="Connection refused"):
                await send_html(bot, 42, "hello")


def test_plain_text():
    assert _plain_text('<a href="u">x &lt; y</a>') == "x < y"
