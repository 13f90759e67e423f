"""Deliver HTML to a Telegram chat in as many messages as it takes."""

from __future__ import annotations

import asyncio
import re

from loguru import logger
from telegram.error import TelegramError

from telehtml.config import get_config
from telehtml.format import clean_and_split

# Telegram status codes worth another attempt
RETRY_STATUS_CODES = ("429", "500", "502", "503", "504")

# Substrings of network failures raised by the HTTP layer, lower case
NETWORK_ERROR_HINTS = (
    "timed out",
    "connection reset",
    "connection refused",
    "connection aborted",
    "network is unreachable",
    "host is unreachable",
    "name or service not known",
    "temporary failure in name resolution",
    "connect timeout",
    "read timeout",
    "write timeout",
    "socket timeout",
)

_TAG = re.compile(r"<[^>]*>")


def _is_recoverable_error(err: Exception) -> bool:
    """A rate limit, a Telegram server error or a network failure."""
    message = str(err).lower()
    if isinstance(err, TelegramError) and any(code in message for code in RETRY_STATUS_CODES):
        return True
    return any(hint in message for hint in NETWORK_ERROR_HINTS)


async def _send_with_retry(bot, chat_id: int | str, text: str, **kwargs) -> None:
    """Send one message, backing off exponentially on recoverable errors.

    Attempts and the first delay come from ``send_retries`` and
    ``send_base_delay`` in the config.
    """
    config = get_config()
    attempts = config.send_retries

    for attempt in range(1, attempts + 1):
        try:
            await bot.send_message(chat_id=chat_id, text=text, **kwargs)
            return
        except Exception as e:
            if attempt == attempts or not _is_recoverable_error(e):
                raise
            delay = config.send_base_delay * 2 ** (attempt - 1)
            logger.warning(f"Send to {chat_id} failed ({attempt}/{attempts}), retrying in {delay}s: {e}")
            await asyncio.sleep(delay)


def _plain_text(chunk: str) -> str:
    """Drop tags and unescape the entities Telegram's HTML mode requires."""
    text = _TAG.sub("", chunk)
    return text.replace("&lt;", "<").replace("&gt;", ">").replace("&quot;", '"').replace("&amp;", "&")


async def send_html(bot, chat_id: int | str, html: str, limit: int | None = None, **kwargs) -> int:
    """Clean *html*, split it and send every chunk with ``parse_mode="HTML"``.

    A chunk Telegram refuses to parse is resent as plain text. Returns the
    number of messages sent.
    """
    sent = 0
    for chunk in clean_and_split(html, limit):
        try:
            await _send_with_retry(bot, chat_id, chunk, parse_mode="HTML", **kwargs)
        except Exception as e:
            if _is_recoverable_error(e):
                raise
            logger.warning(f"HTML send failed, falling back to plain text: {e}")
            await _send_with_retry(bot, chat_id, _plain_text(chunk), **kwargs)
        sent += 1
    return sent
