"""Unified entry points: raw HTML or markdown -> Telegram HTML chunks."""

from __future__ import annotations

from markdown_it import MarkdownIt

from telehtml.clean import clean_html
from telehtml.config import get_config
from telehtml.split import split_html


def _heading_open(self, tokens, idx, options, env) -> str:
    return "<b>"


def _heading_close(self, tokens, idx, options, env) -> str:
    return "</b>\n"


def _list_item_open(self, tokens, idx, options, env) -> str:
    return "• "


def _list_item_close(self, tokens, idx, options, env) -> str:
    return "\n"


def _build_parser() -> MarkdownIt:
    parser = MarkdownIt("commonmark", {"typographer": False})
    parser.enable("strikethrough")
    # Telegram has no headings or lists: headings become bold lines, items bullets
    parser.add_render_rule("heading_open", _heading_open)
    parser.add_render_rule("heading_close", _heading_close)
    parser.add_render_rule("list_item_open", _list_item_open)
    parser.add_render_rule("list_item_close", _list_item_close)
    return parser


_parser = _build_parser()


def markdown_to_html(md: str) -> str:
    """Render markdown to HTML that ``clean_html`` reduces to Telegram's subset."""
    return _parser.render(md)


def clean_and_split(html: str, limit: int | None = None) -> list[str]:
    """Clean arbitrary HTML and split it into Telegram-sized chunks.

    *limit* defaults to the configured ``max_message_len``.
    """
    if limit is None:
        limit = get_config().max_message_len
    return split_html(clean_html(html), limit)


def markdown_to_chunks(md: str, limit: int | None = None) -> list[str]:
    """Convert markdown to a list of Telegram-safe HTML strings."""
    if not md:
        return []
    return clean_and_split(markdown_to_html(md), limit)
