"""Tag-aware splitting of Telegram HTML into length-bounded messages.

Cuts are placed after closing inline tags or newlines where possible. A tag
left open at the cut is closed at the end of the chunk and reopened at the
start of the next one, so every chunk is valid HTML on its own.
"""

from __future__ import annotations

import re

from loguru import logger

MAX_MESSAGE_LEN = 4000

# (marker, required follower) pairs; a cut goes right after the marker.
_CUT_MARKERS: tuple[tuple[str, str], ...] = (
    ("</a>", "\n"),
    ("</b>", ""),
    ("</code>", ""),
    ("</i>", ""),
    ("</pre>", ""),
    ("</s>", ""),
    ("</u>", ""),
    ("\n", ""),
)

_LINK_OPEN = "<a href="
_SENTENCE_END = ". "
_CLAUSE_END = ", "

# Longest entity Telegram accepts is a numeric one like &#x10FFFF;
_MAX_ENTITY_LEN = 10
_ENTITY_HEAD = re.compile(r"&#?\w*")


def find_last_end(text: str, marker: str, followed_by: str = "") -> int:
    """Return the position just past the last *marker* that is followed by *followed_by*.

    Returns -1 when there is no such occurrence.
    """
    idx = text.rfind(marker + followed_by)
    if idx == -1:
        return -1
    return idx + len(marker)


def find_last_start(text: str, marker: str) -> int:
    """Return the index of the last *marker* in *text*, or -1."""
    return text.rfind(marker)


def find_open_tag(text: str, pos: int) -> tuple[int, int, str] | None:
    """Find the tag left open at *pos*.

    Looks at the nearest ``<`` before *pos* only. Returns ``(start, end, name)``
    where ``end`` is just past the tag's ``>``, or None when that tag is a
    closing tag or cannot be parsed within ``text[:pos]``.
    """
    pos = max(0, min(pos, len(text)))
    start = text.rfind("<", 0, pos)
    if start == -1:
        return None
    end = text.find(">", start + 1, pos)
    if end == -1:
        return None
    parts = text[start + 1:end].split()
    if not parts or parts[0].startswith("/"):
        return None
    return start, end + 1, parts[0]


def select_cut(window: str) -> int:
    """Pick the position at which to end a chunk taken from *window*.

    The rightmost cut after a closing tag or newline wins. Without one, fall
    back to before the last link, after the last sentence or clause, and
    finally to a hard cut at the end of the window.
    """
    pos = max(find_last_end(window, marker, follower) for marker, follower in _CUT_MARKERS)
    if pos != -1:
        return pos

    # A link at 0 would leave the chunk empty
    pos = find_last_start(window, _LINK_OPEN)
    if pos > 0:
        return pos

    for marker in (_SENTENCE_END, _CLAUSE_END):
        pos = find_last_end(window, marker)
        if pos != -1:
            return pos

    return len(window)


def balance(window: str, cut_pos: int) -> tuple[str, str]:
    """Return ``(close_suffix, reopen_prefix)`` for a cut at *cut_pos*.

    Only the innermost unclosed tag is handled. Anything that does not parse
    yields ``("", "")``.
    """
    span = find_open_tag(window, cut_pos)
    if span is None:
        return "", ""
    start, end, name = span
    return f"</{name}>", window[start:end]


def _step_out_of_markup(text: str, pos: int) -> int:
    """Move *pos* back to the start of a tag or entity it falls inside of."""
    start = text.rfind("<", 0, pos)
    if start > 0 and text.find(">", start, pos) == -1:
        pos = start
    amp = text.rfind("&", max(0, pos - _MAX_ENTITY_LEN), pos)
    if amp > 0 and _ENTITY_HEAD.fullmatch(text, amp, pos):
        pos = amp
    return pos


def _close_chunk(window: str, pos: int, limit: int) -> tuple[str, int, str]:
    """Finalize the chunk ending at *pos*.

    Returns the chunk text, the cut position actually used and the prefix for
    the next chunk. The returned chunk never exceeds *limit*.
    """
    while True:
        pos = _step_out_of_markup(window, pos)
        span = find_open_tag(window, pos)
        if span is None:
            return window[:pos], pos, ""

        start, end, name = span
        close = f"</{name}>"
        if end < pos:
            if pos + len(close) <= limit:
                return window[:pos] + close, pos, window[start:end]
            shrunk = limit - len(close)
            if shrunk > end:
                pos = shrunk
                continue

        # Nothing of the tag's content fits: carry the whole tag over
        if start > 0:
            pos = start
            continue

        logger.debug(f"Cannot balance <{name}> within {limit} chars, hard cut")
        return window, len(window), ""


def split_html(html: str, limit: int = MAX_MESSAGE_LEN) -> list[str]:
    """Split normalized Telegram HTML into chunks of at most *limit* characters.

    Input is expected to be cleaned already (see ``telehtml.clean``).
    """
    if limit <= 0:
        raise ValueError(f"limit must be positive, got {limit}")

    chunks: list[str] = []
    remaining = html

    while remaining:
        if len(remaining) < limit:
            chunks.append(remaining)
            break

        window = remaining[:limit]
        chunk, pos, reopen = _close_chunk(window, select_cut(window), limit)
        chunks.append(chunk)
        remaining = reopen + remaining[pos:]

    logger.debug(f"Split {len(html)} chars into {len(chunks)} chunks (limit={limit})")
    return chunks
