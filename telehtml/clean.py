"""Normalize arbitrary HTML into the inline subset Telegram accepts.

``clean_html`` runs ``CLEAN_PASSES`` in order. Every pass is a pure
``str -> str`` function so it can be tested on its own; the order matters
(e.g. newline collapsing has to run before paragraph spacing is added back).
"""

from __future__ import annotations

import re
from typing import Callable, Sequence
from urllib.parse import urlsplit

from bs4 import BeautifulSoup
from bs4.element import CData, Comment, Declaration, Doctype, ProcessingInstruction
from loguru import logger

from telehtml.config import get_config

_ALLOWED_TAGS = frozenset({
    "b", "strong", "i", "em", "u", "s", "strike", "del",
    "a", "code", "pre", "p", "br",
})

# Elements removed together with everything inside them
_SKIP_CONTENT = [
    "frameset", "iframe", "noembed", "noframes", "noscript",
    "nostyle", "object", "script", "style", "title",
]

_MARKUP_NODES = (CData, Comment, Declaration, Doctype, ProcessingInstruction)


def _replacer(pairs: Sequence[tuple[str, str]]) -> Callable[[str], str]:
    """Build a single-scan replacer; at each position the first listed match wins."""
    table = dict(pairs)
    pattern = re.compile("|".join(re.escape(old) for old, _ in pairs))
    return lambda text: pattern.sub(lambda m: table[m.group(0)], text)


_replace_odd_spaces = _replacer([
    ("\u2800", " "),
    ("\u3000", " "),
    ("\u2007", " "),
    ("\u202f", " "),
    ("\u200c", " "),
    ("\u00a0\u034f", " "),
    ("\u00a0", " "),
    ("\u034f", " "),
    ("\t", ""),
    ("\r", ""),
    ("<br>", "\n"),
    ("<br />", "\n"),
    ("<br/>", "\n"),
    ("<p>", "\n"),
    ("</p>", "\n"),
    ("<strong>", "<b>"),
    ("</strong>", "</b>"),
    ("<em>", "<i>"),
    ("</em>", "</i>"),
    ("<strike>", "<s>"),
    ("</strike>", "</s>"),
    ("<del>", "<s>"),
    ("</del>", "</s>"),
])

_trim_newline_spacing = _replacer([
    ("\n ", " "),
    (" \n", "\n"),
])

_paragraph_spacing = _replacer([
    ("\n<a href", "\n\n<a href"),
    ("</a>\n", "</a>\n\n"),
    ("\n<b", "\n\n<b"),
    ("</b>\n", "</b>\n\n"),
])

# \s is spelled out so that only ASCII whitespace counts
_SPACE_RUN = re.compile(r" {3,}")
_NEWLINE_RUN = re.compile(r"(\n[\t\n\f\r ]*){2,}")
_LONE_CHAR = re.compile(r"\n.\n")
_GLUED_LINK_START = re.compile(r"([^\t\n\f\r ])(<a href)")
_GLUED_LINK_END = re.compile(r"</a>([^.,;!?:\t\n\f\r ])")
_INDENT = re.compile(r"\n +")


def _safe_href(href: str | None, schemes: Sequence[str]) -> str | None:
    if not href or not href.strip():
        return None
    href = href.strip()
    try:
        scheme = urlsplit(href).scheme.lower()
    except ValueError:
        return None
    return href if scheme in schemes else None


def sanitize(html: str) -> str:
    """Reduce *html* to the allowed elements, keeping only ``href`` on links.

    Disallowed elements are unwrapped (their text stays), except for scripts,
    styles and the like, whose content is dropped. Links without usable text
    are removed; link text is trimmed.
    """
    soup = BeautifulSoup(html, "html.parser")

    for node in soup.find_all(string=lambda s: isinstance(s, _MARKUP_NODES)):
        node.extract()

    for tag in soup.find_all(_SKIP_CONTENT):
        if not tag.decomposed:
            tag.decompose()

    schemes = get_config().link_schemes
    for tag in soup.find_all(True):
        if tag.name not in _ALLOWED_TAGS:
            tag.unwrap()
        elif tag.name == "a":
            href = _safe_href(tag.get("href"), schemes)
            if href is None:
                tag.unwrap()
            else:
                tag.attrs = {"href": href}
        else:
            tag.attrs = {}

    for link in soup.find_all("a"):
        text = link.get_text().strip()
        if text:
            link.string = text
        else:
            link.decompose()

    return str(soup)


def drop_invalid_utf8(html: str) -> str:
    return html.encode("utf-8", "ignore").decode("utf-8")


def replace_odd_spaces(html: str) -> str:
    """Map exotic spaces to plain ones, breaks/paragraphs to newlines, tag synonyms to short tags."""
    return _replace_odd_spaces(html)


def collapse_space_runs(html: str) -> str:
    return _SPACE_RUN.sub("\n", html)


def trim_newline_spacing(html: str) -> str:
    return _trim_newline_spacing(html)


def collapse_newlines(html: str) -> str:
    """Collapse blank-line runs into a single newline until nothing changes."""
    while True:
        collapsed = _NEWLINE_RUN.sub("\n", html)
        if collapsed == html:
            return collapsed
        html = collapsed


def drop_lone_chars(html: str) -> str:
    """Remove lines holding a single character (stray bullets, separators)."""
    return _LONE_CHAR.sub("\n", html)


def space_before_links(html: str) -> str:
    return _GLUED_LINK_START.sub(r"\1 \2", html)


def space_after_links(html: str) -> str:
    return _GLUED_LINK_END.sub(r"</a> \1", html)


def paragraph_spacing(html: str) -> str:
    """Put links and bold lines that touch a newline into their own paragraph."""
    return _paragraph_spacing(html)


def strip_indent(html: str) -> str:
    return _INDENT.sub("\n", html)


def trim(html: str) -> str:
    return html.strip("\n").strip(" ")


CLEAN_PASSES: tuple[Callable[[str], str], ...] = (
    sanitize,
    drop_invalid_utf8,
    replace_odd_spaces,
    collapse_space_runs,
    trim_newline_spacing,
    collapse_newlines,
    drop_lone_chars,
    collapse_newlines,
    space_before_links,
    space_after_links,
    paragraph_spacing,
    strip_indent,
    trim,
)


def clean_html(html: str, passes: Sequence[Callable[[str], str]] = CLEAN_PASSES) -> str:
    """Run *html* through the cleaning passes and return Telegram-ready HTML."""
    result = html
    for clean_pass in passes:
        result = clean_pass(result)
    logger.debug(f"Cleaned HTML: {len(html)} -> {len(result)} chars")
    return result
