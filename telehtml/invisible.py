"""Hidden integer markers built from zero-width code points.

Each decimal digit maps to one invisible character, so an id can ride along
inside visible message text and be recovered later.
"""

from __future__ import annotations

INVISIBLE_DIGITS: tuple[str, ...] = (
    "\u200b",  # 0 zero width space
    "\u200c",  # 1 zero width non-joiner
    "\u200d",  # 2 zero width joiner
    "\u2060",  # 3 word joiner
    "\ufeff",  # 4 zero width no-break space
    "\u2061",  # 5 function application
    "\u2062",  # 6 invisible times
    "\u2063",  # 7 invisible separator
    "\u2064",  # 8 invisible plus
    "\u034f",  # 9 combining grapheme joiner
)

_DIGIT_OF = {ch: digit for digit, ch in enumerate(INVISIBLE_DIGITS)}


def encode_int(n: int) -> str:
    """Encode a non-negative integer, most significant digit first."""
    if n < 0:
        raise ValueError(f"cannot encode negative integer {n}")
    return "".join(INVISIBLE_DIGITS[int(d)] for d in str(n))


def decode_int(s: str) -> int:
    """Decode the invisible digits in *s*, ignoring every other character."""
    result = 0
    for ch in s:
        digit = _DIGIT_OF.get(ch)
        if digit is not None:
            result = result * 10 + digit
    return result


def find_invisible_sequences(s: str) -> list[str]:
    """Return the runs of invisible digits in *s*, in order of appearance."""
    sequences: list[str] = []
    current: list[str] = []
    for ch in s:
        if ch in _DIGIT_OF:
            current.append(ch)
        elif current:
            sequences.append("".join(current))
            current = []
    if current:
        sequences.append("".join(current))
    return sequences


def strip_invisible(s: str) -> str:
    return "".join(ch for ch in s if ch not in _DIGIT_OF)
