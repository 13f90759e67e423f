"""Telegram HTML cleaning and tag-aware message splitting."""

from loguru import logger

from telehtml.clean import clean_html
from telehtml.format import clean_and_split, markdown_to_chunks, markdown_to_html
from telehtml.invisible import decode_int, encode_int, find_invisible_sequences, strip_invisible
from telehtml.split import MAX_MESSAGE_LEN, balance, select_cut, split_html

# Library code stays quiet unless the application enables it
logger.disable("telehtml")

__all__ = [
    "MAX_MESSAGE_LEN",
    "balance",
    "clean_and_split",
    "clean_html",
    "decode_int",
    "encode_int",
    "find_invisible_sequences",
    "markdown_to_chunks",
    "markdown_to_html",
    "select_cut",
    "split_html",
    "strip_invisible",
]
