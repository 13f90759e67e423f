"""Command line: clean and split HTML (or markdown) read from a file or stdin."""

import argparse
import sys

from loguru import logger

from telehtml.clean import clean_html
from telehtml.config import get_config
from telehtml.format import markdown_to_html
from telehtml.split import split_html


def _positive_int(value):
    n = int(value)
    if n <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return n


def main(argv=None):
    parser = argparse.ArgumentParser(prog="telehtml", description="Split HTML into Telegram-sized messages")
    parser.add_argument("file", nargs="?", help="Input file (default: stdin)")
    parser.add_argument("--limit", type=_positive_int, help="Maximum chunk length (default: from config)")
    # Markdown output always goes through the cleaner
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--markdown", action="store_true", help="Treat input as markdown")
    source.add_argument("--raw", action="store_true", help="Skip cleaning; input is already normalized HTML")
    parser.add_argument("--separator", default="\n-----\n", help="Printed between chunks")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log to stderr")
    args = parser.parse_args(argv)

    if args.verbose:
        logger.enable("telehtml")

    if args.file:
        with open(args.file, encoding="utf-8") as f:
            text = f.read()
    else:
        text = sys.stdin.read()

    if args.markdown:
        text = markdown_to_html(text)
    if not args.raw:
        text = clean_html(text)

    limit = args.limit or get_config().max_message_len
    chunks = split_html(text, limit)
    sys.stdout.write(args.separator.join(chunks))
    if chunks:
        sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
