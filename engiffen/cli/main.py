"""Main CLI entry point for engiffen."""

from __future__ import annotations

import argparse
import logging
import sys

from .. import __version__
from .convert_cli import build_convert_parser


def configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="engiffen",
        description="Encode a sequence of images as an animated GIF",
    )
    parser.add_argument("--version", action="version", version=f"engiffen {__version__}")
    build_convert_parser(parser)
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    return args.func(args)


def cli_entry() -> None:
    sys.exit(main())
