"""Interface for ``python -m kv_layer``."""

from __future__ import annotations

import json
import logging
import sys
from argparse import ArgumentParser
from typing import TYPE_CHECKING, Any

from ._version import version
from .errors import KVLayerError
from .layer import StoreLayer
from .selectors import UNSET


if TYPE_CHECKING:
    from collections.abc import Sequence


__all__ = ["main", "setup_logging"]

_BOUND_OPTIONS = ("value", "start", "start_after", "end", "end_before", "prefix")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def setup_logging(level: str = "WARNING") -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s [%(name)s:%(funcName)s] : %(message)s",
    )


def _json_literal(text: str) -> Any:
    """Parse a JSON literal; JSON arrays become structured keys."""
    return json.loads(text)


def _range_command(layer: StoreLayer, options: dict[str, Any]) -> int:
    key_range = layer.normalize_key_selectors(options)
    start = layer.encode(key_range.start, layer.key_encoding)
    end = layer.encode(key_range.end, layer.key_encoding)
    out = sys.stdout
    _ = out.write(f"start:   {key_range.start!r}\n")
    _ = out.write(f"end:     {key_range.end!r}\n")
    _ = out.write(f"reverse: {key_range.reverse}\n")
    _ = out.write(f"start (hex): {start.hex()}\n")
    _ = out.write(f"end (hex):   {end.hex()}\n")
    return 0


def main(args: Sequence[str] | None = None) -> int:
    """Argument parser for the CLI."""
    parser = ArgumentParser(prog="kv_layer")
    _ = parser.add_argument("-v", "--version", action="version", version=version)
    _ = parser.add_argument(
        "--log-level",
        default="WARNING",
        type=str.upper,
        choices=_LOG_LEVELS,
        help="logging level (default: WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command")

    range_parser = subparsers.add_parser("range", help="normalize a range selector and print its bounds")
    for option in _BOUND_OPTIONS:
        _ = range_parser.add_argument(
            f"--{option.replace('_', '-')}",
            dest=option,
            default=UNSET,
            type=_json_literal,
            metavar="JSON",
            help=f"{option} bound as a JSON literal",
        )
    _ = range_parser.add_argument("--reverse", action="store_true", help="scan in descending order")

    namespace = parser.parse_args(args)
    setup_logging(namespace.log_level)

    if namespace.command != "range":
        parser.print_help()
        return 0

    options: dict[str, Any] = {
        option: getattr(namespace, option) for option in _BOUND_OPTIONS if getattr(namespace, option) is not UNSET
    }
    options["reverse"] = namespace.reverse
    try:
        return _range_command(StoreLayer(), options)
    except KVLayerError as error:
        _ = sys.stderr.write(f"error: {error}\n")
        return 2


if __name__ == "__main__":
    sys.exit(main())
