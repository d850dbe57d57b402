"""
Command-line handling for converting a list of images into a GIF.

Usage:
    engiffen frame01.png frame02.png frame03.png -o out.gif -f 10
    engiffen -r frames/f001.png frames/f120.png -q naive
    ls frames/*.bmp | engiffen -o ball.gif
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from tqdm import tqdm

from ..assembly import engiffen
from ..exceptions import EngiffenError
from ..loading import expand_range, load_images, read_path_list
from ..types import ConversionConfig, ErrorPolicy, Quantizer, TransparencyPolicy

logger = logging.getLogger(__name__)

_POLICY_MAP = {
    "last": TransparencyPolicy.LAST,
    "first": TransparencyPolicy.FIRST,
    "most-frequent": TransparencyPolicy.MOST_FREQUENT,
}


class ArgsError(EngiffenError):
    """Raised when the command-line arguments are inconsistent."""


def resolve_sources(args: argparse.Namespace, stdin=None) -> list[Path]:
    """Turn the parsed positional arguments into an ordered list of paths."""
    if args.range:
        if len(args.files) >= 2:
            return expand_range(args.files[0], args.files[1])
        if len(args.files) == 1:
            raise ArgsError("Bad image range: missing end filename")
        raise ArgsError("Bad image range: missing start and end filenames")
    if args.files:
        return [Path(f) for f in args.files]
    stdin = stdin if stdin is not None else sys.stdin
    return [Path(p) for p in read_path_list(stdin)]


def build_quantizer(args: argparse.Namespace) -> Quantizer:
    if args.quantizer == "naive":
        return Quantizer.naive()
    return Quantizer.neuquant(args.sample_rate)


def cmd_convert(args: argparse.Namespace) -> int:
    """Main handler for ``engiffen``."""
    try:
        paths = resolve_sources(args)
        quantizer = build_quantizer(args)
    except (EngiffenError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if not paths:
        print("Error: no input images given.", file=sys.stderr)
        return 1
    logger.info("Loading %d images.", len(paths))

    bar = tqdm(
        total=len(paths), desc="Loading", unit="frame",
        file=sys.stderr, dynamic_ncols=True, disable=args.quiet,
    )
    frames = load_images(paths, ErrorPolicy.SKIP, on_loaded=lambda _p: bar.update())
    bar.close()
    if len(frames) < len(paths):
        print(
            f"Warning: {len(paths) - len(frames)}/{len(paths)} images could not "
            f"be loaded, continuing with {len(frames)}.",
            file=sys.stderr,
        )

    config = ConversionConfig(
        workers=args.workers,
        transparency_policy=_POLICY_MAP[args.transparency],
    )
    try:
        gif = engiffen(frames, args.fps, quantizer, config)
        out = gif.save(args.output)
    except (EngiffenError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if not args.quiet:
        print(
            f"Done! {len(gif.images)} frames "
            f"({gif.width}x{gif.height}, {len(gif.palette) // 3} colors) -> {out}"
        )
    return 0


def build_convert_parser(parser: argparse.ArgumentParser) -> None:
    """Register the conversion arguments on *parser*."""
    parser.add_argument(
        "files", nargs="*",
        help="Input images in display order; read from stdin when omitted",
    )
    parser.add_argument(
        "-o", "--outfile", dest="output", default="out.gif",
        help="Output GIF path (default: out.gif)",
    )
    parser.add_argument(
        "-f", "--framerate", dest="fps", type=int, default=30,
        help="Frames per second (default: 30)",
    )
    parser.add_argument(
        "-r", "--range", action="store_true",
        help="Treat the two file arguments as the first and last image of a range",
    )
    parser.add_argument(
        "-q", "--quantizer", choices=["naive", "neuquant"], default="neuquant",
        help="Palette strategy (default: neuquant)",
    )
    parser.add_argument(
        "-s", "--sample-rate", type=int, default=2,
        help="NeuQuant trains on every Nth row and column (default: 2)",
    )
    parser.add_argument(
        "-j", "--workers", type=int, default=0,
        help="Parallel workers; 0 = auto (default: 0)",
    )
    parser.add_argument(
        "--transparency", choices=sorted(_POLICY_MAP), default="last",
        help="Which transparent color becomes the GIF's transparent index "
             "(default: last)",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="Log progress (-v) or debug detail (-vv) to stderr",
    )
    parser.add_argument(
        "--quiet", action="store_true",
        help="Suppress the progress bar and summary line",
    )
    parser.set_defaults(func=cmd_convert)
