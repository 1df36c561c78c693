"""Command-line interface for termglyph.

Converts each image path given as an argument (or, with no arguments, each
line read from stdin) and prints the result. A failing input is reported on
stderr and the remaining inputs are still processed.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Iterable, Iterator

from PIL import UnidentifiedImageError

from termglyph.core.charsets import RampName
from termglyph.core.color import ColorSpace
from termglyph.core.downscale import DownscaleMode
from termglyph.core.errors import ConfigurationError

LOG = logging.getLogger("termglyph")


def setup_logging(debug: bool) -> None:
    level = logging.DEBUG if debug else logging.WARNING
    LOG.setLevel(level)
    LOG.handlers.clear()

    sh = logging.StreamHandler(sys.stderr)
    sh.setLevel(level)
    sh.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    LOG.addHandler(sh)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="termglyph",
        description="Render images as ANSI-colored character art.",
        add_help=False,
    )
    parser.add_argument("paths", nargs="*", help="Image files. Reads paths from stdin if omitted.")
    parser.add_argument("--help", action="help", help="Show this help message and exit.")
    parser.add_argument(
        "-a", "--aspect-ratio",
        type=float,
        default=2.0,
        help="Output aspect ratio, columns per row (default: 2.0).",
    )
    parser.add_argument("-c", "--color", action="store_true", help="Enable color.")
    parser.add_argument(
        "--color-space", "--cspace",
        default="4bit",
        help="Color space: 3bit|3, 4bit|4, 8bit|8, 24bit|24|truecolor|full (default: 4bit).",
    )
    parser.add_argument("-s", "--sobel", action="store_true", help="Enable Sobel edge detection.")
    parser.add_argument(
        "-b", "--bold",
        action="store_true",
        help="Bold edge outlines. Only has an effect with --sobel.",
    )
    parser.add_argument(
        "-r", "--rich",
        action="store_true",
        help="Alias for -c -s -b --color-space 24bit.",
    )
    parser.add_argument(
        "-w", "--width",
        type=int,
        default=None,
        help="Target width in characters (default: terminal width).",
    )
    parser.add_argument(
        "-h", "--height",
        type=int,
        default=None,
        help="Target height in characters. May be ignored depending on downscale mode.",
    )
    parser.add_argument(
        "--downscale-mode",
        default="respect-aspect-ratio",
        help="respect-aspect-ratio (respect, wrt) or ignore-aspect-ratio (ignore, ign).",
    )
    parser.add_argument(
        "--magnitude-threshold",
        type=float,
        default=80000,
        help="Squared Sobel magnitude for an edge, 50000-120000 recommended (default: 80000).",
    )
    parser.add_argument(
        "--laplacian-threshold",
        type=float,
        default=300,
        help="Maximum |Laplacian| for an edge, 100-400 recommended (default: 300).",
    )
    parser.add_argument(
        "--ramp",
        choices=[r.value for r in RampName],
        default="standard",
        help="Glyph ramp preset (default: standard).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output one JSON object per input.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Debug logging and stack traces on error.",
    )
    return parser


def _settings_from_args(args: argparse.Namespace):
    from termglyph.core.processor import Settings

    use_color, use_sobel, bold = args.color, args.sobel, args.bold
    color_space = args.color_space
    if args.rich:
        use_color = use_sobel = bold = True
        color_space = ColorSpace.TRUECOLOR

    return Settings(
        aspect_ratio=args.aspect_ratio,
        downscale_mode=DownscaleMode.parse(args.downscale_mode),
        use_sobel=use_sobel,
        use_color=use_color,
        bold_outline=bold,
        magnitude_threshold=args.magnitude_threshold,
        laplacian_threshold=args.laplacian_threshold,
        color_space=ColorSpace.parse(color_space),
        ramp=RampName(args.ramp),
    )


def _input_paths(paths: list[str], stdin: Iterable[str]) -> Iterator[str]:
    if paths:
        yield from paths
        return
    for line in stdin:
        line = line.strip()
        if line:
            yield line


def main(argv: list[str] | None = None) -> int:
    """Main entry point. Returns the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.debug)

    from termglyph.core.processor import AsciiConverter
    from termglyph.utils.terminal import default_target_size

    try:
        converter = AsciiConverter(_settings_from_args(args))
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    width, height = default_target_size(args.width, args.height)
    failures = 0

    for path in _input_paths(args.paths, sys.stdin):
        try:
            text = converter.convert_file(path, width, height)
        except (ConfigurationError, ValueError, OSError, UnidentifiedImageError) as e:
            failures += 1
            if args.debug:
                LOG.exception("failed to convert %s", path)
            if args.json:
                err = {"status": "error", "input": path, "error": str(e)}
                print(json.dumps(err), file=sys.stderr)
            else:
                print(f"Error converting {path}: {e}", file=sys.stderr)
            continue

        if args.json:
            result = {
                "status": "success",
                "input": path,
                "output": text,
                "settings": {
                    "aspect_ratio": converter.settings.aspect_ratio,
                    "color_space": converter.settings.color_space.value,
                    "color": converter.settings.use_color,
                    "sobel": converter.settings.use_sobel,
                    "width": width,
                    "height": height,
                },
            }
            print(json.dumps(result))
        else:
            sys.stdout.write(text)
            sys.stdout.flush()

    return 1 if failures else 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
