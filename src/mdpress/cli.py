"""Command-line interface for mdpress.

Usage::

    mdpress input.md                     # writes input.html
    mdpress input.md -o output.html      # explicit output path
    mdpress input.md -f pdf              # print to input.pdf
    mdpress input.md --style preview     # use the preview preset
    mdpress --list-styles                # list available presets
    mdpress --list-snippets              # list the snippet catalog
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from mdpress import __version__
from mdpress.converter import Converter
from mdpress.snippets import SNIPPETS
from mdpress.style_manager import StyleManager


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mdpress",
        description="Render Markdown files to standalone HTML or PDF.",
    )
    parser.add_argument(
        "input",
        nargs="?",
        help="Path to the Markdown file to convert.",
    )
    parser.add_argument(
        "-o", "--output",
        help="Output file path. Defaults to <input>.html or <input>.pdf.",
    )
    parser.add_argument(
        "-f", "--format",
        default="html",
        choices=Converter.FORMATS,
        help="Export format (default: %(default)s).",
    )
    parser.add_argument(
        "-s", "--style",
        default="default",
        choices=StyleManager.PRESETS,
        help="Style preset (default: %(default)s).",
    )
    parser.add_argument(
        "-e", "--encoding",
        default="utf-8",
        help="Input file encoding (default: %(default)s).",
    )
    parser.add_argument(
        "--list-styles",
        action="store_true",
        help="List available style presets and exit.",
    )
    parser.add_argument(
        "--list-snippets",
        action="store_true",
        help="List the Markdown snippet catalog and exit.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Print progress information.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for the CLI."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.list_styles:
        print("Available style presets:")
        for preset in StyleManager.PRESETS:
            print(f"  - {preset}")
        return 0

    if args.list_snippets:
        print("Markdown snippets:")
        for snippet in SNIPPETS:
            print(f"  - {snippet.title}: {snippet.description}")
        return 0

    if not args.input:
        parser.error("the following argument is required: input")

    input_path = Path(args.input)
    if not input_path.is_file():
        print(f"Error: file not found: {input_path}", file=sys.stderr)
        return 1

    if args.output:
        output_path = Path(args.output)
    else:
        output_path = input_path.with_suffix(f".{args.format}")

    if args.verbose:
        print(f"Input:  {input_path}")
        print(f"Output: {output_path}")
        print(f"Format: {args.format}")
        print(f"Style:  {args.style}")

    try:
        converter = Converter(style_preset=args.style)
        converter.convert_file(
            input_path,
            output_path,
            fmt=args.format,
            encoding=args.encoding,
        )
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.verbose:
        print(f"Done. {output_path.stat().st_size} bytes written.")
    else:
        print(f"Converted: {output_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
