"""Command-line interface for htmlpdf.

Usage::

    htmlpdf input.html                      # writes input.pdf
    htmlpdf input.html -o output.pdf        # explicit output path
    htmlpdf input.html --format A4          # A4 pages
    htmlpdf notes.md --title "Notes"        # Markdown input
    htmlpdf --list-formats                  # list available page formats
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from htmlpdf import __version__
from htmlpdf.assembler import DEFAULT_FORMAT, PAGE_SIZES
from htmlpdf.converter import Converter
from htmlpdf.errors import HtmlPdfError
from htmlpdf.logger import set_level

_MARKDOWN_SUFFIXES = (".md", ".markdown")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="htmlpdf",
        description="Convert HTML documents to paginated PDF.",
    )
    parser.add_argument(
        "input",
        nargs="?",
        help="Path to the HTML (or Markdown) file to convert.",
    )
    parser.add_argument(
        "-o", "--output",
        help="Output PDF file path. Defaults to <input>.pdf.",
    )
    parser.add_argument(
        "-f", "--format",
        default=DEFAULT_FORMAT,
        type=str.upper,
        choices=list(PAGE_SIZES),
        help="Page format (default: %(default)s).",
    )
    parser.add_argument(
        "-e", "--encoding",
        default="utf-8",
        help="Input file encoding (default: %(default)s).",
    )
    parser.add_argument(
        "--markdown",
        action="store_true",
        help="Treat the input as Markdown (implied for .md / .markdown files).",
    )
    parser.add_argument(
        "--title",
        help="Document title for Markdown input. Defaults to the file name.",
    )
    parser.add_argument(
        "--list-formats",
        action="store_true",
        help="List available page formats and exit.",
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

    if args.list_formats:
        print("Available page formats:")
        for name in PAGE_SIZES:
            print(f"  - {name}")
        return 0

    if not args.input:
        parser.error("the following argument is required: input")

    input_path = Path(args.input)
    if not input_path.is_file():
        print(f"Error: file not found: {input_path}", file=sys.stderr)
        return 1

    output_path = Path(args.output) if args.output else input_path.with_suffix(".pdf")
    markdown = args.markdown or input_path.suffix.lower() in _MARKDOWN_SUFFIXES

    if args.verbose:
        set_level(logging.DEBUG)
        print(f"Input:  {input_path}")
        print(f"Output: {output_path}")
        print(f"Format: {args.format}")

    try:
        converter = Converter(page_format=args.format)
        converter.convert_file(
            input_path,
            output_path,
            encoding=args.encoding,
            markdown=markdown,
            title=args.title,
        )
    except HtmlPdfError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1
    except (OSError, UnicodeDecodeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.verbose:
        print(f"Done. {output_path.stat().st_size} bytes written.")
    else:
        print(f"Converted: {output_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
