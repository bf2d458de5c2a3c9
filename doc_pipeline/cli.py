"""
Command line entry point.

Extracts a document, runs the configured cleaner modules and writes the
enabled output formats below the output directory.
"""

import argparse
import sys
from pathlib import Path
from typing import Optional

from .config import OutputFormats, PipelineConfig, ServiceConfig
from .exceptions import PipelineError, format_error_chain
from .logging_config import get_logger, level_from_flags, setup_logging
from .models import Document
from .modules import list_modules
from .service import ParsingService

logger = get_logger(__name__)

FORMATS = ["json", "markdown", "text", "html"]


def build_config(args: argparse.Namespace) -> PipelineConfig:
    config = PipelineConfig.load(str(args.config)) if args.config else PipelineConfig()
    if args.format:
        config.output.formats = OutputFormats(**{fmt: fmt in args.format for fmt in FORMATS})
    if args.pdf_extractor:
        config.extractor.pdf = args.pdf_extractor
    if args.timeout:
        config.timeout_seconds = args.timeout
    if args.no_images:
        config.extractor.extract_images = False
    return config


def print_summary(document: Document, output_paths: dict[str, str]) -> None:
    print("\n" + "=" * 60)
    print("EXTRACTION SUMMARY")
    print("=" * 60)
    print(f"Input: {document.input_file}")
    print(f"Pages: {len(document.pages)}")
    print(f"Words: {document.word_count}")
    print(f"Links: {document.link_count}")
    for fmt, path in output_paths.items():
        print(f"  {fmt}: {path}")


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Extract a document and run the cleaner modules over it",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s document.pdf
  %(prog)s document.pdf -o output/ -f markdown -f json
  %(prog)s mail.eml -c config.json --verbose
        """
    )
    parser.add_argument(
        "input_file",
        nargs="?",
        type=Path,
        help="Path to the PDF, image or .eml file to process"
    )
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=Path("output"),
        help="Output directory (default: output)"
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        help="JSON pipeline configuration"
    )
    parser.add_argument(
        "-f", "--format",
        action="append",
        choices=FORMATS,
        help="Output format, repeatable (default: from configuration)"
    )
    parser.add_argument(
        "--pdf-extractor",
        choices=["pdfminer", "pymupdf"],
        help="Backend for digital PDFs"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Abort the run after this many seconds"
    )
    parser.add_argument(
        "--no-images",
        action="store_true",
        help="Skip embedded image extraction and OCR"
    )
    parser.add_argument(
        "--list-modules",
        action="store_true",
        help="List the available cleaner modules and exit"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show detailed output"
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress progress output"
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        help="Also write log records to this file"
    )

    args = parser.parse_args(argv)

    try:
        setup_logging(level=level_from_flags(args.verbose, args.quiet), log_file=args.log_file)
    except ValueError as e:
        parser.error(str(e))

    if args.list_modules:
        for name in list_modules():
            print(name)
        return 0

    if args.input_file is None:
        parser.error("the following arguments are required: input_file")

    if not args.input_file.exists():
        logger.error(f"Input file not found: {args.input_file}")
        return 1

    try:
        config = build_config(args)
    except (OSError, ValueError) as e:
        logger.error(f"Invalid configuration {args.config}: {e}")
        return 1

    try:
        service = ParsingService(ServiceConfig(data_dir=str(args.output), pipeline=config))
        document, _, output_paths = service.parse_and_save(str(args.input_file))
    except PipelineError as e:
        logger.error(f"Processing failed:\n{format_error_chain(e)}")
        return 1

    if not args.quiet:
        print_summary(document, output_paths)
    return 0


if __name__ == "__main__":
    sys.exit(main())
