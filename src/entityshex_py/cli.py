"""EntitySchema ShEx property extractor: CLI entry point.

Usage:
    entityshex --input FILE [--format json|shex|legacy] [--output FILE]
    entityshex --input FILE --format legacy --use-new-parser [--no-fallback]
    entityshex --input-dir DIR --output-dir DIR [--format json|shex|legacy]
"""
from __future__ import annotations

import argparse
import os
import sys

from loguru import logger

from entityshex_py.compat.adapter import parse_shex_properties
from entityshex_py.config import LegacyParseOptions, ParserOptions
from entityshex_py.parser.errors import ShExParseError
from entityshex_py.parser.shex_parser import parse_shex_code
from entityshex_py.serializer.json_serializer import serialize_json
from entityshex_py.serializer.shex_serializer import serialize_shex

FORMAT_EXTENSIONS = {"json": ".json", "shex": ".shex", "legacy": ".json"}


def configure_logging(verbose: bool = False):
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")
    logger.enable("entityshex_py")


def convert_text(
    text: str,
    output_format: str = "json",
    strict: bool = False,
    legacy_options: LegacyParseOptions | None = None,
) -> str:
    """Parse ShExC text and render it in ``output_format``.

    Raises:
        ShExParseError: in strict mode, or for ``legacy`` output with the new
            parser and no fallback.
    """
    if output_format == "legacy":
        return serialize_json(parse_shex_properties(text, legacy_options))

    document = parse_shex_code(text, ParserOptions(strict=strict))
    for diagnostic in document.diagnostics:
        logger.warning(f"Skipped: {diagnostic}")
    if output_format == "shex":
        return serialize_shex(document)
    if output_format == "json":
        return serialize_json(document)
    raise ValueError(f"Unknown format: {output_format!r}")


def convert_file(
    input_path: str,
    output_format: str = "json",
    output_path: str | None = None,
    strict: bool = False,
    legacy_options: LegacyParseOptions | None = None,
) -> str:
    """Convert a single file.

    Args:
        input_path: Path to a ShExC file.
        output_format: 'json', 'shex' or 'legacy'.
        output_path: Optional output file path. If None, only returned.

    Returns:
        The converted output string.
    """
    with open(input_path, "r", encoding="utf-8") as f:
        text = f.read()
    result = convert_text(text, output_format, strict, legacy_options)

    if output_path:
        os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(result)

    return result


def convert_batch(
    input_dir: str,
    output_dir: str,
    output_format: str = "json",
    strict: bool = False,
    legacy_options: LegacyParseOptions | None = None,
) -> tuple[int, int]:
    """Convert every ``.shex`` file in a directory.

    Returns:
        (success_count, failure_count)
    """
    os.makedirs(output_dir, exist_ok=True)
    ext_out = FORMAT_EXTENSIONS[output_format]

    ok = 0
    fail = 0
    for filename in sorted(os.listdir(input_dir)):
        if not filename.endswith(".shex"):
            continue

        input_path = os.path.join(input_dir, filename)
        output_name = filename[: -len(".shex")] + ext_out
        output_path = os.path.join(output_dir, output_name)

        try:
            convert_file(input_path, output_format, output_path, strict, legacy_options)
            print(f"  OK  {filename} -> {output_name}")
            ok += 1
        except (ShExParseError, OSError, UnicodeDecodeError) as e:
            print(f"  FAIL {filename}: {e}")
            fail += 1

    return ok, fail


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="entityshex",
        description="Extract Wikidata property requirements from EntitySchema ShExC",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        "--input", "-i",
        help="Input ShExC file path",
    )
    parser.add_argument(
        "--output", "-o",
        help="Output file path (default: stdout)",
    )
    parser.add_argument(
        "--format", "-f",
        choices=sorted(FORMAT_EXTENSIONS),
        default="json",
        help="Output format (default: json)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on the first syntax error instead of skipping the statement",
    )
    parser.add_argument(
        "--use-new-parser",
        action="store_true",
        help="legacy format: use the ShExC parser instead of the regex extractor",
    )
    parser.add_argument(
        "--no-fallback",
        action="store_true",
        help="legacy format: fail instead of falling back to the regex extractor",
    )
    parser.add_argument(
        "--input-dir",
        help="Input directory for batch conversion",
    )
    parser.add_argument(
        "--output-dir",
        help="Output directory for batch conversion",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log parser diagnostics to stderr",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    legacy_options = LegacyParseOptions(
        use_new_parser=args.use_new_parser,
        enable_fallback=not args.no_fallback,
    )

    if args.input_dir and args.output_dir:
        ok, fail = convert_batch(
            args.input_dir, args.output_dir, args.format, args.strict, legacy_options
        )
        print(f"\nConverted {ok} files, {fail} failed")
        return 1 if fail else 0

    if args.input:
        try:
            result = convert_file(
                args.input, args.format, args.output, args.strict, legacy_options
            )
        except ShExParseError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        if not args.output:
            print(result)
        return 0

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
