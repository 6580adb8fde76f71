# File: datagen/cli.py
"""
NexaFlow DataGen - Command-Line Interface
==========================================

``argparse`` front-end over the generation pipeline and the HTTP service.

Usage examples::

    # 25 customers as JSON on stdout
    python -m datagen -s customer.json -n 25

    # CSV into a file, reproducible
    python -m datagen -s customer.yaml -n 100 -f csv -o customers.csv --seed 7

    # INSERT statements against a custom table, unknown types via Ollama
    python -m datagen -s order.json -f sql --table-name orders --use-ai

    # Check a structure without generating
    python -m datagen -s customer.json --validate-only

    # Serve the HTTP API
    python -m datagen --serve --port 8000

Exit codes:
    0 - success
    1 - validation error
    2 - generation error
    3 - export error
    4 - input/argument error
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, NoReturn, Optional, Sequence

from datagen.config import Settings, build_oracle, load_settings
from datagen.generator import DataGenerator, GenerationResult, load_structure_file
from datagen.models import OutputFormat, StructureDefinition
from datagen.oracle import SuggestionOracle
from datagen.registry import default_registry
from datagen.utils import Timer, pretty_json, write_file
from datagen.validators import (
    CountOutOfRangeError,
    StructureValidationError,
    ValidationResult,
    validate_structure,
)

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("datagen")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_VALIDATION_ERROR: int = 1
EXIT_GENERATION_ERROR: int = 2
EXIT_EXPORT_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the root datagen logger based on verbosity level.

    Args:
        verbosity: 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    formatter: logging.Formatter = logging.Formatter(fmt, datefmt="%H:%M:%S")
    handler.setFormatter(formatter)

    root_logger: logging.Logger = logging.getLogger("datagen")
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from datagen import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="datagen",
        description=(
            "NexaFlow DataGen - Sample Data Generator.\n\n"
            "Produces realistic records from a structure definition "
            "(JSON/YAML) as JSON, CSV or SQL INSERT statements."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s -s customer.json -n 25\n"
            "  %(prog)s -s customer.yaml -f csv -o customers.csv --seed 7\n"
            "  %(prog)s -s customer.json --validate-only\n"
            "  %(prog)s --serve --port 8000\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"NexaFlow DataGen v{__version__}",
    )

    # --- Input / output ---
    parser.add_argument(
        "-s", "--structure",
        type=str,
        default=None,
        metavar="PATH",
        help="Path to the structure definition file (JSON or YAML).",
    )
    parser.add_argument(
        "-n", "--count",
        type=int,
        default=None,
        metavar="N",
        help="Number of records to generate (default from settings).",
    )
    parser.add_argument(
        "-f", "--format",
        type=str.lower,
        default=OutputFormat.JSON.value,
        choices=[f.value for f in OutputFormat],
        help="Output format (default: json).",
    )
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        metavar="FILE",
        help="Write the output to FILE instead of stdout.",
    )
    parser.add_argument(
        "--table-name",
        type=str,
        default=None,
        metavar="NAME",
        help="Table name for SQL output (default: the entity name).",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed the value stream for reproducible output.",
    )

    # --- Modes ---
    mode_group = parser.add_argument_group("operation modes")
    mode_group.add_argument(
        "--validate-only",
        action="store_true",
        default=False,
        help="Only validate the structure without generating records.",
    )
    mode_group.add_argument(
        "--list-types",
        action="store_true",
        default=False,
        help="Print the supported field types and exit.",
    )
    mode_group.add_argument(
        "--serve",
        action="store_true",
        default=False,
        help="Run the HTTP API instead of generating once.",
    )
    mode_group.add_argument("--host", type=str, default="127.0.0.1")
    mode_group.add_argument("--port", type=int, default=8000)

    # --- Config overrides ---
    config_group = parser.add_argument_group("configuration overrides")
    config_group.add_argument(
        "--config",
        type=str,
        default=None,
        metavar="PATH",
        help="Settings file (YAML or JSON). Environment variables still win.",
    )
    config_group.add_argument(
        "--use-ai",
        action="store_true",
        default=False,
        help="Resolve unknown field types through the local Ollama model.",
    )
    config_group.add_argument(
        "--ollama-url",
        type=str,
        default=None,
        metavar="URL",
        help="Override the Ollama base URL.",
    )
    config_group.add_argument(
        "--model",
        type=str,
        default=None,
        metavar="NAME",
        help="Override the Ollama model name.",
    )

    # --- Verbosity ---
    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all output except errors.",
    )

    return parser


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def _build_settings(args: argparse.Namespace) -> Settings:
    """Settings file + environment, then CLI overrides on top."""
    settings: Settings = load_settings(Path(args.config) if args.config else None)

    if args.use_ai:
        settings.ollama.enabled = True
    if args.ollama_url is not None:
        settings.ollama.base_url = args.ollama_url
    if args.model is not None:
        settings.ollama.model = args.model

    return settings


# ---------------------------------------------------------------------------
# Modes
# ---------------------------------------------------------------------------


def _run_list_types() -> int:
    for tag in default_registry().supported_types():
        print(tag)
    return EXIT_SUCCESS


def _run_serve(settings: Settings, host: str, port: int) -> int:
    import uvicorn

    from datagen.api import create_app

    logger.info("Serving DataGen API on http://%s:%d", host, port)
    uvicorn.run(create_app(settings=settings), host=host, port=port)
    return EXIT_SUCCESS


def _run_validate_only(
    structure_path: Path, structure: StructureDefinition, oracle: SuggestionOracle
) -> int:
    """
    Run validation only (no record generation).

    Returns the appropriate exit code.
    """
    logger.info("Running validation-only mode for: %s", structure_path)

    with Timer("validation") as t:
        result: ValidationResult = validate_structure(structure)

    suggestions: List[str] = []
    if oracle.is_available():
        review = oracle.validate_structure(structure)
        if review.ok and review.value is not None:
            suggestions = review.value.suggestions

    print(f"\n{'='*50}")
    print("  Structure Validation Report")
    print(f"{'='*50}")
    print(f"  File:     {structure_path.name}")
    print(f"  Entity:   {structure.entity_name or '-'}")
    print(f"  Fields:   {structure.field_count}")
    print(f"  Time:     {t.elapsed:.3f}s")
    print(f"  Valid:    {'Yes' if result.is_valid else 'No'}")

    if result.has_errors:
        print(f"\n  Errors ({result.error_count}):")
        for message in result.error_messages:
            print(f"    ✗ {message}")

    unknown = [item for item in result.all_items if item.code == "UNKNOWN_FIELD_TYPE"]
    if unknown:
        print(f"\n  Unknown types ({len(unknown)}):")
        for item in unknown:
            print(f"    ? {item.message}")

    if suggestions:
        print(f"\n  Suggestions ({len(suggestions)}):")
        for suggestion in suggestions:
            print(f"    • {suggestion}")

    if result.is_valid and not unknown:
        print("\n  ✅ All validations passed!")

    print(f"{'='*50}\n")

    return EXIT_SUCCESS if result.is_valid else EXIT_VALIDATION_ERROR


def _run_generation(
    structure: StructureDefinition,
    settings: Settings,
    oracle: SuggestionOracle,
    args: argparse.Namespace,
) -> int:
    """
    Run the full generation pipeline and write or print the payload.

    Returns the appropriate exit code.
    """
    generator: DataGenerator = DataGenerator(
        oracle=oracle, locale=settings.data_generation.locale
    )
    count: int = (
        args.count if args.count is not None else settings.data_generation.default_count
    )

    try:
        result: GenerationResult = generator.run(
            structure,
            count,
            OutputFormat(args.format),
            max_count=settings.data_generation.max_count,
            table_name=args.table_name,
            seed=args.seed,
        )
    except CountOutOfRangeError as exc:
        logger.error("%s", exc)
        return EXIT_INPUT_ERROR
    except StructureValidationError as exc:
        logger.error("Invalid structure:\n%s", exc.result.format_report())
        return EXIT_VALIDATION_ERROR
    except Exception:
        logger.error("Error generating data", exc_info=True)
        return EXIT_GENERATION_ERROR

    text: str = (
        pretty_json(result.payload) + "\n"
        if result.format is OutputFormat.JSON
        else result.payload
    )

    if args.output is None:
        sys.stdout.write(text)
    else:
        output_path: Path = Path(args.output).resolve()
        try:
            write_file(output_path, text)
        except OSError as exc:
            logger.error("Failed to write %s: %s", output_path, exc)
            return EXIT_EXPORT_ERROR
        logger.info("Wrote %s", output_path)

    logger.info("%s", result.summary())
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Parse *argv*, run the selected mode and return its exit code.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    if args.quiet:
        verbosity: int = -1
        logging.disable(logging.CRITICAL)
    else:
        verbosity = args.verbose

    _setup_logging(verbosity)

    if args.list_types:
        return _run_list_types()

    try:
        settings: Settings = _build_settings(args)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Failed to load settings: %s", exc)
        return EXIT_INPUT_ERROR

    if args.serve:
        return _run_serve(settings, args.host, args.port)

    if args.structure is None:
        logger.error("A structure file is required. Use -s/--structure.")
        parser.print_usage(sys.stderr)
        return EXIT_INPUT_ERROR

    structure_path: Path = Path(args.structure).resolve()
    try:
        structure: StructureDefinition = load_structure_file(structure_path)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Failed to load structure: %s", exc)
        return EXIT_INPUT_ERROR

    logger.info("Structure: %s", structure_path)
    logger.info("Format:    %s", args.format)
    logger.info("Oracle:    %s", "ollama" if settings.ollama.enabled else "none")

    oracle: SuggestionOracle = build_oracle(settings)
    try:
        if args.validate_only:
            return _run_validate_only(structure_path, structure, oracle)
        return _run_generation(structure, settings, oracle, args)
    finally:
        close = getattr(oracle, "close", None)
        if callable(close):
            close()


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """Console-script entry point: run ``main`` and exit with its code."""
    sys.exit(main(argv))


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "main",
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "EXIT_GENERATION_ERROR",
    "EXIT_EXPORT_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("datagen.cli loaded.")
