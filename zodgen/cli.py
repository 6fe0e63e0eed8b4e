"""
zodgen - Command-Line Interface
===============================

CLI built with the standard-library ``argparse`` module.

Usage examples::

    # Basic generation (output taken from the document's config section)
    python -m zodgen --metadata metadata.yaml

    # Explicit output, select + include schemas, four assembly threads
    python -m zodgen -m metadata.json -o ./src/generated \\
        --generate-select --generate-include --workers 4

    # Validate only (no file output)
    python -m zodgen -m metadata.yaml --validate-only

    # Render everything, write nothing
    python -m zodgen -m metadata.yaml --dry-run -v

Exit codes:
    0 — success
    1 — validation error
    2 — generation error
    3 — export error
    4 — input/argument error
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, NoReturn, Optional, Sequence

from zodgen.models import DatabaseProvider

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zodgen")


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
    Configure the ``zodgen`` logger.

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
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
            datefmt="%H:%M:%S",
        )
    )

    root_logger: logging.Logger = logging.getLogger("zodgen")
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    from zodgen import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="zodgen",
        description=(
            "zodgen — zod schema generator.\n\n"
            "Transforms ORM model metadata (JSON/YAML) into zod validation "
            "schemas for every composite input type, enum and model operation."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s -m metadata.yaml\n"
            "  %(prog)s -m metadata.json -o ./src/generated --generate-select\n"
            "  %(prog)s -m metadata.yaml --validate-only\n"
        ),
    )

    parser.add_argument("--version", action="version", version=f"zodgen v{__version__}")

    parser.add_argument(
        "-m", "--metadata",
        type=str,
        required=True,
        metavar="PATH",
        help="Path to the metadata document (JSON or YAML).",
    )
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        metavar="DIR",
        help="Output root; schemas are written to <DIR>/schemas.",
    )

    # --- Modes ---
    mode_group = parser.add_argument_group("operation modes")
    mode_group.add_argument(
        "--validate-only",
        action="store_true",
        default=False,
        help="Only validate the metadata without generating schemas.",
    )
    mode_group.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Run the full pipeline but don't write files to disk.",
    )

    # --- Config overrides ---
    config_group = parser.add_argument_group("configuration overrides")
    config_group.add_argument(
        "--generate-select",
        action="store_true",
        default=None,
        help="Emit <Model>Select schemas and select fields on operations.",
    )
    config_group.add_argument(
        "--generate-include",
        action="store_true",
        default=None,
        help="Emit <Model>Include schemas and include fields on operations.",
    )
    config_group.add_argument(
        "--provider",
        type=str,
        default=None,
        choices=[p.value for p in DatabaseProvider],
        help="Override the database provider of the metadata.",
    )
    config_group.add_argument(
        "--workers",
        type=int,
        default=None,
        metavar="N",
        help="Number of threads used to assemble units.",
    )
    config_group.add_argument(
        "--manifest",
        action="store_true",
        default=None,
        help="Write a JSON export manifest next to index.ts.",
    )

    # --- Behaviour flags ---
    behaviour_group = parser.add_argument_group("behaviour flags")
    behaviour_group.add_argument(
        "--clean",
        action="store_true",
        default=None,
        help="Clean the schemas directory before writing.",
    )
    behaviour_group.add_argument(
        "--no-strict",
        action="store_true",
        default=False,
        help="Continue even if validation has errors.",
    )
    behaviour_group.add_argument(
        "--fail-on-warnings",
        action="store_true",
        default=False,
        help="Treat validation warnings as errors.",
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
# Override builders
# ---------------------------------------------------------------------------


def _build_config_overrides(args: argparse.Namespace) -> Dict[str, object]:
    overrides: Dict[str, object] = {}
    if args.output is not None:
        overrides["output"] = args.output
    if args.generate_select:
        overrides["is_generate_select"] = True
    if args.generate_include:
        overrides["is_generate_include"] = True
    if args.workers is not None:
        overrides["workers"] = args.workers
    if args.clean:
        overrides["clean_output"] = True
    if args.manifest:
        overrides["write_manifest"] = True
    return overrides


def _build_metadata_overrides(args: argparse.Namespace) -> Dict[str, object]:
    return {"provider": args.provider} if args.provider else {}


# ---------------------------------------------------------------------------
# Validate-only mode
# ---------------------------------------------------------------------------


def _run_validate_only(metadata_path: Path, args: argparse.Namespace) -> int:
    from zodgen.generator import load_metadata_file, merge_config_overrides, parse_raw_document
    from zodgen.utils import Timer
    from zodgen.validators import validate_full

    logger.info("Running validation-only mode for: %s", metadata_path)

    try:
        raw_data = load_metadata_file(metadata_path)
        raw_data["config"] = merge_config_overrides(
            raw_data.get("config"), _build_config_overrides(args)
        )
        if args.provider:
            section: str = "dmmf" if "dmmf" in raw_data else "metadata"
            if isinstance(raw_data.get(section), dict):
                raw_data[section] = {**raw_data[section], **_build_metadata_overrides(args)}
        metadata, config = parse_raw_document(raw_data)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Failed to load metadata: %s", exc)
        return EXIT_INPUT_ERROR

    with Timer("validation") as t:
        result = validate_full(metadata, config)

    print(f"\n{'='*50}")
    print("  Metadata Validation Report")
    print(f"{'='*50}")
    print(f"  File:     {metadata_path.name}")
    print(f"  Models:   {len(metadata.models)}")
    print(f"  Time:     {t.elapsed:.3f}s")
    print(f"  Valid:    {'Yes' if result.is_valid else 'No'}")

    if result.errors:
        print(f"\n  Errors ({len(result.errors)}):")
        for err in result.errors:
            print(f"    ✗ {err}")

    if result.warnings:
        print(f"\n  Warnings ({len(result.warnings)}):")
        for warn in result.warnings:
            print(f"    ⚠ {warn}")

    if result.is_valid and not result.warnings:
        print("\n  ✅ All validations passed!")

    print(f"{'='*50}\n")

    return EXIT_SUCCESS if result.is_valid else EXIT_VALIDATION_ERROR


# ---------------------------------------------------------------------------
# Full generation mode
# ---------------------------------------------------------------------------


def _run_generation(metadata_path: Path, args: argparse.Namespace) -> int:
    from zodgen.generator import GenerationReport, SchemaGenerator

    generator: SchemaGenerator = SchemaGenerator(
        strict_validation=not args.no_strict,
        fail_on_warnings=args.fail_on_warnings,
        dry_run=args.dry_run,
    )
    if args.dry_run:
        logger.info("Dry-run mode: files will not be written to disk.")

    config_overrides: Dict[str, object] = _build_config_overrides(args)
    metadata_overrides: Dict[str, object] = _build_metadata_overrides(args)
    report: GenerationReport = generator.generate_from_file(
        metadata_path,
        config_overrides=config_overrides or None,
        metadata_overrides=metadata_overrides or None,
    )

    print(report.summary())

    if not report.success:
        if report.validation_errors:
            return EXIT_VALIDATION_ERROR
        if report.generation_errors:
            return EXIT_GENERATION_ERROR
        if report.export_errors:
            return EXIT_EXPORT_ERROR
        return EXIT_GENERATION_ERROR
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point; callable from ``__main__.py`` or tests.

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

    if args.workers is not None and args.workers < 1:
        logger.error("--workers must be at least 1.")
        sys.exit(EXIT_INPUT_ERROR)

    metadata_path: Path = Path(args.metadata).resolve()
    if not metadata_path.is_file():
        logger.error("Metadata file not found: %s", metadata_path)
        sys.exit(EXIT_INPUT_ERROR)

    if args.validate_only:
        sys.exit(_run_validate_only(metadata_path, args))

    logger.info("Metadata: %s", metadata_path)
    logger.info("Output:   %s", args.output or "(from config)")
    logger.info("Strict:   %s", not args.no_strict)

    exit_code: int = _run_generation(metadata_path, args)
    if exit_code == EXIT_SUCCESS:
        logger.info("Generation completed successfully.")
    else:
        logger.error("Generation failed with exit code %d.", exit_code)
    sys.exit(exit_code)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "EXIT_GENERATION_ERROR",
    "EXIT_EXPORT_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("zodgen.cli loaded.")
