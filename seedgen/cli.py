# File: seedgen/cli.py
"""
SeedGen - Command-Line Interface
=================================
``argparse`` front end with three sub-commands.

Usage examples::

    # List the entities found under a resources directory
    seedgen list -r src/api/domain/entities

    # Show the structure recovered for one entity
    seedgen info Product -r src/api/domain/entities

    # Generate 20 records per entity into a JSON file
    seedgen generate -r src/api/domain/entities -n 20 -o seed.json

    # Deterministic placeholder data as a mongosh script
    seedgen generate --no-realistic --format mongodb -o seed

    # Insert straight into MongoDB, settings from a config file
    seedgen -v generate --config seeder.yaml --format db --mongo-uri mongodb://localhost/app

Exit codes:
    0 — success
    1 — validation error
    2 — generation error
    3 — export error
    4 — input/argument error
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Sequence

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("seedgen")

# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------
EXIT_SUCCESS: int = 0
EXIT_VALIDATION_ERROR: int = 1
EXIT_GENERATION_ERROR: int = 2
EXIT_EXPORT_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4

DEFAULT_RESOURCES_DIR: str = "./src/api/domain/entities"


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the root seedgen logger based on verbosity level.

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
    datefmt: str = "%H:%M:%S"
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root_logger: logging.Logger = logging.getLogger("seedgen")
    root_logger.setLevel(level)
    # Remove existing handlers to prevent duplication
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from seedgen import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="seedgen",
        description=(
            "SeedGen — synthetic seed data for MongoDB entities.\n\n"
            "Recovers entity structures from Mongoose/Zod schema sources and "
            "generates realistic or deterministic records with consistent "
            "cross-entity references."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s list -r src/api/domain/entities\n"
            "  %(prog)s info Product\n"
            "  %(prog)s generate -n 20 -o seed.json\n"
            "  %(prog)s generate --format mongodb --no-realistic -o seed\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"SeedGen v{__version__}",
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

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    # --- list ---
    list_parser = subparsers.add_parser("list", help="List discovered entities.")
    _add_resources_argument(list_parser)

    # --- info ---
    info_parser = subparsers.add_parser("info", help="Show one entity's structure.")
    info_parser.add_argument("model", metavar="MODEL", help="Entity name.")
    _add_resources_argument(info_parser)
    info_parser.add_argument(
        "--json",
        dest="as_json",
        action="store_true",
        default=False,
        help="Print the structure as JSON.",
    )

    # --- generate ---
    gen_parser = subparsers.add_parser("generate", help="Generate and save seed data.")
    _add_resources_argument(gen_parser, default=None)
    gen_parser.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        metavar="PATH",
        help="Seeder configuration file (JSON or YAML).",
    )
    gen_parser.add_argument(
        "-m", "--model",
        dest="models",
        action="append",
        default=None,
        metavar="MODEL",
        help="Entity to seed (repeatable; default: all discovered).",
    )

    output_group = gen_parser.add_argument_group("output")
    output_group.add_argument(
        "-f", "--format",
        dest="output_format",
        type=str,
        default=None,
        choices=["json", "mongodb", "db"],
        help="Output format (default: json).",
    )
    output_group.add_argument(
        "-o", "--output",
        dest="output_path",
        type=str,
        default=None,
        metavar="PATH",
        help="Output file for json/mongodb formats.",
    )
    output_group.add_argument(
        "--mongo-uri",
        type=str,
        default=None,
        metavar="URI",
        help="MongoDB connection string (default: $MONGO_URI).",
    )

    data_group = gen_parser.add_argument_group("data")
    data_group.add_argument(
        "-n", "--count",
        type=int,
        default=None,
        metavar="N",
        help="Records per entity (default: 10).",
    )
    data_group.add_argument(
        "--realistic",
        dest="realistic",
        action="store_true",
        default=None,
        help="Realistic values from name heuristics (default).",
    )
    data_group.add_argument(
        "--no-realistic",
        dest="realistic",
        action="store_false",
        default=None,
        help="Deterministic placeholder values.",
    )
    data_group.add_argument(
        "--seed",
        type=int,
        default=None,
        metavar="INT",
        help="Random seed for reproducible realistic runs.",
    )
    data_group.add_argument(
        "--locale",
        type=str,
        default=None,
        metavar="LOCALE",
        help="Faker locale (default: en_US).",
    )

    mode_group = gen_parser.add_argument_group("operation modes")
    mode_group.add_argument(
        "--validate-only",
        action="store_true",
        default=False,
        help="Only analyse and validate the entities; nothing is generated.",
    )
    mode_group.add_argument(
        "--json",
        dest="as_json",
        action="store_true",
        default=False,
        help="With --validate-only, print the report as JSON.",
    )

    return parser


def _add_resources_argument(
    parser: argparse.ArgumentParser,
    default: Optional[str] = DEFAULT_RESOURCES_DIR,
) -> None:
    parser.add_argument(
        "-r", "--resources",
        dest="resources_dir",
        type=str,
        default=default,
        metavar="DIR",
        help=f"Entity resources directory (default: {DEFAULT_RESOURCES_DIR}).",
    )


# ---------------------------------------------------------------------------
# Config override builder
# ---------------------------------------------------------------------------


def _build_config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Config values given on the command line; unset flags are left out."""
    candidates: Dict[str, Any] = {
        "resources_dir": args.resources_dir,
        "models": args.models,
        "output_format": args.output_format,
        "output_path": args.output_path,
        "mongo_uri": args.mongo_uri,
        "count": args.count,
        "realistic": args.realistic,
        "seed": args.seed,
        "locale": args.locale,
    }
    return {k: v for k, v in candidates.items() if v is not None}


def _load_config(args: argparse.Namespace) -> Any:
    """SeederConfig from --config plus flags.  Raises ValueError/FileNotFoundError."""
    from seedgen.generator import load_config_file
    from seedgen.models import SeederConfig

    overrides: Dict[str, Any] = _build_config_overrides(args)
    if args.config:
        return load_config_file(Path(args.config), overrides)
    return SeederConfig.model_validate(overrides)


# ---------------------------------------------------------------------------
# Sub-commands
# ---------------------------------------------------------------------------


def _run_list(args: argparse.Namespace) -> int:
    from seedgen.models import ConfigurationError
    from seedgen.scanner import ModelScanner

    try:
        scanner: ModelScanner = ModelScanner(args.resources_dir)
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return EXIT_INPUT_ERROR

    names: List[str] = scanner.list_available_models()
    if not names:
        print(f"No entities found under {args.resources_dir}")
        return EXIT_SUCCESS

    print(f"Entities under {args.resources_dir} ({len(names)}):")
    for name in names:
        print(f"  • {name}")
    return EXIT_SUCCESS


def _run_info(args: argparse.Namespace) -> int:
    from seedgen.models import ConfigurationError
    from seedgen.scanner import ModelScanner

    try:
        scanner: ModelScanner = ModelScanner(args.resources_dir)
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return EXIT_INPUT_ERROR

    structure = scanner.get_model_info(args.model)
    if structure is None:
        logger.error("Model not found: %s", args.model)
        return EXIT_INPUT_ERROR

    if args.as_json:
        print(structure.model_dump_json(indent=2))
        return EXIT_SUCCESS

    print(f"\n{'='*50}")
    print(f"  Model: {structure.name}")
    print(f"{'='*50}")
    if structure.is_empty:
        print("  (no fields recognised)")
    for fdef in structure.fields:
        kind: str = f"{fdef.type}[]" if fdef.is_array and fdef.type != "array" else str(fdef.type)
        flags: List[str] = []
        if fdef.required:
            flags.append("required")
        if fdef.unique:
            flags.append("unique")
        if fdef.is_reference:
            flags.append(f"ref → {fdef.ref}")
        if fdef.enum_values:
            flags.append("enum: " + ", ".join(fdef.enum_values))
        print(f"  {fdef.name:<24s} {kind:<10s} {'; '.join(flags)}")
    if structure.references:
        print(f"\n  References ({len(structure.references)}):")
        for ref in structure.references:
            suffix: str = " (array)" if ref.is_array else ""
            print(f"    {ref.field} → {ref.model}{suffix}")
    print(f"{'='*50}\n")
    return EXIT_SUCCESS


def _run_validate_only(config: Any, as_json: bool = False) -> int:
    from seedgen.models import ConfigurationError
    from seedgen.scanner import ModelScanner
    from seedgen.utils import Timer
    from seedgen.validators import validate_full

    try:
        structures = ModelScanner(config.resources_dir).get_all_models()
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return EXIT_INPUT_ERROR

    with Timer("validation") as t:
        result = validate_full(structures, config)

    if as_json:
        print(json.dumps(
            {
                "resources_dir": config.resources_dir,
                "models": sorted(structures),
                "valid": result.is_valid,
                "issues": [item.to_dict() for item in result.all_items],
            },
            indent=2,
            default=str,
        ))
        return EXIT_SUCCESS if result.is_valid else EXIT_VALIDATION_ERROR

    print(f"\n{'='*50}")
    print("  Model Validation Report")
    print(f"{'='*50}")
    print(f"  Resources: {config.resources_dir}")
    print(f"  Models:    {len(structures)}")
    print(f"  Time:      {t.elapsed:.3f}s")
    print(f"  Valid:     {'Yes' if result.is_valid else 'No'}")
    print()
    print(result.format_report())
    print(f"{'='*50}\n")

    return EXIT_SUCCESS if result.is_valid else EXIT_VALIDATION_ERROR


def _run_generate(args: argparse.Namespace) -> int:
    from seedgen.generator import SeedPipeline, SeedReport

    try:
        config = _load_config(args)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Invalid configuration: %s", exc)
        return EXIT_INPUT_ERROR

    if not Path(config.resources_dir).is_dir():
        logger.error("Resources directory not found: %s", config.resources_dir)
        return EXIT_INPUT_ERROR

    if args.validate_only:
        return _run_validate_only(config, as_json=args.as_json)

    logger.info("Resources: %s", config.resources_dir)
    logger.info("Format:    %s", config.output_format)
    logger.info("Count:     %d", config.count)

    report: SeedReport = SeedPipeline(config).run()
    print(report.summary())

    if not report.success:
        if report.validation_errors:
            return EXIT_VALIDATION_ERROR
        elif report.storage_errors:
            return EXIT_EXPORT_ERROR
        return EXIT_GENERATION_ERROR
    return EXIT_SUCCESS


_COMMANDS = {
    "list": _run_list,
    "info": _run_info,
    "generate": _run_generate,
}


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Can be called from ``__main__.py`` or directly for testing.

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

    exit_code: int = _COMMANDS[args.command](args)
    if exit_code != EXIT_SUCCESS:
        logger.error("'%s' failed with exit code %d.", args.command, exit_code)
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

logger.debug("seedgen.cli loaded.")
