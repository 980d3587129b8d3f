"""Command-line entry point: generate record models from a schema export."""
import argparse
import logging
import sys
from importlib.metadata import PackageNotFoundError, version
from typing import List, Optional

from pbgen.core.config import settings
from pbgen.core.errors import GenerationError
from pbgen.core.logging import configure_logging
from pbgen.generators.model_gen import generate_models
from pbgen.schemas.collections import SchemaDialect

log = logging.getLogger(__name__)


def _package_version() -> str:
    try:
        return version("pbgen")
    except PackageNotFoundError:
        return "0.0.0+local"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=settings.app_name,
        description="Generate typed record models from an exported collections schema",
    )
    parser.add_argument("--schema", default=settings.schema_path,
                        help=f"path to the exported collections JSON (default: {settings.schema_path})")
    parser.add_argument("--output", default=settings.output_path,
                        help=f"path of the module to generate (default: {settings.output_path})")
    parser.add_argument("--force-dialect", choices=[SchemaDialect.LEGACY.value, SchemaDialect.LATEST.value],
                        help="skip detection and use this schema dialect")
    parser.add_argument("--unknown-dialect", choices=["latest", "fail"], default=settings.unknown_dialect_policy,
                        help="what to do when no dialect can be detected")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug output")
    parser.add_argument("--version", action="version", version=f"%(prog)s {_package_version()}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging("DEBUG" if args.verbose else None)

    force_dialect = SchemaDialect(args.force_dialect) if args.force_dialect else None
    try:
        result = generate_models(
            args.schema,
            args.output,
            force_dialect=force_dialect,
            unknown_policy=args.unknown_dialect,
        )
    except GenerationError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    for warning in result.warnings:
        print(f"WARNING: {warning}", file=sys.stderr)
    print(f"Generated {len(result.ir.collections)} model(s) ({result.ir.dialect.value} dialect) -> {result.output.path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
