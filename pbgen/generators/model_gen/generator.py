"""Orchestrator for model generation."""
import logging
from pathlib import Path
from typing import Optional, Union

from pbgen.core.errors import InvalidPathError
from pbgen.generators.model_gen.loader import load
from pbgen.generators.model_gen.render import render_models
from pbgen.generators.model_gen.types import GenerationResult
from pbgen.generators.model_gen.writer import write_output
from pbgen.schemas.collections import SchemaDialect

log = logging.getLogger(__name__)


def generate_models(
    schema_path: Union[str, Path],
    output_path: Union[str, Path],
    force_dialect: Optional[SchemaDialect] = None,
    unknown_policy: Optional[str] = None,
) -> GenerationResult:
    """
    Generate typed record models from an exported collections schema.

    Args:
        schema_path: Path to the exported collections JSON file
        output_path: Path of the Python module to write
        force_dialect: Dialect to apply regardless of detection
        unknown_policy: "latest" or "fail" when no dialect can be detected

    Returns:
        GenerationResult with the compiled IR, the written file and warnings
    """
    if output_path is None or not str(output_path).strip():
        raise InvalidPathError(
            "output path is empty",
            hint="pass the path of the module to generate, e.g. ./models.py",
        )

    ir = load(schema_path, force_dialect=force_dialect, unknown_policy=unknown_policy)
    content = render_models(ir)
    output = write_output(content, output_path)

    log.info(
        "Generated %d model(s) into %s (%d warning(s))",
        len(ir.collections), output.path, len(ir.warnings),
        extra={"stage": "write"},
    )
    return GenerationResult(ir=ir, output=output, warnings=ir.warnings)
