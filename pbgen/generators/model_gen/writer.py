"""File writer for model generation."""
from pathlib import Path
from typing import Union

from pbgen.core.errors import FileWriteError
from pbgen.generators.model_gen.types import GeneratedFile


def write_output(content: str, path: Union[str, Path]) -> GeneratedFile:
    """
    Write generated source to ``path``, creating parent directories.

    Args:
        content: Rendered module text
        path: Destination file path

    Returns:
        GeneratedFile describing what was written
    """
    out_path = Path(path)
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise FileWriteError(
            f"cannot write output file: {e.strerror or e}",
            hint="check that the output directory exists or can be created and is writable",
            path=str(out_path),
        ) from e
    return GeneratedFile(path=str(out_path), content=content)
