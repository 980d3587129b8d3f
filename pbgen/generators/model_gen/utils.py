"""Naming helpers for model generation."""
import keyword
import re
from typing import List

from pbgen.core.errors import InvalidNameError
from pbgen.runtime.models import BaseRecord

# Segments rendered fully upper-case in canonical identifiers.
ACRONYMS = {"id": "ID", "url": "URL", "html": "HTML", "json": "JSON"}

_SEPARATORS = re.compile(r"[^A-Za-z0-9]+")
_SEGMENT = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|[0-9]+")

# Names the base record and pydantic already use, plus the builtins that appear
# in generated annotations. Anything under the ``model_`` prefix is reserved too.
_RESERVED_ATTRIBUTES = {name for name in dir(BaseRecord) if not name.startswith("_")} | {
    "schema", "fields", "expand", "collection_id", "collection_name", "str", "bool", "float",
}
_RESERVED_PREFIX = "model_"


def split_segments(raw_name: str) -> List[str]:
    """Split on ``_``, ``-``, other separators and case boundaries."""
    segments = []
    for chunk in _SEPARATORS.split(raw_name):
        segments.extend(_SEGMENT.findall(chunk))
    return segments


def to_canonical_identifier(raw_name: str) -> str:
    """Convert a raw field or collection name to a PascalCase identifier.

    Total for any non-empty input: irregular names still produce some
    identifier (``"2fa"`` -> ``"Field2Fa"``, ``"___"`` -> ``"Field"``).
    """
    if not raw_name:
        raise InvalidNameError(
            "name must not be empty",
            hint="give every collection and field a non-empty name",
        )

    parts = []
    for segment in split_segments(raw_name):
        lowered = segment.lower()
        if lowered in ACRONYMS:
            parts.append(ACRONYMS[lowered])
        else:
            parts.append(segment[0].upper() + segment[1:])
    identifier = "".join(parts)

    if not identifier:
        return "Field"
    if identifier[0].isdigit():
        identifier = "Field" + identifier
    if keyword.iskeyword(identifier):
        identifier += "_"
    return identifier


def to_snake_case(name: str) -> str:
    """Convert PascalCase or camelCase to snake_case."""
    s1 = re.sub('(.)([A-Z][a-z]+)', r'\1_\2', name)
    s2 = re.sub('([a-z0-9])([A-Z])', r'\1_\2', s1)
    return s2.lower()


def to_attribute_name(canonical_name: str) -> str:
    """Python attribute name for a canonical identifier (``UserID`` -> ``user_id``)."""
    name = to_snake_case(canonical_name.rstrip("_"))
    if keyword.iskeyword(name) or name in _RESERVED_ATTRIBUTES or name.startswith(_RESERVED_PREFIX):
        name += "_"
    return name


def to_enum_member_name(value: str) -> str:
    """Enum member name for a select value (``"in-progress"`` -> ``"IN_PROGRESS"``)."""
    return to_snake_case(to_canonical_identifier(value).rstrip("_")).upper()


def to_enum_type_name(collection_name: str, field_name: str) -> str:
    return to_canonical_identifier(collection_name) + to_canonical_identifier(field_name) + "Type"
