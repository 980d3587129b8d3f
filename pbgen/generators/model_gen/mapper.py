"""Map schema field kinds to Python type annotations."""
from typing import Optional

from pbgen.generators.model_gen.types import AccessorStrategy, TypeMapping

STRING_KINDS = {"text", "editor", "longtext", "url", "email", "password"}
BOOL_KINDS = {"bool", "boolean"}
NUMBER_KINDS = {"number"}
DATE_KINDS = {"date", "autodate"}
COLLECTION_KINDS = {"relation", "file"}

TIMESTAMP_TYPE = "Timestamp"
TIMESTAMP_IMPORT = "pbgen.runtime.models.Timestamp"

# kind group -> (base type, required accessor, optional accessor)
_SCALARS = {
    "str": ("str", AccessorStrategy.STR, AccessorStrategy.OPTIONAL_STR),
    "bool": ("bool", AccessorStrategy.BOOL, AccessorStrategy.OPTIONAL_BOOL),
    "float": ("float", AccessorStrategy.FLOAT, AccessorStrategy.OPTIONAL_FLOAT),
}


def _scalar(base: str, required: bool, fallback: bool = False) -> TypeMapping:
    base_type, required_accessor, optional_accessor = _SCALARS[base]
    if required:
        return TypeMapping(base_type, base_type, False, required_accessor, frozenset(), fallback)
    return TypeMapping(
        f"Optional[{base_type}]",
        base_type,
        True,
        optional_accessor,
        frozenset({"typing.Optional"}),
        fallback,
    )


def _string_list() -> TypeMapping:
    # Absence is an empty list on the wire, never null.
    return TypeMapping("List[str]", "List[str]", False, AccessorStrategy.STR_LIST, frozenset({"typing.List"}))


def timestamp_mapping() -> TypeMapping:
    """Dates default to the zero timestamp rather than absence."""
    return TypeMapping(TIMESTAMP_TYPE, TIMESTAMP_TYPE, False, AccessorStrategy.DATETIME, frozenset({TIMESTAMP_IMPORT}))


def map_type(kind: str, required: bool, max_select: Optional[int] = None) -> TypeMapping:
    """Map a field kind and its required flag to a target type.

    ``max_select`` only matters for ``select``: exactly 1 means a single
    value, anything else (including unset) a list of values.
    Unrecognized kinds map to a string-backed type with ``fallback=True``;
    the caller decides whether that is acceptable.
    """
    kind = (kind or "").lower()

    if kind in STRING_KINDS:
        return _scalar("str", required)
    if kind in BOOL_KINDS:
        return _scalar("bool", required)
    if kind in NUMBER_KINDS:
        return _scalar("float", required)
    if kind in DATE_KINDS:
        return timestamp_mapping()
    if kind in COLLECTION_KINDS:
        return _string_list()
    if kind == "select":
        if max_select == 1:
            return _scalar("str", required)
        return _string_list()
    if kind == "json":
        return TypeMapping("Any", "Any", False, AccessorStrategy.GET, frozenset({"typing.Any"}))

    return _scalar("str", required, fallback=True)
