"""Dataclasses for model generation (the intermediate representation)."""
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional, Tuple

from pbgen.core.errors import CompileWarning
from pbgen.schemas.collections import SchemaDialect


class AccessorStrategy(str, Enum):
    """How generated code reads a field out of a property bag.

    Values are the accessor method names on ``pbgen.runtime.models.Record``.
    """
    GET = "get"
    STR = "get_str"
    OPTIONAL_STR = "get_optional_str"
    BOOL = "get_bool"
    OPTIONAL_BOOL = "get_optional_bool"
    FLOAT = "get_float"
    OPTIONAL_FLOAT = "get_optional_float"
    DATETIME = "get_datetime"
    STR_LIST = "get_str_list"


@dataclass(frozen=True)
class TypeMapping:
    """Result of mapping one field kind to a target type."""
    target_type: str  # e.g. "Optional[str]"
    base_type: str  # target type with optionality stripped, e.g. "str"
    is_pointer: bool
    accessor: AccessorStrategy
    imports: FrozenSet[str] = frozenset()  # dotted names, e.g. "typing.Optional"
    fallback: bool = False  # kind was not recognized


@dataclass(frozen=True)
class ProcessedField:
    """One field of a collection, ready for rendering."""
    name: str  # canonical identifier, e.g. "IsPublished"
    json_name: str  # original field key, e.g. "is_published"
    kind: str
    target_type: str
    base_type: str
    is_pointer: bool
    accessor: AccessorStrategy
    required: bool = False
    imports: FrozenSet[str] = frozenset()
    enum_values: Tuple[str, ...] = ()
    relation_collection_id: Optional[str] = None
    relation_target: Optional[str] = None
    relation_struct: Optional[str] = None


@dataclass(frozen=True)
class FieldProcessingResult:
    """Processed fields of one collection plus any non-fatal warnings."""
    fields: Tuple[ProcessedField, ...]
    warnings: Tuple[CompileWarning, ...] = ()


@dataclass(frozen=True)
class EnumSpec:
    """Enum generated from a select field's declared values."""
    type_name: str  # e.g. "PostsStatusType"
    collection_name: str
    field_name: str
    members: Tuple[Tuple[str, str], ...]  # (member name, wire value)


@dataclass(frozen=True)
class CollectionIR:
    """Everything the renderer needs to emit one model class."""
    name: str
    struct_name: str
    fields: Tuple[ProcessedField, ...]
    dialect: SchemaDialect
    uses_shared_timestamps: bool
    imports: FrozenSet[str] = frozenset()
    enums: Tuple[EnumSpec, ...] = ()
    collection_id: str = ""
    system: bool = False


@dataclass(frozen=True)
class SchemaIR:
    """Compilation output for a whole schema document."""
    collections: Tuple[CollectionIR, ...]
    dialect: SchemaDialect  # dialect actually applied
    detected_dialect: SchemaDialect
    warnings: Tuple[CompileWarning, ...] = ()
    source: str = ""

    def get(self, collection_name: str) -> Optional[CollectionIR]:
        for collection in self.collections:
            if collection.name == collection_name:
                return collection
        return None


@dataclass
class GeneratedFile:
    """Represents a generated file."""
    path: str
    content: str


@dataclass
class GenerationResult:
    """Outcome of one generator run."""
    ir: SchemaIR
    output: GeneratedFile
    warnings: Tuple[CompileWarning, ...] = field(default_factory=tuple)
