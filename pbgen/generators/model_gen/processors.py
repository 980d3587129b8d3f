"""
Field processors, one per schema dialect.

Both share the same walk (skip, dedup, map, name) and differ in how the
``created``/``updated`` timestamps are represented:

- Latest emits them as ordinary timestamp fields.
- Legacy drops them; generated models inherit them from a shared
  timestamp mixin instead.
"""
from dataclasses import replace
from typing import Dict, FrozenSet, Iterable, List, Optional

from pbgen.core.errors import CompileWarning, FieldProcessingError, InvalidNameError
from pbgen.generators.model_gen.mapper import TIMESTAMP_IMPORT, map_type, timestamp_mapping
from pbgen.generators.model_gen.types import FieldProcessingResult, ProcessedField, TypeMapping
from pbgen.generators.model_gen.utils import to_canonical_identifier
from pbgen.schemas.collections import RawFieldSchema, SchemaDialect

SYSTEM_FIELDS = frozenset({"id", "created", "updated", "collectionId", "collectionName"})
# Honored even when tagged system/hidden, so authors can override defaults.
CONVENTIONAL_FIELDS = frozenset({"id", "created", "updated"})
TIMESTAMP_FIELDS = frozenset({"created", "updated"})

BASE_RECORD_IMPORT = "pbgen.runtime.models.BaseRecord"
TIMESTAMPS_MIXIN_IMPORT = "pbgen.runtime.models.TimestampsMixin"


class FieldProcessor:
    dialect: SchemaDialect

    def uses_shared_timestamps(self) -> bool:
        return False

    def is_system_field(self, name: str) -> bool:
        return name in SYSTEM_FIELDS

    def required_imports(self) -> FrozenSet[str]:
        return frozenset({BASE_RECORD_IMPORT})

    def process_fields(self, fields: Iterable[RawFieldSchema], collection_name: str) -> FieldProcessingResult:
        """Turn a collection's raw fields into ordered, deduplicated ProcessedFields."""
        result: List[ProcessedField] = []
        warnings: List[CompileWarning] = []
        emitted = set()
        canonical_owners: Dict[str, str] = {}

        for field in fields:
            if field.name in emitted:
                continue
            if (field.system or field.hidden) and field.name not in CONVENTIONAL_FIELDS:
                continue
            emitted.add(field.name)

            if field.name in TIMESTAMP_FIELDS:
                processed = self.timestamp_field(field, collection_name)
                if processed is None:
                    continue
            else:
                processed = self._create_field(field, collection_name, warnings)

            result.append(self._claim_name(processed, canonical_owners, collection_name, warnings))

        return FieldProcessingResult(tuple(result), tuple(warnings))

    def timestamp_field(self, field: RawFieldSchema, collection_name: str) -> Optional[ProcessedField]:
        raise NotImplementedError

    def _create_field(
        self,
        field: RawFieldSchema,
        collection_name: str,
        warnings: List[CompileWarning],
    ) -> ProcessedField:
        mapping = map_type(field.kind, field.required, max_select=field.max_select)
        if mapping.fallback:
            if field.required:
                raise FieldProcessingError(
                    f"unsupported field type '{field.kind}' on a required field",
                    hint="use a supported type or make the field optional to fall back to a string",
                    collection=collection_name,
                    field=field.name,
                )
            warnings.append(CompileWarning(
                collection=collection_name,
                field=field.name,
                message=f"unsupported field type '{field.kind}', generated as Optional[str]",
                hint="values of this field are passed through as strings",
            ))
        return self._build(field, mapping, collection_name)

    def _build(self, field: RawFieldSchema, mapping: TypeMapping, collection_name: str) -> ProcessedField:
        try:
            name = to_canonical_identifier(field.name)
        except InvalidNameError as e:
            raise FieldProcessingError(
                "field name must not be empty",
                hint="give every field a non-empty name",
                collection=collection_name,
            ) from e

        return ProcessedField(
            name=name,
            json_name=field.name,
            kind=field.kind,
            target_type=mapping.target_type,
            base_type=mapping.base_type,
            is_pointer=mapping.is_pointer,
            accessor=mapping.accessor,
            required=field.required,
            imports=mapping.imports,
            enum_values=tuple(field.values) if field.kind == "select" else (),
            relation_collection_id=(field.collection_id or None) if field.kind == "relation" else None,
        )

    def _claim_name(
        self,
        processed: ProcessedField,
        owners: Dict[str, str],
        collection_name: str,
        warnings: List[CompileWarning],
    ) -> ProcessedField:
        """Keep canonical identifiers unique within the collection."""
        name = processed.name
        if name in owners:
            suffix = 2
            while f"{name}{suffix}" in owners:
                suffix += 1
            renamed = f"{name}{suffix}"
            warnings.append(CompileWarning(
                collection=collection_name,
                field=processed.json_name,
                message=f"identifier '{name}' already used by '{owners[name]}', renamed to '{renamed}'",
                hint="rename one of the fields so they normalize differently",
            ))
            processed = replace(processed, name=renamed)
            name = renamed
        owners[name] = processed.json_name
        return processed


class LatestFieldProcessor(FieldProcessor):
    """Processor for documents listing fields under ``fields``."""
    dialect = SchemaDialect.LATEST

    def required_imports(self) -> FrozenSet[str]:
        return super().required_imports() | {TIMESTAMP_IMPORT}

    def timestamp_field(self, field: RawFieldSchema, collection_name: str) -> Optional[ProcessedField]:
        # Present on every stored record, so never optional.
        return self._build(field, timestamp_mapping(), collection_name)


class LegacyFieldProcessor(FieldProcessor):
    """Processor for documents listing fields under ``schema``."""
    dialect = SchemaDialect.LEGACY

    def uses_shared_timestamps(self) -> bool:
        return True

    def required_imports(self) -> FrozenSet[str]:
        return super().required_imports() | {TIMESTAMPS_MIXIN_IMPORT}

    def timestamp_field(self, field: RawFieldSchema, collection_name: str) -> Optional[ProcessedField]:
        return None


def create_field_processor(dialect: SchemaDialect) -> FieldProcessor:
    """Pick the processor for a dialect; Unknown falls back to Latest."""
    if dialect == SchemaDialect.LEGACY:
        return LegacyFieldProcessor()
    return LatestFieldProcessor()
