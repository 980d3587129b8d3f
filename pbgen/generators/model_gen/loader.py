"""Schema loading: read, validate, detect the dialect and build the IR."""
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from pydantic import ValidationError

from pbgen.core.config import settings
from pbgen.core.errors import (
    CompileWarning,
    DialectParseError,
    FieldProcessingError,
    FileReadError,
    InvalidPathError,
    MixedDialectError,
    SchemaLoadError,
    SchemaParseError,
    SchemaValidateError,
)
from pbgen.generators.model_gen.detector import detect
from pbgen.generators.model_gen.processors import FieldProcessor, create_field_processor
from pbgen.generators.model_gen.render import RESERVED_TYPE_NAMES
from pbgen.generators.model_gen.types import CollectionIR, EnumSpec, ProcessedField, SchemaIR
from pbgen.generators.model_gen.utils import (
    to_canonical_identifier,
    to_enum_member_name,
    to_enum_type_name,
)
from pbgen.schemas.collections import (
    COLLECTION_NAME_PATTERN,
    RawCollectionSchema,
    SchemaDialect,
    parse_collections,
)

log = logging.getLogger(__name__)

SUPERUSERS_COLLECTION = "_superusers"


def load(
    path: Union[str, Path, None],
    force_dialect: Optional[SchemaDialect] = None,
    unknown_policy: Optional[str] = None,
) -> SchemaIR:
    """
    Load a schema file and compile it to the intermediate representation.

    Args:
        path: Path to the exported collections JSON file
        force_dialect: Dialect to apply regardless of detection
        unknown_policy: "latest" or "fail" for documents with no field-list key
            (defaults to settings.unknown_dialect_policy)

    Returns:
        SchemaIR with one CollectionIR per non-superuser collection
    """
    if path is None or not str(path).strip():
        raise InvalidPathError(
            "schema path is empty",
            hint="pass the path of the exported collections JSON, e.g. ./pb_schema.json",
        )

    schema_path = Path(path)
    if not schema_path.exists():
        raise SchemaLoadError(
            "schema file does not exist",
            hint="export the collections from the admin UI (Settings > Export collections) and check the path",
            path=str(schema_path),
        )

    try:
        data = schema_path.read_bytes()
    except OSError as e:
        raise FileReadError(
            f"cannot read schema file: {e.strerror or e}",
            hint="check that the path is a regular file and readable by the current user",
            path=str(schema_path),
        ) from e

    log.info("Loaded schema file (%d bytes)", len(data), extra={"stage": "load"})
    return compile_schema(data, source=str(schema_path), force_dialect=force_dialect, unknown_policy=unknown_policy)


def compile_schema(
    data: Union[bytes, str],
    source: str = "<memory>",
    force_dialect: Optional[SchemaDialect] = None,
    unknown_policy: Optional[str] = None,
) -> SchemaIR:
    """Compile raw schema bytes; ``source`` only labels errors and logs."""
    raw = data.encode("utf-8") if isinstance(data, str) else data
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise FileReadError(
            "schema file is not valid UTF-8",
            hint="re-export the schema or convert the file to UTF-8",
            path=source,
        ) from e

    if not text.strip():
        raise SchemaValidateError(
            "schema file is empty",
            hint="export the collections again; the file must contain a JSON array",
            path=source,
        )

    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise SchemaParseError(
            f"malformed JSON: {e.msg}",
            hint="fix the JSON syntax at the reported line and column",
            path=source,
            line=e.lineno,
            column=e.colno,
        ) from e

    if not isinstance(document, list):
        raise SchemaValidateError(
            "schema must be a JSON array of collections",
            hint="use the file produced by 'Export collections', whose top level is a list",
            path=source,
        )
    if not document:
        raise SchemaValidateError(
            "schema contains no collections",
            hint="export at least one collection",
            path=source,
        )

    collections = _validate_collections(document, source)

    try:
        detected = detect(raw)
    except DialectParseError as e:
        raise SchemaParseError(e.message, hint=e.hint, path=source, **e.details) from e
    except MixedDialectError as e:
        raise e.with_detail("path", source)

    warnings: List[CompileWarning] = []
    dialect = _resolve_dialect(detected, force_dialect, unknown_policy, source, warnings)
    log.info("Using schema dialect %s (detected %s)", dialect.value, detected.value, extra={"stage": "detect"})

    processor = create_field_processor(dialect)
    built: List[CollectionIR] = []
    for collection in collections:
        collection = collection.model_copy(update={"dialect": dialect})
        if collection.name == SUPERUSERS_COLLECTION:
            log.debug("Skipping built-in superuser collection", extra={"collection": collection.name, "stage": "build"})
            continue
        try:
            ir, collection_warnings = build_collection_ir(collection, processor)
        except FieldProcessingError as e:
            raise e.with_detail("path", source)
        warnings.extend(collection_warnings)
        built.append(ir)
        log.info(
            "Processed collection: dialect=%s shared_timestamps=%s fields=%d",
            dialect.value, ir.uses_shared_timestamps, len(ir.fields),
            extra={"collection": ir.name, "stage": "build"},
        )

    resolved = _resolve_relations(_claim_type_names(built, warnings), collections)

    for warning in warnings:
        log.warning("%s", warning, extra={"collection": warning.collection, "stage": "build"})

    return SchemaIR(
        collections=tuple(resolved),
        dialect=dialect,
        detected_dialect=detected,
        warnings=tuple(warnings),
        source=source,
    )


def build_collection_ir(
    collection: RawCollectionSchema,
    processor: FieldProcessor,
) -> Tuple[CollectionIR, Tuple[CompileWarning, ...]]:
    """Build the IR of one collection with the dialect's field processor."""
    result = processor.process_fields(collection.fields, collection.name)

    imports = set(processor.required_imports())
    for field in result.fields:
        imports.update(field.imports)

    enums = tuple(
        _enum_spec(collection.name, field) for field in result.fields if field.enum_values
    )
    if enums:
        imports.add("enum.Enum")

    ir = CollectionIR(
        name=collection.name,
        struct_name=to_canonical_identifier(collection.name),
        fields=result.fields,
        dialect=collection.dialect,
        uses_shared_timestamps=processor.uses_shared_timestamps(),
        imports=frozenset(imports),
        enums=enums,
        collection_id=collection.id,
        system=collection.system,
    )
    return ir, result.warnings


def _validate_collections(document: list, source: str) -> List[RawCollectionSchema]:
    try:
        collections = parse_collections(document)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise SchemaValidateError(
            f"invalid collection definition at [{location}]: {first['msg']}",
            hint="every collection needs a name and every field a name and type",
            path=source,
            error_count=e.error_count(),
        ) from e

    for index, collection in enumerate(collections):
        if not COLLECTION_NAME_PATTERN.match(collection.name):
            raise SchemaValidateError(
                f"invalid collection name '{collection.name}'",
                hint="collection names may contain only letters, digits and underscores and must not start with a digit",
                path=source,
                index=index,
            )
        for field_index, field in enumerate(collection.fields):
            if not field.name:
                raise SchemaValidateError(
                    "field name must not be empty",
                    hint="give every field a non-empty name",
                    path=source,
                    collection=collection.name,
                    index=field_index,
                )
    return collections


def _resolve_dialect(
    detected: SchemaDialect,
    forced: Optional[SchemaDialect],
    unknown_policy: Optional[str],
    source: str,
    warnings: List[CompileWarning],
) -> SchemaDialect:
    if forced is not None and forced != SchemaDialect.UNKNOWN:
        if detected != SchemaDialect.UNKNOWN and detected != forced:
            message = f"forced dialect {forced.value} differs from detected dialect {detected.value}"
            log.warning(message, extra={"stage": "detect"})
            warnings.append(CompileWarning(
                collection="*",
                field=None,
                message=message,
                hint="drop the forced dialect unless the detection is known to be wrong",
            ))
        return forced

    if detected != SchemaDialect.UNKNOWN:
        return detected

    policy = unknown_policy or settings.unknown_dialect_policy
    if policy == "fail":
        raise SchemaValidateError(
            'cannot determine schema dialect: no collection declares "fields" or "schema"',
            hint="force a dialect explicitly or add the field lists to the export",
            path=source,
        )
    log.info("No field-list key found, defaulting to the latest dialect", extra={"stage": "detect"})
    return SchemaDialect.LATEST


def _enum_spec(collection_name: str, field: ProcessedField) -> EnumSpec:
    members = []
    used = set()
    for value in field.enum_values:
        if not value:
            continue
        member = to_enum_member_name(value)
        candidate, suffix = member, 2
        while candidate in used:
            candidate = f"{member}_{suffix}"
            suffix += 1
        used.add(candidate)
        members.append((candidate, value))
    return EnumSpec(
        type_name=to_enum_type_name(collection_name, field.json_name),
        collection_name=collection_name,
        field_name=field.json_name,
        members=tuple(members),
    )


def _resolve_relations(
    built: List[CollectionIR],
    collections: List[RawCollectionSchema],
) -> List[CollectionIR]:
    """Fill in relation targets from the collection ids in the same document."""
    names_by_id: Dict[str, str] = {c.id: c.name for c in collections if c.id}
    structs_by_name: Dict[str, str] = {ir.name: ir.struct_name for ir in built}

    resolved = []
    for ir in built:
        fields = []
        for field in ir.fields:
            target = names_by_id.get(field.relation_collection_id or "")
            if target:
                struct = structs_by_name.get(target) or to_canonical_identifier(target)
                field = replace(field, relation_target=target, relation_struct=struct)
            fields.append(field)
        resolved.append(replace(ir, fields=tuple(fields)))
    return resolved


def _claim_type_names(built: List[CollectionIR], warnings: List[CompileWarning]) -> List[CollectionIR]:
    """Keep generated class names unique across the document and clear of module imports."""
    owners: Dict[str, str] = {name: "an import of the generated module" for name in RESERVED_TYPE_NAMES}
    claimed = []
    for ir in built:
        struct_name = _claim_type_name(ir.struct_name, f"collection '{ir.name}'", ir.name, None, owners, warnings)
        enums = tuple(
            replace(spec, type_name=_claim_type_name(
                spec.type_name,
                f"select field '{ir.name}.{spec.field_name}'",
                ir.name,
                spec.field_name,
                owners,
                warnings,
            ))
            for spec in ir.enums
        )
        claimed.append(replace(ir, struct_name=struct_name, enums=enums))
    return claimed


def _claim_type_name(
    name: str,
    owner: str,
    collection_name: str,
    field_name: Optional[str],
    owners: Dict[str, str],
    warnings: List[CompileWarning],
) -> str:
    if name in owners:
        suffix = 2
        while f"{name}{suffix}" in owners:
            suffix += 1
        renamed = f"{name}{suffix}"
        warnings.append(CompileWarning(
            collection=collection_name,
            field=field_name,
            message=f"class name '{name}' already used by {owners[name]}, renamed to '{renamed}'",
            hint="rename the collection or field so the generated class names differ",
        ))
        name = renamed
    owners[name] = owner
    return name
