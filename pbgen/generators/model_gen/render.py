"""Rendering of the compiled schema into a Python models module."""
import json
from pathlib import Path
from typing import Dict, Iterable, List, Set

from pbgen.generators.model_gen.mapper import TIMESTAMP_IMPORT, TIMESTAMP_TYPE
from pbgen.generators.model_gen.processors import BASE_RECORD_IMPORT, TIMESTAMPS_MIXIN_IMPORT
from pbgen.generators.model_gen.types import CollectionIR, EnumSpec, ProcessedField, SchemaIR
from pbgen.generators.model_gen.utils import to_attribute_name

# Keys BaseRecord already declares.
BASE_RECORD_KEYS = {"id", "collectionId", "collectionName", "expand"}

DATETIME_IMPORT = "pbgen.runtime.models.DateTime"

# Everything a generated module can import. Generated class names must not
# shadow any of these.
MODULE_IMPORTS = frozenset({
    "enum.Enum",
    "pydantic.Field",
    "typing.Any",
    "typing.ClassVar",
    "typing.Dict",
    "typing.List",
    "typing.Optional",
    "typing.Tuple",
    BASE_RECORD_IMPORT,
    DATETIME_IMPORT,
    TIMESTAMP_IMPORT,
    TIMESTAMPS_MIXIN_IMPORT,
})
RESERVED_TYPE_NAMES = frozenset(dotted.rpartition(".")[2] for dotted in MODULE_IMPORTS)

_STDLIB_MODULES = {"enum", "typing", "datetime"}

_ZERO_VALUES = {"str": '""', "bool": "False", "float": "0.0"}


def _group_imports(names: Iterable[str]) -> List[str]:
    """Turn dotted names into grouped ``from x import a, b`` lines."""
    by_module: Dict[str, Set[str]] = {}
    for dotted in names:
        module, _, name = dotted.rpartition(".")
        by_module.setdefault(module, set()).add(name)

    stdlib, third_party, local = [], [], []
    for module in sorted(by_module):
        line = f"from {module} import {', '.join(sorted(by_module[module]))}"
        root = module.split(".")[0]
        if root in _STDLIB_MODULES:
            stdlib.append(line)
        elif root == "pbgen":
            local.append(line)
        else:
            third_party.append(line)

    lines: List[str] = []
    for group in (stdlib, third_party, local):
        if group:
            if lines:
                lines.append("")
            lines.extend(group)
    return lines


def _default_for(field: ProcessedField) -> str:
    if field.is_pointer or field.base_type == "Any":
        return "None"
    if field.target_type == TIMESTAMP_TYPE:
        return "Field(default_factory=DateTime)"
    if field.base_type.startswith("List["):
        return "Field(default_factory=list)"
    return _ZERO_VALUES.get(field.base_type, "None")


def render_field(field: ProcessedField, attribute: str) -> str:
    """One annotated class attribute; the wire key becomes an alias when it differs."""
    default = _default_for(field)
    if attribute != field.json_name:
        if default.startswith("Field("):
            default = default[:-1] + f", alias={json.dumps(field.json_name)})"
        else:
            default = f"Field({default}, alias={json.dumps(field.json_name)})"
    line = f"    {attribute}: {field.target_type} = {default}"
    if field.relation_target:
        line += f"  # -> {field.relation_target}"
    elif field.kind == "relation" and field.relation_collection_id:
        line += f"  # -> {field.relation_collection_id}"
    return line


def render_enum(spec: EnumSpec) -> str:
    lines = [
        f"class {spec.type_name}(str, Enum):",
        f'    """Values of {spec.collection_name}.{spec.field_name}."""',
    ]
    for member, value in spec.members:
        lines.append(f"    {member} = {json.dumps(value)}")
    return "\n".join(lines)


def render_collection(collection: CollectionIR) -> str:
    """Model class for one collection."""
    bases = "TimestampsMixin, BaseRecord" if collection.uses_shared_timestamps else "BaseRecord"
    used: Set[str] = set()
    body = []
    relations: List[str] = []
    files: List[str] = []
    for field in collection.fields:
        if field.json_name in BASE_RECORD_KEYS:
            continue
        attribute = to_attribute_name(field.name)
        candidate, suffix = attribute, 2
        while candidate in used:
            candidate = f"{attribute}{suffix}"
            suffix += 1
        used.add(candidate)
        body.append(render_field(field, candidate))
        target = field.relation_target or field.relation_collection_id
        if field.kind == "relation" and target:
            relations.append(f"{json.dumps(candidate)}: {json.dumps(target)}")
        elif field.kind == "file":
            files.append(json.dumps(candidate))

    lines = [
        f"class {collection.struct_name}({bases}):",
        f'    """Record of the ``{collection.name}`` collection."""',
        "",
        f"    COLLECTION_NAME: ClassVar[str] = {json.dumps(collection.name)}",
    ]
    if relations:
        lines.append(f"    RELATIONS: ClassVar[Dict[str, str]] = {{{', '.join(relations)}}}")
    if files:
        lines.append(f"    FILE_FIELDS: ClassVar[Tuple[str, ...]] = ({', '.join(files)},)")
    if body:
        lines.append("")
        lines.extend(body)
    return "\n".join(lines)


def _collect_imports(ir: SchemaIR, blocks: List[str]) -> Set[str]:
    imports = {"typing.ClassVar"}
    for collection in ir.collections:
        imports.update(collection.imports)
    if any("Field(default_factory=DateTime" in block for block in blocks):
        imports.add(DATETIME_IMPORT)
    if any("Field(" in block for block in blocks):
        imports.add("pydantic.Field")
    if any("ClassVar[Dict[" in block for block in blocks):
        imports.add("typing.Dict")
    if any("ClassVar[Tuple[" in block for block in blocks):
        imports.add("typing.Tuple")
    return imports


def render_models(ir: SchemaIR) -> str:
    """Generate the models module for a compiled schema."""
    source = Path(ir.source).name if ir.source else "schema"
    blocks = []
    for collection in ir.collections:
        blocks.extend(render_enum(spec) for spec in collection.enums)
        blocks.append(render_collection(collection))

    lines = [
        f"# Code generated by pbgen from {source}. DO NOT EDIT.",
        f"# dialect: {ir.dialect.value}",
        "",
    ]
    lines.extend(_group_imports(_collect_imports(ir, blocks)))

    exported = []
    for collection in ir.collections:
        exported.extend(spec.type_name for spec in collection.enums)
        exported.append(collection.struct_name)

    lines.extend(["", "__all__ = ["])
    lines.extend(f'    "{name}",' for name in exported)
    lines.append("]")

    for block in blocks:
        lines.extend(["", "", block])

    return "\n".join(lines) + "\n"
