"""Tests for the Legacy and Latest field processors."""
import pytest

from pbgen.core.errors import FieldProcessingError
from pbgen.generators.model_gen.processors import (
    LatestFieldProcessor,
    LegacyFieldProcessor,
    create_field_processor,
)
from pbgen.schemas.collections import RawFieldSchema, SchemaDialect


def _fields(*raw):
    return [RawFieldSchema.model_validate(item) for item in raw]


SYSTEM_DECLARED = _fields(
    {"name": "id", "type": "text", "required": True, "system": True},
    {"name": "title", "type": "text", "required": True},
    {"name": "created", "type": "autodate", "system": True},
    {"name": "updated", "type": "autodate", "system": True},
)


def test_posts_example_latest():
    """title is a required string, content an optional one."""
    fields = _fields(
        {"name": "title", "type": "text", "required": True},
        {"name": "content", "type": "editor", "required": False},
    )
    result = LatestFieldProcessor().process_fields(fields, "posts")

    assert [f.json_name for f in result.fields] == ["title", "content"]
    title, content = result.fields
    assert title.name == "Title"
    assert title.target_type == "str"
    assert title.is_pointer is False
    assert content.name == "Content"
    assert content.target_type == "Optional[str]"
    assert content.base_type == "str"
    assert content.is_pointer is True
    assert result.warnings == ()


def test_latest_emits_timestamps_as_fields():
    processor = LatestFieldProcessor()
    result = processor.process_fields(SYSTEM_DECLARED, "posts")

    assert [f.json_name for f in result.fields] == ["id", "title", "created", "updated"]
    created = result.fields[2]
    assert created.target_type == "Timestamp"
    assert created.is_pointer is False, "timestamps are never optional, even when not required"
    assert processor.uses_shared_timestamps() is False


def test_legacy_omits_timestamps():
    processor = LegacyFieldProcessor()
    result = processor.process_fields(SYSTEM_DECLARED, "posts")

    names = [f.json_name for f in result.fields]
    assert "created" not in names and "updated" not in names
    assert names == ["id", "title"]
    assert processor.uses_shared_timestamps() is True
    assert "pbgen.runtime.models.TimestampsMixin" in processor.required_imports()


def test_hidden_and_system_fields_are_skipped():
    fields = _fields(
        {"name": "tokenKey", "type": "text", "required": True, "system": True, "hidden": True},
        {"name": "password", "type": "password", "required": True, "hidden": True},
        {"name": "email", "type": "email", "required": True},
    )
    result = LatestFieldProcessor().process_fields(fields, "users")
    assert [f.json_name for f in result.fields] == ["email"]


def test_duplicate_names_collapse_first_wins():
    fields = _fields(
        {"name": "title", "type": "text", "required": True},
        {"name": "body", "type": "editor"},
        {"name": "title", "type": "number", "required": False},
    )
    result = LatestFieldProcessor().process_fields(fields, "posts")

    assert len(result.fields) == 2, "output length equals the count of distinct names"
    assert [f.json_name for f in result.fields] == ["title", "body"]
    assert result.fields[0].target_type == "str"


def test_conventional_field_declared_twice_is_emitted_once():
    fields = _fields(
        {"name": "id", "type": "text", "required": True, "system": True},
        {"name": "id", "type": "text", "required": True, "system": True},
    )
    result = LatestFieldProcessor().process_fields(fields, "posts")
    assert [f.json_name for f in result.fields] == ["id"]
    assert result.fields[0].name == "ID"


def test_identifier_conflict_gets_suffix_and_warning():
    fields = _fields(
        {"name": "a_b", "type": "text"},
        {"name": "aB", "type": "text"},
    )
    result = LatestFieldProcessor().process_fields(fields, "things")

    assert [f.name for f in result.fields] == ["AB", "AB2"]
    assert len(result.warnings) == 1
    assert result.warnings[0].field == "aB"


def test_unknown_kind_on_optional_field_warns():
    fields = _fields({"name": "location", "type": "geoPoint", "required": False})
    result = LatestFieldProcessor().process_fields(fields, "places")

    assert result.fields[0].target_type == "Optional[str]"
    assert len(result.warnings) == 1
    warning = result.warnings[0]
    assert warning.collection == "places"
    assert warning.field == "location"
    assert "geoPoint" in warning.message


def test_unknown_kind_on_required_field_fails():
    fields = _fields({"name": "location", "type": "geoPoint", "required": True})
    with pytest.raises(FieldProcessingError) as exc_info:
        LatestFieldProcessor().process_fields(fields, "places")

    error = exc_info.value
    assert error.details["collection"] == "places"
    assert error.details["field"] == "location"
    assert error.hint


def test_select_values_and_relation_target_are_recorded():
    fields = _fields(
        {"name": "status", "type": "select", "required": True, "maxSelect": 1, "values": ["draft", "published"]},
        {"name": "author", "type": "relation", "options": {"collectionId": "_pb_users_auth_", "maxSelect": 1}},
    )
    result = LatestFieldProcessor().process_fields(fields, "posts")

    status, author = result.fields
    assert status.target_type == "str"
    assert status.enum_values == ("draft", "published")
    assert author.target_type == "List[str]"
    assert author.relation_collection_id == "_pb_users_auth_"


def test_is_system_field_is_case_sensitive():
    processor = LegacyFieldProcessor()
    for name in ["id", "created", "updated", "collectionId", "collectionName"]:
        assert processor.is_system_field(name)
    assert not processor.is_system_field("ID")
    assert not processor.is_system_field("title")


def test_create_field_processor():
    assert isinstance(create_field_processor(SchemaDialect.LEGACY), LegacyFieldProcessor)
    assert isinstance(create_field_processor(SchemaDialect.LATEST), LatestFieldProcessor)
    assert isinstance(create_field_processor(SchemaDialect.UNKNOWN), LatestFieldProcessor)
