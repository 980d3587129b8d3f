"""Tests for rendering the IR into a models module."""
import json

from pbgen.generators.model_gen.loader import compile_schema
from pbgen.generators.model_gen.render import (
    MODULE_IMPORTS,
    _collect_imports,
    render_collection,
    render_enum,
    render_models,
)
from pbgen.runtime.models import BaseRecord, Model, TimestampsMixin


LATEST = [
    {
        "id": "_pb_users_auth_",
        "name": "users",
        "fields": [
            {"name": "id", "type": "text", "required": True, "system": True},
            {"name": "name", "type": "text", "required": False},
            {"name": "isVerified", "type": "bool", "required": True},
        ],
    },
    {
        "name": "posts",
        "fields": [
            {"name": "id", "type": "text", "required": True, "system": True},
            {"name": "title", "type": "text", "required": True},
            {"name": "status", "type": "select", "required": True, "maxSelect": 1, "values": ["draft", "in-progress"]},
            {"name": "author", "type": "relation", "collectionId": "_pb_users_auth_", "maxSelect": 1},
            {"name": "meta", "type": "json"},
            {"name": "rating", "type": "number"},
            {"name": "created", "type": "autodate"},
            {"name": "updated", "type": "autodate"},
        ],
    },
]

LEGACY = [
    {
        "name": "posts",
        "schema": [
            {"name": "title", "type": "text", "required": True},
            {"name": "display_name", "type": "text"},
        ],
    },
]


def _exec(source: str) -> dict:
    namespace = {"__name__": "generated_models"}
    exec(compile(source, "models_gen.py", "exec"), namespace)
    return namespace


def test_render_latest_module():
    source = render_models(compile_schema(json.dumps(LATEST), source="/tmp/pb_schema.json"))

    assert source.startswith("# Code generated by pbgen from pb_schema.json. DO NOT EDIT.")
    assert "from typing import Any, ClassVar, Dict, List, Optional" in source
    assert "from pydantic import Field" in source
    assert "from pbgen.runtime.models import BaseRecord, DateTime, Timestamp" in source

    assert "class Users(BaseRecord):" in source
    assert '    COLLECTION_NAME: ClassVar[str] = "users"' in source
    assert "    name: Optional[str] = None" in source
    assert '    is_verified: bool = Field(False, alias="isVerified")' in source

    assert "class PostsStatusType(str, Enum):" in source
    assert '    IN_PROGRESS = "in-progress"' in source
    assert '    title: str = ""' in source
    assert "    author: List[str] = Field(default_factory=list)  # -> users" in source
    assert '    RELATIONS: ClassVar[Dict[str, str]] = {"author": "users"}' in source
    assert "    meta: Any = None" in source
    assert "    rating: Optional[float] = None" in source
    assert "    created: Timestamp = Field(default_factory=DateTime)" in source

    # id comes from BaseRecord
    assert "    id:" not in source
    assert '"PostsStatusType",' in source and '"Posts",' in source


def test_render_legacy_module_uses_timestamps_mixin():
    source = render_models(compile_schema(json.dumps(LEGACY)))

    assert "class Posts(TimestampsMixin, BaseRecord):" in source
    assert "from pbgen.runtime.models import BaseRecord, TimestampsMixin" in source
    assert "created" not in source.split("class Posts", 1)[1]
    assert "    display_name: Optional[str] = None" in source


def test_generated_latest_models_round_trip():
    namespace = _exec(render_models(compile_schema(json.dumps(LATEST))))
    Posts = namespace["Posts"]
    Users = namespace["Users"]

    assert issubclass(Posts, BaseRecord)
    assert Posts.COLLECTION_NAME == "posts"

    post = Posts.from_dict({
        "id": "abc123",
        "collectionId": "pbc_1",
        "collectionName": "posts",
        "title": "Hello",
        "status": "draft",
        "author": ["u1"],
        "meta": {"tags": ["x"]},
        "created": "2024-01-02 03:04:05.678Z",
        "updated": "",
        "views": 7,
    })
    assert isinstance(post, Model)
    assert post.id == "abc123"
    assert post.collection_name == "posts"
    assert post.title == "Hello"
    assert post.status == namespace["PostsStatusType"].DRAFT
    assert post.rating is None
    assert post.created.value.year == 2024
    assert post.updated.is_zero()

    data = post.to_dict()
    assert data["title"] == "Hello"
    assert data["created"] == "2024-01-02 03:04:05.678Z"
    assert data["views"] == 7, "unknown keys survive the round trip"
    assert "rating" not in data, "None values are omitted"
    assert "updated" not in data, "zero timestamps are omitted"

    user = Users(isVerified=True)
    assert user.to_dict() == {"isVerified": True}
    user.name = "Ada"
    assert user.to_dict()["name"] == "Ada"


def test_generated_legacy_models_have_shared_timestamps():
    namespace = _exec(render_models(compile_schema(json.dumps(LEGACY))))
    Posts = namespace["Posts"]

    assert issubclass(Posts, TimestampsMixin)
    post = Posts.from_dict({"title": "x", "created": "2023-05-01 10:00:00.000Z"})
    assert post.created.value.month == 5
    assert post.updated.is_zero()
    assert post.to_dict() == {"title": "x", "created": "2023-05-01 10:00:00.000Z"}


def test_empty_collection_renders_valid_class():
    source = render_models(compile_schema(json.dumps([{"name": "empty", "fields": []}])))
    namespace = _exec(source)
    assert namespace["Empty"].COLLECTION_NAME == "empty"


def test_fields_named_like_record_methods_keep_them_callable():
    schema = [{
        "name": "posts",
        "fields": [
            {"name": "title", "type": "text", "required": True},
            {"name": "model_dump", "type": "text"},
            {"name": "to_dict", "type": "text"},
            {"name": "str", "type": "text"},
            {"name": "summary", "type": "text", "required": True},
        ],
    }]
    source = render_models(compile_schema(json.dumps(schema)))
    assert '    model_dump_: Optional[str] = Field(None, alias="model_dump")' in source

    Posts = _exec(source)["Posts"]
    post = Posts.from_dict({"title": "x", "model_dump": "y", "to_dict": "z", "str": "s", "summary": "ok"})

    assert post.model_dump_ == "y"
    assert post.summary == "ok"
    assert post.to_dict() == {"title": "x", "model_dump": "y", "to_dict": "z", "str": "s", "summary": "ok"}


def test_collection_named_like_an_import_keeps_defaults_intact():
    schema = [
        {"name": "field", "fields": [{"name": "label", "type": "text"}]},
        {"name": "posts", "fields": [{"name": "tags", "type": "relation", "collectionId": "x"}]},
    ]
    ir = compile_schema(json.dumps(schema))
    source = render_models(ir)
    assert "class Field2(BaseRecord):" in source

    namespace = _exec(source)
    assert namespace["Posts"]().tags == []
    assert namespace["Field2"](label="x").to_dict() == {"label": "x"}


def test_module_imports_cover_every_rendered_import():
    ir = compile_schema(json.dumps(LATEST))
    blocks = [render_collection(collection) for collection in ir.collections]
    blocks.extend(render_enum(spec) for collection in ir.collections for spec in collection.enums)
    assert _collect_imports(ir, blocks) <= MODULE_IMPORTS

    legacy = compile_schema(json.dumps(LEGACY))
    assert _collect_imports(legacy, [render_collection(c) for c in legacy.collections]) <= MODULE_IMPORTS


def test_generated_relation_and_file_helpers():
    schema = [
        {"id": "u1", "name": "users", "fields": [{"name": "name", "type": "text"}]},
        {
            "name": "posts",
            "fields": [
                {"name": "author", "type": "relation", "collectionId": "u1", "maxSelect": 1},
                {"name": "cover", "type": "file", "maxSelect": 1},
                {"name": "attachments", "type": "file", "maxSelect": 5},
            ],
        },
    ]
    source = render_models(compile_schema(json.dumps(schema)))
    assert '    FILE_FIELDS: ClassVar[Tuple[str, ...]] = ("cover", "attachments",)' in source

    Posts = _exec(source)["Posts"]
    assert Posts.RELATIONS == {"author": "users"}

    post = Posts.from_dict({
        "id": "p1",
        "collectionName": "posts",
        "author": "a1",
        "cover": "cover.png",
        "attachments": ["a.pdf", "", "b c.pdf"],
    })
    assert post.relation_ids("author") == ["a1"]
    assert post.has_relation("author")
    assert post.file_urls("cover", "http://pb.test/") == ["http://pb.test/api/files/posts/p1/cover.png"]
    assert post.file_urls("attachments", "http://pb.test", thumb="100x100") == [
        "http://pb.test/api/files/posts/p1/a.pdf?thumb=100x100",
        "http://pb.test/api/files/posts/p1/b%20c.pdf?thumb=100x100",
    ]
    assert not Posts().has_relation("author")
