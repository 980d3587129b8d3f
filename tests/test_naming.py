"""Tests for identifier normalization."""
import pytest

from pbgen.core.errors import InvalidNameError
from pbgen.generators.model_gen.utils import (
    split_segments,
    to_attribute_name,
    to_canonical_identifier,
    to_enum_member_name,
    to_enum_type_name,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("title", "Title"),
        ("is_published", "IsPublished"),
        ("createdAt", "CreatedAt"),
        ("user-name", "UserName"),
        ("blog_posts", "BlogPosts"),
        ("user_id", "UserID"),
        ("avatar-url", "AvatarURL"),
        ("HTMLContent", "HTMLContent"),
        ("json_data", "JSONData"),
    ],
)
def test_canonical_identifier(raw, expected):
    assert to_canonical_identifier(raw) == expected


def test_canonical_identifier_is_total_for_irregular_names():
    """Irregular but non-empty names still produce a usable identifier."""
    assert to_canonical_identifier("2fa") == "Field2Fa"
    assert to_canonical_identifier("___") == "Field"
    assert to_canonical_identifier("--") == "Field"
    assert to_canonical_identifier("none") == "None_", "keywords get a trailing underscore"
    for raw in ["a b c", "ÜberName", "x.y.z", "_private"]:
        identifier = to_canonical_identifier(raw)
        assert identifier.isidentifier(), f"{raw!r} produced {identifier!r}"


def test_canonical_identifier_rejects_empty_name():
    with pytest.raises(InvalidNameError) as exc_info:
        to_canonical_identifier("")
    assert exc_info.value.hint, "InvalidNameError should carry a remediation hint"


def test_split_segments_handles_case_boundaries():
    assert split_segments("userAvatarURL") == ["user", "Avatar", "URL"]
    assert split_segments("snake_and-kebab") == ["snake", "and", "kebab"]


def test_attribute_names():
    assert to_attribute_name("UserID") == "user_id"
    assert to_attribute_name("IsPublished") == "is_published"
    assert to_attribute_name("AvatarURL") == "avatar_url"
    assert to_attribute_name("HTMLContent") == "html_content"
    assert to_attribute_name("Class") == "class_"
    assert to_attribute_name("JSON") == "json_", "names used by pydantic are suffixed"


def test_enum_names():
    assert to_enum_member_name("draft") == "DRAFT"
    assert to_enum_member_name("in-progress") == "IN_PROGRESS"
    assert to_enum_type_name("posts", "status") == "PostsStatusType"
    assert to_enum_type_name("blog_posts", "review_state") == "BlogPostsReviewStateType"


@pytest.mark.parametrize(
    "canonical, expected",
    [
        ("ModelDump", "model_dump_"),
        ("ModelValidate", "model_validate_"),
        ("ModelCopy", "model_copy_"),
        ("ModelExtra", "model_extra_"),
        ("ToDict", "to_dict_"),
        ("FromDict", "from_dict_"),
        ("Copy", "copy_"),
        ("ParseObj", "parse_obj_"),
        ("Str", "str_"),
    ],
)
def test_attribute_names_avoid_record_api(canonical, expected):
    assert to_attribute_name(canonical) == expected
