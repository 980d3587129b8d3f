"""Input models for collection schema documents.

Both dialects share one field object shape; they differ only in the key
that holds the field array (``schema`` for Legacy, ``fields`` for Latest)
and in where per-kind options live (nested ``options`` vs top level).
"""
import re
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

COLLECTION_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
SYSTEM_PREFIX = "_"


class SchemaDialect(str, Enum):
    LEGACY = "legacy"
    LATEST = "latest"
    UNKNOWN = "unknown"


class RawFieldSchema(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    name: str
    kind: str = Field("text", alias="type")
    required: bool = False
    system: bool = False
    hidden: bool = False
    max_select: Optional[int] = Field(None, alias="maxSelect")
    values: List[str] = Field(default_factory=list)
    collection_id: Optional[str] = Field(None, alias="collectionId")

    @model_validator(mode="before")
    @classmethod
    def _lift_options(cls, data: Any) -> Any:
        # Legacy documents nest per-kind settings under "options".
        if not isinstance(data, dict):
            return data
        options = data.get("options")
        if not isinstance(options, dict):
            return data
        lifted = dict(data)
        for key in ("maxSelect", "values", "collectionId"):
            if lifted.get(key) is None and options.get(key) is not None:
                lifted[key] = options[key]
        return lifted

    @field_validator("values", mode="before")
    @classmethod
    def _none_values(cls, v):
        return v or []


class RawCollectionSchema(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: str = ""
    name: str
    type: str = "base"
    system: bool = False
    fields: List[RawFieldSchema] = Field(default_factory=list)
    dialect: SchemaDialect = SchemaDialect.UNKNOWN

    @model_validator(mode="before")
    @classmethod
    def _merge_field_keys(cls, data: Any) -> Any:
        """Fold the Legacy ``schema`` key and the Latest ``fields`` key into ``fields``."""
        if not isinstance(data, dict):
            return data
        merged = {k: v for k, v in data.items() if k not in ("schema", "fields")}
        if data.get("schema") is not None:
            merged["fields"] = data["schema"]
        elif data.get("fields") is not None:
            merged["fields"] = data["fields"]
        return merged

    @property
    def reserved(self) -> bool:
        return self.name.startswith(SYSTEM_PREFIX)


def parse_collections(raw: List[Dict[str, Any]]) -> List[RawCollectionSchema]:
    """Validate a decoded document (list of collection objects)."""
    return [RawCollectionSchema.model_validate(item) for item in raw]
