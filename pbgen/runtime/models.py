"""
Record models shared by generated code and the runtime service.

Anything with ``to_dict()`` and a ``from_dict()`` classmethod satisfies the
``Model`` capability; ``BaseRecord`` is what generated models build on and
``Record`` is an untyped property bag for collections without one.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Annotated, Any, ClassVar, Dict, Generic, List, Optional, Protocol, Tuple, Type, TypeVar, runtime_checkable
from urllib.parse import quote, urlencode

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer, model_validator

ModelT = TypeVar("ModelT", bound="Model")

SYSTEM_KEYS = ("id", "collectionId", "collectionName", "created", "updated")


def file_url(
    base_url: str,
    collection: str,
    record_id: str,
    filename: str,
    thumb: str = "",
    download: bool = False,
) -> str:
    """Public URL of a stored file, optionally a thumbnail or a forced download."""
    url = "/".join([
        base_url.rstrip("/"),
        "api/files",
        quote(collection, safe=""),
        quote(record_id, safe=""),
        quote(filename, safe=""),
    ])
    params = {}
    if thumb:
        params["thumb"] = thumb
    if download:
        params["download"] = "1"
    if params:
        url += "?" + urlencode(params)
    return url


def _values(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value] if value else []
    if isinstance(value, (list, tuple)):
        return [v for v in value if isinstance(v, str) and v]
    return []


@runtime_checkable
class Model(Protocol):
    def to_dict(self) -> Dict[str, Any]:
        ...

    @classmethod
    def from_dict(cls: Type[ModelT], data: Dict[str, Any]) -> ModelT:
        ...


class DateTime:
    """A store timestamp. The zero value stands for "not set"."""

    __slots__ = ("_value",)

    def __init__(self, value: Optional[datetime] = None):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        self._value = value

    @classmethod
    def parse(cls, value: Any) -> "DateTime":
        if isinstance(value, DateTime):
            return value
        if value is None or value == "":
            return cls()
        if isinstance(value, datetime):
            return cls(value)
        if isinstance(value, str):
            try:
                return cls(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))
            except ValueError:
                raise ValueError(f"invalid datetime value: {value!r}")
        raise ValueError(f"unsupported datetime value: {value!r}")

    @property
    def value(self) -> Optional[datetime]:
        return self._value

    def is_zero(self) -> bool:
        return self._value is None

    def to_wire(self) -> str:
        """Format used by the store, e.g. ``2024-01-02 03:04:05.678Z``."""
        if self._value is None:
            return ""
        utc = self._value.astimezone(timezone.utc)
        return utc.strftime("%Y-%m-%d %H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"

    def __eq__(self, other):
        if isinstance(other, DateTime):
            return self._value == other._value
        return NotImplemented

    def __hash__(self):
        return hash(self._value)

    def __str__(self):
        return self.to_wire()

    def __repr__(self):
        return f"DateTime({self.to_wire()!r})"


Timestamp = Annotated[
    DateTime,
    BeforeValidator(DateTime.parse),
    PlainSerializer(lambda v: v.to_wire(), return_type=str),
]


class BaseRecord(BaseModel):
    """Base for generated collection models."""
    model_config = ConfigDict(
        populate_by_name=True,
        extra="allow",
        arbitrary_types_allowed=True,
        validate_assignment=True,
        protected_namespaces=(),
    )

    COLLECTION_NAME: ClassVar[str] = ""
    # relation attribute -> target collection
    RELATIONS: ClassVar[Dict[str, str]] = {}
    FILE_FIELDS: ClassVar[Tuple[str, ...]] = ()

    id: str = ""
    collection_id: str = Field("", alias="collectionId")
    collection_name: str = Field("", alias="collectionName")
    expand: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def wrap_single_values(cls, data: Any) -> Any:
        # single-value relation and file fields come back as a bare string
        if not isinstance(data, dict):
            return data
        for name in (*cls.RELATIONS, *cls.FILE_FIELDS):
            info = cls.model_fields.get(name)
            for key in {name, (info.alias if info else None) or name}:
                value = data.get(key)
                if isinstance(value, str):
                    data = {**data, key: [value] if value else []}
        return data

    def to_dict(self) -> Dict[str, Any]:
        """Property bag for the wire: aliased keys, no None values, no empty system keys."""
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True, exclude={"expand"})
        for key in SYSTEM_KEYS:
            if data.get(key) == "":
                del data[key]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        return cls.model_validate(data or {})

    def relation_ids(self, attribute: str) -> List[str]:
        """Ids held by a relation field, empty entries dropped."""
        if attribute not in self.RELATIONS:
            raise ValueError(f"{attribute!r} is not a relation field of {type(self).__name__}")
        return _values(getattr(self, attribute, None))

    def has_relation(self, attribute: str) -> bool:
        return bool(self.relation_ids(attribute))

    def file_urls(self, attribute: str, base_url: str, thumb: str = "") -> List[str]:
        """URLs of the files held by a file field, thumbnails when ``thumb`` is set."""
        if attribute not in self.FILE_FIELDS:
            raise ValueError(f"{attribute!r} is not a file field of {type(self).__name__}")
        collection = self.collection_name or self.COLLECTION_NAME
        return [
            file_url(base_url, collection, self.id, filename, thumb=thumb)
            for filename in _values(getattr(self, attribute, None))
        ]


class TimestampsMixin(BaseModel):
    """Shared ``created``/``updated`` pair for legacy-dialect models."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    created: Timestamp = Field(default_factory=DateTime)
    updated: Timestamp = Field(default_factory=DateTime)


class Record:
    """Untyped record: system keys as attributes, everything else in ``data``."""

    def __init__(
        self,
        data: Optional[Dict[str, Any]] = None,
        id: str = "",
        collection_id: str = "",
        collection_name: str = "",
        created: Any = None,
        updated: Any = None,
        expand: Optional[Dict[str, Any]] = None,
    ):
        self.id = id
        self.collection_id = collection_id
        self.collection_name = collection_name
        self.created = DateTime.parse(created)
        self.updated = DateTime.parse(updated)
        self.expand = expand or {}
        self.data: Dict[str, Any] = dict(data or {})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Record":
        payload = dict(data or {})
        return cls(
            id=payload.pop("id", "") or "",
            collection_id=payload.pop("collectionId", "") or "",
            collection_name=payload.pop("collectionName", "") or "",
            created=payload.pop("created", None),
            updated=payload.pop("updated", None),
            expand=payload.pop("expand", None),
            data=payload,
        )

    def to_dict(self) -> Dict[str, Any]:
        combined = dict(self.data)
        system = {
            "id": self.id,
            "collectionId": self.collection_id,
            "collectionName": self.collection_name,
            "created": self.created.to_wire(),
            "updated": self.updated.to_wire(),
        }
        for key, value in system.items():
            if value:
                combined[key] = value
        return combined

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = value

    def get_str(self, key: str) -> str:
        value = self.data.get(key)
        return value if isinstance(value, str) else ""

    def get_optional_str(self, key: str) -> Optional[str]:
        value = self.data.get(key)
        return value if isinstance(value, str) else None

    def get_bool(self, key: str) -> bool:
        value = self.data.get(key)
        return value if isinstance(value, bool) else False

    def get_optional_bool(self, key: str) -> Optional[bool]:
        value = self.data.get(key)
        return value if isinstance(value, bool) else None

    def get_float(self, key: str) -> float:
        value = self.get_optional_float(key)
        return 0.0 if value is None else value

    def get_optional_float(self, key: str) -> Optional[float]:
        value = self.data.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return float(value)

    def get_datetime(self, key: str) -> DateTime:
        try:
            return DateTime.parse(self.data.get(key))
        except ValueError:
            return DateTime()

    def get_str_list(self, key: str) -> List[str]:
        value = self.data.get(key)
        if isinstance(value, str):
            # single-value relation/file fields come back as a bare string
            return [value] if value else []
        if isinstance(value, list):
            return [v for v in value if isinstance(v, str)]
        return []

    def __repr__(self):
        return f"Record(id={self.id!r}, collection={self.collection_name!r})"


@dataclass
class ListResult(Generic[ModelT]):
    """One page of records."""
    items: List[ModelT] = field(default_factory=list)
    page: int = 1
    per_page: int = 0
    total_items: int = 0
    total_pages: int = 0
