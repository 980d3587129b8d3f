"""Error taxonomy for schema compilation and the record runtime.

Compiler errors carry a remediation ``hint`` and a ``details`` mapping
(path, collection, field, ...) so a failure is readable without the source.
Runtime errors keep the remote status code for caller-side branching.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional


class PbgenError(Exception):
    """Root of every error raised by pbgen."""


class GenerationError(PbgenError):
    """A terminal failure of one compilation step."""

    kind = "generation"

    def __init__(self, message: str, hint: str = "", **details: Any):
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.details: Dict[str, Any] = {k: v for k, v in details.items() if v is not None}

    @property
    def path(self) -> Optional[str]:
        return self.details.get("path")

    def with_detail(self, key: str, value: Any) -> "GenerationError":
        self.details[key] = value
        return self

    def __str__(self) -> str:
        parts = [f"[{self.kind.upper()}]", self.message]
        if self.details:
            parts.append("(" + ", ".join(f"{k}={v}" for k, v in self.details.items()) + ")")
        if self.hint:
            parts.append(f"hint: {self.hint}")
        return " ".join(parts)


class InvalidPathError(GenerationError):
    kind = "invalid_path"


class SchemaLoadError(GenerationError):
    kind = "schema_load"


class FileReadError(GenerationError):
    kind = "file_read"


class FileWriteError(GenerationError):
    kind = "file_write"


class SchemaValidateError(GenerationError):
    kind = "schema_validate"


class SchemaParseError(GenerationError):
    kind = "schema_parse"


class DialectParseError(GenerationError):
    """The dialect scan itself could not make sense of the document."""
    kind = "dialect_parse"


class MixedDialectError(GenerationError):
    kind = "mixed_dialect"


class FieldProcessingError(GenerationError):
    kind = "field_processing"


class InvalidNameError(GenerationError):
    kind = "invalid_name"


class TransportError(PbgenError):
    """A failed call against the remote store.

    ``status_code`` is the HTTP status, or 0 when no usable response was received.
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        data: Optional[Dict[str, Any]] = None,
        url: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.data = data or {}
        self.url = url

    def is_not_found(self) -> bool:
        return self.status_code == 404

    def is_server_error(self) -> bool:
        return self.status_code >= 500

    def __str__(self) -> str:
        parts = [f"pbgen: {self.status_code}" if self.status_code else "pbgen: transport failure"]
        if self.message:
            parts.append(f"msg={self.message}")
        if self.data:
            parts.append(f"data={len(self.data)} field error(s)")
        if self.url:
            parts.append(f"at={self.url}")
        return " ".join(parts)


class NotFoundError(TransportError):
    def __init__(self, message: str = "The requested resource wasn't found.", data=None, url=None):
        super().__init__(404, message, data, url)


class RequestCancelledError(TransportError):
    def __init__(self, message: str = "request cancelled", url: Optional[str] = None):
        super().__init__(0, message, None, url)


@dataclass(frozen=True)
class CompileWarning:
    """A non-fatal compilation issue, e.g. a lossy type fallback."""
    collection: str
    field: Optional[str]
    message: str
    hint: str = ""

    def __str__(self) -> str:
        where = self.collection if not self.field else f"{self.collection}.{self.field}"
        text = f"{where}: {self.message}"
        if self.hint:
            text += f" (hint: {self.hint})"
        return text
