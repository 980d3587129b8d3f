"""
Schema dialect detection.

Scans the raw document for the key each collection uses to list its fields
("fields" for Latest, "schema" for Legacy) without a full JSON parse, so a
document with malformed trailing content can still be classified.
"""
from typing import List, Optional, Set, Union

from pbgen.core.errors import DialectParseError, MixedDialectError
from pbgen.schemas.collections import SchemaDialect

FIELDS_KEY = "fields"
SCHEMA_KEY = "schema"
DISCRIMINATING_KEYS = {FIELDS_KEY: SchemaDialect.LATEST, SCHEMA_KEY: SchemaDialect.LEGACY}

_WHITESPACE = " \t\r\n"


def _decode(raw: Union[bytes, str]) -> str:
    if isinstance(raw, str):
        return raw.lstrip("\ufeff")
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise DialectParseError(
            "schema document is not valid UTF-8",
            hint="re-export the schema as UTF-8 JSON",
            offset=e.start,
        ) from e


def _skip_ws(text: str, i: int) -> int:
    while i < len(text) and text[i] in _WHITESPACE:
        i += 1
    return i


def _string_end(text: str, start: int) -> Optional[int]:
    """Index just past the closing quote of the string opened at ``start``."""
    i = start + 1
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == '"':
            return i + 1
        i += 1
    return None


class _Scanner:
    """Collects the discriminating keys declared by each collection object."""

    def __init__(self, text: str):
        self.text = text
        self.collections: List[Set[str]] = []
        self.truncated_at: Optional[int] = None

    def scan(self) -> List[Set[str]]:
        text = self.text
        i = _skip_ws(text, 0)
        if i >= len(text):
            raise DialectParseError("schema document is empty", hint="export the collections again")
        if text[i] != "[":
            raise DialectParseError(
                "schema document must be a JSON array of collections",
                hint="the top level of the export should start with '['",
                offset=i,
            )

        stack: List[str] = []
        current: Optional[Set[str]] = None
        while i < len(text):
            ch = text[i]
            if ch == '"':
                end = _string_end(text, i)
                if end is None:
                    self.truncated_at = i
                    return self.collections
                if len(stack) == 2 and stack[-1] == "{" and current is not None:
                    colon = _skip_ws(text, end)
                    if colon < len(text) and text[colon] == ":":
                        key = text[i + 1:end - 1]
                        value = _skip_ws(text, colon + 1)
                        # An explicit null means the key is absent.
                        if key in DISCRIMINATING_KEYS and not text.startswith("null", value):
                            current.add(key)
                        i = colon + 1
                        continue
                i = end
                continue
            if ch in "[{":
                stack.append(ch)
                if len(stack) == 2 and ch == "{":
                    current = set()
                    self.collections.append(current)
            elif ch in "]}":
                expected = "[" if ch == "]" else "{"
                if not stack or stack[-1] != expected:
                    self.truncated_at = i
                    return self.collections
                stack.pop()
                if not stack:
                    # End of the collections array; trailing content is not our concern.
                    return self.collections
            i += 1

        self.truncated_at = len(text)
        return self.collections


def detect(raw: Union[bytes, str]) -> SchemaDialect:
    """Classify a schema document as Legacy, Latest or Unknown.

    Raises MixedDialectError when collections disagree on the key and
    DialectParseError when the document cannot be scanned far enough to
    decide.
    """
    scanner = _Scanner(_decode(raw))
    collections = scanner.scan()

    seen = set()
    for keys in collections:
        seen.update(keys)

    if scanner.truncated_at is not None and not seen:
        raise DialectParseError(
            "schema document is malformed before any collection field list",
            hint="check the JSON syntax near the reported offset",
            offset=scanner.truncated_at,
        )

    if seen == {FIELDS_KEY, SCHEMA_KEY}:
        raise MixedDialectError(
            f'schema mixes collections using "{FIELDS_KEY}" and "{SCHEMA_KEY}"',
            hint=(
                f'export every collection from the same server version; "{SCHEMA_KEY}" is the '
                f'legacy layout and "{FIELDS_KEY}" the current one'
            ),
            keys=f"{FIELDS_KEY},{SCHEMA_KEY}",
        )
    if seen == {FIELDS_KEY}:
        return SchemaDialect.LATEST
    if seen == {SCHEMA_KEY}:
        return SchemaDialect.LEGACY
    return SchemaDialect.UNKNOWN
