"""
Generic record service: CRUD and auto-pagination over one collection.

Works with any model type that provides ``to_dict()`` and ``from_dict()``,
generated models and ``Record`` alike.
"""
import logging
from dataclasses import replace
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar
from urllib.parse import quote, urlencode

from pbgen.core.config import settings
from pbgen.core.errors import NotFoundError, RequestCancelledError, TransportError
from pbgen.runtime.models import ListResult, Model
from pbgen.runtime.options import GetOneOptions, ListOptions, WriteOptions, query_for
from pbgen.runtime.transport import CancelSignal, Transport

log = logging.getLogger(__name__)

T = TypeVar("T", bound=Model)


def _int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


class Service(Generic[T]):
    """Typed access to the records of one collection."""

    def __init__(self, transport: Transport, collection_name: str, model: Type[T]):
        if not collection_name:
            raise ValueError("collection_name must not be empty")
        self.transport = transport
        self.collection_name = collection_name
        self.model = model

    def path_for(self, record_id: Optional[str] = None, query: Optional[Dict[str, str]] = None) -> str:
        """Records path of this collection, optionally for one record and with a query string."""
        path = f"/api/collections/{quote(self.collection_name, safe='')}/records"
        if record_id is not None:
            path += f"/{quote(record_id, safe='')}"
        if query:
            path += "?" + urlencode(query)
        return path

    def _expect_object(self, payload: Any, path: str) -> Dict[str, Any]:
        if not isinstance(payload, dict):
            found = "an empty body" if payload is None else type(payload).__name__
            raise TransportError(0, f"expected a JSON object, got {found}", url=path)
        return payload

    def _decode(self, payload: Any, path: str) -> T:
        return self.model.from_dict(self._expect_object(payload, path))

    def get_one(
        self,
        record_id: str,
        options: Optional[GetOneOptions] = None,
        *,
        cancel: Optional[CancelSignal] = None,
    ) -> T:
        if not record_id:
            raise ValueError("record_id must not be empty")
        path = self.path_for(record_id, query_for(options))
        try:
            payload = self.transport.send("GET", path, cancel=cancel)
        except TransportError as e:
            if e.is_not_found() and not isinstance(e, NotFoundError):
                raise NotFoundError(e.message, data=e.data, url=e.url) from e
            raise
        return self._decode(payload, path)

    def get_list(
        self,
        options: Optional[ListOptions] = None,
        *,
        cancel: Optional[CancelSignal] = None,
    ) -> ListResult[T]:
        """Fetch one page of records."""
        path = self.path_for(query=query_for(options))
        payload = self._expect_object(self.transport.send("GET", path, cancel=cancel), path)
        raw_items = payload.get("items") or []
        if not isinstance(raw_items, list):
            raise TransportError(0, f"expected a list of items, got {type(raw_items).__name__}", url=path)
        items = [self._decode(item, path) for item in raw_items]
        return ListResult(
            items=items,
            page=_int(payload.get("page"), 1),
            per_page=_int(payload.get("perPage")),
            total_items=_int(payload.get("totalItems")),
            total_pages=_int(payload.get("totalPages")),
        )

    def get_all(
        self,
        options: Optional[ListOptions] = None,
        *,
        batch_size: Optional[int] = None,
        cancel: Optional[CancelSignal] = None,
    ) -> List[T]:
        """Fetch every matching record, page by page.

        Stops after the first page shorter than the batch size; server totals
        are not consulted since they can shift between pages. Cancellation
        raises RequestCancelledError and discards the pages read so far.
        """
        per_page = batch_size if batch_size and batch_size > 0 else settings.max_page_size
        per_page = min(per_page, settings.max_page_size)
        base = options if options is not None else ListOptions()

        items: List[T] = []
        page = 1
        while True:
            if cancel is not None and cancel.is_set():
                raise RequestCancelledError(
                    f"listing {self.collection_name} cancelled before page {page}",
                    url=self.path_for(),
                )
            result = self.get_list(replace(base, page=page, per_page=per_page), cancel=cancel)
            items.extend(result.items)
            log.debug(
                "Fetched page %d of %s: %d item(s), %d so far",
                page, self.collection_name, len(result.items), len(items),
            )
            if len(result.items) < per_page:
                break
            page += 1
        return items

    def create(
        self,
        record: T,
        options: Optional[WriteOptions] = None,
        *,
        cancel: Optional[CancelSignal] = None,
    ) -> T:
        path = self.path_for(query=query_for(options))
        payload = self.transport.send("POST", path, record.to_dict(), cancel=cancel)
        return self._decode(payload, path)

    def update(
        self,
        record_id: str,
        record: T,
        options: Optional[WriteOptions] = None,
        *,
        cancel: Optional[CancelSignal] = None,
    ) -> T:
        if not record_id:
            raise ValueError("record_id must not be empty")
        path = self.path_for(record_id, query_for(options))
        payload = self.transport.send("PATCH", path, record.to_dict(), cancel=cancel)
        return self._decode(payload, path)

    def delete(self, record_id: str, *, cancel: Optional[CancelSignal] = None) -> None:
        if not record_id:
            raise ValueError("record_id must not be empty")
        # Explicit empty body rather than none at all.
        self.transport.send("DELETE", self.path_for(record_id), b"", cancel=cancel)
