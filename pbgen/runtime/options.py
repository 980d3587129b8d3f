"""Query options for record requests."""
from dataclasses import dataclass, field
from typing import Dict, List, Optional


def _join(values: List[str]) -> str:
    return ",".join(v for v in values if v)


@dataclass
class GetOneOptions:
    expand: List[str] = field(default_factory=list)
    fields: List[str] = field(default_factory=list)

    def to_query(self) -> Dict[str, str]:
        query = {}
        if _join(self.expand):
            query["expand"] = _join(self.expand)
        if _join(self.fields):
            query["fields"] = _join(self.fields)
        return query


@dataclass
class WriteOptions(GetOneOptions):
    """Options for create and update; same shape as GetOneOptions."""


@dataclass
class ListOptions:
    """Paging, filtering and projection for list requests.

    ``page`` and ``per_page`` are only sent when positive. ``skip_total``
    asks the server not to count matching records; totals then come back
    as -1. ``query_params`` carries extra parameters; the named options win
    on conflicts.
    """
    page: int = 0
    per_page: int = 0
    sort: str = ""
    filter: str = ""
    expand: List[str] = field(default_factory=list)
    fields: List[str] = field(default_factory=list)
    skip_total: bool = False
    query_params: Dict[str, str] = field(default_factory=dict)

    def to_query(self) -> Dict[str, str]:
        query = {}
        if self.page > 0:
            query["page"] = str(self.page)
        if self.per_page > 0:
            query["perPage"] = str(self.per_page)
        if self.sort:
            query["sort"] = self.sort
        if self.filter:
            query["filter"] = self.filter
        if _join(self.expand):
            query["expand"] = _join(self.expand)
        if _join(self.fields):
            query["fields"] = _join(self.fields)
        if self.skip_total:
            query["skipTotal"] = "1"
        for key, value in self.query_params.items():
            if value:
                query.setdefault(key, value)
        return query


def query_for(options: Optional[object]) -> Dict[str, str]:
    if options is None:
        return {}
    return options.to_query()
