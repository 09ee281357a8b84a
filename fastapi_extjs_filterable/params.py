# fastapi_extjs_filterable/params.py

import json
import re
from collections.abc import Mapping
from enum import Enum
from typing import Any, Iterable, Optional

from fastapi import Query, Request
from pydantic import BaseModel, Field

from .exceptions import InvalidArgument
from .utils import to_int

_BRACKETS = re.compile(r"\[([^\[\]]*)\]")


class FilterClause(BaseModel):
    field: str
    type: str = ""
    value: str = ""


class FilterRequest(BaseModel):
    start: Optional[int] = None
    limit: Optional[int] = None
    sort: Optional[str] = None
    dir: Optional[str] = None
    filters: list[FilterClause] = Field(default_factory=list)


def _normalize_key(key: Any) -> Any:
    if isinstance(key, Enum):
        key = key.value
    return key.lower() if isinstance(key, str) else key


def _normalize_keys(mapping: Mapping) -> dict:
    return {_normalize_key(k): v for k, v in mapping.items()}


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return str(value)


def parse_filter_clause(index: Any, entry: Any) -> FilterClause:
    """
    Parse one grid filter entry.

    Both the GridFilters shape ``{field, data: {type, value}}`` and the flat
    encoded shape ``{field, type, value}`` are accepted.
    """
    if not isinstance(entry, Mapping):
        raise InvalidArgument(f"Filter {index} must be a mapping, got {type(entry).__name__}", key=index)
    entry = _normalize_keys(entry)

    field = entry.get("field")
    if field is None or field == "":
        raise InvalidArgument(f"Filter {index} has no field", key=index)

    data = entry.get("data", entry)
    if not isinstance(data, Mapping):
        raise InvalidArgument(f"Filter {index} on field '{field}' has malformed data", key=field)
    data = _normalize_keys(data)

    return FilterClause(field=str(field), type=_as_text(data.get("type")), value=_as_text(data.get("value")))


def parse_filters(raw: Any) -> list[FilterClause]:
    if raw is None or raw == "":
        return []
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise InvalidArgument(f"Invalid filter JSON: {e}", key="filter") from e

    if isinstance(raw, Mapping):
        if "field" in _normalize_keys(raw):
            return [parse_filter_clause(0, raw)]
        entries = raw.items()
    elif isinstance(raw, (list, tuple)):
        entries = enumerate(raw)
    else:
        raise InvalidArgument(f"filter must be a mapping or a list, got {type(raw).__name__}", key="filter")

    return [parse_filter_clause(index, entry) for index, entry in entries]


def parse_filter_request(payload: Any) -> FilterRequest:
    """
    Normalize the parameter bag sent by a grid store into a ``FilterRequest``.

    ``start`` and ``limit`` are parsed leniently: unparsable, negative start or
    non-positive limit values are treated as absent.
    """
    if isinstance(payload, FilterRequest):
        return payload
    if not isinstance(payload, Mapping):
        raise InvalidArgument(f"Filter request must be a mapping, got {type(payload).__name__}")
    params = _normalize_keys(payload)

    start = to_int(params.get("start"))
    if start is not None and start < 0:
        start = None
    limit = to_int(params.get("limit"))
    if limit is not None and limit <= 0:
        limit = None

    sort = params.get("sort")
    sort = None if sort is None or not str(sort).strip() else str(sort)
    direction = params.get("dir")

    return FilterRequest(
        start=start,
        limit=limit,
        sort=sort,
        dir=None if direction is None else str(direction),
        filters=parse_filters(params.get("filter")),
    )


def parse_query_string(items: Iterable[tuple[str, str]]) -> dict[str, Any]:
    """
    Expand bracketed query keys into nested mappings.

    ``filter[0][data][type]=string`` becomes
    ``{"filter": {"0": {"data": {"type": "string"}}}}``; a trailing ``[]``
    collects repeated values into a list.
    """
    result: dict[str, Any] = {}
    for key, value in items:
        head, bracket, rest = key.partition("[")
        parts = _BRACKETS.findall(bracket + rest)
        if not head or not parts:
            result[key] = value
            continue

        parts = [head] + parts
        append = parts[-1] == ""
        if append:
            parts.pop()

        node = result
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child

        last = parts[-1]
        if append:
            if not isinstance(node.get(last), list):
                node[last] = []
            node[last].append(value)
        else:
            node[last] = value
    return result


class ExtjsQueryParams:
    def __init__(
        self,
        request: Request,
        start: Optional[str] = Query(None, description="Offset of the first row, e.g. 200"),
        limit: Optional[str] = Query(None, description="Number of rows per page, e.g. 100"),
        sort: Optional[str] = Query(None, description="dataIndex of the sorted column"),
        direction: Optional[str] = Query(None, alias="dir", description="ASC or DESC"),
    ):
        self.start = start
        self.limit = limit
        self.sort = sort
        self.dir = direction
        # filter[0][field]=... keys are dynamic, read them from the raw query string
        self.filter = parse_query_string(request.query_params.multi_items()).get("filter")

    def to_filter_request(self) -> FilterRequest:
        return parse_filter_request(
            {"start": self.start, "limit": self.limit, "sort": self.sort, "dir": self.dir, "filter": self.filter}
        )
