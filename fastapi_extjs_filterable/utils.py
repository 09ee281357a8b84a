# fastapi_extjs_filterable/utils.py

import math
import re
from typing import Any, Optional

from sqlalchemy.engine import Dialect
from sqlalchemy.engine.default import DefaultDialect

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

_default_dialect = DefaultDialect()


def quote_identifier(name: str, dialect: Optional[Dialect] = None) -> str:
    """
    Quote a column selector such as ``status`` or ``addresses.description``.

    Each dotted part is quoted separately with the dialect's identifier
    preparer, which only adds quotes where the name requires them.
    """
    preparer = (dialect or _default_dialect).identifier_preparer
    return ".".join(preparer.quote(part) for part in str(name).split("."))


def to_int(value: Any) -> Optional[int]:
    """Parse the leading integer of ``value``; ``None`` when there is none."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = _LEADING_INT.match(str(value))
    if not match:
        return None
    return int(match.group(1))


def split_list(value: str) -> list[str]:
    # trailing empty items are dropped, "" gives []
    items = value.split(",") if value else []
    while items and items[-1] == "":
        items.pop()
    return items
