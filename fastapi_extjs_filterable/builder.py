# fastapi_extjs_filterable/builder.py

import re
from typing import TYPE_CHECKING, Any, Sequence

from fastapi import Query
from fastapi_pagination import Params
from sqlalchemy import Select, bindparam, inspect, select, text
from sqlalchemy.orm import RelationshipProperty, selectinload
from sqlalchemy.sql.elements import TextClause

from .exceptions import InvalidArgument

if TYPE_CHECKING:
    from .core import QueryDescriptor

# "(?)" is matched as a whole so list values can expand in its place
_PLACEHOLDER = re.compile(r"(\(\s*\?\s*\)|\?)")

# a single column name with an optional direction, e.g. "created_at DESC"
_BARE_ORDER = re.compile(r"^\s*(\w+)(\s+\w*)?\s*$")


class FilterPageParams(Params):
    size: int = Query(100, ge=1, description="Page size")


def to_page_params(descriptor: "QueryDescriptor") -> FilterPageParams:
    return FilterPageParams(page=descriptor.page, size=descriptor.per_page)


def bind_conditions(condition: str, values: Sequence[Any]) -> TextClause:
    """
    Turn a ``?``-style condition and its positional values into a ``text()``
    clause with named bind parameters. Sequence values become expanding
    parameters, so ``status IN (?)`` with ``["a", "b"]`` renders
    ``status IN (?, ?)``.
    """
    parts = _PLACEHOLDER.split(condition)
    placeholders = parts[1::2]
    if len(placeholders) != len(values):
        raise InvalidArgument(
            f"Condition has {len(placeholders)} placeholder(s) but {len(values)} value(s): {condition}"
        )

    sql = []
    params = []
    for i, fragment in enumerate(parts[0::2]):
        sql.append(_escape_colons(fragment))
        if i == len(placeholders):
            break
        name = f"p{i}"
        value = values[i]
        expanding = isinstance(value, (list, tuple, set, frozenset))
        if expanding or placeholders[i] == "?":
            sql.append(f":{name}")
        else:
            sql.append(f"(:{name})")
        params.append(bindparam(name, list(value) if expanding else value, expanding=expanding))

    return text("".join(sql)).bindparams(*params)


def _escape_colons(sql: str) -> str:
    return sql.replace(":", "\\:")


def references_table(sql: str, table: str) -> bool:
    """Whether ``sql`` uses a column selector of ``table`` (``table.col`` or ``"table".col``)."""
    pattern = r'(?<![\w."])"?' + re.escape(table) + r'"?\.'
    return re.search(pattern, sql, re.IGNORECASE) is not None


def qualify_order(model: type, order: str) -> str:
    """Prefix a bare column of ``model``'s table with the table name."""
    match = _BARE_ORDER.match(order)
    table = inspect(model).local_table
    if match and match.group(1) in table.c:
        return f"{table.name}.{match.group(1)}{match.group(2) or ''}"
    return order


def _relationship(model: type, name: str):
    relationship = getattr(model, name, None)
    if relationship is None or not isinstance(getattr(relationship, "property", None), RelationshipProperty):
        raise InvalidArgument(f"Invalid include: '{name}' is not a relationship of '{model.__name__}'", key=name)
    return relationship


def build_query(model: type, descriptor: "QueryDescriptor") -> Select:
    """
    Build the page query for ``descriptor``.

    Included relationships are always loaded with ``selectinload``. A
    relationship is only joined when the condition or the order refers to
    its table: many-to-one relationships are outer-joined into the page query,
    while a condition on a collection is evaluated in an ``IN`` subquery over
    the primary key, so pages and totals count each row of ``model`` once.
    """
    mapper = inspect(model)
    stmt = select(model)
    where = bind_conditions(descriptor.condition, descriptor.values)

    condition_joins = {}
    order_joins = {}
    filters_collection = False
    for name in descriptor.include:
        relationship = _relationship(model, name)
        stmt = stmt.options(selectinload(relationship))

        table = relationship.property.mapper.local_table.name
        if table == mapper.local_table.name:
            continue
        if references_table(descriptor.condition, table):
            condition_joins[name] = relationship
            filters_collection = filters_collection or relationship.property.uselist
        if not relationship.property.uselist and references_table(descriptor.order, table):
            order_joins[name] = relationship

    if filters_collection:
        pk = mapper.primary_key[0]
        matching = select(pk).select_from(model)
        for relationship in condition_joins.values():
            matching = matching.outerjoin(relationship)
        stmt = stmt.where(pk.in_(matching.where(where).correlate(None)))
        joins = order_joins
    else:
        stmt = stmt.where(where)
        joins = {**condition_joins, **order_joins}

    for relationship in joins.values():
        stmt = stmt.outerjoin(relationship)

    return stmt.order_by(text(_escape_colons(qualify_order(model, descriptor.order))))
