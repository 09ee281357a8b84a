# fastapi_extjs_filterable/core.py

import logging
from typing import Any, Optional

from pydantic import BaseModel, Field
from sqlalchemy import inspect
from sqlalchemy.engine import Dialect

from .config import FilterConfig, FilterRegistry, FilterableSettings
from .exceptions import InvalidArgument
from .operators import FILTER_TYPES
from .pagination import paginate_by_filter
from .params import FilterClause, FilterRequest, parse_filter_request
from .utils import quote_identifier

logger = logging.getLogger(__name__)


class QueryDescriptor(BaseModel):
    page: int = Field(ge=1)
    per_page: int = Field(gt=0)
    order: str
    include: list[str] = Field(default_factory=list)
    condition: str
    values: list[Any] = Field(default_factory=list)

    @property
    def conditions(self) -> list[Any]:
        """The where clause followed by its positional bound values."""
        return [self.condition, *self.values]

    def to_options(self) -> dict[str, Any]:
        return {
            "page": self.page,
            "per_page": self.per_page,
            "order": self.order,
            "include": list(self.include),
            "conditions": self.conditions,
        }


def primary_key_selector(model: type) -> str:
    mapper = inspect(model, raiseerr=False)
    if mapper is None or not getattr(mapper, "primary_key", None):
        raise InvalidArgument(f"'{getattr(model, '__name__', model)}' is not a mapped class with a primary key")
    column = mapper.primary_key[0]
    table = getattr(column.table, "name", None)
    return f"{table}.{column.name}" if table else column.name


class FilterTranslator:
    """
    Translates grid request parameters into a ``QueryDescriptor`` using the
    configuration held by a ``FilterRegistry``.
    """

    def __init__(
        self,
        registry: FilterRegistry,
        dialect: Optional[Dialect] = None,
        filterable_settings: Optional[FilterableSettings] = None,
    ):
        self.registry = registry
        self.dialect = dialect
        self.settings = filterable_settings or registry.settings

    def translate(self, model: type, request: Any, dialect: Optional[Dialect] = None) -> QueryDescriptor:
        config = self.registry.options(model)
        request = parse_filter_request(request)
        dialect = dialect or self.dialect

        per_page = request.limit if request.limit and request.limit > 0 else config.per_page
        if request.start is not None and request.start >= 0:
            page = request.start // per_page + 1
        else:
            page = 1

        conditions = [f"{quote_identifier(primary_key_selector(model), dialect)} is not null"]
        values: list[Any] = []
        for clause in request.filters:
            self._apply_clause(model, config, clause, conditions, values, dialect)

        return QueryDescriptor(
            page=page,
            per_page=per_page,
            order=self._order(config, request),
            include=list(config.include),
            condition=" and ".join(conditions),
            values=values,
        )

    def _order(self, config: FilterConfig, request: FilterRequest) -> str:
        if not request.sort:
            return config.default_sort or self.settings.DEFAULT_SORT
        column = config.columns[request.sort] if request.sort in config.columns else request.sort
        return f"{column} {request.dir or ''}"

    def _apply_clause(
        self,
        model: type,
        config: FilterConfig,
        clause: FilterClause,
        conditions: list[str],
        values: list[Any],
        dialect: Optional[Dialect],
    ) -> None:
        handler = config.special_filters.get(clause.field)
        if handler is not None:
            logger.debug("Filtering %s.%s with special filter %r", model.__name__, clause.field, handler)
            handler.resolve(model, clause.field)(conditions, values, clause.type, clause.value)
            return

        build = FILTER_TYPES.get(clause.type)
        if build is None:
            logger.debug("Skipping filter on %s.%s with unknown type %r", model.__name__, clause.field, clause.type)
            return

        selector = config.columns[clause.field] if clause.field in config.columns else clause.field
        column = quote_identifier(selector, dialect)
        condition, value = build(column, clause.value)
        conditions.append(condition)
        values.append(value)

    def paginate_by_filter(self, session, model: type, request: Any):
        """
        Translate ``request`` and hand the result to fastapi-pagination.

        Returns whatever ``fastapi_pagination.ext.sqlalchemy.paginate`` returns:
        a ``Page`` for a ``Session``, an awaitable for an ``AsyncSession``.
        """
        return paginate_by_filter(session, model, request, self)
