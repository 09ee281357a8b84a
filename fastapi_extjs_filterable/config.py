# fastapi_extjs_filterable/config.py

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings

from .exceptions import InvalidArgument, NotConfigured

logger = logging.getLogger(__name__)


class FilterableSettings(BaseSettings):
    DEFAULT_PER_PAGE: int = 100
    DEFAULT_SORT: str = "created_at"

    model_config = {"env_prefix": "EXTJS_FILTERABLE_", "env_file": ".env", "extra": "ignore"}


settings = FilterableSettings()


@dataclass(frozen=True)
class NamedMethod:
    """A special filter implemented as a classmethod/staticmethod of the model."""

    name: str

    def resolve(self, model: type, field: str) -> Callable[..., Any]:
        handler = getattr(model, self.name, None)
        if not callable(handler):
            raise InvalidArgument(
                f"Special filter for field '{field}' refers to '{self.name}', "
                f"which is not a method of '{model.__name__}'",
                key=field,
            )
        return handler


@dataclass(frozen=True)
class Callback:
    """A special filter implemented as a plain callable."""

    func: Callable[..., Any]

    def resolve(self, model: type, field: str) -> Callable[..., Any]:
        return self.func


FilterHandler = Union[NamedMethod, Callback]


def to_handler(field: str, ref: Any) -> FilterHandler:
    if isinstance(ref, (NamedMethod, Callback)):
        return ref
    if isinstance(ref, str):
        return NamedMethod(ref)
    if callable(ref):
        return Callback(ref)
    raise InvalidArgument(
        f"Special filter for field '{field}' must be a method name or a callable, "
        f"got {type(ref).__name__}",
        key=field,
    )


class FilterConfig(BaseModel):
    """
    Filter configuration of one model.

    * ``columns`` maps a grid dataIndex to a SQL selector, e.g.
      ``{"address": "addresses.description"}``.
    * ``per_page`` is the default page size.
    * ``include`` lists the relationships to load with each page.
    * ``special_filters`` maps a dataIndex to a ``NamedMethod`` or ``Callback``.
    * ``default_sort`` is the order used when the grid sends no sort field.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    columns: dict[str, str] = Field(default_factory=dict)
    per_page: int = Field(100, gt=0, alias="perPage")
    include: list[str] = Field(default_factory=list, alias="includes")
    special_filters: dict[str, Any] = Field(default_factory=dict, alias="specialFilters")
    default_sort: Optional[str] = Field(None, alias="defaultSort")


_ALIASES = {
    "perPage": "per_page",
    "includes": "include",
    "specialFilters": "special_filters",
    "defaultSort": "default_sort",
}


class FilterRegistry:
    """Holds one ``FilterConfig`` per model class."""

    def __init__(self, filterable_settings: Optional[FilterableSettings] = None):
        self.settings = filterable_settings or settings
        self._options: dict[type, FilterConfig] = {}
        self._per_page: dict[type, int] = {}

    def configure(self, model: type, options: Optional[Mapping] = None) -> FilterConfig:
        if options is not None and not isinstance(options, Mapping):
            raise InvalidArgument(
                f"Filter options for '{model.__name__}' must be a mapping, "
                f"got {type(options).__name__}"
            )

        merged: dict[str, Any] = {
            "per_page": self._per_page.get(model, self.settings.DEFAULT_PER_PAGE),
            "columns": {},
            "include": [],
            "special_filters": {},
        }
        for key, value in (options or {}).items():
            key = str(key)
            merged[_ALIASES.get(key, key)] = value

        special = merged["special_filters"]
        if not isinstance(special, Mapping):
            raise InvalidArgument("special_filters must be a mapping", key="special_filters")
        merged["special_filters"] = {field: to_handler(field, ref) for field, ref in special.items()}

        try:
            config = FilterConfig(**merged)
        except ValidationError as e:
            error = e.errors()[0]
            key = _ALIASES.get(error["loc"][0], error["loc"][0]) if error["loc"] else None
            raise InvalidArgument(f"Invalid filter option '{key}': {error['msg']}", key=key) from e

        self._options[model] = config
        self._per_page[model] = config.per_page
        logger.debug("Configured filtering for %s: %s", model.__name__, config)
        return config

    def options(self, model: type) -> FilterConfig:
        try:
            return self._options[model]
        except KeyError:
            raise NotConfigured(model) from None

    def per_page(self, model: type) -> int:
        try:
            return self._per_page[model]
        except KeyError:
            raise NotConfigured(model) from None

    def set_per_page(self, model: type, per_page: int) -> None:
        if isinstance(per_page, bool) or not isinstance(per_page, int) or per_page <= 0:
            raise InvalidArgument(f"per_page must be a positive integer, got {per_page!r}", key="per_page")
        self._per_page[model] = per_page

    def is_configured(self, model: type) -> bool:
        return model in self._options

    __contains__ = is_configured
