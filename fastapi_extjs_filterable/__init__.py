from .config import Callback, FilterConfig, FilterRegistry, FilterableSettings, NamedMethod, settings
from .core import FilterTranslator, QueryDescriptor
from .exceptions import FilterableError, InvalidArgument, NotConfigured
from .params import FilterClause, FilterRequest, parse_filter_request, parse_query_string
from .pagination import paginate_by_filter

__all__ = [
    "Callback",
    "FilterClause",
    "FilterConfig",
    "FilterRegistry",
    "FilterRequest",
    "FilterTranslator",
    "FilterableError",
    "FilterableSettings",
    "InvalidArgument",
    "NamedMethod",
    "NotConfigured",
    "QueryDescriptor",
    "paginate_by_filter",
    "parse_filter_request",
    "parse_query_string",
    "settings",
]
