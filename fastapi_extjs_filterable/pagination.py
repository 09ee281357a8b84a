# fastapi_extjs_filterable/pagination.py

import logging
from typing import TYPE_CHECKING, Any

from fastapi_pagination.ext.sqlalchemy import paginate

from .builder import build_query, to_page_params

if TYPE_CHECKING:
    from .core import FilterTranslator

logger = logging.getLogger(__name__)


def _session_dialect(session):
    return getattr(getattr(session, "bind", None), "dialect", None)


def paginate_by_filter(session, model: type, request: Any, translator: "FilterTranslator"):
    dialect = translator.dialect or _session_dialect(session)
    descriptor = translator.translate(model, request, dialect=dialect)
    stmt = build_query(model, descriptor)
    logger.debug("Paginating %s with %s", model.__name__, descriptor.to_options())
    return paginate(session, stmt, params=to_page_params(descriptor))
