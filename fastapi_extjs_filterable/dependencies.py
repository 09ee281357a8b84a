# fastapi_extjs_filterable/dependencies.py

from typing import Callable, Type, Union

from fastapi import Depends, HTTPException
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from .core import FilterTranslator
from .exceptions import InvalidArgument, NotConfigured
from .params import ExtjsQueryParams


def PaginateByFilter(model: Type, translator: FilterTranslator, get_db: Callable[[], Union[Session, AsyncSession]]):
    async def wrapper(
        db: Union[Session, AsyncSession] = Depends(get_db),
        params: ExtjsQueryParams = Depends()
    ):
        try:
            request = params.to_filter_request()
            if isinstance(db, AsyncSession):
                return await translator.paginate_by_filter(db, model, request)
            # sync sessions run their queries off the event loop
            return await run_in_threadpool(translator.paginate_by_filter, db, model, request)
        except InvalidArgument as e:
            raise HTTPException(status_code=400, detail=str(e))
        except NotConfigured as e:
            raise HTTPException(status_code=500, detail=str(e))
    return Depends(wrapper)
