import logging
import time
from typing import Any, Awaitable, Callable, Type, TypeVar

from fastapi import Request

from ..core.errors import BindingError
from ..core.http import read_request
from .router import bind
from .typeinfo import new_record


logger = logging.getLogger(__name__)

T = TypeVar("T")


def bind_dependency(model: Type[T]) -> Callable[[Request], Awaitable[T]]:
    """Build a FastAPI dependency that binds the request into a fresh ``model`` record.

    Usage::

        @app.get("/search")
        async def search(query: SearchQuery = Depends(bind_dependency(SearchQuery))):
            ...
    """

    async def dependency(request: Request) -> T:
        request_id = f"bind-{int(time.time() * 1000)}-{id(request)}"
        target: Any = new_record(model)
        data = await read_request(request)
        try:
            bind(target, data)
        except BindingError as e:
            cause = type(e.internal).__name__ if e.internal is not None else "-"
            logger.warning(f"[{request_id}] Binding {model.__name__} failed ({e.status_code}): {e.detail} ({cause})")
            raise
        return target

    return dependency
