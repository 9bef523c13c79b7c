"""Bind HTTP request data onto typed records."""

from .binding import bind, bind_data, bind_dependency, tagged
from .core.errors import BindingError
from .core.http import RequestData, read_request

__all__ = ["BindingError", "RequestData", "bind", "bind_data", "bind_dependency", "read_request", "tagged"]
