# fastapi_extjs_filterable/exceptions.py

from typing import Any, Optional


class FilterableError(Exception):
    """Base class for every error raised by this package."""


class InvalidArgument(FilterableError, ValueError):
    """Raised for malformed options, handlers or request payloads."""

    def __init__(self, message: str, key: Optional[Any] = None):
        super().__init__(message)
        self.key = key


class NotConfigured(FilterableError, LookupError):
    """Raised when a model is used before ``FilterRegistry.configure``."""

    def __init__(self, model: Any):
        name = getattr(model, "__name__", repr(model))
        super().__init__(f"Model '{name}' has no filter configuration")
        self.model = model
