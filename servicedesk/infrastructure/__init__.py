"""Infrastructure layer exports."""

from .http_store import HttpRequestStore
from .request_store import InMemoryRequestStore, RequestStore

__all__ = [
    "HttpRequestStore",
    "InMemoryRequestStore",
    "RequestStore",
]
