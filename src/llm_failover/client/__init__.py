"""Async Python client for the LLM Failover admin API."""

from .client import FailoverClient
from .errors import ClientError, NotFoundError, ServerError

__all__ = [
    "ClientError",
    "FailoverClient",
    "NotFoundError",
    "ServerError",
]
