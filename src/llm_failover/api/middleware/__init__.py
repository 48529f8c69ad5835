"""Middleware for the admin API."""

from .cors import configure_cors
from .error_handler import register_error_handlers

__all__ = ["configure_cors", "register_error_handlers"]
