"""
Signup Consent - Monitoring Module

Structured logging setup and context helpers.
"""

from .logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    sanitize_sensitive_data,
    unbind_context,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "sanitize_sensitive_data",
]
