"""Observability - structured logging."""

from .logging import setup_logging, get_logger, bind_session, unbind_session

__all__ = ["setup_logging", "get_logger", "bind_session", "unbind_session"]
