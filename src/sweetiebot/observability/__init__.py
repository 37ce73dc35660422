"""Observability subsystem for Sweetie Bot (structured logging setup)."""

from .logging import configure_logging, reset_logging

__all__ = ["configure_logging", "reset_logging"]
