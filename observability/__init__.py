"""Observability utilities for the practice session stack."""
from .logger import log_event
from .tracing import span

__all__ = ["log_event", "span"]
