"""Ports - interfaces/protocols for external dependencies."""

from .document_store import SCHEMA, DocumentStore
from .focus_surface import FocusPresenter, Ticker

__all__ = [
    "SCHEMA",
    "DocumentStore",
    "FocusPresenter",
    "Ticker",
]
