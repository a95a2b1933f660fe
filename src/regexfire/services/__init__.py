"""Service layer helpers (expression store, settings persistence)."""

from .expression_store import ExpressionStore, NamedCollection
from .settings import Settings, SettingsStore

__all__ = ["ExpressionStore", "NamedCollection", "Settings", "SettingsStore"]
