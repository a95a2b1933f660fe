"""Regex find/replace engine with live preview and saved expressions."""

__version__ = "0.3.0"

__all__ = ["__version__"]
