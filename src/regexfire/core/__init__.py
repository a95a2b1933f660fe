"""Core value types shared across the engine, store and host adapters."""

from .expressions import Expression, ExpressionGroup
from .ranges import MatchRange, TextPosition

__all__ = ["Expression", "ExpressionGroup", "MatchRange", "TextPosition"]
