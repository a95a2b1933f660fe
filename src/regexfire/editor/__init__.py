"""Host buffer protocol and the headless editor buffer."""

from .buffer import EditorBuffer, TextBufferHost
from .document_model import DocumentState, SelectionRange

__all__ = ["DocumentState", "EditorBuffer", "SelectionRange", "TextBufferHost"]
