"""Reading and writing the documents the CLI rewrites."""

from __future__ import annotations

import codecs
import locale
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

__all__ = ["LoadedText", "read_text", "write_text"]

# Longer marks first: the UTF-32 LE mark starts with the UTF-16 LE one.
_BOMS: tuple[tuple[bytes, str], ...] = (
    (codecs.BOM_UTF32_LE, "utf-32-le"),
    (codecs.BOM_UTF32_BE, "utf-32-be"),
    (codecs.BOM_UTF8, "utf-8-sig"),
    (codecs.BOM_UTF16_LE, "utf-16-le"),
    (codecs.BOM_UTF16_BE, "utf-16-be"),
)
_NEWLINES = ("\n", "\r\n", "\r")


@dataclass(slots=True, frozen=True)
class LoadedText:
    """Decoded file content plus what is needed to write it back unchanged."""

    path: Path
    text: str
    encoding: str
    newline: str


def read_text(path: Path | str, *, encoding: str | None = None) -> LoadedText:
    """Decode ``path`` and normalise its line breaks to ``\\n``.

    The detected encoding and the dominant newline style are kept so
    :func:`write_text` can restore them; match offsets therefore always refer
    to ``\\n``-separated text.
    """

    source = Path(path)
    payload = source.read_bytes()
    codec = encoding or _guess_encoding(payload)
    decoded = payload.decode(codec).removeprefix("\ufeff")
    return LoadedText(
        path=source,
        text=_normalize_newlines(decoded),
        encoding=codec,
        newline=_dominant_newline(decoded),
    )


def write_text(path: Path | str, content: str, *, encoding: str = "utf-8", newline: str = "\n") -> Path:
    """Replace ``path`` with ``content`` in one step, using ``newline`` line endings."""

    if newline not in _NEWLINES:
        raise ValueError(f"Unsupported newline policy: {newline!r}")
    destination = Path(path)
    body = _normalize_newlines(content)
    if newline != "\n":
        body = body.replace("\n", newline)
    data = body.encode(encoding)

    destination.parent.mkdir(parents=True, exist_ok=True)
    handle, scratch = tempfile.mkstemp(dir=destination.parent, prefix=f".{destination.name}.", suffix=".tmp")
    scratch_path = Path(scratch)
    try:
        with os.fdopen(handle, "wb") as stream:
            stream.write(data)
        scratch_path.replace(destination)
    except BaseException:
        scratch_path.unlink(missing_ok=True)
        raise
    return destination


def _guess_encoding(payload: bytes) -> str:
    for mark, codec in _BOMS:
        if payload.startswith(mark):
            return codec
    candidates = dict.fromkeys(("utf-8", locale.getpreferredencoding(False) or "utf-8"))
    for codec in candidates:
        try:
            payload.decode(codec)
        except UnicodeDecodeError:
            continue
        return codec
    # latin-1 decodes any byte sequence.
    return "latin-1"


def _dominant_newline(text: str) -> str:
    crlf = text.count("\r\n")
    lone_cr = text.count("\r") - crlf
    lone_lf = text.count("\n") - crlf
    if crlf > max(lone_cr, lone_lf):
        return "\r\n"
    return "\r" if lone_cr > lone_lf else "\n"


def _normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n") if "\r" in text else text
