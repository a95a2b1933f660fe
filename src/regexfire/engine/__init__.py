"""Find/replace engine: compile, scan, rewrite and preview.

Submodules are imported explicitly by callers (``regexfire.engine.transform``,
``regexfire.engine.preview``, ...).
"""
