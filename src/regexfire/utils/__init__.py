"""Shared utilities (logging, file IO)."""
