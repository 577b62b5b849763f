"""Shared utilities: logging, settings and text normalization."""
