"""Subtide: AI subtitle generation and translation."""

__version__ = "0.1.0"
