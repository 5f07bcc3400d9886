"""Barista: HTTP headers propagated through an explicit context into prompt flows."""

__version__ = "0.1.0"
