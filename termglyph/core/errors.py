"""Exceptions raised by the conversion pipeline."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Invalid converter settings or a degenerate downscale request."""
