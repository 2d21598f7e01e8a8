"""Run identification helpers."""

from . import registry

__all__ = ["registry"]
