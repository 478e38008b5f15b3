"""Core primitives for Predator: shapes, normalization, errors and types."""

from . import activations, errors, normalization, shapes, types

__all__ = ["activations", "errors", "normalization", "shapes", "types"]
