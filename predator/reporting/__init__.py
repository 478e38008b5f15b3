"""Reporting utilities for Predator."""

from .plots import PlotAdapter

__all__ = ["PlotAdapter"]
