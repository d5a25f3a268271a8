"""Raster presentation of the practice canvas."""

from .layers import CanvasStyle, LayeredCanvas

__all__ = ['LayeredCanvas', 'CanvasStyle']
