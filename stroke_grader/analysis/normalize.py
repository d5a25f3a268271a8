"""Translation and scale normalization of paths."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from ..domain.geometry import BBox, NormalizedPath, Point


def normalize_path(points: Sequence[Point]) -> NormalizedPath:
    """Centre a path on its bounding box and divide by its larger side.

    The result no longer depends on where the path was drawn or how large,
    which lets a drawing on one canvas be compared with a template authored
    at another size.

    Args:
        points: Points of the path, any coordinate space.

    Returns:
        NormalizedPath with points roughly in [-0.5, 0.5]. When every point
        coincides the scale is 1, so the output is all zeros rather than a
        division by zero.
    """
    if not points:
        return NormalizedPath(points=(), center=Point(0.0, 0.0), scale=1.0)

    bbox = BBox.from_points(points)
    scale = bbox.extent or 1.0
    center = bbox.center

    arr = np.array([(p.x, p.y) for p in points], dtype=float)
    arr = (arr - (center.x, center.y)) / scale
    return NormalizedPath(
        points=tuple(Point(float(x), float(y)) for x, y in arr),
        center=center,
        scale=float(scale),
    )


def path_array(points: Sequence[Point]) -> np.ndarray:
    """Points as an Nx2 float array (shape (0, 2) when empty)."""
    if not points:
        return np.empty((0, 2), dtype=float)
    return np.array([(p.x, p.y) for p in points], dtype=float)
