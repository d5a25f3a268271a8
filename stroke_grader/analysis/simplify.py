"""Douglas-Peucker path simplification.

Reduces a dense point sequence to the vertices that matter, removing every
point that lies within ``tolerance`` of the line joining the vertices kept
around it. The first and last points are always kept.

Algorithm:
    1. Find the interior point with the largest perpendicular distance from
       the line through the current range's endpoints.
    2. If that distance exceeds the tolerance, keep the point and process
       both halves split at it.
    3. Otherwise drop every interior point of the range.

Ranges are processed from an explicit stack rather than by recursion, so
paths with thousands of samples do not hit the interpreter's recursion
limit. The output is identical to the recursive formulation, and the
function is idempotent: simplifying an already simplified path with the same
tolerance returns it unchanged.

Distances that differ by less than ``EPSILON`` times the path's extent are
treated as equal. Ties go to the earliest point and a baseline that short
counts as a single point, so a shifted or rescaled copy of a path keeps the
same vertices despite floating-point rounding.
"""

from __future__ import annotations

from typing import List, Sequence

import numpy as np

from ..domain.geometry import Point

DEFAULT_TOLERANCE = 2.0
EPSILON = 1e-9


def perpendicular_distances(points: np.ndarray, start: np.ndarray, end: np.ndarray,
                            min_length: float = 0.0) -> np.ndarray:
    """Distance of each point from the infinite line through start and end.

    Falls back to plain Euclidean distance from ``start`` when the two
    endpoints are no more than ``min_length`` apart.

    Args:
        points: Nx2 array of points.
        start: Line start as a length-2 array.
        end: Line end as a length-2 array.
        min_length: Baselines this short count as a single point.

    Returns:
        Length-N array of distances.
    """
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    mag = np.hypot(dx, dy)
    if mag <= min_length:
        return np.hypot(points[:, 0] - start[0], points[:, 1] - start[1])
    cross = dy * (points[:, 0] - start[0]) - dx * (points[:, 1] - start[1])
    return np.abs(cross) / mag


def simplify_path(points: Sequence[Point], tolerance: float = DEFAULT_TOLERANCE) -> List[Point]:
    """Simplify a path with the Douglas-Peucker algorithm.

    Args:
        points: Ordered points of the path.
        tolerance: Maximum distance, in the same units as the points, a
            dropped point may lie from the simplified path.

    Returns:
        The kept points in their original order. Sequences of two or fewer
        points are returned unchanged.

    Example:
        >>> pts = [Point(0, 0), Point(1, 0.1), Point(2, 0), Point(3, 5)]
        >>> simplify_path(pts, tolerance=1.0)
        [Point(x=0, y=0), Point(x=2, y=0), Point(x=3, y=5)]
    """
    if len(points) <= 2:
        return list(points)
    if tolerance < 0:
        raise ValueError(f"tolerance must be non-negative, got {tolerance}")

    arr = np.array([(p.x, p.y) for p in points], dtype=float)
    slack = EPSILON * float(np.max(np.ptp(arr, axis=0)))
    keep = np.zeros(len(points), dtype=bool)
    keep[0] = keep[-1] = True

    stack = [(0, len(points) - 1)]
    while stack:
        first, last = stack.pop()
        if last - first < 2:
            continue
        dists = perpendicular_distances(arr[first + 1:last], arr[first], arr[last], slack)
        # first index within slack of the maximum
        offset = int(np.argmax(dists >= dists.max() - slack))
        if dists[offset] > tolerance + slack:
            split = first + 1 + offset
            keep[split] = True
            stack.append((split, last))
            stack.append((first, split))

    return [p for p, k in zip(points, keep) if k]
