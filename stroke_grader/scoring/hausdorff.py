"""Shape similarity scoring with the Hausdorff distance.

The user's drawing and the template are each flattened into one point set,
simplified, normalized into the canonical frame and compared with the
symmetric Hausdorff distance:

    directed(A, B) = max over a in A of (min over b in B of |a - b|)
    H(A, B)        = max(directed(A, B), directed(B, A))

Nearest-neighbour queries go through ``scipy.spatial.cKDTree`` so a
comparison stays cheap even for dense, unsimplified input.

The distance becomes a 0-100 similarity with

    similarity = clamp(100 * (1 - H / max_distance), 0, 100)

and a stroke-count penalty is subtracted to keep a one-stroke scribble from
matching a multi-stroke character.

Stroke boundaries are ignored by the flattened comparison. With
``strict_order`` the orchestrator also pairs strokes by index (see
:func:`paired_stroke_distances`) for stroke-aware scoring.

Typical usage::

    from stroke_grader.scoring import compare_shapes, stroke_count_penalty

    comparison = compare_shapes(user_points, template_points)
    accuracy = comparison.similarity - stroke_count_penalty(2, 3)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np
from scipy.spatial import cKDTree

from ..analysis.normalize import normalize_path, path_array
from ..analysis.simplify import simplify_path
from ..domain.geometry import BBox, NormalizedPath, Point, Stroke, flatten_points

logger = logging.getLogger(__name__)

# Scoring constants
HAUSDORFF_MAX_DISTANCE = 1.0      # Largest meaningful separation in normalized space
STROKE_COUNT_PENALTY_STEP = 10.0  # Points lost per missing or extra stroke
MAX_STROKE_COUNT_PENALTY = 20.0   # Cap on the stroke-count penalty
SIMPLIFY_TOLERANCE_RATIO = 0.03   # Simplification tolerance as a fraction of path extent


@dataclass(frozen=True)
class ShapeComparison:
    """Result of comparing two point sets.

    Attributes:
        distance: Symmetric Hausdorff distance in normalized units
            (``inf`` when either side is empty).
        similarity: Distance mapped to 0-100.
        user_path: Normalized user path that was compared.
        template_path: Normalized template path that was compared.
    """
    distance: float
    similarity: float
    user_path: NormalizedPath
    template_path: NormalizedPath


def directed_hausdorff(a: np.ndarray, b: np.ndarray) -> float:
    """Largest distance from a point of ``a`` to its nearest point of ``b``.

    Args:
        a: Nx2 array of points.
        b: Mx2 array of points.

    Returns:
        The directed Hausdorff distance, or ``inf`` if either array is empty.
    """
    if len(a) == 0 or len(b) == 0:
        return float('inf')
    dists, _ = cKDTree(b).query(a)
    return float(np.max(dists))


def hausdorff_distance(a: np.ndarray, b: np.ndarray) -> float:
    """Symmetric Hausdorff distance between two point sets."""
    return max(directed_hausdorff(a, b), directed_hausdorff(b, a))


def similarity_from_distance(distance: float, max_distance: float = HAUSDORFF_MAX_DISTANCE) -> float:
    """Map a distance to a similarity in [0, 100].

    Example:
        >>> similarity_from_distance(0.25)
        75.0
    """
    if not np.isfinite(distance):
        return 0.0
    return float(min(100.0, max(0.0, 100.0 * (1.0 - distance / max_distance))))


def stroke_count_penalty(user_count: int, template_count: int,
                         step: float = STROKE_COUNT_PENALTY_STEP,
                         cap: float = MAX_STROKE_COUNT_PENALTY) -> float:
    """Penalty for drawing a different number of strokes than the template."""
    return float(min(cap, step * abs(user_count - template_count)))


def prepare_path(points: Sequence[Point], tolerance_ratio: float = SIMPLIFY_TOLERANCE_RATIO) -> NormalizedPath:
    """Simplify then normalize a path.

    The simplification tolerance is ``tolerance_ratio`` times the path's
    bounding extent, which keeps the pipeline scale invariant.
    """
    extent = BBox.from_points(points).extent or 1.0
    simplified = simplify_path(points, tolerance_ratio * extent)
    return normalize_path(simplified)


def compare_shapes(user_points: Sequence[Point], template_points: Sequence[Point],
                   max_distance: float = HAUSDORFF_MAX_DISTANCE,
                   tolerance_ratio: float = SIMPLIFY_TOLERANCE_RATIO) -> ShapeComparison:
    """Compare two flattened paths.

    Args:
        user_points: All user points, strokes concatenated in order.
        template_points: All template points, strokes concatenated in order.
        max_distance: Distance that maps to a similarity of zero.
        tolerance_ratio: Simplification tolerance as a fraction of extent.

    Returns:
        ShapeComparison holding the distance, similarity and both paths.
    """
    user_path = prepare_path(user_points, tolerance_ratio)
    template_path = prepare_path(template_points, tolerance_ratio)
    distance = hausdorff_distance(path_array(user_path.points), path_array(template_path.points))
    similarity = similarity_from_distance(distance, max_distance)
    logger.debug("Hausdorff distance %.4f over %d/%d vertices -> similarity %.2f",
                 distance, len(user_path), len(template_path), similarity)
    return ShapeComparison(distance, similarity, user_path, template_path)


def _to_frame(points: Sequence[Point], frame: NormalizedPath) -> np.ndarray:
    arr = path_array(points)
    return (arr - (frame.center.x, frame.center.y)) / frame.scale


def paired_stroke_distances(user_strokes: Sequence[Stroke], template_strokes: Sequence[Stroke],
                            tolerance_ratio: float = SIMPLIFY_TOLERANCE_RATIO) -> List[float]:
    """Hausdorff distance between strokes paired by drawing order.

    Each side is normalized as a whole, so a stroke drawn in the wrong place
    relative to the others still registers. Each stroke is then simplified
    and compared with the template stroke at the same index. Only the first
    ``min(len(user), len(template))`` pairs are compared.

    Returns:
        One distance per compared pair, in stroke order.
    """
    user_frame = normalize_path(flatten_points(user_strokes))
    template_frame = normalize_path(flatten_points(template_strokes))

    distances = []
    for user_stroke, template_stroke in zip(user_strokes, template_strokes):
        u = simplify_path(user_stroke.points, tolerance_ratio * user_frame.scale)
        t = simplify_path(template_stroke.points, tolerance_ratio * template_frame.scale)
        distances.append(hausdorff_distance(_to_frame(u, user_frame), _to_frame(t, template_frame)))
    return distances
