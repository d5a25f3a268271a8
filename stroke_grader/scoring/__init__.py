"""Similarity and effort scoring.

Key functions:
    compare_shapes: Flattened Hausdorff comparison of user and template.
    paired_stroke_distances: Per-stroke distances for stroke-order scoring.
    stroke_count_penalty: Penalty for a stroke-count mismatch.
    basic_effort_score: Template-less length heuristic.
"""

from .effort import (
    BASIC_MAX_LENGTH,
    BASIC_MAX_STROKE_BONUS,
    BASIC_MIN_LENGTH,
    BASIC_STROKE_BONUS,
    basic_effort_score,
)
from .hausdorff import (
    HAUSDORFF_MAX_DISTANCE,
    MAX_STROKE_COUNT_PENALTY,
    SIMPLIFY_TOLERANCE_RATIO,
    STROKE_COUNT_PENALTY_STEP,
    ShapeComparison,
    compare_shapes,
    directed_hausdorff,
    hausdorff_distance,
    paired_stroke_distances,
    prepare_path,
    similarity_from_distance,
    stroke_count_penalty,
)

__all__ = [
    'ShapeComparison', 'compare_shapes', 'prepare_path',
    'directed_hausdorff', 'hausdorff_distance', 'similarity_from_distance',
    'stroke_count_penalty', 'paired_stroke_distances', 'basic_effort_score',
    'HAUSDORFF_MAX_DISTANCE', 'STROKE_COUNT_PENALTY_STEP', 'MAX_STROKE_COUNT_PENALTY',
    'SIMPLIFY_TOLERANCE_RATIO', 'BASIC_MIN_LENGTH', 'BASIC_MAX_LENGTH',
    'BASIC_STROKE_BONUS', 'BASIC_MAX_STROKE_BONUS',
]
