"""Validation orchestrator.

Turns a drawing (and optionally a template) into a :class:`ValidationResult`.
Classification runs in a fixed order:

    1. ``None`` instead of a stroke sequence -> ``TypeError`` (caller bug)
    2. Non-finite coordinates                -> INVALID_GEOMETRY
    3. No stroke with two or more points     -> NO_INPUT
    4. use_basic                             -> basic-effort heuristic
    5. Empty template with require_template  -> INVALID_TEMPLATE
    6. Template present                      -> Hausdorff similarity - penalty
    7. Otherwise                             -> basic-effort heuristic

Every outcome after step 1 is a result, never an exception, so a UI can
always render something.

Example usage::

    from stroke_grader.validation import ValidationConfig, validate

    result = validate(strokes, template, ValidationConfig(passing_threshold=80))
    if result.passed:
        advance()
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence, Union

from ..domain.geometry import CharacterTemplate, Stroke, flatten_points
from ..domain.results import Deviation, ResultReason, ValidationMode, ValidationResult
from ..scoring.effort import basic_effort_score
from ..scoring.hausdorff import (
    compare_shapes,
    paired_stroke_distances,
    similarity_from_distance,
    stroke_count_penalty,
)
from .config import ValidationConfig
from .grading import feedback_for, grade_for, is_passing

logger = logging.getLogger(__name__)

TemplateLike = Union[CharacterTemplate, Sequence[Stroke], None]

MISSING_STROKE = 'missing stroke'
EXTRA_STROKE = 'extra stroke'
SHAPE_DIFFERS = 'stroke shape differs from the guide'


def _round_accuracy(value: float) -> int:
    """Clamp to 0-100 and round half up."""
    return int(math.floor(min(100.0, max(0.0, value)) + 0.5))


def _template_strokes(template: TemplateLike) -> List[Stroke]:
    if template is None:
        return []
    if isinstance(template, CharacterTemplate):
        template = template.strokes
    strokes = [Stroke.from_any(s) for s in template]
    return [s for s in strokes if len(s) > 0]


def _graded(accuracy: int, mode: ValidationMode, config: ValidationConfig,
            deviations: Sequence[Deviation] = ()) -> ValidationResult:
    grade = grade_for(accuracy, config)
    return ValidationResult(
        accuracy=accuracy,
        passed=is_passing(accuracy, config),
        grade=grade,
        feedback=feedback_for(grade, mode),
        mode=mode,
        deviations=tuple(deviations),
    )


def _count_deviations(user_count: int, template_count: int) -> List[Deviation]:
    if user_count < template_count:
        return [Deviation(i, MISSING_STROKE) for i in range(user_count, template_count)]
    return [Deviation(i, EXTRA_STROKE) for i in range(template_count, user_count)]


def validate_against_template(strokes: Sequence[Stroke], template: Sequence[Stroke],
                              config: ValidationConfig,
                              strict_order: bool = False) -> ValidationResult:
    """Score usable strokes against a non-empty template."""
    comparison = compare_shapes(
        flatten_points(strokes), flatten_points(template),
        max_distance=config.hausdorff_max_distance,
        tolerance_ratio=config.simplify_tolerance,
    )
    distance = comparison.distance
    deviations = _count_deviations(len(strokes), len(template))

    if strict_order and len(strokes) == len(template):
        paired = paired_stroke_distances(strokes, template, config.simplify_tolerance)
        deviations.extend(
            Deviation(i, SHAPE_DIFFERS) for i, d in enumerate(paired)
            if d > config.stroke_deviation_distance
        )
        distance = max([distance] + paired)

    similarity = similarity_from_distance(distance, config.hausdorff_max_distance)
    penalty = stroke_count_penalty(
        len(strokes), len(template),
        step=config.stroke_count_penalty_step,
        cap=config.max_stroke_count_penalty,
    )
    accuracy = _round_accuracy(similarity - penalty)
    logger.debug("Template score: distance=%.4f similarity=%.2f penalty=%.1f accuracy=%d",
                 distance, similarity, penalty, accuracy)
    return _graded(accuracy, ValidationMode.TEMPLATE, config, deviations)


def validate_basic(strokes: Sequence[Stroke], config: ValidationConfig) -> ValidationResult:
    """Score usable strokes with the template-less effort heuristic."""
    score = basic_effort_score(
        strokes,
        min_length=config.basic_min_length,
        max_length=config.basic_max_length,
        stroke_bonus=config.basic_stroke_bonus,
        max_stroke_bonus=config.basic_max_stroke_bonus,
    )
    accuracy = _round_accuracy(score)
    logger.debug("Basic score: strokes=%d score=%.2f accuracy=%d", len(strokes), score, accuracy)
    return _graded(accuracy, ValidationMode.BASIC, config)


def validate(strokes: Sequence[Stroke], template: TemplateLike = None,
             config: Optional[ValidationConfig] = None, *,
             strict_order: bool = False,
             require_template: bool = False,
             use_basic: bool = False) -> ValidationResult:
    """Validate a drawing.

    Args:
        strokes: The user's drawing. Items may be Strokes or bare point
            sequences.
        template: A CharacterTemplate, a sequence of reference strokes
            (Strokes or point sequences), or None for basic-effort scoring.
        config: Thresholds; defaults to ``ValidationConfig()``.
        strict_order: Also compare strokes pairwise by drawing order.
        require_template: Treat a missing or empty template as an error
            (INVALID_TEMPLATE) instead of falling back to basic scoring.
        use_basic: Score with the basic-effort heuristic even when a
            template is given. Overrides ``require_template``.

    Returns:
        ValidationResult. Deterministic for identical inputs.

    Raises:
        TypeError: If ``strokes`` is None.
        ValueError: If a stroke or template item is not a point sequence.
    """
    if strokes is None:
        raise TypeError("strokes must be a sequence of Stroke, not None")
    config = config or ValidationConfig()
    strokes = [Stroke.from_any(s) for s in strokes]

    if not all(s.is_finite() for s in strokes):
        logger.warning("Rejecting drawing with non-finite coordinates")
        return ValidationResult.no_input(ResultReason.INVALID_GEOMETRY)

    usable = [s for s in strokes if not s.is_degenerate]
    if not usable:
        logger.debug("No usable strokes (%d submitted)", len(strokes))
        return ValidationResult.no_input()

    if use_basic:
        return validate_basic(usable, config)

    reference = _template_strokes(template)
    if not all(s.is_finite() for s in reference):
        logger.warning("Template contains non-finite coordinates")
        return ValidationResult.no_input(ResultReason.INVALID_TEMPLATE, ValidationMode.TEMPLATE)

    if reference:
        return validate_against_template(usable, reference, config, strict_order)
    if require_template:
        logger.warning("Template scoring requested but template is empty")
        return ValidationResult.no_input(ResultReason.INVALID_TEMPLATE, ValidationMode.TEMPLATE)
    return validate_basic(usable, config)
