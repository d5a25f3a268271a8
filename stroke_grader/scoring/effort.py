"""Template-less "basic effort" scoring.

Used when no reference strokes exist for a character. Total path length is a
weak proxy for effort: the score grows linearly with length up to
``max_length`` and a small per-stroke bonus is added once the drawing is at
least ``min_length`` long. The only contract is monotonicity: a longer drawing
or one with more strokes never scores lower, all else equal.
"""

from __future__ import annotations

from typing import Sequence

from ..domain.geometry import Stroke, drawing_length

BASIC_MIN_LENGTH = 100.0   # Below this the stroke bonus is withheld
BASIC_MAX_LENGTH = 1000.0  # Length that earns the full length score
BASIC_STROKE_BONUS = 10.0
BASIC_MAX_STROKE_BONUS = 20.0


def basic_effort_score(strokes: Sequence[Stroke],
                       min_length: float = BASIC_MIN_LENGTH,
                       max_length: float = BASIC_MAX_LENGTH,
                       stroke_bonus: float = BASIC_STROKE_BONUS,
                       max_stroke_bonus: float = BASIC_MAX_STROKE_BONUS) -> float:
    """Score a drawing on length and stroke count alone.

    Args:
        strokes: Strokes of the drawing.
        min_length: Total length needed before the stroke bonus applies.
        max_length: Total length that earns a length score of 100.
        stroke_bonus: Bonus per stroke.
        max_stroke_bonus: Cap on the stroke bonus.

    Returns:
        Score in [0, 100].

    Example:
        >>> from stroke_grader.domain import Point, Stroke
        >>> basic_effort_score([Stroke([Point(0, 0), Point(0, 20)])])
        2.0
    """
    total = drawing_length(strokes)
    length_score = min(100.0, total / max_length * 100.0)
    bonus = 0.0
    if total >= min_length:
        bonus = min(max_stroke_bonus, stroke_bonus * len(strokes))
    return min(100.0, length_score + bonus)
