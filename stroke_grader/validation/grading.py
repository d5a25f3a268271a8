"""Grade bucketing and feedback text."""

from __future__ import annotations

from typing import Optional

from ..domain.results import Grade, ValidationMode
from .config import ValidationConfig

TEMPLATE_FEEDBACK = {
    Grade.EXCELLENT: 'Excellent! Your stroke is very accurate.',
    Grade.GOOD: 'Good job! Your character looks great.',
    Grade.ACCEPTABLE: 'Well done! You can move to the next character.',
    Grade.RETRY: 'Try again. Follow the guide lines more carefully.',
}

BASIC_FEEDBACK = {
    Grade.EXCELLENT: 'Excellent work! Your character looks perfect.',
    Grade.GOOD: 'Great job! Keep practicing.',
    Grade.ACCEPTABLE: 'Good effort! You can continue.',
    Grade.RETRY: 'Try drawing more carefully.',
}


def is_passing(accuracy: float, config: Optional[ValidationConfig] = None) -> bool:
    config = config or ValidationConfig()
    return accuracy >= config.passing_threshold


def grade_for(accuracy: float, config: Optional[ValidationConfig] = None) -> Grade:
    """Bucket an accuracy into a grade.

    Anything below the passing threshold is ``RETRY`` regardless of the other
    bucket boundaries, so ``passed`` and ``grade != RETRY`` always agree.

    Example:
        >>> grade_for(89), grade_for(90)
        (<Grade.GOOD: 'good'>, <Grade.EXCELLENT: 'excellent'>)
    """
    config = config or ValidationConfig()
    if not is_passing(accuracy, config):
        return Grade.RETRY
    if accuracy >= config.excellent_threshold:
        return Grade.EXCELLENT
    if accuracy >= config.good_threshold:
        return Grade.GOOD
    return Grade.ACCEPTABLE


def feedback_for(grade: Grade, mode: ValidationMode) -> str:
    table = BASIC_FEEDBACK if mode is ValidationMode.BASIC else TEMPLATE_FEEDBACK
    return table[grade]
