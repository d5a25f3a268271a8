"""Validation: configuration, grading and the orchestrator."""

from .config import (
    DEFAULT_PASSING_THRESHOLD,
    EXCELLENT_THRESHOLD,
    GOOD_THRESHOLD,
    ValidationConfig,
)
from .grading import BASIC_FEEDBACK, TEMPLATE_FEEDBACK, feedback_for, grade_for, is_passing
from .orchestrator import validate, validate_against_template, validate_basic

__all__ = [
    'ValidationConfig', 'DEFAULT_PASSING_THRESHOLD', 'EXCELLENT_THRESHOLD', 'GOOD_THRESHOLD',
    'grade_for', 'feedback_for', 'is_passing', 'TEMPLATE_FEEDBACK', 'BASIC_FEEDBACK',
    'validate', 'validate_against_template', 'validate_basic',
]
