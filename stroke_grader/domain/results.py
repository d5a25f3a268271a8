"""Validation result objects.

A practice attempt always resolves into a :class:`ValidationResult`, even when
the user drew nothing or the geometry could not be scored. The ``reason``
field tells those cases apart so the caller can distinguish "user didn't
draw" from "internal geometry error".

Example usage::

    from stroke_grader.domain.results import Grade, ValidationResult

    result = ValidationResult.no_input()
    assert result.grade is Grade.RETRY
    payload = result.to_dict()
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

from .geometry import Stroke


class Grade(Enum):
    """Discrete grade buckets, best first."""
    EXCELLENT = 'excellent'
    GOOD = 'good'
    ACCEPTABLE = 'acceptable'
    RETRY = 'retry'


class ResultReason(Enum):
    """Why a result has the accuracy it has.

    SCORED: Geometry was compared and graded normally.
    NO_INPUT: No usable strokes were submitted.
    INVALID_GEOMETRY: Coordinates were NaN or infinite.
    INVALID_TEMPLATE: Template scoring was requested but the template was empty.
    """
    SCORED = 'scored'
    NO_INPUT = 'no_input'
    INVALID_GEOMETRY = 'invalid_geometry'
    INVALID_TEMPLATE = 'invalid_template'


class ValidationMode(Enum):
    TEMPLATE = 'template'
    BASIC = 'basic'


NO_INPUT_FEEDBACK = 'Please draw the character to continue.'

# Feedback for results that never reached scoring
_UNSCORED_FEEDBACK = {
    ResultReason.NO_INPUT: NO_INPUT_FEEDBACK,
    ResultReason.INVALID_GEOMETRY: 'Your drawing could not be read. Please clear the canvas and try again.',
    ResultReason.INVALID_TEMPLATE: 'There is no guide for this character yet. Please try another one.',
}


@dataclass(frozen=True)
class Deviation:
    """A per-stroke finding attached to a result."""
    stroke_index: int
    issue: str

    def to_dict(self) -> dict:
        return {'strokeIndex': self.stroke_index, 'issue': self.issue}


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of one validation call.

    Invariant: ``passed == (accuracy >= passing_threshold)`` for the
    threshold the result was graded against.
    """
    accuracy: int
    passed: bool
    grade: Grade
    feedback: str
    reason: ResultReason = ResultReason.SCORED
    mode: Optional[ValidationMode] = None
    deviations: Tuple[Deviation, ...] = ()

    @property
    def is_scored(self) -> bool:
        return self.reason is ResultReason.SCORED

    @classmethod
    def no_input(cls, reason: ResultReason = ResultReason.NO_INPUT,
                 mode: Optional[ValidationMode] = None) -> ValidationResult:
        """The early-return result: zero accuracy, not passed, retry."""
        return cls(
            accuracy=0,
            passed=False,
            grade=Grade.RETRY,
            feedback=_UNSCORED_FEEDBACK[reason],
            reason=reason,
            mode=mode,
        )

    def to_dict(self) -> dict:
        """Serialize for JSON responses."""
        d = {
            'accuracy': self.accuracy,
            'passed': self.passed,
            'grade': self.grade.value,
            'feedback': self.feedback,
            'reason': self.reason.value,
            'mode': self.mode.value if self.mode else None,
        }
        if self.deviations:
            d['deviations'] = [dev.to_dict() for dev in self.deviations]
        return d

    def to_attempt_record(self, drawing: Sequence[Stroke]) -> dict:
        """Payload handed to the persistence layer after validation."""
        return {
            'accuracy': self.accuracy,
            'passed': self.passed,
            'drawingSnapshot': [s.to_dict() for s in drawing],
        }
