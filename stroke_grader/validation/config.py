"""Configuration for the validation orchestrator.

Every threshold used while scoring and grading lives on one
:class:`ValidationConfig`, defaulting to the module constants of the scoring
package.

Example usage::

    from stroke_grader.validation.config import ValidationConfig

    config = ValidationConfig(passing_threshold=80)
    config = ValidationConfig.from_mapping({'passing_threshold': 60})
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, fields
from typing import Any, Mapping

from ..scoring import effort, hausdorff

DEFAULT_PASSING_THRESHOLD = 70
EXCELLENT_THRESHOLD = 90
GOOD_THRESHOLD = 75
STROKE_DEVIATION_DISTANCE = 0.25  # Paired-stroke distance reported as a deviation


@dataclass(frozen=True)
class ValidationConfig:
    """Thresholds for scoring and grading.

    Attributes:
        passing_threshold: Minimum accuracy that passes (0-100).
        excellent_threshold: Minimum accuracy graded excellent.
        good_threshold: Minimum accuracy graded good.
        stroke_count_penalty_step: Points lost per stroke-count difference.
        max_stroke_count_penalty: Cap on the stroke-count penalty.
        hausdorff_max_distance: Normalized distance that scores zero.
        simplify_tolerance: Simplification tolerance as a fraction of the
            path's bounding extent.
        basic_min_length: Path length needed before basic-effort stroke bonus.
        basic_max_length: Path length earning a full basic-effort length score.
        basic_stroke_bonus: Basic-effort bonus per stroke.
        basic_max_stroke_bonus: Cap on the basic-effort stroke bonus.
        stroke_deviation_distance: Per-stroke distance above which a stroke
            is reported as differing from its guide (strict order only).
    """
    passing_threshold: float = DEFAULT_PASSING_THRESHOLD
    excellent_threshold: float = EXCELLENT_THRESHOLD
    good_threshold: float = GOOD_THRESHOLD
    stroke_count_penalty_step: float = hausdorff.STROKE_COUNT_PENALTY_STEP
    max_stroke_count_penalty: float = hausdorff.MAX_STROKE_COUNT_PENALTY
    hausdorff_max_distance: float = hausdorff.HAUSDORFF_MAX_DISTANCE
    simplify_tolerance: float = hausdorff.SIMPLIFY_TOLERANCE_RATIO
    basic_min_length: float = effort.BASIC_MIN_LENGTH
    basic_max_length: float = effort.BASIC_MAX_LENGTH
    basic_stroke_bonus: float = effort.BASIC_STROKE_BONUS
    basic_max_stroke_bonus: float = effort.BASIC_MAX_STROKE_BONUS
    stroke_deviation_distance: float = STROKE_DEVIATION_DISTANCE

    def __post_init__(self):
        for f in fields(self):
            if not math.isfinite(getattr(self, f.name)):
                raise ValueError(f"{f.name} must be a finite number, got {getattr(self, f.name)}")
        for name in ('passing_threshold', 'excellent_threshold', 'good_threshold'):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise ValueError(f"{name} must be within 0-100, got {value}")
        if self.excellent_threshold < self.good_threshold:
            raise ValueError("excellent_threshold must not be below good_threshold")
        if self.hausdorff_max_distance <= 0:
            raise ValueError("hausdorff_max_distance must be positive")
        if self.basic_max_length <= 0:
            raise ValueError("basic_max_length must be positive")
        if self.basic_min_length < 0:
            raise ValueError("basic_min_length must be non-negative")
        for name in ('stroke_count_penalty_step', 'max_stroke_count_penalty', 'simplify_tolerance',
                     'basic_stroke_bonus', 'basic_max_stroke_bonus', 'stroke_deviation_distance'):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any] | None) -> ValidationConfig:
        """Build a config from a mapping, rejecting unknown keys.

        Raises:
            ValueError: On an unknown key or an out-of-range value.
        """
        if not values:
            return cls()
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"Unknown validation option(s): {', '.join(unknown)}")
        try:
            return cls(**{k: float(v) for k, v in values.items()})
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid validation options: {exc}") from exc
