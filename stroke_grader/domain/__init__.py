"""Domain objects for stroke grading.

Geometry classes:
    Point: Immutable 2D point with vector operations.
    BBox: Immutable bounding box.
    Stroke: One pointer-down to pointer-up gesture.
    NormalizedPath: A path centred and rescaled into a canonical frame.
    CharacterTemplate: Reference stroke set for one character.

Result classes:
    Grade: Discrete grade buckets.
    ResultReason: Why a result has the accuracy it has.
    ValidationMode: Template-based or basic-effort scoring.
    Deviation: Per-stroke finding.
    ValidationResult: Sole output of the validation orchestrator.

Example usage::

    from stroke_grader.domain import Point, Stroke

    stroke = Stroke([Point(0, 0), Point(0, 100)])
    print(f"Stroke length: {stroke.length()}")
"""

from .geometry import (
    BBox,
    CharacterTemplate,
    NormalizedPath,
    Point,
    Stroke,
    drawing_length,
    flatten_points,
)
from .results import Deviation, Grade, ResultReason, ValidationMode, ValidationResult

__all__ = [
    'Point', 'BBox', 'Stroke', 'NormalizedPath', 'CharacterTemplate',
    'flatten_points', 'drawing_length',
    'Grade', 'ResultReason', 'ValidationMode', 'Deviation', 'ValidationResult',
]
