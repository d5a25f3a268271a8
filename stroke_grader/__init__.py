"""Stroke Grader Package.

Stroke capture and shape-similarity scoring for handwriting practice. A
learner draws a character on a canvas; the drawing is compared with a
reference template and turned into an accuracy score, a grade and a short
feedback message.

Architecture Overview:
    The pipeline is a chain of pure functions behind a thin session layer:

    - capture turns pointer events into strokes
    - analysis simplifies (Douglas-Peucker) and normalizes paths
    - scoring measures Hausdorff similarity, or basic effort without a template
    - validation grades the score into a ValidationResult
    - presentation renders the layered practice canvas with Pillow
    - api wraps validation and the optional remote vision scorer

    The Flask app (grader_flask.py / grader_routes.py) exposes the same
    operations over HTTP.

The package is organized into the following modules:
    domain: Value objects (Point, BBox, Stroke, CharacterTemplate) and
        result types (Grade, ResultReason, ValidationResult).
    capture: Pointer event state machine and StrokeCapture session.
    analysis: Path simplification and normalization.
    scoring: Hausdorff shape comparison and the basic-effort heuristic.
    validation: ValidationConfig, grading and the validate() orchestrator.
    presentation: LayeredCanvas (grid, reference and ink layers).
    templates: TemplateRepository of character templates.
    api: ValidationService and vision scorer clients.

Example usage:
    Validating a drawing::

        from stroke_grader.domain import Point, Stroke
        from stroke_grader.validation import validate

        template = [Stroke([Point(0, 0), Point(0, 100)])]
        drawing = [Stroke([Point(10, 5), Point(11, 104)])]
        result = validate(drawing, template)
        print(result.accuracy, result.grade.value, result.feedback)

Attributes:
    __version__ (str): Package version string.
    __all__ (list): List of public symbols exported by this package.
"""

from .domain import (
    BBox,
    CharacterTemplate,
    Grade,
    Point,
    ResultReason,
    Stroke,
    ValidationResult,
)
from .validation import ValidationConfig, validate

__version__ = '0.1.0'

__all__ = [
    'Point', 'BBox', 'Stroke', 'CharacterTemplate',
    'Grade', 'ResultReason', 'ValidationResult',
    'ValidationConfig', 'validate',
]
