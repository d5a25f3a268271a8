"""API service layer.

The module exports:
    ValidationService: Session-level validation plus vision assessments.
    VisionScorer: Interface for remote image-based scorers.
    HttpVisionScorer: requests-based VisionScorer.
    VisionAssessment: Parsed vision scorer reply.
"""

from .services import (
    HttpVisionScorer,
    ValidationService,
    VisionAssessment,
    VisionScorer,
    to_data_url,
)

__all__ = ['ValidationService', 'VisionScorer', 'HttpVisionScorer', 'VisionAssessment', 'to_data_url']
