"""Shared configuration for the stroke grader service.

This module centralizes settings used by:
    - grader_flask.py (logging, template repository, vision scorer)
    - grader_routes.py (canvas rendering defaults)

Every setting has a default and can be overridden through the environment:

    GRADER_TEMPLATES_PATH   JSON file of character templates
    GRADER_VISION_ENDPOINT  URL of the remote vision scorer (unset = disabled)
    GRADER_VISION_API_KEY   Bearer token for the vision scorer
    GRADER_VISION_TIMEOUT   Seconds to wait for a vision assessment
    GRADER_LOG_LEVEL        Root log level
    GRADER_LOG_FILE         Optional log file
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# Template definitions loaded at startup
TEMPLATES_PATH = os.path.join(BASE_DIR, 'templates.json')

# Remote vision scorer
VISION_TIMEOUT = 30.0

# Logging
LOG_LEVEL = 'INFO'

# Canvas rendering defaults for /api/render
CANVAS_WIDTH = 400
CANVAS_HEIGHT = 400
MAX_CANVAS_SIDE = 4096


@dataclass(frozen=True)
class GraderSettings:
    """Resolved service settings.

    Attributes:
        templates_path: JSON file of template definitions.
        vision_endpoint: Vision scorer URL, or None to disable it.
        vision_api_key: Optional bearer token for the vision scorer.
        vision_timeout: Seconds to wait for a vision assessment.
        log_level: Root log level name.
        log_file: Optional log file path.
    """
    templates_path: str = TEMPLATES_PATH
    vision_endpoint: Optional[str] = None
    vision_api_key: Optional[str] = None
    vision_timeout: float = VISION_TIMEOUT
    log_level: str = LOG_LEVEL
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] = os.environ) -> 'GraderSettings':
        """Build settings from ``GRADER_*`` environment variables."""
        timeout = VISION_TIMEOUT
        raw_timeout = environ.get('GRADER_VISION_TIMEOUT')
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError:
                logger.warning("Ignoring invalid GRADER_VISION_TIMEOUT=%r", raw_timeout)
            if timeout <= 0:
                logger.warning("Ignoring non-positive GRADER_VISION_TIMEOUT=%r", raw_timeout)
                timeout = VISION_TIMEOUT
        return cls(
            templates_path=environ.get('GRADER_TEMPLATES_PATH') or TEMPLATES_PATH,
            vision_endpoint=environ.get('GRADER_VISION_ENDPOINT') or None,
            vision_api_key=environ.get('GRADER_VISION_API_KEY') or None,
            vision_timeout=timeout,
            log_level=environ.get('GRADER_LOG_LEVEL') or LOG_LEVEL,
            log_file=environ.get('GRADER_LOG_FILE') or None,
        )
