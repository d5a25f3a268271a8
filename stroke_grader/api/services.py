"""Service layer for practice-attempt validation.

This module wraps the geometric validator and the optional remote vision
scorer behind small service objects the HTTP layer and other callers use.

The module contains:
    ValidationService: Holds a ValidationConfig and the last result of a
        practice session, and runs vision assessments off the calling thread.
    VisionScorer: Abstract interface for a remote image-based scorer.
    HttpVisionScorer: VisionScorer that POSTs data-URL images to an HTTP
        endpoint with ``requests``.
    VisionAssessment: Parsed vision scorer reply.

The vision path is an optional enhancement. Its failures (network errors,
timeouts, malformed replies) are logged and turn into ``None``; they never
change the geometric result.

Example usage:
    Session-style validation::

        from stroke_grader.api.services import ValidationService

        service = ValidationService()
        result = service.validate(strokes, template)
        if service.check_passing():
            save_attempt(result.to_attempt_record(strokes))
        service.clear()

    Adding a vision assessment::

        scorer = HttpVisionScorer('https://example.test/evaluate', api_key='...')
        service = ValidationService(vision_scorer=scorer, vision_timeout=20)
        vision = service.assess(canvas.to_png_bytes(), canvas.reference_png_bytes(), 'A')
"""

from __future__ import annotations

import base64
import logging
import math
import threading
import time
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import requests

from ..domain.geometry import Stroke
from ..domain.results import ValidationResult
from ..validation.config import ValidationConfig
from ..validation.orchestrator import TemplateLike, validate

# Logger for service errors
_logger = logging.getLogger(__name__)

DEFAULT_VISION_TIMEOUT = 30.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 1.0


def to_data_url(png: bytes) -> str:
    """Encode PNG bytes as a ``data:image/png;base64,...`` URL."""
    return 'data:image/png;base64,' + base64.b64encode(png).decode('ascii')


@dataclass(frozen=True)
class VisionAssessment:
    """Reply of a vision scorer.

    Attributes:
        score: Score from 0-100.
        strengths: What the drawing does well.
        improvements: What to work on.
        feedback: Free-text encouragement.
        passed: The scorer's own pass verdict.
    """
    score: float
    strengths: List[str] = field(default_factory=list)
    improvements: List[str] = field(default_factory=list)
    feedback: str = ''
    passed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'score': self.score,
            'strengths': list(self.strengths),
            'improvements': list(self.improvements),
            'feedback': self.feedback,
            'passed': self.passed,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> VisionAssessment:
        """Parse a reply; a wrapping ``{"evaluation": {...}}`` is unwrapped.

        Raises:
            ValueError: If the reply has no numeric score in 0-100.
        """
        if not isinstance(d, dict):
            raise ValueError(f"Vision reply must be an object, got {type(d).__name__}")
        d = d.get('evaluation', d)
        try:
            score = float(d['score'])
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Vision reply has no valid score: {d!r}") from exc
        if not 0 <= score <= 100:
            raise ValueError(f"Vision score out of range: {score}")
        return cls(
            score=score,
            strengths=[str(s) for s in d.get('strengths') or []],
            improvements=[str(s) for s in d.get('improvements') or []],
            feedback=str(d.get('feedback') or ''),
            passed=bool(d.get('passed', False)),
        )


class VisionScorer(ABC):
    """Remote image-based scorer."""

    @abstractmethod
    def assess(self, drawing_png: bytes, reference_png: Optional[bytes], character: str,
               stroke_guide: Optional[str] = None) -> Optional[VisionAssessment]:
        """Score a rendered drawing.

        Implementations return None instead of raising on any failure.
        """


class HttpVisionScorer(VisionScorer):
    """Vision scorer reached over HTTP.

    Sends ``{userDrawing, referenceImage, characterName, strokeGuide}`` as
    JSON, images as PNG data URLs, and expects a
    ``{score, strengths, improvements, feedback, passed}`` reply (optionally
    wrapped in ``{"evaluation": ...}``). Rate limiting (429), server errors
    and connection failures are retried with exponential backoff.

    Attributes:
        endpoint: URL to POST to.
        timeout: Per-request timeout in seconds.
        max_retries: Attempts before giving up.
        base_delay: Base delay in seconds for exponential backoff.
        session: requests session carrying auth headers.
    """

    def __init__(self, endpoint: str, api_key: Optional[str] = None,
                 timeout: float = DEFAULT_VISION_TIMEOUT,
                 session: Optional[requests.Session] = None,
                 max_retries: int = DEFAULT_MAX_RETRIES,
                 base_delay: float = DEFAULT_RETRY_DELAY):
        self.endpoint = endpoint
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.base_delay = base_delay
        self.session = session or requests.Session()
        self.session.headers.update({'Accept': 'application/json'})
        if api_key:
            self.session.headers['Authorization'] = f'Bearer {api_key}'

    def retry_delay(self, attempt: int, retry_after: Optional[str] = None) -> float:
        """Seconds to wait before the next attempt.

        A numeric ``Retry-After`` value wins. Anything else (an HTTP date,
        garbage, a negative or non-finite number) falls back to exponential
        backoff.
        """
        if retry_after:
            try:
                delay = float(retry_after)
            except (TypeError, ValueError):
                _logger.debug("Ignoring non-numeric Retry-After %r", retry_after)
            else:
                if math.isfinite(delay) and delay >= 0:
                    return delay
        return self.base_delay * (2 ** attempt)

    def post_with_retry(self, payload: Dict[str, Any]) -> requests.Response:
        """POST ``payload``, retrying transient failures.

        There is no wait after the final attempt.

        Raises:
            requests.RequestException: If all retries are exhausted.
        """
        last_exception = None

        for attempt in range(self.max_retries):
            final = attempt + 1 == self.max_retries
            try:
                response = self.session.post(self.endpoint, json=payload, timeout=self.timeout)

                if response.status_code == 429 or response.status_code >= 500:
                    retry_after = response.headers.get('Retry-After') if response.status_code == 429 else None
                    if final:
                        _logger.warning("Vision scorer returned %d on final attempt %d/%d",
                                        response.status_code, attempt + 1, self.max_retries)
                        break
                    delay = self.retry_delay(attempt, retry_after)
                    _logger.warning(
                        "Vision scorer returned %d, waiting %.1fs (attempt %d/%d)",
                        response.status_code, delay, attempt + 1, self.max_retries
                    )
                    time.sleep(delay)
                    continue

                return response

            except (requests.ConnectionError, requests.Timeout) as e:
                last_exception = e
                if final:
                    _logger.warning("Connection error on %s: %s (final attempt %d/%d)",
                                    self.endpoint, e, attempt + 1, self.max_retries)
                    break
                delay = self.retry_delay(attempt)
                _logger.warning(
                    "Connection error on %s: %s, waiting %.1fs (attempt %d/%d)",
                    self.endpoint, e, delay, attempt + 1, self.max_retries
                )
                time.sleep(delay)

        if last_exception:
            raise last_exception
        raise requests.RequestException(f"Max retries exceeded for {self.endpoint}")

    def assess(self, drawing_png: bytes, reference_png: Optional[bytes], character: str,
               stroke_guide: Optional[str] = None) -> Optional[VisionAssessment]:
        payload = {
            'userDrawing': to_data_url(drawing_png),
            'referenceImage': to_data_url(reference_png) if reference_png else None,
            'characterName': character,
            'strokeGuide': stroke_guide,
        }
        try:
            response = self.post_with_retry(payload)
        except requests.RequestException as e:
            _logger.warning("Vision request to %s failed: %s", self.endpoint, e)
            return None

        if response.status_code >= 400:
            _logger.warning("Vision scorer returned %d for %r", response.status_code, character)
            return None

        try:
            return VisionAssessment.from_dict(response.json())
        except ValueError as e:
            _logger.warning("Invalid vision reply for %r: %s", character, e)
            return None


@dataclass
class ValidationService:
    """Validation for one practice session.

    Keeps the most recent result so a UI can ask whether the learner may move
    on, and runs vision assessments on a small thread pool so they never block
    geometric validation.

    Attributes:
        config: Thresholds used for every validation.
        vision_scorer: Optional remote scorer.
        vision_timeout: Seconds to wait for a vision assessment.
    """
    config: ValidationConfig = field(default_factory=ValidationConfig)
    vision_scorer: Optional[VisionScorer] = None
    vision_timeout: float = DEFAULT_VISION_TIMEOUT
    max_workers: int = 2

    def __post_init__(self):
        self._last_result: Optional[ValidationResult] = None
        self._lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None

    @property
    def last_result(self) -> Optional[ValidationResult]:
        return self._last_result

    def validate(self, strokes: Sequence[Stroke], template: TemplateLike = None, *,
                 strict_order: bool = False, require_template: bool = False,
                 use_basic: bool = False) -> ValidationResult:
        """Validate a drawing and remember the result."""
        result = validate(strokes, template, self.config, strict_order=strict_order,
                          require_template=require_template, use_basic=use_basic)
        with self._lock:
            self._last_result = result
        return result

    def check_passing(self) -> bool:
        """True when the last validated attempt passed."""
        result = self._last_result
        return result is not None and result.passed

    def clear(self) -> None:
        with self._lock:
            self._last_result = None

    @property
    def vision_enabled(self) -> bool:
        return self.vision_scorer is not None

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=self.max_workers,
                                                    thread_name_prefix='vision')
            return self._executor

    def assess(self, drawing_png: bytes, reference_png: Optional[bytes], character: str,
               stroke_guide: Optional[str] = None) -> Optional[VisionAssessment]:
        """Run a vision assessment, waiting at most ``vision_timeout`` seconds.

        Returns:
            VisionAssessment, or None if no scorer is configured or the
            assessment failed or timed out.
        """
        if self.vision_scorer is None:
            return None
        future = self._get_executor().submit(
            self.vision_scorer.assess, drawing_png, reference_png, character, stroke_guide)
        try:
            return future.result(timeout=self.vision_timeout)
        except FutureTimeoutError:
            future.cancel()
            _logger.warning("Vision assessment for %r timed out after %.1fs",
                            character, self.vision_timeout)
            return None
        except Exception as e:
            _logger.error("Unexpected error in vision assessment: %s", e, exc_info=True)
            return None

    def shutdown(self) -> None:
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=False)
