"""Flask application setup and request helpers for the stroke grader service.

This module serves as the central configuration hub for the grader's HTTP
surface. It provides:

    - The Flask application instance shared with the route module
    - Application-wide logging setup
    - Lazily created template repository and validation service
    - Request parsing helpers that turn bad input into ``(response, 400)``

Architecture:
    - grader_config.py: Settings and environment overrides
    - grader_flask.py: App instance, shared state and helpers (this module)
    - grader_routes.py: Route handlers and the command-line entry point

Example:
    Parsing a validation request inside a route::

        from grader_flask import app, parse_json_body, parse_strokes

        @app.route('/my-route', methods=['POST'])
        def my_handler():
            body, err = parse_json_body()
            if err:
                return err
            strokes, err = parse_strokes(body.get('strokes'))
            if err:
                return err
            ...

Attributes:
    settings (GraderSettings): Settings resolved from the environment.
    app (Flask): The Flask application instance.
"""

import logging
import os
from typing import Any, Optional

from flask import Flask, jsonify, request

from grader_config import CANVAS_HEIGHT, CANVAS_WIDTH, MAX_CANVAS_SIDE, GraderSettings
from stroke_grader.api.services import HttpVisionScorer, ValidationService
from stroke_grader.domain.geometry import CharacterTemplate, Stroke
from stroke_grader.presentation.layers import LayeredCanvas
from stroke_grader.templates.repository import TemplateRepository
from stroke_grader.validation.config import ValidationConfig

# Module logger
logger = logging.getLogger(__name__)

MAX_DEVICE_PIXEL_RATIO = 4.0
VALIDATION_FLAGS = ('strict_order', 'require_template', 'use_basic')


def configure_logging(level: str = 'INFO', log_file: str | None = None) -> None:
    """Configure application-wide logging.

    Sets up structured logging with consistent format across all modules.
    Call this at application startup.

    Args:
        level: Log level string ('DEBUG', 'INFO', 'WARNING', 'ERROR').
        log_file: Optional path to log file. If None, logs to stderr only.

    Example:
        Configure at startup::

            from grader_flask import configure_logging
            configure_logging(level='DEBUG', log_file='grader.log')
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    formatter = logging.Formatter(
        fmt='%(asctime)s %(levelname)-8s [%(name)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Set third-party loggers to WARNING to reduce noise
    logging.getLogger('werkzeug').setLevel(logging.WARNING)
    logging.getLogger('PIL').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)

    logger.info("Logging configured: level=%s, file=%s", level, log_file or 'stderr')


settings = GraderSettings.from_env()

# Flask application
app = Flask(__name__)
app.config['MAX_CONTENT_LENGTH'] = 16 * 1024 * 1024

_repository: Optional[TemplateRepository] = None
_service: Optional[ValidationService] = None


def load_template_repository(path: str) -> TemplateRepository:
    """Load templates from ``path``, or return an empty repository.

    A missing or unreadable file is logged; the service still starts and
    validates in basic-effort mode.
    """
    if not os.path.exists(path):
        logger.info("No template file at %s, starting without templates", path)
        return TemplateRepository()
    try:
        return TemplateRepository.load_json(path)
    except (OSError, ValueError) as e:
        logger.error("Failed to load templates from %s: %s", path, e)
        return TemplateRepository()


def get_template_repository() -> TemplateRepository:
    global _repository
    if _repository is None:
        _repository = load_template_repository(settings.templates_path)
    return _repository


def set_template_repository(repository: Optional[TemplateRepository]) -> None:
    """Replace the shared repository (None reloads from settings on next use)."""
    global _repository
    _repository = repository


def get_validation_service() -> ValidationService:
    global _service
    if _service is None:
        scorer = None
        if settings.vision_endpoint:
            scorer = HttpVisionScorer(settings.vision_endpoint, settings.vision_api_key,
                                      timeout=settings.vision_timeout)
            logger.info("Vision scorer enabled: %s", settings.vision_endpoint)
        _service = ValidationService(vision_scorer=scorer, vision_timeout=settings.vision_timeout)
    return _service


def set_validation_service(service: Optional[ValidationService]) -> None:
    global _service
    _service = service


def error_response(message: str, status: int = 400):
    return jsonify(error=message), status


def parse_json_body() -> tuple[dict | None, tuple | None]:
    """Read the request body as a JSON object.

    Returns:
        tuple: ``(body, None)`` on success, or ``(None, error_response)``.
    """
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        return None, error_response("Request body must be a JSON object")
    return body, None


def parse_strokes(raw: Any) -> tuple[list[Stroke] | None, tuple | None]:
    """Parse a list of strokes from a request payload.

    Each stroke may be ``{"points": [...], "timestamp": t}`` or a bare list
    of points; points may be ``{"x", "y"}`` objects or ``[x, y]`` pairs.
    """
    if not isinstance(raw, list):
        return None, error_response("'strokes' must be a list")
    try:
        return [Stroke.from_any(s) for s in raw], None
    except (ValueError, TypeError) as e:
        return None, error_response(f"Invalid stroke data: {e}")


def parse_template(body: dict) -> tuple[CharacterTemplate | list[Stroke] | None, tuple | None]:
    """Resolve the template for a request.

    An inline ``template`` (template object or list of strokes) wins over a
    ``character`` looked up in the repository. An unknown character yields
    no template, which means basic-effort scoring unless the request sets
    ``require_template``. ``character`` must be a string whichever way the
    template is given.
    """
    character = body.get('character')
    if character is not None and not isinstance(character, str):
        return None, error_response("'character' must be a string")

    raw = body.get('template')
    if raw is not None:
        try:
            if isinstance(raw, dict):
                return CharacterTemplate.from_dict(raw), None
            if isinstance(raw, list):
                return [Stroke.from_any(s) for s in raw], None
        except (ValueError, TypeError) as e:
            return None, error_response(f"Invalid template data: {e}")
        return None, error_response("'template' must be an object or a list of strokes")

    if character is None:
        return None, None
    if not character:
        return None, error_response("'character' must be a non-empty string")
    template = get_template_repository().get(character)
    if template is None:
        logger.debug("No template for %r, using basic validation", character)
    return template, None


def parse_options(body: dict) -> tuple[tuple[ValidationConfig, dict] | None, tuple | None]:
    """Parse ``options`` into ``(config, flags)``.

    ``flags`` holds the boolean keyword arguments of ``validate``
    (``strict_order``, ``require_template``, ``use_basic``); each must be a
    JSON boolean when present. Every other key is passed to
    ``ValidationConfig.from_mapping``.
    """
    options = body.get('options') or {}
    if not isinstance(options, dict):
        return None, error_response("'options' must be an object")
    options = dict(options)
    flags = {}
    for name in VALIDATION_FLAGS:
        value = options.pop(name, False)
        if not isinstance(value, bool):
            return None, error_response(f"'{name}' must be true or false")
        flags[name] = value
    try:
        config = ValidationConfig.from_mapping(options)
    except ValueError as e:
        return None, error_response(str(e))
    return (config, flags), None


def parse_canvas(body: dict) -> tuple[LayeredCanvas | None, tuple | None]:
    """Build a LayeredCanvas from the ``canvas`` options of a request.

    ``canvas`` may carry ``width``, ``height`` (logical pixels) and
    ``devicePixelRatio``.
    """
    opts = body.get('canvas') or {}
    if not isinstance(opts, dict):
        return None, error_response("'canvas' must be an object")
    try:
        width = float(opts.get('width', CANVAS_WIDTH))
        height = float(opts.get('height', CANVAS_HEIGHT))
        dpr = float(opts.get('devicePixelRatio', 1.0))
    except (TypeError, ValueError):
        return None, error_response("Canvas width, height and devicePixelRatio must be numbers")
    if not 0 < dpr <= MAX_DEVICE_PIXEL_RATIO:
        return None, error_response(f"devicePixelRatio must be within 0-{MAX_DEVICE_PIXEL_RATIO}")
    if not (0 < width and 0 < height and max(width, height) * dpr <= MAX_CANVAS_SIDE):
        return None, error_response(f"Canvas must be at most {MAX_CANVAS_SIDE} device pixels per side")
    return LayeredCanvas(width, height, dpr), None
