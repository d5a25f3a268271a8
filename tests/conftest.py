"""Shared pytest fixtures for the stroke_grader test suite.

Fixtures:
    line_stroke: Single vertical stroke from (0, 0) to (0, 100)
    t_strokes: Two strokes forming a 'T'
    template_repository: TemplateRepository with 'l' and 't' templates
    flask_client: Flask test client with an isolated repository and service
    flask_app: The configured Flask app instance

Markers:
    slow: Mark test as slow-running (skip with -m "not slow")
    integration: Mark test as integration test
"""

import sys
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from stroke_grader.domain.geometry import CharacterTemplate, Point, Stroke  # noqa: E402
from stroke_grader.templates.repository import TemplateRepository  # noqa: E402


# -----------------------------------------------------------------------------
# Pytest Markers
# -----------------------------------------------------------------------------

def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: mark test as slow-running (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )


# -----------------------------------------------------------------------------
# Stroke Fixtures
# -----------------------------------------------------------------------------

def make_stroke(*coords, timestamp=0.0):
    """Build a Stroke from ``(x, y)`` pairs."""
    return Stroke(tuple(Point(float(x), float(y)) for x, y in coords), timestamp)


@pytest.fixture
def line_stroke():
    """Return a vertical stroke from (0, 0) to (0, 100) with 11 samples."""
    return make_stroke(*[(0, i * 10) for i in range(11)])


@pytest.fixture
def t_strokes():
    """Return strokes forming a 'T': horizontal bar then vertical stem."""
    bar = make_stroke(*[(10 + i * 10, 10) for i in range(9)])
    stem = make_stroke(*[(50, 10 + i * 10) for i in range(9)])
    return [bar, stem]


@pytest.fixture
def template_repository(line_stroke, t_strokes):
    """Return a repository holding 'l' (one stroke) and 't' (two strokes)."""
    return TemplateRepository([
        CharacterTemplate(id='l', character='l', strokes=[line_stroke]),
        CharacterTemplate(id='t', character='t', strokes=list(t_strokes)),
    ])


# -----------------------------------------------------------------------------
# Flask Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def flask_app(template_repository):
    """Return the configured Flask app with an isolated repository and service.

    Returns:
        flask.Flask: The Flask application instance.
    """
    import grader_flask
    import grader_routes  # noqa: F401 - registers routes
    from stroke_grader.api.services import ValidationService

    grader_flask.set_template_repository(template_repository)
    grader_flask.set_validation_service(ValidationService())
    grader_flask.app.config['TESTING'] = True
    yield grader_flask.app
    grader_flask.set_template_repository(None)
    grader_flask.set_validation_service(None)


@pytest.fixture
def flask_client(flask_app):
    """Create a Flask test client for the grader app.

    Example:
        def test_health(flask_client):
            response = flask_client.get('/health')
            assert response.status_code == 200
    """
    with flask_app.test_client() as client:
        yield client
