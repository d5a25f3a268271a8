"""Unit tests for the grader Flask app.

Tests logging setup, settings, request helpers from grader_flask.py and the
routes in grader_routes.py.
"""

import io
import json
import logging
import os
import tempfile
import unittest

from PIL import Image

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from stroke_grader.api.services import ValidationService, VisionAssessment, VisionScorer  # noqa: E402
from stroke_grader.domain.geometry import CharacterTemplate, Point, Stroke  # noqa: E402
from stroke_grader.templates.repository import TemplateRepository  # noqa: E402


def vertical_points(n=11):
    return [{'x': 0, 'y': i * 10} for i in range(n)]


def horizontal_points(n=11):
    return [{'x': i * 10, 'y': 0} for i in range(n)]


def make_repository():
    return TemplateRepository([
        CharacterTemplate(id='l', character='l', strokes=[
            Stroke(tuple(Point(0.0, float(i * 10)) for i in range(11))),
        ]),
    ])


class RecordingScorer(VisionScorer):
    """Vision scorer stand-in that records calls."""

    def __init__(self, score=88.0):
        self.score = score
        self.calls = []

    def assess(self, drawing_png, reference_png, character, stroke_guide=None):
        self.calls.append((drawing_png, reference_png, character, stroke_guide))
        return VisionAssessment(score=self.score, feedback='Looks good', passed=True)


class TestConfigureLogging(unittest.TestCase):
    """Tests for configure_logging function."""

    def setUp(self):
        """Save original logging state."""
        self.root_logger = logging.getLogger()
        self.original_handlers = self.root_logger.handlers.copy()
        self.original_level = self.root_logger.level

    def tearDown(self):
        """Restore original logging state."""
        self.root_logger.handlers = self.original_handlers
        self.root_logger.setLevel(self.original_level)

    def test_configure_logging_sets_level(self):
        """Test that configure_logging sets the log level."""
        from grader_flask import configure_logging

        configure_logging(level='DEBUG')

        self.assertEqual(self.root_logger.level, logging.DEBUG)

    def test_unknown_level_falls_back_to_info(self):
        from grader_flask import configure_logging

        configure_logging(level='CHATTY')

        self.assertEqual(self.root_logger.level, logging.INFO)

    def test_configure_logging_with_file(self):
        """Test that configure_logging can add a file handler."""
        from grader_flask import configure_logging

        with tempfile.NamedTemporaryFile(mode='w', suffix='.log', delete=False) as f:
            log_file = f.name

        try:
            configure_logging(level='INFO', log_file=log_file)

            file_handlers = [
                h for h in self.root_logger.handlers
                if isinstance(h, logging.FileHandler)
            ]
            self.assertEqual(len(file_handlers), 1)
        finally:
            for h in self.root_logger.handlers:
                h.close()
            os.unlink(log_file)

    def test_configure_logging_clears_existing_handlers(self):
        """Test that repeated calls do not stack handlers."""
        from grader_flask import configure_logging

        configure_logging(level='INFO')
        configure_logging(level='INFO')

        self.assertEqual(len(self.root_logger.handlers), 1)

    def test_quiets_third_party_loggers(self):
        from grader_flask import configure_logging

        configure_logging(level='DEBUG')

        self.assertEqual(logging.getLogger('urllib3').level, logging.WARNING)
        self.assertEqual(logging.getLogger('werkzeug').level, logging.WARNING)


class TestGraderSettings(unittest.TestCase):
    """Tests for GraderSettings.from_env."""

    def test_defaults(self):
        from grader_config import TEMPLATES_PATH, VISION_TIMEOUT, GraderSettings

        settings = GraderSettings.from_env({})

        self.assertEqual(settings.templates_path, TEMPLATES_PATH)
        self.assertIsNone(settings.vision_endpoint)
        self.assertEqual(settings.vision_timeout, VISION_TIMEOUT)
        self.assertEqual(settings.log_level, 'INFO')

    def test_environment_overrides(self):
        from grader_config import GraderSettings

        settings = GraderSettings.from_env({
            'GRADER_TEMPLATES_PATH': '/tmp/t.json',
            'GRADER_VISION_ENDPOINT': 'https://vision.test',
            'GRADER_VISION_API_KEY': 'k',
            'GRADER_VISION_TIMEOUT': '12.5',
            'GRADER_LOG_LEVEL': 'DEBUG',
        })

        self.assertEqual(settings.templates_path, '/tmp/t.json')
        self.assertEqual(settings.vision_endpoint, 'https://vision.test')
        self.assertEqual(settings.vision_api_key, 'k')
        self.assertEqual(settings.vision_timeout, 12.5)
        self.assertEqual(settings.log_level, 'DEBUG')

    def test_invalid_timeout_uses_default(self):
        """Unparseable or non-positive timeouts are ignored with a warning."""
        from grader_config import VISION_TIMEOUT, GraderSettings

        for raw in ('soon', '0', '-3'):
            with self.assertLogs('grader_config', level='WARNING'):
                settings = GraderSettings.from_env({'GRADER_VISION_TIMEOUT': raw})
            self.assertEqual(settings.vision_timeout, VISION_TIMEOUT)


class TestLoadTemplateRepository(unittest.TestCase):
    """Tests for load_template_repository."""

    def test_missing_file_gives_empty_repository(self):
        from grader_flask import load_template_repository

        repo = load_template_repository('/nonexistent/templates.json')

        self.assertEqual(len(repo), 0)

    def test_invalid_file_gives_empty_repository(self):
        """A corrupt template file is logged, not fatal."""
        from grader_flask import load_template_repository

        with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
            f.write('[{"character": "a", "strokes": [[[0, 0, 0]]]}]')
            path = f.name
        try:
            with self.assertLogs('grader_flask', level='ERROR'):
                repo = load_template_repository(path)
        finally:
            os.unlink(path)

        self.assertEqual(len(repo), 0)

    def test_loads_valid_file(self):
        from grader_flask import load_template_repository

        with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
            json.dump({'l': [[[0, 0], [0, 100]]]}, f)
            path = f.name
        try:
            repo = load_template_repository(path)
        finally:
            os.unlink(path)

        self.assertEqual(repo.list_characters(), ['l'])


class TestRequestHelpers(unittest.TestCase):
    """Tests for the request parsing helpers."""

    def setUp(self):
        from grader_flask import app, set_template_repository
        self.app = app
        set_template_repository(make_repository())

    def tearDown(self):
        from grader_flask import set_template_repository
        set_template_repository(None)

    def test_parse_json_body_rejects_non_object(self):
        from grader_flask import parse_json_body

        with self.app.test_request_context('/', method='POST', json=[1, 2]):
            body, err = parse_json_body()

        self.assertIsNone(body)
        self.assertEqual(err[1], 400)

    def test_parse_strokes_accepts_both_shapes(self):
        """Strokes may be point objects or bare [x, y] pair lists."""
        from grader_flask import parse_strokes

        with self.app.test_request_context('/'):
            strokes, err = parse_strokes([
                {'points': [{'x': 0, 'y': 0}, {'x': 1, 'y': 1}], 'timestamp': 5},
                [[2, 2], [3, 3]],
            ])

        self.assertIsNone(err)
        self.assertEqual(strokes[0].timestamp, 5.0)
        self.assertEqual(strokes[1].points[1], Point(3.0, 3.0))

    def test_parse_strokes_rejects_bad_points(self):
        from grader_flask import parse_strokes

        with self.app.test_request_context('/'):
            strokes, err = parse_strokes([[{'x': 0}]])

        self.assertIsNone(strokes)
        self.assertEqual(err[1], 400)

    def test_parse_template_inline_wins(self):
        """An inline template is used even when a character is given."""
        from grader_flask import parse_template

        with self.app.test_request_context('/'):
            template, err = parse_template({
                'character': 'l',
                'template': [[[0, 0], [100, 0]]],
            })

        self.assertIsNone(err)
        self.assertEqual(template[0].points[1], Point(100.0, 0.0))

    def test_parse_template_by_character(self):
        from grader_flask import parse_template

        with self.app.test_request_context('/'):
            template, err = parse_template({'character': 'l'})
            missing, err2 = parse_template({'character': 'q'})

        self.assertEqual(template.character, 'l')
        self.assertIsNone(missing)
        self.assertIsNone(err2)

    def test_parse_options(self):
        """Order and template flags are split from the thresholds."""
        from grader_flask import parse_options

        with self.app.test_request_context('/'):
            (config, flags), err = parse_options({
                'options': {'passing_threshold': 60, 'strict_order': True},
            })

        self.assertIsNone(err)
        self.assertEqual(config.passing_threshold, 60.0)
        self.assertEqual(flags, {'strict_order': True, 'require_template': False,
                                 'use_basic': False})

    def test_parse_options_requires_json_booleans(self):
        """String or numeric flags are rejected rather than coerced."""
        from grader_flask import parse_options

        with self.app.test_request_context('/'):
            for name in ('strict_order', 'require_template', 'use_basic'):
                for value in ('false', 'true', 0, 1, None):
                    parsed, err = parse_options({'options': {name: value}})
                    self.assertIsNone(parsed, f"{name}={value!r}")
                    self.assertEqual(err[1], 400)

    def test_parse_template_rejects_non_string_character(self):
        """character is type-checked even when an inline template is given."""
        from grader_flask import parse_template

        with self.app.test_request_context('/'):
            inline, err = parse_template({'character': 5, 'template': [[[0, 0], [0, 100]]]})
            looked_up, err2 = parse_template({'character': ['l']})

        self.assertIsNone(inline)
        self.assertEqual(err[1], 400)
        self.assertIsNone(looked_up)
        self.assertEqual(err2[1], 400)

    def test_parse_options_rejects_unknown_keys(self):
        from grader_flask import parse_options

        with self.app.test_request_context('/'):
            parsed, err = parse_options({'options': {'bogus': 1}})

        self.assertIsNone(parsed)
        self.assertEqual(err[1], 400)

    def test_parse_canvas_limits(self):
        """Device pixel ratio and buffer size are bounded."""
        from grader_flask import parse_canvas

        with self.app.test_request_context('/'):
            canvas, err = parse_canvas({'canvas': {'width': 100, 'height': 50,
                                                   'devicePixelRatio': 2}})
            _, bad_dpr = parse_canvas({'canvas': {'devicePixelRatio': 10}})
            _, too_big = parse_canvas({'canvas': {'width': 3000, 'devicePixelRatio': 2}})
            _, not_number = parse_canvas({'canvas': {'width': 'wide'}})

        self.assertIsNone(err)
        self.assertEqual(canvas.pixel_size, (200, 100))
        self.assertEqual(bad_dpr[1], 400)
        self.assertEqual(too_big[1], 400)
        self.assertEqual(not_number[1], 400)


class RouteTestCase(unittest.TestCase):
    """Base class wiring an isolated repository and service into the app."""

    scorer = None

    def setUp(self):
        """Create Flask test client."""
        import grader_flask
        import grader_routes  # noqa: F401

        self.service = ValidationService(vision_scorer=self.scorer)
        grader_flask.set_template_repository(make_repository())
        grader_flask.set_validation_service(self.service)
        grader_flask.app.config['TESTING'] = True
        self.client = grader_flask.app.test_client()

    def tearDown(self):
        import grader_flask

        self.service.shutdown()
        grader_flask.set_template_repository(None)
        grader_flask.set_validation_service(None)


class TestHealthRoute(RouteTestCase):

    def test_health(self):
        response = self.client.get('/health')

        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data['status'], 'ok')
        self.assertEqual(data['templates'], 1)
        self.assertFalse(data['vision'])


class TestValidateRoute(RouteTestCase):
    """Tests for POST /api/validate."""

    def test_matching_drawing_passes(self):
        """Tracing the 'l' template scores 100."""
        response = self.client.post('/api/validate', json={
            'strokes': [{'points': vertical_points()}],
            'character': 'l',
        })

        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data['accuracy'], 100)
        self.assertTrue(data['passed'])
        self.assertEqual(data['grade'], 'excellent')
        self.assertEqual(data['mode'], 'template')

    def test_wrong_shape_fails(self):
        response = self.client.post('/api/validate', json={
            'strokes': [{'points': horizontal_points()}],
            'character': 'l',
        })

        data = response.get_json()
        self.assertFalse(data['passed'])
        self.assertEqual(data['grade'], 'retry')

    def test_unknown_character_uses_basic_mode(self):
        response = self.client.post('/api/validate', json={
            'strokes': [{'points': vertical_points()}],
            'character': 'q',
        })

        self.assertEqual(response.get_json()['mode'], 'basic')

    def test_require_template_without_template(self):
        """A required but missing template is reported, not scored."""
        response = self.client.post('/api/validate', json={
            'strokes': [{'points': vertical_points()}],
            'character': 'q',
            'options': {'require_template': True},
        })

        data = response.get_json()
        self.assertEqual(response.status_code, 200)
        self.assertEqual(data['reason'], 'invalid_template')
        self.assertEqual(data['accuracy'], 0)

    def test_empty_drawing(self):
        response = self.client.post('/api/validate', json={'strokes': [], 'character': 'l'})

        data = response.get_json()
        self.assertEqual(data['reason'], 'no_input')
        self.assertFalse(data['passed'])

    def test_missing_strokes_is_400(self):
        response = self.client.post('/api/validate', json={'character': 'l'})

        self.assertEqual(response.status_code, 400)
        self.assertIn('error', response.get_json())

    def test_non_json_body_is_400(self):
        response = self.client.post('/api/validate', data='strokes',
                                    content_type='text/plain')

        self.assertEqual(response.status_code, 400)

    def test_invalid_option_is_400(self):
        response = self.client.post('/api/validate', json={
            'strokes': [],
            'options': {'passing_threshold': 150},
        })

        self.assertEqual(response.status_code, 400)

    def test_string_flag_is_400(self):
        """The string "false" does not switch strict ordering on."""
        response = self.client.post('/api/validate', json={
            'strokes': [{'points': vertical_points()}],
            'character': 'l',
            'options': {'strict_order': 'false'},
        })

        self.assertEqual(response.status_code, 400)
        self.assertIn('strict_order', response.get_json()['error'])

    def test_use_basic_with_known_character(self):
        """use_basic scores effort even though 'l' has a template."""
        response = self.client.post('/api/validate', json={
            'strokes': [{'points': horizontal_points()}],
            'character': 'l',
            'options': {'use_basic': True},
        })

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['mode'], 'basic')

    def test_custom_threshold(self):
        """A lower passing threshold lets a weak attempt pass."""
        response = self.client.post('/api/validate', json={
            'strokes': [{'points': horizontal_points()}],
            'character': 'l',
            'options': {'passing_threshold': 0, 'good_threshold': 0,
                        'excellent_threshold': 0},
        })

        self.assertTrue(response.get_json()['passed'])


class TestVisionRouteDisabled(RouteTestCase):
    """POST /api/validate/vision without a vision scorer."""

    def test_vision_is_null(self):
        response = self.client.post('/api/validate/vision', json={
            'strokes': [{'points': vertical_points()}],
            'character': 'l',
        })

        data = response.get_json()
        self.assertEqual(data['result']['accuracy'], 100)
        self.assertIsNone(data['vision'])


class TestVisionRouteEnabled(RouteTestCase):
    """POST /api/validate/vision with a vision scorer."""

    def setUp(self):
        self.scorer = RecordingScorer()
        super().setUp()

    def test_vision_added_to_result(self):
        """The geometric result is unchanged and vision rides along."""
        response = self.client.post('/api/validate/vision', json={
            'strokes': [{'points': vertical_points()}],
            'character': 'l',
            'strokeGuide': 'One line down',
        })

        data = response.get_json()
        self.assertEqual(data['result']['accuracy'], 100)
        self.assertEqual(data['vision']['score'], 88.0)

        drawing_png, reference_png, character, guide = self.scorer.calls[0]
        self.assertTrue(drawing_png.startswith(b'\x89PNG'))
        self.assertTrue(reference_png.startswith(b'\x89PNG'))
        self.assertEqual(character, 'l')
        self.assertEqual(guide, 'One line down')

    def test_vision_skipped_for_empty_drawing(self):
        response = self.client.post('/api/validate/vision', json={
            'strokes': [],
            'character': 'l',
        })

        self.assertIsNone(response.get_json()['vision'])
        self.assertEqual(self.scorer.calls, [])

    def test_non_string_character_with_inline_template_is_400(self):
        """A numeric character is a bad request, not a server error."""
        response = self.client.post('/api/validate/vision', json={
            'strokes': [{'points': vertical_points()}],
            'template': [vertical_points()],
            'character': 5,
        })

        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.scorer.calls, [])

    def test_non_string_stroke_guide_is_400(self):
        response = self.client.post('/api/validate/vision', json={
            'strokes': [{'points': vertical_points()}],
            'character': 'l',
            'strokeGuide': ['down'],
        })

        self.assertEqual(response.status_code, 400)

    def test_bad_canvas_is_400(self):
        response = self.client.post('/api/validate/vision', json={
            'strokes': [{'points': vertical_points()}],
            'canvas': {'devicePixelRatio': -1},
        })

        self.assertEqual(response.status_code, 400)


class TestTemplateRoutes(RouteTestCase):
    """Tests for GET /api/templates."""

    def test_list_templates(self):
        data = self.client.get('/api/templates').get_json()

        self.assertEqual(data['characters'], ['l'])
        self.assertEqual(data['templates'][0]['character'], 'l')

    def test_get_template(self):
        response = self.client.get('/api/templates/l')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.get_json()['strokes']), 1)

    def test_unknown_template_is_404(self):
        response = self.client.get('/api/templates/q')

        self.assertEqual(response.status_code, 404)
        self.assertIn('error', response.get_json())


class TestRenderRoute(RouteTestCase):
    """Tests for POST /api/render."""

    def test_renders_png(self):
        response = self.client.post('/api/render', json={
            'strokes': [{'points': [{'x': 50, 'y': 20}, {'x': 50, 'y': 80}]}],
            'character': 'l',
            'canvas': {'width': 100, 'height': 100, 'devicePixelRatio': 2},
        })

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.mimetype, 'image/png')
        image = Image.open(io.BytesIO(response.data))
        self.assertEqual(image.size, (200, 200))
        self.assertEqual(image.getpixel((100, 100)), (0x8B, 0x45, 0x13))

    def test_default_canvas_size(self):
        from grader_config import CANVAS_HEIGHT, CANVAS_WIDTH

        response = self.client.post('/api/render', json={})

        image = Image.open(io.BytesIO(response.data))
        self.assertEqual(image.size, (CANVAS_WIDTH, CANVAS_HEIGHT))

    def test_bad_strokes_is_400(self):
        response = self.client.post('/api/render', json={'strokes': 'nope'})

        self.assertEqual(response.status_code, 400)


if __name__ == '__main__':
    unittest.main()
