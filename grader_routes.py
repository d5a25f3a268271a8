#!/usr/bin/env python3
"""Flask routes for the stroke grader service.

Routes:
    GET  /health                     Liveness and loaded-template count
    POST /api/validate               Geometric validation of a drawing
    POST /api/validate/vision        Geometric validation plus vision assessment
    GET  /api/templates              All templates
    GET  /api/templates/<character>  One template
    POST /api/render                 Composite PNG of the practice canvas

Validation request body::

    {
        "strokes": [{"points": [{"x": 0, "y": 0}, ...], "timestamp": 0}, ...],
        "character": "a",            # or an inline "template"
        "options": {"passing_threshold": 70, "strict_order": false, "use_basic": false},
        "canvas": {"width": 400, "height": 400, "devicePixelRatio": 2}
    }
"""

import argparse
import io
import logging

from flask import jsonify, send_file

from grader_flask import (
    app,
    configure_logging,
    error_response,
    get_template_repository,
    get_validation_service,
    load_template_repository,
    parse_canvas,
    parse_json_body,
    parse_options,
    parse_strokes,
    parse_template,
    set_template_repository,
    settings,
)
from stroke_grader import __version__
from stroke_grader.validation.orchestrator import validate

logger = logging.getLogger(__name__)


def _parse_validation_request():
    body, err = parse_json_body()
    if err:
        return None, err
    strokes, err = parse_strokes(body.get('strokes'))
    if err:
        return None, err
    template, err = parse_template(body)
    if err:
        return None, err
    options, err = parse_options(body)
    if err:
        return None, err
    return (body, strokes, template, options), None


@app.route('/health')
def health():
    return jsonify(
        status='ok',
        version=__version__,
        templates=len(get_template_repository()),
        vision=get_validation_service().vision_enabled,
    )


@app.route('/api/validate', methods=['POST'])
def api_validate():
    parsed, err = _parse_validation_request()
    if err:
        return err
    _, strokes, template, (config, flags) = parsed
    result = validate(strokes, template, config, **flags)
    logger.info("Validated %d strokes: accuracy=%d grade=%s reason=%s",
                len(strokes), result.accuracy, result.grade.value, result.reason.value)
    return jsonify(result.to_dict())


@app.route('/api/validate/vision', methods=['POST'])
def api_validate_vision():
    parsed, err = _parse_validation_request()
    if err:
        return err
    body, strokes, template, (config, flags) = parsed
    canvas, err = parse_canvas(body)
    if err:
        return err
    stroke_guide = body.get('strokeGuide')
    if stroke_guide is not None and not isinstance(stroke_guide, str):
        return error_response("'strokeGuide' must be a string")

    # Geometric result first; the vision path can only add to it
    result = validate(strokes, template, config, **flags)

    character = body.get('character') or getattr(template, 'character', '') or ''
    vision = None
    if result.is_scored and get_validation_service().vision_enabled:
        canvas.set_strokes(strokes)
        if character:
            canvas.set_reference_glyph(character)
        vision = get_validation_service().assess(
            canvas.to_png_bytes(include_reference=False),
            canvas.reference_png_bytes(),
            character,
            stroke_guide,
        )
    return jsonify(result=result.to_dict(), vision=vision.to_dict() if vision else None)


@app.route('/api/templates')
def api_templates():
    repo = get_template_repository()
    return jsonify(characters=repo.list_characters(), templates=repo.to_list())


@app.route('/api/templates/<character>')
def api_template(character):
    template = get_template_repository().get(character)
    if template is None:
        return error_response(f"No template for {character!r}", 404)
    return jsonify(template.to_dict())


@app.route('/api/render', methods=['POST'])
def api_render():
    body, err = parse_json_body()
    if err:
        return err
    strokes, err = parse_strokes(body.get('strokes', []))
    if err:
        return err
    canvas, err = parse_canvas(body)
    if err:
        return err

    canvas.set_strokes(strokes)
    character = body.get('character')
    if character:
        if not isinstance(character, str):
            return error_response("'character' must be a string")
        canvas.set_reference_glyph(character)
    show_reference = body.get('showReference', True)
    png = canvas.to_png_bytes(include_reference=bool(show_reference))
    return send_file(io.BytesIO(png), mimetype='image/png')


def main() -> None:
    """Parse command-line arguments and run the grader service.

    Command-line Arguments:
        --host: Interface to bind. Defaults to 127.0.0.1.
        --port: Port to listen on. Defaults to 5000.
        --templates: Template JSON file, overriding GRADER_TEMPLATES_PATH.
        --debug: Run Flask in debug mode.
    """
    parser = argparse.ArgumentParser(description='Run the stroke grader service')
    parser.add_argument('--host', default='127.0.0.1', help='Interface to bind')
    parser.add_argument('--port', type=int, default=5000, help='Port to listen on')
    parser.add_argument('--templates', default=None, help='Template JSON file')
    parser.add_argument('--debug', action='store_true', help='Enable Flask debug mode')
    args = parser.parse_args()

    configure_logging(level='DEBUG' if args.debug else settings.log_level, log_file=settings.log_file)
    if args.templates:
        set_template_repository(load_template_repository(args.templates))

    app.run(debug=args.debug, host=args.host, port=args.port)


if __name__ == '__main__':
    main()
