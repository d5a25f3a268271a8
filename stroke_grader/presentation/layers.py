"""Layered practice canvas rendered with Pillow.

The canvas keeps three RGBA surfaces that share one logical coordinate space
and one device pixel ratio:

    grid:       white background, grid lines and centre guides
    reference:  faint guide image or glyph, can be hidden
    ink:        the user's strokes

Each surface is ``round(logical_size * device_pixel_ratio)`` pixels. Strokes
are stored relative to the surface centre in units of its shorter side, the
same frame the reference guide is laid out in. :meth:`resize` re-derives the
buffers from the new display size and redraws the ink instead of losing it,
and a change of aspect ratio moves ink and guide together without stretching
either.

Example usage::

    from stroke_grader.presentation import LayeredCanvas

    canvas = LayeredCanvas(400, 400, device_pixel_ratio=2)
    canvas.set_reference_glyph('A')
    canvas.add_stroke(stroke)
    png = canvas.to_png_bytes()
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from PIL import Image, ImageColor, ImageDraw, ImageFont

from ..domain.geometry import Point, Stroke

logger = logging.getLogger(__name__)

# Default styling
GRID_SIZE = 40
GRID_COLOR = '#E5E7EB'
GUIDE_COLOR = '#D1D5DB'
BACKGROUND_COLOR = '#FFFFFF'
INK_COLOR = '#8B4513'
INK_WIDTH = 3
REFERENCE_OPACITY = 0.15
REFERENCE_IMAGE_FILL = 0.8   # Fraction of the surface a reference image may cover
REFERENCE_GLYPH_SIZE = 0.6   # Glyph size as a fraction of the shorter side


@dataclass(frozen=True)
class CanvasStyle:
    grid_size: int = GRID_SIZE
    grid_color: str = GRID_COLOR
    guide_color: str = GUIDE_COLOR
    background_color: str = BACKGROUND_COLOR
    ink_color: str = INK_COLOR
    ink_width: float = INK_WIDTH
    reference_opacity: float = REFERENCE_OPACITY


def _rgba(color: str, opacity: float = 1.0) -> Tuple[int, int, int, int]:
    r, g, b = ImageColor.getrgb(color)[:3]
    return (r, g, b, int(round(255 * opacity)))


class LayeredCanvas:
    """Grid, reference and ink layers over one logical surface.

    Attributes:
        width: Logical width in CSS-style pixels.
        height: Logical height in CSS-style pixels.
        device_pixel_ratio: Physical pixels per logical pixel.
        show_reference: Whether the reference layer is composited.
    """

    def __init__(self, width: float, height: float, device_pixel_ratio: float = 1.0,
                 style: Optional[CanvasStyle] = None):
        self.style = style or CanvasStyle()
        self.show_reference = True
        self._unit_strokes: List[Tuple[Tuple[float, float], ...]] = []
        self._reference_image: Optional[Image.Image] = None
        self._reference_glyph: Optional[Tuple[str, Optional[str]]] = None
        self._configure(width, height, device_pixel_ratio)

    def _configure(self, width: float, height: float, device_pixel_ratio: float) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Canvas size must be positive, got {width}x{height}")
        if device_pixel_ratio <= 0:
            raise ValueError(f"device_pixel_ratio must be positive, got {device_pixel_ratio}")
        self.width = float(width)
        self.height = float(height)
        self.device_pixel_ratio = float(device_pixel_ratio)
        size = self.pixel_size
        self.grid = Image.new('RGBA', size, (0, 0, 0, 0))
        self.reference = Image.new('RGBA', size, (0, 0, 0, 0))
        self.ink = Image.new('RGBA', size, (0, 0, 0, 0))
        self.draw_grid()
        self.draw_reference()
        self.redraw_ink()

    @property
    def pixel_size(self) -> Tuple[int, int]:
        """Physical buffer size ``(width, height)``."""
        return (max(1, round(self.width * self.device_pixel_ratio)),
                max(1, round(self.height * self.device_pixel_ratio)))

    def resize(self, width: float, height: float, device_pixel_ratio: Optional[float] = None) -> None:
        """Re-derive buffers from the current display size and redraw every layer."""
        dpr = self.device_pixel_ratio if device_pixel_ratio is None else device_pixel_ratio
        logger.debug("Resizing canvas %.0fx%.0f@%.2f -> %.0fx%.0f@%.2f",
                     self.width, self.height, self.device_pixel_ratio, width, height, dpr)
        self._configure(width, height, dpr)

    # Grid layer

    def draw_grid(self) -> None:
        s = self.style
        dpr = self.device_pixel_ratio
        draw = ImageDraw.Draw(self.grid)
        w, h = self.pixel_size
        draw.rectangle([0, 0, w, h], fill=_rgba(s.background_color))

        line = max(1, round(dpr))
        step = s.grid_size
        x = 0
        while x <= self.width:
            draw.line([(x * dpr, 0), (x * dpr, h)], fill=_rgba(s.grid_color), width=line)
            x += step
        y = 0
        while y <= self.height:
            draw.line([(0, y * dpr), (w, y * dpr)], fill=_rgba(s.grid_color), width=line)
            y += step

        guide = max(1, round(2 * dpr))
        draw.line([(w / 2, 0), (w / 2, h)], fill=_rgba(s.guide_color), width=guide)
        draw.line([(0, h / 2), (w, h / 2)], fill=_rgba(s.guide_color), width=guide)

    # Reference layer

    def set_reference_image(self, image: Image.Image) -> None:
        """Use an image as the reference guide."""
        self._reference_image = image.convert('RGBA')
        self._reference_glyph = None
        self.draw_reference()

    def set_reference_glyph(self, char: str, font_path: Optional[str] = None) -> None:
        """Use a rendered character as the reference guide."""
        self._reference_glyph = (char, font_path)
        self._reference_image = None
        self.draw_reference()

    def clear_reference(self) -> None:
        self._reference_image = None
        self._reference_glyph = None
        self.draw_reference()

    def toggle_reference(self) -> bool:
        self.show_reference = not self.show_reference
        return self.show_reference

    @property
    def has_reference(self) -> bool:
        return self._reference_image is not None or self._reference_glyph is not None

    def draw_reference(self) -> None:
        self.reference = Image.new('RGBA', self.pixel_size, (0, 0, 0, 0))
        if self._reference_image is not None:
            self._draw_reference_image(self._reference_image)
        elif self._reference_glyph is not None:
            self._draw_reference_glyph(*self._reference_glyph)

    def _draw_reference_image(self, image: Image.Image) -> None:
        w, h = self.pixel_size
        scale = min(w / image.width, h / image.height) * REFERENCE_IMAGE_FILL
        size = (max(1, round(image.width * scale)), max(1, round(image.height * scale)))
        scaled = image.resize(size, Image.LANCZOS)
        opacity = self.style.reference_opacity
        scaled.putalpha(scaled.getchannel('A').point(lambda a: int(a * opacity)))
        self.reference.alpha_composite(scaled, ((w - size[0]) // 2, (h - size[1]) // 2))

    def _load_font(self, font_path: Optional[str], size: int) -> ImageFont.ImageFont:
        if font_path:
            try:
                return ImageFont.truetype(font_path, size)
            except OSError:
                logger.warning("Could not load font %s, using default font", font_path)
        return ImageFont.load_default(size=size)

    def _draw_reference_glyph(self, char: str, font_path: Optional[str]) -> None:
        w, h = self.pixel_size
        font = self._load_font(font_path, max(1, round(min(w, h) * REFERENCE_GLYPH_SIZE)))
        draw = ImageDraw.Draw(self.reference)
        draw.text((w / 2, h / 2), char, font=font, anchor='mm',
                  fill=_rgba(self.style.ink_color, self.style.reference_opacity))

    # Ink layer

    @property
    def _side(self) -> float:
        return min(self.width, self.height)

    def _to_unit(self, point: Point) -> Tuple[float, float]:
        side = self._side
        return ((point.x - self.width / 2) / side, (point.y - self.height / 2) / side)

    def _to_logical(self, unit: Tuple[float, float]) -> Tuple[float, float]:
        side = self._side
        return (self.width / 2 + unit[0] * side, self.height / 2 + unit[1] * side)

    def _to_pixels(self, unit: Tuple[float, float]) -> Tuple[float, float]:
        x, y = self._to_logical(unit)
        return (x * self.device_pixel_ratio, y * self.device_pixel_ratio)

    def add_stroke(self, stroke: Stroke) -> None:
        """Add a stroke in logical pixel coordinates and draw it."""
        unit = tuple(self._to_unit(p) for p in stroke.points)
        self._unit_strokes.append(unit)
        self._draw_unit_stroke(unit)

    def set_strokes(self, strokes: Sequence[Stroke]) -> None:
        self._unit_strokes = [tuple(self._to_unit(p) for p in s.points) for s in strokes]
        self.redraw_ink()

    def undo(self) -> None:
        if self._unit_strokes:
            self._unit_strokes.pop()
            self.redraw_ink()

    def clear_ink(self) -> None:
        self._unit_strokes = []
        self.redraw_ink()

    @property
    def strokes(self) -> List[Stroke]:
        """Strokes in the current logical coordinate space."""
        return [
            Stroke(tuple(Point(*self._to_logical(u)) for u in unit))
            for unit in self._unit_strokes
        ]

    def redraw_ink(self) -> None:
        self.ink = Image.new('RGBA', self.pixel_size, (0, 0, 0, 0))
        for unit in self._unit_strokes:
            self._draw_unit_stroke(unit)

    def _draw_unit_stroke(self, unit: Sequence[Tuple[float, float]]) -> None:
        if not unit:
            return
        draw = ImageDraw.Draw(self.ink)
        color = _rgba(self.style.ink_color)
        width = max(1, round(self.style.ink_width * self.device_pixel_ratio))
        pixels = [self._to_pixels(u) for u in unit]
        if len(pixels) > 1:
            draw.line(pixels, fill=color, width=width, joint='curve')
        # Round caps
        r = width / 2
        for x, y in (pixels[0], pixels[-1]):
            draw.ellipse([x - r, y - r, x + r, y + r], fill=color)

    # Output

    def composite(self, include_reference: Optional[bool] = None) -> Image.Image:
        """Flatten the visible layers into one RGB image."""
        if include_reference is None:
            include_reference = self.show_reference
        out = self.grid.copy()
        if include_reference:
            out.alpha_composite(self.reference)
        out.alpha_composite(self.ink)
        return out.convert('RGB')

    def to_png_bytes(self, include_reference: Optional[bool] = None) -> bytes:
        buf = io.BytesIO()
        self.composite(include_reference).save(buf, format='PNG')
        return buf.getvalue()

    def reference_png_bytes(self) -> Optional[bytes]:
        """Reference layer alone on the background, or None without a reference."""
        if not self.has_reference:
            return None
        out = Image.new('RGBA', self.pixel_size, _rgba(self.style.background_color))
        out.alpha_composite(self.reference)
        buf = io.BytesIO()
        out.convert('RGB').save(buf, format='PNG')
        return buf.getvalue()
