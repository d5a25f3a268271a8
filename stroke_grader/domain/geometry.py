"""Geometric value objects for stroke grading."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterator, List, Sequence, Tuple


@dataclass(frozen=True)
class Point:
    """Immutable 2D point in logical canvas pixels."""
    x: float
    y: float

    def distance_to(self, other: Point) -> float:
        """Euclidean distance to another point."""
        dx = self.x - other.x
        dy = self.y - other.y
        return math.sqrt(dx * dx + dy * dy)

    def __add__(self, other: Point) -> Point:
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Point) -> Point:
        return Point(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> Point:
        return Point(self.x * scalar, self.y * scalar)

    def __truediv__(self, scalar: float) -> Point:
        return Point(self.x / scalar, self.y / scalar)

    def is_finite(self) -> bool:
        """True when neither coordinate is NaN or infinite."""
        return math.isfinite(self.x) and math.isfinite(self.y)

    def to_dict(self) -> dict:
        """Convert to ``{'x': .., 'y': ..}`` for JSON serialization."""
        return {'x': float(self.x), 'y': float(self.y)}

    @classmethod
    def from_any(cls, value) -> Point:
        """Create from a Point, an ``{'x', 'y'}`` mapping or an ``[x, y]`` pair.

        Raises:
            ValueError: If the value has neither shape.
        """
        if isinstance(value, Point):
            return value
        if isinstance(value, dict):
            try:
                return cls(float(value['x']), float(value['y']))
            except (KeyError, TypeError) as exc:
                raise ValueError(f"Invalid point mapping: {value!r}") from exc
        if isinstance(value, (list, tuple)) and len(value) == 2:
            return cls(float(value[0]), float(value[1]))
        raise ValueError(f"Invalid point: {value!r}")


@dataclass(frozen=True)
class BBox:
    """Immutable axis-aligned bounding box."""
    x_min: float
    y_min: float
    x_max: float
    y_max: float

    @property
    def width(self) -> float:
        return self.x_max - self.x_min

    @property
    def height(self) -> float:
        return self.y_max - self.y_min

    @property
    def center(self) -> Point:
        return Point(
            (self.x_min + self.x_max) / 2,
            (self.y_min + self.y_max) / 2
        )

    @property
    def extent(self) -> float:
        """Larger of width and height."""
        return max(self.width, self.height)

    def to_dict(self) -> dict:
        return {
            'minX': self.x_min, 'maxX': self.x_max,
            'minY': self.y_min, 'maxY': self.y_max,
        }

    @classmethod
    def from_points(cls, points: Sequence[Point]) -> BBox:
        """Create bounding box containing all points."""
        if not points:
            return cls(0, 0, 0, 0)
        xs = [p.x for p in points]
        ys = [p.y for p in points]
        return cls(min(xs), min(ys), max(xs), max(ys))


@dataclass(frozen=True)
class Stroke:
    """One pointer-down to pointer-up gesture.

    A stroke with fewer than two points is degenerate: it carries no shape
    information and is never produced by capture.
    """
    points: Tuple[Point, ...] = ()
    timestamp: float = 0.0

    def __post_init__(self):
        # Accept any sequence, store a tuple
        if not isinstance(self.points, tuple):
            object.__setattr__(self, 'points', tuple(self.points))

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[Point]:
        return iter(self.points)

    def __getitem__(self, idx) -> Point:
        return self.points[idx]

    @property
    def is_degenerate(self) -> bool:
        return len(self.points) < 2

    @property
    def bbox(self) -> BBox:
        return BBox.from_points(self.points)

    def length(self) -> float:
        """Total arc length of stroke."""
        total = 0.0
        for i in range(1, len(self.points)):
            total += self.points[i].distance_to(self.points[i - 1])
        return total

    def is_finite(self) -> bool:
        return all(p.is_finite() for p in self.points)

    def translated(self, dx: float, dy: float) -> Stroke:
        offset = Point(dx, dy)
        return Stroke(tuple(p + offset for p in self.points), self.timestamp)

    def scaled(self, factor: float) -> Stroke:
        return Stroke(tuple(p * factor for p in self.points), self.timestamp)

    def to_dict(self) -> dict:
        return {
            'points': [p.to_dict() for p in self.points],
            'timestamp': self.timestamp,
        }

    @classmethod
    def from_any(cls, value) -> Stroke:
        """Create from a Stroke, a ``{'points': [...], 'timestamp': t}``
        mapping or a bare list of points."""
        if isinstance(value, Stroke):
            return value
        if isinstance(value, dict):
            if 'points' not in value:
                raise ValueError("Stroke mapping needs a 'points' list")
            points = value['points']
            timestamp = float(value.get('timestamp', 0.0) or 0.0)
        else:
            points = value
            timestamp = 0.0
        if not isinstance(points, (list, tuple)):
            raise ValueError(f"Invalid stroke points: {points!r}")
        return cls(tuple(Point.from_any(p) for p in points), timestamp)


@dataclass(frozen=True)
class NormalizedPath:
    """A path re-centred on its bounding box and divided by its extent.

    Attributes:
        points: Normalized points, roughly within [-0.5, 0.5] on both axes.
        center: Bounding-box midpoint of the source points.
        scale: Divisor applied to every point (1 for degenerate input).
    """
    points: Tuple[Point, ...]
    center: Point
    scale: float

    def __len__(self) -> int:
        return len(self.points)


@dataclass
class CharacterTemplate:
    """Reference stroke set for one character.

    Attributes:
        id: Stable template identifier.
        character: The character the strokes draw.
        strokes: Reference strokes in drawing order.
    """
    id: str
    character: str
    strokes: List[Stroke] = field(default_factory=list)

    @property
    def bounds(self) -> BBox:
        return BBox.from_points([p for s in self.strokes for p in s.points])

    @property
    def is_empty(self) -> bool:
        return not any(len(s) for s in self.strokes)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'character': self.character,
            'strokes': [[p.to_dict() for p in s.points] for s in self.strokes],
            'bounds': self.bounds.to_dict(),
        }

    @classmethod
    def from_dict(cls, d: dict) -> CharacterTemplate:
        character = d.get('character', '')
        return cls(
            id=str(d.get('id', character)),
            character=character,
            strokes=[Stroke.from_any(s) for s in d.get('strokes', [])],
        )


def flatten_points(strokes: Sequence[Stroke]) -> List[Point]:
    """Concatenate the points of all strokes into one list."""
    return [p for stroke in strokes for p in stroke.points]


def drawing_length(strokes: Sequence[Stroke]) -> float:
    """Sum of arc lengths over a drawing."""
    return sum(stroke.length() for stroke in strokes)
