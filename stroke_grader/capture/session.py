"""Pointer capture as an explicit state machine.

Raw pointer events are translated into logical canvas points and accumulated
into strokes. The state is an immutable :class:`CaptureState` value and every
transition is a plain function returning a new state, so capture can be
driven and tested without any UI toolkit:

    Idle --pointer_down--> Drawing(partial) --pointer_up--> Idle

Rules:
    - Only one pointer draws at a time. A pointer-down from a second pointer
      while a stroke is in progress is ignored, as are moves and ups from
      any pointer other than the active one.
    - A finished stroke with fewer than two points (a tap) is discarded.
    - Points with NaN or infinite coordinates are never stored.

:class:`StrokeCapture` wraps the state for callers that prefer an object and
fires ``stroke_complete`` listeners when a stroke is appended.

Example usage::

    from stroke_grader.capture import CanvasHost, PointerEvent, StrokeCapture

    capture = StrokeCapture(CanvasHost(left=10, top=20, width=300, height=300))
    capture.add_listener(lambda stroke: print(len(stroke)))
    capture.on_pointer_down(PointerEvent(1, 110, 120))
    capture.on_pointer_move(PointerEvent(1, 110, 220))
    capture.on_pointer_up(PointerEvent(1, 110, 220))
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional, Tuple

from ..domain.geometry import Point, Stroke

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CanvasHost:
    """Geometry of the element hosting the drawing surface.

    Attributes:
        left: Element's left edge in logical (CSS) pixels.
        top: Element's top edge in logical pixels.
        width: Logical width of the drawing surface.
        height: Logical height of the drawing surface.
        device_pixel_ratio: Device pixels per logical pixel.
        reports_device_pixels: True when the input device reports event
            coordinates in device pixels rather than logical pixels.
    """
    left: float = 0.0
    top: float = 0.0
    width: float = 0.0
    height: float = 0.0
    device_pixel_ratio: float = 1.0
    reports_device_pixels: bool = False

    def __post_init__(self):
        if self.device_pixel_ratio <= 0:
            raise ValueError(f"device_pixel_ratio must be positive, got {self.device_pixel_ratio}")

    def to_logical(self, x: float, y: float) -> Point:
        """Translate raw event coordinates into canvas-local logical pixels."""
        ratio = self.device_pixel_ratio if self.reports_device_pixels else 1.0
        return Point(x / ratio - self.left, y / ratio - self.top)


@dataclass(frozen=True)
class PointerEvent:
    """A raw pointer sample as delivered by the host."""
    pointer_id: int
    x: float
    y: float
    timestamp: Optional[float] = None


@dataclass(frozen=True)
class CaptureState:
    """Snapshot of one drawing session.

    Attributes:
        strokes: Completed strokes, oldest first.
        active_pointer: Pointer id of the stroke in progress, None when idle.
        partial: Points of the stroke in progress.
    """
    strokes: Tuple[Stroke, ...] = ()
    active_pointer: Optional[int] = None
    partial: Tuple[Point, ...] = ()

    @property
    def is_drawing(self) -> bool:
        return self.active_pointer is not None


def _event_point(event: PointerEvent, host: CanvasHost) -> Optional[Point]:
    point = host.to_logical(event.x, event.y)
    if not point.is_finite():
        logger.warning("Dropping non-finite pointer sample (%r, %r)", event.x, event.y)
        return None
    return point


def pointer_down(state: CaptureState, event: PointerEvent, host: CanvasHost) -> CaptureState:
    """Start a stroke, unless one is already in progress."""
    if state.is_drawing:
        logger.debug("Ignoring pointer %s: pointer %s is active", event.pointer_id, state.active_pointer)
        return state
    point = _event_point(event, host)
    if point is None:
        return state
    return replace(state, active_pointer=event.pointer_id, partial=(point,))


def pointer_move(state: CaptureState, event: PointerEvent, host: CanvasHost) -> CaptureState:
    """Append a point to the stroke in progress."""
    if not state.is_drawing or event.pointer_id != state.active_pointer:
        return state
    point = _event_point(event, host)
    if point is None:
        return state
    return replace(state, partial=state.partial + (point,))


def pointer_up(state: CaptureState, event: Optional[PointerEvent] = None) -> Tuple[CaptureState, Optional[Stroke]]:
    """Finish the stroke in progress.

    Args:
        state: Current capture state.
        event: The pointer-up event. When given, it must come from the
            active pointer; None finishes the stroke unconditionally
            (pointer leaving the surface).

    Returns:
        Tuple of (new state, completed stroke). The stroke is None when
        nothing was appended: no stroke in progress, a foreign pointer, or
        a tap with fewer than two points.
    """
    if not state.is_drawing:
        return state, None
    if event is not None and event.pointer_id != state.active_pointer:
        return state, None

    idle = replace(state, active_pointer=None, partial=())
    if len(state.partial) < 2:
        logger.debug("Discarding tap with %d point(s)", len(state.partial))
        return idle, None

    timestamp = event.timestamp if event is not None and event.timestamp is not None else time.time()
    stroke = Stroke(state.partial, timestamp)
    return replace(idle, strokes=state.strokes + (stroke,)), stroke


# Cancel and leave finish the stroke the same way a pointer-up does
pointer_cancel = pointer_up
pointer_leave = pointer_up


def undo(state: CaptureState) -> CaptureState:
    """Remove the most recently completed stroke."""
    if not state.strokes:
        return state
    return replace(state, strokes=state.strokes[:-1])


def clear(state: CaptureState) -> CaptureState:
    """Drop every stroke, including one in progress."""
    return CaptureState()


@dataclass
class StrokeCapture:
    """Stateful wrapper around the capture transitions.

    Attributes:
        host: Canvas host used to translate event coordinates.
        state: Current capture state.
    """
    host: CanvasHost = field(default_factory=CanvasHost)
    state: CaptureState = field(default_factory=CaptureState)
    _listeners: List[Callable[[Stroke], None]] = field(default_factory=list, repr=False)

    @property
    def strokes(self) -> Tuple[Stroke, ...]:
        return self.state.strokes

    @property
    def is_drawing(self) -> bool:
        return self.state.is_drawing

    def add_listener(self, callback: Callable[[Stroke], None]) -> None:
        """Register a ``stroke_complete`` callback."""
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[Stroke], None]) -> None:
        self._listeners.remove(callback)

    def set_host(self, host: CanvasHost) -> None:
        """Replace the host geometry, e.g. after the element moved."""
        self.host = host

    def on_pointer_down(self, event: PointerEvent) -> None:
        self.state = pointer_down(self.state, event, self.host)

    def on_pointer_move(self, event: PointerEvent) -> None:
        self.state = pointer_move(self.state, event, self.host)

    def on_pointer_up(self, event: Optional[PointerEvent] = None) -> Optional[Stroke]:
        self.state, stroke = pointer_up(self.state, event)
        if stroke is not None:
            for callback in list(self._listeners):
                callback(stroke)
        return stroke

    def on_pointer_cancel(self, event: Optional[PointerEvent] = None) -> Optional[Stroke]:
        return self.on_pointer_up(event)

    def undo(self) -> None:
        self.state = undo(self.state)

    def clear(self) -> None:
        self.state = clear(self.state)
