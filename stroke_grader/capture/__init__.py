"""Pointer capture.

Exports the capture state machine (:class:`CaptureState` and its transition
functions), the raw input types and the :class:`StrokeCapture` wrapper.
"""

from .session import (
    CanvasHost,
    CaptureState,
    PointerEvent,
    StrokeCapture,
    clear,
    pointer_cancel,
    pointer_down,
    pointer_leave,
    pointer_move,
    pointer_up,
    undo,
)

__all__ = [
    'CanvasHost', 'PointerEvent', 'CaptureState', 'StrokeCapture',
    'pointer_down', 'pointer_move', 'pointer_up', 'pointer_cancel', 'pointer_leave',
    'undo', 'clear',
]
