"""Path analysis: simplification and normalization.

Both are pure, stateless functions over point sequences:
    simplify_path: Douglas-Peucker vertex reduction.
    normalize_path: Centre on the bounding box and divide by its extent.
"""

from .normalize import normalize_path, path_array
from .simplify import DEFAULT_TOLERANCE, perpendicular_distances, simplify_path

__all__ = [
    'simplify_path', 'perpendicular_distances', 'DEFAULT_TOLERANCE',
    'normalize_path', 'path_array',
]
