"""Viewport transforms: fit to content, zoom and centering."""

import math
from collections.abc import Iterable
from dataclasses import dataclass

FIT_PADDING = 100.0
MIN_FIT_BOUNDS = 200.0
MIN_SCALE = 0.2
MAX_SCALE = 5.0
ZOOM_IN_FACTOR = 1.4
ZOOM_OUT_FACTOR = 0.7
FOCUS_SCALE = 1.5


@dataclass(frozen=True)
class ViewTransform:
    """Pan/zoom transform: screen = world * k + (x, y)."""

    x: float = 0.0
    y: float = 0.0
    k: float = 1.0

    def apply(self, wx: float, wy: float) -> tuple[float, float]:
        """Map a world point to screen coordinates."""
        return (wx * self.k + self.x, wy * self.k + self.y)

    def invert(self, sx: float, sy: float) -> tuple[float, float]:
        """Map a screen point to world coordinates."""
        return ((sx - self.x) / self.k, (sy - self.y) / self.k)


IDENTITY = ViewTransform()


def fit_to_view(
    positions: Iterable[tuple[float, float]],
    width: float,
    height: float,
) -> ViewTransform | None:
    """Compute a transform that fits all finite positions into the viewport.

    The bounding box is padded on every side and never smaller than
    200x200; the scale never exceeds 1.

    Args:
        positions: Node positions in world coordinates
        width: Viewport width
        height: Viewport height

    Returns:
        The fitting transform, or None if no position is finite
    """
    points = [(x, y) for x, y in positions if math.isfinite(x) and math.isfinite(y)]
    if not points:
        return None
    xs = [x for x, _ in points]
    ys = [y for _, y in points]
    min_x, max_x = min(xs), max(xs)
    min_y, max_y = min(ys), max(ys)

    bounds_w = max(MIN_FIT_BOUNDS, max_x - min_x + FIT_PADDING * 2)
    bounds_h = max(MIN_FIT_BOUNDS, max_y - min_y + FIT_PADDING * 2)
    scale = min(width / bounds_w, height / bounds_h, 1.0)
    tx = (width - scale * (min_x + max_x)) / 2
    ty = (height - scale * (min_y + max_y)) / 2
    if not all(math.isfinite(value) for value in (scale, tx, ty)):
        return None
    return ViewTransform(x=tx, y=ty, k=scale)


def clamp_scale(k: float) -> float:
    return max(MIN_SCALE, min(MAX_SCALE, k))


def zoom_by(transform: ViewTransform, factor: float, width: float, height: float) -> ViewTransform:
    """Scale a transform about the viewport center, within the zoom extent."""
    k = clamp_scale(transform.k * factor)
    cx, cy = width / 2, height / 2
    wx, wy = transform.invert(cx, cy)
    return ViewTransform(x=cx - wx * k, y=cy - wy * k, k=k)


def center_on(
    wx: float, wy: float, width: float, height: float, scale: float = FOCUS_SCALE
) -> ViewTransform:
    """Get a transform that centers a world point at the given scale."""
    k = clamp_scale(scale)
    return ViewTransform(x=width / 2 - wx * k, y=height / 2 - wy * k, k=k)
