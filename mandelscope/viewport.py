"""
Viewport state: view centre plus scale (plane units per device pixel).

The scale is always kept inside [min_scale, max_scale]:
- max_scale is the "fit-all" scale, recomputed by reset_to_fit() every
  time the canvas changes size
- min_scale is a fixed floor near the float64 precision limit; zooming
  deeper than this makes neighbouring pixels collapse onto the same
  plane coordinate
"""

from collections import namedtuple
from dataclasses import dataclass

from .coords import pixel_to_complex


MIN_SCALE = 1e-14

# Classical Mandelbrot framing
DEFAULT_CENTER = (-0.75, 0.0)
FIT_REAL_SPAN = 3.5
FIT_IMAG_SPAN = 2.5

# Immutable (cx, cy, scale) snapshot; used for animation endpoints
View = namedtuple('View', ['cx', 'cy', 'scale'])


def fit_scale(width, height):
    """Scale at which the whole set is visible on a width x height canvas."""
    return max(FIT_REAL_SPAN / width, FIT_IMAG_SPAN / height)


@dataclass
class ViewportState:
    """
    Mutable view of the complex plane owned by one session.

    Attributes:
        cx, cy: Plane coordinate at the canvas centre
        scale: Plane units per device pixel
        min_scale: Deepest allowed zoom (fixed)
        max_scale: Widest allowed zoom (updated by reset_to_fit)
    """

    cx: float = DEFAULT_CENTER[0]
    cy: float = DEFAULT_CENTER[1]
    scale: float = FIT_REAL_SPAN / 800
    min_scale: float = MIN_SCALE
    max_scale: float = 8e-2

    def clamp_scale(self, scale):
        """Clamp a candidate scale to [min_scale, max_scale]."""
        return max(self.min_scale, min(self.max_scale, scale))

    def reset_to_fit(self, width, height):
        """
        Frame the classical bounds of the set and make that the zoom-out limit.

        Args:
            width, height: Canvas size in device pixels (must be positive)
        """
        self.cx, self.cy = DEFAULT_CENTER
        self.max_scale = fit_scale(width, height)
        self.scale = self.max_scale

    def set_scale(self, scale):
        self.scale = self.clamp_scale(scale)

    def zoom_at(self, anchor, factor, width, height):
        """
        Multiply the scale by factor, keeping the plane point under anchor fixed.

        Args:
            anchor: (x, y) in device pixels
            factor: Scale multiplier (< 1 zooms in)
            width, height: Canvas size in device pixels
        """
        before = pixel_to_complex(anchor[0], anchor[1], self, width, height)
        self.scale = self.clamp_scale(self.scale * factor)
        after = pixel_to_complex(anchor[0], anchor[1], self, width, height)
        self.cx += before.x - after.x
        self.cy += before.y - after.y

    def zoom_to_scale_at(self, anchor, scale, width, height):
        """Anchor-preserving zoom to an absolute scale."""
        self.zoom_at(anchor, scale / self.scale, width, height)

    def pan_by_pixels(self, dx, dy):
        """Move the view so that content follows a drag of (dx, dy) device pixels."""
        self.cx -= dx * self.scale
        self.cy += dy * self.scale

    def view(self):
        return View(self.cx, self.cy, self.scale)

    def commit(self, view):
        """Apply a View snapshot (scale is clamped)."""
        self.cx = view.cx
        self.cy = view.cy
        self.scale = self.clamp_scale(view.scale)

    def copy(self):
        return ViewportState(self.cx, self.cy, self.scale, self.min_scale, self.max_scale)
