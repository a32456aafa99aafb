"""
Gesture state machine.

Turns raw mouse, touch, wheel and keyboard input into viewport changes
or animation requests. Exactly one gesture state is active at a time:

    Idle
     ├─ primary press ───────────► Panning ──── release ──► Idle
     ├─ secondary press ─────────► RectSelecting ─ release (zoom if big enough) ─► Idle
     ├─ one finger ──────────────► SingleTouchTracking (pans on move)
     │    └─ second tap in 300ms/30px ─► animated zoom, Idle
     └─ two fingers ─────────────► Pinching ─ lift ─► SingleTouchTracking | Idle

Input coordinates are CSS pixels. They are scaled by the session's
device_pixel_ratio before any arithmetic, so every delta and threshold
below is in device pixels unless it says otherwise.
"""

import logging
import math
from dataclasses import dataclass, replace
from typing import Optional, Tuple

from .coords import css_to_device, pixel_to_complex
from .viewport import View


logger = logging.getLogger(__name__)

# Mouse buttons (pygame numbering)
PRIMARY_BUTTON = 1
SECONDARY_BUTTON = 3

RECT_MIN_SIZE = 6               # device px, both sides must exceed this
DOUBLE_TAP_MS = 300
DOUBLE_TAP_DISTANCE = 30        # CSS px, per axis
PINCH_GRACE_MS = 100
WHEEL_ZOOM_RATE = 0.0015
MAX_ZOOM_EXPONENT = 700.0      # exp() overflows just past 709
DOUBLE_CLICK_ZOOM = 0.5
MIN_ZOOM_CHANGE = 0.001         # relative; smaller double-click zooms are skipped
KEY_PAN_PIXELS = 2.0
KEY_ZOOM_STEP = 0.98

Point = Tuple[float, float]


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Panning:
    last_pixel: Point


@dataclass(frozen=True)
class RectSelecting:
    anchor_pixel: Point
    current_pixel: Point


@dataclass(frozen=True)
class Pinching:
    initial_distance: float
    initial_scale: float
    anchor_pixel: Point


@dataclass(frozen=True)
class SingleTouchTracking:
    start_pixel: Point
    last_pixel: Point
    last_tap_time: Optional[float] = None
    last_tap_pixel: Optional[Point] = None


def _finite(*values):
    return all(math.isfinite(v) for v in values)


def _clamp(v, lo, hi):
    return max(lo, min(hi, v))


class InteractionController:
    """
    Gesture handling for one session.

    The session supplies the viewport, the canvas size, the device pixel
    ratio, commit_view(now) (after an immediate change) and
    animate_to(view, now) (for animated transitions).
    """

    def __init__(self, session, rect_mode='fit'):
        self.session = session
        self.rect_mode = rect_mode
        self.state = Idle()

        # Tap history outlives the touch that made it
        self._last_tap_time = None
        self._last_tap_pixel = None
        self._pinch_end_time = None

    # -- helpers --------------------------------------------------------------

    def _device_point(self, x, y):
        """CSS -> device pixels, or None if the input is unusable."""
        s = self.session
        if s.width <= 0 or s.height <= 0:
            logger.debug("Ignoring input: canvas has no size")
            return None
        if not _finite(x, y):
            logger.debug("Ignoring non-finite pointer position (%r, %r)", x, y)
            return None
        return tuple(css_to_device(x, y, s.device_pixel_ratio))

    def _device_points(self, touches):
        points = [self._device_point(x, y) for x, y in touches]
        if any(p is None for p in points):
            return None
        return points

    def _zoom_in_animated(self, anchor, now):
        """Halve the scale around anchor as an animated transition."""
        s = self.session
        vp = s.viewport
        new_scale = vp.clamp_scale(vp.scale * DOUBLE_CLICK_ZOOM)
        if abs(new_scale - vp.scale) <= vp.scale * MIN_ZOOM_CHANGE:
            return False
        target = vp.copy()
        target.zoom_to_scale_at(anchor, new_scale, s.width, s.height)
        return s.animate_to(target.view(), now)

    def _is_double_tap(self, tap, now):
        if self._last_tap_time is None:
            return False
        return (now - self._last_tap_time < DOUBLE_TAP_MS
                and abs(tap[0] - self._last_tap_pixel[0]) < DOUBLE_TAP_DISTANCE
                and abs(tap[1] - self._last_tap_pixel[1]) < DOUBLE_TAP_DISTANCE)

    # -- mouse ----------------------------------------------------------------

    def on_pointer_down(self, x, y, button, now):
        p = self._device_point(x, y)
        if p is None or not isinstance(self.state, Idle):
            return False
        if button == PRIMARY_BUTTON:
            self.state = Panning(p)
        elif button == SECONDARY_BUTTON:
            self.state = RectSelecting(p, p)
        else:
            return False
        return True

    def on_pointer_move(self, x, y, now):
        state = self.state
        if not isinstance(state, (Panning, RectSelecting)):
            return False
        p = self._device_point(x, y)
        if p is None:
            return False

        if isinstance(state, RectSelecting):
            self.state = RectSelecting(state.anchor_pixel, p)
            return True

        dx = p[0] - state.last_pixel[0]
        dy = p[1] - state.last_pixel[1]
        self.session.viewport.pan_by_pixels(dx, dy)
        self.state = Panning(p)
        self.session.commit_view(now)
        return True

    def on_pointer_up(self, x, y, button, now):
        """
        Finish a mouse gesture.

        Returns:
            True if a rectangle zoom was started
        """
        state = self.state
        if isinstance(state, Panning) and button == PRIMARY_BUTTON:
            self.state = Idle()
            return False
        if not isinstance(state, RectSelecting) or button != SECONDARY_BUTTON:
            return False

        self.state = Idle()
        p = self._device_point(x, y)
        if p is None:
            p = state.current_pixel
        return self._finish_rect(state.anchor_pixel, p, now)

    def _finish_rect(self, a, b, now):
        s = self.session
        w, h = s.width, s.height
        x1 = _clamp(min(a[0], b[0]), 0, w)
        x2 = _clamp(max(a[0], b[0]), 0, w)
        y1 = _clamp(min(a[1], b[1]), 0, h)
        y2 = _clamp(max(a[1], b[1]), 0, h)

        rect_w = x2 - x1
        rect_h = y2 - y1
        if rect_w <= RECT_MIN_SIZE or rect_h <= RECT_MIN_SIZE:
            logger.debug("Zoom rectangle %.1fx%.1f too small, ignored", rect_w, rect_h)
            return False

        vp = s.viewport
        center = pixel_to_complex((x1 + x2) / 2, (y1 + y2) / 2, vp, w, h)
        if self.rect_mode == 'fill':
            factor = max(rect_w / w, rect_h / h)
        else:
            factor = min(rect_w / w, rect_h / h)
        new_scale = vp.clamp_scale(vp.scale * factor)
        logger.debug("Zoom rectangle %.0fx%.0f -> scale %g", rect_w, rect_h, new_scale)
        return s.animate_to(View(center.x, center.y, new_scale), now)

    def on_double_click(self, x, y, now):
        """Animated 2x zoom around the clicked point."""
        p = self._device_point(x, y)
        if p is None:
            return False
        return self._zoom_in_animated(p, now)

    def on_wheel(self, x, y, delta_y, now):
        """Zoom around the cursor; positive delta_y (wheel down) zooms out."""
        p = self._device_point(x, y)
        if p is None or not _finite(delta_y):
            return False
        s = self.session
        exponent = _clamp(delta_y * WHEEL_ZOOM_RATE, -MAX_ZOOM_EXPONENT, MAX_ZOOM_EXPONENT)
        s.viewport.zoom_at(p, math.exp(exponent), s.width, s.height)
        s.commit_view(now)
        return True

    # -- touch ----------------------------------------------------------------

    def on_touch_start(self, touches, now):
        """
        A finger went down.

        Args:
            touches: (x, y) CSS positions of all fingers now on the canvas
            now: Timestamp in ms
        """
        points = self._device_points(touches)
        if not points or isinstance(self.state, (Panning, RectSelecting)):
            return False

        if len(points) >= 2:
            (ax, ay), (bx, by) = points[0], points[1]
            self.state = Pinching(
                initial_distance=math.hypot(ax - bx, ay - by),
                initial_scale=self.session.viewport.scale,
                anchor_pixel=((ax + bx) / 2, (ay + by) / 2),
            )
            return True

        tap = tuple(touches[0])
        if self._is_double_tap(tap, now):
            self._last_tap_time = None
            self._last_tap_pixel = None
            self.state = Idle()
            return self._zoom_in_animated(points[0], now)

        self._last_tap_time = now
        self._last_tap_pixel = tap
        self.state = SingleTouchTracking(points[0], points[0], now, tap)
        return True

    def on_touch_move(self, touches, now):
        state = self.state
        points = self._device_points(touches)
        if not points:
            return False
        s = self.session

        if isinstance(state, Pinching) and len(points) >= 2:
            if state.initial_distance <= 0:
                return False
            (ax, ay), (bx, by) = points[0], points[1]
            distance = math.hypot(ax - bx, ay - by)
            if distance <= 0:
                return False
            new_scale = s.viewport.clamp_scale(
                state.initial_scale / (distance / state.initial_distance)
            )
            s.viewport.zoom_to_scale_at(state.anchor_pixel, new_scale, s.width, s.height)
            s.commit_view(now)
            return True

        if isinstance(state, SingleTouchTracking) and len(points) == 1:
            p = points[0]
            self.state = replace(state, last_pixel=p)
            # Hand lifting off after a pinch: don't let the last finger yank the view
            if self._pinch_end_time is not None and now - self._pinch_end_time <= PINCH_GRACE_MS:
                return False
            s.viewport.pan_by_pixels(p[0] - state.last_pixel[0], p[1] - state.last_pixel[1])
            s.commit_view(now)
            return True

        return False

    def on_touch_end(self, touches, now):
        """
        A finger went up.

        Args:
            touches: Positions of the fingers still down
        """
        if isinstance(self.state, Pinching) and len(touches) < 2:
            self._pinch_end_time = now

        if len(touches) == 0:
            self.state = Idle()
            return True

        if len(touches) == 1 and not isinstance(self.state, (Panning, RectSelecting)):
            points = self._device_points(touches)
            if points is None:
                self.state = Idle()
                return False
            p = points[0]
            self.state = SingleTouchTracking(p, p, self._last_tap_time, self._last_tap_pixel)
        return True

    # -- keyboard -------------------------------------------------------------

    def on_keys_held(self, keys, now):
        """
        Continuous movement for held keys, applied once per frame.

        Args:
            keys: Set of 'up', 'down', 'left', 'right', 'zoom_in', 'zoom_out'

        Returns:
            True if the view changed
        """
        if not keys:
            return False
        vp = self.session.viewport
        step = vp.scale * KEY_PAN_PIXELS
        changed = False

        if 'up' in keys:
            vp.cy -= step
            changed = True
        if 'down' in keys:
            vp.cy += step
            changed = True
        if 'left' in keys:
            vp.cx += step
            changed = True
        if 'right' in keys:
            vp.cx -= step
            changed = True
        if 'zoom_in' in keys:
            vp.set_scale(vp.scale * KEY_ZOOM_STEP)
            changed = True
        if 'zoom_out' in keys:
            vp.set_scale(vp.scale / KEY_ZOOM_STEP)
            changed = True

        if changed:
            self.session.commit_view(now)
        return changed
