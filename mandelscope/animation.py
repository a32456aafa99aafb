"""
Eased camera transitions between two views.

An animation is a sequence of discrete steps driven by the frame loop:
each call to step() commits one interpolated view and asks for a render,
until the end time is reached and the view lands exactly on the target.
Only one animation runs at a time; a start() while one is in flight is
dropped, not queued and not allowed to replace it.
"""

import logging
from collections import namedtuple

from .viewport import View


logger = logging.getLogger(__name__)

DEFAULT_DURATION_MS = 300

AnimationRequest = namedtuple(
    'AnimationRequest', ['from_view', 'to_view', 'start_time', 'duration_ms']
)


def ease_in_out(t):
    """Quadratic ease-in-out on [0, 1]."""
    if t < 0.5:
        return 2 * t * t
    return 1 - (-2 * t + 2) ** 2 / 2


def _lerp(a, b, t):
    return a + (b - a) * t


class CameraAnimator:
    """
    Drives a ViewportState from one View to another.

    cx, cy and scale are interpolated independently and linearly in the
    eased time. Interpolating scale linearly (not in log space) makes deep
    zoom-ins speed up towards the end; that is accepted.
    """

    def __init__(self, viewport, on_frame=None):
        """
        Args:
            viewport: The ViewportState to drive
            on_frame: Called with the timestamp after each committed step
        """
        self.viewport = viewport
        self.on_frame = on_frame
        self.request = None

    @property
    def animating(self):
        return self.request is not None

    def start(self, to_view, now, duration_ms=DEFAULT_DURATION_MS, from_view=None):
        """
        Begin a transition from the current view (or from_view) to to_view.

        Returns:
            True if the animation started, False if one is already running
        """
        if self.request is not None:
            logger.debug("Animation to %s dropped: another is in flight", to_view)
            return False
        if from_view is None:
            from_view = self.viewport.view()
        self.request = AnimationRequest(from_view, View(*to_view), now, duration_ms)
        return True

    def step(self, now):
        """
        Advance the animation to time now.

        Returns:
            True if a step was applied
        """
        request = self.request
        if request is None:
            return False

        if request.duration_ms <= 0:
            t = 1.0
        else:
            t = (now - request.start_time) / request.duration_ms
            t = max(0.0, min(1.0, t))

        if t >= 1.0:
            self.viewport.commit(request.to_view)
            self.request = None
        else:
            e = ease_in_out(t)
            a, b = request.from_view, request.to_view
            self.viewport.commit(View(
                _lerp(a.cx, b.cx, e),
                _lerp(a.cy, b.cy, e),
                _lerp(a.scale, b.scale, e),
            ))

        if self.on_frame is not None:
            self.on_frame(now)
        return True

    def cancel(self):
        self.request = None
