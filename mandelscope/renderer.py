"""
Asynchronous frame renderer.

The FrameRenderer class handles:
- Background (async) evaluation so the interaction loop never blocks
- Last-requested-wins: a request arriving while a frame is being
  computed replaces any waiting one, and the frame being computed is
  thrown away when it finishes because it is already out of date
- Reprojection helpers so the last finished frame can be drawn under the
  current view while the next one is still computing
"""

import logging
import threading

from .coords import complex_to_pixel, pixel_to_complex


logger = logging.getLogger(__name__)


class FrameRenderer:
    """
    Runs an evaluator on a background thread.

    Usage:
        renderer = FrameRenderer(select_evaluator())
        renderer.compute_async(params)

        # In your game loop:
        rgb, params = renderer.get_result()
        if rgb is not None:
            display(rgb)

    Attributes:
        evaluator: The FractalEvaluator doing the work
        generation: Number of the most recent request
    """

    def __init__(self, evaluator):
        self.evaluator = evaluator

        # Async computation state
        self.computing = False
        self.pending_params = None
        self.generation = 0
        self._pending_generation = 0
        self.lock = threading.Lock()

        # Latest published result
        self._result = None
        self._result_params = None
        self._result_ready = False

    def compute_async(self, params):
        """
        Request a frame. Never blocks.

        Args:
            params: FrameParams snapshot

        Returns:
            The generation number assigned to this request
        """
        with self.lock:
            self.generation += 1
            self.pending_params = params
            self._pending_generation = self.generation
            if not self.computing:
                self.computing = True
                thread = threading.Thread(target=self._compute_thread)
                thread.daemon = True
                thread.start()
            return self.generation

    def _compute_thread(self):
        """Background thread: render whatever was asked for last."""
        while True:
            with self.lock:
                params = self.pending_params
                generation = self._pending_generation
                self.pending_params = None
                if params is None:
                    self.computing = False
                    return

            try:
                rgb = self.evaluator.render(params)
            except Exception:
                logger.exception("Render of generation %d failed", generation)
                continue

            with self.lock:
                if generation != self.generation:
                    logger.debug("Discarding superseded frame %d (latest %d)",
                                 generation, self.generation)
                    continue
                self._result = rgb
                self._result_params = params
                self._result_ready = True

    def render_now(self, params):
        """Render synchronously on the calling thread."""
        return self.evaluator.render(params)

    def get_result(self):
        """
        Get the latest render result if ready.

        Returns:
            Tuple of (rgb, params) if a new result is ready, (None, None) otherwise.
        """
        with self.lock:
            if self._result_ready:
                self._result_ready = False
                return self._result, self._result_params
        return None, None


def reprojection(params, viewport, width, height):
    """
    Work out where a finished frame lands under the current view.

    The frame was rendered for params (centre, scale, size); the screen now
    shows viewport on a width x height canvas. Only the part of the frame
    that is on screen is returned.

    Returns:
        ((src_x, src_y, src_w, src_h), (dst_x, dst_y, dst_w, dst_h)) in
        device pixels, or None if the frame is entirely off screen.
    """
    if params.scale <= 0 or viewport.scale <= 0:
        return None

    # Screen position of the frame's top-left corner, and frame->screen zoom
    corner = pixel_to_complex(0, 0, params, params.width, params.height)
    origin = complex_to_pixel(corner.x, corner.y, viewport, width, height)
    ratio = params.scale / viewport.scale

    # Screen rectangle expressed in frame pixels, clipped to the frame
    src_left = max(0.0, min(params.width, (0 - origin.x) / ratio))
    src_right = max(0.0, min(params.width, (width - origin.x) / ratio))
    src_top = max(0.0, min(params.height, (0 - origin.y) / ratio))
    src_bottom = max(0.0, min(params.height, (height - origin.y) / ratio))

    src_w = src_right - src_left
    src_h = src_bottom - src_top
    if src_w <= 0 or src_h <= 0:
        return None

    dst = (origin.x + src_left * ratio, origin.y + src_top * ratio,
           src_w * ratio, src_h * ratio)
    return (src_left, src_top, src_w, src_h), dst
