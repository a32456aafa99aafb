"""
Explorer session.

MandelbrotSession owns all the state of one interactive view (viewport,
gesture controller, animator, render scheduler and the evaluator) and is
the only thing a front end talks to. It does not know about pygame:
events come in as plain numbers with a millisecond timestamp, frames go
out as numpy arrays.

Typical frame loop:

    session = MandelbrotSession(load_config())
    while running:
        now = pygame.time.get_ticks()
        for event in events:
            session.on_wheel(x, y, delta_y, now)   # etc.
        session.tick(now)
        rgb, params = session.renderer.get_result()
"""

import logging
import math

from .animation import CameraAnimator
from .config import ViewerConfig
from .coords import css_to_device, pixel_to_complex
from .evaluator import FrameParams, select_evaluator
from .gestures import InteractionController, RectSelecting
from .presets import get_preset
from .renderer import FrameRenderer
from .scheduler import RenderScheduler
from .viewport import View, ViewportState


logger = logging.getLogger(__name__)

# Adaptive iteration budget
AUTO_ITER_MIN = 50
AUTO_ITER_MAX = 600
AUTO_ITER_PER_DECADE = 35

# Julia sets live inside |z| <= 2
JULIA_SPAN = 4.0


def adaptive_iterations(scale):
    """
    Iteration budget that grows with zoom depth.

    50 at scale 1, plus 35 for every factor of ten deeper, capped at 600.
    """
    n = math.floor(AUTO_ITER_MIN + AUTO_ITER_PER_DECADE * math.log10(1.0 / scale))
    return min(AUTO_ITER_MAX, max(AUTO_ITER_MIN, n))


def _is_int(n):
    return isinstance(n, int) and not isinstance(n, bool)


class MandelbrotSession:
    """
    One explorer view.

    Attributes:
        config: The ViewerConfig the session was built from
        viewport: Current ViewportState
        width, height: Canvas size in device pixels
        device_pixel_ratio: CSS -> device pixel factor
        max_iter: Iteration budget used by the next render
        auto_iterations: Recompute max_iter from the zoom depth on every change
        julia_c: (re, im) of the Julia constant, or None in Mandelbrot mode
    """

    def __init__(self, config=None, evaluator=None, renderer=None):
        """
        Args:
            config: ViewerConfig (defaults if None)
            evaluator: FractalEvaluator to use (probed lazily if None)
            renderer: FrameRenderer to use (built around the evaluator if None)
        """
        self.config = config or ViewerConfig()
        self.device_pixel_ratio = self.config.device_pixel_ratio
        self.width = max(1, round(self.config.width * self.device_pixel_ratio))
        self.height = max(1, round(self.config.height * self.device_pixel_ratio))

        self.viewport = ViewportState()
        self.viewport.reset_to_fit(self.width, self.height)

        self.auto_iterations = self.config.auto_iterations
        self.max_iter = self.config.max_iter
        self._update_iterations()

        self.julia_c = None
        self._saved_view = None

        self.animator = CameraAnimator(self.viewport, on_frame=self._on_animation_frame)
        self.scheduler = RenderScheduler(self._fire_render, self.config.render_delay_ms)
        self.controller = InteractionController(self, rect_mode=self.config.rect_mode)

        self._evaluator = evaluator
        self._renderer = renderer
        self.last_params = None

    # -- backend --------------------------------------------------------------

    @property
    def evaluator(self):
        if self._evaluator is None:
            self._evaluator = select_evaluator(self.config.backend)
        return self._evaluator

    @property
    def renderer(self):
        if self._renderer is None:
            self._renderer = FrameRenderer(self.evaluator)
        return self._renderer

    # -- view changes ---------------------------------------------------------

    def commit_view(self, now):
        """Called after every immediate viewport change."""
        self._update_iterations()
        self.scheduler.request_render(now, immediate=self.animator.animating)

    def animate_to(self, view, now, duration_ms=None):
        """
        Start an animated transition.

        Returns:
            False if another animation is still running
        """
        if duration_ms is None:
            duration_ms = self.config.animation_ms
        target = View(view.cx, view.cy, self.viewport.clamp_scale(view.scale))
        return self.animator.start(target, now, duration_ms)

    def _on_animation_frame(self, now):
        self._update_iterations()
        self.scheduler.request_render(now, immediate=True)

    def _update_iterations(self):
        if self.auto_iterations:
            self.max_iter = min(adaptive_iterations(self.viewport.scale),
                                self.config.max_iter_limit)

    def _home_view(self):
        """Default framing for the current mode."""
        if self.julia_c is not None:
            return View(0.0, 0.0, self.julia_scale())
        return self.viewport.view()

    def julia_scale(self):
        return self.viewport.clamp_scale(
            max(JULIA_SPAN / self.width, JULIA_SPAN / self.height)
        )

    def on_resize(self, width_px, height_px, device_pixel_ratio, now):
        """
        New canvas size: frame the whole set again and render.

        Args:
            width_px, height_px: Canvas size in device pixels
            device_pixel_ratio: Device pixels per CSS pixel
        """
        if not (_is_int(width_px) and _is_int(height_px)) or width_px <= 0 or height_px <= 0:
            logger.debug("Ignoring resize to %rx%r", width_px, height_px)
            return False
        if not (math.isfinite(device_pixel_ratio) and device_pixel_ratio > 0):
            logger.debug("Ignoring resize with device pixel ratio %r", device_pixel_ratio)
            return False

        self.animator.cancel()
        self.width = width_px
        self.height = height_px
        self.device_pixel_ratio = device_pixel_ratio
        self.viewport.reset_to_fit(width_px, height_px)
        self.viewport.commit(self._home_view())
        logger.info("Canvas resized to %dx%d (dpr %g)", width_px, height_px, device_pixel_ratio)
        self._update_iterations()
        self.scheduler.request_render(now, immediate=True)
        return True

    def reset_view(self, now):
        """Back to the default framing of the current mode."""
        self.animator.cancel()
        self.viewport.reset_to_fit(self.width, self.height)
        self.viewport.commit(self._home_view())
        self._update_iterations()
        self.scheduler.request_render(now, immediate=True)

    # -- iterations -----------------------------------------------------------

    def set_iteration_budget(self, n, now):
        """
        Use a fixed iteration budget; turns automatic iterations off.

        Returns:
            False if n is not an integer in 1..max_iter_limit
        """
        if not _is_int(n) or not 1 <= n <= self.config.max_iter_limit:
            logger.debug("Rejected iteration budget %r", n)
            return False
        self.auto_iterations = False
        self.max_iter = n
        self.scheduler.request_render(now)
        return True

    def set_auto_iterations(self, enabled, now):
        self.auto_iterations = bool(enabled)
        self._update_iterations()
        self.scheduler.request_render(now)

    # -- rendering ------------------------------------------------------------

    def frame_params(self):
        """Snapshot of everything the next frame depends on."""
        vp = self.viewport
        return FrameParams(
            cx=vp.cx, cy=vp.cy, scale=vp.scale,
            max_iter=self.max_iter,
            width=self.width, height=self.height,
            supersample=self.config.supersample,
            julia_c=self.julia_c,
        )

    def _fire_render(self):
        params = self.frame_params()
        self.last_params = params
        self.renderer.compute_async(params)

    def get_frame(self, width=None, height=None):
        """
        Render the current view synchronously.

        Args:
            width, height: Output size in device pixels (canvas size if None)

        Returns:
            RGB uint8 array of shape (height, width, 3)
        """
        params = self.frame_params()
        if width is None:
            width = params.width
        if height is None:
            height = params.height
        if width <= 0 or height <= 0:
            raise ValueError(f"frame size must be positive, got {width}x{height}")
        scale = params.scale * max(params.width / width, params.height / height)
        params = FrameParams(params.cx, params.cy, scale, params.max_iter,
                             width, height, params.supersample, params.julia_c)
        return self.renderer.render_now(params)

    def tick(self, now):
        """
        Advance the animation and fire a due render.

        Returns:
            True if a render was dispatched
        """
        self.animator.step(now)
        return self.scheduler.poll(now)

    # -- readouts -------------------------------------------------------------

    @property
    def magnification(self):
        return self.viewport.max_scale / self.viewport.scale

    def complex_at(self, x, y):
        """Plane coordinate under a CSS-pixel position."""
        px, py = css_to_device(x, y, self.device_pixel_ratio)
        return pixel_to_complex(px, py, self.viewport, self.width, self.height)

    def selection_rect(self):
        """
        The rectangle being dragged out, in device pixels.

        Returns:
            (x, y, w, h) or None when no rectangle selection is active
        """
        state = self.controller.state
        if not isinstance(state, RectSelecting):
            return None
        (ax, ay), (bx, by) = state.anchor_pixel, state.current_pixel
        return min(ax, bx), min(ay, by), abs(bx - ax), abs(by - ay)

    # -- places and modes -----------------------------------------------------

    def go_to_preset(self, name, now):
        """
        Fly to a named Mandelbrot location (leaves Julia mode).

        Returns:
            False for an unknown name or when an animation is running
        """
        try:
            view = get_preset(name)
        except KeyError:
            logger.warning("Unknown preset %r", name)
            return False
        if self.animator.animating:
            return False
        if self.julia_c is not None:
            self.switch_to_mandelbrot(now)
        logger.info("Going to preset %s", name)
        return self.animate_to(view, now)

    @property
    def is_julia(self):
        return self.julia_c is not None

    def switch_to_julia(self, x, y, now):
        """
        Show the Julia set for the plane point under (x, y) CSS pixels.

        The Mandelbrot view is kept so switch_to_mandelbrot() can return to it.
        """
        if not (math.isfinite(x) and math.isfinite(y)):
            logger.debug("Ignoring Julia switch at (%r, %r)", x, y)
            return False
        c = self.complex_at(x, y)
        if self.julia_c is None:
            self._saved_view = self.viewport.view()

        self.animator.cancel()
        self.julia_c = (c.x, c.y)
        logger.info("Julia mode, c = %.10g%+.10gi", c.x, c.y)
        self.viewport.commit(View(0.0, 0.0, self.viewport.max_scale))
        self._update_iterations()
        self.scheduler.request_render(now, immediate=True)
        self.animate_to(View(0.0, 0.0, self.julia_scale()), now,
                        self.config.julia_animation_ms)
        return True

    def switch_to_mandelbrot(self, now):
        """Leave Julia mode and restore the view it was entered from."""
        if self.julia_c is None:
            return False
        self.animator.cancel()
        self.julia_c = None
        if self._saved_view is not None:
            self.viewport.commit(self._saved_view)
        self._saved_view = None
        logger.info("Mandelbrot mode")
        self._update_iterations()
        self.scheduler.request_render(now, immediate=True)
        return True

    # -- input, forwarded to the gesture controller ---------------------------

    def on_pointer_down(self, x, y, button, now):
        return self.controller.on_pointer_down(x, y, button, now)

    def on_pointer_move(self, x, y, now):
        return self.controller.on_pointer_move(x, y, now)

    def on_pointer_up(self, x, y, button, now):
        return self.controller.on_pointer_up(x, y, button, now)

    def on_double_click(self, x, y, now):
        return self.controller.on_double_click(x, y, now)

    def on_wheel(self, x, y, delta_y, now):
        return self.controller.on_wheel(x, y, delta_y, now)

    def on_touch_start(self, touches, now):
        return self.controller.on_touch_start(touches, now)

    def on_touch_move(self, touches, now):
        return self.controller.on_touch_move(touches, now)

    def on_touch_end(self, touches, now):
        return self.controller.on_touch_end(touches, now)

    def on_keys_held(self, keys, now):
        return self.controller.on_keys_held(keys, now)
