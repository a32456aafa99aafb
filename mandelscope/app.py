"""
Main application module for the Mandelbrot explorer.

Contains the MandelbrotApp class which handles:
- Window setup and main loop
- Translating pygame events into session input (mouse, touch, wheel, keys)
- Drawing the latest frames, reprojected under the current view
- The window caption, which doubles as the status line
"""

import logging

import pygame

from .config import ViewerConfig
from .presets import list_preset_names
from .readout import format_magnification, format_scale
from .renderer import reprojection
from .session import MandelbrotSession


logger = logging.getLogger(__name__)

# Wheel notches -> DOM-style deltaY (positive scrolls down / zooms out)
WHEEL_DELTA_PER_NOTCH = 100

# Held keys -> continuous actions
KEY_ACTIONS = {
    pygame.K_UP: 'up',
    pygame.K_w: 'up',
    pygame.K_DOWN: 'down',
    pygame.K_s: 'down',
    pygame.K_LEFT: 'left',
    pygame.K_a: 'left',
    pygame.K_RIGHT: 'right',
    pygame.K_d: 'right',
    pygame.K_EQUALS: 'zoom_in',
    pygame.K_PLUS: 'zoom_in',
    pygame.K_KP_PLUS: 'zoom_in',
    pygame.K_MINUS: 'zoom_out',
    pygame.K_KP_MINUS: 'zoom_out',
}

PRESET_KEYS = [pygame.K_1, pygame.K_2, pygame.K_3, pygame.K_4,
               pygame.K_5, pygame.K_6, pygame.K_7, pygame.K_8]


def wheel_delta(notches):
    """Convert pygame's wheel y (positive = away from the user) to delta_y."""
    return -notches * WHEEL_DELTA_PER_NOTCH


def held_actions(pressed):
    """
    Map the pygame.key.get_pressed() state to a set of action names.

    Args:
        pressed: Sequence indexable by key constant
    """
    return {action for key, action in KEY_ACTIONS.items() if pressed[key]}


def is_double_click(last_click, pos, now, max_ms, max_distance):
    """
    Whether a click at pos/now completes a double click.

    Args:
        last_click: (time, (x, y)) of the previous release, or None
    """
    if last_click is None:
        return False
    last_time, last_pos = last_click
    return (now - last_time <= max_ms
            and abs(pos[0] - last_pos[0]) <= max_distance
            and abs(pos[1] - last_pos[1]) <= max_distance)


class MandelbrotApp:
    """
    Main application class for the Mandelbrot explorer.

    Handles the pygame window, event loop, and coordinates
    between the session, the background renderer and the display.
    """

    FPS = 60
    MAX_HISTORY = 5  # Number of previous frames kept for reprojection
    DOUBLE_CLICK_MS = 400
    DOUBLE_CLICK_DISTANCE = 5
    ITERATION_STEP = 1.5
    SELECTION_COLOR = (255, 255, 255)

    def __init__(self, config=None):
        """
        Initialize the application.

        Args:
            config: ViewerConfig (defaults if None)
        """
        self.config = config or ViewerConfig()
        self.width = self.config.width
        self.height = self.config.height
        self.session = MandelbrotSession(self.config)

        # Pygame state (initialized in run())
        self.screen = None
        self.canvas = None
        self.clock = None

        # Display state
        self.current_surface = None
        self.current_params = None
        self.render_history = []
        self._caption = None

        # Input state
        self.fingers = {}
        self.last_click = None

        self.running = False

    def run(self):
        """Run the application main loop."""
        self._init_pygame()
        self._warmup_and_initial_render()

        self.running = True
        while self.running:
            current_time = pygame.time.get_ticks()

            self._handle_events(current_time)
            self.session.on_keys_held(held_actions(pygame.key.get_pressed()), current_time)
            self.session.tick(current_time)

            self._check_render_result()
            self._draw()
            self._update_caption()

            self.clock.tick(self.FPS)

        pygame.quit()

    def _init_pygame(self):
        """Initialize pygame and create window."""
        pygame.init()
        self.screen = pygame.display.set_mode(
            (self.width, self.height),
            pygame.RESIZABLE | pygame.DOUBLEBUF
        )
        self._make_canvas()
        self.clock = pygame.time.Clock()

    def _make_canvas(self):
        """Device-resolution drawing surface (the screen itself when dpr is 1)."""
        size = (self.session.width, self.session.height)
        if size == self.screen.get_size():
            self.canvas = self.screen
        else:
            self.canvas = pygame.Surface(size)

    def _warmup_and_initial_render(self):
        """Warm up the backend and draw the first frame synchronously."""
        pygame.display.set_caption("Compiling (first run only)...")
        evaluator = self.session.evaluator
        evaluator.warmup()
        logger.info("Evaluator: %s", evaluator.describe())

        params = self.session.frame_params()
        rgb = self.session.get_frame()
        self._set_current(rgb, params)
        self._draw()

    # -- events ---------------------------------------------------------------

    def _handle_events(self, current_time):
        """Process all pending pygame events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.VIDEORESIZE:
                self._handle_resize(event.w, event.h, current_time)
            elif event.type == pygame.MOUSEWHEEL:
                x, y = pygame.mouse.get_pos()
                self.session.on_wheel(x, y, wheel_delta(event.y), current_time)
            elif event.type == pygame.MOUSEBUTTONDOWN:
                # Touches also arrive as emulated mouse events
                if not getattr(event, 'touch', False):
                    self.session.on_pointer_down(event.pos[0], event.pos[1], event.button, current_time)
            elif event.type == pygame.MOUSEBUTTONUP:
                if not getattr(event, 'touch', False):
                    self._handle_mouse_up(event, current_time)
            elif event.type == pygame.MOUSEMOTION:
                if not getattr(event, 'touch', False):
                    self.session.on_pointer_move(event.pos[0], event.pos[1], current_time)
            elif event.type == pygame.FINGERDOWN:
                self.fingers[event.finger_id] = self._finger_pos(event)
                self.session.on_touch_start(list(self.fingers.values()), current_time)
            elif event.type == pygame.FINGERMOTION:
                if event.finger_id in self.fingers:
                    self.fingers[event.finger_id] = self._finger_pos(event)
                    self.session.on_touch_move(list(self.fingers.values()), current_time)
            elif event.type == pygame.FINGERUP:
                self.fingers.pop(event.finger_id, None)
                self.session.on_touch_end(list(self.fingers.values()), current_time)
            elif event.type == pygame.KEYDOWN:
                self._handle_key(event, current_time)

    def _finger_pos(self, event):
        """Finger events are normalised to 0..1; convert to window pixels."""
        return (event.x * self.width, event.y * self.height)

    def _handle_resize(self, width, height, current_time):
        if width <= 0 or height <= 0:
            return
        self.width, self.height = width, height
        self.screen = pygame.display.get_surface()
        dpr = self.session.device_pixel_ratio
        if self.session.on_resize(round(width * dpr), round(height * dpr), dpr, current_time):
            self._make_canvas()
            self.render_history.clear()

    def _handle_mouse_up(self, event, current_time):
        """Handle mouse button release; two quick left releases are a double click."""
        x, y = event.pos
        self.session.on_pointer_up(x, y, event.button, current_time)
        if event.button != 1:
            return
        if is_double_click(self.last_click, event.pos, current_time,
                           self.DOUBLE_CLICK_MS, self.DOUBLE_CLICK_DISTANCE):
            self.last_click = None
            self.session.on_double_click(x, y, current_time)
        else:
            self.last_click = (current_time, event.pos)

    def _handle_key(self, event, current_time):
        """Handle one-shot keyboard commands."""
        session = self.session
        if event.key == pygame.K_r:
            session.reset_view(current_time)
        elif event.key == pygame.K_ESCAPE:
            self.running = False
        elif event.key == pygame.K_RIGHTBRACKET:
            n = min(session.config.max_iter_limit, round(session.max_iter * self.ITERATION_STEP))
            session.set_iteration_budget(n, current_time)
        elif event.key == pygame.K_LEFTBRACKET:
            n = max(1, round(session.max_iter / self.ITERATION_STEP))
            session.set_iteration_budget(n, current_time)
        elif event.key == pygame.K_i:
            session.set_auto_iterations(not session.auto_iterations, current_time)
        elif event.key == pygame.K_f:
            controller = session.controller
            controller.rect_mode = 'fill' if controller.rect_mode == 'fit' else 'fit'
            logger.info("Rectangle zoom mode: %s", controller.rect_mode)
        elif event.key == pygame.K_j:
            x, y = pygame.mouse.get_pos()
            if session.switch_to_julia(x, y, current_time):
                self.render_history.clear()
        elif event.key == pygame.K_m:
            if session.switch_to_mandelbrot(current_time):
                self.render_history.clear()
        elif event.key in PRESET_KEYS:
            names = list_preset_names()
            index = PRESET_KEYS.index(event.key)
            if index < len(names):
                session.go_to_preset(names[index], current_time)

    # -- drawing --------------------------------------------------------------

    def _set_current(self, rgb, params):
        self.current_surface = pygame.surfarray.make_surface(rgb.swapaxes(0, 1))
        self.current_params = params

    def _check_render_result(self):
        """Check if async render has completed."""
        rgb, params = self.session.renderer.get_result()
        if rgb is None:
            return
        # A frame from before a resize or mode switch no longer lines up
        if (params.width, params.height) != (self.session.width, self.session.height) \
                or params.julia_c != self.session.julia_c:
            return

        if self.current_surface is not None:
            self.render_history.append((self.current_surface, self.current_params))
            if len(self.render_history) > self.MAX_HISTORY:
                self.render_history.pop(0)
        self._set_current(rgb, params)

    def _draw(self):
        """Draw the current frame."""
        self.canvas.fill((0, 0, 0))

        # Draw from history (oldest first, so newer ones overdraw)
        for hist_surface, hist_params in self.render_history:
            self._blit_surface_to_view(hist_surface, hist_params)

        # Draw current surface on top
        if self.current_surface is not None:
            self._blit_surface_to_view(self.current_surface, self.current_params)

        rect = self.session.selection_rect()
        if rect is not None:
            pygame.draw.rect(self.canvas, self.SELECTION_COLOR, pygame.Rect(*map(int, rect)), 1)

        if self.canvas is not self.screen:
            self.screen.blit(pygame.transform.smoothscale(self.canvas, self.screen.get_size()), (0, 0))

        pygame.display.flip()

    def _blit_surface_to_view(self, surface, params):
        """
        Blit a rendered surface to the canvas, transforming for current view.

        This handles the case where the rendered view doesn't exactly match
        the current one (e.g., during panning/zooming).
        """
        placement = reprojection(params, self.session.viewport,
                                 self.session.width, self.session.height)
        if placement is None:
            return
        (src_x, src_y, src_w, src_h), (dst_x, dst_y, dst_w, dst_h) = placement

        src_rect = pygame.Rect(int(src_x), int(src_y),
                               max(1, int(src_w)), max(1, int(src_h)))
        src_rect = src_rect.clip(surface.get_rect())
        if src_rect.width <= 0 or src_rect.height <= 0 or int(dst_w) <= 0 or int(dst_h) <= 0:
            return

        subsurface = surface.subsurface(src_rect)
        scaled = pygame.transform.smoothscale(subsurface, (int(dst_w), int(dst_h)))
        self.canvas.blit(scaled, (int(dst_x), int(dst_y)))

    def _update_caption(self):
        session = self.session
        iterations = f"{session.max_iter} iter" + (" (auto)" if session.auto_iterations else "")
        parts = [
            "Mandelscope",
            f"{format_magnification(session.magnification)}x",
            f"scale {format_scale(session.viewport.scale)}",
            iterations,
        ]
        if session.is_julia:
            parts.append("Julia c=%.6f%+.6fi" % session.julia_c)
        if session.renderer.computing:
            parts.append("Computing...")
        caption = " | ".join(parts)
        if caption != self._caption:
            self._caption = caption
            pygame.display.set_caption(caption)


def run(config=None):
    """
    Run the Mandelbrot explorer.

    Args:
        config: ViewerConfig (defaults if None)
    """
    app = MandelbrotApp(config)
    try:
        app.run()
    except KeyboardInterrupt:
        pygame.quit()
