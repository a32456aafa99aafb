"""
Render request coalescing.

Requests are debounced on a trailing edge: each request pushes the
deadline back, so a burst of wheel events turns into a single render a
few milliseconds after the last one. The scheduler has no timer thread
of its own; the frame loop calls poll() with the current time, the same
way the main loop checks how long ago the last user action was.
"""

DEFAULT_DELAY_MS = 10


class RenderScheduler:
    """
    Trailing-debounce scheduler.

    The callback takes no arguments: whatever it renders has to be read
    when it fires, not when the request was made.
    """

    def __init__(self, callback, delay_ms=DEFAULT_DELAY_MS):
        self.callback = callback
        self.delay_ms = delay_ms
        self._deadline = None

    @property
    def pending(self):
        return self._deadline is not None

    def request_render(self, now, immediate=False):
        """
        Cancel any pending render and schedule a new one.

        Args:
            now: Current time in ms
            immediate: Fire on the next poll (animation frames)
        """
        self._deadline = now if immediate else now + self.delay_ms

    def poll(self, now):
        """
        Fire the callback if the deadline has passed.

        Returns:
            True if a render fired
        """
        if self._deadline is None or now < self._deadline:
            return False
        self._deadline = None
        self.callback()
        return True
