"""
Mandelscope: interactive Mandelbrot set explorer

A high-performance, interactive Mandelbrot (and Julia) set explorer using
Pygame for display, Numba for JIT-compiled computation and, when a CUDA
device is present, PyTorch.

Quick Start:
    from mandelscope import run
    run()

Or from command line:
    python -m mandelscope

Package Structure:
    - coords.py: Pixel <-> complex-plane mapping
    - compute.py: JIT-compiled escape-time and colouring kernels
    - compute_gpu.py: PyTorch versions of the same kernels
    - evaluator.py: CPU/GPU backends behind one interface
    - viewport.py: View centre and scale, with zoom limits
    - animation.py: Eased transitions between views
    - gestures.py: Mouse/touch/wheel/keyboard gesture state machine
    - scheduler.py: Render request debouncing
    - renderer.py: Background rendering and frame reprojection
    - session.py: Glue object a front end talks to
    - app.py: Pygame window and event loop

Controls:
    - Scroll: Zoom in/out at mouse position
    - Left drag: Pan around
    - Right drag: Zoom into a rectangle
    - Double click / double tap: Zoom in 2x
    - Pinch: Zoom
    - Arrows/WASD, +/-: Pan and zoom
    - [ ]: Fewer/more iterations, I: automatic iterations
    - F: Toggle rectangle fit/fill
    - J: Julia set for the point under the mouse, M: back to Mandelbrot
    - 1-8: Preset locations
    - R: Reset view
    - ESC: Quit
"""

from .app import run, MandelbrotApp
from .config import ViewerConfig, load_config
from .evaluator import FrameParams, FractalEvaluator, CPUEvaluator, GPUEvaluator, select_evaluator
from .presets import PRESETS, get_preset, list_preset_names
from .session import MandelbrotSession, adaptive_iterations
from .viewport import View, ViewportState

__version__ = "1.0.0"
__all__ = [
    "run",
    "MandelbrotApp",
    "MandelbrotSession",
    "adaptive_iterations",
    "ViewerConfig",
    "load_config",
    "FrameParams",
    "FractalEvaluator",
    "CPUEvaluator",
    "GPUEvaluator",
    "select_evaluator",
    "PRESETS",
    "get_preset",
    "list_preset_names",
    "View",
    "ViewportState",
]
