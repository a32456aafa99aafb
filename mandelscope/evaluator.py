"""
Fractal evaluator backends.

Both backends implement the same escape-time arithmetic and colouring;
they differ only in where the per-pixel work runs:
- CPUEvaluator: Numba kernels from compute.py, rows split across threads
- GPUEvaluator: PyTorch kernels from compute_gpu.py, whole frame at once

select_evaluator() probes the machine once at startup and returns the
best one. A GPU backend that fails to initialise is not fatal: the CPU
evaluator is used instead.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from . import compute
from .compute_gpu import GPUCompute, TORCH_AVAILABLE, probe_device


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameParams:
    """
    Everything a backend needs to draw one frame.

    Taken as a snapshot when a render fires, so a frame never sees a view
    change half way through.
    """

    cx: float
    cy: float
    scale: float
    max_iter: int
    width: int
    height: int
    supersample: int = 1
    julia_c: Optional[Tuple[float, float]] = None


class FractalEvaluator:
    """
    Capability interface shared by the backends.

    Subclasses provide evaluate(), colorize() and downscale(); render()
    combines them into an RGB frame.
    """

    name = "base"

    def evaluate(self, cx, cy, scale, width, height, max_iter, julia_c=None):
        """Smooth iteration counts, float64 array of shape (height, width)."""
        raise NotImplementedError

    def colorize(self, data, max_iter):
        """RGB uint8 array of shape data.shape + (3,)."""
        raise NotImplementedError

    def downscale(self, src):
        """Halve an RGB image in both dimensions (box filter)."""
        raise NotImplementedError

    def warmup(self):
        """Compile or upload whatever the backend needs before the first frame."""

    def render(self, params):
        """
        Render a frame.

        Args:
            params: FrameParams

        Returns:
            RGB uint8 array of shape (params.height, params.width, 3)
        """
        ss = params.supersample
        data = self.evaluate(
            params.cx, params.cy, params.scale / ss,
            params.width * ss, params.height * ss,
            params.max_iter, params.julia_c
        )
        rgb = self.colorize(data, params.max_iter)
        if ss == 2:
            rgb = self.downscale(rgb)
        return rgb

    def describe(self):
        return self.name


class CPUEvaluator(FractalEvaluator):
    """Numba JIT backend."""

    name = "cpu"

    def evaluate(self, cx, cy, scale, width, height, max_iter, julia_c=None):
        if julia_c is not None:
            return compute.compute_julia(
                cx, cy, scale, width, height, max_iter, julia_c[0], julia_c[1]
            )
        return compute.compute_mandelbrot(cx, cy, scale, width, height, max_iter)

    def colorize(self, data, max_iter):
        out = np.empty(data.shape + (3,), dtype=np.uint8)
        compute.apply_colors(data, max_iter, out)
        return out

    def downscale(self, src):
        dst = np.empty((src.shape[0] // 2, src.shape[1] // 2, 3), dtype=np.uint8)
        compute.downscale_2x(src, dst)
        return dst

    def warmup(self):
        compute.warmup_jit()

    def describe(self):
        return "CPU (Numba)"


class GPUEvaluator(FractalEvaluator):
    """PyTorch backend."""

    name = "gpu"

    def __init__(self, gpu=None):
        """
        Args:
            gpu: A GPUCompute instance (created if None)

        Raises:
            RuntimeError: If PyTorch is not installed
        """
        self.gpu = gpu if gpu is not None else GPUCompute(prefer_gpu=True)
        if not self.gpu.available:
            raise RuntimeError("PyTorch not available")

    def evaluate(self, cx, cy, scale, width, height, max_iter, julia_c=None):
        if julia_c is not None:
            return self.gpu.compute_julia(
                cx, cy, scale, width, height, max_iter, julia_c[0], julia_c[1]
            )
        return self.gpu.compute_mandelbrot(cx, cy, scale, width, height, max_iter)

    def colorize(self, data, max_iter):
        out = np.empty(data.shape + (3,), dtype=np.uint8)
        self.gpu.apply_colors(data, max_iter, out)
        return out

    def downscale(self, src):
        dst = np.empty((src.shape[0] // 2, src.shape[1] // 2, 3), dtype=np.uint8)
        self.gpu.downscale_2x(src, dst)
        return dst

    def warmup(self):
        self.gpu.warmup()

    def describe(self):
        return self.gpu.get_device_info()


def select_evaluator(backend="auto"):
    """
    Pick a backend by probing the machine.

    Args:
        backend: 'auto' (GPU only when CUDA is present), 'gpu' (any torch
                 device, GPU preferred) or 'cpu'

    Returns:
        A FractalEvaluator
    """
    if backend == "cpu":
        return CPUEvaluator()

    if not TORCH_AVAILABLE:
        if backend == "gpu":
            logger.warning("GPU backend requested but PyTorch is not installed; using CPU")
        return CPUEvaluator()

    try:
        gpu, on_gpu = probe_device(prefer_gpu=True)
        # Only default to GPU for CUDA; MPS is usually slower than Numba here
        if backend == "gpu" or (on_gpu and gpu.is_cuda):
            evaluator = GPUEvaluator(gpu)
            evaluator.warmup()
            logger.info("Using GPU evaluator: %s", evaluator.describe())
            return evaluator
    except RuntimeError as exc:
        logger.warning("GPU backend failed to initialise (%s); using CPU", exc)

    return CPUEvaluator()
