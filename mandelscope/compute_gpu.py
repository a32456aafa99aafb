"""
GPU-accelerated escape-time computation using PyTorch.

This module provides tensor versions of the functions in compute.py.
It auto-detects available hardware:
- CUDA (NVIDIA GPUs)
- MPS (Apple Silicon)
- CPU fallback via PyTorch (still vectorized)

Every pixel of a frame is iterated at once. Pixels that have escaped are
frozen so that the smoothing step sees the same |z|^2 the scalar loop in
compute.py stops at; the two paths agree up to the precision of the
device's float type (float32 on MPS, float64 elsewhere).

Usage:
    from mandelscope.compute_gpu import GPUCompute

    gpu = GPUCompute()
    if gpu.available:
        counts = gpu.compute_mandelbrot(cx, cy, scale, width, height, max_iter)
"""

import math

import numpy as np

# Try to import PyTorch
try:
    import torch
    TORCH_AVAILABLE = True
except ImportError:
    TORCH_AVAILABLE = False
    torch = None


ESCAPE_RADIUS_SQ = 4.0
LOG2 = math.log(2.0)


class GPUCompute:
    """
    Tensor implementation of the escape-time evaluator.

    Automatically detects and uses the best available device:
    - CUDA for NVIDIA GPUs
    - MPS for Apple Silicon (float32 only)
    - CPU as fallback (still uses PyTorch vectorization)
    """

    def __init__(self, prefer_gpu=True):
        """
        Initialize GPU compute.

        Args:
            prefer_gpu: If False, force CPU even if GPU available
        """
        self.available = TORCH_AVAILABLE
        self.device = None
        self.device_name = "None"
        self.is_gpu = False
        self.is_cuda = False
        self.is_mps = False
        self.dtype = None

        if not TORCH_AVAILABLE:
            return

        self.dtype = torch.float64

        # Detect best available device
        if prefer_gpu and torch.cuda.is_available():
            self.device = torch.device("cuda")
            self.device_name = torch.cuda.get_device_name(0)
            self.is_gpu = True
            self.is_cuda = True
        elif prefer_gpu and hasattr(torch.backends, 'mps') and torch.backends.mps.is_available():
            self.device = torch.device("mps")
            self.device_name = "Apple Silicon GPU (MPS)"
            self.is_gpu = True
            self.is_mps = True
            self.dtype = torch.float32  # MPS only supports float32
        else:
            self.device = torch.device("cpu")
            self.device_name = "CPU (PyTorch)"

    def get_device_info(self):
        """Return a string describing the compute device."""
        if not self.available:
            return "PyTorch not available"
        return f"{self.device_name} [{self.device}]"

    def _pixel_grid(self, cx, cy, scale, width, height):
        """Plane coordinates of every pixel, shape (height, width) each."""
        px = torch.arange(width, device=self.device, dtype=self.dtype)
        py = torch.arange(height, device=self.device, dtype=self.dtype)
        xs = cx + (px - width / 2.0) * scale
        ys = cy - (py - height / 2.0) * scale
        gy, gx = torch.meshgrid(ys, xs, indexing='ij')
        return gx.contiguous(), gy.contiguous()

    def _escape(self, x, y, cr, ci, max_iter):
        """
        Vectorized twin of compute.escape_from().

        Args:
            x, y: Starting z (tensors)
            cr, ci: Constant c (tensors or Python floats)
            max_iter: Iteration budget

        Returns:
            Tensor of smooth iteration counts
        """
        xx = x * x
        yy = y * y
        active = (xx + yy) <= ESCAPE_RADIUS_SQ
        counts = torch.zeros_like(x)

        # .any() forces a device sync, so only check now and then
        check_interval = max(16, max_iter // 16)

        for iteration in range(max_iter):
            new_y = 2.0 * x * y + ci
            new_x = xx - yy + cr
            x = torch.where(active, new_x, x)
            y = torch.where(active, new_y, y)
            xx = x * x
            yy = y * y
            counts = counts + active.to(self.dtype)
            active = active & ((xx + yy) <= ESCAPE_RADIUS_SQ)

            if (iteration + 1) % check_interval == 0 and not bool(active.any()):
                break

        mag2 = xx + yy
        nu = torch.log(torch.log(mag2) / 2.0 / LOG2) / LOG2
        nu = torch.where(torch.isnan(nu), torch.zeros_like(nu), nu)
        in_set = counts >= max_iter
        return torch.where(in_set, torch.full_like(counts, float(max_iter)), counts + 1.0 - nu)

    def compute_mandelbrot(self, cx, cy, scale, width, height, max_iter):
        """
        Compute smooth escape counts for a frame on the device.

        Args:
            cx, cy: Plane coordinate at the frame centre
            scale: Plane units per pixel
            width, height: Output dimensions
            max_iter: Maximum iterations

        Returns:
            numpy array (height, width) of float64 smooth iteration counts
        """
        if not self.available:
            raise RuntimeError("PyTorch not available")

        cr, ci = self._pixel_grid(cx, cy, scale, width, height)
        zr = torch.zeros_like(cr)
        zi = torch.zeros_like(ci)
        result = self._escape(zr, zi, cr, ci, max_iter)

        # Return as numpy array (always float64 for compatibility)
        return result.cpu().to(torch.float64).numpy()

    def compute_julia(self, cx, cy, scale, width, height, max_iter, jr, ji):
        """Julia-set counterpart of compute_mandelbrot()."""
        if not self.available:
            raise RuntimeError("PyTorch not available")

        zr, zi = self._pixel_grid(cx, cy, scale, width, height)
        result = self._escape(zr, zi, float(jr), float(ji), max_iter)
        return result.cpu().to(torch.float64).numpy()

    def apply_colors(self, data, max_iter, out):
        """
        Colour iteration data; same mapping as compute.color_for_iteration().

        Args:
            data: numpy array of iteration counts
            max_iter: Maximum iteration value
            out: Output RGB image array (height, width, 3) uint8
        """
        if not self.available:
            raise RuntimeError("PyTorch not available")

        it = torch.from_numpy(np.ascontiguousarray(data)).to(self.device, dtype=self.dtype)
        in_set = it >= max_iter

        t = it / max_iter
        hue = torch.remainder(360.0 * (0.95 + 10.0 * t), 360.0)
        value = 0.5 + 0.45 * (1.0 - torch.exp(-t))

        # HSV -> RGB with s = 1, so chroma == value
        c = value
        hh = hue / 60.0
        x = c * (1.0 - torch.abs(torch.remainder(hh, 2.0) - 1.0))
        zero = torch.zeros_like(c)
        sector = torch.clamp(torch.floor(hh), 0.0, 5.0)

        r = torch.where((sector == 0) | (sector == 5), c,
                        torch.where((sector == 1) | (sector == 4), x, zero))
        g = torch.where((sector == 1) | (sector == 2), c,
                        torch.where((sector == 0) | (sector == 3), x, zero))
        b = torch.where((sector == 3) | (sector == 4), c,
                        torch.where((sector == 2) | (sector == 5), x, zero))
        m = value - c

        rgb = torch.stack((r + m, g + m, b + m), dim=-1)
        rgb = torch.clamp(torch.floor(rgb * 255.0 + 0.5), 0.0, 255.0)
        rgb[in_set] = 0.0

        out[:] = rgb.cpu().numpy().astype(np.uint8)

    def downscale_2x(self, src, dst):
        """
        Downscale an image by 2x using box filter.

        Args:
            src: Source image (2*height, 2*width, 3)
            dst: Destination image (height, width, 3)
        """
        if not self.available:
            raise RuntimeError("PyTorch not available")

        # Convert to tensor and reorder to (C, H, W)
        src_t = torch.from_numpy(src).to(self.device).float()
        src_t = src_t.permute(2, 0, 1).unsqueeze(0)  # (1, 3, H, W)

        # Use avg_pool2d for 2x downscaling
        dst_t = torch.nn.functional.avg_pool2d(src_t, kernel_size=2, stride=2)

        # Convert back
        dst_t = dst_t.squeeze(0).permute(1, 2, 0)
        dst[:] = dst_t.cpu().numpy().astype(np.uint8)

    def warmup(self):
        """Warm up the device by running small computations."""
        if not self.available:
            return

        data = self.compute_mandelbrot(-0.75, 0.0, 0.1, 32, 32, 32)

        dummy = np.zeros((32, 32, 3), dtype=np.uint8)
        self.apply_colors(data, 32, dummy)

        dummy_hi = np.zeros((64, 64, 3), dtype=np.uint8)
        self.downscale_2x(dummy_hi, dummy)

        # Sync to ensure warmup completed
        if self.device.type == 'cuda':
            torch.cuda.synchronize()


def probe_device(prefer_gpu=True):
    """
    Create a GPUCompute and report whether it found real GPU hardware.

    Returns:
        (GPUCompute, bool) - the instance and whether it runs on a GPU
    """
    gpu = GPUCompute(prefer_gpu=prefer_gpu)
    return gpu, gpu.available and gpu.is_gpu
