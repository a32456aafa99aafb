"""
Escape-time computation functions using Numba JIT compilation.

This module contains the performance-critical functions of the CPU
backend. They handle:
- Escape-time iteration with a smooth (fractional) iteration count
- Iteration -> RGB colouring (banded HSV rainbow)
- Full-frame evaluation, split across worker threads by row (prange)
- Image downscaling for supersampled anti-aliasing

Frames are laid out the way the screen is: row 0 is the top of the view,
so the imaginary coordinate decreases with the row index.

No fastmath here: the smoothing step needs its NaN check to survive
compilation.
"""

import numpy as np
from numba import jit, prange


ESCAPE_RADIUS_SQ = 4.0
LOG2 = np.log(2.0)


@jit(nopython=True, cache=True)
def escape_from(x, y, cr, ci, max_iter):
    """
    Iterate z <- z^2 + c from z = (x, y) and return the smooth escape count.

    Tracks x^2 and y^2 separately so each step needs one less multiply.

    Args:
        x, y: Starting value of z
        cr, ci: The constant c
        max_iter: Iteration budget

    Returns:
        max_iter exactly if the orbit never left the radius-2 disk,
        otherwise iter + 1 - nu (nu replaced by 0 when it is NaN).
    """
    xx = x * x
    yy = y * y
    iteration = 0
    while xx + yy <= ESCAPE_RADIUS_SQ and iteration < max_iter:
        y = 2.0 * x * y + ci
        x = xx - yy + cr
        xx = x * x
        yy = y * y
        iteration += 1

    if iteration == max_iter:
        return np.float64(max_iter)

    nu = np.log(np.log(xx + yy) / 2.0 / LOG2) / LOG2
    if np.isnan(nu):
        nu = 0.0
    return iteration + 1 - nu


@jit(nopython=True, cache=True)
def escape_iterations(cx, cy, max_iter):
    """Smooth escape count of the Mandelbrot orbit of c = (cx, cy)."""
    return escape_from(0.0, 0.0, cx, cy, max_iter)


@jit(nopython=True, cache=True)
def _to_byte(v):
    b = np.floor(v * 255.0 + 0.5)
    if b < 0.0:
        return 0
    if b > 255.0:
        return 255
    return int(b)


@jit(nopython=True, cache=True)
def hsv_to_rgb(h, s, v):
    """
    HSV -> 8-bit RGB using the six 60-degree hue sectors.

    Args:
        h: Hue in degrees (any value, wrapped into [0, 360))
        s, v: Saturation and value in [0, 1]

    Returns:
        (r, g, b) ints in 0..255, rounded half up
    """
    h = ((h % 360.0) + 360.0) % 360.0
    c = v * s
    hh = h / 60.0
    x = c * (1.0 - abs(hh % 2.0 - 1.0))
    if hh < 1.0:
        r, g, b = c, x, 0.0
    elif hh < 2.0:
        r, g, b = x, c, 0.0
    elif hh < 3.0:
        r, g, b = 0.0, c, x
    elif hh < 4.0:
        r, g, b = 0.0, x, c
    elif hh < 5.0:
        r, g, b = x, 0.0, c
    else:
        r, g, b = c, 0.0, x
    m = v - c
    return _to_byte(r + m), _to_byte(g + m), _to_byte(b + m)


@jit(nopython=True, cache=True)
def color_for_iteration(iteration, max_iter):
    """
    Colour for a smooth iteration count.

    The hue runs round the colour wheel ten times across the iteration
    range, which gives banded rainbow colouring instead of one gradient.
    Points in the set (iteration >= max_iter) are black.
    """
    if iteration >= max_iter:
        return 0, 0, 0
    t = iteration / max_iter
    hue = (360.0 * (0.95 + 10.0 * t)) % 360.0
    value = 0.5 + 0.45 * (1.0 - np.exp(-t))
    return hsv_to_rgb(hue, 1.0, value)


@jit(nopython=True, parallel=True, cache=True)
def compute_mandelbrot(cx, cy, scale, width, height, max_iter):
    """
    Compute smooth escape counts for a whole frame.

    Args:
        cx, cy: Plane coordinate at the frame centre
        scale: Plane units per pixel
        width, height: Frame dimensions in pixels
        max_iter: Iteration budget

    Returns:
        2D numpy array (height, width) of float64 smooth iteration counts.
        Points in the set have value = max_iter.
    """
    result = np.empty((height, width), dtype=np.float64)
    half_w = width / 2.0
    half_h = height / 2.0

    for py in prange(height):
        y0 = cy - (py - half_h) * scale
        for px in range(width):
            x0 = cx + (px - half_w) * scale
            result[py, px] = escape_from(0.0, 0.0, x0, y0, max_iter)

    return result


@jit(nopython=True, parallel=True, cache=True)
def compute_julia(cx, cy, scale, width, height, max_iter, jr, ji):
    """
    Same as compute_mandelbrot() but for the Julia set of c = (jr, ji).

    Each pixel is the starting z instead of the constant.
    """
    result = np.empty((height, width), dtype=np.float64)
    half_w = width / 2.0
    half_h = height / 2.0

    for py in prange(height):
        y0 = cy - (py - half_h) * scale
        for px in range(width):
            x0 = cx + (px - half_w) * scale
            result[py, px] = escape_from(x0, y0, jr, ji, max_iter)

    return result


@jit(nopython=True, parallel=True, cache=True)
def apply_colors(data, max_iter, out):
    """
    Colour a frame of iteration counts.

    Args:
        data: 2D array of iteration counts from compute_mandelbrot
        max_iter: Iteration budget the data was computed with
        out: Output RGB image array (height, width, 3) uint8, modified in place
    """
    height, width = data.shape
    for py in prange(height):
        for px in range(width):
            r, g, b = color_for_iteration(data[py, px], max_iter)
            out[py, px, 0] = r
            out[py, px, 1] = g
            out[py, px, 2] = b


@jit(nopython=True, parallel=True, cache=True)
def downscale_2x(src, dst):
    """
    Downscale an image by 2x using box filter (4-pixel average).

    Used for supersampled anti-aliasing: render at 2x resolution,
    then downscale for smooth edges.

    Args:
        src: Source image (2*height, 2*width, 3)
        dst: Destination image (height, width, 3), modified in place
    """
    height, width = dst.shape[:2]
    for y in prange(height):
        y2 = y * 2
        for x in range(width):
            x2 = x * 2
            for c in range(3):
                val = (int(src[y2, x2, c]) + int(src[y2, x2 + 1, c]) +
                       int(src[y2 + 1, x2, c]) + int(src[y2 + 1, x2 + 1, c])) // 4
                dst[y, x, c] = val


def warmup_jit():
    """
    Warm up JIT compilation with small dummy arrays.

    Call this once at startup to pre-compile the Numba functions,
    avoiding a delay on first actual use.
    """
    data = compute_mandelbrot(-0.75, 0.0, 0.3, 10, 10, 10)
    _ = compute_julia(0.0, 0.0, 0.4, 10, 10, 10, -0.7, 0.27)
    dummy = np.zeros((10, 10, 3), dtype=np.uint8)
    dummy_hi = np.zeros((20, 20, 3), dtype=np.uint8)
    apply_colors(data, 10, dummy)
    downscale_2x(dummy_hi, dummy)
