"""
Pixel <-> complex-plane mapping.

All functions here work in device pixels. Raw input coordinates arrive in
CSS (logical) pixels and must go through css_to_device() first.

The mapping is centred: pixel (width/2, height/2) is the view centre, and
screen Y is flipped because pixel rows grow downward while the imaginary
axis grows upward.
"""

from collections import namedtuple


ComplexPoint = namedtuple('ComplexPoint', ['x', 'y'])
DevicePixelPoint = namedtuple('DevicePixelPoint', ['x', 'y'])


def pixel_to_complex(px, py, viewport, width, height):
    """
    Map a device pixel to the complex plane.

    Args:
        px, py: Pixel position (device pixels, may be fractional)
        viewport: Anything with cx, cy and scale attributes
        width, height: Canvas size in device pixels

    Returns:
        ComplexPoint
    """
    x = viewport.cx + (px - width / 2) * viewport.scale
    y = viewport.cy - (py - height / 2) * viewport.scale
    return ComplexPoint(x, y)


def complex_to_pixel(x, y, viewport, width, height):
    """Inverse of pixel_to_complex()."""
    px = (x - viewport.cx) / viewport.scale + width / 2
    py = (viewport.cy - y) / viewport.scale + height / 2
    return DevicePixelPoint(px, py)


def css_to_device(x, y, device_pixel_ratio):
    """Scale a CSS-pixel position to device pixels."""
    return DevicePixelPoint(x * device_pixel_ratio, y * device_pixel_ratio)
