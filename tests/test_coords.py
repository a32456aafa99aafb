from __future__ import annotations

import pytest

from mandelscope.coords import complex_to_pixel, css_to_device, pixel_to_complex
from mandelscope.viewport import ViewportState


def test_centre_pixel_maps_to_view_centre() -> None:
    vp = ViewportState(cx=-0.75, cy=0.25, scale=0.01)
    p = pixel_to_complex(400, 300, vp, 800, 600)
    assert p.x == -0.75
    assert p.y == 0.25


def test_screen_y_is_flipped() -> None:
    vp = ViewportState(cx=0.0, cy=0.0, scale=0.01)
    top = pixel_to_complex(400, 0, vp, 800, 600)
    bottom = pixel_to_complex(400, 600, vp, 800, 600)
    assert top.y == pytest.approx(3.0)
    assert bottom.y == pytest.approx(-3.0)


@pytest.mark.parametrize("px, py", [(0, 0), (123.25, 456.5), (799, 599), (-40, 900)])
def test_pixel_round_trip(px, py) -> None:
    vp = ViewportState(cx=-0.7435669, cy=0.1314023, scale=3.7e-9)
    c = pixel_to_complex(px, py, vp, 800, 600)
    back = complex_to_pixel(c.x, c.y, vp, 800, 600)
    assert back.x == pytest.approx(px, abs=1e-6)
    assert back.y == pytest.approx(py, abs=1e-6)


def test_css_to_device_scales_by_ratio() -> None:
    assert tuple(css_to_device(10, 20.5, 2.0)) == (20.0, 41.0)
