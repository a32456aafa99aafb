from __future__ import annotations

import pytest

from mandelscope.coords import pixel_to_complex
from mandelscope.viewport import MIN_SCALE, View, ViewportState, fit_scale


def test_reset_to_fit_frames_the_set() -> None:
    vp = ViewportState(cx=1.0, cy=1.0, scale=1e-6)
    vp.reset_to_fit(800, 600)
    assert (vp.cx, vp.cy) == (-0.75, 0.0)
    assert vp.scale == pytest.approx(3.5 / 800)
    assert vp.max_scale == vp.scale


def test_fit_scale_uses_the_tighter_axis() -> None:
    assert fit_scale(800, 600) == max(3.5 / 800, 2.5 / 600)
    assert fit_scale(400, 1000) == pytest.approx(3.5 / 400)
    assert fit_scale(2000, 500) == pytest.approx(2.5 / 500)


@pytest.mark.parametrize("scale", [1e-20, MIN_SCALE, 1e-5, 1.0, 1e9])
def test_clamp_scale_is_idempotent(scale) -> None:
    vp = ViewportState()
    vp.reset_to_fit(800, 600)
    once = vp.clamp_scale(scale)
    assert vp.clamp_scale(once) == once
    assert vp.min_scale <= once <= vp.max_scale


@pytest.mark.parametrize("anchor", [(0, 0), (400, 300), (650.5, 12.25)])
def test_zoom_at_keeps_anchor_fixed(anchor) -> None:
    vp = ViewportState()
    vp.reset_to_fit(800, 600)
    before = pixel_to_complex(anchor[0], anchor[1], vp, 800, 600)
    vp.zoom_at(anchor, 0.37, 800, 600)
    after = pixel_to_complex(anchor[0], anchor[1], vp, 800, 600)
    assert after.x == pytest.approx(before.x, abs=1e-12)
    assert after.y == pytest.approx(before.y, abs=1e-12)


def test_zoom_out_is_clamped_at_fit_scale() -> None:
    vp = ViewportState()
    vp.reset_to_fit(800, 600)
    vp.zoom_at((100, 100), 10.0, 800, 600)
    assert vp.scale == vp.max_scale


def test_zoom_in_is_clamped_at_min_scale() -> None:
    vp = ViewportState()
    vp.reset_to_fit(800, 600)
    vp.zoom_to_scale_at((400, 300), 1e-30, 800, 600)
    assert vp.scale == MIN_SCALE


def test_pan_moves_content_with_the_drag() -> None:
    vp = ViewportState(cx=0.0, cy=0.0, scale=0.5)
    vp.pan_by_pixels(4, -2)
    assert (vp.cx, vp.cy) == (-2.0, -1.0)


def test_commit_clamps_scale() -> None:
    vp = ViewportState()
    vp.reset_to_fit(800, 600)
    vp.commit(View(0.1, 0.2, 1e3))
    assert vp.view() == View(0.1, 0.2, vp.max_scale)


def test_copy_is_independent() -> None:
    vp = ViewportState()
    clone = vp.copy()
    clone.pan_by_pixels(10, 10)
    assert clone.view() != vp.view()
