from __future__ import annotations

import pytest

from mandelscope.animation import CameraAnimator, ease_in_out
from mandelscope.viewport import View, ViewportState


def _viewport():
    vp = ViewportState()
    vp.reset_to_fit(800, 600)
    return vp


def test_ease_in_out_endpoints_and_midpoint() -> None:
    assert ease_in_out(0.0) == 0.0
    assert ease_in_out(0.5) == 0.5
    assert ease_in_out(1.0) == 1.0
    assert ease_in_out(0.25) == pytest.approx(0.125)
    assert ease_in_out(0.75) == pytest.approx(0.875)


def test_ease_in_out_is_monotonic() -> None:
    values = [ease_in_out(i / 100) for i in range(101)]
    assert values == sorted(values)


def test_step_interpolates_linearly_in_eased_time() -> None:
    vp = _viewport()
    start = vp.view()
    target = View(0.25, -0.5, start.scale / 4)
    animator = CameraAnimator(vp)
    assert animator.start(target, now=1000, duration_ms=300)

    animator.step(1150)
    assert vp.cx == pytest.approx((start.cx + target.cx) / 2)
    assert vp.cy == pytest.approx((start.cy + target.cy) / 2)
    assert vp.scale == pytest.approx((start.scale + target.scale) / 2)
    assert animator.animating


def test_final_step_lands_exactly_on_target() -> None:
    vp = _viewport()
    target = View(-0.1011, 0.9563, 0.0003)
    animator = CameraAnimator(vp)
    animator.start(target, now=0)
    animator.step(299)
    animator.step(450)
    assert vp.view() == target
    assert not animator.animating
    assert not animator.step(500)


def test_second_start_is_rejected_while_running() -> None:
    vp = _viewport()
    animator = CameraAnimator(vp)
    first = View(0.0, 0.0, 0.001)
    assert animator.start(first, now=0)
    assert not animator.start(View(1.0, 1.0, 0.002), now=10)
    animator.step(1000)
    assert vp.view() == first


def test_every_step_reports_a_frame() -> None:
    frames = []
    animator = CameraAnimator(_viewport(), on_frame=frames.append)
    animator.start(View(0.0, 0.0, 0.001), now=0, duration_ms=100)
    for now in (16, 33, 50, 120):
        animator.step(now)
    assert frames == [16, 33, 50, 120]


def test_zero_duration_jumps_to_target() -> None:
    vp = _viewport()
    animator = CameraAnimator(vp)
    animator.start(View(0.5, 0.5, 0.001), now=0, duration_ms=0)
    animator.step(0)
    assert vp.view() == View(0.5, 0.5, 0.001)
    assert not animator.animating


def test_cancel_leaves_view_where_it_was() -> None:
    vp = _viewport()
    animator = CameraAnimator(vp)
    animator.start(View(0.5, 0.5, 0.001), now=0)
    animator.step(100)
    mid = vp.view()
    animator.cancel()
    assert not animator.step(200)
    assert vp.view() == mid
