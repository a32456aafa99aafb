from __future__ import annotations

import logging
import threading
import time

import numpy as np
import pytest

from mandelscope.evaluator import FrameParams
from mandelscope.renderer import FrameRenderer, reprojection
from mandelscope.viewport import ViewportState


class _RecordingEvaluator:
    """Returns a flat image whose red channel is the iteration budget."""

    def __init__(self, block_first=False, fail_first=False) -> None:
        self.calls = []
        self.started = threading.Event()
        self.release = threading.Event()
        self.block_first = block_first
        self.fail_first = fail_first

    def render(self, params):
        self.calls.append(params)
        first = len(self.calls) == 1
        if first and self.block_first:
            self.started.set()
            self.release.wait(timeout=5)
        if first and self.fail_first:
            raise RuntimeError("boom")
        rgb = np.zeros((params.height, params.width, 3), dtype=np.uint8)
        rgb[..., 0] = params.max_iter % 256
        return rgb


def _params(max_iter, width=8, height=6):
    return FrameParams(cx=-0.75, cy=0.0, scale=0.01, max_iter=max_iter, width=width, height=height)


def _wait_idle(renderer, timeout=5.0):
    deadline = time.monotonic() + timeout
    while renderer.computing and time.monotonic() < deadline:
        time.sleep(0.005)
    assert not renderer.computing


def test_async_result_is_published() -> None:
    renderer = FrameRenderer(_RecordingEvaluator())
    renderer.compute_async(_params(10))
    _wait_idle(renderer)
    rgb, params = renderer.get_result()
    assert params == _params(10)
    assert rgb.shape == (6, 8, 3)
    assert renderer.get_result() == (None, None)


def test_superseded_frame_is_discarded() -> None:
    evaluator = _RecordingEvaluator(block_first=True)
    renderer = FrameRenderer(evaluator)

    assert renderer.compute_async(_params(10)) == 1
    assert evaluator.started.wait(timeout=5)
    renderer.compute_async(_params(20))
    renderer.compute_async(_params(30))
    evaluator.release.set()
    _wait_idle(renderer)

    # 20 was replaced while waiting, 10 finished after being superseded
    assert [p.max_iter for p in evaluator.calls] == [10, 30]
    rgb, params = renderer.get_result()
    assert params.max_iter == 30
    assert rgb[0, 0, 0] == 30


def test_worker_survives_a_failed_render(caplog) -> None:
    renderer = FrameRenderer(_RecordingEvaluator(fail_first=True))
    with caplog.at_level(logging.ERROR, logger="mandelscope.renderer"):
        renderer.compute_async(_params(10))
        _wait_idle(renderer)
    assert renderer.get_result() == (None, None)
    assert "failed" in caplog.text

    renderer.compute_async(_params(11))
    _wait_idle(renderer)
    _, params = renderer.get_result()
    assert params.max_iter == 11


def test_render_now_is_synchronous() -> None:
    renderer = FrameRenderer(_RecordingEvaluator())
    rgb = renderer.render_now(_params(5, width=3, height=2))
    assert rgb.shape == (2, 3, 3)
    assert not renderer.computing


def _frame(cx, cy, scale, width=800, height=600):
    return FrameParams(cx=cx, cy=cy, scale=scale, max_iter=100, width=width, height=height)


def test_reprojection_identity() -> None:
    vp = ViewportState(cx=-0.5, cy=0.1, scale=0.004)
    src, dst = reprojection(_frame(-0.5, 0.1, 0.004), vp, 800, 600)
    assert src == pytest.approx((0, 0, 800, 600))
    assert dst == pytest.approx((0, 0, 800, 600))


def test_reprojection_after_zooming_in_uses_the_middle_of_the_frame() -> None:
    vp = ViewportState(cx=-0.5, cy=0.1, scale=0.002)
    src, dst = reprojection(_frame(-0.5, 0.1, 0.004), vp, 800, 600)
    assert src == pytest.approx((200, 150, 400, 300))
    assert dst == pytest.approx((0, 0, 800, 600))


def test_reprojection_after_panning_shifts_the_frame() -> None:
    vp = ViewportState(cx=0.0, cy=0.0, scale=0.01)
    # View moved right by 100 px worth of plane units
    src, dst = reprojection(_frame(-1.0, 0.0, 0.01), vp, 800, 600)
    assert src == pytest.approx((100, 0, 700, 600))
    assert dst == pytest.approx((0, 0, 700, 600))


def test_reprojection_off_screen_is_none() -> None:
    vp = ViewportState(cx=100.0, cy=0.0, scale=0.01)
    assert reprojection(_frame(-0.5, 0.0, 0.01), vp, 800, 600) is None
