from __future__ import annotations

import numpy as np
import pytest

torch = pytest.importorskip("torch")

from mandelscope import compute
from mandelscope.compute_gpu import GPUCompute
from mandelscope.evaluator import FrameParams, GPUEvaluator


@pytest.fixture
def gpu():
    # Plain torch on the CPU keeps float64 so results are comparable
    return GPUCompute(prefer_gpu=False)


def test_counts_match_cpu_kernel(gpu) -> None:
    args = (-0.7435, 0.1314, 2e-4, 48, 32, 300)
    expected = compute.compute_mandelbrot(*args)
    actual = gpu.compute_mandelbrot(*args)
    assert actual.shape == expected.shape
    # Orbits near the boundary amplify last-bit differences; the bulk must agree
    close = np.abs(actual - expected) < 1e-6
    assert close.mean() > 0.99


def test_julia_matches_cpu_kernel(gpu) -> None:
    args = (0.0, 0.0, 0.05, 40, 30, 120, -0.8, 0.156)
    close = np.abs(gpu.compute_julia(*args) - compute.compute_julia(*args)) < 1e-6
    assert close.mean() > 0.99


def test_colours_match_cpu_kernel(gpu) -> None:
    data = compute.compute_mandelbrot(-0.5, 0.0, 0.01, 40, 30, 100)
    expected = np.empty(data.shape + (3,), dtype=np.uint8)
    actual = np.empty_like(expected)
    compute.apply_colors(data, 100, expected)
    gpu.apply_colors(data, 100, actual)
    diff = np.abs(actual.astype(int) - expected.astype(int))
    assert diff.max() <= 1


def test_gpu_evaluator_render(gpu) -> None:
    evaluator = GPUEvaluator(gpu)
    rgb = evaluator.render(FrameParams(-0.75, 0.0, 0.02, 50, 24, 16, supersample=2))
    assert rgb.shape == (16, 24, 3)
    assert rgb.dtype == np.uint8
