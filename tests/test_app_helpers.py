from __future__ import annotations

from collections import defaultdict

import pygame

from mandelscope.app import held_actions, is_double_click, wheel_delta


def test_wheel_notch_direction() -> None:
    assert wheel_delta(1) == -100
    assert wheel_delta(-2) == 200


def test_held_actions() -> None:
    pressed = defaultdict(bool, {pygame.K_UP: True, pygame.K_d: True, pygame.K_KP_MINUS: True})
    assert held_actions(pressed) == {"up", "right", "zoom_out"}
    assert held_actions(defaultdict(bool)) == set()


def test_double_click_window() -> None:
    last = (1000, (50, 50))
    assert is_double_click(last, (52, 49), 1300, 400, 5)
    assert not is_double_click(last, (52, 49), 1500, 400, 5)
    assert not is_double_click(last, (60, 50), 1100, 400, 5)
    assert not is_double_click(None, (50, 50), 1000, 400, 5)
