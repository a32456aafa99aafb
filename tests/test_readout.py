from __future__ import annotations

import pytest

from mandelscope.presets import PRESETS, get_preset, list_preset_names
from mandelscope.readout import format_magnification, format_scale


@pytest.mark.parametrize("value, text", [
    (1.0, "1.0"),
    (123.44, "123.4"),
    (12345.0, "12.3K"),
    (4.5e6, "4.5M"),
    (6.7e9, "6.7G"),
    (8.9e15, "8.9×10¹⁵"),
])
def test_format_magnification(value, text) -> None:
    assert format_magnification(value) == text


def test_format_scale() -> None:
    assert format_scale(1.3e-4) == "1.3×10⁻⁴"


def test_presets() -> None:
    names = list_preset_names()
    assert len(names) == 8
    assert names[0] == "Seahorse Valley"
    for name in names:
        view = get_preset(name)
        assert abs(complex(view.cx, view.cy)) <= 2.0
        assert view.scale > 0
    assert get_preset("Dendrite") is PRESETS["Dendrite"]
    with pytest.raises(KeyError):
        get_preset("Nowhere")
