from __future__ import annotations

import json
import logging

import pytest

from mandelscope import __main__ as cli
from mandelscope.config import ViewerConfig, load_config


def test_defaults_without_settings_file(tmp_path, caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="mandelscope.config"):
        config = load_config(tmp_path / "missing.json")
    assert config == ViewerConfig()
    assert "not found" in caplog.text


def test_settings_file_overrides_defaults(tmp_path, caplog) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"width": 640, "rect_mode": "fill", "colormap": "ocean"}))
    with caplog.at_level(logging.WARNING, logger="mandelscope.config"):
        config = load_config(path)
    assert config.width == 640
    assert config.rect_mode == "fill"
    assert config.height == ViewerConfig().height
    assert "colormap" in caplog.text


def test_overrides_win_and_none_is_ignored(tmp_path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"width": 640, "backend": "gpu"}))
    config = load_config(path, width=1024, backend=None)
    assert config.width == 1024
    assert config.backend == "gpu"


def test_broken_settings_file_falls_back(tmp_path, caplog) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{not json")
    with caplog.at_level(logging.WARNING, logger="mandelscope.config"):
        assert load_config(path) == ViewerConfig()
    assert "Could not load" in caplog.text


@pytest.mark.parametrize("override", [
    {"width": 0},
    {"device_pixel_ratio": 0.0},
    {"max_iter": 0},
    {"rect_mode": "stretch"},
    {"supersample": 3},
    {"backend": "tpu"},
])
def test_invalid_values_raise(tmp_path, override) -> None:
    with pytest.raises(ValueError):
        load_config(tmp_path / "none.json", **override)


def test_cli_builds_config(monkeypatch) -> None:
    seen = {}
    monkeypatch.setattr(cli, "run", lambda config: seen.setdefault("config", config))
    assert cli.main(["--width", "300", "--max-iter", "900", "--rect-mode", "fill"]) == 0
    config = seen["config"]
    assert config.width == 300
    assert config.max_iter == 900
    assert not config.auto_iterations
    assert config.rect_mode == "fill"


def test_cli_rejects_invalid_values(monkeypatch) -> None:
    monkeypatch.setattr(cli, "run", lambda config: None)
    with pytest.raises(SystemExit):
        cli.main(["--width", "-4"])


def test_wrongly_typed_settings_are_dropped(tmp_path, caplog) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({
        "width": "800",
        "auto_iterations": 1,
        "max_iter": True,
        "device_pixel_ratio": 2,
        "rect_mode": 5,
        "height": 480,
    }))
    with caplog.at_level(logging.WARNING, logger="mandelscope.config"):
        config = load_config(path)
    defaults = ViewerConfig()
    assert config.width == defaults.width
    assert config.auto_iterations is defaults.auto_iterations
    assert config.max_iter == defaults.max_iter
    assert config.rect_mode == defaults.rect_mode
    assert config.device_pixel_ratio == 2
    assert config.height == 480
    assert "width" in caplog.text


def test_cli_survives_wrongly_typed_settings(tmp_path, monkeypatch) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"width": "800"}))
    seen = {}
    monkeypatch.setattr(cli, "run", lambda config: seen.setdefault("config", config))
    assert cli.main(["--settings", str(path)]) == 0
    assert seen["config"].width == ViewerConfig().width
