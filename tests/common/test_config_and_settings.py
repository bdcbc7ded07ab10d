from __future__ import annotations

import logging

import pytest

from common import settings
from common.base_registry import BaseRegistry
from common.env import env_bool, env_int
from common.logging import apply_logging_config
from util.color import Color, normalize_color, parse_hex_color_str, to_u8_rgba, with_alpha
from util.utils import config_section, load_config, resolve_bounds


def test_env_int_and_bool(monkeypatch) -> None:
    monkeypatch.setenv("ALGO_TEST_INT", " 3 ")
    monkeypatch.setenv("ALGO_TEST_BAD", "x")
    assert env_int("ALGO_TEST_INT") == 3
    assert env_int("ALGO_TEST_INT", min_value=5) == 5
    assert env_int("ALGO_TEST_BAD", 7) == 7
    assert env_int("ALGO_TEST_UNSET", None) is None

    for raw, expected in [("1", True), ("0", False), ("yes", True), ("off", False)]:
        monkeypatch.setenv("ALGO_TEST_BOOL", raw)
        assert env_bool("ALGO_TEST_BOOL") is expected
    monkeypatch.setenv("ALGO_TEST_BOOL", "maybe")
    assert env_bool("ALGO_TEST_BOOL", True) is True


def test_settings_reload_from_env(monkeypatch) -> None:
    assert settings.get().VALIDATE is True
    assert settings.get().CIRCLE_SEGMENTS == 48

    monkeypatch.setenv("ALGO_VALIDATE", "false")
    monkeypatch.setenv("ALGO_CIRCLE_SEGMENTS", "2")
    monkeypatch.setenv("ALGO_MAX_MESSAGES_PER_TICK", "16")
    settings.reload_from_env()

    assert settings.get().VALIDATE is False
    assert settings.get().CIRCLE_SEGMENTS == 8
    assert settings.get().MAX_MESSAGES_PER_TICK == 16


def test_base_registry_normalizes_keys() -> None:
    reg = BaseRegistry()

    @reg.register()
    class FancyThing:
        pass

    assert reg.get("fancy-thing") is FancyThing
    assert reg.is_registered("FancyThing")
    assert reg.list_all() == ["fancy_thing"]
    with pytest.raises(ValueError):
        reg.register("fancy_thing")(object)
    with pytest.raises(KeyError):
        reg.get("missing")


def test_color_normalization() -> None:
    assert parse_hex_color_str("#FF000080") == pytest.approx((1.0, 0.0, 0.0, 128 / 255))
    assert normalize_color("0x00FF00") == (0.0, 1.0, 0.0, 1.0)
    assert normalize_color((255, 0, 0)) == (1.0, 0.0, 0.0, 1.0)
    assert normalize_color((0.5, 0.5, 0.5)) == (0.5, 0.5, 0.5, 1.0)
    assert with_alpha(Color.RED, 0.5)[3] == 0.5
    assert to_u8_rgba(Color.WHITE) == (255, 255, 255, 255)
    with pytest.raises(ValueError):
        normalize_color("#12345")
    with pytest.raises(ValueError):
        normalize_color((1, 2))
    with pytest.raises(ValueError):
        normalize_color(3)


def test_config_sections_and_bounds() -> None:
    cfg = {"surface": {"bounds": {"x": 1, "y": 2, "w": 30, "h": 40}}, "player": [1, 2]}

    assert resolve_bounds(cfg=cfg) == (1.0, 2.0, 30.0, 40.0)
    assert resolve_bounds((0, 0, 5, 6), cfg=cfg) == (0.0, 0.0, 5.0, 6.0)
    assert resolve_bounds(cfg={}) == (0.0, 0.0, 900.0, 556.0)
    assert config_section("player", cfg) == {}
    assert config_section("missing", cfg) == {}
    with pytest.raises(ValueError):
        resolve_bounds((0, 0, 0, 10))


def test_default_config_is_loaded() -> None:
    cfg = load_config()

    assert config_section("player", cfg)["fps"] == 30
    assert resolve_bounds(cfg=cfg)[2:] == (900.0, 556.0)


def test_logging_config_sets_logger_levels() -> None:
    apply_logging_config(
        {"logging": {"level": "INFO", "loggers": {"algoscene.test.a": "DEBUG", "algoscene.test.b": "NOPE"}}}
    )

    assert logging.getLogger("algoscene.test.a").level == logging.DEBUG
    assert logging.getLogger("algoscene.test.b").level == logging.INFO
    apply_logging_config(None)
