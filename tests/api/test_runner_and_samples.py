from __future__ import annotations

import pytest

from api import run
from api.player import Player
from api.runner import resolve_fps, resolve_player_options
from api.samples import make_letter_array, reverse_word
from engine.render.line_backend import LineBackend
from engine.runtime.surface import MutatorSurface


def test_run_init_only_builds_player() -> None:
    player = run(reverse_word, init_only=True)

    assert isinstance(player, Player)
    assert player.bounds == (0.0, 0.0, 900.0, 556.0)
    assert isinstance(player.backend, LineBackend)
    assert not player.is_done()
    player.close()


@pytest.mark.parametrize(
    "requested, cfg, expected",
    [
        (60, {"player": {"fps": 10}}, 60),
        (0, {}, 1),
        (None, {"player": {"fps": 12}}, 12),
        (None, {"player": {"fps": "fast"}}, 30),
        (None, {}, 30),
    ],
)
def test_resolve_fps(requested, cfg, expected) -> None:
    assert resolve_fps(requested, cfg) == expected


def test_resolve_player_options() -> None:
    cfg = {"player": {"autoplay": True, "workers": -3}}

    assert resolve_player_options(cfg, autoplay=None, workers=None) == (True, 0)
    assert resolve_player_options(cfg, autoplay=False, workers=2) == (False, 2)
    assert resolve_player_options({"player": {"workers": "many"}}, autoplay=None, workers=None) == (False, 0)


def test_make_letter_array_lays_out_tiles() -> None:
    surface = MutatorSurface((0.0, 0.0, 500.0, 100.0))

    letters = make_letter_array(surface, "ABC")

    tiles = [letters.get_element(i) for i in range(3)]
    assert [t.get_own_value("text") for t in tiles] == ["A", "B", "C"]
    assert [t.value_node.get_own_value("text") for t in tiles] == [0, 1, 2]
    xs = [t.get_own_value("x") for t in tiles]
    assert xs == sorted(xs)
    assert all(t.get_own_value("w") == pytest.approx(100.0) for t in tiles)


def test_swap_animates_over_three_ticks() -> None:
    surface = MutatorSurface((0.0, 0.0, 500.0, 100.0))
    letters = make_letter_array(surface, "ABC")
    first_x = letters.get_element(0).get_own_value("x")
    last_x = letters.get_element(2).get_own_value("x")
    surface.flush()

    letters.swap(0, 2)

    moved = letters.get_element(0)
    assert moved.get_own_value("text") == "C"
    assert moved.get_own_value("x") == pytest.approx(first_x)
    (update,) = [c for c in surface.flush() if c.target_id == moved.id]
    assert len(update.payload["x"]) == 3
    assert update.payload["x"][0] == pytest.approx(last_x)
    assert update.payload["x"][-1] == pytest.approx(first_x)
    assert len(update.payload["y"]) == 3
    assert "state" not in update.payload
