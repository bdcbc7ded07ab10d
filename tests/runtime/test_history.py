from __future__ import annotations

import json
from typing import Iterator

import pytest

from engine.render.backend import MemoryBackend
from engine.runtime.history import FrameHistory, HistoryPlayer
from engine.runtime.protocol import ProtocolState, TickProtocol
from engine.runtime.surface import MutatorSurface, RendererSurface
from engine.runtime.task import GeneratorTask
from scene.kinds import Circle, Rectangle
from scene.states import BLUE, RED
from util.color import Color


def _recorded_history() -> FrameHistory:
    surface = MutatorSurface((0.0, 0.0, 200.0, 100.0))

    def algorithm() -> Iterator[dict]:
        a = Rectangle(surface.registry, {"w": 10, "h": 10, "fill": Color.RED})
        yield {"step": 1}
        Circle(surface.registry, {"radius": 3})
        yield {"step": 2}
        a.destroy()
        yield {"step": 3}

    history = FrameHistory()
    protocol = TickProtocol(GeneratorTask(algorithm()), surface.command_log, history.record)
    protocol.start()
    while protocol.state is not ProtocolState.DONE:
        protocol.on_continue()
    return history


def test_seek_rebuilds_any_frame() -> None:
    history = _recorded_history()
    assert len(history) == 4
    player = HistoryPlayer(RendererSurface(MemoryBackend(), validate=True), history)

    expected = {0: [], 1: [0, 1], 2: [0, 1, 2], 3: [0, 2], 4: [0, 2]}
    for frame in (4, 1, 3, 0, 2):
        player.seek(frame)
        assert player.current_frame == frame
        assert player.surface.registry.ids() == expected[frame]


def test_forward_seek_is_incremental_and_backward_rebuilds() -> None:
    backend = MemoryBackend()
    player = HistoryPlayer(RendererSurface(backend, validate=True), _recorded_history())

    player.seek(1)
    assert (backend.created, backend.destroyed) == (2, 0)

    player.seek(2)
    assert (backend.created, backend.destroyed) == (3, 0)

    player.seek(1)
    assert (backend.created, backend.destroyed) == (5, 3)


def test_seek_out_of_range_raises() -> None:
    player = HistoryPlayer(RendererSurface(MemoryBackend()), _recorded_history())
    with pytest.raises(IndexError):
        player.seek(5)
    with pytest.raises(IndexError):
        player.seek(-1)
    assert player.current_frame is None


def test_save_and_load_keep_tuples_and_sequences(tmp_path) -> None:
    history = _recorded_history()
    history.append([])
    path = history.save(tmp_path / "out" / "history.json")

    loaded = FrameHistory.load(path)

    assert len(loaded) == 5
    assert [len(f) for f in loaded] == [len(f) for f in history]
    fill = loaded[0][1].payload["fill"]
    assert isinstance(fill, tuple)
    assert fill == Color.RED
    assert loaded[0][0].payload["root"] is True

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw[0][1]["payload"]["fill"] == {"__tuple__": list(Color.RED)}


def test_sequence_values_survive_save(tmp_path) -> None:
    from engine.runtime.command import Command

    history = FrameHistory([[Command.update(1, {"x": [1, 2], "fill": Color.BLUE}, more=True)]])
    loaded = FrameHistory.load(history.save(tmp_path / "h.json"))

    (cmd,) = loaded[0]
    assert cmd.payload["x"] == [1, 2]
    assert cmd.payload["fill"] == Color.BLUE
    assert cmd.more is True


def test_load_rejects_malformed_files(tmp_path) -> None:
    path = tmp_path / "bad.json"
    path.write_text('{"frames": 1}', encoding="utf-8")
    with pytest.raises(ValueError):
        FrameHistory.load(path)


def _busy_run() -> tuple[MutatorSurface, FrameHistory]:
    """系列値・付け替え・破棄・depth 伝播を含む実行を記録する。"""
    surface = MutatorSurface((0.0, 0.0, 200.0, 100.0))
    reg = surface.registry

    def algorithm() -> Iterator[dict]:
        a = Rectangle(reg, {"x": 0, "w": 10, "h": 10})
        b = Rectangle(reg, {"x": 50, "w": 10, "h": 10})
        c = Circle(reg, {"parent": a, "radius": 2})
        yield {"step": "built"}
        a.set({"x": [10, 20, 30], "state": [RED, BLUE, RED]})
        c.set({"parent": b})
        yield {"step": "moved"}
        Circle(reg, {"parent": c, "radius": [1, 2]})
        a.destroy()
        yield {"step": "pruned"}
        b.set({"fill": Color.GREEN}, 2)
        yield {"step": "painted"}

    history = FrameHistory()
    protocol = TickProtocol(GeneratorTask(algorithm()), surface.command_log, history.record)
    protocol.start()
    while protocol.state is not ProtocolState.DONE:
        protocol.on_continue()
    return surface, history


def _snapshot(surface) -> dict:
    return {
        node.id: (
            dict(node.props),
            node.parent.id if node.parent is not None else None,
            [child.id for child in node.children],
        )
        for node in surface.registry
    }


def test_incremental_seek_matches_full_replay_and_live_surface() -> None:
    mutator, history = _busy_run()
    stepping = HistoryPlayer(RendererSurface(MemoryBackend(), validate=True), history)
    live = RendererSurface(MemoryBackend(), validate=True)

    for frame in range(len(history) + 1):
        if frame > 0:
            live.apply(history[frame - 1])
        stepping.seek(frame)
        fresh = HistoryPlayer(RendererSurface(MemoryBackend(), validate=True), history)
        fresh.seek(frame)
        assert _snapshot(stepping.surface) == _snapshot(fresh.surface), frame
        assert _snapshot(stepping.surface) == _snapshot(live), frame

    final = {node.id: dict(node.props) for node in mutator.registry}
    assert {node_id: props for node_id, (props, _, _) in _snapshot(live).items()} == final


def test_backward_seek_matches_full_replay() -> None:
    _, history = _busy_run()
    player = HistoryPlayer(RendererSurface(MemoryBackend(), validate=True), history)
    player.seek(len(history))

    for frame in (3, 1, 0):
        player.seek(frame)
        fresh = HistoryPlayer(RendererSurface(MemoryBackend(), validate=True), history)
        fresh.seek(frame)
        assert _snapshot(player.surface) == _snapshot(fresh.surface)
