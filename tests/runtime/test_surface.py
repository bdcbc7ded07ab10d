from __future__ import annotations

import pytest

from common import settings
from engine.render.backend import MemoryBackend
from engine.runtime.command import Command, split_tick
from engine.runtime.surface import MutatorSurface, RendererSurface
from scene.errors import DesyncError, UnknownNodeError
from scene.kinds import Circle, LetterTile, Rectangle
from util.color import Color


class _LeakyBackend(MemoryBackend):
    """破棄要求を無視する（ハンドルが残り続ける）バックエンド。"""

    def destroy_handle(self, handle) -> None:
        return None


def test_renderer_mirrors_mutator_nodes(mutator_surface, renderer_surface, memory_backend) -> None:
    rect = Rectangle(mutator_surface.registry, {"w": 10, "h": 10, "fill": Color.RED})
    circle = Circle(mutator_surface.registry, {"parent": rect, "x": 5, "radius": 3})

    renderer_surface.apply(mutator_surface.flush())

    reg = renderer_surface.registry
    assert reg.ids() == mutator_surface.registry.ids()
    assert memory_backend.handle_ids() == reg.ids()
    assert reg.root is not None and reg.root.id == 0
    mirrored = reg.require(circle.id)
    assert mirrored.kind == "Circle"
    assert mirrored.parent is reg.require(rect.id)
    assert mirrored.get_own_value("radius") == 3
    assert reg.require(rect.id).get_own_value("fill") == Color.RED


def test_existing_nodes_are_updated_and_rerendered(mutator_surface, renderer_surface, memory_backend) -> None:
    rect = Rectangle(mutator_surface.registry, {"x": 10, "y": 20, "w": 4, "h": 4})
    child = Circle(mutator_surface.registry, {"parent": rect})
    renderer_surface.apply(mutator_surface.flush())

    rect.set({"x": 30})
    renderer_surface.apply(mutator_surface.flush())

    handle = memory_backend.get(child.id)
    assert handle is not None
    assert handle.properties["originX"] == 30.0
    assert handle.properties["originY"] == 20.0
    assert handle.apply_count == 2


def test_destroy_removes_handles(mutator_surface, renderer_surface, memory_backend) -> None:
    rect = Rectangle(mutator_surface.registry, {})
    Circle(mutator_surface.registry, {"parent": rect})
    renderer_surface.apply(mutator_surface.flush())
    assert len(memory_backend) == 3

    rect.destroy()
    renderer_surface.apply(mutator_surface.flush())

    assert memory_backend.handle_ids() == [0]
    assert memory_backend.destroyed == 2


def test_destroy_of_unknown_id_raises(renderer_surface) -> None:
    with pytest.raises(UnknownNodeError):
        renderer_surface.apply([Command.destroy(99)])


def test_update_with_unknown_parent_raises(mutator_surface, renderer_surface) -> None:
    renderer_surface.apply(mutator_surface.flush())
    with pytest.raises(UnknownNodeError):
        renderer_surface.apply([Command.update(5, {"type": "Circle", "parent": 42})])


def test_letter_tile_label_arrives_as_rectangle(mutator_surface, renderer_surface) -> None:
    tile = LetterTile(mutator_surface.registry, {"text": "A", "value": 7})
    label_id = tile.value_node.id

    renderer_surface.apply(mutator_surface.flush())

    mirrored = renderer_surface.registry.require(tile.id)
    assert mirrored.kind == "LetterTile"
    assert mirrored.value_node is None
    label = renderer_surface.registry.require(label_id)
    assert label.kind == "Rectangle"
    assert label.parent is mirrored
    assert label.get_own_value("text") == 7


def test_leaked_handle_is_reported_as_desync(mutator_surface) -> None:
    surface = RendererSurface(_LeakyBackend(), validate=True)
    rect = Rectangle(mutator_surface.registry, {})
    surface.apply(mutator_surface.flush())

    rect.destroy()
    with pytest.raises(DesyncError):
        surface.apply(mutator_surface.flush())


def test_validation_can_be_disabled(mutator_surface, monkeypatch) -> None:
    surface = RendererSurface(_LeakyBackend(), validate=False)
    rect = Rectangle(mutator_surface.registry, {})
    surface.apply(mutator_surface.flush())
    rect.destroy()
    surface.apply(mutator_surface.flush())

    monkeypatch.setenv("ALGO_VALIDATE", "0")
    settings.reload_from_env()
    other = MutatorSurface((0, 0, 10, 10))
    node = Rectangle(other.registry, {})
    from_settings = RendererSurface(_LeakyBackend())
    from_settings.apply(other.flush())
    node.destroy()
    from_settings.apply(other.flush())


def test_reset_destroys_all_handles(mutator_surface, renderer_surface, memory_backend) -> None:
    Rectangle(mutator_surface.registry, {})
    renderer_surface.apply(mutator_surface.flush())

    renderer_surface.reset()

    assert len(memory_backend) == 0
    assert len(renderer_surface.registry) == 0
    assert renderer_surface.root is None


def test_apply_without_render_defers_handles(mutator_surface, renderer_surface, memory_backend) -> None:
    renderer_surface.apply(mutator_surface.flush(), render=False)
    assert len(memory_backend) == 0

    renderer_surface.render()
    assert memory_backend.handle_ids() == [0]


def test_mutator_surface_create_by_kind(mutator_surface) -> None:
    node = mutator_surface.create("Circle", radius=5)

    assert node.kind == "Circle"
    assert node.parent is mutator_surface.root
    assert mutator_surface.bounds.w == 200.0


def test_drain_ticks_keep_renderer_child_order(mutator_surface, renderer_surface) -> None:
    parent = Rectangle(mutator_surface.registry, {})
    sliding = Circle(mutator_surface.registry, {"parent": parent, "x": [1, 2, 3]})
    still = Circle(mutator_surface.registry, {"parent": parent})
    batch = mutator_surface.flush()

    # 先頭 tick をまとめて適用し、残りの系列は後続 tick で流す
    pending = {}
    first = []
    for command in batch:
        tick, rest = split_tick(command.payload)
        first.append(Command.update(command.target_id, tick))
        if rest is not None:
            pending[command.target_id] = rest
    renderer_surface.apply(first)
    while pending:
        node_id, payload = pending.popitem()
        tick, rest = split_tick(payload)
        renderer_surface.apply([Command.update(node_id, tick)])
        if rest is not None:
            pending[node_id] = rest

    mirrored = renderer_surface.registry.require(parent.id)
    assert [n.id for n in mirrored.children] == [sliding.id, still.id]
    assert [n.id for n in mirrored.children] == [n.id for n in parent.children]
    assert renderer_surface.registry.require(sliding.id).get_own_value("x") == 3
