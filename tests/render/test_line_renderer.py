from __future__ import annotations

import numpy as np
import pytest

from engine.core.geometry import Geometry
from engine.render.line_backend import LineBackend
from engine.render.line_mesh import PRIMITIVE_RESTART_INDEX, geometry_to_vertices_indices
from engine.render.renderer import LineRenderer, ortho_projection
from engine.runtime.surface import RendererSurface
from scene.kinds import Circle, Rectangle
from util.color import Color


class _DummyUniform:
    def __init__(self) -> None:
        self.value = None
        self.history: list = []

    def __setattr__(self, name, value) -> None:
        if name == "value" and hasattr(self, "history"):
            self.history.append(value)
        object.__setattr__(self, name, value)


class _DummyVAO:
    def __init__(self) -> None:
        self.render_calls: list[tuple[int, int]] = []

    def render(self, mode: int, count: int) -> None:
        self.render_calls.append((mode, count))


class _DummyGpu:
    def __init__(self) -> None:
        self.index_count = 0
        self.uploads: list[Geometry] = []
        self.vao = _DummyVAO()

    def upload_geometry(self, geometry: Geometry) -> None:
        self.uploads.append(geometry)
        _, indices = geometry_to_vertices_indices(geometry)
        self.index_count = 0 if geometry.is_empty else len(indices)


class _DummyCtx:
    def __init__(self) -> None:
        self.enabled: list[int] = []
        self.blend_func = None

    def enable(self, flag: int) -> None:
        self.enabled.append(flag)


def _make_renderer(backend: LineBackend, line_scale: float = 1.0) -> tuple[LineRenderer, _DummyGpu]:
    # __init__ を通さず、テストに必要な属性だけを手動で設定する
    renderer = LineRenderer.__new__(LineRenderer)
    renderer.ctx = _DummyCtx()
    renderer.backend = backend
    renderer._line_scale = line_scale  # type: ignore[attr-defined]
    renderer._last_counts = (0, 0)  # type: ignore[attr-defined]
    renderer.line_program = {  # type: ignore[assignment]
        "color": _DummyUniform(),
        "line_thickness": _DummyUniform(),
    }
    gpu = _DummyGpu()
    renderer.gpu = gpu  # type: ignore[assignment]
    return renderer, gpu


def test_vertices_and_indices_insert_restart_after_each_line(geom_two_lines) -> None:
    verts, inds = geometry_to_vertices_indices(geom_two_lines)

    assert verts.dtype == np.float32 and verts.shape == (5, 2)
    assert inds.dtype == np.uint32
    r = PRIMITIVE_RESTART_INDEX
    assert inds.tolist() == [0, 1, r, 2, 3, 4, r]


def test_ortho_projection_maps_corners_to_clip_space() -> None:
    m = ortho_projection(10, 20, 200, 100)

    def project(x: float, y: float) -> np.ndarray:
        return (m @ np.array([x, y, 0.0, 1.0], dtype=np.float32))[:2]

    np.testing.assert_allclose(project(10, 20), [-1, 1], atol=1e-6)
    np.testing.assert_allclose(project(210, 120), [1, -1], atol=1e-6)
    np.testing.assert_allclose(project(110, 70), [0, 0], atol=1e-6)
    with pytest.raises(ValueError):
        ortho_projection(0, 0, 0, 10)


def test_draw_uploads_each_visible_layer_in_order(mutator_surface) -> None:
    backend = LineBackend(circle_segments=8)
    surface = RendererSurface(backend, validate=True)
    rect = Rectangle(mutator_surface.registry, {"w": 10, "h": 10, "z": 1, "strokeWidth": 2})
    Circle(mutator_surface.registry, {"radius": 4})
    # 透明なノードと文字だけのノードは線として描かない
    Rectangle(mutator_surface.registry, {"w": 10, "h": 10, "strokeWidth": 0, "fill": Color.TRANSPARENT})
    Rectangle(mutator_surface.registry, {"w": 0, "h": 0, "text": "label"})
    surface.apply(mutator_surface.flush())

    renderer, gpu = _make_renderer(backend, line_scale=2.0)
    renderer.draw()

    assert len(gpu.vao.render_calls) == 2
    assert [g.n_vertices for g in gpu.uploads] == [9, 5]
    assert renderer.get_last_counts() == (14, 2)
    thickness = renderer.line_program["line_thickness"].history
    assert thickness == [2.0, 4.0]
    assert renderer.line_program["color"].history[-1] == Color.BLUE
    assert rect.id in {layer.node_id for layer in backend.layers()}


def test_draw_with_no_layers_renders_nothing() -> None:
    renderer, gpu = _make_renderer(LineBackend())
    renderer.draw()

    assert gpu.vao.render_calls == []
    assert renderer.get_last_counts() == (0, 0)
