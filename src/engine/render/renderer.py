"""
どこで: `engine.render` の高レベル描画。
何を: LineBackend のレイヤーを z 順に GPU へ転送して線として描く `LineRenderer` と、
      レイヤーの文字列を pyglet のラベルで重ね描きする `TextOverlay`。
なぜ: 毎フレームのアップロード/描画/リソース寿命を一箇所に集約し、描画処理を単純化するため。
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

import moderngl as mgl
import numpy as np

from util.color import to_u8_rgba

from .line_backend import LineBackend
from .line_mesh import LineMesh
from .shader import Shader
from .types import Layer

logger = logging.getLogger(__name__)


def ortho_projection(x: float, y: float, w: float, h: float) -> np.ndarray:
    """矩形 (x, y, w, h)（左上原点, y 下向き）をクリップ空間 [-1, 1] へ写す 4x4 行列（行優先）。"""
    if w <= 0 or h <= 0:
        raise ValueError(f"projection requires a positive size, got {w}x{h}")
    return np.array(
        [
            [2.0 / w, 0.0, 0.0, -1.0 - 2.0 * x / w],
            [0.0, -2.0 / h, 0.0, 1.0 + 2.0 * y / h],
            [0.0, 0.0, -1.0, 0.0],
            [0.0, 0.0, 0.0, 1.0],
        ],
        dtype=np.float32,
    )


class LineRenderer:
    """LineBackend からレイヤーを受け取り、毎フレーム GPU へ送り込んで描く。"""

    def __init__(
        self,
        mgl_context: Any,
        bounds: tuple[float, float, float, float],
        backend: LineBackend,
        *,
        line_scale: float = 1.0,
    ):
        self.ctx = mgl_context
        self.backend = backend
        self._line_scale = float(line_scale)

        self.line_program = Shader.create_shader(mgl_context)
        self.set_bounds(bounds)
        self.gpu = LineMesh(ctx=mgl_context, program=self.line_program)
        self._last_counts = (0, 0)

    def set_bounds(self, bounds: tuple[float, float, float, float]) -> None:
        x, y, w, h = (float(v) for v in bounds)
        # GLSL は列優先なので転置して書き込む
        self.line_program["projection"].write(ortho_projection(x, y, w, h).T.copy().tobytes())
        self.line_program["viewport"].value = (w, h)

    def draw(self) -> None:
        """可視レイヤーを z → id の順に描く。"""
        self.ctx.enable(mgl.BLEND)
        self.ctx.blend_func = mgl.SRC_ALPHA, mgl.ONE_MINUS_SRC_ALPHA
        vertices = layers = 0
        for layer in self.backend.layers():
            if layer.geometry.is_empty or layer.color[3] <= 0 or layer.thickness <= 0:
                continue
            self.line_program["color"].value = tuple(float(c) for c in layer.color)
            self.line_program["line_thickness"].value = float(layer.thickness) * self._line_scale
            self.gpu.upload_geometry(layer.geometry)
            if self.gpu.index_count > 0:
                self.gpu.vao.render(mgl.LINE_STRIP, self.gpu.index_count)
                vertices += layer.geometry.n_vertices
                layers += 1
        self._last_counts = (vertices, layers)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("drew %d layer(s), %d vertices", layers, vertices)

    def clear(self, color: Sequence[float]) -> None:
        self.ctx.clear(*color)  # type: ignore

    def get_last_counts(self) -> tuple[int, int]:
        """直近フレームの (頂点数, レイヤー数)。"""
        return self._last_counts

    def release(self) -> None:
        self.gpu.release()
        self.line_program.release()


class TextOverlay:
    """レイヤーの文字列を pyglet.text.Label で描く（ラベルはノード単位で再利用）。"""

    _ANCHORS = {"left": "left", "right": "right", "center": "center"}

    def __init__(self, backend: LineBackend, bounds: tuple[float, float, float, float]):
        # pyglet は GL コンテキストを要するため局所 import
        import pyglet

        self._pyglet = pyglet
        self.backend = backend
        self._bounds = tuple(float(v) for v in bounds)
        self._labels: dict[int, Any] = {}
        self._version = -1

    def set_backend(self, backend: LineBackend) -> None:
        """描画元を差し替える（ライブ ↔ 履歴の切替）。既存ラベルは作り直す。"""
        if backend is self.backend:
            return
        self.release()
        self.backend = backend
        self._version = -1

    def _sync(self) -> None:
        if self._version == self.backend.version:
            return
        self._version = self.backend.version
        bx, by, _w, h = self._bounds
        alive: set[int] = set()
        for layer in self.backend.layers():
            if not layer.has_text:
                continue
            alive.add(layer.node_id)
            label = self._labels.get(layer.node_id)
            if label is None:
                label = self._pyglet.text.Label("", anchor_y="center")
                self._labels[layer.node_id] = label
            self._apply(label, layer, bx, by, h)
        for node_id in [i for i in self._labels if i not in alive]:
            self._labels.pop(node_id).delete()

    def _apply(self, label: Any, layer: Layer, bx: float, by: float, h: float) -> None:
        px, py = layer.text_pos
        label.text = layer.text
        # CSS の px → pt（96dpi 基準）
        label.font_size = layer.font_size * 0.75
        label.color = to_u8_rgba(layer.text_color)
        label.anchor_x = self._ANCHORS.get(layer.text_align, "center")
        # pyglet は左下原点・y 上向き
        label.x = px - bx
        label.y = h - (py - by)

    def draw(self) -> None:
        self._sync()
        for node_id in sorted(self._labels):
            self._labels[node_id].draw()

    def release(self) -> None:
        for label in self._labels.values():
            label.delete()
        self._labels.clear()


__all__ = ["LineRenderer", "TextOverlay", "ortho_projection"]
