"""
どこで: `engine.render` の低レベルメッシュ層。
何を: 2D 頂点（`in_vert`: vec2）の VBO/IBO/VAO の確保・更新・解放と、Geometry → 頂点/インデックス変換。
なぜ: GPU 転送の詳細を LineRenderer から切り離し、再確保や VAO の張り直しを一元化するため。
"""

from __future__ import annotations

from typing import Any

import numpy as np

from engine.core.geometry import Geometry

PRIMITIVE_RESTART_INDEX = 0xFFFFFFFF


def geometry_to_vertices_indices(
    geometry: Geometry,
    primitive_restart_index: int = PRIMITIVE_RESTART_INDEX,
) -> tuple[np.ndarray, np.ndarray]:
    """Geometry を VBO/IBO 用の配列へ変換する。

    各ポリラインの直後に primitive restart の目印を挿入するので、
    1 回の LINE_STRIP 描画で全ポリラインを描ける。
    """
    coords = np.ascontiguousarray(geometry.coords, dtype=np.float32)
    offsets = geometry.offsets
    num_lines = len(offsets) - 1
    total_verts = len(coords)
    total_inds = total_verts + num_lines

    indices = np.empty(total_inds, dtype=np.uint32)
    # 再始動位置（各ライン終端の直後）: offsets[1:] + 行番号
    restart_pos = offsets[1:].astype(np.int64) + np.arange(num_lines, dtype=np.int64)
    mask = np.zeros(total_inds, dtype=bool)
    mask[restart_pos] = True
    indices[~mask] = np.arange(total_verts, dtype=np.uint32)
    indices[mask] = np.uint32(primitive_restart_index)
    return coords, indices


class LineMesh:
    """GPU に頂点/インデックスを送り込む作業を管理する。

    ctx: moderngl コンテキスト
    program: `in_vert` を受け取るシェーダープログラム
    """

    def __init__(
        self,
        ctx: Any,
        program: Any,
        initial_reserve: int = 256 * 1024,
        primitive_restart_index: int = PRIMITIVE_RESTART_INDEX,
    ):
        self.ctx = ctx
        self.program = program
        self.initial_reserve = initial_reserve
        self.primitive_restart_index = primitive_restart_index

        self.vbo = ctx.buffer(reserve=initial_reserve, dynamic=True)
        self.ibo = ctx.buffer(reserve=initial_reserve, dynamic=True)
        self.vao = ctx.simple_vertex_array(program, self.vbo, "in_vert", index_buffer=self.ibo)

        self.index_count: int = 0
        self.ctx.primitive_restart = True  # type: ignore
        self.ctx.primitive_restart_index = primitive_restart_index  # type: ignore

    def _ensure_capacity(self, vbo_size: int, ibo_size: int) -> None:
        """データが大きくなったら GPU のバッファを再確保し、VAO を張り直す。"""
        grown = False
        if vbo_size > self.vbo.size:
            self.vbo.release()
            self.vbo = self.ctx.buffer(reserve=max(vbo_size, self.initial_reserve), dynamic=True)
            grown = True
        if ibo_size > self.ibo.size:
            self.ibo.release()
            self.ibo = self.ctx.buffer(reserve=max(ibo_size, self.initial_reserve), dynamic=True)
            grown = True
        if grown:
            self.vao.release()
            self.vao = self.ctx.simple_vertex_array(
                self.program, self.vbo, "in_vert", index_buffer=self.ibo
            )

    def upload(self, vertices: np.ndarray, indices: np.ndarray) -> None:
        self._ensure_capacity(vertices.nbytes, indices.nbytes)
        self.vbo.orphan()
        self.vbo.write(vertices.tobytes())
        self.ibo.orphan()
        self.ibo.write(indices.tobytes())
        self.index_count = len(indices)

    def upload_geometry(self, geometry: Geometry) -> None:
        if geometry.is_empty:
            self.index_count = 0
            return
        self.upload(*geometry_to_vertices_indices(geometry, self.primitive_restart_index))

    def release(self) -> None:
        """GPU のメモリを解放する（終了時に使う）。"""
        self.vbo.release()
        self.ibo.release()
        self.vao.release()


__all__ = ["PRIMITIVE_RESTART_INDEX", "LineMesh", "geometry_to_vertices_indices"]
