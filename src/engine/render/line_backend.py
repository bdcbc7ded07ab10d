"""
どこで: `engine.render.line_backend`
何を: ハンドルごとに描画レイヤー列を保持する `LineBackend`（MemoryBackend の拡張）。
なぜ: GL 資源を持たずに「何をどの色で描くか」を確定させ、LineRenderer はそれを描くだけにするため。
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from .backend import MemoryBackend, MemoryHandle
from .outline import build_layers, is_drawable
from .types import Layer

logger = logging.getLogger(__name__)


class LineBackend(MemoryBackend):
    """解決済みプロパティをレイヤーへ変換して保持する。"""

    def __init__(self, *, circle_segments: int | None = None) -> None:
        super().__init__()
        self._layers: dict[int, list[Layer]] = {}
        self._circle_segments = circle_segments
        self._version = 0

    @property
    def version(self) -> int:
        """レイヤー構成が変わるたびに増える世代番号。"""
        return self._version

    def apply_properties(self, handle: MemoryHandle, resolved: Mapping[str, Any]) -> None:
        super().apply_properties(handle, resolved)
        self._layers[handle.node_id] = build_layers(resolved, circle_segments=self._circle_segments)
        self._version += 1

    def destroy_handle(self, handle: MemoryHandle) -> None:
        super().destroy_handle(handle)
        self._layers.pop(handle.node_id, None)
        self._version += 1

    def layers_for(self, node_id: int) -> list[Layer]:
        return list(self._layers.get(node_id, ()))

    def layers(self) -> list[Layer]:
        """描画順（z → id）に並べた可視レイヤー。"""
        out = [layer for layers in self._layers.values() for layer in layers if is_drawable(layer)]
        # sort は安定なので同一ノード内の順序（本体 → 付属物）は保たれる
        out.sort(key=lambda layer: (layer.z, layer.node_id))
        return out


__all__ = ["LineBackend"]
