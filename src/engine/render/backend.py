"""
どこで: `engine.render.backend`
何を: 描画バックエンドの契約 `RenderBackend` と、メモリ上にハンドルを持つ `MemoryBackend`。
なぜ: RendererSurface からはピクセル化の詳細を隠し、ハンドルの生成/更新/破棄と生存 id の列挙だけで
      やり取りするため（ヘッドレス実行やテストでは MemoryBackend をそのまま使う）。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Protocol

from scene.errors import DesyncError

if TYPE_CHECKING:
    from scene.node import Node

logger = logging.getLogger(__name__)


class RenderBackend(Protocol):
    def create_handle(self, node: "Node") -> Any: ...

    def apply_properties(self, handle: Any, resolved: Mapping[str, Any]) -> None: ...

    def destroy_handle(self, handle: Any) -> None: ...

    def handle_ids(self) -> Iterable[int]: ...


@dataclass
class MemoryHandle:
    """ノード 1 つ分の描画ハンドル（最後に適用された解決済みプロパティを保持）。"""

    node_id: int
    kind: str
    properties: dict[str, Any] = field(default_factory=dict)
    apply_count: int = 0
    alive: bool = True


class MemoryBackend:
    """ハンドルを dict で保持するだけのバックエンド。"""

    def __init__(self) -> None:
        self._handles: dict[int, MemoryHandle] = {}
        self.created = 0
        self.destroyed = 0

    def create_handle(self, node: "Node") -> MemoryHandle:
        if node.id in self._handles:
            raise DesyncError(f"node {node.id} already has a live handle")
        handle = MemoryHandle(node.id, node.kind)
        self._handles[node.id] = handle
        self.created += 1
        return handle

    def apply_properties(self, handle: MemoryHandle, resolved: Mapping[str, Any]) -> None:
        if not handle.alive:
            raise DesyncError(f"properties applied to destroyed handle {handle.node_id}")
        handle.properties = dict(resolved)
        handle.apply_count += 1

    def destroy_handle(self, handle: MemoryHandle) -> None:
        if self._handles.pop(handle.node_id, None) is None:
            raise DesyncError(f"handle {handle.node_id} is not live")
        handle.alive = False
        self.destroyed += 1

    def handle_ids(self) -> list[int]:
        return sorted(self._handles)

    def get(self, node_id: int) -> MemoryHandle | None:
        return self._handles.get(node_id)

    def handles(self) -> list[MemoryHandle]:
        return [self._handles[i] for i in sorted(self._handles)]

    def __len__(self) -> int:
        return len(self._handles)


__all__ = ["RenderBackend", "MemoryHandle", "MemoryBackend"]
