"""
どこで: `engine.runtime.surface`
何を: ミューテータ側 `MutatorSurface`（ルート生成 + CommandLog 接続）と、レンダラ側 `RendererSurface`
      （コマンド適用・遅延生成・深さ優先の再描画・registry⇄ハンドルの整合性検証）。
なぜ: 2 つの独立した寿命を持つノードグラフを、コマンドバッチだけを介して一致させるため。

レンダラ側の注意:
- 未知 id への Update は payload の `type` から同種のノードを同じ id で構築してから、全 payload を `set` する。
- 未知 id への Destroy は致命的な不整合（`UnknownNodeError`）。
- 検証は `__debug__`（`python -O` で無効）かつ設定 `VALIDATE` が真のときのみ行う。
- バッチ途中の失敗はロールバックしない（不整合として扱い、実行を中断する）。
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from common import settings
from scene.box import Box
from scene.errors import DesyncError
from scene.kinds import Rectangle, create_node
from scene.node import Node
from scene.registry import NodeRegistry
from scene.update import UpdateRequest
from util.utils import resolve_bounds

from ..render.backend import RenderBackend
from .command import Command
from .command_log import CommandLog

logger = logging.getLogger(__name__)


class MutatorSurface:
    """アルゴリズムが操作する側の描画面。"""

    def __init__(
        self,
        bounds: tuple[float, float, float, float] | None = None,
        *,
        cfg: Mapping[str, Any] | None = None,
    ) -> None:
        x, y, w, h = resolve_bounds(bounds, cfg=cfg)
        self._bounds = Box(x, y, w, h)
        self._log = CommandLog()
        self._registry = NodeRegistry(self._log, mutator=True)
        self._root = Rectangle(
            self._registry,
            {"root": True, "visible": False, "x": x, "y": y, "w": w, "h": h, "strokeWidth": 0},
        )

    @property
    def root(self) -> Rectangle:
        return self._root

    @property
    def bounds(self) -> Box:
        return self._bounds

    @property
    def registry(self) -> NodeRegistry:
        return self._registry

    @property
    def command_log(self) -> CommandLog:
        return self._log

    def create(self, kind: str, **props: Any) -> Node:
        """種別タグからノードを作る（`surface.create("Circle", radius=5)`）。"""
        return create_node(self._registry, kind, props)

    def flush(self) -> list[Command]:
        return self._log.flush()


class RendererSurface:
    """コマンドバッチを自前の registry へ適用し、描画バックエンドへ反映する側。

    registry の変更通知先を兼ねる（ノード破棄時にバックエンドのハンドルを破棄する）。
    """

    def __init__(self, backend: RenderBackend, *, validate: bool | None = None) -> None:
        self._backend = backend
        self._registry = NodeRegistry(self)
        self._handles: dict[int, Any] = {}
        self._validate = validate

    @property
    def registry(self) -> NodeRegistry:
        return self._registry

    @property
    def backend(self) -> RenderBackend:
        return self._backend

    @property
    def root(self) -> Node | None:
        return self._registry.root

    # ---- MutationSink ----
    def record_update(self, node: Node, request: UpdateRequest) -> None:
        # 描画は apply() の最後にまとめて行う
        return None

    def record_destroy(self, node: Node) -> None:
        handle = self._handles.pop(node.id, None)
        if handle is not None:
            self._backend.destroy_handle(handle)

    # ---- コマンド適用 ----
    def apply(self, commands: Iterable[Command], *, render: bool = True) -> None:
        """バッチを順に適用し、`render` なら再描画と検証を 1 回行う。"""
        count = 0
        for command in commands:
            if command.is_update:
                self._apply_update(command)
            else:
                self._apply_destroy(command)
            count += 1
        logger.debug("applied %d command(s); %d live node(s)", count, len(self._registry))
        if render:
            self.render()
            self.validate()

    def _apply_update(self, command: Command) -> None:
        payload = dict(command.payload)
        if "parent" in payload:
            payload["parent"] = self._registry.require(int(payload["parent"]))
        node = self._registry.find(command.target_id)
        if node is None:
            # 構築時に payload 全体が set される
            node = create_node(self._registry, payload.get("type"), payload, node_id=command.target_id)
            logger.debug("materialized %r", node)
            return
        node.set(payload)

    def _apply_destroy(self, command: Command) -> None:
        node = self._registry.require(command.target_id)
        node.destroy()
        logger.debug("destroyed node %d", command.target_id)

    # ---- 描画 ----
    def render(self) -> None:
        """ルートから深さ優先でハンドルを生成/更新する。ルートが無ければ何もしない。"""
        root = self._registry.root
        if root is None:
            return
        stack: list[Node] = [root]
        while stack:
            node = stack.pop()
            handle = self._handles.get(node.id)
            if handle is None:
                handle = self._backend.create_handle(node)
                self._handles[node.id] = handle
            self._backend.apply_properties(handle, node.resolved_properties())
            # 子は挿入順に処理したいので逆順に積む
            stack.extend(reversed(node.children.to_list()))

    def validate(self) -> None:
        """registry のノードとバックエンドの生存ハンドルが 1 対 1 であることを確かめる。"""
        enabled = settings.get().VALIDATE if self._validate is None else self._validate
        if not (__debug__ and enabled):
            return
        if self._registry.root is None:
            return
        node_ids = set(self._registry.ids())
        handle_ids = set(self._backend.handle_ids())
        if node_ids != handle_ids:
            raise DesyncError(
                "registry/handle mismatch: "
                f"nodes without handle={sorted(node_ids - handle_ids)}, "
                f"handles without node={sorted(handle_ids - node_ids)}"
            )

    def reset(self) -> None:
        """全ハンドルを破棄して registry を空に戻す（履歴の先頭からの再構築用）。"""
        for handle in self._handles.values():
            self._backend.destroy_handle(handle)
        self._handles.clear()
        self._registry.reset()
        logger.debug("renderer surface reset")


__all__ = ["MutatorSurface", "RendererSurface"]
