"""
どこで: `scene.registry`
何を: 実行ごとに所有される明示的なノード registry（id 採番・id→Node 表・ルート・変更通知先）。
なぜ: グローバルなシングルトン registry をやめ、ミューテータ側/レンダラ側/履歴プレビュー側が
      それぞれ独立した registry を持てるようにするため。

補足:
- 変更通知先 `MutationSink` はミューテータ側では CommandLog、レンダラ側では描画ハンドルを
  破棄する RendererSurface になる。
- `enter_history_mode()`/`exit_history_mode()` は registry 状態全体の退避/復元（非再入）。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator, Protocol

from .errors import HistoryModeError, RootError, UnknownNodeError, UsageError

if TYPE_CHECKING:
    from .node import Node
    from .update import UpdateRequest

logger = logging.getLogger(__name__)

FIRST_ID = 0


class MutationSink(Protocol):
    """ノードの変更/破棄を受け取る側のインターフェース。"""

    def record_update(self, node: "Node", request: "UpdateRequest") -> None: ...

    def record_destroy(self, node: "Node") -> None: ...


@dataclass
class _SavedState:
    next_id: int
    nodes: dict[int, "Node"] = field(default_factory=dict)
    root: "Node | None" = None


class NodeRegistry:
    """id 採番とノード表を持つ registry。

    Parameters
    ----------
    sink : MutationSink | None
        変更通知先。None なら通知しない。
    mutator : bool
        ミューテータ側（アルゴリズムを実行する側）なら True。ミューテータ側でのみ生成される
        補助ノード（LetterTile の値ラベル等）の判定に使う。
    """

    def __init__(self, sink: MutationSink | None = None, *, mutator: bool = False) -> None:
        self._sink = sink
        self._mutator = bool(mutator)
        self._next_id = FIRST_ID
        self._nodes: dict[int, "Node"] = {}
        self._root: "Node | None" = None
        self._saved: _SavedState | None = None

    # ---- 参照 ----
    @property
    def mutator(self) -> bool:
        return self._mutator

    @property
    def root(self) -> "Node | None":
        return self._root

    @property
    def next_id(self) -> int:
        return self._next_id

    @property
    def in_history_mode(self) -> bool:
        return self._saved is not None

    def find(self, node_id: int) -> "Node | None":
        return self._nodes.get(node_id)

    def require(self, node_id: int) -> "Node":
        node = self._nodes.get(node_id)
        if node is None:
            raise UnknownNodeError(f"no node with id {node_id} in registry")
        return node

    def ids(self) -> list[int]:
        return sorted(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator["Node"]:
        return iter([self._nodes[i] for i in sorted(self._nodes)])

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    # ---- 登録 ----
    def allocate_id(self) -> int:
        """次の id を採番する。"""
        node_id = self._next_id
        self._next_id += 1
        return node_id

    def register(self, node: "Node", node_id: int | None = None) -> int:
        """ノードを登録して id を返す。

        `node_id` 指定時（レンダラ側の遅延生成）はその id を使い、採番カウンタを追い越させる。
        """
        if node_id is None:
            node_id = self.allocate_id()
        else:
            node_id = int(node_id)
            if node_id in self._nodes:
                raise UsageError(f"node id {node_id} is already live in registry")
            self._next_id = max(self._next_id, node_id + 1)
        self._nodes[node_id] = node
        return node_id

    def unregister(self, node: "Node") -> None:
        if self._nodes.get(node.id) is not node:
            raise UnknownNodeError(f"node {node.id} is missing from registry")
        del self._nodes[node.id]
        if self._root is node:
            self._root = None

    def set_root(self, node: "Node") -> None:
        if self._root is not None and self._root is not node:
            raise RootError(f"registry already has root {self._root.id}; cannot make {node.id} root")
        self._root = node

    def attach_to_root(self, node: "Node") -> None:
        """親を持たないノードをルートの子にする。"""
        if self._root is None:
            raise RootError(f"node {node.id} has no parent and the registry has no root")
        self._root.add_child(node)

    # ---- 変更通知 ----
    def record_update(self, node: "Node", request: "UpdateRequest") -> None:
        if self._sink is not None:
            self._sink.record_update(node, request)

    def record_destroy(self, node: "Node") -> None:
        if self._sink is not None:
            self._sink.record_destroy(node)

    # ---- リセット/履歴モード ----
    def reset(self) -> None:
        """id カウンタと id→Node 表をクリアする（新しい実行/履歴の再構築の開始時）。"""
        self._next_id = FIRST_ID
        self._nodes = {}
        self._root = None

    def enter_history_mode(self) -> None:
        """現在の registry 状態を退避して空の状態から始める（非再入）。"""
        if self._saved is not None:
            raise HistoryModeError("registry is already in history mode")
        self._saved = _SavedState(self._next_id, self._nodes, self._root)
        self.reset()
        logger.debug("registry entered history mode (saved %d nodes)", len(self._saved.nodes))

    def exit_history_mode(self) -> None:
        """退避した registry 状態を復元する。"""
        if self._saved is None:
            raise HistoryModeError("registry is not in history mode")
        saved, self._saved = self._saved, None
        self._next_id = saved.next_id
        self._nodes = saved.nodes
        self._root = saved.root
        logger.debug("registry exited history mode (restored %d nodes)", len(self._nodes))


__all__ = ["FIRST_ID", "MutationSink", "NodeRegistry"]
