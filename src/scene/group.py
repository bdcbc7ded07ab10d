"""
どこで: `scene.group`
何を: 重複なし・挿入順保持の可変ノード集合 `NodeGroup`（子リスト兼一括適用の対象）。
なぜ: 子ノードの所有と「複数ノードへの同一プロパティ適用」を同じ型で扱うため。

注意:
- 構築時/追加時に Node 以外の要素は黙って無視する（意図的な寛容さ。エラーにはしない）。
- `destroy()` はスナップショットに対して行う。子の destroy が親の子グループから自身を
  取り除くため、反復中の集合変更を避ける必要がある。
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, Iterator, Mapping

if TYPE_CHECKING:
    from .node import Node


def _is_node(obj: object) -> bool:
    from .node import Node  # 循環 import 回避のため局所 import

    return isinstance(obj, Node)


def _flatten(items: Iterable[Any]) -> Iterator["Node"]:
    for item in items:
        if _is_node(item):
            yield item
        elif isinstance(item, NodeGroup):
            yield from item
        elif isinstance(item, Mapping):
            yield from (v for v in item.values() if _is_node(v))
        elif isinstance(item, (list, tuple, set, frozenset)):
            yield from (v for v in item if _is_node(v))


class NodeGroup:
    """ノードの順序付き集合。"""

    __slots__ = ("_nodes",)

    def __init__(self, *items: Any) -> None:
        self._nodes: list["Node"] = []
        for node in _flatten(items):
            self.add(node)

    def set(self, props: Any, depth: int = 0) -> None:
        """全メンバへ同じプロパティを適用する。"""
        for node in list(self._nodes):
            node.set(props, depth)

    def add(self, node: Any) -> None:
        if _is_node(node) and not any(n is node for n in self._nodes):
            self._nodes.append(node)

    def remove(self, node: Any) -> None:
        for i, n in enumerate(self._nodes):
            if n is node:
                del self._nodes[i]
                return

    def clear(self) -> None:
        self._nodes.clear()

    def destroy(self) -> None:
        """現在のメンバを（スナップショット順に）破棄して空にする。"""
        for node in list(self._nodes):
            node.destroy()
        self._nodes.clear()

    def to_list(self) -> list["Node"]:
        return list(self._nodes)

    def __iter__(self) -> Iterator["Node"]:
        return iter(list(self._nodes))

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node: object) -> bool:
        return any(n is node for n in self._nodes)

    def __getitem__(self, index: int) -> "Node":
        return self._nodes[index]

    def __repr__(self) -> str:
        return f"NodeGroup({[n.id for n in self._nodes]})"


__all__ = ["NodeGroup"]
