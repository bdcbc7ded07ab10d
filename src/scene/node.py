"""
どこで: `scene.node`
何を: シーングラフのノード `Node`（id・プロパティ表・親子関係・表示ステート表・破棄フラグ）。
なぜ: アルゴリズム側で行ったプロパティ変更を差分としてコマンド化し、レンダラ側で同じノードを
      遅延生成して鏡像を保つため、ミューテータ/レンダラのどちらでも同じ型で動く必要がある。

主な契約:
- 構築で id を採番し registry へ登録、組み込みステートを登録してから初期プロパティを `set` する。
- `set()` の変更数が 1 以上なら registry の変更通知先へ `record_update(node, request)` を送る。
- list 値は系列値（複数 tick に渡る値）。常に変更として数え、ノード自身は最後の要素を保持する。
- 親を持たず `root` でもないノードは registry のルートの子へ自動接続される。
- 親参照は weakref（所有は親 → 子のみ）。
- `destroy()` は子 → 自身の順（深さ優先）。破棄済みノードへの操作は `NodeDestroyedError`。
- 自身または子孫の下への付け替えは `ParentCycleError`。現在と同じ親への付け替えは変更に数えない。
"""

from __future__ import annotations

import logging
import math
import weakref
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Iterable, Mapping

from util.color import Color

from .box import Box
from .errors import NodeDestroyedError, ParentCycleError, UnregisteredStateError
from .group import NodeGroup
from .shape_adapter import point_from_shape
from .states import DEFAULT_STATES, NORMAL, StateDef, coerce_states, expand_state_sequence
from .update import UpdateRequest

if TYPE_CHECKING:
    from .registry import NodeRegistry

logger = logging.getLogger(__name__)


def _same(a: Any, b: Any) -> bool:
    if a is b:
        return True
    try:
        return bool(a == b)
    except (TypeError, ValueError):
        # 比較が真偽値にならない型（numpy 配列など）は常に変更として扱う
        return False


def _child_depth(depth: float | None) -> float | None:
    """子へ渡す depth。None は子へ伝播しないことを表す。"""
    if depth is None:
        return None
    if isinstance(depth, float) and math.isnan(depth):
        return None
    if depth <= 0:
        return None
    return depth - 1


class Node:
    """シーングラフのノード。

    Parameters
    ----------
    registry : NodeRegistry
        このノードを所有する registry。
    props : Mapping | None
        初期プロパティ。予約キー（parent/state/states/shape）を含めてよい。
    node_id : int | None
        レンダラ側での遅延生成時のみ指定する（ミューテータ側の id を鏡像にする）。
    """

    KIND: ClassVar[str] = "Node"
    DEFAULT_PROPS: ClassVar[Mapping[str, Any]] = {
        "strokeWidth": 1,
        "fontSize": "40px",
        "rotation": 0,
    }
    BASE_STATES: ClassVar[tuple[StateDef, ...]] = DEFAULT_STATES
    # いずれかが初期プロパティにあれば既定ステートを適用しない
    STATE_TRIGGERS: ClassVar[tuple[str, ...]] = ("state", "stroke", "fill", "pen")
    SHAPE_ADAPTER: ClassVar[Callable[["Node", Any], None]] = staticmethod(point_from_shape)

    def __init__(
        self,
        registry: "NodeRegistry",
        props: Mapping[str, Any] | None = None,
        *,
        node_id: int | None = None,
    ) -> None:
        options = dict(props or {})
        options["type"] = self.KIND
        for klass in type(self).__mro__:
            for key, value in vars(klass).get("DEFAULT_PROPS", {}).items():
                options.setdefault(key, value)
        self._prepare_options(options)
        if not any(key in options for key in self.STATE_TRIGGERS):
            options["state"] = NORMAL
        if "shape" not in options:
            options.setdefault("x", 0)
            options.setdefault("y", 0)

        self._registry = registry
        self._props: dict[str, Any] = {}
        self._states: dict[str, StateDef] = {}
        self._parent: weakref.ReferenceType[Node] | None = None
        self._children = NodeGroup()
        self._destroyed = False
        self.id: int = registry.register(self, node_id)
        if options.get("root"):
            registry.set_root(self)
        # 初期プロパティがステートを参照し得るため、set より先に組み込みステートを登録
        self.add_states(self.BASE_STATES)
        self.set(options)

    def _prepare_options(self, options: dict[str, Any]) -> None:
        """種別ごとの初期プロパティ補正（サブクラスで上書き）。"""

    # ---- 参照 ----
    @property
    def kind(self) -> str:
        return self.KIND

    @property
    def registry(self) -> "NodeRegistry":
        return self._registry

    @property
    def parent(self) -> "Node | None":
        return self._parent() if self._parent is not None else None

    @property
    def children(self) -> NodeGroup:
        return self._children

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @property
    def props(self) -> Mapping[str, Any]:
        """自身が明示的に持つプロパティ（読み取り専用ビュー）。"""
        return MappingProxyType(self._props)

    @property
    def states(self) -> Mapping[str, StateDef]:
        return MappingProxyType(self._states)

    def get_own_value(self, key: str, default: Any = None) -> Any:
        if key in self._props:
            return self._props[key]
        return default

    def get_inherited_value(self, key: str, default: Any = None) -> Any:
        """自身 → 祖先の順に探し、最初に明示設定していたノードの値を返す。"""
        node: Node | None = self
        while node is not None:
            if key in node._props:
                return node._props[key]
            node = node.parent
        return default

    def get(self, defaults: Mapping[str, Any]) -> dict[str, Any]:
        """`defaults` の各キーを継承解決した辞書を返す（見つからなければ既定値のまま）。"""
        return {key: self.get_inherited_value(key, value) for key, value in defaults.items()}

    # ---- 変更 ----
    def set(self, props: Mapping[str, Any] | UpdateRequest | None = None, depth: float | None = 0) -> None:
        """プロパティを適用する。`depth` > 0 なら子へ `depth - 1` で再帰適用する。"""
        self._check_alive()
        request = UpdateRequest.from_mapping(props)
        changes = 0

        if request.add_states:
            self.add_states(request.add_states)
        if request.reparent_to is not None and request.reparent_to is not self.parent:
            request.reparent_to._check_can_adopt(self)
            old = self.parent
            if old is not None:
                old.remove_child(self)
            request.reparent_to.add_child(self)
            changes += 1
        # state/shape の効果は内側の set が具体プロパティとして記録する
        if request.apply_state is not None:
            self.set_state(request.apply_state)
        if request.apply_shape is not None:
            self.from_shape(request.apply_shape)
        for key, value in request.plain.items():
            if self._write(key, value):
                changes += 1

        if changes:
            self._registry.record_update(self, request)

        if props is not None and self.parent is None and not self._is_root():
            self._registry.attach_to_root(self)

        child_depth = _child_depth(depth)
        if child_depth is not None:
            for child in self._children:
                child.set(request, child_depth)

    def _write(self, key: str, value: Any) -> bool:
        if isinstance(value, list):
            if not value:
                return False
            self._props[key] = value[-1]
            return True
        if key in self._props and _same(self._props[key], value):
            return False
        self._props[key] = value
        return True

    def _is_root(self) -> bool:
        return bool(self._props.get("root")) or self._registry.root is self

    def add_states(self, states: Iterable[Any]) -> None:
        """表示ステートを追加する（同名は後勝ちで上書き）。"""
        self._check_alive()
        for state in coerce_states(states):
            self._states[state.name] = state

    def set_state(self, name: str | list[str]) -> None:
        """名前付きステートを適用する。名前の配列は 1 名 = 1 tick の系列値として適用する。"""
        if isinstance(name, str):
            state = self._states.get(name)
            if state is None:
                raise UnregisteredStateError(
                    f"attempt to apply unregistered state ({name!r}) to node {self.id}"
                )
            self.set(dict(state.properties))
            return
        self.set(expand_state_sequence(self._states, list(name), owner=self.id))

    def from_shape(self, shape: Any) -> None:
        """形状らしいオブジェクトから具体プロパティを書き込む（種別ごとのアダプタ）。"""
        type(self).SHAPE_ADAPTER(self, shape)

    # ---- 親子 ----
    def add_child(self, node: "Node") -> None:
        self._check_alive()
        self._check_can_adopt(node)
        old = node.parent
        if old is not None and old is not self:
            old.remove_child(node)
        self._children.add(node)
        node._parent = weakref.ref(self)

    def _check_can_adopt(self, node: "Node") -> None:
        """`node` が自身または祖先なら親子の循環になるため送出する。"""
        ancestor: Node | None = self
        while ancestor is not None:
            if ancestor is node:
                raise ParentCycleError(
                    f"cannot reparent node {node.id} under itself or its descendant {self.id}"
                )
            ancestor = ancestor.parent

    def remove_child(self, node: "Node") -> None:
        self._children.remove(node)
        if node.parent is self:
            node._parent = None

    def destroy(self) -> None:
        """子 → 自身の順に破棄し、親から外して registry から取り除く。"""
        if self._destroyed:
            raise NodeDestroyedError(f"destroy already called on node {self.id}")
        self._children.destroy()
        parent = self.parent
        if parent is not None:
            parent.remove_child(self)
        self._registry.record_destroy(self)
        self._registry.unregister(self)
        self._destroyed = True

    def _check_alive(self) -> None:
        if self._destroyed:
            raise NodeDestroyedError(f"node {self.id} has been destroyed")

    # ---- 幾何 ----
    def get_bounds(self) -> Box:
        return Box(self.get_own_value("x", 0), self.get_own_value("y", 0), 0, 0)

    def layout(self, box: Box) -> None:
        """box の中心へ配置する。"""
        self.set({"x": box.cx(), "y": box.cy()})

    def fill_box(self, box: Box) -> None:
        self.set({"x": box.x, "y": box.y, "w": box.w, "h": box.h})

    # ---- 描画用の解決 ----
    def origin(self) -> tuple[float, float]:
        """祖先の x/y の累積（子の座標は親の原点からの相対値）。"""
        ox = oy = 0.0
        node = self.parent
        while node is not None:
            ox += float(node.get_own_value("x", 0) or 0)
            oy += float(node.get_own_value("y", 0) or 0)
            node = node.parent
        return ox, oy

    def resolved_properties(self) -> dict[str, Any]:
        """描画バックエンドへ渡す解決済みプロパティ表。"""
        visible = self.get_own_value("visible", True)
        ox, oy = self.origin()
        resolved: dict[str, Any] = {
            "id": self.id,
            "kind": self.KIND,
            "fill": self.get_inherited_value("fill", Color.TRANSPARENT),
            "stroke": self.get_inherited_value("stroke", Color.TRANSPARENT),
            "strokeWidth": self.get_inherited_value("strokeWidth", 0),
            "opacity": self.get_inherited_value("opacity", 1),
            "visible": visible is not False and visible != "hidden",
            "pen": self.get_inherited_value("pen", Color.BLACK),
            "fontSize": self.get_inherited_value("fontSize", "12px"),
            "textAlign": self.get_inherited_value("textAlign", "center"),
            "z": self.get_own_value("z", 0),
            "x": self.get_own_value("x", 0),
            "y": self.get_own_value("y", 0),
            "scaleX": self.get_own_value("scaleX", 1),
            "scaleY": self.get_own_value("scaleY", 1),
            "rotation": self.get_own_value("rotation", 0),
            "text": self.get_own_value("text", ""),
            "originX": ox,
            "originY": oy,
        }
        resolved.update(self._resolve_extra())
        return resolved

    def _resolve_extra(self) -> dict[str, Any]:
        return {}

    def __repr__(self) -> str:
        state = " destroyed" if self._destroyed else ""
        return f"<{self.KIND} id={self.id}{state}>"


def set_all(props: Mapping[str, Any], *targets: Any, depth: float | None = 0) -> None:
    """複数ノードへ同じプロパティを適用する。

    `targets` は Node、Node の list/tuple/NodeGroup、値に Node を持つ dict の任意の混在。
    Node 以外は無視する。
    """
    for target in targets:
        if isinstance(target, Node):
            target.set(props, depth)
            continue
        if isinstance(target, Mapping):
            items: Iterable[Any] = target.values()
        elif isinstance(target, (list, tuple, set, frozenset, NodeGroup)):
            items = target
        else:
            continue
        for item in list(items):
            if isinstance(item, Node):
                item.set(props, depth)


__all__ = ["Node", "set_all"]
