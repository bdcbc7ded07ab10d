"""
どこで: `scene.kinds`
何を: ノード種別の閉じた集合（Rectangle/LetterTile/Circle/Line/Arrow）と種別タグ → コンストラクタ表。
なぜ: レンダラ側がコマンドの `type` から同じ種別のノードを遅延生成するとき、名前文字列の
      動的探索ではなく登録済みテーブルを復号時に 1 度だけ引くため。

補足:
- 各種別は「プロパティ辞書だけから構築できる」こと（レンダラ側の遅延生成の前提）。
- LetterTile の値ラベル（右上の小さな文字）はミューテータ側でのみ子ノードとして生成する。
  レンダラ側には通常の Rectangle の Update コマンドとして届く。
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping

from common.base_registry import BaseRegistry
from util.color import Color

from .box import Box
from .errors import UnknownNodeKindError
from .node import Node
from .shape_adapter import circle_from_shape, line_from_shape, rectangle_from_shape
from .states import DEFAULT_STATES, LINE_STATES
from .update import UpdateRequest

if TYPE_CHECKING:
    from .registry import NodeRegistry

logger = logging.getLogger(__name__)

NODE_KINDS = BaseRegistry()
NODE_KINDS.register("Node")(Node)


@NODE_KINDS.register("Rectangle")
class Rectangle(Node):
    """左上原点と幅/高さで配置する矩形。"""

    KIND = "Rectangle"
    DEFAULT_PROPS = {"cornerRadius": 0}
    SHAPE_ADAPTER = staticmethod(rectangle_from_shape)

    def get_bounds(self) -> Box:
        return Box(
            self.get_own_value("x", 0),
            self.get_own_value("y", 0),
            self.get_own_value("w", 0),
            self.get_own_value("h", 0),
        )

    def layout(self, box: Box) -> None:
        w = self.get_own_value("w", 0)
        h = self.get_own_value("h", 0)
        self.set({"x": box.cx() - w / 2, "y": box.cy() - h / 2})

    def center_on(self, x: float, y: float) -> None:
        """(x, y) が中心になるよう移動する。"""
        w = self.get_own_value("w", 0)
        h = self.get_own_value("h", 0)
        self.set({"x": x - w / 2, "y": y - h / 2})

    def _resolve_extra(self) -> dict[str, Any]:
        return {
            "w": self.get_inherited_value("w", 0),
            "h": self.get_inherited_value("h", 0),
            "cornerRadius": self.get_inherited_value("cornerRadius", 0),
        }


@NODE_KINDS.register("LetterTile")
class LetterTile(Rectangle):
    """中央の文字と右上の値ラベルを持つ矩形（文字列の各位置と添字の表示向け）。"""

    KIND = "LetterTile"
    LABEL_FONT_SIZE = 12
    LABEL_INSET = 4

    _value_node: Rectangle | None = None

    def _prepare_options(self, options: dict[str, Any]) -> None:
        if "shape" not in options:
            options.setdefault("w", 50)
            options.setdefault("h", 50)

    @property
    def value_node(self) -> Rectangle | None:
        return self._value_node

    def set(self, props: Mapping[str, Any] | UpdateRequest | None = None, depth: float | None = 0) -> None:
        super().set(props, depth)
        if self._registry.mutator and self._value_node is None:
            self._value_node = Rectangle(
                self._registry,
                {
                    "x": 0,
                    "y": 0,
                    "w": 0,
                    "h": 0,
                    "parent": self,
                    "fill": Color.TRANSPARENT,
                    "strokeWidth": 0,
                    "fontSize": 16,
                    "textAlign": "right",
                    "text": "",
                },
            )
        label = self._value_node
        if label is None or label.destroyed:
            return
        update: dict[str, Any] = {
            "y": self.LABEL_INSET,
            "w": self.get_own_value("w", 0) - self.LABEL_INSET,
            "h": self.LABEL_FONT_SIZE,
            "fontSize": f"{self.LABEL_FONT_SIZE}px",
            "text": self.get_own_value("value", ""),
        }
        pen = self.get_inherited_value("pen")
        if pen is not None:
            update["pen"] = pen
        label.set(update)


@NODE_KINDS.register("Circle")
class Circle(Node):
    """中心 (x, y) と半径で配置する円。"""

    KIND = "Circle"
    SHAPE_ADAPTER = staticmethod(circle_from_shape)

    def get_bounds(self) -> Box:
        r = self.get_inherited_value("radius", 10)
        return Box(self.get_own_value("x", 0) - r, self.get_own_value("y", 0) - r, r * 2, r * 2)

    def _resolve_extra(self) -> dict[str, Any]:
        return {"radius": self.get_inherited_value("radius", 10)}


@NODE_KINDS.register("Line")
class Line(Node):
    """端点 (x1, y1)-(x2, y2) の線分。塗り色（fill）で描く。"""

    KIND = "Line"
    DEFAULT_PROPS = {"thickness": 1, "strokeWidth": 0}
    # 線は fill 色で描くため、組み込みステートを fill のみのものへ差し替える
    BASE_STATES = DEFAULT_STATES + LINE_STATES
    STATE_TRIGGERS = ("state", "fill")
    SHAPE_ADAPTER = staticmethod(line_from_shape)

    def get_bounds(self) -> Box:
        p = self.get({"x1": 0, "y1": 0, "x2": 0, "y2": 0})
        return Box.from_points(p["x1"], p["y1"], p["x2"], p["y2"])

    def _resolve_extra(self) -> dict[str, Any]:
        return self.get(
            {"x1": 0, "y1": 0, "x2": 0, "y2": 0, "thickness": 1, "strokeWidth": 0, "inset": 0}
        )


@NODE_KINDS.register("Arrow")
class Arrow(Line):
    """始点/終点に矢じりを持つ線分。矢じりの色は未指定なら fill を継承する。"""

    KIND = "Arrow"
    DEFAULT_PROPS = {"startArrow": True, "endArrow": True}

    def _resolve_extra(self) -> dict[str, Any]:
        resolved = super()._resolve_extra()
        fill = self.get_inherited_value("fill", Color.BLUE)
        resolved.update(
            startArrow=bool(self.get_own_value("startArrow", False)),
            endArrow=bool(self.get_own_value("endArrow", False)),
            startArrowColor=self.get_inherited_value("startArrowColor", fill),
            endArrowColor=self.get_inherited_value("endArrowColor", fill),
        )
        return resolved


def node_class(kind: str) -> type[Node]:
    """種別タグからノードクラスを引く。未登録は `UnknownNodeKindError`。"""
    try:
        return NODE_KINDS.get(kind)
    except (KeyError, TypeError, ValueError):
        raise UnknownNodeKindError(f"unknown node kind {kind!r}") from None


def create_node(
    registry: "NodeRegistry",
    kind: str,
    props: Mapping[str, Any] | None = None,
    node_id: int | None = None,
) -> Node:
    """種別タグからノードを構築する（レンダラ側の遅延生成とミューテータ側の両方で使う）。"""
    cls = node_class(kind)
    return cls(registry, props, node_id=node_id)


__all__ = [
    "NODE_KINDS",
    "Rectangle",
    "LetterTile",
    "Circle",
    "Line",
    "Arrow",
    "node_class",
    "create_node",
]
