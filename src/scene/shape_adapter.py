"""
どこで: `scene.shape_adapter`
何を: 「点/線/矩形/円らしい」オブジェクトの判定と、ノード種別ごとの `from_shape` 変換。
なぜ: `shape` 予約キーで任意の形状オブジェクト（dict, `Box`, 他ノード, 属性を持つ任意の型）から
      具体プロパティ（x/y/w/h, radius, x1..y2）を書き込めるようにするため。

判定はフィールドの有無のみで行う（値の型は見ない）。
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping

from .errors import UnrecognizedShapeError

if TYPE_CHECKING:
    from .node import Node

_MISSING = object()


def _field(obj: Any, name: str) -> Any:
    from .node import Node  # 循環 import 回避のため局所 import

    if isinstance(obj, Node):
        return obj.get_own_value(name, _MISSING)
    if isinstance(obj, Mapping):
        return obj.get(name, _MISSING)
    return getattr(obj, name, _MISSING)


def shape_fields(obj: Any, *names: str) -> tuple[Any, ...] | None:
    """`names` の値をまとめて返す。1 つでも欠けていれば None。"""
    values = tuple(_field(obj, n) for n in names)
    if any(v is _MISSING for v in values):
        return None
    return values


def is_point_like(obj: Any) -> bool:
    return shape_fields(obj, "x", "y") is not None


def is_line_like(obj: Any) -> bool:
    return shape_fields(obj, "x1", "y1", "x2", "y2") is not None


def is_rect_like(obj: Any) -> bool:
    return shape_fields(obj, "x", "y", "w", "h") is not None


def is_circle_like(obj: Any) -> bool:
    return shape_fields(obj, "x", "y", "radius") is not None


def _unrecognized(node: "Node", shape: Any) -> UnrecognizedShapeError:
    return UnrecognizedShapeError(
        f"{type(node).__name__}.from_shape called with unrecognized shape {shape!r}"
    )


def point_from_shape(node: "Node", shape: Any) -> None:
    """任意ノード: 点らしい形状の位置へ移動する。"""
    fields = shape_fields(shape, "x", "y")
    if fields is None:
        raise _unrecognized(node, shape)
    x, y = fields
    node.set({"x": x, "y": y})


def rectangle_from_shape(node: "Node", shape: Any) -> None:
    """矩形: 円→外接正方形、矩形→x/y/w/h、点→自身の w/h で中心合わせ。"""
    circle = shape_fields(shape, "x", "y", "radius")
    if circle is not None:
        x, y, r = circle
        node.set({"x": x - r, "y": y - r, "w": r * 2, "h": r * 2})
        return
    rect = shape_fields(shape, "x", "y", "w", "h")
    if rect is not None:
        x, y, w, h = rect
        node.set({"x": x, "y": y, "w": w, "h": h})
        return
    point = shape_fields(shape, "x", "y")
    if point is not None:
        x, y = point
        w = node.get_own_value("w", 0)
        h = node.get_own_value("h", 0)
        node.set({"x": x - w / 2, "y": y - h / 2})
        return
    raise _unrecognized(node, shape)


def circle_from_shape(node: "Node", shape: Any) -> None:
    """円: 円→そのまま、矩形→内接円、点→中心のみ。"""
    circle = shape_fields(shape, "x", "y", "radius")
    if circle is not None:
        x, y, r = circle
        node.set({"x": x, "y": y, "radius": r})
        return
    rect = shape_fields(shape, "x", "y", "w", "h")
    if rect is not None:
        x, y, w, h = rect
        node.set({"x": x + w / 2, "y": y + h / 2, "radius": min(w, h) / 2})
        return
    point = shape_fields(shape, "x", "y")
    if point is not None:
        x, y = point
        node.set({"x": x, "y": y})
        return
    raise _unrecognized(node, shape)


def line_from_shape(node: "Node", shape: Any) -> None:
    """線: 線らしい形状（x1/y1/x2/y2）のみ受け付ける。"""
    line = shape_fields(shape, "x1", "y1", "x2", "y2")
    if line is None:
        raise _unrecognized(node, shape)
    x1, y1, x2, y2 = line
    node.set({"x1": x1, "y1": y1, "x2": x2, "y2": y2})


__all__ = [
    "shape_fields",
    "is_point_like",
    "is_line_like",
    "is_rect_like",
    "is_circle_like",
    "point_from_shape",
    "rectangle_from_shape",
    "circle_from_shape",
    "line_from_shape",
]
