"""
どこで: `engine.render.outline`
何を: 解決済みプロパティ表（`Node.resolved_properties()`）から、ノード 1 つ分の描画レイヤー
      （輪郭ポリライン + 色/太さ、必要なら文字列）を numpy で組み立てる。
なぜ: 矩形/円/線分/矢印の見た目をバックエンド非依存の純関数に閉じ込め、GL なしでも検証できるようにする。

座標系:
- ピクセル単位、原点は左上、y は下向き。
- 子の座標は親の原点からの相対値（`originX/originY` に祖先の累積が入る）。
- 回転（度）と拡大は要素の中心周り。線分/矢印は端点をそのまま使う。
"""

from __future__ import annotations

import math
from typing import Any, Mapping

import numpy as np

from common import settings
from util.color import Color, RGBA, normalize_color, with_alpha

from ..core.geometry import Geometry
from .types import Layer

ARROW_HEAD_SIZE = 8.0
CORNER_SEGMENTS = 6
_BOX_KINDS = ("Rectangle", "LetterTile")
_LINE_KINDS = ("Line", "Arrow")


def parse_font_size(value: Any, default: float = 12.0) -> float:
    """"40px" / 40 / "40" をピクセル値へ。解釈できなければ既定値。"""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        t = value.strip().lower()
        if t.endswith("px"):
            t = t[:-2]
        try:
            return float(t)
        except ValueError:
            return default
    return default


def _rgba(value: Any, opacity: float) -> RGBA:
    if value is None:
        return Color.TRANSPARENT
    return with_alpha(normalize_color(value), opacity)


def rectangle_outline(w: float, h: float, corner_radius: float = 0.0) -> Geometry:
    """(0, 0) 起点の w×h 閉ポリライン。角丸は円弧で近似する。"""
    if w <= 0 or h <= 0:
        return Geometry.empty()
    r = max(0.0, min(float(corner_radius), w / 2, h / 2))
    if r == 0:
        pts = np.array([(0, 0), (w, 0), (w, h), (0, h), (0, 0)], dtype=np.float32)
        return Geometry.from_lines([pts])
    corners = [
        (w - r, r, -90.0),
        (w - r, h - r, 0.0),
        (r, h - r, 90.0),
        (r, r, 180.0),
    ]
    pts_list: list[tuple[float, float]] = []
    for cx, cy, start in corners:
        for i in range(CORNER_SEGMENTS + 1):
            a = math.radians(start + 90.0 * i / CORNER_SEGMENTS)
            pts_list.append((cx + r * math.cos(a), cy + r * math.sin(a)))
    pts_list.append(pts_list[0])
    return Geometry.from_lines([np.asarray(pts_list, dtype=np.float32)])


def circle_outline(radius: float, segments: int | None = None) -> Geometry:
    """原点中心の正 N 角形（閉ポリライン）。"""
    if radius <= 0:
        return Geometry.empty()
    n = int(segments or settings.get().CIRCLE_SEGMENTS)
    t = np.linspace(0.0, 2.0 * np.pi, n + 1, dtype=np.float64)
    pts = np.stack([np.cos(t) * radius, np.sin(t) * radius], axis=1).astype(np.float32)
    pts[-1] = pts[0]
    return Geometry.from_lines([pts])


def inset_segment(x1: float, y1: float, x2: float, y2: float, inset: float) -> tuple[float, float, float, float]:
    """両端を `inset` だけ内側へ寄せる。長さの半分 - 2px を上限とし、線分が点に潰れないようにする。"""
    if not inset:
        return x1, y1, x2, y2
    dx, dy = x2 - x1, y2 - y1
    length = math.hypot(dx, dy)
    if length == 0:
        return x1, y1, x2, y2
    inset = min((length - 4) / 2, float(inset))
    nx, ny = dx / length, dy / length
    return x1 + nx * inset, y1 + ny * inset, x2 - nx * inset, y2 - ny * inset


def arrow_head(tip: tuple[float, float], direction: tuple[float, float], size: float = ARROW_HEAD_SIZE) -> Geometry:
    """`tip` で `direction` を向く V 字の矢じり。"""
    dx, dy = direction
    length = math.hypot(dx, dy)
    if length == 0:
        return Geometry.empty()
    ux, uy = dx / length, dy / length
    # 後方へ size、左右へ size/2
    bx, by = tip[0] - ux * size, tip[1] - uy * size
    px, py = -uy * size / 2, ux * size / 2
    pts = np.array([(bx + px, by + py), tip, (bx - px, by - py)], dtype=np.float32)
    return Geometry.from_lines([pts])


def _place(
    geometry: Geometry,
    resolved: Mapping[str, Any],
    pivot: tuple[float, float],
    offset: tuple[float, float],
) -> Geometry:
    sx = float(resolved.get("scaleX", 1) or 0)
    sy = float(resolved.get("scaleY", 1) or 0)
    rotation = math.radians(float(resolved.get("rotation", 0) or 0))
    g = geometry
    if (sx, sy) != (1.0, 1.0):
        g = g.scale(sx, sy, center=pivot)
    if rotation:
        g = g.rotate(rotation, center=pivot)
    return g.translate(*offset)


def _text_anchor(align: str, w: float, h: float) -> tuple[float, float]:
    if align == "right":
        return w, h / 2
    if align == "left":
        return 0.0, h / 2
    return w / 2, h / 2


def build_layers(resolved: Mapping[str, Any], *, circle_segments: int | None = None) -> list[Layer]:
    """ノード 1 つ分のレイヤー列（先頭が本体、以降は矢じりなどの付属物）。

    非表示なら空リスト。色の alpha には継承 opacity を掛ける。
    """
    if not resolved.get("visible", True):
        return []

    kind = str(resolved.get("kind", "Node"))
    node_id = int(resolved.get("id", -1))
    opacity = float(resolved.get("opacity", 1))
    z = float(resolved.get("z", 0) or 0)
    ox = float(resolved.get("originX", 0) or 0)
    oy = float(resolved.get("originY", 0) or 0)
    x = float(resolved.get("x", 0) or 0)
    y = float(resolved.get("y", 0) or 0)
    text = resolved.get("text", "")
    text = "" if text is None else str(text)
    pen = _rgba(resolved.get("pen"), opacity)
    font_size = parse_font_size(resolved.get("fontSize"))
    align = str(resolved.get("textAlign", "center"))
    fill = _rgba(resolved.get("fill"), opacity)
    stroke = _rgba(resolved.get("stroke"), opacity)
    stroke_width = float(resolved.get("strokeWidth", 0) or 0)

    def _body_color() -> tuple[RGBA, float]:
        if stroke_width > 0 and stroke[3] > 0:
            return stroke, stroke_width
        return fill, 1.0

    if kind in _LINE_KINDS:
        x1, y1, x2, y2 = inset_segment(
            float(resolved.get("x1", 0)),
            float(resolved.get("y1", 0)),
            float(resolved.get("x2", 0)),
            float(resolved.get("y2", 0)),
            float(resolved.get("inset", 0) or 0),
        )
        segment = Geometry.from_lines([np.array([(x1, y1), (x2, y2)], dtype=np.float32)]).translate(ox, oy)
        thickness = float(resolved.get("thickness", 1) or 0) + 2 * stroke_width
        layers = [
            Layer(
                node_id,
                segment,
                fill,
                thickness,
                z,
                text=text,
                text_pos=(ox + (x1 + x2) / 2, oy + (y1 + y2) / 2),
                text_color=pen,
                font_size=font_size,
                text_align=align,
            )
        ]
        if kind == "Arrow":
            if resolved.get("startArrow"):
                head = arrow_head((x1, y1), (x1 - x2, y1 - y2)).translate(ox, oy)
                layers.append(Layer(node_id, head, _rgba(resolved.get("startArrowColor"), opacity), 1.0, z))
            if resolved.get("endArrow"):
                head = arrow_head((x2, y2), (x2 - x1, y2 - y1)).translate(ox, oy)
                layers.append(Layer(node_id, head, _rgba(resolved.get("endArrowColor"), opacity), 1.0, z))
        return layers

    if kind == "Circle":
        radius = float(resolved.get("radius", 10) or 0)
        outline = _place(circle_outline(radius, circle_segments), resolved, (0.0, 0.0), (ox + x, oy + y))
        color, thickness = _body_color()
        return [
            Layer(
                node_id,
                outline,
                color,
                thickness,
                z,
                text=text,
                text_pos=(ox + x, oy + y),
                text_color=pen,
                font_size=font_size,
                text_align=align,
            )
        ]

    if kind in _BOX_KINDS or "w" in resolved:
        w = float(resolved.get("w", 0) or 0)
        h = float(resolved.get("h", 0) or 0)
        pivot = (w / 2, h / 2)
        outline = _place(
            rectangle_outline(w, h, float(resolved.get("cornerRadius", 0) or 0)),
            resolved,
            pivot,
            (ox + x, oy + y),
        )
        tx, ty = _text_anchor(align, w, h)
        color, thickness = _body_color()
        return [
            Layer(
                node_id,
                outline,
                color,
                thickness,
                z,
                text=text,
                text_pos=(ox + x + tx, oy + y + ty),
                text_color=pen,
                font_size=font_size,
                text_align=align,
            )
        ]

    # 形を持たない基底ノードは文字列のみ
    return [
        Layer(
            node_id,
            Geometry.empty(),
            Color.TRANSPARENT,
            0.0,
            z,
            text=text,
            text_pos=(ox + x, oy + y),
            text_color=pen,
            font_size=font_size,
            text_align=align,
        )
    ]


def is_drawable(layer: Layer) -> bool:
    """輪郭か文字列のどちらかが見える状態か。"""
    return (not layer.geometry.is_empty and layer.color[3] > 0 and layer.thickness > 0) or layer.has_text


__all__ = [
    "ARROW_HEAD_SIZE",
    "parse_font_size",
    "rectangle_outline",
    "circle_outline",
    "inset_segment",
    "arrow_head",
    "build_layers",
    "is_drawable",
]
