"""
どこで: `util.color`。
何を: 色定数 `Color` と色指定の正規化（Hex, RGBA 0–1, RGBA 0–255）を一元化。
なぜ: ノードのプロパティ値・表示ステート・バックエンドで同一の受理仕様を共有するため。

注意:
- 色は常に tuple で表す。list はノード側で「系列値（複数 tick に渡る値）」と解釈されるため、
  色を list で渡すと 4 tick のアニメーションになってしまう。
"""

from __future__ import annotations

from typing import Sequence

RGBA = tuple[float, float, float, float]


class Color:
    """組み込みの色定数（RGBA 0–1 の tuple）。"""

    WHITE: RGBA = (1.0, 1.0, 1.0, 1.0)
    BLACK: RGBA = (0.0, 0.0, 0.0, 1.0)
    BLUE: RGBA = (0.114, 0.455, 0.851, 1.0)
    GRAY: RGBA = (0.6, 0.6, 0.6, 1.0)
    ORANGE: RGBA = (1.0, 0.541, 0.0, 1.0)
    RED: RGBA = (0.851, 0.2, 0.173, 1.0)
    GREEN: RGBA = (0.173, 0.627, 0.173, 1.0)
    CYAN: RGBA = (0.0, 0.737, 0.831, 1.0)
    TRANSPARENT: RGBA = (0.0, 0.0, 0.0, 0.0)


def _clamp01(x: float) -> float:
    return 0.0 if x < 0.0 else 1.0 if x > 1.0 else float(x)


def parse_hex_color_str(s: str) -> RGBA:
    """Hex 文字列から RGBA(0–1) を返す。

    受理形式: "#RRGGBB", "#RRGGBBAA", "0xRRGGBB", "0xRRGGBBAA", "RRGGBB", "RRGGBBAA"。
    """
    t = s.strip()
    if t.startswith("#"):
        t = t[1:]
    elif t.lower().startswith("0x"):
        t = t[2:]
    if len(t) not in (6, 8):
        raise ValueError(f"invalid hex color length: '{s}' (expected RRGGBB or RRGGBBAA)")
    try:
        channels = [int(t[i : i + 2], 16) for i in range(0, len(t), 2)]
    except ValueError as e:
        raise ValueError(f"invalid hex color: '{s}'") from e
    if len(channels) == 3:
        channels.append(255)
    r, g, b, a = (c / 255.0 for c in channels)
    return (r, g, b, a)


def normalize_color(value: object) -> RGBA:
    """色を RGBA(0–1) へ正規化する。

    - 受理: Hex 文字列, (r,g,b[,a]) （0–1 または 0–255）
    - 全要素が 0..1 に収まれば 0–1 表現とみなし、それ以外は 0–255 とみなす。
    """
    if isinstance(value, str):
        return parse_hex_color_str(value)
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"unsupported color type: {type(value)!r}")
    seq: Sequence[float] = value
    if len(seq) not in (3, 4):
        raise ValueError("color tuple/list must be length 3 or 4")
    try:
        floats = [float(v) for v in seq]
    except (TypeError, ValueError) as e:
        raise ValueError(f"invalid color tuple/list: {value!r}") from e
    if len(floats) == 3:
        floats.append(1.0)
    if all(0.0 <= x <= 1.0 for x in floats):
        r, g, b, a = (_clamp01(x) for x in floats)
        return (r, g, b, a)
    r, g, b, a = (max(0, min(255, int(round(x)))) / 255.0 for x in floats)
    return (r, g, b, a)


def with_alpha(value: object, alpha: float) -> RGBA:
    """色のアルファのみを差し替える（opacity の合成に使用）。"""
    r, g, b, a = normalize_color(value)
    return (r, g, b, _clamp01(a * float(alpha)))


def to_u8_rgba(value: object) -> tuple[int, int, int, int]:
    """色を RGBA(0–255) へ変換する。"""
    r, g, b, a = normalize_color(value)
    return (int(round(r * 255)), int(round(g * 255)), int(round(b * 255)), int(round(a * 255)))


__all__ = [
    "RGBA",
    "Color",
    "parse_hex_color_str",
    "normalize_color",
    "with_alpha",
    "to_u8_rgba",
]
