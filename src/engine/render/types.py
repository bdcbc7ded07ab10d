"""
どこで: `engine.render.types`
何を: 線描画用の軽量データクラス `Layer`（ノード 1 つ分の輪郭 + 色/太さ + 任意の文字列）。
なぜ: ノードごとに色/太さの異なるポリラインを z 順に描くためのコンテナが必要。
"""

from __future__ import annotations

from dataclasses import dataclass

from engine.core.geometry import Geometry

RGBA = tuple[float, float, float, float]


@dataclass(frozen=True)
class Layer:
    """色/太さ付きの描画レイヤー。"""

    node_id: int
    geometry: Geometry
    color: RGBA
    thickness: float  # ピクセル
    z: float = 0.0
    text: str = ""
    text_pos: tuple[float, float] = (0.0, 0.0)
    text_color: RGBA = (0.0, 0.0, 0.0, 1.0)
    font_size: float = 12.0
    text_align: str = "center"

    @property
    def has_text(self) -> bool:
        return bool(self.text) and self.text_color[3] > 0


__all__ = ["Layer", "RGBA"]
