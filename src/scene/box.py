"""
どこで: `scene.box`
何を: 不変な矩形 `Box(x, y, w, h)` と明示的なアクセサ（中心・右端・下端など）。
なぜ: 派生値をフィールドアクセスの裏で再計算せず、呼び出しとして明示するため。
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Box:
    """左上原点 (x, y) と幅/高さを持つ矩形。"""

    x: float = 0.0
    y: float = 0.0
    w: float = 0.0
    h: float = 0.0

    def cx(self) -> float:
        return self.x + self.w / 2

    def cy(self) -> float:
        return self.y + self.h / 2

    def center(self) -> tuple[float, float]:
        return (self.cx(), self.cy())

    def right(self) -> float:
        return self.x + self.w

    def bottom(self) -> float:
        return self.y + self.h

    def inflate(self, dx: float, dy: float) -> "Box":
        """各辺を dx/dy だけ外側へ広げた新しい Box を返す（負値で縮小）。"""
        return Box(self.x - dx, self.y - dy, self.w + 2 * dx, self.h + 2 * dy)

    def contains(self, px: float, py: float) -> bool:
        return self.x <= px <= self.right() and self.y <= py <= self.bottom()

    @classmethod
    def from_points(cls, x1: float, y1: float, x2: float, y2: float) -> "Box":
        """2 点を含む最小の Box。"""
        left, top = min(x1, x2), min(y1, y2)
        return cls(left, top, abs(x2 - x1), abs(y2 - y1))


__all__ = ["Box"]
