"""
どこで: `engine.core.geometry`
何を: 2D ポリライン集合 `Geometry`（連結座標 + 開始 index）と最小限の純関数変換。
なぜ: ノードの輪郭（矩形/円/線/矢じり）を 1 本の連続メモリへまとめ、GPU 転送や
      テストでの比較を単純にするため。

データモデル（不変条件）:
- `coords: float32 ndarray (N, 2)`: 全頂点を連結（行は XY、左上原点・y 下向き）。
- `offsets: int32 ndarray (M+1,)`: 各ポリラインの開始 index（先頭 0、末尾 N、単調非減少）。
- i 本目は `coords[offsets[i] : offsets[i+1]]`。

    # 例: 線0 が 3 点、線1 が 2 点
    #   coords  = [[0,0],[1,0],[1,1],[2,2],[3,2]]
    #   offsets = [0, 3, 5]
"""

from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np

LineLike = np.ndarray | Sequence[Sequence[float]]


def _normalize(coords: np.ndarray, offsets: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    c = np.ascontiguousarray(coords, dtype=np.float32)
    if c.ndim != 2 or c.shape[1] != 2:
        raise ValueError(f"coords must have shape (N, 2), got {c.shape}")
    o = np.ascontiguousarray(offsets, dtype=np.int32)
    if o.ndim != 1 or o.size == 0:
        raise ValueError("offsets must be a non-empty 1-D array")
    if o[0] != 0 or o[-1] != c.shape[0]:
        raise ValueError("offsets must start at 0 and end at len(coords)")
    if np.any(np.diff(o) < 0):
        raise ValueError("offsets must be non-decreasing")
    return c, o


class Geometry:
    """2D ポリライン集合。変換は新しいインスタンスを返す。"""

    __slots__ = ("coords", "offsets")

    coords: np.ndarray
    offsets: np.ndarray

    def __init__(self, coords: np.ndarray, offsets: np.ndarray) -> None:
        self.coords, self.offsets = _normalize(coords, offsets)

    @classmethod
    def empty(cls) -> "Geometry":
        return cls(np.empty((0, 2), dtype=np.float32), np.zeros(1, dtype=np.int32))

    @classmethod
    def from_lines(cls, lines: Iterable[LineLike]) -> "Geometry":
        """`(K, 2)` 座標列の集合から生成する。形状が合わなければ `ValueError`。"""
        arrays: list[np.ndarray] = []
        for line in lines:
            arr = np.asarray(line, dtype=np.float32)
            if arr.ndim != 2 or arr.shape[1] != 2:
                raise ValueError(f"each line must have shape (K, 2), got {arr.shape}")
            arrays.append(arr)
        if not arrays:
            return cls.empty()
        offsets = np.zeros(len(arrays) + 1, dtype=np.int32)
        offsets[1:] = np.cumsum([a.shape[0] for a in arrays])
        return cls(np.concatenate(arrays, axis=0), offsets)

    @property
    def is_empty(self) -> bool:
        return self.coords.shape[0] == 0

    @property
    def n_vertices(self) -> int:
        return int(self.coords.shape[0])

    @property
    def n_lines(self) -> int:
        return len(self)

    def lines(self) -> list[np.ndarray]:
        """各ポリラインの読み取り専用ビュー。"""
        out = []
        for i in range(len(self)):
            view = self.coords[self.offsets[i] : self.offsets[i + 1]].view()
            view.setflags(write=False)
            out.append(view)
        return out

    def translate(self, dx: float = 0.0, dy: float = 0.0) -> "Geometry":
        return Geometry(self.coords + np.array([dx, dy], dtype=np.float32), self.offsets.copy())

    def scale(self, sx: float, sy: float | None = None, center: tuple[float, float] = (0.0, 0.0)) -> "Geometry":
        if sy is None:
            sy = sx
        pivot = np.array(center, dtype=np.float32)
        factor = np.array([sx, sy], dtype=np.float32)
        return Geometry((self.coords - pivot) * factor + pivot, self.offsets.copy())

    def rotate(self, angle: float, center: tuple[float, float] = (0.0, 0.0)) -> "Geometry":
        """`center` 周りに `angle` ラジアン回転（y 下向き座標では時計回り）。"""
        if angle == 0 or self.is_empty:
            return Geometry(self.coords.copy(), self.offsets.copy())
        c, s = np.float32(np.cos(angle)), np.float32(np.sin(angle))
        pivot = np.array(center, dtype=np.float32)
        p = self.coords - pivot
        rotated = np.stack([p[:, 0] * c - p[:, 1] * s, p[:, 0] * s + p[:, 1] * c], axis=1)
        return Geometry(rotated + pivot, self.offsets.copy())

    def concat(self, other: "Geometry") -> "Geometry":
        if self.is_empty:
            return Geometry(other.coords.copy(), other.offsets.copy())
        if other.is_empty:
            return Geometry(self.coords.copy(), self.offsets.copy())
        coords = np.vstack([self.coords, other.coords])
        offsets = np.hstack([self.offsets, other.offsets[1:] + self.coords.shape[0]])
        return Geometry(coords, offsets)

    def __add__(self, other: "Geometry") -> "Geometry":
        return self.concat(other)

    def __len__(self) -> int:
        return int(self.offsets.shape[0] - 1)

    def __repr__(self) -> str:  # pragma: no cover - 表示用
        return f"Geometry(N={self.n_vertices}, M={self.n_lines})"


__all__ = ["Geometry"]
