"""
どこで: `api.samples`
何を: 付属のサンプルアルゴリズム（文字列の反転）。
なぜ: 系列値（複数 tick に渡るアニメーション）・表示ステート・ElementArray・autoskip の使い方を
      1 本で示すため。`run(reverse_word)` でそのまま実行できる。

別プロセス実行（spawn）でも渡せるよう、ファクトリはトップレベル関数として定義する。
"""

from __future__ import annotations

from typing import Any, Iterator

from engine.runtime.surface import MutatorSurface
from scene.box import Box
from scene.kinds import LetterTile
from scene.states import BLUE, FADED

from .array import ElementArray

WORD = "ALGORITHMS"


def _cell(bounds: Box, columns: int, column: int) -> Box:
    """bounds を 1 行 columns 列に割ったときの column 番目のセル。"""
    w = bounds.w / columns
    return Box(bounds.x + w * column, bounds.y, w, bounds.h)


def make_letter_array(surface: MutatorSurface, word: str) -> ElementArray[str]:
    """word の各文字を LetterTile で並べた ElementArray を作る。"""
    bounds = surface.bounds
    size = bounds.w / (len(word) + 2)
    columns = max(1, len(word))

    def create_element(value: str, index: int) -> LetterTile:
        tile = LetterTile(surface.registry, {"text": value, "w": size, "h": size, "value": index})
        tile.layout(_cell(bounds, columns, index))
        return tile

    def swap_element(value: str, new_index: int, old_index: int, tile: LetterTile) -> None:
        new_cell = _cell(bounds, columns, new_index)
        old_cell = _cell(bounds, columns, old_index)
        w = tile.get_own_value("w", size)
        new_x = new_cell.cx() - w / 2
        old_x = old_cell.cx() - w / 2
        lift = tile.get_own_value("h", size) * 1.5
        y = tile.get_own_value("y", 0)
        # 左半分は上を、右半分は下を回って新しいセルへ移る
        offset = lift if old_index < len(word) / 2 else -lift
        tile.set(
            {
                "y": [y + offset, y + offset, y],
                "x": [old_x, new_x, new_x],
                "state": [BLUE, BLUE, FADED],
            }
        )

    def destroy_element(tile: LetterTile) -> None:
        tile.destroy()

    return ElementArray(
        word,
        create_element=create_element,
        swap_element=swap_element,
        destroy_element=destroy_element,
    )


def reverse_word(surface: MutatorSurface, word: str = WORD) -> Iterator[dict[str, Any]]:
    """左右の添字を両端から寄せながら入れ替えて文字列を反転する。"""
    letters = make_letter_array(surface, word)
    left, right = 0, len(word) - 1
    yield {
        "step": "The string we are going to reverse. Initialize two indices, left and right, to either end.",
        "line": "initialize",
        "variables": {"word": word, "left": left, "right": right},
    }

    while left < right:
        yield {
            "step": "Exchange the items in the slots identified by left and right.",
            "line": "swap",
            "variables": {"left": left, "right": right},
        }
        letters.swap(left, right)
        yield {"autoskip": True}
        left += 1
        right -= 1

    yield {
        "step": "The algorithm is complete when left and right meet in the middle or pass each other.",
        "variables": {"result": "".join(letters.values())},
    }


__all__ = ["WORD", "make_letter_array", "reverse_word"]
