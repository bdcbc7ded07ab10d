"""
どこで: `demo/bubble_sort.py`
何を: 円ノードを値の大きさで並べ、隣接比較と入れ替えを矢印と表示ステートで示すデモ。
"""

from __future__ import annotations

from typing import Any, Iterator

from api import Arrow, Circle, ElementArray, MutatorSurface, run, states
from scene.box import Box

VALUES = [5, 2, 8, 1, 9, 3]


def bubble_sort(surface: MutatorSurface, values: list[int] = VALUES) -> Iterator[dict[str, Any]]:
    bounds = surface.bounds
    cell_w = bounds.w / len(values)

    def cell(index: int) -> Box:
        return Box(bounds.x + cell_w * index, bounds.y, cell_w, bounds.h)

    def create_element(value: int, index: int) -> Circle:
        c = Circle(surface.registry, {"radius": 10 + value * 3, "text": str(value)})
        c.layout(cell(index))
        return c

    def swap_element(value: int, new_index: int, old_index: int, node: Circle) -> None:
        start = cell(old_index).cx()
        end = cell(new_index).cx()
        node.set({"x": [start + (end - start) / 2, end], "state": [states.ORANGE, states.NORMAL]})

    arr = ElementArray(values, create_element=create_element, swap_element=swap_element)
    pointer = Arrow(surface.registry, {"x1": 0, "y1": 0, "x2": 0, "y2": 0, "visible": False})
    yield {"step": "Compare each pair of neighbors and swap them when out of order.", "variables": {"values": arr.values()}}

    for end in range(len(arr) - 1, 0, -1):
        for i in range(end):
            a, b = cell(i), cell(i + 1)
            pointer.set({"x1": a.cx(), "y1": a.y + 20, "x2": b.cx(), "y2": b.y + 20, "visible": True})
            arr.get_element(i).set_state(states.BLUE)
            arr.get_element(i + 1).set_state(states.BLUE)
            yield {"step": f"Compare positions {i} and {i + 1}.", "variables": {"i": i, "end": end}}
            if arr.get_value(i) > arr.get_value(i + 1):
                arr.swap(i, i + 1)
                yield {"autoskip": True}
            else:
                arr.get_element(i).set_state(states.NORMAL)
                arr.get_element(i + 1).set_state(states.NORMAL)
        arr.get_element(end).set_state(states.GREEN)

    arr.get_element(0).set_state(states.GREEN)
    pointer.set({"visible": False})
    yield {"step": "Sorted.", "variables": {"values": arr.values()}}


if __name__ == "__main__":
    run(bubble_sort, bounds=(0, 0, 900, 300), autoplay=True)
