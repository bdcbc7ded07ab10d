"""
どこで: `api.array`
何を: 値の配列と、各値を可視化するノード（任意）を対で保持する `ElementArray`。
なぜ: アルゴリズムは値の操作だけを書き、ノードの生成/移動/破棄はコールバックへ委ねるため。

コールバック（いずれも任意）:
- `create_element(value, index) -> Node | None`: 挿入時。返したノードを値と対で保持する。
- `update_element(value, index, node)`: 挿入/削除の後、ノードを持つ全要素へ現在の添字で呼ぶ。
  `set_value` の後は対象の要素にのみ呼ぶ。
- `swap_element(value, new_index, old_index, node)`: `swap` 後の両要素。未指定なら
  `update_element(value, new_index, node)` で代用する。
- `destroy_element(node)`: 削除時。

使用例:
    arr = ElementArray("ABC", create_element=lambda v, i: LetterTile(registry, {"text": v}))
    arr.swap(0, 2)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, Iterator, TypeVar

T = TypeVar("T")


@dataclass
class ArrayItem(Generic[T]):
    """値と、それを可視化するノード（無ければ None）。"""

    value: T
    element: Any = None


class ElementArray(Generic[T]):
    def __init__(
        self,
        data: Iterable[T] = (),
        *,
        create_element: Callable[[T, int], Any] | None = None,
        update_element: Callable[[T, int, Any], None] | None = None,
        swap_element: Callable[[T, int, int, Any], None] | None = None,
        destroy_element: Callable[[Any], None] | None = None,
    ) -> None:
        self._items: list[ArrayItem[T]] = []
        self._create = create_element
        self._update = update_element
        self._swap = swap_element
        self._destroy = destroy_element
        for value in data:
            self.push(value)

    # ---- 検証 ----
    def _validate_index(self, index: int) -> None:
        if not 0 <= index < len(self._items):
            raise IndexError(f"invalid index {index} for array of length {len(self._items)}")

    def _update_elements(self) -> None:
        if self._update is None:
            return
        for index, item in enumerate(self._items):
            if item.element is not None:
                self._update(item.value, index, item.element)

    # ---- 挿入/削除 ----
    def insert_at(self, value: T, index: int) -> None:
        """`index` の位置へ挿入する（長さと等しい添字は末尾追加）。"""
        if not 0 <= index <= len(self._items):
            raise IndexError(f"invalid insert index {index} for array of length {len(self._items)}")
        element = self._create(value, index) if self._create is not None else None
        self._items.insert(index, ArrayItem(value, element))
        self._update_elements()

    def push(self, value: T) -> None:
        self.insert_at(value, len(self._items))

    def remove_at(self, index: int) -> T:
        self._validate_index(index)
        item = self._items.pop(index)
        if item.element is not None and self._destroy is not None:
            self._destroy(item.element)
        self._update_elements()
        return item.value

    def pop(self) -> T:
        return self.remove_at(len(self._items) - 1)

    # ---- 参照 ----
    def get_value(self, index: int) -> T:
        self._validate_index(index)
        return self._items[index].value

    def get_element(self, index: int) -> Any:
        self._validate_index(index)
        return self._items[index].element

    def get_item(self, index: int) -> ArrayItem[T]:
        self._validate_index(index)
        return self._items[index]

    def value_accessor(self) -> Callable[[int], T]:
        """添字 → 値の読み取り専用アクセサ。"""
        return self.get_value

    def element_accessor(self) -> Callable[[int], Any]:
        """添字 → ノードの読み取り専用アクセサ。"""
        return self.get_element

    def values(self) -> list[T]:
        return [item.value for item in self._items]

    # ---- 変更 ----
    def set_value(self, index: int, value: T) -> None:
        self._validate_index(index)
        item = self._items[index]
        item.value = value
        if item.element is not None and self._update is not None:
            self._update(item.value, index, item.element)

    def swap(self, x: int, y: int) -> None:
        """x と y の要素を入れ替え、両方のノードへ新旧の添字を通知する。"""
        self._validate_index(x)
        self._validate_index(y)
        items = self._items
        items[x], items[y] = items[y], items[x]
        for new_index, old_index in ((x, y), (y, x)):
            item = items[new_index]
            if item.element is None:
                continue
            if self._swap is not None:
                self._swap(item.value, new_index, old_index, item.element)
            elif self._update is not None:
                self._update(item.value, new_index, item.element)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self.values())

    def __repr__(self) -> str:
        return f"ElementArray({self.values()!r})"


__all__ = ["ArrayItem", "ElementArray"]
