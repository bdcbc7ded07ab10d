from __future__ import annotations

import pytest

from api.array import ElementArray


class _Recorder:
    def __init__(self) -> None:
        self.created: list[tuple[str, int]] = []
        self.updated: list[tuple[str, int]] = []
        self.swapped: list[tuple[str, int, int]] = []
        self.destroyed: list[str] = []

    def create(self, value: str, index: int) -> str:
        self.created.append((value, index))
        return f"node-{value}"

    def update(self, value: str, index: int, node: str) -> None:
        self.updated.append((value, index))

    def swap(self, value: str, new_index: int, old_index: int, node: str) -> None:
        self.swapped.append((value, new_index, old_index))

    def destroy(self, node: str) -> None:
        self.destroyed.append(node)


def _array(rec: _Recorder, data: str = "ab", *, with_swap: bool = True) -> ElementArray[str]:
    return ElementArray(
        data,
        create_element=rec.create,
        update_element=rec.update,
        swap_element=rec.swap if with_swap else None,
        destroy_element=rec.destroy,
    )


def test_push_creates_and_reindexes() -> None:
    rec = _Recorder()
    arr = _array(rec)

    assert arr.values() == ["a", "b"]
    assert rec.created == [("a", 0), ("b", 1)]
    rec.updated.clear()

    arr.insert_at("z", 0)
    assert arr.values() == ["z", "a", "b"]
    assert rec.updated == [("z", 0), ("a", 1), ("b", 2)]
    assert arr.get_element(0) == "node-z"


def test_remove_destroys_element() -> None:
    rec = _Recorder()
    arr = _array(rec, "abc")
    rec.updated.clear()

    assert arr.remove_at(1) == "b"
    assert rec.destroyed == ["node-b"]
    assert rec.updated == [("a", 0), ("c", 1)]
    assert arr.pop() == "c"
    assert len(arr) == 1


def test_set_value_updates_only_that_element() -> None:
    rec = _Recorder()
    arr = _array(rec)
    rec.updated.clear()

    arr.set_value(1, "q")

    assert rec.updated == [("q", 1)]
    assert arr.value_accessor()(1) == "q"


def test_swap_reports_new_and_old_index() -> None:
    rec = _Recorder()
    arr = _array(rec, "abc")

    arr.swap(0, 2)

    assert arr.values() == ["c", "b", "a"]
    assert rec.swapped == [("c", 0, 2), ("a", 2, 0)]
    assert arr.element_accessor()(0) == "node-c"


def test_swap_falls_back_to_update() -> None:
    rec = _Recorder()
    arr = _array(rec, "abc", with_swap=False)
    rec.updated.clear()

    arr.swap(0, 1)

    assert rec.swapped == []
    assert rec.updated == [("b", 0), ("a", 1)]


def test_invalid_indices_raise() -> None:
    arr = ElementArray("ab")

    with pytest.raises(IndexError):
        arr.get_value(2)
    with pytest.raises(IndexError):
        arr.insert_at("x", 3)
    with pytest.raises(IndexError):
        arr.swap(0, -1)
    with pytest.raises(IndexError):
        ElementArray().pop()
    assert arr.get_item(0).element is None
    assert list(arr) == ["a", "b"]
