"""
どこで: `engine.runtime.task`
何を: ミューテータ側アルゴリズムの再開契約 `AlgorithmTask`（`resume()`）と、その 2 つの実装。
なぜ: 「中断点で止まって確認を待つ」制御をジェネレータの言語機能に閉じ込めず、明示的で
      テスト可能な契約として TickProtocol から駆動するため。

`resume()` の戻り値:
- Mapping: 中断点に到達した（値はレンダラへ渡す再開メタデータ）。
- None: アルゴリズムが終了した。以降の `resume()` は `ProtocolError`。
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Iterator, Mapping, Protocol, runtime_checkable

from scene.errors import ProtocolError

logger = logging.getLogger(__name__)


@runtime_checkable
class AlgorithmTask(Protocol):
    def resume(self) -> Mapping[str, Any] | None: ...


def _as_metadata(value: Any) -> dict[str, Any]:
    # 値なしの中断点（`yield`）は空のメタデータ
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return dict(value)
    return {"value": value}


class GeneratorTask:
    """Python ジェネレータ（`yield` が中断点）を AlgorithmTask として包む。"""

    def __init__(self, generator: Iterator[Any]) -> None:
        self._generator = generator
        self._finished = False
        self._steps = 0

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def steps(self) -> int:
        return self._steps

    def resume(self) -> dict[str, Any] | None:
        if self._finished:
            raise ProtocolError("algorithm has already finished")
        try:
            value = next(self._generator)
        except StopIteration:
            self._finished = True
            return None
        self._steps += 1
        return _as_metadata(value)


class StepTask:
    """明示的なステップ関数列。各関数の実行後が中断点になる。"""

    def __init__(self, steps: Iterable[Callable[[], Any]]) -> None:
        self._steps = list(steps)
        self._index = 0
        self._finished = False

    @property
    def finished(self) -> bool:
        return self._finished

    def resume(self) -> dict[str, Any] | None:
        if self._finished:
            raise ProtocolError("algorithm has already finished")
        if self._index >= len(self._steps):
            self._finished = True
            return None
        step = self._steps[self._index]
        self._index += 1
        return _as_metadata(step())


def as_task(obj: Any) -> AlgorithmTask:
    """アルゴリズムファクトリの戻り値を AlgorithmTask に揃える。

    受理: AlgorithmTask / ジェネレータ（イテレータ）/ 呼び出し可能オブジェクトの list・tuple。
    """
    if isinstance(obj, AlgorithmTask):
        return obj
    if isinstance(obj, (list, tuple)) and all(callable(s) for s in obj):
        return StepTask(obj)
    if isinstance(obj, Iterator):
        return GeneratorTask(obj)
    raise TypeError(f"cannot run {obj!r} as an algorithm (expected a generator or a task with resume())")


__all__ = ["AlgorithmTask", "GeneratorTask", "StepTask", "as_task"]
