"""
どこで: `engine.runtime.history`
何を: 送信済みバッチの記録 `FrameHistory`（JSON 保存/読込）と、任意フレームへ再生する `HistoryPlayer`。
なぜ: 逆コマンドを持たずに「先頭からの再生」だけで任意の過去フレームを再構築するため。

シーク（`HistoryPlayer.seek(target)`）:
- 現在フレームがあり `target >= current` なら `[current, target)` だけを追加再生（安価）。
- それ以外（巻き戻し/初回）は registry を空に戻して `[0, target)` を再生（O(target)）。
- 再描画と検証は再生の最後に 1 回だけ。

保存形式（JSON）::

    [
      [ {"kind": "Update", "id": 0, "payload": {...}, "more": true}, ... ],   # frame 0
      [ ... ],                                                                # frame 1
    ]

tuple 値（色など）は `{"__tuple__": [...]}` で保存し、読込時に tuple へ戻す。
list 値は系列値として区別したまま保存される。
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Iterator, Sequence

from .command import Command
from .messages import DoneMessage, PauseMessage
from .surface import RendererSurface

logger = logging.getLogger(__name__)

Frame = tuple[Command, ...]

_TUPLE_TAG = "__tuple__"


def _encode(value: Any) -> Any:
    if isinstance(value, tuple):
        return {_TUPLE_TAG: [_encode(v) for v in value]}
    if isinstance(value, list):
        return [_encode(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _encode(v) for k, v in value.items()}
    return value


def _decode_hook(obj: dict[str, Any]) -> Any:
    if len(obj) == 1 and _TUPLE_TAG in obj:
        return tuple(obj[_TUPLE_TAG])
    return obj


class FrameHistory:
    """不変フレーム（コマンドの tuple）の追記専用リスト。"""

    def __init__(self, frames: Iterable[Iterable[Command]] = ()) -> None:
        self._frames: list[Frame] = [tuple(f) for f in frames]

    def append(self, commands: Iterable[Command]) -> int:
        """フレームを追加してその index を返す。"""
        self._frames.append(tuple(commands))
        return len(self._frames) - 1

    def record(self, message: PauseMessage | DoneMessage) -> int:
        return self.append(message.commands)

    def clear(self) -> None:
        self._frames.clear()

    def __len__(self) -> int:
        return len(self._frames)

    def __getitem__(self, index: int) -> Frame:
        return self._frames[index]

    def __iter__(self) -> Iterator[Frame]:
        return iter(list(self._frames))

    # ---- 永続化 ----
    def to_list(self) -> list[list[dict[str, Any]]]:
        return [[c.to_dict() for c in frame] for frame in self._frames]

    def save(self, path: str | Path) -> Path:
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        with p.open("w", encoding="utf-8") as f:
            json.dump(_encode(self.to_list()), f, ensure_ascii=False, indent=2)
        logger.debug("saved %d frame(s) to %s", len(self), p)
        return p

    @classmethod
    def load(cls, path: str | Path) -> "FrameHistory":
        """`save()` の出力を読み込む。形式が不正なら `ValueError`。"""
        with Path(path).open("r", encoding="utf-8") as f:
            data = json.load(f, object_hook=_decode_hook)
        if not isinstance(data, list) or not all(isinstance(frame, list) for frame in data):
            raise ValueError(f"{path}: expected a list of frames")
        return cls([Command.from_dict(c) for c in frame] for frame in data)


class HistoryPlayer:
    """記録済みフレームを RendererSurface 上で再生してシークする。"""

    def __init__(self, surface: RendererSurface, frames: FrameHistory | Sequence[Sequence[Command]]) -> None:
        self._surface = surface
        self._frames = frames
        self._current: int | None = None

    @property
    def current_frame(self) -> int | None:
        return self._current

    @property
    def surface(self) -> RendererSurface:
        return self._surface

    def __len__(self) -> int:
        return len(self._frames)

    def seek(self, target: int) -> None:
        """`target` 個のフレームを適用し終えた状態にする（0 ≦ target ≦ len）。"""
        target = int(target)
        if not 0 <= target <= len(self._frames):
            raise IndexError(f"frame {target} out of range [0, {len(self._frames)}]")
        if self._current is not None and target >= self._current:
            start = self._current
            logger.debug("history seek %d -> %d (incremental)", start, target)
        else:
            self._surface.reset()
            start = 0
            logger.debug("history seek %s -> %d (rebuild)", self._current, target)
        for index in range(start, target):
            self._surface.apply(self._frames[index], render=False)
        self._surface.render()
        self._surface.validate()
        self._current = target


__all__ = ["Frame", "FrameHistory", "HistoryPlayer"]
