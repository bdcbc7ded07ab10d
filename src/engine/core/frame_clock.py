"""
どこで: `engine.core.frame_clock`
何を: 登録した `Tickable` を固定順序で呼ぶ FrameClock（dt 測定つき）。
なぜ: 受信 → 自動再生の順序をウィンドウ側のスケジューラから 1 箇所で保証するため。
"""

from __future__ import annotations

import time
from typing import Sequence

from .tickable import Tickable


class FrameClock:
    """Tickable 列を登録順に実行する。"""

    def __init__(self, tickables: Sequence[Tickable]):
        self._tickables = tuple(tickables)
        self._last_time = time.perf_counter()
        self._frames = 0

    @property
    def frames(self) -> int:
        return self._frames

    def tick(self, dt: float | None = None) -> None:
        # pyglet の schedule_interval は dt を渡す。手動駆動時は経過時間を測る
        now = time.perf_counter()
        if dt is None:
            dt = now - self._last_time
        self._last_time = now
        self._frames += 1
        for t in self._tickables:
            t.tick(dt)


__all__ = ["FrameClock"]
