"""
どこで: `engine.runtime.receiver`
何を: ミューテータの結果キューから Pause/Done/例外を取り出し、RendererSurface へ適用して
      FrameHistory へ記録する `MessageReceiver`（Tickable）。
なぜ: メインスレッドの負荷を一定に保ちつつ、到着順どおりにバッチを適用するため。

- 1 tick で処理するメッセージ数は上限付き（既定は設定 `MAX_MESSAGES_PER_TICK`）。
- 例外オブジェクトはそのまま再送出する（`MutatorTaskError`）。
"""

from __future__ import annotations

import logging
from queue import Empty
from typing import Any, Callable, Mapping

from common import settings
from scene.errors import ProtocolError

from ..core.tickable import Tickable
from .history import FrameHistory
from .messages import DoneMessage, PauseMessage
from .surface import RendererSurface

logger = logging.getLogger(__name__)


class MessageReceiver(Tickable):
    """結果キューを監視して RendererSurface に流し込むだけの責務。"""

    def __init__(
        self,
        result_q,
        surface: RendererSurface,
        history: FrameHistory | None = None,
        *,
        max_messages_per_tick: int | None = None,
        on_pause: Callable[[Mapping[str, Any]], None] | None = None,
        on_done: Callable[[], None] | None = None,
    ):
        self._q = result_q
        self._surface = surface
        self._history = history if history is not None else FrameHistory()
        self._max = max_messages_per_tick or settings.get().MAX_MESSAGES_PER_TICK
        self._on_pause = on_pause
        self._on_done = on_done
        self._done = False
        self._received = 0

    @property
    def history(self) -> FrameHistory:
        return self._history

    @property
    def done(self) -> bool:
        return self._done

    @property
    def received(self) -> int:
        return self._received

    # -------- Tickable interface --------
    def tick(self, dt: float) -> None:
        processed = 0
        while processed < self._max:
            try:
                message = self._q.get_nowait()
            except Empty:
                break
            processed += 1
            # 例外は親に投げ直す
            if isinstance(message, BaseException):
                raise message
            self.handle(message)

    def handle(self, message: PauseMessage | DoneMessage) -> None:
        """メッセージ 1 件を適用・記録し、コールバックを呼ぶ。"""
        if self._done:
            raise ProtocolError(f"{message.type} message received after Done")
        if isinstance(message, PauseMessage):
            self._surface.apply(message.commands)
            self._history.record(message)
            self._received += 1
            if self._on_pause is not None:
                self._on_pause(dict(message.resume_metadata or {}))
        elif isinstance(message, DoneMessage):
            self._surface.apply(message.commands)
            self._history.record(message)
            self._received += 1
            self._done = True
            logger.debug("algorithm finished after %d frame(s)", len(self._history))
            if self._on_done is not None:
                self._on_done()
        else:
            raise ProtocolError(f"unexpected message from mutator: {message!r}")


__all__ = ["MessageReceiver"]
