"""
どこで: `engine.runtime.protocol`
何を: ミューテータ側の tick ハンドシェイク `TickProtocol`（Pause → Continue → 続き tick or 再開 → Done）。
なぜ: 中断点で作られた合流済みバッチを、レンダラの確認（Continue）ごとに 1 tick ずつ流し切り、
      流し切ってから初めてアルゴリズムを再開するという順序を 1 箇所で保証するため。

状態遷移:
    IDLE --start()--> RUNNING --中断点--> PAUSED --on_continue()--+--> DRAINING --> PAUSED（続き tick 送信）
                         ^                                         |
                         +---------------- 続き tick なし ----------+
    RUNNING --アルゴリズム終了--> DONE（残りを Done で送信。以降の on_continue() は ProtocolError）

- 中断点での最初の tick はバッチの全コマンド（Destroy を含む）を運ぶ。
- 続き tick は `more` の立った Update の残りのみを運び、再開メタデータは `{"autoskip": True}`。
- Done バッチの系列値は最終要素へ畳む。
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Mapping

from common import settings
from scene.errors import ProtocolError

from .command import Command, collapse_sequences, split_tick
from .command_log import CommandLog
from .messages import AUTOSKIP, DoneMessage, OutboundMessage, PauseMessage
from .task import AlgorithmTask

logger = logging.getLogger(__name__)


class ProtocolState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    DRAINING = "draining"
    DONE = "done"


def _first_ticks(commands: list[Command]) -> tuple[list[Command], list[Command]]:
    """`(今回送るコマンド, 次 tick 以降に残る Update)` を返す。Destroy は今回のみ。

    同じバッチで破棄されるノードの残り tick は持ち越さない（破棄後に再生成されてしまうため）。
    """
    destroyed = {c.target_id for c in commands if not c.is_update}
    out: list[Command] = []
    pending: list[Command] = []
    for command in commands:
        if not command.is_update:
            out.append(command)
            continue
        tick, remaining = split_tick(command.payload)
        if command.target_id in destroyed:
            remaining = None
        out.append(Command.update(command.target_id, tick, more=remaining is not None))
        if remaining is not None:
            pending.append(Command.update(command.target_id, remaining, more=True))
    return out, pending


class TickProtocol:
    """ミューテータ側のハンドシェイク状態機械。

    Parameters
    ----------
    task : AlgorithmTask
        再開対象のアルゴリズム。
    command_log : CommandLog
        ミューテータ側 registry の変更通知先。
    send : Callable[[OutboundMessage], None]
        レンダラへメッセージを送る関数（キューへの put など）。
    """

    def __init__(
        self,
        task: AlgorithmTask,
        command_log: CommandLog,
        send: Callable[[OutboundMessage], None],
    ) -> None:
        self._task = task
        self._log = command_log
        self._send = send
        self._state = ProtocolState.IDLE
        self._pending: list[Command] = []
        self._pauses = 0

    @property
    def state(self) -> ProtocolState:
        return self._state

    @property
    def has_pending_ticks(self) -> bool:
        return bool(self._pending)

    @property
    def pause_count(self) -> int:
        return self._pauses

    def start(self) -> None:
        """アルゴリズムを最初の中断点（または終了）まで進める。"""
        if self._state is not ProtocolState.IDLE:
            raise ProtocolError(f"protocol already started (state={self._state.value})")
        self._resume()

    def on_continue(self) -> None:
        """レンダラの確認を受け、続き tick を送るかアルゴリズムを再開する。"""
        if self._state is ProtocolState.DONE:
            raise ProtocolError("continue received after the algorithm finished")
        if self._state is not ProtocolState.PAUSED:
            raise ProtocolError(f"continue received in state {self._state.value}")
        if self._pending:
            self._drain()
        else:
            self._resume()

    # ---- 内部 ----
    def _resume(self) -> None:
        self._state = ProtocolState.RUNNING
        metadata = self._task.resume()
        if metadata is None:
            self._finish()
        else:
            self._pause(metadata)

    def _pause(self, metadata: Mapping[str, Any]) -> None:
        out, self._pending = _first_ticks(self._log.flush())
        self._state = ProtocolState.PAUSED
        self._pauses += 1
        logger.debug(
            "pause #%d: %d command(s), %d with more ticks", self._pauses, len(out), len(self._pending)
        )
        self._emit(PauseMessage(tuple(out), dict(metadata)))

    def _drain(self) -> None:
        self._state = ProtocolState.DRAINING
        out, self._pending = _first_ticks(self._pending)
        self._state = ProtocolState.PAUSED
        logger.debug("drain tick: %d command(s), %d with more ticks", len(out), len(self._pending))
        self._emit(PauseMessage(tuple(out), dict(AUTOSKIP)))

    def _finish(self) -> None:
        batch = [
            Command.update(c.target_id, collapse_sequences(c.payload)) if c.is_update else c
            for c in self._log.flush()
        ]
        self._pending = []
        self._state = ProtocolState.DONE
        logger.debug("done: %d command(s)", len(batch))
        self._emit(DoneMessage(tuple(batch)))

    def _emit(self, message: OutboundMessage) -> None:
        if settings.get().DEBUG_COMMANDS:
            logger.debug("send %s %r", message.type, [c.to_dict() for c in message.commands])
        self._send(message)


__all__ = ["ProtocolState", "TickProtocol"]
