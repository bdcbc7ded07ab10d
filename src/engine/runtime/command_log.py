"""
どこで: `engine.runtime.command_log`
何を: ミューテータ側の `MutationSink` 実装。ノード変更を Update/Destroy コマンドへ変換して溜める。
なぜ: 中断点までに起きた変更を「ノードごとに 1 つの Update」へ合流させた最小で自己整合的な
      バッチとして送るため。

規則:
- 同じ id の保留中 Update があればペイロードへ後勝ちでマージし、無ければ末尾に追加する。
  ただし、より後ろで生成された親への付け替えは合流させず、新しい Update として末尾に追加する。
- `state`/`states`/`shape` は送らない（効果は具体プロパティの書き込みとして既に記録済み）。
- `parent` はノード参照ではなく id として送る。
- 空の系列値（`[]`）は送らない。
- 送るものが何も残らない Update は追加しない。
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from common import settings

from .command import Command

if TYPE_CHECKING:
    from scene.node import Node
    from scene.update import UpdateRequest

logger = logging.getLogger(__name__)


class CommandLog:
    """保留中コマンドのバッファ。"""

    def __init__(self) -> None:
        self._commands: list[Command] = []
        # target_id -> self._commands 内の保留中 Update の位置
        self._update_index: dict[int, int] = {}

    # ---- MutationSink ----
    def record_update(self, node: "Node", request: "UpdateRequest") -> None:
        payload = {
            key: value
            for key, value in request.transmissible().items()
            if not (isinstance(value, list) and not value)
        }
        index = self._update_index.get(node.id)
        if not payload and index is None:
            return
        parent_id = payload.get("parent")
        if index is not None and parent_id is not None:
            # 親の Update がこのノードの Update より後ろにあると、レンダラ側で親 id を解決できない
            parent_index = self._update_index.get(parent_id)
            if parent_index is not None and parent_index > index:
                index = None
        if index is not None:
            merged = dict(self._commands[index].payload)
            merged.update(payload)
            self._commands[index] = Command.update(node.id, merged)
        else:
            self._update_index[node.id] = len(self._commands)
            self._commands.append(Command.update(node.id, payload))
        if settings.get().DEBUG_COMMANDS:
            logger.debug("update node=%s payload=%r", node.id, payload)

    def record_destroy(self, node: "Node") -> None:
        # 破棄後に同じ id の Update は来ない（id は再利用されない）
        self._update_index.pop(node.id, None)
        self._commands.append(Command.destroy(node.id))
        if settings.get().DEBUG_COMMANDS:
            logger.debug("destroy node=%s", node.id)

    # ---- バッチ ----
    def flush(self) -> list[Command]:
        """現在のバッチを返して空にする。"""
        batch, self._commands = self._commands, []
        self._update_index = {}
        logger.debug("flushed %d command(s)", len(batch))
        return batch

    def clear(self) -> None:
        self._commands = []
        self._update_index = {}

    @property
    def pending(self) -> tuple[Command, ...]:
        return tuple(self._commands)

    def __len__(self) -> int:
        return len(self._commands)


__all__ = ["CommandLog"]
