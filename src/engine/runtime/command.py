"""
どこで: `engine.runtime.command`
何を: ノード差分コマンド `Command`（Update/Destroy）と、系列値ペイロードの tick 分解。
なぜ: 1 回の論理的な書き込み（例: fill を 3 段階で変える）を、ミューテータ側のアルゴリズム状態に
      触れずに独立送信できる離散 tick 列へ分解するため。

tick 分解（`split_tick`）:
- list 値は系列値。tick ごとに先頭要素を 1 つ消費する。
- スカラー値は毎 tick そのまま繰り返す。
- 消費し切った list はキーごと取り除く（最後に送った値が暗黙に残る）。
- まだ未消費の list が 1 つでも残っていれば remaining を返し、送信側は `more` を立てる。

    # 例: {"x": 5, "fill": [RED, BLUE]}
    #   tick0 = {"x": 5, "fill": RED}   remaining = {"x": 5, "fill": [BLUE]}  (more)
    #   tick1 = {"x": 5, "fill": BLUE}  remaining = None
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class CommandKind(str, Enum):
    UPDATE = "Update"
    DESTROY = "Destroy"


@dataclass(frozen=True, slots=True)
class Command:
    """1 ノードへの差分。Update のペイロードで親はノード参照ではなく id で持つ。"""

    kind: CommandKind
    target_id: int
    payload: Mapping[str, Any] = field(default_factory=dict)
    more: bool = False

    @classmethod
    def update(cls, target_id: int, payload: Mapping[str, Any], *, more: bool = False) -> "Command":
        return cls(CommandKind.UPDATE, int(target_id), dict(payload), bool(more))

    @classmethod
    def destroy(cls, target_id: int) -> "Command":
        return cls(CommandKind.DESTROY, int(target_id), {})

    @property
    def is_update(self) -> bool:
        return self.kind is CommandKind.UPDATE

    @property
    def has_sequences(self) -> bool:
        return any(isinstance(v, list) for v in self.payload.values())

    def to_dict(self) -> dict[str, Any]:
        """転送/保存用の辞書表現（`more` は真のときのみ含める）。"""
        data: dict[str, Any] = {
            "kind": self.kind.value,
            "id": self.target_id,
            "payload": dict(self.payload),
        }
        if self.more:
            data["more"] = True
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Command":
        try:
            kind = CommandKind(data["kind"])
            target_id = int(data["id"])
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"malformed command: {data!r}") from e
        return cls(kind, target_id, dict(data.get("payload") or {}), bool(data.get("more", False)))


def split_tick(payload: Mapping[str, Any]) -> tuple[dict[str, Any], dict[str, Any] | None]:
    """ペイロードを「この tick で送る値」と「次 tick 以降の残り」に分ける。

    Returns
    -------
    tuple[dict, dict | None]
        `(tick_payload, remaining)`。未消費の系列値が無ければ remaining は None。
    """
    tick: dict[str, Any] = {}
    remaining: dict[str, Any] = {}
    more = False
    for key, value in payload.items():
        if isinstance(value, list):
            if not value:
                continue
            tick[key] = value[0]
            tail = value[1:]
            if tail:
                remaining[key] = tail
                more = True
        else:
            tick[key] = value
            remaining[key] = value
    return tick, (remaining if more else None)


def collapse_sequences(payload: Mapping[str, Any]) -> dict[str, Any]:
    """系列値を最終要素へ畳む（空の系列はキーごと落とす）。"""
    out: dict[str, Any] = {}
    for key, value in payload.items():
        if isinstance(value, list):
            if value:
                out[key] = value[-1]
        else:
            out[key] = value
    return out


__all__ = ["CommandKind", "Command", "split_tick", "collapse_sequences"]
