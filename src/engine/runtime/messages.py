"""
どこで: `engine.runtime.messages`
何を: ミューテータ ⇄ レンダラ間メッセージ（Pause/Done/Continue）の型。
なぜ: キュー上を流れる値の型を固定し、プロセス間でもピクル可能な小さな値として扱うため。

    mutator → renderer: {"type": "Pause", "commands": [...], "resume_metadata": {...}}
                        {"type": "Done", "commands": [...]}
    renderer → mutator: {"type": "Continue"}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Mapping, Union

from .command import Command

# 続きの tick を送るときの再開メタデータ（受信側は確認を待たずに自動で進めてよい）
AUTOSKIP: Mapping[str, Any] = {"autoskip": True}


@dataclass(frozen=True, slots=True)
class PauseMessage:
    type: ClassVar[str] = "Pause"

    commands: tuple[Command, ...] = ()
    resume_metadata: Mapping[str, Any] | None = None

    @property
    def autoskip(self) -> bool:
        return bool(self.resume_metadata and self.resume_metadata.get("autoskip"))

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "commands": [c.to_dict() for c in self.commands],
            "resume_metadata": dict(self.resume_metadata) if self.resume_metadata else None,
        }


@dataclass(frozen=True, slots=True)
class DoneMessage:
    type: ClassVar[str] = "Done"

    commands: tuple[Command, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "commands": [c.to_dict() for c in self.commands]}


@dataclass(frozen=True, slots=True)
class ContinueMessage:
    type: ClassVar[str] = "Continue"

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type}


OutboundMessage = Union[PauseMessage, DoneMessage]


def message_from_dict(data: Mapping[str, Any]) -> PauseMessage | DoneMessage | ContinueMessage:
    kind = data.get("type")
    commands = tuple(Command.from_dict(c) for c in data.get("commands") or ())
    if kind == PauseMessage.type:
        return PauseMessage(commands, data.get("resume_metadata"))
    if kind == DoneMessage.type:
        return DoneMessage(commands)
    if kind == ContinueMessage.type:
        return ContinueMessage()
    raise ValueError(f"unknown message type: {kind!r}")


__all__ = [
    "AUTOSKIP",
    "PauseMessage",
    "DoneMessage",
    "ContinueMessage",
    "OutboundMessage",
    "message_from_dict",
]
