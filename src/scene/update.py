"""
どこで: `scene.update`
何を: ノードへの書き込み要求を構造化した `UpdateRequest`（通常プロパティ + 予約操作）。
なぜ: `parent`/`state`/`states`/`shape` の予約キーを任意プロパティと混在させたまま扱うと、
      適用順や送信可否の判断が各所に散るため。`Node.set` の手前で 1 度だけ分解・検証する。

適用順（`Node.set`）:
1) `add_states`（ステート定義の追加。変更には数えない）
2) `reparent_to`（旧親から外して新親へ。1 変更）
3) `apply_state`（ステートのプロパティを書き込む。1 変更）
4) `apply_shape`（種別ごとのアダプタが具体プロパティを書き込む。1 変更）
5) `plain`（挿入順。値が変わったものだけ変更に数える）
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Mapping

from .states import StateDef, coerce_states

if TYPE_CHECKING:
    from .node import Node

RESERVED_KEYS = frozenset({"parent", "state", "states", "shape"})


@dataclass
class UpdateRequest:
    """`Node.set` に渡す構造化された更新要求。"""

    plain: dict[str, Any] = field(default_factory=dict)
    reparent_to: "Node | None" = None
    apply_state: str | list[str] | None = None
    apply_shape: Any = None
    add_states: tuple[StateDef, ...] = ()

    @classmethod
    def from_mapping(cls, props: Mapping[str, Any] | None) -> "UpdateRequest":
        """プロパティ辞書を分解・検証して UpdateRequest を作る。"""
        if props is None:
            return cls()
        if isinstance(props, UpdateRequest):
            return props
        if not isinstance(props, Mapping):
            raise TypeError(f"properties must be a mapping, got {type(props)!r}")
        from .node import Node  # 循環 import 回避のため局所 import

        request = cls()
        for key, value in props.items():
            if key == "parent":
                if not isinstance(value, Node):
                    raise TypeError(f"'parent' must be a Node, got {value!r}")
                request.reparent_to = value
            elif key == "state":
                request.apply_state = _validate_state_names(value)
            elif key == "states":
                request.add_states = coerce_states(value)
            elif key == "shape":
                if value is None:
                    raise TypeError("'shape' must not be None")
                request.apply_shape = value
            else:
                request.plain[str(key)] = value
        return request

    def is_empty(self) -> bool:
        return (
            not self.plain
            and self.reparent_to is None
            and self.apply_state is None
            and self.apply_shape is None
            and not self.add_states
        )

    def transmissible(self) -> dict[str, Any]:
        """送信対象のプロパティ（通常プロパティ + 親 id）を返す。"""
        payload = dict(self.plain)
        if self.reparent_to is not None:
            payload["parent"] = self.reparent_to.id
        return payload


def _validate_state_names(value: Any) -> str | list[str]:
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return list(value)
    raise TypeError(f"'state' must be a state name or a list of names, got {value!r}")


__all__ = ["UpdateRequest", "RESERVED_KEYS"]
