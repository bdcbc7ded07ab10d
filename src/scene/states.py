"""
どこで: `scene.states`
何を: 名前付き表示ステート（プロパティ部分集合）の定義と、組み込みステート表。
なぜ: 「通常/薄色/6 色」の見た目をノード種別ごとに差し替え可能な形で持ち、
      ステート名の配列を「プロパティ → 値の系列」へ展開する処理を 1 箇所にまとめるため。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Sequence

from util.color import Color

from .errors import UnregisteredStateError

NORMAL = "ks_normal"
FADED = "ks_faded"
BLUE = "ks_blue"
GRAY = "ks_gray"
ORANGE = "ks_orange"
RED = "ks_red"
GREEN = "ks_green"
CYAN = "ks_cyan"


@dataclass(frozen=True)
class StateDef:
    """表示ステート 1 件（名前とプロパティ部分集合）。"""

    name: str
    properties: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ValueError(f"state name must be a non-empty str, got {self.name!r}")
        # 登録後に呼び出し側の dict を書き換えられても影響しないよう複製して凍結
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))

    @classmethod
    def coerce(cls, obj: Any) -> "StateDef":
        """StateDef / {"name", "properties"} / (name, properties) を StateDef に揃える。"""
        if isinstance(obj, StateDef):
            return obj
        if isinstance(obj, Mapping):
            return cls(obj["name"], obj.get("properties", {}))
        if isinstance(obj, tuple) and len(obj) == 2:
            return cls(obj[0], obj[1])
        raise TypeError(f"cannot interpret {obj!r} as a state definition")


def _colored(name: str, color: tuple[float, float, float, float]) -> StateDef:
    return StateDef(name, {"fill": color, "stroke": color, "pen": Color.WHITE})


DEFAULT_STATES: tuple[StateDef, ...] = (
    StateDef(NORMAL, {"fill": Color.WHITE, "stroke": Color.BLUE, "pen": Color.BLUE}),
    StateDef(FADED, {"fill": Color.WHITE, "stroke": Color.GRAY, "pen": Color.GRAY}),
    _colored(BLUE, Color.BLUE),
    _colored(GRAY, Color.GRAY),
    _colored(ORANGE, Color.ORANGE),
    _colored(RED, Color.RED),
    _colored(GREEN, Color.GREEN),
    _colored(CYAN, Color.CYAN),
)

# 線は fill 色で描かれるため fill のみを持つステートで上書きする
LINE_STATES: tuple[StateDef, ...] = (
    StateDef(NORMAL, {"fill": Color.BLUE}),
    StateDef(BLUE, {"fill": Color.BLUE}),
    StateDef(GRAY, {"fill": Color.GRAY}),
    StateDef(FADED, {"fill": Color.GRAY}),
    StateDef(ORANGE, {"fill": Color.ORANGE}),
    StateDef(RED, {"fill": Color.RED}),
    StateDef(GREEN, {"fill": Color.GREEN}),
    StateDef(CYAN, {"fill": Color.CYAN}),
)


def coerce_states(states: Iterable[Any]) -> tuple[StateDef, ...]:
    if isinstance(states, (str, bytes)) or isinstance(states, Mapping):
        raise TypeError("states must be an iterable of state definitions")
    return tuple(StateDef.coerce(s) for s in states)


def expand_state_sequence(
    table: Mapping[str, StateDef],
    names: Sequence[str],
    *,
    owner: object = None,
) -> dict[str, list[Any]]:
    """ステート名の配列を `{prop: [v1, v2, ...]}` へ展開する。

    各ステートが 1 tick 分の値を寄与する。例えば 3 つのステートがそれぞれ `fill` を持てば
    `{"fill": [c1, c2, c3]}` となる。未登録名が 1 つでもあれば `UnregisteredStateError`。
    """
    properties: dict[str, list[Any]] = {}
    for name in names:
        state = table.get(name)
        if state is None:
            raise UnregisteredStateError(
                f"attempt to apply unregistered state ({name!r}) to node {owner}"
            )
        for key, value in state.properties.items():
            properties.setdefault(key, []).append(value)
    return properties


__all__ = [
    "NORMAL",
    "FADED",
    "BLUE",
    "GRAY",
    "ORANGE",
    "RED",
    "GREEN",
    "CYAN",
    "StateDef",
    "DEFAULT_STATES",
    "LINE_STATES",
    "coerce_states",
    "expand_state_sequence",
]
