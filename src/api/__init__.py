"""
どこで: `api` 入口（高レベル公開 API）。
何を: アルゴリズム記述に必要な型（ノード種別・表示ステート・色・タスク契約・ElementArray）と
      実行器（`Player`, `run`）を再輸出する。
なぜ: 利用者が単一名前空間からアルゴリズムの記述→実行→履歴の巻き戻しまで完結できるようにするため。

Usage:
    from api import Color, LetterTile, run

    def algorithm(surface):
        tile = LetterTile(surface.registry, {"text": "A"})
        yield {"step": "one tile"}
        tile.set({"fill": [Color.RED, Color.BLUE]})
        yield {"step": "two ticks of color"}

    run(algorithm)
"""

from engine.runtime.surface import MutatorSurface
from engine.runtime.task import AlgorithmTask, GeneratorTask, StepTask
from scene import states
from scene.box import Box
from scene.group import NodeGroup
from scene.kinds import Arrow, Circle, LetterTile, Line, Rectangle
from scene.node import Node, set_all
from util.color import Color

from .array import ElementArray
from .player import Player
from .runner import run

__all__ = [
    # アルゴリズム記述
    "AlgorithmTask",
    "GeneratorTask",
    "StepTask",
    "MutatorSurface",
    "ElementArray",
    # シーン
    "Node",
    "NodeGroup",
    "Rectangle",
    "LetterTile",
    "Circle",
    "Line",
    "Arrow",
    "Box",
    "Color",
    "states",
    "set_all",
    # 実行
    "Player",
    "run",
]

__version__ = "2026.10"
