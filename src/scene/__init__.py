"""
scene パッケージ: ミューテータ/レンダラの双方で使うシーングラフ（ノード・グループ・ステート・registry）。
"""

from __future__ import annotations

from .box import Box
from .errors import (
    DesyncError,
    HistoryModeError,
    NodeDestroyedError,
    ProtocolError,
    RootError,
    SceneError,
    UnknownNodeError,
    UnknownNodeKindError,
    UnrecognizedShapeError,
    ParentCycleError,
    UnregisteredStateError,
    UsageError,
)
from .group import NodeGroup
from .kinds import NODE_KINDS, Arrow, Circle, LetterTile, Line, Rectangle, create_node, node_class
from .node import Node, set_all
from .registry import FIRST_ID, MutationSink, NodeRegistry
from .states import StateDef
from .update import UpdateRequest

__all__ = [
    "Box",
    "Node",
    "NodeGroup",
    "NodeRegistry",
    "MutationSink",
    "FIRST_ID",
    "UpdateRequest",
    "StateDef",
    "Rectangle",
    "LetterTile",
    "Circle",
    "Line",
    "Arrow",
    "NODE_KINDS",
    "create_node",
    "node_class",
    "set_all",
    "SceneError",
    "UsageError",
    "NodeDestroyedError",
    "ParentCycleError",
    "UnregisteredStateError",
    "HistoryModeError",
    "UnrecognizedShapeError",
    "UnknownNodeError",
    "UnknownNodeKindError",
    "RootError",
    "ProtocolError",
    "DesyncError",
]
