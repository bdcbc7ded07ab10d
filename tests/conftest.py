"""共通フィクスチャ。

- 乱数シード固定
- 設定（環境変数由来）の既定化
- ミューテータ側/レンダラ側の最小構成
"""

from __future__ import annotations

from typing import Iterator

import numpy as np
import pytest

from common import settings
from engine.core.geometry import Geometry
from engine.render.backend import MemoryBackend
from engine.runtime.command_log import CommandLog
from engine.runtime.surface import MutatorSurface, RendererSurface
from scene.kinds import Rectangle
from scene.registry import NodeRegistry

BOUNDS = (0.0, 0.0, 200.0, 100.0)


@pytest.fixture(scope="session", autouse=True)
def np_seed() -> None:
    """NumPy の乱数を固定。"""
    np.random.seed(12345)


@pytest.fixture(autouse=True)
def default_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """ALGO_* 環境変数の影響を受けないよう既定値で読み直す。"""
    for name in ("ALGO_VALIDATE", "ALGO_DEBUG_COMMANDS", "ALGO_CIRCLE_SEGMENTS", "ALGO_MAX_MESSAGES_PER_TICK"):
        monkeypatch.delenv(name, raising=False)
    settings.reload_from_env()
    yield
    settings.reload_from_env()


@pytest.fixture()
def command_log() -> CommandLog:
    return CommandLog()


@pytest.fixture()
def registry(command_log: CommandLog) -> NodeRegistry:
    """ミューテータ側 registry（ルート付き）。ルート生成分のコマンドは捨ててある。"""
    reg = NodeRegistry(command_log, mutator=True)
    Rectangle(reg, {"root": True, "visible": False, "x": 0, "y": 0, "w": 200, "h": 100, "strokeWidth": 0})
    command_log.clear()
    return reg


@pytest.fixture()
def plain_registry() -> NodeRegistry:
    """変更通知先を持たない registry（ルート付き）。"""
    reg = NodeRegistry()
    Rectangle(reg, {"root": True, "x": 0, "y": 0, "w": 200, "h": 100})
    return reg


@pytest.fixture()
def mutator_surface() -> MutatorSurface:
    return MutatorSurface(BOUNDS)


@pytest.fixture()
def memory_backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture()
def renderer_surface(memory_backend: MemoryBackend) -> RendererSurface:
    return RendererSurface(memory_backend, validate=True)


@pytest.fixture()
def geom_two_lines() -> Geometry:
    a = np.array([[0.0, 0.0], [1.0, 0.0]], dtype=np.float32)
    b = np.array([[0.0, 1.0], [1.0, 1.0], [2.0, 1.0]], dtype=np.float32)
    return Geometry.from_lines([a, b])
