"""
どこで: `engine.render` サブパッケージ。
何を: 描画バックエンドの契約（RenderBackend）と実装（MemoryBackend/LineBackend）、
      ノード輪郭の組み立て（outline）、GPU 転送・描画（LineMesh/Shader/LineRenderer）。
なぜ: シーングラフの鏡像とピクセル化を分離し、GPU 資源の管理を局所化するため。

`renderer`/`shader` は moderngl/pyglet を要するため、ここでは再エクスポートしない。
"""

from .backend import MemoryBackend, MemoryHandle, RenderBackend
from .line_backend import LineBackend
from .types import Layer

__all__ = ["RenderBackend", "MemoryBackend", "MemoryHandle", "LineBackend", "Layer"]
