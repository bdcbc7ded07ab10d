"""
どこで: `engine.core.render_window`
何を: pyglet Window の薄いラッパ（MSAA・背景クリア・描画/キー入力コールバック登録）。
なぜ: 実行系やレンダラから GUI 依存を切り離し、最小インターフェイスで扱うため。

使用例:
    win = RenderWindow(900, 556, bg_color=(1, 1, 1, 1))
    win.add_draw_callback(renderer.draw)
    win.add_key_callback(on_key)
    pyglet.app.run()
"""

from __future__ import annotations

import logging
from typing import Callable

import pyglet
from pyglet.gl import Config, glClearColor

logger = logging.getLogger(__name__)


class RenderWindow(pyglet.window.Window):
    def __init__(
        self,
        width: int,
        height: int,
        *,
        bg_color: tuple[float, float, float, float] = (1.0, 1.0, 1.0, 1.0),
        caption: str = "algoscene",
    ):
        """ウィンドウを生成する。

        引数:
            width: ウィンドウ幅（ピクセル）。
            height: ウィンドウ高さ（ピクセル）。
            bg_color: 背景色 RGBA（0.0〜1.0）。
            caption: タイトル。
        """
        config = Config(double_buffer=True, sample_buffers=1, samples=4, vsync=True)
        super().__init__(width=width, height=height, caption=caption, config=config)
        self._bg_color = bg_color
        self._draw_callbacks: list[Callable[[], None]] = []
        self._key_callbacks: list[Callable[[int, int], bool | None]] = []

    def add_draw_callback(self, func: Callable[[], None]) -> None:
        """`on_draw` 中に登録順で呼ぶ描画関数を追加する。"""
        self._draw_callbacks.append(func)

    def add_key_callback(self, func: Callable[[int, int], bool | None]) -> None:
        """キー押下時に `(symbol, modifiers)` で呼ぶ関数を追加する。True を返すと以降を打ち切る。"""
        self._key_callbacks.append(func)

    def on_draw(self):  # pyglet 既定のイベント名
        r, g, b, a = self._bg_color
        glClearColor(r, g, b, a)
        self.clear()
        for cb in self._draw_callbacks:
            cb()

    def on_key_press(self, symbol, modifiers):  # pyglet 既定のイベント名
        for cb in self._key_callbacks:
            if cb(symbol, modifiers):
                return pyglet.event.EVENT_HANDLED
        return super().on_key_press(symbol, modifiers)

    def set_background_color(self, rgba: tuple[float, float, float, float]) -> None:
        """背景色 RGBA(0–1) を更新する。次フレームから反映。"""
        r, g, b, a = rgba
        self._bg_color = (float(r), float(g), float(b), float(a))


__all__ = ["RenderWindow"]
