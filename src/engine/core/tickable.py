"""
どこで: `engine.core.tickable`
何を: 1 フレーム更新 `tick(dt)` を持つ `Tickable` Protocol。
なぜ: メッセージ受信/自動再生/描画など、フレーム駆動の部品を FrameClock から一様に呼ぶため。
"""

from typing import Protocol


class Tickable(Protocol):
    """フレームごとに呼ばれる部品。"""

    def tick(self, dt: float) -> None:
        """`dt` 秒ぶん処理を進める。"""
