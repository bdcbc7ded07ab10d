"""
どこで: `api.player`
何を: 1 本のアルゴリズム実行を駆動する `Player`（開始・1 ステップ進める・自動再生・履歴モード）。
なぜ: MutatorHost / MessageReceiver / RendererSurface / FrameHistory の結線と、
      「確認（Continue）は 1 度に 1 つだけ」という手順をウィンドウの有無に関係なく一箇所に閉じ込めるため。

状態遷移（ライブ）:
- `start()` でアルゴリズムを最初の中断点まで進める（Pause か Done が届く）。
- Pause を受け取るまで `step()` は何もしない（Continue は未応答のものを重ねない）。
- resume metadata に `autoskip` があれば（系列値の排出 tick など）、次の `tick()` で自動的に進める。

履歴モード:
- `enter_history_mode()` は 2 つ目の RendererSurface と HistoryPlayer を用意し、記録済みフレームを
  最新位置まで再生する。`seek()` で任意フレームへ移動、`exit_history_mode()` で破棄してライブへ戻る。
- 履歴モード中は `step()` できない（`HistoryModeError`）。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

from engine.core.tickable import Tickable
from engine.render.backend import MemoryBackend, RenderBackend
from engine.runtime.history import FrameHistory, HistoryPlayer
from engine.runtime.receiver import MessageReceiver
from engine.runtime.surface import RendererSurface
from engine.runtime.worker import AlgorithmFactory, MutatorHost
from scene.errors import HistoryModeError, ProtocolError

logger = logging.getLogger(__name__)


class Player(Tickable):
    """アルゴリズム 1 本分の再生器。

    Parameters
    ----------
    algorithm_factory : Callable[[MutatorSurface], Any]
        ミューテータ側で呼ばれ、ジェネレータ/AlgorithmTask/ステップ関数列を返す。
    bounds : tuple | None
        描画面の矩形 (x, y, w, h)。None なら設定ファイルか既定値。
    workers : int
        0 でインライン実行、1 以上で別プロセス実行。
    backend / history_backend : RenderBackend | None
        ライブ/履歴それぞれの描画バックエンド。None なら MemoryBackend。
    autoplay : bool
        True なら Pause を受け取るたびに自動で Continue する。
    """

    def __init__(
        self,
        algorithm_factory: AlgorithmFactory,
        *,
        bounds: tuple[float, float, float, float] | None = None,
        workers: int = 0,
        backend: RenderBackend | None = None,
        history_backend: RenderBackend | None = None,
        autoplay: bool = False,
        validate: bool | None = None,
        max_messages_per_tick: int | None = None,
    ) -> None:
        self._host = MutatorHost(algorithm_factory, bounds=bounds, workers=workers)
        self._backend: RenderBackend = backend if backend is not None else MemoryBackend()
        self._history_backend = history_backend
        self._validate = validate
        self._surface = RendererSurface(self._backend, validate=validate)
        self._history = FrameHistory()
        self._receiver = MessageReceiver(
            self._host.result_q,
            self._surface,
            self._history,
            max_messages_per_tick=max_messages_per_tick,
            on_pause=self._on_pause,
            on_done=self._on_done,
        )
        self.autoplay = autoplay
        self._metadata: dict[str, Any] = {}
        self._started = False
        self._awaiting = False
        self._history_surface: RendererSurface | None = None
        self._history_player: HistoryPlayer | None = None

    # ---- 参照 ----
    @property
    def bounds(self) -> tuple[float, float, float, float]:
        return self._host.bounds

    @property
    def surface(self) -> RendererSurface:
        """ライブ側の RendererSurface。"""
        return self._surface

    @property
    def backend(self) -> RenderBackend:
        return self._backend

    @property
    def active_surface(self) -> RendererSurface:
        """いま表示すべき Surface（履歴モード中は履歴側）。"""
        return self._history_surface if self._history_surface is not None else self._surface

    @property
    def active_backend(self) -> RenderBackend:
        return self.active_surface.backend

    @property
    def history(self) -> FrameHistory:
        return self._history

    @property
    def metadata(self) -> Mapping[str, Any]:
        """直近の Pause で受け取った resume metadata。"""
        return dict(self._metadata)

    @property
    def in_history_mode(self) -> bool:
        return self._history_player is not None

    @property
    def current_frame(self) -> int | None:
        return self._history_player.current_frame if self._history_player is not None else None

    def is_done(self) -> bool:
        return self._receiver.done

    # ---- ライブ再生 ----
    def start(self) -> None:
        if self._started:
            raise ProtocolError("player already started")
        self._started = True
        self._awaiting = True
        self._host.start()

    def step(self) -> bool:
        """Continue を 1 つ送る。送れなかった（応答待ち/完了済み）なら False。"""
        if self.in_history_mode:
            raise HistoryModeError("cannot step the algorithm while in history mode")
        if not self._started:
            self.start()
            return True
        if self._awaiting or self.is_done():
            return False
        self._awaiting = True
        self._host.send_continue()
        return True

    def tick(self, dt: float) -> None:
        self._receiver.tick(dt)
        if self.in_history_mode or self._awaiting or self.is_done() or not self._started:
            return
        if self.autoplay or self._metadata.get("autoskip"):
            self.step()

    def play_all(self, max_ticks: int = 100_000) -> int:
        """完了まで tick と step を繰り返す（ウィンドウ無しの実行/テスト用）。戻り値は受信数。"""
        if not self._started:
            self.start()
        for _ in range(max_ticks):
            self._receiver.tick(0.0)
            if self.is_done():
                return self._receiver.received
            if not self._awaiting:
                self.step()
        raise ProtocolError(f"algorithm did not finish within {max_ticks} ticks")

    def close(self) -> None:
        self._host.close()

    def _on_pause(self, metadata: Mapping[str, Any]) -> None:
        self._awaiting = False
        # 排出 tick の metadata は直前の説明を上書きしない
        if metadata.get("autoskip"):
            self._metadata = {**self._metadata, "autoskip": True}
        else:
            self._metadata = dict(metadata)
        logger.debug("pause received (frames=%d): %s", len(self._history), self._metadata)

    def _on_done(self) -> None:
        self._awaiting = False
        self._metadata.pop("autoskip", None)
        logger.info("algorithm finished: %d frame(s) recorded", len(self._history))

    # ---- 履歴モード ----
    def enter_history_mode(self) -> HistoryPlayer:
        if self.in_history_mode:
            raise HistoryModeError("already in history mode")
        backend = self._history_backend if self._history_backend is not None else MemoryBackend()
        self._history_surface = RendererSurface(backend, validate=self._validate)
        self._history_player = HistoryPlayer(self._history_surface, self._history)
        self._history_player.seek(len(self._history))
        logger.debug("entered history mode at frame %d", len(self._history))
        return self._history_player

    def seek(self, frame: int) -> None:
        if self._history_player is None:
            raise HistoryModeError("seek requires history mode")
        self._history_player.seek(frame)

    def step_history(self, delta: int) -> int:
        """履歴上を delta フレーム移動する（範囲外は端で止める）。移動後のフレームを返す。"""
        if self._history_player is None:
            raise HistoryModeError("history navigation requires history mode")
        current = self._history_player.current_frame or 0
        target = max(0, min(len(self._history), current + int(delta)))
        if target != current:
            self._history_player.seek(target)
        return target

    def exit_history_mode(self) -> None:
        if self._history_surface is None:
            raise HistoryModeError("not in history mode")
        self._history_surface.reset()
        self._history_surface = None
        self._history_player = None
        logger.debug("left history mode")

    def save_history(self, path: str | Path) -> None:
        self._history.save(path)


__all__ = ["Player"]
