"""
どこで: `api.runner`（ウィンドウ付き実行ランナー）。
何を: アルゴリズムを Player で駆動し、pyglet のウィンドウと ModernGL のラインレンダラで可視化する `run()`。
なぜ: 利用者が「MutatorSurface を受け取ってジェネレータを返す関数」を書くだけで、
      ステップ実行・自動再生・履歴の巻き戻しまで操作できるようにするため。

キー操作:
- Space: 1 ステップ進める（履歴モード中は無効）
- A: 自動再生の切替
- H: 履歴モードの切替
- ← / →: 履歴モード中に 1 フレーム戻る/進む（Shift で先頭/末尾へ）
- S: 記録済みフレームを JSON へ保存
- Esc: 終了

実行フロー（概要）:
1) 設定解決: 引数 > `configs/default.yaml`（`player`/`canvas`/`surface` 節）> 既定値。
2) ロギング: `logging:` 節を適用（ルートロガーが未設定の場合のみ basicConfig）。
3) Player（MutatorHost + MessageReceiver + RendererSurface + FrameHistory）を LineBackend で生成。
4) ウィンドウ/GL: `RenderWindow` と `moderngl.create_context()`、`LineRenderer`/`TextOverlay`。
5) フレーム駆動: `FrameClock([player])` を `pyglet.clock.schedule_interval` で回す。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

from common.logging import apply_logging_config
from engine.runtime.worker import AlgorithmFactory
from util.color import normalize_color
from util.utils import config_section, load_config

from .player import Player

logger = logging.getLogger(__name__)

DEFAULT_FPS = 30
DEFAULT_HISTORY_FILE = "algoscene_history.json"


def resolve_fps(requested: int | None, cfg: Mapping[str, Any] | None = None, *, default: int = DEFAULT_FPS) -> int:
    """FPS を解決して 1 以上の int を返す（引数 > 設定 `player.fps` > 既定）。"""
    if requested is not None:
        return max(1, int(requested))
    try:
        return max(1, int(config_section("player", cfg).get("fps", default)))
    except (TypeError, ValueError):
        return max(1, int(default))


def resolve_player_options(
    cfg: Mapping[str, Any] | None,
    *,
    autoplay: bool | None,
    workers: int | None,
) -> tuple[bool, int]:
    """自動再生とワーカー数を解決する（ワーカー数は 0 以上に丸める）。"""
    section = config_section("player", cfg)
    if autoplay is None:
        autoplay = bool(section.get("autoplay", False))
    if workers is None:
        try:
            workers = int(section.get("workers", 0))
        except (TypeError, ValueError):
            workers = 0
    return autoplay, max(0, workers)


def run(
    algorithm_factory: AlgorithmFactory,
    *,
    bounds: tuple[float, float, float, float] | None = None,
    fps: int | None = None,
    autoplay: bool | None = None,
    workers: int | None = None,
    background: Any = None,
    line_scale: float | None = None,
    history_file: str | Path = DEFAULT_HISTORY_FILE,
    init_only: bool = False,
) -> Player | None:
    """アルゴリズムをウィンドウで実行する。

    Parameters
    ----------
    algorithm_factory : Callable[[MutatorSurface], Any]
        ジェネレータ/AlgorithmTask/ステップ関数列を返すトップレベル関数（別プロセス実行時はピクル可能であること）。
    bounds : tuple | None
        描画面 (x, y, w, h)。ウィンドウの大きさも兼ねる。
    fps / autoplay / workers : 任意
        None なら設定ファイル（`player` 節）から解決。
    background : 色 | None
        背景色。None なら設定 `canvas.background_color` か白。
    line_scale : float | None
        線の太さの倍率。None なら設定 `canvas.line_thickness` か 1.0。
    init_only : bool
        True なら Player を組み立てて返すだけで、ウィンドウを開かない（検証用）。
    """
    cfg = load_config()
    apply_logging_config(cfg)
    fps = resolve_fps(fps, cfg)
    autoplay, workers = resolve_player_options(cfg, autoplay=autoplay, workers=workers)
    canvas = config_section("canvas", cfg)
    bg_rgba = normalize_color(background if background is not None else canvas.get("background_color", (1.0, 1.0, 1.0, 1.0)))
    if line_scale is None:
        line_scale = float(canvas.get("line_thickness", 1.0))

    from engine.render.line_backend import LineBackend

    player = Player(
        algorithm_factory,
        bounds=bounds,
        workers=workers,
        backend=LineBackend(),
        history_backend=LineBackend(),
        autoplay=autoplay,
    )
    if init_only:
        return player

    # 遅延 import（ヘッドレス環境でのウィンドウ生成を避ける）
    import moderngl
    import pyglet
    from pyglet.window import key

    from engine.core.frame_clock import FrameClock
    from engine.core.render_window import RenderWindow
    from engine.render.renderer import LineRenderer, TextOverlay

    x, y, w, h = player.bounds
    window = RenderWindow(max(1, int(round(w))), max(1, int(round(h))), bg_color=bg_rgba)
    ctx = moderngl.create_context()
    renderer = LineRenderer(ctx, player.bounds, player.active_backend, line_scale=line_scale)  # type: ignore[arg-type]
    overlay = TextOverlay(player.active_backend, player.bounds)  # type: ignore[arg-type]

    def _sync_backend() -> None:
        backend = player.active_backend
        renderer.backend = backend  # type: ignore[assignment]
        overlay.set_backend(backend)  # type: ignore[arg-type]

    def _refresh_caption() -> None:
        if player.in_history_mode:
            caption = f"algoscene [history {player.current_frame}/{len(player.history)}]"
        else:
            step = player.metadata.get("step")
            caption = f"algoscene - {step}" if step else "algoscene"
            if player.is_done():
                caption += " (done)"
        window.set_caption(caption)

    def _draw() -> None:
        renderer.draw()
        overlay.draw()

    window.add_draw_callback(_draw)

    def _on_key(symbol: int, modifiers: int) -> bool:
        if symbol == key.SPACE and not player.in_history_mode:
            player.step()
        elif symbol == key.A:
            player.autoplay = not player.autoplay
            logger.info("autoplay %s", "on" if player.autoplay else "off")
        elif symbol == key.H:
            if player.in_history_mode:
                player.exit_history_mode()
            else:
                player.enter_history_mode()
            _sync_backend()
        elif symbol in (key.LEFT, key.RIGHT) and player.in_history_mode:
            if modifiers & key.MOD_SHIFT:
                player.seek(0 if symbol == key.LEFT else len(player.history))
            else:
                player.step_history(-1 if symbol == key.LEFT else 1)
        elif symbol == key.S:
            player.save_history(history_file)
            logger.info("saved %d frame(s) to %s", len(player.history), history_file)
        else:
            return False
        _refresh_caption()
        return True

    window.add_key_callback(_on_key)

    clock = FrameClock([player])

    def _tick(dt: float) -> None:
        clock.tick(dt)
        _refresh_caption()

    @window.event
    def on_close():  # noqa: ANN202
        pyglet.clock.unschedule(_tick)
        player.close()
        overlay.release()
        renderer.release()
        pyglet.app.exit()

    player.start()
    pyglet.clock.schedule_interval(_tick, 1 / fps)
    pyglet.app.run()
    return player


__all__ = ["run", "resolve_fps", "resolve_player_options"]
