"""
どこで: `engine.runtime.worker`
何を: ミューテータ（アルゴリズム + MutatorSurface + TickProtocol）をインライン実行または別プロセスで
      ホストする `MutatorHost`。レンダラ側からは Continue を送り、結果キューから Pause/Done/例外を受け取る。
なぜ: アルゴリズムの実行文脈をレンダラ（GL コンテキストを持つ側）から切り離し、両者をメッセージの
      コピーだけで結ぶため（ノード参照は決して越境しない）。

注意（重要）:
- spawn 方式の環境では `algorithm_factory` はピクル可能（トップレベル定義）である必要がある。
  ローカル関数やクロージャを含む `functools.partial` は避けること。
- 例外はミューテータ側で `MutatorTaskError` に包んで結果キューへ送り、受信側で再送出する。
  例外の後はそれ以上メッセージを送らない（実行は中断）。
"""

from __future__ import annotations

import logging
import multiprocessing as mp
from queue import Queue
from typing import Any, Callable, cast

from scene.errors import ProtocolError
from util.utils import resolve_bounds

from .messages import ContinueMessage, OutboundMessage
from .protocol import TickProtocol
from .surface import MutatorSurface
from .task import as_task

logger = logging.getLogger(__name__)

AlgorithmFactory = Callable[[MutatorSurface], Any]


class MutatorTaskError(Exception):
    """アルゴリズム実行中の例外を段階（start/continue）の文脈付きで包む。

    multiprocessing 経由のシリアライズ/デシリアライズに耐えるよう、
    単一のメッセージ引数でも初期化できるようにする。
    """

    def __init__(
        self,
        stage: str | None = None,
        original: BaseException | None = None,
        message: str | None = None,
    ) -> None:
        # Unpickle 経路（メッセージだけで復元される）
        if message is None and original is None and stage is not None and stage.startswith("MutatorTaskError"):
            message, stage = stage, None
        if message is None:
            message = f"MutatorTaskError(stage={stage}): {type(original).__name__}: {original}"
        super().__init__(message)
        self.stage = stage
        self.original = original

    def __reduce__(self):
        # ピクル化時はメッセージのみで再構築できるようにする
        return (MutatorTaskError, (str(self),))


def _start_protocol(
    algorithm_factory: AlgorithmFactory,
    bounds: tuple[float, float, float, float],
    send: Callable[[OutboundMessage], None],
) -> tuple[TickProtocol | None, MutatorTaskError | None]:
    """MutatorSurface を作り、アルゴリズムを最初の中断点まで進める。"""
    try:
        surface = MutatorSurface(bounds)
        task = as_task(algorithm_factory(surface))
        protocol = TickProtocol(task, surface.command_log, send)
        protocol.start()
        return protocol, None
    except Exception as e:
        logger.exception("[mutator] stage=start error=%s", e)
        return None, MutatorTaskError("start", e)


def _continue_protocol(protocol: TickProtocol | None) -> MutatorTaskError | None:
    try:
        if protocol is None:
            raise ProtocolError("continue received before the algorithm started")
        protocol.on_continue()
        return None
    except Exception as e:
        logger.exception("[mutator] stage=continue error=%s", e)
        return MutatorTaskError("continue", e)


class _MutatorProcess(mp.Process):
    """別プロセスでアルゴリズムを実行し、Continue ごとに次の tick/中断点まで進める。"""

    def __init__(
        self,
        task_q: mp.Queue,
        result_q: mp.Queue,
        algorithm_factory: AlgorithmFactory,
        bounds: tuple[float, float, float, float],
    ):
        super().__init__(daemon=True)
        self.task_q, self.result_q = task_q, result_q
        self.algorithm_factory = algorithm_factory
        self.bounds = bounds

    def run(self) -> None:
        protocol, err = _start_protocol(self.algorithm_factory, self.bounds, self.result_q.put)
        if err is not None:
            self.result_q.put(err)
            return
        for _message in iter(self.task_q.get, None):  # None = sentinel
            err = _continue_protocol(protocol)
            if err is not None:
                self.result_q.put(err)
                return


class MutatorHost:
    """ミューテータの実行場所（インライン/プロセス）を隠蔽する。

    Parameters
    ----------
    algorithm_factory : Callable[[MutatorSurface], Any]
        MutatorSurface を受け取り、ジェネレータ/AlgorithmTask/ステップ関数列を返す。
    bounds : tuple | None
        描画面の矩形。None なら設定ファイル（`surface.bounds`）か既定値。
    workers : int
        1 未満ならインライン実行（結果は `queue.Queue`）、1 以上なら別プロセスで実行。
    """

    def __init__(
        self,
        algorithm_factory: AlgorithmFactory,
        *,
        bounds: tuple[float, float, float, float] | None = None,
        workers: int = 0,
    ) -> None:
        self._factory = algorithm_factory
        self._bounds = resolve_bounds(bounds)
        self._inline = workers < 1
        self._protocol: TickProtocol | None = None
        self._task_q: mp.Queue | None = None
        self._process: _MutatorProcess | None = None
        self._result_q: Queue[Any] | mp.Queue
        if self._inline:
            # スレッド内で完結させるため、シリアライズを避ける queue.Queue を利用する
            self._result_q = Queue()
        else:
            self._task_q = mp.Queue()
            self._result_q = mp.Queue()
            self._process = _MutatorProcess(self._task_q, self._result_q, algorithm_factory, self._bounds)
        self._started = False
        self._closed = False

    @property
    def inline(self) -> bool:
        return self._inline

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        return self._bounds

    @property
    def result_q(self) -> Queue[Any] | mp.Queue:
        return self._result_q

    def start(self) -> None:
        """アルゴリズムを開始する（最初の Pause か Done が結果キューへ入る）。"""
        if self._started:
            raise ProtocolError("mutator host already started")
        self._started = True
        if self._inline:
            self._protocol, err = _start_protocol(self._factory, self._bounds, self._result_q.put)
            if err is not None:
                self._result_q.put(err)
        else:
            cast(_MutatorProcess, self._process).start()

    def send_continue(self) -> None:
        """レンダラの確認（Continue）をミューテータへ送る。"""
        if self._closed:
            return
        if not self._started:
            raise ProtocolError("continue sent before the mutator host was started")
        if self._inline:
            err = _continue_protocol(self._protocol)
            if err is not None:
                self._result_q.put(err)
        else:
            cast(mp.Queue, self._task_q).put(ContinueMessage())

    def close(self) -> None:
        """停止してキューをクローズする（多重呼び出しに安全）。"""
        if self._closed:
            return
        # 以降の例外で途中離脱しても、次回は no-op になるよう先にフラグを立てる
        self._closed = True
        if self._inline:
            return
        process = cast(_MutatorProcess, self._process)
        task_q = cast(mp.Queue, self._task_q)
        try:
            if process.is_alive():
                task_q.put_nowait(None)
                process.join(timeout=1.0)
                if process.is_alive():
                    process.terminate()
        finally:
            task_q.close()
            cast(mp.Queue, self._result_q).close()


__all__ = ["MutatorTaskError", "MutatorHost", "AlgorithmFactory"]
