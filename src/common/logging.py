"""
どこで: `common.logging`
何を: ランナー向けの最小ロギング初期化ヘルパ（既定構成 + 設定ファイル由来のロガー別レベル）。

要点:
- ライブラリ側の各モジュールは `logging.getLogger(__name__)` でロガーを取得するだけにする。
- アプリ側で設定が無い場合に限り、妥当な最小構成を 1 度だけ適用する。
- `configs/default.yaml` の `logging:` 節でロガー別レベルを上書きできる。
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _to_level(level: int | str, fallback: int = logging.INFO) -> int:
    if isinstance(level, str):
        lvl = logging.getLevelName(level.upper())
        return lvl if isinstance(lvl, int) else fallback
    return int(level)


def setup_default_logging(level: int | str = "INFO") -> None:
    """最小限のロギング設定を 1 度だけ適用する。

    - ルートロガーにハンドラが既にあれば何もしない（no-op）
    - `api.run` から呼び出す想定
    """
    root = logging.getLogger()
    if root.handlers:
        # アプリ側で設定済み
        return
    logging.basicConfig(level=_to_level(level), format=_FORMAT)


def apply_logging_config(cfg: Mapping[str, Any] | None) -> None:
    """設定辞書（`logging:` 節）を適用する。

    形式::

        logging:
          level: INFO
          loggers:
            engine.runtime.protocol: DEBUG

    不正なレベル名は INFO として扱う。
    """
    section = cfg.get("logging", {}) if isinstance(cfg, Mapping) else {}
    if not isinstance(section, Mapping):
        section = {}
    setup_default_logging(section.get("level", "INFO"))
    loggers = section.get("loggers", {})
    if isinstance(loggers, Mapping):
        for name, level in loggers.items():
            logging.getLogger(str(name)).setLevel(_to_level(level))


__all__ = ["setup_default_logging", "apply_logging_config"]
