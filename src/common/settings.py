"""
どこで: `common.settings`
何を: 実行時スイッチ（検証・デバッグログ・円の分割数など）を環境変数から型付きで一元管理する。
なぜ: `os.getenv` の散在を避け、既定値/型の一貫性とテスト容易性を保つため。
"""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_bool, env_int


@dataclass
class _Settings:
    # Renderer 側の registry/handle 整合性検証（`python -O` では常に無効）
    VALIDATE: bool = True
    # flush/tick ごとのコマンド内容を DEBUG ログへ出す
    DEBUG_COMMANDS: bool = False
    # 円アウトラインの分割数
    CIRCLE_SEGMENTS: int = 48
    # MessageReceiver が 1 tick で処理する最大メッセージ数
    MAX_MESSAGES_PER_TICK: int = 4


_settings = _Settings()


def reload_from_env() -> None:
    """環境変数から設定を再読込する。

    - bool は `env_bool`、int は `env_int` を使用。
    - 分割数/処理数は下限で丸める。
    """
    _settings.VALIDATE = env_bool("ALGO_VALIDATE", True)
    _settings.DEBUG_COMMANDS = env_bool("ALGO_DEBUG_COMMANDS", False)
    _settings.CIRCLE_SEGMENTS = env_int("ALGO_CIRCLE_SEGMENTS", 48, min_value=8) or 48
    _settings.MAX_MESSAGES_PER_TICK = env_int("ALGO_MAX_MESSAGES_PER_TICK", 4, min_value=1) or 4


def get() -> _Settings:
    """現在の設定スナップショットを返す。"""
    return _settings


# 初期ロード
reload_from_env()


__all__ = ["get", "reload_from_env", "_Settings"]
