"""
どこで: `common` パッケージ。
何を: 設定・環境変数・ロギング初期化・正規化キーのレジストリなど、全層で使う軽量基盤。
なぜ: scene/engine/api から再利用する共通基盤を分離し、依存の向きを単純化するため。
"""

from .base_registry import BaseRegistry

__all__ = [
    "BaseRegistry",
]
