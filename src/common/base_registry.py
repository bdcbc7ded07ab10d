"""
どこで: `common.base_registry`
何を: 正規化キー（大文字小文字/キャメル/ハイフンを吸収）で型やファクトリを引く共通レジストリ。
なぜ: ノード種別タグ → コンストラクタの対応表を「メッセージ復号時に 1 度だけ解決」する閉じた
      テーブルとして持ち、名前文字列による動的ディスパッチを局所化するため。
"""

from __future__ import annotations

import re
from typing import Any, Callable, Iterator


class BaseRegistry:
    """正規化キーで登録/取得を行うレジストリ。

    - `register()` はデコレータ。名前省略時は `obj.__name__` から推論する。
    - 同一キーに別オブジェクトを登録しようとすると `ValueError`。
    - 未登録キーの取得は `KeyError`（呼び出し側でドメイン例外へ変換する）。
    """

    def __init__(self) -> None:
        self._registry: dict[str, Any] = {}

    @staticmethod
    def _camel_to_snake(name: str) -> str:
        s1 = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", name)
        return re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s1).lower()

    @classmethod
    def normalize_key(cls, name: str) -> str:
        """キーの正規化（例: "LetterTile" -> "letter_tile", "letter-tile" -> "letter_tile"）。"""
        if not isinstance(name, str):
            raise TypeError(f"registry key must be str, got {type(name)!r}")
        if not name:
            raise ValueError("registry key must not be empty")
        name = name.replace("-", "_")
        return cls._camel_to_snake(name) if any(c.isupper() for c in name) else name.lower()

    def register(self, name: str | None = None) -> Callable[[Any], Any]:
        """クラス/関数を登録するデコレータ。"""

        def decorator(obj: Any) -> Any:
            key = self.normalize_key(name or obj.__name__)
            current = self._registry.get(key)
            if current is not None and current is not obj:
                raise ValueError(f"'{key}' is already registered to {current!r}")
            self._registry[key] = obj
            return obj

        return decorator

    def get(self, name: str) -> Any:
        key = self.normalize_key(name)
        try:
            return self._registry[key]
        except KeyError:
            raise KeyError(f"'{name}' is not registered") from None

    def is_registered(self, name: str) -> bool:
        return self.normalize_key(name) in self._registry

    def list_all(self) -> list[str]:
        """登録キーの一覧（登録順）。"""
        return list(self._registry)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._registry))

    def __len__(self) -> int:
        return len(self._registry)


__all__ = ["BaseRegistry"]
