"""
どこで: `scene.errors`
何を: シーングラフ/コマンド適用で使う例外の分類。
なぜ: 「呼び出し側/プロトコル違反（致命的）」と「整合性検証の失敗」を型で区別し、
      検出した呼び出しでそのまま送出するため（握りつぶし/再試行はしない）。

分類:
- `UsageError`: 二重 destroy・破棄済みノード操作・未登録ステート・履歴モードの入退出不整合・
  未知の shape・親子の循環・未知 id への Destroy など。現在の実行を中断すべきもの。
- `DesyncError`: registry と描画ハンドルの全単射が崩れた（検証時のみ）。
- 見つからない参照の解決（継承プロパティ等）は例外ではなく既定値を返す。
"""

from __future__ import annotations


class SceneError(RuntimeError):
    """シーングラフ関連の例外の基底。"""


class UsageError(SceneError):
    """致命的な利用/プロトコル違反。"""


class NodeDestroyedError(UsageError):
    """破棄済みノードへの操作（二重 destroy を含む）。"""


class UnregisteredStateError(UsageError):
    """未登録の表示ステートを適用しようとした。"""


class HistoryModeError(UsageError):
    """履歴モードの多重突入/未突入での退出。"""


class UnrecognizedShapeError(UsageError):
    """shape として渡されたオブジェクトがどの形状述語にも一致しない。"""


class UnknownNodeError(UsageError):
    """registry に存在しない id を参照した（Destroy/親 id 解決など）。"""


class UnknownNodeKindError(UsageError):
    """ノード種別タグに対応するコンストラクタが無い。"""


class ParentCycleError(UsageError):
    """ノードを自身または自身の子孫の下へ付け替えようとした。"""


class RootError(UsageError):
    """ルートノードの重複、またはルート不在での自動接続。"""


class ProtocolError(UsageError):
    """TickProtocol の状態遷移違反（Done 後の continue など）。"""


class DesyncError(SceneError):
    """registry と描画バックエンドのハンドルが一致しない。"""


__all__ = [
    "SceneError",
    "UsageError",
    "NodeDestroyedError",
    "UnregisteredStateError",
    "HistoryModeError",
    "UnrecognizedShapeError",
    "UnknownNodeError",
    "UnknownNodeKindError",
    "ParentCycleError",
    "RootError",
    "ProtocolError",
    "DesyncError",
]
