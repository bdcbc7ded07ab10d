"""
どこで: `engine.runtime` サブパッケージ。
何を: コマンド/バッチ（CommandLog）・tick ハンドシェイク（TickProtocol）・両側の Surface・
      ミューテータのホスト（インライン/プロセス）・受信・履歴再生を提供。
なぜ: 変更の差分化と描画側への反映を分離し、再生/巻き戻しと例外伝播を両立するため。
"""
