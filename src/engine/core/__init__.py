"""
どこで: `engine.core` サブパッケージ。
何を: 2D ポリライン `Geometry`・フレーム駆動（Tickable/FrameClock）・描画ウィンドウを提供。
なぜ: シーングラフや実行系に依存しない最内層の部品として、上位層から再利用するため。
"""
