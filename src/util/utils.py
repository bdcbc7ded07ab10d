"""
どこで: `util.utils`
何を: YAML 設定（`configs/default.yaml` + ルート `config.yaml`）の読み込みと節の取り出し。
なぜ: 面サイズ・再生レート・描画既定値などを 1 箇所で解決し、フェイルソフトに扱うため。
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Mapping

import yaml


def _safe_load_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError):
        return {}
    return data if isinstance(data, dict) else {}


def _find_project_root(start: Path) -> Path:
    """プロジェクトルートを推定して返す。

    - 上位に `.git` / `pyproject.toml` / `configs/` があるもっとも近いディレクトリ。
    - 見つからない場合は `start.parent.parent`（典型: <repo>/src/util → <repo>）。
    """
    cur = start.resolve()
    for parent in [cur] + list(cur.parents):
        if (
            (parent / ".git").exists()
            or (parent / "pyproject.toml").exists()
            or (parent / "configs").exists()
        ):
            return parent
    return cur.parent.parent


def load_config() -> Dict[str, Any]:
    """構成を読み込んで辞書で返す（フェイルソフト）。

    優先順:
    1) `configs/default.yaml`（ベース）
    2) ルート `config.yaml`（ベースに上書き）

    - いずれも存在しない/不正な場合は空辞書を返す。
    - ネストした辞書のディープマージは行わず、トップレベルのみ上書き。
    """
    project_root = _find_project_root(Path(__file__).parent)
    base: Dict[str, Any] = {}

    default_path = project_root / "configs" / "default.yaml"
    if default_path.exists():
        base.update(_safe_load_yaml(default_path))

    root_config_path = project_root / "config.yaml"
    if root_config_path.exists():
        base.update(_safe_load_yaml(root_config_path))

    return base


def config_section(name: str, cfg: Mapping[str, Any] | None = None) -> Dict[str, Any]:
    """設定の節を辞書で返す（欠落/型不一致は空辞書）。"""
    source = load_config() if cfg is None else cfg
    section = source.get(name, {}) if isinstance(source, Mapping) else {}
    return dict(section) if isinstance(section, Mapping) else {}


def resolve_bounds(
    bounds: tuple[float, float, float, float] | None = None,
    *,
    cfg: Mapping[str, Any] | None = None,
) -> tuple[float, float, float, float]:
    """描画面の矩形 (x, y, w, h) を解決する。

    明示指定 > `surface.bounds` > 既定 (0, 0, 900, 556)。w/h が正でなければ `ValueError`。
    """
    if bounds is None:
        raw = config_section("surface", cfg).get("bounds")
        if isinstance(raw, Mapping):
            bounds = (
                float(raw.get("x", 0.0)),
                float(raw.get("y", 0.0)),
                float(raw.get("w", 900.0)),
                float(raw.get("h", 556.0)),
            )
        else:
            bounds = (0.0, 0.0, 900.0, 556.0)
    x, y, w, h = (float(v) for v in bounds)
    if w <= 0 or h <= 0:
        raise ValueError(f"surface bounds must have positive size, got {(x, y, w, h)}")
    return (x, y, w, h)


__all__ = ["load_config", "config_section", "resolve_bounds"]
