"""
アーキテクチャテスト

目的:
- 数値レイヤ（外側→内側のみ許可、同層は許可）
- 個別禁止エッジ（シーンは実行基盤/描画を知らない、engine は api を知らない）
- モジュールレベル import の循環検出

注:
- 循環検出は実行時に評価される import のみを対象にする（関数内の遅延 import と
  `if TYPE_CHECKING:` ブロックは除外）。レイヤ/禁止エッジはすべての import を対象にする。
"""

from __future__ import annotations

import ast
import pathlib
from typing import Dict, Iterator, List, Optional, Set, Tuple

import pytest

REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_DIR = REPO_ROOT / "src"

# レイヤ定義（数値が小さいほど内側）
# L0: Core/Base, L1: Scene, L2: Runtime/Render, L3: API/Entry
LAYER_MAP = {
    ("common",): 0,
    ("util",): 0,
    ("engine", "core"): 0,
    ("scene",): 1,
    ("engine", "runtime"): 2,
    ("engine", "render"): 2,
    ("api",): 3,
}

CHECK_ROOTS = {"api", "engine", "scene", "common", "util"}


def iter_py_files(root: pathlib.Path) -> Iterator[pathlib.Path]:
    for p in root.rglob("*.py"):
        if any(part in {"tests", "__pycache__"} for part in p.parts):
            continue
        yield p


def module_name_from_path(path: pathlib.Path) -> str:
    rel = path.relative_to(SRC_DIR).with_suffix("")
    return ".".join(rel.parts)


def split_head(module: str) -> tuple[str, Optional[str]]:
    parts = module.split(".") if module else []
    if not parts:
        return "", None
    head = parts[0]
    second = parts[1] if len(parts) > 1 else None
    return head, second


def layer_of(module: str) -> Optional[int]:
    head, second = split_head(module)
    key: tuple[str, ...]
    if head == "engine" and second:
        key = (head, second)
    elif head:
        key = (head,)
    else:
        return None
    return LAYER_MAP.get(key)


def _target(src_mod: str, node: ast.ImportFrom) -> str:
    if node.level > 0:  # 相対 import
        src_parts = src_mod.split(".")
        base = ".".join(src_parts[: -node.level])
        mod = node.module or ""
        return f"{base}.{mod}" if mod else base
    return node.module or ""


def _edges_of(src_mod: str, nodes: Iterator[ast.AST]) -> Iterator[Tuple[str, str]]:
    for node in nodes:
        if isinstance(node, ast.Import):
            for alias in node.names:
                yield src_mod, alias.name
        elif isinstance(node, ast.ImportFrom):
            yield src_mod, _target(src_mod, node)


def _is_type_checking_block(node: ast.AST) -> bool:
    if not isinstance(node, ast.If):
        return False
    test = node.test
    return (isinstance(test, ast.Name) and test.id == "TYPE_CHECKING") or (
        isinstance(test, ast.Attribute) and test.attr == "TYPE_CHECKING"
    )


def _module_level_nodes(body: List[ast.stmt]) -> Iterator[ast.AST]:
    """モジュール直下で実行される文（if/try の中は辿る、TYPE_CHECKING は除外）。"""
    for stmt in body:
        if _is_type_checking_block(stmt):
            continue
        if isinstance(stmt, (ast.Import, ast.ImportFrom)):
            yield stmt
        elif isinstance(stmt, ast.If):
            yield from _module_level_nodes(stmt.body)
            yield from _module_level_nodes(stmt.orelse)
        elif isinstance(stmt, ast.Try):
            yield from _module_level_nodes(stmt.body)
            for handler in stmt.handlers:
                yield from _module_level_nodes(handler.body)


def iter_import_edges(py_path: pathlib.Path, *, runtime_only: bool = False) -> Iterator[Tuple[str, str]]:
    src_mod = module_name_from_path(py_path)
    tree = ast.parse(py_path.read_text(encoding="utf-8"), filename=str(py_path))
    nodes = _module_level_nodes(tree.body) if runtime_only else ast.walk(tree)
    yield from _edges_of(src_mod, nodes)


def is_forbidden_edge(src: str, tgt: str) -> bool:
    s_head, _ = split_head(src)
    t_head, _ = split_head(tgt)
    # 1) engine -> api を禁止
    if s_head == "engine" and t_head == "api":
        return True
    # 2) scene -> engine を禁止（シーンはメッセージ/描画の実装を知らない）
    if s_head == "scene" and t_head == "engine":
        return True
    return False


def within_check_scope(module: str) -> bool:
    head, _ = split_head(module)
    return head in CHECK_ROOTS


def collect_graph_and_violations() -> tuple[Dict[str, Set[str]], list[str], list[str]]:
    layering: list[str] = []
    forbidden: list[str] = []
    graph: Dict[str, Set[str]] = {}

    py_files: List[pathlib.Path] = list(iter_py_files(SRC_DIR))
    for py in py_files:
        graph.setdefault(module_name_from_path(py), set())

    for py in py_files:
        for src, tgt in iter_import_edges(py):
            if not within_check_scope(src) or not within_check_scope(tgt):
                continue
            s_layer = layer_of(src)
            t_layer = layer_of(tgt)
            if s_layer is not None and t_layer is not None and s_layer < t_layer:
                layering.append(f"[{py}] {src} (L{s_layer}) -> {tgt} (L{t_layer})")
            if is_forbidden_edge(src, tgt):
                forbidden.append(f"[{py}] {src} -> {tgt}")
        for src, tgt in iter_import_edges(py, runtime_only=True):
            # グラフに追加（ターゲットが既知モジュールのときのみ）
            if src in graph and tgt in graph:
                graph[src].add(tgt)

    return graph, layering, forbidden


def find_cycles(graph: Dict[str, Set[str]]) -> List[List[str]]:
    cycles: List[List[str]] = []
    WHITE, GRAY, BLACK = 0, 1, 2
    color: Dict[str, int] = {u: WHITE for u in graph}
    stack: List[str] = []

    def dfs(u: str) -> None:
        color[u] = GRAY
        stack.append(u)
        for v in sorted(graph.get(u, ())):
            if color[v] == WHITE:
                dfs(v)
            elif color[v] == GRAY:
                cycle = stack[stack.index(v) :] + [v]
                # 代表は辞書順最小の開始点に回転
                base = min(range(len(cycle) - 1), key=lambda i: cycle[i])
                norm = cycle[base:-1] + cycle[:base] + [cycle[base]]
                if norm not in cycles:
                    cycles.append(norm)
        stack.pop()
        color[u] = BLACK

    for node in sorted(graph):
        if color[node] == WHITE:
            dfs(node)
    return cycles


def test_find_cycles_reports_rotated_cycle() -> None:
    graph = {"b": {"c"}, "c": {"a"}, "a": {"b"}, "d": set()}
    assert find_cycles(graph) == [["a", "b", "c", "a"]]


def test_type_checking_imports_are_not_runtime_edges() -> None:
    py = SRC_DIR / "scene" / "registry.py"
    runtime = {tgt for _, tgt in iter_import_edges(py, runtime_only=True)}
    everything = {tgt for _, tgt in iter_import_edges(py)}
    assert "scene.node" not in runtime
    assert "scene.node" in everything


@pytest.mark.smoke
def test_architecture_import_rules():
    graph, layering, forbidden = collect_graph_and_violations()
    cycles = find_cycles(graph)
    msgs: list[str] = []
    if layering:
        msgs.append("Layer violations:\n" + "\n".join(layering))
    if forbidden:
        msgs.append("Forbidden-edge violations:\n" + "\n".join(forbidden))
    if cycles:
        # 表示数を制限してノイズを抑制
        rendered = [" -> ".join(c) for c in cycles[:10]]
        suffix = "\n(and more ...)" if len(cycles) > 10 else ""
        msgs.append("Import cycles detected (module-level):\n" + "\n".join(rendered) + suffix)
    if msgs:
        raise AssertionError("\n\n".join(msgs))
