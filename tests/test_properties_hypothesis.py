import numpy as np
import pytest

hypothesis = pytest.importorskip("hypothesis", reason="hypothesis is a dev optional dependency")
from hypothesis import given, strategies as st  # type: ignore

from engine.core.geometry import Geometry
from engine.runtime.command import split_tick


def _geom():
    pts = np.array([[0, 0], [1, 2], [3, -4]], dtype=np.float32)
    return Geometry.from_lines([pts])


@given(
    dx1=st.floats(-10, 10), dy1=st.floats(-10, 10),
    dx2=st.floats(-10, 10), dy2=st.floats(-10, 10),
)
def test_translate_composition(dx1, dy1, dx2, dy2):
    g = _geom()
    left = g.translate(dx1, dy1).translate(dx2, dy2)
    right = g.translate(dx1 + dx2, dy1 + dy2)
    np.testing.assert_allclose(left.coords, right.coords, rtol=1e-5, atol=1e-5)
    np.testing.assert_array_equal(left.offsets, right.offsets)


def _geom_line(n=3):
    pts = np.stack([
        np.linspace(0, 1, n, dtype=np.float32),
        np.zeros(n, dtype=np.float32),
    ], axis=1)
    return Geometry.from_lines([pts])


@given(n1=st.integers(2, 5), n2=st.integers(2, 5), n3=st.integers(2, 5))
def test_concat_associativity(n1, n2, n3):
    a = _geom_line(n1)
    b = _geom_line(n2)
    c = _geom_line(n3)
    left = a.concat(b).concat(c)
    right = a.concat(b.concat(c))
    np.testing.assert_allclose(left.coords, right.coords, rtol=1e-6)
    np.testing.assert_array_equal(left.offsets, right.offsets)


_payloads = st.dictionaries(
    st.sampled_from(["x", "y", "w", "fill", "text"]),
    st.one_of(
        st.integers(-5, 5),
        st.lists(st.integers(-5, 5), min_size=1, max_size=4),
    ),
    min_size=1,
)


def _drain(payload):
    ticks = []
    remaining = payload
    while remaining is not None:
        tick, remaining = split_tick(remaining)
        ticks.append(tick)
    return ticks


@given(payload=_payloads)
def test_split_tick_emits_one_tick_per_sequence_element(payload):
    ticks = _drain(payload)
    longest = max((len(v) for v in payload.values() if isinstance(v, list)), default=1)
    assert len(ticks) == longest
    # 各キーの最終値は系列の最後の要素
    final = {}
    for tick in ticks:
        final.update(tick)
    for key, value in payload.items():
        assert final[key] == (value[-1] if isinstance(value, list) else value)
    assert all(not isinstance(v, list) for tick in ticks for v in tick.values())
