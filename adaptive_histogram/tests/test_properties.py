"""Property-based tests for the structural guarantees of :mod:`adaptive_histogram`."""
from __future__ import annotations

import math

import pytest

hypothesis = pytest.importorskip("hypothesis")
st = hypothesis.strategies
given = hypothesis.given
settings = hypothesis.settings

from adaptive_histogram import AdaptiveHistogram  # noqa: E402

finite_values = st.floats(allow_nan=False, allow_infinity=False)
huge_values = st.one_of(
    st.floats(min_value=1e306, allow_infinity=False),
    st.floats(max_value=-1e306, allow_infinity=False),
)
limits = st.integers(min_value=2, max_value=16)


def _build(xs: list[float], limit: int) -> AdaptiveHistogram:
    hist = AdaptiveHistogram(count_per_node_limit=limit)
    hist.extend(xs)
    return hist


@given(st.lists(finite_values, max_size=300), limits)
@settings(max_examples=75, deadline=None)
def test_counts_are_conserved(xs: list[float], limit: int) -> None:
    hist = AdaptiveHistogram(count_per_node_limit=limit)
    for n, x in enumerate(xs, start=1):
        hist.add(x)
        assert sum(count for count, _, _ in hist.buckets()) == n
    assert hist.size() == len(xs)


@given(st.lists(finite_values, min_size=1, max_size=1_000), limits)
@settings(max_examples=75, deadline=None)
def test_buckets_form_gapless_ordered_partition(xs: list[float], limit: int) -> None:
    hist = _build(xs, limit)
    hist._check_invariants()

    buckets = hist.buckets()
    for count, lo, hi in buckets:
        assert lo <= hi
        assert 0 < count <= limit
    for (_, _, prev_hi), (_, next_lo, _) in zip(buckets, buckets[1:]):
        assert prev_hi == next_lo

    assert hist.min_value == min(xs)
    assert hist.max_value == max(xs)
    for x in xs:
        assert hist.count(x) > 0


@given(st.lists(finite_values, min_size=1, max_size=300), limits)
@settings(max_examples=60, deadline=None)
def test_invariants_hold_after_every_insert(xs: list[float], limit: int) -> None:
    hist = AdaptiveHistogram(count_per_node_limit=limit)
    for x in xs:
        hist.add(x)
        hist._check_invariants()


@given(
    st.lists(finite_values, min_size=1, max_size=1_000),
    limits,
    st.lists(st.floats(min_value=0.0, max_value=1.0), min_size=2, max_size=20),
)
@settings(max_examples=75, deadline=None)
def test_quantiles_are_monotone(xs: list[float], limit: int, fractions: list[float]) -> None:
    hist = _build(xs, limit)
    lo, hi = min(xs), max(xs)
    tolerance = 1e-9 * max(1.0, abs(lo), abs(hi))

    previous = -math.inf
    for q in sorted(fractions):
        value = hist.quantile(q)
        assert value is not None
        assert lo - tolerance <= value <= hi + tolerance
        assert value >= previous - tolerance
        previous = value


@given(st.lists(finite_values, min_size=1, max_size=500), limits)
@settings(max_examples=60, deadline=None)
def test_identity_conversion_leaves_boundaries_unchanged(xs: list[float], limit: int) -> None:
    hist = _build(xs, limit)
    before = hist.buckets()
    hist.apply_conversion(lambda v: v)
    assert hist.buckets() == before


@given(st.lists(finite_values, min_size=1, max_size=500), limits, finite_values)
@settings(max_examples=60, deadline=None)
def test_rank_is_bounded_and_monotone(xs: list[float], limit: int, point: float) -> None:
    hist = _build(xs, limit)
    rank = hist.rank(point)
    assert 0.0 <= rank <= len(xs)
    assert hist.rank(max(xs)) == pytest.approx(len(xs))
    assert hist.rank(point + 1.0) >= rank - 1e-9 * len(xs)


@given(st.lists(huge_values, min_size=1, max_size=300), limits)
@settings(max_examples=75, deadline=None)
def test_values_near_float_maximum_keep_tree_finite(xs: list[float], limit: int) -> None:
    hist = AdaptiveHistogram(count_per_node_limit=limit)
    for x in xs:
        hist.add(x)
        hist._check_invariants()

    assert all(math.isfinite(lo) and math.isfinite(hi) for _, lo, hi in hist.buckets())
    for q in [0.0, 0.25, 0.5, 0.75, 1.0]:
        value = hist.quantile(q)
        assert value is not None and math.isfinite(value)
        assert min(xs) <= value <= max(xs)
    assert 0.0 <= hist.rank(0.0) <= len(xs)
