"""Pytest micro-benchmarks for the adaptive histogram."""

from __future__ import annotations

import pytest

pytest.importorskip("numpy")
import numpy as np

from adaptive_histogram import AdaptiveHistogram

pytestmark = pytest.mark.benchmark


def _generate_data(dist: str, size: int, seed: int) -> np.ndarray:
    rng = np.random.default_rng(seed)
    if dist == "uniform":
        return rng.uniform(0.0, 1.0, size)
    if dist == "normal":
        return rng.normal(0.0, 1.0, size)
    raise ValueError(f"Unsupported distribution for pytest benchmarks: {dist}")


@pytest.mark.parametrize("distribution", ["uniform", "normal"])
@pytest.mark.parametrize("N", [int(1e4), int(1e5)])
@pytest.mark.parametrize("limit", [50, 100, 400])
def test_update_throughput(distribution: str, N: int, limit: int, benchmark) -> None:
    data = _generate_data(distribution, N, seed=42)

    def build_histogram() -> AdaptiveHistogram:
        hist = AdaptiveHistogram(count_per_node_limit=limit)
        for value in data:
            hist.add(float(value))
        return hist

    hist = benchmark(build_histogram)

    approx = hist.median()
    exact = float(np.quantile(data, 0.5))
    std = float(np.std(data))
    assert approx is not None
    assert abs(approx - exact) <= 0.05 * std


@pytest.mark.parametrize("limit", [50, 400])
def test_quantile_latency(limit: int, benchmark) -> None:
    hist = AdaptiveHistogram(count_per_node_limit=limit)
    hist.extend(float(v) for v in _generate_data("normal", int(1e5), seed=7))

    result = benchmark(hist.quantiles_at, [0.01, 0.25, 0.5, 0.75, 0.99])
    assert result == sorted(result)
