"""Opt-in collection rules for the histogram micro-benchmarks."""
from __future__ import annotations

from pathlib import Path

import pytest

BENCH_OUTPUT = Path("bench_out/pytest")


def pytest_configure(config: pytest.Config) -> None:
    BENCH_OUTPUT.mkdir(parents=True, exist_ok=True)


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    # Benchmarks ingest 1e5 values per case; only run them under ``-m benchmark``.
    if "benchmark" in (config.getoption("-m") or ""):
        return
    skip = pytest.mark.skip(reason="histogram benchmarks run only with -m benchmark")
    for item in items:
        if item.get_closest_marker("benchmark") is not None:
            item.add_marker(skip)
