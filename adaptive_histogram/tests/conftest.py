"""Pytest configuration for the adaptive_histogram test suite."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Tests may be collected from a source checkout without installing the
# project; put the checkout root on ``sys.path`` so the package resolves.
ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from adaptive_histogram import AdaptiveHistogram  # noqa: E402


@pytest.fixture
def small_histogram() -> AdaptiveHistogram:
    """Histogram with the smallest allowed limit, so splits happen quickly."""
    return AdaptiveHistogram(count_per_node_limit=2)
