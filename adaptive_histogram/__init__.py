"""adaptive_histogram package public API."""
from ._metadata import __version__
from .adaptive_histogram import AdaptiveHistogram
from .nodes import BucketNode, HistogramNode, SplitNode

__all__ = ["AdaptiveHistogram", "BucketNode", "HistogramNode", "SplitNode", "__version__"]
