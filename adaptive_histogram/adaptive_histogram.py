# Adaptive Streaming Histogram (Python)
# Bounded-memory histogram over a stream of floats with:
# - Self-balancing bucket tree (buckets split when they reach the count limit)
# - Range extension at the outer buckets (domain only grows outward)
# - Interpolated quantile, rank and CDF queries
# - In-place boundary conversion (rescaling, log transforms, normalization)
# Python 3.9+

from __future__ import annotations

import logging
import math
import numbers
from typing import Iterable, List, Optional, TextIO, Tuple

from .nodes import BucketNode, HistogramNode, SplitNode, ValueConversion, interpolate, midpoint, position

logger = logging.getLogger(__name__)


class AdaptiveHistogram:
    """
    Adaptive histogram for approximate counts and quantiles over a stream.

    Strategy (high level):
      - Start with a single bucket that widens to cover every value it sees.
      - When a bucket already holds ``count_per_node_limit`` observations and
        a value lands inside its range, split it in two at the midpoint,
        assuming its observations are spread uniformly.
      - When a full bucket at the edge of the domain receives a value outside
        its range, hang a new one-observation bucket next to it.
      - Buckets read left to right always form a gapless, ordered partition
        of the observed domain, so quantiles are answered by walking the
        buckets in order and interpolating inside the one that reaches the
        target count.

    The structure is not thread-safe: ``add`` reads and replaces node
    references, so concurrent writers must be serialised by the caller.

    Public API:
      add(x), extend(xs), size(), count(x), accum_count(x), quantile(q),
      quantiles_at(qs), median(), percentile(p), rank(x), cdf(x),
      apply_conversion(f), normalize(lo, hi), reset(), buckets(), show()
    """

    # ---------------------------- Tunable constants ----------------------------
    _DEFAULT_COUNT_PER_NODE_LIMIT: int = 100
    _MIN_COUNT_PER_NODE_LIMIT: int = 2      # a limit of 0 or 1 splits on every insert

    __slots__ = ("_root", "_limit", "_n")

    def __init__(self, count_per_node_limit: int = _DEFAULT_COUNT_PER_NODE_LIMIT):
        limit = count_per_node_limit
        integral = isinstance(limit, numbers.Integral) or (isinstance(limit, float) and limit.is_integer())
        if isinstance(limit, bool) or not integral:
            raise ValueError("count_per_node_limit must be an integer")
        if limit < self._MIN_COUNT_PER_NODE_LIMIT:
            raise ValueError(f"count_per_node_limit must be >= {self._MIN_COUNT_PER_NODE_LIMIT}")
        self._limit = int(limit)
        self._root: HistogramNode = BucketNode()
        self._n = 0

    def __repr__(self) -> str:
        return f"AdaptiveHistogram(count_per_node_limit={self._limit}, size={self._n})"

    def __len__(self) -> int:
        return self._n

    @property
    def count_per_node_limit(self) -> int:
        return self._limit

    @property
    def root(self) -> HistogramNode:
        return self._root

    # ------------------------------- Ingestion ---------------------------------
    def add(self, x: float) -> None:
        """Record one observation of ``x``."""
        xv = float(x)
        if math.isnan(xv) or math.isinf(xv):
            raise ValueError("value must be finite")

        node = self._root.insert(self, xv)
        if node is not self._root:
            assert isinstance(node, SplitNode)
            logger.debug("root replaced by split at %r", node.split_value)
            self._root = node
        self._n += 1

    def extend(self, xs: Iterable[float]) -> None:
        for x in xs:
            self.add(x)

    def size(self) -> int:
        return self._n

    def reset(self) -> None:
        """Discard every observation and start over with one empty bucket."""
        logger.debug("resetting histogram holding %d observations", self._n)
        self._root = BucketNode()
        self._n = 0

    # -------------------------------- Queries ----------------------------------
    def count(self, x: float) -> int:
        """Number of observations in the bucket that contains ``x``."""
        return self._root.count_at(float(x))

    def accum_count(self, x: float) -> int:
        """Count of the rightmost bucket starting at or below ``x``.

        A single-bucket lookup; use :meth:`rank` for the cumulative count.
        """
        return self._root.accum_count_at(float(x))

    def quantile(self, q: float) -> Optional[float]:
        """Approximate value below which a fraction ``q`` of observations fall.

        Returns ``None`` for an empty histogram or when ``q`` is not in [0, 1].
        """
        if self._n == 0 or not (0.0 <= q <= 1.0):
            return None
        accumulator: List[float] = [0, q * self._n]
        return self._root.value_for_accum_count(accumulator)

    def quantiles_at(self, probabilities: Iterable[float]) -> List[Optional[float]]:
        return [self.quantile(float(q)) for q in probabilities]

    def median(self) -> Optional[float]:
        return self.quantile(0.5)

    def percentile(self, p: float) -> Optional[float]:
        """Value at percentile ``p`` in [0, 100]."""
        return self.quantile(p / 100.0)

    def rank(self, x: float) -> float:
        """Approximate number of observations ``<= x``, in [0, n].

        Buckets entirely below ``x`` contribute their full count; the bucket
        containing ``x`` contributes proportionally to the covered width.
        """
        xv = float(x)
        cum = 0.0
        for bucket in self._root.leaves():
            if bucket.count == 0 or xv < bucket.min_value:
                break
            if xv >= bucket.max_value:
                cum += bucket.count
                continue
            cum += bucket.count * position(bucket.min_value, bucket.max_value, xv)
            break
        return max(0.0, min(float(self._n), cum))

    def cdf(self, x: float) -> float:
        if self._n == 0:
            return 0.0
        return self.rank(x) / self._n

    @property
    def min_value(self) -> Optional[float]:
        if self._n == 0:
            return None
        return next(self._root.leaves()).min_value

    @property
    def max_value(self) -> Optional[float]:
        if self._n == 0:
            return None
        node = self._root
        while isinstance(node, SplitNode):
            node = node.right
        assert isinstance(node, BucketNode)
        return node.max_value

    # ------------------------------ Conversions --------------------------------
    def apply_conversion(self, conversion: ValueConversion) -> None:
        """Rewrite every boundary through ``conversion``; counts are untouched.

        ``conversion`` must be non-decreasing, otherwise the buckets no longer
        form an ordered partition and query results are undefined.
        """
        logger.debug("applying value conversion %r", conversion)
        self._root.apply_conversion(conversion)

    def normalize(self, target_min: float, target_max: float) -> None:
        """Linearly map the observed domain onto ``[target_min, target_max]``."""
        if target_min > target_max:
            raise ValueError("target_min must be <= target_max")
        lo, hi = self.min_value, self.max_value
        if lo is None or hi is None:
            raise ValueError("empty histogram")
        if lo == hi:
            self.apply_conversion(lambda _v: midpoint(target_min, target_max))
            return
        self.apply_conversion(lambda v: interpolate(lo, target_min, hi, target_max, v))

    # ------------------------------ Introspection ------------------------------
    def buckets(self) -> List[Tuple[int, float, float]]:
        """``(count, min_value, max_value)`` for every bucket, in order."""
        if self._n == 0:
            return []
        return [bucket.as_tuple() for bucket in self._root.leaves()]

    def node_count(self) -> int:
        total = 0
        stack: List[HistogramNode] = [self._root]
        while stack:
            node = stack.pop()
            total += 1
            if isinstance(node, SplitNode):
                stack.extend((node.left, node.right))
        return total

    def depth(self) -> int:
        deepest = 0
        stack: List[Tuple[HistogramNode, int]] = [(self._root, 1)]
        while stack:
            node, level = stack.pop()
            deepest = max(deepest, level)
            if isinstance(node, SplitNode):
                stack.append((node.left, level + 1))
                stack.append((node.right, level + 1))
        return deepest

    def show(self, file: Optional[TextIO] = None) -> None:
        self._root.show(0, file)

    def _check_invariants(self) -> None:
        """Assert the structural invariants of the bucket tree.

        A failure here means the splitting logic is broken; it is never
        recovered from.
        """
        leaves = list(self._root.leaves())
        assert sum(b.count for b in leaves) == self._n, "bucket counts do not sum to size"
        if self._n == 0:
            return
        for bucket in leaves:
            assert bucket.min_value <= bucket.max_value, f"inverted bucket {bucket!r}"
            assert 0 < bucket.count <= self._limit, f"bucket count out of bounds {bucket!r}"
        for prev, nxt in zip(leaves, leaves[1:]):
            assert prev.max_value == nxt.min_value, f"gap or overlap between {prev!r} and {nxt!r}"
