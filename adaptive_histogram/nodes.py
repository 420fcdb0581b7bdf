"""Tree nodes backing :class:`~adaptive_histogram.AdaptiveHistogram`.

The tree has exactly two node kinds: :class:`BucketNode` leaves that own a
value range and an observation count, and :class:`SplitNode` forks that
partition their range at a threshold. Mutation uses a return-to-replace
protocol: ``insert`` returns the node itself, or the new fork that must take
its place in the parent's slot. No node keeps a reference to its parent.
"""

from __future__ import annotations

import logging
import math
import sys
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable, Iterator, List, Optional, TextIO, Tuple

if TYPE_CHECKING:
    from .adaptive_histogram import AdaptiveHistogram

logger = logging.getLogger(__name__)

ValueConversion = Callable[[float], float]


class HistogramNode(ABC):
    """Contract shared by bucket (leaf) and split (fork) nodes."""

    __slots__ = ()

    @abstractmethod
    def insert(self, histogram: "AdaptiveHistogram", value: float) -> "HistogramNode":
        """Record one observation of ``value``.

        Returns ``self`` when the tree shape is unchanged, otherwise the
        :class:`SplitNode` that replaces this node.
        """

    @abstractmethod
    def count_at(self, value: float) -> int:
        """Count of the bucket whose range contains ``value`` (0 if none)."""

    @abstractmethod
    def accum_count_at(self, value: float) -> int:
        """Count of the rightmost bucket starting at or below ``value``.

        This is a single-bucket lookup, not a cumulative sum; see
        :meth:`AdaptiveHistogram.rank` for the latter.
        """

    @abstractmethod
    def value_for_accum_count(self, accumulator: List[float]) -> Optional[float]:
        """Locate the value at which the running count reaches the target.

        ``accumulator`` is ``[running, target]``. Buckets are visited in
        ascending range order and each one adds its count to ``running``.
        """

    @abstractmethod
    def apply_conversion(self, conversion: ValueConversion) -> None:
        """Rewrite stored boundaries through a non-decreasing function."""

    @abstractmethod
    def show(self, level: int = 0, file: Optional[TextIO] = None) -> None:
        """Print this node indented by ``level``."""

    @abstractmethod
    def leaves(self) -> Iterator["BucketNode"]:
        """Yield the bucket nodes below this node in ascending order."""

    @staticmethod
    def _margin(level: int) -> str:
        return "  " * level


class BucketNode(HistogramNode):
    """Leaf holding the number of observations seen in ``[min_value, max_value]``.

    An empty bucket has ``min_value = +inf`` and ``max_value = -inf`` so that
    any first value falls outside its range and initialises both ends.
    """

    __slots__ = ("count", "min_value", "max_value")

    def __init__(
        self,
        count: int = 0,
        min_value: float = math.inf,
        max_value: float = -math.inf,
    ) -> None:
        assert count >= 0, "bucket count must be non-negative"
        assert count == 0 or min_value <= max_value, "bucket range is inverted"
        self.count = count
        self.min_value = min_value
        self.max_value = max_value

    def __repr__(self) -> str:
        return f"BucketNode(count={self.count}, min_value={self.min_value!r}, max_value={self.max_value!r})"

    @property
    def is_empty(self) -> bool:
        return self.min_value > self.max_value

    def insert(self, histogram: "AdaptiveHistogram", value: float) -> HistogramNode:
        limit = histogram.count_per_node_limit
        if self.min_value <= value <= self.max_value:
            if self.count < limit:
                self.count += 1
                return self
            return self._split_in_range(value)

        if self.count < limit:
            # Split nodes above only route an out-of-range value to the
            # outermost bucket on that side, so widening keeps the partition.
            self.count += 1
            if value < self.min_value:
                self.min_value = value
            if value > self.max_value:
                self.max_value = value
            return self
        return self._split_out_of_range(value)

    def _split_in_range(self, value: float) -> "SplitNode":
        # Assume the current count is spread uniformly over the range.
        split_value = midpoint(self.min_value, self.max_value)
        right_count = self.count // 2
        left_count = right_count
        count_was_odd = left_count + right_count < self.count
        # The odd unit goes to the side that does not receive the new value.
        if value > split_value:
            right_count += 1
            left_count += 1 if count_was_odd else 0
        else:
            left_count += 1
            right_count += 1 if count_was_odd else 0
        logger.debug(
            "splitting full bucket [%r, %r] at %r into %d + %d",
            self.min_value, self.max_value, split_value, left_count, right_count,
        )
        return SplitNode(
            split_value,
            BucketNode(left_count, self.min_value, split_value),
            BucketNode(right_count, split_value, self.max_value),
        )

    def _split_out_of_range(self, value: float) -> "SplitNode":
        if value < self.min_value:
            boundary = min(self.min_value, midpoint(value, self.max_value))
            self.min_value = boundary
            logger.debug("prepending bucket [%r, %r] before full bucket", value, boundary)
            return SplitNode(boundary, BucketNode(1, value, boundary), self)
        boundary = max(self.max_value, midpoint(self.min_value, value))
        self.max_value = boundary
        logger.debug("appending bucket [%r, %r] after full bucket", boundary, value)
        return SplitNode(boundary, self, BucketNode(1, boundary, value))

    def count_at(self, value: float) -> int:
        if self.min_value <= value <= self.max_value:
            return self.count
        return 0

    def accum_count_at(self, value: float) -> int:
        if value >= self.min_value:
            return self.count
        return 0

    def value_for_accum_count(self, accumulator: List[float]) -> Optional[float]:
        running, target = accumulator[0], accumulator[1]
        result: Optional[float] = None
        if self.count and running <= target <= running + self.count:
            result = interpolate(running, self.min_value, running + self.count, self.max_value, target)
        accumulator[0] += self.count
        return result

    def apply_conversion(self, conversion: ValueConversion) -> None:
        if self.is_empty:
            return
        self.min_value = conversion(self.min_value)
        self.max_value = conversion(self.max_value)

    def show(self, level: int = 0, file: Optional[TextIO] = None) -> None:
        out = file if file is not None else sys.stdout
        print(f"{self._margin(level)}Data: {self.count} ({self.min_value}-{self.max_value})", file=out)

    def leaves(self) -> Iterator["BucketNode"]:
        yield self

    def as_tuple(self) -> Tuple[int, float, float]:
        return self.count, self.min_value, self.max_value


class SplitNode(HistogramNode):
    """Fork routing values ``<= split_value`` left and the rest right.

    Descent is written as loops rather than recursion: a long run of one
    repeated value keeps splitting the same bucket and can build a chain
    far deeper than the interpreter's recursion limit.
    """

    __slots__ = ("split_value", "left", "right")

    def __init__(self, split_value: float, left: HistogramNode, right: HistogramNode) -> None:
        self.split_value = split_value
        self.left = left
        self.right = right

    def __repr__(self) -> str:
        return f"SplitNode(split_value={self.split_value!r})"

    def _child_for(self, value: float) -> HistogramNode:
        return self.left if value <= self.split_value else self.right

    def _descend(self, value: float) -> Tuple["SplitNode", BucketNode]:
        """Walk to the bucket responsible for ``value``; return it and its parent."""
        parent = self
        child = parent._child_for(value)
        while isinstance(child, SplitNode):
            parent = child
            child = parent._child_for(value)
        assert isinstance(child, BucketNode)
        return parent, child

    def insert(self, histogram: "AdaptiveHistogram", value: float) -> HistogramNode:
        parent, bucket = self._descend(value)
        replacement = bucket.insert(histogram, value)
        if replacement is not bucket:
            if parent.left is bucket:
                parent.left = replacement
            else:
                parent.right = replacement
        return self

    def count_at(self, value: float) -> int:
        _, bucket = self._descend(value)
        return bucket.count_at(value)

    def accum_count_at(self, value: float) -> int:
        node: HistogramNode = self
        while isinstance(node, SplitNode):
            # The right subtree's first bucket starts exactly at split_value.
            node = node.right if value >= node.split_value else node.left
        return node.accum_count_at(value)

    def value_for_accum_count(self, accumulator: List[float]) -> Optional[float]:
        for bucket in self.leaves():
            result = bucket.value_for_accum_count(accumulator)
            if result is not None:
                return result
        return None

    def apply_conversion(self, conversion: ValueConversion) -> None:
        stack: List[HistogramNode] = [self]
        while stack:
            node = stack.pop()
            if isinstance(node, SplitNode):
                node.split_value = conversion(node.split_value)
                stack.append(node.right)
                stack.append(node.left)
            else:
                node.apply_conversion(conversion)

    def show(self, level: int = 0, file: Optional[TextIO] = None) -> None:
        out = file if file is not None else sys.stdout
        stack: List[Tuple[HistogramNode, int]] = [(self, level)]
        while stack:
            node, depth = stack.pop()
            if isinstance(node, SplitNode):
                print(f"{self._margin(depth)}Split: {node.split_value}", file=out)
                stack.append((node.right, depth + 1))
                stack.append((node.left, depth + 1))
            else:
                node.show(depth, out)

    def leaves(self) -> Iterator[BucketNode]:
        stack: List[HistogramNode] = [self]
        while stack:
            node = stack.pop()
            if isinstance(node, SplitNode):
                stack.append(node.right)
                stack.append(node.left)
            else:
                assert isinstance(node, BucketNode)
                yield node


def midpoint(a: float, b: float) -> float:
    """Midpoint of two finite floats, without overflowing near the float maximum."""
    mid = (a + b) / 2
    if math.isinf(mid):
        mid = a / 2 + b / 2
    return mid


def position(x0: float, x1: float, x: float) -> float:
    """Fraction of the way from ``x0`` to ``x1`` at which ``x`` lies."""
    width = x1 - x0
    if math.isinf(width):
        return (x / 2 - x0 / 2) / (x1 / 2 - x0 / 2)
    return (x - x0) / width


def interpolate(x0: float, y0: float, x1: float, y1: float, x: float) -> float:
    """Linear interpolation of y at x on the segment (x0, y0)-(x1, y1), with ``y0 <= y1``."""
    t = position(x0, x1, x)
    span = y1 - y0
    if math.isinf(span):
        # Segment wider than the largest float.
        result = (1 - t) * y0 + t * y1
    else:
        result = y0 + t * span
    return min(max(result, y0), y1)
