"""Strand-aware relative coordinate projection.

Comparisons between features of one gene are made in a coordinate system
anchored at a referential position, so that position 1 is the
transcription start on both strands:

- plus strand: the anchor is the minimum start, and
  ``rel = (start - ref + 1, end - ref + 1)``
- minus strand: the anchor is the maximum end, and
  ``rel = (ref - end + 1, ref - start + 1)``

Example:
    >>> ref = referential_position(-1, starts=[100, 300], ends=[200, 400])
    >>> to_relative(300, 400, ref, -1)
    Interval(start=1, end=101)
"""

from __future__ import annotations

from typing import Iterable, NamedTuple

import numpy as np

# =============================================================================
# Data Structures
# =============================================================================


class Interval(NamedTuple):
    """A 1-based, inclusive interval.

    Attributes:
        start: First position.
        end: Last position.
    """

    start: int
    end: int

    @property
    def length(self) -> int:
        """Get interval length."""
        return self.end - self.start + 1

    def overlaps(self, other: Interval) -> bool:
        """Check if this interval shares at least one position with another."""
        return max(self.start, other.start) <= min(self.end, other.end)


# =============================================================================
# Projection
# =============================================================================


def referential_position(strand: int, starts: Iterable[int], ends: Iterable[int]) -> int:
    """Compute the anchor of the relative coordinate system.

    Args:
        strand: +1 or -1.
        starts: Start coordinates considered.
        ends: End coordinates considered.

    Returns:
        min(starts) on the plus strand, max(ends) on the minus strand.
    """
    if strand == 1:
        return min(starts)
    return max(ends)


def to_relative(start: int, end: int, reference: int, strand: int) -> Interval:
    """Project a genomic interval to relative coordinates."""
    if strand == 1:
        return Interval(start - reference + 1, end - reference + 1)
    return Interval(reference - end + 1, reference - start + 1)


def to_relative_arrays(
    starts: np.ndarray,
    ends: np.ndarray,
    reference: int,
    strand: int,
) -> tuple[np.ndarray, np.ndarray]:
    """Vectorized :func:`to_relative`.

    Args:
        starts: Genomic starts.
        ends: Genomic ends.
        reference: Referential position.
        strand: +1 or -1.

    Returns:
        Tuple of (relative starts, relative ends) as int64 arrays.
    """
    starts = np.asarray(starts, dtype=np.int64)
    ends = np.asarray(ends, dtype=np.int64)
    if strand == 1:
        return starts - reference + 1, ends - reference + 1
    return reference - ends + 1, reference - starts + 1
