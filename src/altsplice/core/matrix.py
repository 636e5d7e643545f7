"""Overlap matrix between the features of two transcripts.

Rows index the features of transcript A and columns the features of
transcript B, both in transcription order (5' to 3'), so index 0 is always
the first exon. Every feature is projected into the relative coordinate
system of the pair before comparison, which makes all downstream tests
strand-agnostic.

Overlap codes are bit sets. Every overlapping code carries the OVERLAP bit;
ID5P and ID3P flag identical relative starts and ends:

    NO_OVERLAP   0   0b0000
    OVERLAP      4   0b0100
    PART_OF     12   0b1100  one feature strictly contains the other
    ID5P_DIFF3P 13   0b1101  same 5' end, different 3' end
    DIFF5P_ID3P 14   0b1110  different 5' end, same 3' end
    ID5P_ID3P   15   0b1111  identical

Example:
    >>> matrix = build_matrix(t1, t2)
    >>> matrix.code(0, 0) == ID5P_ID3P
    True
"""

from __future__ import annotations

import logging

import numpy as np

from altsplice.core.exceptions import GeneProcessingError, InvalidTranscriptPair
from altsplice.core.models import Transcript, TranscriptFeature
from altsplice.utils.intervals import Interval, referential_position, to_relative, to_relative_arrays

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

NO_OVERLAP = 0
ID5P = 1
ID3P = 2
OVERLAP = 4
PART_OF = 12
ID5P_DIFF3P = 13
DIFF5P_ID3P = 14
ID5P_ID3P = 15


# =============================================================================
# Overlap Codes
# =============================================================================


def overlap_code(start1: int, end1: int, start2: int, end2: int) -> int:
    """Classify how two intervals overlap.

    Args:
        start1: Start of the first interval.
        end1: End of the first interval.
        start2: Start of the second interval.
        end2: End of the second interval.

    Returns:
        One of the overlap code constants.
    """
    if max(start1, start2) > min(end1, end2):
        return NO_OVERLAP

    if start1 == start2:
        return ID5P_ID3P if end1 == end2 else ID5P_DIFF3P
    if end1 == end2:
        return DIFF5P_ID3P
    if (start1 < start2 and end1 > end2) or (start2 < start1 and end2 > end1):
        return PART_OF
    return OVERLAP


def overlap_codes(
    starts1: np.ndarray,
    ends1: np.ndarray,
    starts2: np.ndarray,
    ends2: np.ndarray,
) -> np.ndarray:
    """Vectorized :func:`overlap_code` over all pairs of two interval sets.

    Returns:
        int8 array of shape (len(starts1), len(starts2)).
    """
    s1 = np.asarray(starts1)[:, None]
    e1 = np.asarray(ends1)[:, None]
    s2 = np.asarray(starts2)[None, :]
    e2 = np.asarray(ends2)[None, :]

    overlapping = np.maximum(s1, s2) <= np.minimum(e1, e2)
    same_start = s1 == s2
    same_end = e1 == e2
    contains = ((s1 < s2) & (e1 > e2)) | ((s2 < s1) & (e2 > e1))

    codes = np.select(
        [same_start & same_end, same_start, same_end, contains],
        [ID5P_ID3P, ID5P_DIFF3P, DIFF5P_ID3P, PART_OF],
        default=OVERLAP,
    )
    return np.where(overlapping, codes, NO_OVERLAP).astype(np.int8)


# =============================================================================
# Matrix
# =============================================================================


class OverlapMatrix:
    """Overlap codes between every feature of two transcripts.

    Attributes:
        transcript_a: Row transcript.
        transcript_b: Column transcript.
        strand: Common strand of the pair.
        referential_position: Anchor of the relative coordinates.
        features_a: Row features in transcription order.
        features_b: Column features in transcription order.
        starts_a, ends_a: Relative coordinates of the row features.
        starts_b, ends_b: Relative coordinates of the column features.
        codes: int8 array of overlap codes, shape (x_size, y_size).
    """

    def __init__(self, transcript_a: Transcript, transcript_b: Transcript) -> None:
        self.transcript_a = transcript_a
        self.transcript_b = transcript_b
        self.strand = transcript_a.strand
        self.referential_position = referential_position(
            self.strand,
            starts=(transcript_a.start, transcript_b.start),
            ends=(transcript_a.end, transcript_b.end),
        )

        self.features_a = transcript_a.features_in_transcription_order()
        self.features_b = transcript_b.features_in_transcription_order()

        self.starts_a, self.ends_a = self._project(self.features_a)
        self.starts_b, self.ends_b = self._project(self.features_b)

        self.codes = overlap_codes(self.starts_a, self.ends_a, self.starts_b, self.ends_b)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Overlap matrix %s <=> %s\n%s",
                transcript_a.identifier,
                transcript_b.identifier,
                self.render(),
            )

    def _project(self, features: list[TranscriptFeature]) -> tuple[np.ndarray, np.ndarray]:
        starts = np.fromiter((f.start for f in features), dtype=np.int64, count=len(features))
        ends = np.fromiter((f.end for f in features), dtype=np.int64, count=len(features))
        return to_relative_arrays(starts, ends, self.referential_position, self.strand)

    @property
    def x_size(self) -> int:
        return len(self.features_a)

    @property
    def y_size(self) -> int:
        return len(self.features_b)

    @property
    def shape(self) -> tuple[int, int]:
        return self.x_size, self.y_size

    @property
    def gene_id(self) -> str:
        return self.transcript_a.gene_id

    def code(self, i: int, j: int) -> int:
        """Return the overlap code at row i, column j.

        Raises:
            GeneProcessingError: If (i, j) is outside the matrix.
        """
        if not (0 <= i < self.x_size and 0 <= j < self.y_size):
            raise GeneProcessingError(
                f"Overlap matrix index ({i}, {j}) out of bounds {self.shape}",
                gene_id=self.gene_id,
                transcript_ids=(self.transcript_a.identifier, self.transcript_b.identifier),
            )
        return int(self.codes[i, j])

    def relative(self, start: int, end: int) -> Interval:
        """Project a genomic interval into the coordinates of this pair."""
        return to_relative(start, end, self.referential_position, self.strand)

    def relative_a(self, i: int) -> Interval:
        return Interval(int(self.starts_a[i]), int(self.ends_a[i]))

    def relative_b(self, j: int) -> Interval:
        return Interval(int(self.starts_b[j]), int(self.ends_b[j]))

    def cells(self) -> list[tuple[int, int]]:
        """Return the (row, column) of every overlapping cell, row-major."""
        rows, cols = np.nonzero(self.codes)
        return [(int(i), int(j)) for i, j in zip(rows, cols)]

    def render(self) -> str:
        """Render the code matrix as text, one row per line."""
        lines = [" X " + "".join(f"{j:>2} " for j in range(self.y_size))]
        for i in range(self.x_size):
            lines.append(f"{i:>2} " + "".join(f"{int(c):>2} " for c in self.codes[i]))
        return "\n".join(lines)


def build_matrix(transcript_a: Transcript, transcript_b: Transcript) -> OverlapMatrix:
    """Build the overlap matrix of two transcripts of the same gene.

    Args:
        transcript_a: Row transcript.
        transcript_b: Column transcript.

    Returns:
        The overlap matrix.

    Raises:
        InvalidTranscriptPair: If either transcript has no exons, or the
            transcripts differ in gene, chromosome or strand.
    """
    ids = (transcript_a.identifier, transcript_b.identifier)

    for transcript in (transcript_a, transcript_b):
        if not transcript.exons:
            raise InvalidTranscriptPair(f"Transcript {transcript.identifier} has no exons", *ids)

    if transcript_a.gene_id != transcript_b.gene_id:
        raise InvalidTranscriptPair(
            f"Transcripts belong to different genes: {transcript_a.gene_id} / {transcript_b.gene_id}",
            *ids,
        )
    if transcript_a.chromosome != transcript_b.chromosome:
        raise InvalidTranscriptPair(
            f"Transcripts are on different chromosomes: "
            f"{transcript_a.chromosome} / {transcript_b.chromosome}",
            *ids,
        )
    if transcript_a.strand != transcript_b.strand:
        raise InvalidTranscriptPair("Transcripts are on different strands", *ids)

    return OverlapMatrix(transcript_a, transcript_b)
