"""Feature model for splicing analysis.

Transcripts own an ordered list of exons in genomic (left to right) order
regardless of strand. Exons may be shared by several transcripts of the
same gene; each exon keeps a non-owning back-reference list of the
transcripts that contain it, used only for reporting. Introns are
synthesized per transcript from consecutive exons and never shared.

Example:
    >>> gene = Gene("G1")
    >>> t = Transcript("T1", chromosome="1", strand=1, gene=gene)
    >>> t.add_exon(TranscriptFeature.exon("E1", 1, 100, "1", 1))
    >>> t.add_exon(TranscriptFeature.exon("E2", 201, 300, "1", 1))
    >>> [(f.start, f.end) for f in t.transcript_features()]
    [(1, 100), (101, 200), (201, 300)]
"""

from __future__ import annotations

import bisect
import logging
from enum import Enum

import attrs

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

PLUS_STRAND = 1
MINUS_STRAND = -1

STRAND_SYMBOLS = {PLUS_STRAND: "+", MINUS_STRAND: "-"}


class FeatureType(Enum):
    """Kind of genomic feature."""

    EXON = "exon"
    INTRON = "intron"
    TRANSCRIPT = "transcript"


def parse_strand(symbol: str) -> int:
    """Convert a strand symbol (+ or -) to +1/-1.

    Raises:
        ValueError: If the symbol is not a valid strand.
    """
    if symbol == "+":
        return PLUS_STRAND
    if symbol == "-":
        return MINUS_STRAND
    raise ValueError(f"Invalid strand: {symbol!r}")


def strand_symbol(strand: int) -> str:
    """Convert +1/-1 to a strand symbol."""
    return STRAND_SYMBOLS.get(strand, ".")


# =============================================================================
# Data Models
# =============================================================================


@attrs.define(slots=True, eq=False)
class Coordinates:
    """A 1-based, inclusive genomic span.

    Attributes:
        start: First base of the span.
        end: Last base of the span.
    """

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def overlaps(self, other: Coordinates) -> bool:
        return max(self.start, other.start) <= min(self.end, other.end)

    def merge_coordinates(self, start: int, end: int) -> None:
        """Widen the span to include (start, end)."""
        self.start = min(self.start, start)
        self.end = max(self.end, end)


@attrs.define(slots=True, eq=False)
class Feature(Coordinates):
    """A located genomic feature.

    Attributes:
        chromosome: Chromosome / scaffold name.
        strand: +1 or -1.
        feature_type: Kind of feature.
        identifier: Feature identifier, may be empty.
        index: Assignment order, used only for display.
    """

    chromosome: str = ""
    strand: int = PLUS_STRAND
    feature_type: FeatureType = FeatureType.EXON
    identifier: str = ""
    index: int = 0

    @property
    def is_exon(self) -> bool:
        return self.feature_type is FeatureType.EXON

    @property
    def is_intron(self) -> bool:
        return self.feature_type is FeatureType.INTRON

    @property
    def strand_symbol(self) -> str:
        return strand_symbol(self.strand)


@attrs.define(slots=True, eq=False)
class TranscriptFeature(Feature):
    """An exon or intron belonging to one or more transcripts.

    Attributes:
        transcripts: Transcripts containing this feature (non-owning).
    """

    transcripts: list[Transcript] = attrs.field(factory=list, repr=False)

    @classmethod
    def exon(
        cls,
        identifier: str,
        start: int,
        end: int,
        chromosome: str = "",
        strand: int = PLUS_STRAND,
        index: int = 0,
    ) -> TranscriptFeature:
        """Create an exon."""
        return cls(
            start=start,
            end=end,
            chromosome=chromosome,
            strand=strand,
            feature_type=FeatureType.EXON,
            identifier=identifier,
            index=index,
        )

    @classmethod
    def intron(
        cls,
        identifier: str,
        start: int,
        end: int,
        chromosome: str = "",
        strand: int = PLUS_STRAND,
        index: int = 0,
    ) -> TranscriptFeature:
        """Create an intron."""
        return cls(
            start=start,
            end=end,
            chromosome=chromosome,
            strand=strand,
            feature_type=FeatureType.INTRON,
            identifier=identifier,
            index=index,
        )

    @property
    def transcript_ids(self) -> list[str]:
        """Identifiers of the supporting transcripts, without duplicates."""
        seen: list[str] = []
        for transcript in self.transcripts:
            if transcript.identifier not in seen:
                seen.append(transcript.identifier)
        return seen

    def add_transcript(self, transcript: Transcript) -> None:
        if not any(t is transcript for t in self.transcripts):
            self.transcripts.append(transcript)


@attrs.define(slots=True, frozen=True)
class Gene:
    """A gene, referenced by transcripts and events.

    Attributes:
        identifier: Gene identifier.
    """

    identifier: str


@attrs.define(slots=True, eq=False)
class Transcript:
    """A transcript and its exon structure.

    Exons are kept in genomic order whatever the strand; ``start`` and
    ``end`` always cover the outermost exons.

    Attributes:
        identifier: Transcript identifier.
        chromosome: Chromosome / scaffold name.
        strand: +1 or -1.
        gene: Gene the transcript belongs to.
        exons: Exons in genomic order.
        start: Minimum exon start (0 while the transcript has no exons).
        end: Maximum exon end.
    """

    identifier: str
    chromosome: str = ""
    strand: int = PLUS_STRAND
    gene: Gene | None = None
    exons: list[TranscriptFeature] = attrs.Factory(list)
    start: int = 0
    end: int = 0
    _features: list[TranscriptFeature] | None = attrs.field(default=None, init=False, repr=False)

    def __attrs_post_init__(self) -> None:
        exons, self.exons = self.exons, []
        for exon in exons:
            self.add_exon(exon)

    @property
    def gene_id(self) -> str:
        return self.gene.identifier if self.gene is not None else ""

    @property
    def exon_count(self) -> int:
        return len(self.exons)

    def add_exon(self, exon: TranscriptFeature) -> None:
        """Add an exon, keeping genomic order and span up to date.

        The transcript is also registered in the exon's back-references.
        """
        bisect.insort(self.exons, exon, key=lambda e: (e.start, e.end))

        if self.start == 0 or exon.start < self.start:
            self.start = exon.start
        if exon.end > self.end:
            self.end = exon.end

        exon.add_transcript(self)
        self._features = None

    def transcript_features(self) -> list[TranscriptFeature]:
        """Return exons interleaved with synthesized introns, in genomic order.

        For n exons this is 2n-1 features. Each intron spans exactly the
        bases between its two flanking exons. The result is cached until
        the next call to :meth:`add_exon`.
        """
        if self._features is not None:
            return self._features

        features: list[TranscriptFeature] = []
        previous: TranscriptFeature | None = None

        for number, exon in enumerate(self.exons, start=1):
            if previous is not None:
                intron = TranscriptFeature.intron(
                    identifier=f"intron{number - 1}-{number}",
                    start=previous.end + 1,
                    end=exon.start - 1,
                    chromosome=self.chromosome,
                    strand=self.strand,
                    index=number - 1,
                )
                intron.transcripts.append(self)
                features.append(intron)
            features.append(exon)
            previous = exon

        self._features = features
        return features

    def features_in_transcription_order(self) -> list[TranscriptFeature]:
        """Return :meth:`transcript_features` ordered 5' to 3'."""
        features = self.transcript_features()
        if self.strand == MINUS_STRAND:
            return features[::-1]
        return list(features)
