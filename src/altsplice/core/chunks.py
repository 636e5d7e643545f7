"""Gene-wide exon chunks and constitutive exon detection.

All exons of all transcripts of a gene are merged into an ordered list of
non-overlapping chunks. An exon coordinate pair found in a chunk once per
transcript of the gene is a constitutive exon.
"""

from __future__ import annotations

import logging
from collections import Counter

import attrs

from altsplice.core.events import EventType, Site, SplicingEvent
from altsplice.core.models import Gene, Transcript, TranscriptFeature
from altsplice.utils.intervals import Interval, referential_position, to_relative

logger = logging.getLogger(__name__)


@attrs.define(slots=True, eq=False)
class ExonChunk:
    """A merged exonic interval and the exons that contributed to it.

    Attributes:
        start: Genomic start of the chunk.
        end: Genomic end of the chunk.
        exons: Contributing exons, one entry per transcript occurrence.
    """

    start: int
    end: int
    exons: list[TranscriptFeature] = attrs.Factory(list)


class RegionChunk:
    """Exonic structure of one gene, merged across its transcripts.

    Chunks are kept in transcription order, which is descending genomic
    order on the minus strand.

    Attributes:
        strand: Gene strand.
        gene: Gene whose transcripts are merged.
        start: Minimum start of the merged transcripts (0 when empty).
        end: Maximum end of the merged transcripts.
        referential_position: Anchor of the relative coordinates.
        transcript_ids: Transcripts whose exons were merged.
        rejected_ids: Transcripts left out for another strand or gene.
        chunks: Ordered exon chunks.
        constitutive_exon_events: CNE events from the last check.

    Example:
        >>> region = RegionChunk()
        >>> for transcript in transcripts:
        ...     region.merge_transcript(transcript)
        >>> events = region.check_constitutive_exon(len(transcripts))
    """

    def __init__(self) -> None:
        self.strand = 1
        self.gene: Gene | None = None
        self.start = 0
        self.end = 0
        self.referential_position = 0
        self.transcript_ids: list[str] = []
        self.rejected_ids: list[str] = []
        self.chunks: list[ExonChunk] = []
        self.constitutive_exon_events: list[SplicingEvent] = []

    def _relative(self, start: int, end: int) -> Interval:
        return to_relative(start, end, self.referential_position, self.strand)

    def merge_transcript(self, transcript: Transcript) -> None:
        """Merge the exons of a transcript into the chunk list.

        An exon falling between chunks becomes a new chunk at its sorted
        position; an exon overlapping chunks replaces them with one chunk
        spanning all of them.

        A transcript on another strand or of another gene than the first
        merged one is left out of the region and listed in
        :attr:`rejected_ids`.
        """
        if self.gene is not None:
            if transcript.strand != self.strand or transcript.gene_id != self.gene.identifier:
                logger.warning(
                    f"Transcript {transcript.identifier} does not share the strand and gene of "
                    f"region {self.gene.identifier}, left out of the region"
                )
                self.rejected_ids.append(transcript.identifier)
                return
        else:
            self.strand = transcript.strand
            self.gene = transcript.gene

        if not transcript.exons:
            logger.warning(f"Transcript {transcript.identifier} has no exons, nothing to merge")
            return

        self.transcript_ids.append(transcript.identifier)
        self.start = transcript.start if self.start == 0 else min(self.start, transcript.start)
        self.end = max(self.end, transcript.end)
        self.referential_position = referential_position(self.strand, (self.start,), (self.end,))

        logger.debug(f"Merging transcript {transcript.identifier} into region chunk")

        for feature in transcript.features_in_transcription_order():
            if feature.is_exon:
                self._insert_exon(feature)

        if logger.isEnabledFor(logging.DEBUG):
            layout = " ".join(f"[{r.start}-{r.end}]" for r in (self._relative(c.start, c.end) for c in self.chunks))
            logger.debug(f"Region chunks: {layout}")

    def _insert_exon(self, exon: TranscriptFeature) -> None:
        feature = self._relative(exon.start, exon.end)
        merged = ExonChunk(exon.start, exon.end)

        first = -1
        last = -1

        for index, chunk in enumerate(self.chunks):
            current = self._relative(chunk.start, chunk.end)

            if current.start > feature.end:
                if first < 0:
                    first = index
                break

            if current.overlaps(feature):
                if first < 0:
                    first = index
                last = index
                merged.start = min(merged.start, chunk.start)
                merged.end = max(merged.end, chunk.end)
                merged.exons.extend(chunk.exons)

        merged.exons.append(exon)

        if last >= 0:
            del self.chunks[first : last + 1]

        if first >= 0:
            self.chunks.insert(first, merged)
        else:
            self.chunks.append(merged)

    def check_constitutive_exon(self, transcript_count: int) -> list[SplicingEvent]:
        """Find exon coordinates present in every transcript.

        Args:
            transcript_count: Number of transcripts of the gene.

        Returns:
            One CNE event per constitutive coordinate pair, also stored in
            :attr:`constitutive_exon_events`.
        """
        self.constitutive_exon_events = []

        if not self.chunks:
            logger.error("Constitutive exon check: no exon chunks")
            return self.constitutive_exon_events
        if self.gene is None:
            logger.error("Constitutive exon check: no gene information available")
            return self.constitutive_exon_events

        logger.debug(
            f"Looking for constitutive exons on {transcript_count} transcripts of gene {self.gene.identifier}"
        )

        for chunk in self.chunks:
            tally = Counter((exon.start, exon.end) for exon in chunk.exons)

            for coordinates, count in tally.items():
                if count != transcript_count:
                    continue

                exons: list[TranscriptFeature] = []
                for exon in chunk.exons:
                    if (exon.start, exon.end) == coordinates and all(
                        e.identifier != exon.identifier for e in exons
                    ):
                        exons.append(exon)

                reference = exons[0]
                event = SplicingEvent(
                    event_type=EventType.CNE,
                    start=reference.start,
                    end=reference.end,
                    chromosome=reference.chromosome,
                    strand=reference.strand,
                    gene=self.gene,
                    constitutive_exons=exons,
                    constitutive_sites=[Site.of(reference)],
                )
                self.constitutive_exon_events.append(event)

        logger.debug(f"Found {len(self.constitutive_exon_events)} constitutive exons")
        return self.constitutive_exon_events
