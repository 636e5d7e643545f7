"""Per-gene splicing analysis.

For each gene, the transcripts are merged into a region chunk to find
constitutive exons, then every unordered pair of transcripts is compared
once and the pair events are folded into one gene-level container.

Example:
    >>> finder = GeneEventFinder(Config(relaxed=True))
    >>> stats = RunStatistics()
    >>> for record in read_gtf("genes.gtf"):
    ...     result = finder.process_gene(record.gene, record.transcripts)
    ...     stats.record(result)
"""

from __future__ import annotations

import itertools
import logging
from typing import Sequence

import attrs

from altsplice.config import Config
from altsplice.core.chunks import RegionChunk
from altsplice.core.classify import compute_splicing_events
from altsplice.core.events import BUCKET_ORDER, EventType, SplicingEvent, SplicingEventContainer, merge_into
from altsplice.core.exceptions import GeneProcessingError, InvalidTranscriptPair
from altsplice.core.matrix import build_matrix
from altsplice.core.models import Gene, Transcript

logger = logging.getLogger(__name__)


# =============================================================================
# Results
# =============================================================================


@attrs.define(slots=True)
class GeneResult:
    """Outcome of processing one gene.

    Attributes:
        gene: The gene.
        transcript_count: Number of transcripts of the gene.
        events: Merged pairwise events.
        constitutive_exons: CNE events.
        skipped_pairs: Transcript pairs rejected as invalid.
        error: Message of the error that aborted the gene, if any.
    """

    gene: Gene
    transcript_count: int
    events: SplicingEventContainer = attrs.Factory(SplicingEventContainer)
    constitutive_exons: list[SplicingEvent] = attrs.Factory(list)
    skipped_pairs: list[tuple[str, str]] = attrs.Factory(list)
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@attrs.define(slots=True)
class RunStatistics:
    """Cumulative statistics over all processed genes.

    Attributes:
        genes: Genes processed.
        genes_with_several_transcripts: Genes with more than one transcript.
        genes_with_events: Genes with at least one pairwise event.
        failed_genes: Genes aborted on an internal error.
        counts: Events per bucket type, plus CNE.
    """

    genes: int = 0
    genes_with_several_transcripts: int = 0
    genes_with_events: int = 0
    failed_genes: int = 0
    counts: dict[str, int] = attrs.Factory(
        lambda: {t.value: 0 for t in (*BUCKET_ORDER, EventType.CNE)}
    )

    @property
    def event_count(self) -> int:
        """Number of pairwise events (constitutive exons excluded)."""
        return sum(count for tag, count in self.counts.items() if tag != EventType.CNE.value)

    def record(self, result: GeneResult) -> None:
        self.genes += 1
        if result.transcript_count > 1:
            self.genes_with_several_transcripts += 1
        if result.failed:
            self.failed_genes += 1

        self.counts[EventType.CNE.value] += len(result.constitutive_exons)

        if result.events:
            self.genes_with_events += 1
            for tag, count in result.events.summary().items():
                self.counts[tag] += count

    def percentage(self, tag: str) -> int:
        total = self.event_count
        return 100 * self.counts[tag] // total if total else 0

    def rows(self) -> list[tuple[str, str]]:
        """Statistics as (label, value) pairs, in report order."""
        rows = [
            ("Genes parsed", str(self.genes)),
            ("Genes with multiple transcripts", str(self.genes_with_several_transcripts)),
            ("Genes with events", str(self.genes_with_events)),
            ("Genes failed", str(self.failed_genes)),
            ("Splicing events", str(self.event_count)),
        ]
        if self.event_count:
            for event_type in BUCKET_ORDER:
                tag = event_type.value
                rows.append(
                    (f"{event_type.long_name.capitalize()} events", f"{self.counts[tag]} ({self.percentage(tag)}%)")
                )
        rows.append(("Constitutive exons", str(self.counts[EventType.CNE.value])))
        return rows

    def summary_lines(self) -> list[str]:
        """Render the statistics as tab-separated report lines."""
        return [f"{label}:\t{value}" for label, value in self.rows()]


# =============================================================================
# Gene Processing
# =============================================================================


class GeneEventFinder:
    """Find splicing events and constitutive exons gene by gene.

    Attributes:
        config: Run configuration.
    """

    def __init__(self, config: Config | None = None) -> None:
        self.config = config or Config()

    def process_gene(self, gene: Gene, transcripts: Sequence[Transcript]) -> GeneResult:
        """Process all transcripts of one gene.

        Invalid transcript pairs are skipped with a warning. Transcripts
        on another strand or of another gene are left out of the
        constitutive exon count. An internal
        error abandons the gene: the result carries the error message and
        no events.

        Args:
            gene: The gene.
            transcripts: All transcripts of the gene.

        Returns:
            The gene result.
        """
        ordered = sorted(transcripts, key=lambda t: t.identifier)
        result = GeneResult(gene=gene, transcript_count=len(ordered))

        try:
            region = RegionChunk()
            for transcript in ordered:
                region.merge_transcript(transcript)
            result.constitutive_exons = region.check_constitutive_exon(len(ordered) - len(region.rejected_ids))

            if not self.config.constitutives_only:
                self._compare_pairs(ordered, result)
        except GeneProcessingError as e:
            ids = ", ".join(e.transcript_ids) or ", ".join(t.identifier for t in ordered)
            logger.error(f"Aborting gene {gene.identifier} (transcripts {ids}): {e.message}")
            return GeneResult(gene=gene, transcript_count=len(ordered), error=str(e))

        logger.info(
            f"Gene {gene.identifier}: {len(ordered)} transcripts, "
            f"{result.events.event_count()} events, {len(result.constitutive_exons)} constitutive exons"
        )
        return result

    def _compare_pairs(self, transcripts: Sequence[Transcript], result: GeneResult) -> None:
        for t1, t2 in itertools.combinations(transcripts, 2):
            if t1.identifier == t2.identifier:
                continue

            logger.debug(f"{t1.identifier} <=> {t2.identifier}")

            try:
                matrix = build_matrix(t1, t2)
            except InvalidTranscriptPair as e:
                logger.warning(f"Skipping transcript pair: {e}")
                result.skipped_pairs.append((t1.identifier, t2.identifier))
                continue

            pair_events = compute_splicing_events(matrix, relaxed=self.config.relaxed)
            merge_into(result.events, pair_events)
