"""GFF report of splicing events.

Each event is written as one GFF line. The attribute column lists, in
order: identifiers, type-specific measures, the differing features with
the transcripts supporting them, the site lists, the constitutive exons and
the transcript pairs:

    1  Ensembl  CE  101  400  .  +  .  ID=G1-CE-1; Derives_from=G1; Name=cassette exon;
    NbCrypticExons=1; FeaturesA=E2[T1:T2]; SitesA=e(201-300); Pair=T2,T1;

Example:
    >>> with EventGFFWriter("events.gff") as writer:
    ...     writer.write_gene(result.constitutive_exons, result.events)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Sequence, TextIO

from altsplice.config import DEFAULT_DATASOURCE
from altsplice.core.events import BUCKET_ORDER, EventType, Site, SplicingEvent, SplicingEventContainer, bucket_type
from altsplice.core.models import TranscriptFeature

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

# Types whose FeaturesA transcripts come from both members of each pair
BOTH_ROLE_TYPES = frozenset({EventType.AI, EventType.AT, EventType.CE})


# =============================================================================
# Formatting
# =============================================================================


def supporting_transcripts(feature: TranscriptFeature, allowed: Sequence[str]) -> str:
    """Identifiers of the transcripts containing ``feature``, among ``allowed``."""
    return ":".join(tid for tid in feature.transcript_ids if tid in allowed)


def format_features(features: Sequence[TranscriptFeature], allowed: Sequence[str]) -> str:
    return ",".join(f"{f.identifier}[{supporting_transcripts(f, allowed)}]" for f in features)


def format_sites(sites: Sequence[Site]) -> str:
    return ",".join(site.format() for site in sites)


def event_measures(event: SplicingEvent) -> list[str]:
    """Type-specific attributes of an event."""
    if event.event_type is EventType.CE:
        return [f"NbCrypticExons={len(event.set_a)}"]

    if event.event_type is EventType.IR:
        return [f"NbIntrons={len(event.set_b) - 1}"]

    if event.event_type not in (EventType.EI, EventType.A3SS, EventType.A5SS):
        return []
    if not (event.set_a and event.set_b):
        return []

    a, b = event.set_a[0], event.set_b[0]
    starts = abs(a.start - b.start)
    ends = abs(a.end - b.end)
    shift3 = starts if event.strand == 1 else ends
    shift5 = ends if event.strand == 1 else starts

    measures = []
    if event.event_type in (EventType.EI, EventType.A3SS):
        measures.append(f"3pModification={shift3}bp")
    if event.event_type in (EventType.EI, EventType.A5SS):
        measures.append(f"5pModification={shift5}bp")
    return measures


def format_event_attributes(event: SplicingEvent, number: int) -> str:
    """Build the attribute column of an event line.

    Args:
        event: The event.
        number: Rank of the event within its type for the gene (1-based).

    Returns:
        The attribute column.
    """
    gene_id = event.gene_id
    parts = [
        f"ID={gene_id}-{event.type_tag}-{number}",
        f"Derives_from={gene_id}",
        f"Name={event.name}",
    ]
    parts.extend(event_measures(event))

    firsts = [a for a, _ in event.transcript_pair_ids]
    seconds = [b for _, b in event.transcript_pair_ids]
    allowed_a = firsts + seconds if event.event_type in BOTH_ROLE_TYPES else firsts

    if event.set_a:
        parts.append(f"FeaturesA={format_features(event.set_a, allowed_a)}")
    if event.set_b:
        parts.append(f"FeaturesB={format_features(event.set_b, seconds)}")
    if event.sites_a:
        parts.append(f"SitesA={format_sites(event.sites_a)}")
    if event.sites_b:
        parts.append(f"SitesB={format_sites(event.sites_b)}")
    if event.constitutive_exons:
        parts.append("ConstitutiveExons=" + ",".join(e.identifier for e in event.constitutive_exons))
    if event.constitutive_sites:
        parts.append(f"ConstitutiveSites={format_sites(event.constitutive_sites)}")
    for first, second in event.transcript_pair_ids:
        parts.append(f"Pair={first},{second}")

    return "; ".join(parts) + ";"


# =============================================================================
# Writer
# =============================================================================


class EventGFFWriter:
    """Write splicing events as GFF lines.

    Example:
        >>> writer = EventGFFWriter("events.gff", datasource="Ensembl")
        >>> writer.write_events(events)
        >>> writer.close()
    """

    def __init__(self, output: Path | str | TextIO, datasource: str = DEFAULT_DATASOURCE) -> None:
        """Initialize the writer.

        Args:
            output: Output file path, or an open text stream (not closed
                by the writer).
            datasource: Source column value.
        """
        if isinstance(output, (str, Path)):
            self.path: Path | None = Path(output)
            self._file: TextIO | None = open(self.path, "w")
            self._owns_file = True
        else:
            self.path = None
            self._file = output
            self._owns_file = False
        self.datasource = datasource
        self.lines_written = 0

    def __enter__(self) -> EventGFFWriter:
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.close()

    def close(self) -> None:
        """Close the output file if the writer opened it."""
        if self._file is not None and self._owns_file:
            self._file.close()
        self._file = None

    def format_line(self, event: SplicingEvent, number: int) -> str:
        """Format one event line (without newline)."""
        return "\t".join(
            [
                event.chromosome,
                self.datasource,
                event.type_tag,
                str(event.start),
                str(event.end),
                ".",
                event.strand_symbol,
                ".",
                format_event_attributes(event, number),
            ]
        )

    def write_events(self, events: Iterable[SplicingEvent]) -> None:
        """Write events, numbering them per bucket in the given order."""
        if self._file is None:
            raise ValueError("Writer is closed")

        numbers: dict[EventType, int] = {}
        for event in events:
            key = event.event_type if event.event_type is EventType.CNE else bucket_type(event.event_type)
            numbers[key] = numbers.get(key, 0) + 1
            self._file.write(self.format_line(event, numbers[key]) + "\n")
            self.lines_written += 1

    def write_gene(
        self,
        constitutive_exons: Sequence[SplicingEvent],
        events: SplicingEventContainer | None = None,
    ) -> None:
        """Write the report of one gene.

        Constitutive exons come first, then the pairwise events in bucket
        order.
        """
        self.write_events(constitutive_exons)
        if events is not None:
            for event_type in BUCKET_ORDER:
                self.write_events(events.bucket(event_type))
