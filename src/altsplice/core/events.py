"""Splicing events and the per-gene event container.

A SplicingEvent is a typed genomic span describing how two transcripts
differ. Events discovered in many transcript-pair comparisons of the same
gene are folded into one container, where equivalent events are merged:
the first event registered is kept, and later equivalents only contribute
their transcript pairs (and, for the boundary-flexible types AI, AT, AFE
and ALE, a wider span and extra features).

Example:
    >>> gene_events = SplicingEventContainer()
    >>> for pair_events in per_pair_results:
    ...     merge_into(gene_events, pair_events)
    >>> gene_events.summary()
    {'AI': 0, 'AT': 1, ...}
"""

from __future__ import annotations

import logging
from enum import Enum, IntEnum
from typing import Iterator, NamedTuple, Sequence

import attrs

from altsplice.core.models import Gene, Transcript, TranscriptFeature, strand_symbol

logger = logging.getLogger(__name__)

# =============================================================================
# Event Types
# =============================================================================


class EventType(Enum):
    """Splicing event categories."""

    AI = "AI"  # alternative initiation
    AT = "AT"  # alternative termination
    AFE = "AFE"  # alternative first exon
    ALE = "ALE"  # alternative last exon
    EI = "EI"  # exon isoform
    II = "II"  # intron isoform
    IR = "IR"  # intron retention
    CE = "CE"  # cassette exon
    MXE = "MXE"  # mutually exclusive exons
    A3SS = "A3SS"  # alternative 3' splice site
    A5SS = "A5SS"  # alternative 5' splice site
    CNE = "CNE"  # constitutive exon
    CNR = "CNR"  # constitutive region

    @property
    def long_name(self) -> str:
        return EVENT_NAMES[self]


EVENT_NAMES = {
    EventType.AI: "alternative initiation",
    EventType.AT: "alternative termination",
    EventType.AFE: "alternative first exon",
    EventType.ALE: "alternative last exon",
    EventType.EI: "exon isoform",
    EventType.II: "intron isoform",
    EventType.IR: "intron retention",
    EventType.CE: "cassette exon",
    EventType.MXE: "mutual exclusion",
    EventType.A3SS: "alternative 3' splice site",
    EventType.A5SS: "alternative 5' splice site",
    EventType.CNE: "constitutive exon",
    EventType.CNR: "constitutive region",
}

# Types whose span and feature sets may widen when merged
BOUNDARY_FLEXIBLE_TYPES = frozenset({EventType.AI, EventType.AT, EventType.AFE, EventType.ALE})

# Types de-duplicated on insertion within a single transcript pair
DEDUPLICATED_TYPES = frozenset({EventType.IR, EventType.CE, EventType.MXE})

# Container buckets, in report order
BUCKET_ORDER = (
    EventType.AI,
    EventType.AT,
    EventType.AFE,
    EventType.ALE,
    EventType.IR,
    EventType.II,
    EventType.EI,
    EventType.MXE,
    EventType.CE,
)


def bucket_type(event_type: EventType) -> EventType:
    """Return the container bucket holding events of this type.

    A3SS and A5SS events are refinements of exon isoforms and share the
    EI bucket.

    Raises:
        ValueError: For constitutive types, which are not pairwise events.
    """
    if event_type in (EventType.A3SS, EventType.A5SS):
        return EventType.EI
    if event_type not in BUCKET_ORDER:
        raise ValueError(f"{event_type.value} events are not stored in a splicing event container")
    return event_type


# =============================================================================
# Sites
# =============================================================================


class SiteKind(IntEnum):
    """Kind of feature a site triple describes."""

    INTRON = 0
    EXON = 1


class Site(NamedTuple):
    """A (kind, start, end) triple mirroring one event feature."""

    kind: SiteKind
    start: int
    end: int

    @classmethod
    def of(cls, feature: TranscriptFeature) -> Site:
        kind = SiteKind.INTRON if feature.is_intron else SiteKind.EXON
        return cls(kind, feature.start, feature.end)

    def format(self) -> str:
        prefix = "i" if self.kind == SiteKind.INTRON else "e"
        return f"{prefix}({self.start}-{self.end})"


def sites_of(features: Sequence[TranscriptFeature]) -> list[Site]:
    return [Site.of(feature) for feature in features]


# =============================================================================
# Splicing Event
# =============================================================================


@attrs.define(slots=True, eq=False)
class SplicingEvent:
    """A splicing event: a feature with a type and the features that differ.

    Attributes:
        event_type: Event category.
        start: Event span start (genomic).
        end: Event span end (genomic).
        chromosome: Chromosome name.
        strand: +1 or -1.
        gene: Gene the event belongs to.
        set_a: First set of differing features.
        set_b: Second set of differing features.
        sites_a: Site triples mirroring set_a.
        sites_b: Site triples mirroring set_b.
        constitutive_exons: Shared exons (AFE, ALE, CNE).
        constitutive_sites: Site triples of the shared exon.
        transcript_pairs: Role-ordered transcript pairs exhibiting the event.
    """

    event_type: EventType
    start: int
    end: int
    chromosome: str = ""
    strand: int = 1
    gene: Gene | None = None
    set_a: list[TranscriptFeature] = attrs.Factory(list)
    set_b: list[TranscriptFeature] = attrs.Factory(list)
    sites_a: list[Site] = attrs.Factory(list)
    sites_b: list[Site] = attrs.Factory(list)
    constitutive_exons: list[TranscriptFeature] = attrs.Factory(list)
    constitutive_sites: list[Site] = attrs.Factory(list)
    transcript_pairs: list[tuple[Transcript, Transcript]] = attrs.Factory(list)

    @property
    def gene_id(self) -> str:
        return self.gene.identifier if self.gene is not None else ""

    @property
    def type_tag(self) -> str:
        return self.event_type.value

    @property
    def name(self) -> str:
        return self.event_type.long_name

    @property
    def strand_symbol(self) -> str:
        return strand_symbol(self.strand)

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    @property
    def transcript_pair_ids(self) -> list[tuple[str, str]]:
        return [(a.identifier, b.identifier) for a, b in self.transcript_pairs]

    def add_transcript_pair(self, first: Transcript, second: Transcript) -> None:
        self.transcript_pairs.append((first, second))

    def copy(self) -> SplicingEvent:
        """Return a copy with independent feature, site and pair lists."""
        return attrs.evolve(
            self,
            set_a=list(self.set_a),
            set_b=list(self.set_b),
            sites_a=list(self.sites_a),
            sites_b=list(self.sites_b),
            constitutive_exons=list(self.constitutive_exons),
            constitutive_sites=list(self.constitutive_sites),
            transcript_pairs=list(self.transcript_pairs),
        )

    # -------------------------------------------------------------------------
    # Equivalence
    # -------------------------------------------------------------------------

    def equals(self, other: SplicingEvent) -> bool:
        """Check whether two events describe the same splicing event.

        Events must share gene, chromosome, strand and type. By default they must also share
        their span, and their site lists must match, either A to A and B to
        B or swapped. AI, AT, AFE and ALE events only need to share the
        boundary that does not vary between transcripts; their features are
        not compared.
        """
        if self.gene_id != other.gene_id or self.event_type is not other.event_type:
            return False
        if self.chromosome != other.chromosome or self.strand != other.strand:
            return False

        same_span = (
            self.start == other.start
            and self.end == other.end
            and len(self.sites_a) == len(other.sites_a)
            and len(self.sites_b) == len(other.sites_b)
        )

        if self.event_type in BOUNDARY_FLEXIBLE_TYPES:
            return same_span or self._same_fixed_boundary(other)

        if not same_span:
            return False

        return (self.sites_a == other.sites_a and self.sites_b == other.sites_b) or (
            self.sites_a == other.sites_b and self.sites_b == other.sites_a
        )

    def _same_fixed_boundary(self, other: SplicingEvent) -> bool:
        plus = self.strand == 1

        if self.event_type is EventType.AI:
            return self.end == other.end if plus else self.start == other.start

        if self.event_type is EventType.AT:
            return self.start == other.start if plus else self.end == other.end

        if not (self.set_a and self.set_b and other.set_a and other.set_b):
            return False
        if not (self.constitutive_sites and other.constitutive_sites):
            return False
        if self.constitutive_sites[0] != other.constitutive_sites[0]:
            return False

        # AFE: the first exons end at the same donor sites.
        # ALE: the last exons start at the same acceptor sites.
        downstream = plus if self.event_type is EventType.AFE else not plus
        if downstream:
            return (
                self.end == other.end
                and self.set_a[0].end == other.set_a[0].end
                and self.set_b[0].end == other.set_b[0].end
            )
        return (
            self.start == other.start
            and self.set_a[0].start == other.set_a[0].start
            and self.set_b[0].start == other.set_b[0].start
        )

    def find(self, events: Sequence[SplicingEvent]) -> SplicingEvent | None:
        """Return the first event of ``events`` equivalent to this one."""
        for event in events:
            if self.equals(event):
                return event
        return None

    # -------------------------------------------------------------------------
    # Merging
    # -------------------------------------------------------------------------

    def merge_coordinates(self, start: int, end: int) -> None:
        self.start = min(self.start, start)
        self.end = max(self.end, end)

    def merge_transcript_pairs(self, pairs: Sequence[tuple[Transcript, Transcript]]) -> None:
        """Append transcript pairs not already recorded (by identifiers)."""
        known = set(self.transcript_pair_ids)
        for first, second in pairs:
            key = (first.identifier, second.identifier)
            if key not in known:
                self.transcript_pairs.append((first, second))
                known.add(key)

    def merge(self, other: SplicingEvent) -> None:
        """Fold an equivalent event into this one."""
        if self.event_type in BOUNDARY_FLEXIBLE_TYPES:
            self.merge_coordinates(other.start, other.end)
            merge_features(self.set_a, other.set_a)
            if self.event_type in (EventType.AFE, EventType.ALE):
                merge_features(self.set_b, other.set_b)
                merge_features(self.constitutive_exons, other.constitutive_exons)

        self.merge_transcript_pairs(other.transcript_pairs)


def merge_features(target: list[TranscriptFeature], features: Sequence[TranscriptFeature]) -> None:
    """Append features whose identifier is not yet in ``target``."""
    known = {feature.identifier for feature in target}
    for feature in features:
        if feature.identifier not in known:
            target.append(feature)
            known.add(feature.identifier)


# =============================================================================
# Container
# =============================================================================


class SplicingEventContainer:
    """Splicing events of one transcript pair or one gene, by bucket.

    Example:
        >>> container = SplicingEventContainer()
        >>> container.add_event(event)
        True
        >>> len(container)
        1
    """

    def __init__(self) -> None:
        self._buckets: dict[EventType, list[SplicingEvent]] = {t: [] for t in BUCKET_ORDER}

    def bucket(self, event_type: EventType) -> list[SplicingEvent]:
        """Return the (mutable) list holding events of ``event_type``."""
        return self._buckets[bucket_type(event_type)]

    def add(self, event: SplicingEvent) -> None:
        """Append an event without any equivalence check."""
        self.bucket(event.event_type).append(event)

    def add_event(self, event: SplicingEvent) -> bool:
        """Insert an event, skipping IR, CE and MXE events already present.

        Returns:
            True if the event was stored.
        """
        events = self.bucket(event.event_type)
        if event.event_type in DEDUPLICATED_TYPES and event.find(events) is not None:
            logger.debug(f"Skipping duplicate {event.type_tag} event {event.start}-{event.end}")
            return False
        events.append(event)
        return True

    def contains(self, event: SplicingEvent) -> bool:
        return event.find(self.bucket(event.event_type)) is not None

    def merge(self, other: SplicingEventContainer) -> None:
        """Merge every bucket of ``other`` into this container."""
        for event_type in BUCKET_ORDER:
            merge_event_lists(self._buckets[event_type], other.bucket(event_type))

    def event_count(self) -> int:
        return sum(len(events) for events in self._buckets.values())

    def summary(self) -> dict[str, int]:
        """Number of events per bucket, in report order."""
        return {event_type.value: len(self._buckets[event_type]) for event_type in BUCKET_ORDER}

    def __iter__(self) -> Iterator[SplicingEvent]:
        for event_type in BUCKET_ORDER:
            yield from self._buckets[event_type]

    def __len__(self) -> int:
        return self.event_count()

    def __bool__(self) -> bool:
        return self.event_count() > 0


def merge_event_lists(target: list[SplicingEvent], candidates: Sequence[SplicingEvent]) -> None:
    """Merge candidate events into ``target``.

    Each candidate either merges into the first equivalent event of
    ``target`` or is appended to it as a copy.
    """
    for candidate in candidates:
        existing = candidate.find(target)
        if existing is None:
            target.append(candidate.copy())
        else:
            existing.merge(candidate)


def merge_into(gene_container: SplicingEventContainer, pair_container: SplicingEventContainer) -> None:
    """Fold the events of one transcript pair into the gene-level container."""
    gene_container.merge(pair_container)
