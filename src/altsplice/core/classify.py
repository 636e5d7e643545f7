"""Splicing event classification over an overlap matrix.

A single row-major scan visits every overlapping cell of the matrix and
dispatches on the feature types at that cell and on the exact code:

- identical exons: alternative first / last exon (AFE, ALE)
- other exon/exon overlaps: alternative initiation / termination (AI, AT),
  alternative 3' / 5' splice sites (A3SS, A5SS) and exon isoforms (EI)
- intron/intron overlaps: intron isoforms (II)
- exon/intron containment: intron retention (IR) when the exon contains
  the intron, otherwise cassette exons (CE) and mutually exclusive
  exons (MXE)

All positional tests use the relative coordinates of the matrix, in
transcription order, so they hold for both strands. Event spans and site
lists always use genomic coordinates.

Example:
    >>> matrix = build_matrix(t1, t2)
    >>> events = compute_splicing_events(matrix, relaxed=False)
    >>> [e.type_tag for e in events]
    ['CE']
"""

from __future__ import annotations

import logging
from typing import Callable

from altsplice.core.events import EventType, Site, SplicingEvent, SplicingEventContainer, sites_of
from altsplice.core.exceptions import GeneProcessingError
from altsplice.core.matrix import (
    DIFF5P_ID3P,
    ID3P,
    ID5P,
    ID5P_DIFF3P,
    ID5P_ID3P,
    NO_OVERLAP,
    OVERLAP,
    PART_OF,
    OverlapMatrix,
)
from altsplice.core.models import TranscriptFeature

logger = logging.getLogger(__name__)


def _genomic_order(features: list[TranscriptFeature]) -> list[TranscriptFeature]:
    return sorted(features, key=lambda f: (f.start, f.end))


class SplicingEventClassifier:
    """Detect splicing events between the two transcripts of a matrix.

    Attributes:
        matrix: Overlap matrix of the transcript pair.
        relaxed: Accept overlapping flanks in place of identical splice
            sites (A3SS, A5SS, CE, MXE).
        events: Events found so far.
    """

    def __init__(self, matrix: OverlapMatrix, relaxed: bool = False) -> None:
        self.matrix = matrix
        self.relaxed = relaxed
        self.events = SplicingEventContainer()

        self.t1 = matrix.transcript_a
        self.t2 = matrix.transcript_b
        self.fa = matrix.features_a
        self.fb = matrix.features_b
        self.x_size = matrix.x_size
        self.y_size = matrix.y_size

    def code(self, i: int, j: int) -> int:
        return self.matrix.code(i, j)

    def _new_event(self, event_type: EventType, start: int, end: int) -> SplicingEvent:
        return SplicingEvent(
            event_type=event_type,
            start=start,
            end=end,
            chromosome=self.t1.chromosome,
            strand=self.matrix.strand,
            gene=self.t1.gene,
        )

    def _invariant_error(self, message: str) -> GeneProcessingError:
        return GeneProcessingError(
            message,
            gene_id=self.matrix.gene_id,
            transcript_ids=(self.t1.identifier, self.t2.identifier),
        )

    # -------------------------------------------------------------------------
    # Scan
    # -------------------------------------------------------------------------

    def compute(self) -> SplicingEventContainer:
        """Scan the matrix and return the events found."""
        logger.debug(f"Classifying {self.t1.identifier} <=> {self.t2.identifier}")

        for i, j in self.matrix.cells():
            f1 = self.fa[i]
            f2 = self.fb[j]
            code = self.code(i, j)

            if code == ID5P_ID3P:
                if f1.is_exon and f2.is_exon:
                    self.check_alternative_first_last_exon(f1, f2, i, j)
            elif f1.is_exon and f2.is_exon:
                self.check_exon_isoform(f1, f2, i, j)
            elif f1.is_intron and f2.is_intron:
                self.check_intron_isoform(f1, f2, i, j)
            elif f1.is_exon != f2.is_exon and (f1.is_intron or f2.is_intron):
                if code != PART_OF:
                    continue
                start1 = self.matrix.starts_a[i]
                start2 = self.matrix.starts_b[j]
                if (start1 < start2 and f1.is_exon) or (start2 < start1 and f2.is_exon):
                    self.check_intron_retention(f1, f2, i, j)
                else:
                    self.check_cassette_exon(f1, f2, i, j)
                    if f1.is_exon:
                        self.check_mutual_exclusion(f1, f2, i, j)
            else:
                raise self._invariant_error(
                    f"Unexpected feature types {f1.feature_type.value}/{f2.feature_type.value} at ({i}, {j})"
                )

        return self.events

    # -------------------------------------------------------------------------
    # Alternative first / last exon
    # -------------------------------------------------------------------------

    def check_alternative_first_last_exon(
        self, f1: TranscriptFeature, f2: TranscriptFeature, i: int, j: int
    ) -> None:
        """Identical second (or penultimate) exons with disjoint first (last) exons."""
        if i == 2 and j == 2 and self.code(0, 0) == NO_OVERLAP:
            self._add_terminal_exon_event(EventType.AFE, f1, f2, self.fa[0], self.fb[0])

        if i + 3 == self.x_size and j + 3 == self.y_size and self.code(i + 2, j + 2) == NO_OVERLAP:
            self._add_terminal_exon_event(EventType.ALE, f1, f2, self.fa[i + 2], self.fb[j + 2])

    def _add_terminal_exon_event(
        self,
        event_type: EventType,
        f1: TranscriptFeature,
        f2: TranscriptFeature,
        exon1: TranscriptFeature,
        exon2: TranscriptFeature,
    ) -> None:
        logger.debug(f"{event_type.value}: {exon1.identifier} / {exon2.identifier}")

        event = self._new_event(event_type, min(exon1.start, exon2.start), max(exon1.end, exon2.end))

        if exon1.end < exon2.start:
            first, second, pair = exon1, exon2, (self.t1, self.t2)
        else:
            first, second, pair = exon2, exon1, (self.t2, self.t1)

        event.set_a = [first]
        event.set_b = [second]
        event.sites_a = [Site.of(first)]
        event.sites_b = [Site.of(second)]
        event.add_transcript_pair(*pair)

        event.constitutive_exons = [f1] if f1.identifier == f2.identifier else [f1, f2]
        event.constitutive_sites = [Site.of(f1)]

        self.events.add(event)

    # -------------------------------------------------------------------------
    # Exon isoforms
    # -------------------------------------------------------------------------

    def check_exon_isoform(self, f1: TranscriptFeature, f2: TranscriptFeature, i: int, j: int) -> None:
        """AI, AT, A3SS, A5SS and EI events between two overlapping exons."""
        code = self.code(i, j)
        m = self.matrix

        if i == 0 and j == 0 and code == DIFF5P_ID3P:
            self._add_exon_pair_event(EventType.AI, f1, f2)

        if i == self.x_size - 1 and j == self.y_size - 1 and code == ID5P_DIFF3P:
            self._add_exon_pair_event(EventType.AT, f1, f2)

        same_start = m.starts_a[i] == m.starts_b[j]
        same_end = m.ends_a[i] == m.ends_b[j]
        has_upstream = i >= 1 and j >= 1
        has_downstream = i + 1 < self.x_size and j + 1 < self.y_size

        # alternative acceptor: same 3' end, upstream intron starts at the same donor
        a3ss = (
            same_end
            and not same_start
            and has_upstream
            and (
                m.starts_a[i - 1] == m.starts_b[j - 1]
                or (self.relaxed and self.code(i - 1, j - 1) & OVERLAP)
            )
        )

        # alternative donor: same 5' end, downstream intron ends at the same acceptor
        a5ss = (
            same_start
            and not same_end
            and has_downstream
            and (
                m.ends_a[i + 1] == m.ends_b[j + 1]
                or (self.relaxed and self.code(i + 1, j + 1) & OVERLAP)
            )
        )

        exon_isoform = (
            not same_start
            and not same_end
            and has_upstream
            and has_downstream
            and self.code(i - 1, j - 1) != NO_OVERLAP
            and self.code(i + 1, j + 1) != NO_OVERLAP
        )

        if a3ss:
            event_type = EventType.A3SS
        elif a5ss:
            event_type = EventType.A5SS
        elif exon_isoform and m.starts_a[i - 1] == m.starts_b[j - 1] and m.ends_a[i + 1] == m.ends_b[j + 1]:
            event_type = EventType.EI
        else:
            return

        event = self._new_event(event_type, min(f1.start, f2.start), max(f1.end, f2.end))

        # the longer exon always goes to set A
        if f1.length > f2.length:
            longer, shorter, pair = f1, f2, (self.t1, self.t2)
        else:
            longer, shorter, pair = f2, f1, (self.t2, self.t1)

        event.set_a = [longer]
        event.set_b = [shorter]
        event.sites_a = [Site.of(longer)]
        event.sites_b = [Site.of(shorter)]
        event.add_transcript_pair(*pair)

        self.events.add(event)

    def _add_exon_pair_event(self, event_type: EventType, f1: TranscriptFeature, f2: TranscriptFeature) -> None:
        event = self._new_event(event_type, min(f1.start, f2.start), max(f1.end, f2.end))
        event.set_a = [f1, f2]
        event.sites_a = sites_of([f1, f2])
        event.add_transcript_pair(self.t1, self.t2)
        self.events.add(event)

    # -------------------------------------------------------------------------
    # Intron isoforms
    # -------------------------------------------------------------------------

    def check_intron_isoform(self, f1: TranscriptFeature, f2: TranscriptFeature, i: int, j: int) -> None:
        """Two overlapping introns whose flanking exons overlap on both sides."""
        if not (i >= 1 and j >= 1 and i + 1 < self.x_size and j + 1 < self.y_size):
            return
        if self.code(i - 1, j - 1) == NO_OVERLAP or self.code(i + 1, j + 1) == NO_OVERLAP:
            return

        event = self._new_event(EventType.II, min(f1.start, f2.start), max(f1.end, f2.end))

        flanks1 = _genomic_order([self.fa[i - 1], self.fa[i + 1]])
        flanks2 = _genomic_order([self.fb[j - 1], self.fb[j + 1]])

        # the longer intron always goes to set A
        if f1.length > f2.length:
            event.set_a, event.set_b = flanks1, flanks2
            event.sites_a, event.sites_b = [Site.of(f1)], [Site.of(f2)]
            event.add_transcript_pair(self.t1, self.t2)
        else:
            event.set_a, event.set_b = flanks2, flanks1
            event.sites_a, event.sites_b = [Site.of(f2)], [Site.of(f1)]
            event.add_transcript_pair(self.t2, self.t1)

        self.events.add(event)

    # -------------------------------------------------------------------------
    # Intron retention
    # -------------------------------------------------------------------------

    def check_intron_retention(self, f1: TranscriptFeature, f2: TranscriptFeature, i: int, j: int) -> None:
        """An exon of one transcript covering an intron and its flanking exons."""
        if f1.is_exon:
            exon, exon_transcript, intron_transcript = f1, self.t1, self.t2
            chain = self._overlapping_exon_chain(j, self.y_size, lambda k: self.code(i, k), self.fb)
        else:
            exon, exon_transcript, intron_transcript = f2, self.t2, self.t1
            chain = self._overlapping_exon_chain(i, self.x_size, lambda k: self.code(k, j), self.fa)

        if not chain:
            return

        chain = _genomic_order(chain)
        start = min(exon.start, chain[0].start)
        end = max(exon.end, max(f.end for f in chain))

        event = self._new_event(EventType.IR, start, end)
        event.set_a = [exon]
        event.sites_a = [Site.of(exon)]
        event.set_b = chain
        event.sites_b = sites_of(chain)
        event.add_transcript_pair(exon_transcript, intron_transcript)

        self.events.add_event(event)

    @staticmethod
    def _overlapping_exon_chain(
        intron_index: int,
        size: int,
        code_at: Callable[[int], int],
        features: list[TranscriptFeature],
    ) -> list[TranscriptFeature]:
        """Exons on both sides of an intron that overlap the retaining exon.

        Both exons flanking the intron must overlap; the scan then extends
        exon by exon in each direction while the overlap holds.
        """
        if not (intron_index - 1 >= 0 and intron_index + 1 < size):
            return []
        if not (code_at(intron_index - 1) & OVERLAP and code_at(intron_index + 1) & OVERLAP):
            return []

        chain: list[TranscriptFeature] = []

        k = intron_index - 1
        while k >= 0 and code_at(k) & OVERLAP:
            chain.insert(0, features[k])
            k -= 2

        k = intron_index + 1
        while k < size and code_at(k) & OVERLAP:
            chain.append(features[k])
            k += 2

        return chain

    # -------------------------------------------------------------------------
    # Cassette exons
    # -------------------------------------------------------------------------

    def check_cassette_exon(self, f1: TranscriptFeature, f2: TranscriptFeature, i: int, j: int) -> None:
        """Exons of one transcript skipped by an intron of the other.

        The intron must be bounded on both sides by exons of the other
        transcript sharing its splice sites (or merely overlapping, in
        relaxed mode).
        """
        if f1.is_exon:
            intron, exon_transcript, intron_transcript = f2, self.t1, self.t2
            exon_index, size, features = i, self.x_size, self.fa

            def along(k: int) -> int:
                return self.code(k, j)

            def flank5(k: int) -> int:
                return self.code(k, j - 1)

            def flank3(k: int) -> int:
                return self.code(k, j + 1)

        else:
            intron, exon_transcript, intron_transcript = f1, self.t2, self.t1
            exon_index, size, features = j, self.y_size, self.fb

            def along(k: int) -> int:
                return self.code(i, k)

            def flank5(k: int) -> int:
                return self.code(i - 1, k)

            def flank3(k: int) -> int:
                return self.code(i + 1, k)

        cassette = [features[exon_index]]

        index5p = exon_index - 1
        while index5p >= 0 and along(index5p) in (PART_OF, ID5P_DIFF3P):
            if features[index5p].is_exon:
                cassette.insert(0, features[index5p])
            index5p -= 1

        if index5p < 0 or not self._flank_matches(flank5(index5p), ID3P):
            return

        index3p = exon_index + 1
        while index3p < size and along(index3p) in (PART_OF, DIFF5P_ID3P):
            if features[index3p].is_exon:
                cassette.append(features[index3p])
            index3p += 1

        if index3p >= size or not self._flank_matches(flank3(index3p), ID5P):
            return

        cassette = _genomic_order(cassette)
        event = self._new_event(EventType.CE, intron.start, intron.end)
        event.set_a = cassette
        event.sites_a = sites_of(cassette)
        event.add_transcript_pair(intron_transcript, exon_transcript)

        self.events.add_event(event)

    def _flank_matches(self, code: int, site_bit: int) -> bool:
        if self.relaxed and code & OVERLAP:
            return True
        return bool(code & site_bit)

    # -------------------------------------------------------------------------
    # Mutually exclusive exons
    # -------------------------------------------------------------------------

    def check_mutual_exclusion(self, f1: TranscriptFeature, f2: TranscriptFeature, i: int, j: int) -> None:
        """Alternative exon groups between two shared flanking exons.

        Starting from an exon of transcript A inside an intron of
        transcript B, scan upstream and downstream for the closest pair of
        overlapping exons with a matching splice site. Exons of A inside the
        intron and exons of B between the flanks form the two groups.
        """
        m = self.matrix
        group_a: list[TranscriptFeature] = []
        group_b: list[TranscriptFeature] = []

        # 5' side
        exclusive5 = False
        position5 = 0
        seeking = True
        k1, k2 = i, j
        while k1 >= 0 and k2 >= 0 and seeking:
            if self.fa[k1].is_intron:
                k1 -= 1
                continue

            if (
                self.code(k1, k2) == PART_OF
                and self.fb[k2].is_intron
                and m.starts_b[k2] < m.starts_a[k1]
            ):
                group_a.insert(0, self.fa[k1])
                k1 -= 1
                continue

            k2 -= 1
            while k2 >= 0 and seeking:
                code = self.code(k1, k2)
                if code & OVERLAP:
                    if not self.fb[k2].is_exon:
                        break
                    seeking = False
                    if code & ID3P or self.relaxed:
                        exclusive5 = True
                        position5 = self._donor(self.fb[k2])
                elif self.fb[k2].is_exon and m.starts_b[k2] > m.ends_a[k1]:
                    group_b.insert(0, self.fb[k2])
                k2 -= 1

        # 3' side
        exclusive3 = False
        position3 = 0
        seeking = True
        k1, k2 = i, j
        while k1 < self.x_size and k2 < self.y_size and seeking:
            if self.fa[k1].is_intron:
                k1 += 1
                continue

            if (
                self.code(k1, k2) == PART_OF
                and self.fb[k2].is_intron
                and m.starts_b[k2] < m.starts_a[k1]
            ):
                if self.fa[k1] is not f1:
                    group_a.append(self.fa[k1])
                k1 += 1
                continue

            k2 += 1
            while k2 < self.y_size and seeking:
                code = self.code(k1, k2)
                if code & OVERLAP:
                    if not self.fb[k2].is_exon:
                        break
                    seeking = False
                    if code & ID5P or self.relaxed:
                        exclusive3 = True
                        position3 = self._acceptor(self.fb[k2])
                elif self.fb[k2].is_exon and m.ends_b[k2] < m.starts_a[k1]:
                    group_b.append(self.fb[k2])
                k2 += 1

        if not (exclusive5 and exclusive3 and group_a and group_b):
            return

        if m.strand == 1:
            start, end = position5, position3
        else:
            start, end = position3, position5

        group_a = _genomic_order(group_a)
        group_b = _genomic_order(group_b)

        event = self._new_event(EventType.MXE, start, end)
        if group_a[0].start < group_b[0].start:
            event.set_a, event.set_b = group_a, group_b
            event.add_transcript_pair(self.t1, self.t2)
        else:
            event.set_a, event.set_b = group_b, group_a
            event.add_transcript_pair(self.t2, self.t1)
        event.sites_a = sites_of(event.set_a)
        event.sites_b = sites_of(event.set_b)

        self.events.add_event(event)

    def _donor(self, exon: TranscriptFeature) -> int:
        return exon.end if self.matrix.strand == 1 else exon.start

    def _acceptor(self, exon: TranscriptFeature) -> int:
        return exon.start if self.matrix.strand == 1 else exon.end


def compute_splicing_events(matrix: OverlapMatrix, relaxed: bool = False) -> SplicingEventContainer:
    """Classify the splicing events of one transcript pair.

    Args:
        matrix: Overlap matrix of the pair.
        relaxed: Accept overlapping flanks in place of identical splice sites.

    Returns:
        Container with the events of the pair.

    Raises:
        GeneProcessingError: If the matrix breaks an internal invariant.
    """
    return SplicingEventClassifier(matrix, relaxed=relaxed).compute()
