"""Tests for splicing event classification of transcript pairs."""

import pytest

from altsplice.core.classify import SplicingEventClassifier, compute_splicing_events
from altsplice.core.events import EventType, Site, SiteKind
from altsplice.core.matrix import build_matrix


def classify(t1, t2, relaxed=False):
    return compute_splicing_events(build_matrix(t1, t2), relaxed=relaxed)


def tags(container):
    return sorted(event.type_tag for event in container)


# =============================================================================
# Terminal exon events
# =============================================================================


class TestAlternativeInitiationTermination:
    """AI and AT events between first or last exons."""

    def test_alternative_termination(self, make_transcript) -> None:
        """Last exons sharing their acceptor but not their end."""
        t1 = make_transcript("T1", [(1, 100), (201, 300)])
        t2 = make_transcript("T2", [(1, 100), (201, 250)])

        events = classify(t1, t2)

        assert tags(events) == ["AT"]
        event = events.bucket(EventType.AT)[0]
        assert (event.start, event.end) == (201, 300)
        assert [e.identifier for e in event.set_a] == ["E201_300", "E201_250"]
        assert event.sites_a == [Site(SiteKind.EXON, 201, 300), Site(SiteKind.EXON, 201, 250)]
        assert event.transcript_pair_ids == [("T1", "T2")]

    def test_alternative_initiation(self, make_transcript) -> None:
        """First exons sharing their donor but not their start."""
        t1 = make_transcript("T1", [(1, 100), (201, 300)])
        t2 = make_transcript("T2", [(51, 100), (201, 300)])

        events = classify(t1, t2)

        assert tags(events) == ["AI"]
        event = events.bucket(EventType.AI)[0]
        assert (event.start, event.end) == (1, 100)
        assert event.chromosome == "1"
        assert event.gene_id == "G1"

    def test_alternative_termination_minus_strand(self, make_transcript) -> None:
        """On the minus strand the leftmost exon is the last one."""
        t1 = make_transcript("T1", [(1, 100), (201, 300)], strand=-1)
        t2 = make_transcript("T2", [(51, 100), (201, 300)], strand=-1)

        events = classify(t1, t2)

        assert tags(events) == ["AT"]
        event = events.bucket(EventType.AT)[0]
        assert (event.start, event.end) == (1, 100)
        assert event.strand == -1

    def test_identical_transcripts_have_no_events(self, make_transcript) -> None:
        t1 = make_transcript("T1", [(1, 100), (201, 300), (401, 500)])
        t2 = make_transcript("T2", [(1, 100), (201, 300), (401, 500)])

        assert len(classify(t1, t2)) == 0


class TestAlternativeFirstLastExon:
    """AFE and ALE events around an identical second / penultimate exon."""

    def test_alternative_first_exon(self, make_transcript) -> None:
        t1 = make_transcript("T1", [(1, 100), (501, 600)])
        t2 = make_transcript("T2", [(201, 300), (501, 600)])

        events = classify(t1, t2)

        assert tags(events) == ["AFE"]
        event = events.bucket(EventType.AFE)[0]
        assert (event.start, event.end) == (1, 300)
        assert [e.identifier for e in event.set_a] == ["E1_100"]
        assert [e.identifier for e in event.set_b] == ["E201_300"]
        assert event.transcript_pair_ids == [("T1", "T2")]
        assert [e.identifier for e in event.constitutive_exons] == ["E501_600"]
        assert event.constitutive_sites == [Site(SiteKind.EXON, 501, 600)]

    def test_alternative_last_exon(self, make_transcript) -> None:
        """The upstream exon in genomic order goes to set A."""
        t1 = make_transcript("T1", [(1, 100), (501, 600)])
        t2 = make_transcript("T2", [(1, 100), (201, 300)])

        events = classify(t1, t2)

        assert tags(events) == ["ALE"]
        event = events.bucket(EventType.ALE)[0]
        assert (event.start, event.end) == (201, 600)
        assert [e.identifier for e in event.set_a] == ["E201_300"]
        assert [e.identifier for e in event.set_b] == ["E501_600"]
        assert event.transcript_pair_ids == [("T2", "T1")]
        assert event.constitutive_sites == [Site(SiteKind.EXON, 1, 100)]


# =============================================================================
# Exon and intron isoforms
# =============================================================================


class TestExonIsoforms:
    """A3SS, A5SS and EI events."""

    def test_alternative_donor_and_intron_isoform(self, make_transcript) -> None:
        """A longer first exon shifts the donor and shortens the intron."""
        t1 = make_transcript("A", [(1, 100), (201, 300)])
        t2 = make_transcript("B", [(1, 120), (201, 300)])

        events = classify(t1, t2)

        assert tags(events) == ["A5SS", "II"]

        a5ss = events.bucket(EventType.EI)[0]
        assert a5ss.event_type is EventType.A5SS
        assert (a5ss.start, a5ss.end) == (1, 120)
        assert [e.identifier for e in a5ss.set_a] == ["E1_120"]
        assert [e.identifier for e in a5ss.set_b] == ["E1_100"]
        assert a5ss.transcript_pair_ids == [("B", "A")]

        intron_isoform = events.bucket(EventType.II)[0]
        assert (intron_isoform.start, intron_isoform.end) == (101, 200)
        assert intron_isoform.transcript_pair_ids == [("A", "B")]
        assert intron_isoform.sites_a == [Site(SiteKind.INTRON, 101, 200)]
        assert intron_isoform.sites_b == [Site(SiteKind.INTRON, 121, 200)]

    def test_alternative_acceptor(self, make_transcript) -> None:
        """Second exons with the same end and different starts."""
        t1 = make_transcript("A", [(1, 100), (201, 300)])
        t2 = make_transcript("B", [(1, 100), (231, 300)])

        events = classify(t1, t2)

        assert "A3SS" in tags(events)
        a3ss = [e for e in events.bucket(EventType.EI) if e.event_type is EventType.A3SS]
        assert len(a3ss) == 1
        assert (a3ss[0].start, a3ss[0].end) == (201, 300)
        assert a3ss[0].transcript_pair_ids == [("A", "B")]

    def test_exon_isoform(self, make_transcript) -> None:
        """A middle exon with both splice sites moved."""
        t1 = make_transcript("A", [(1, 100), (201, 300), (401, 500)])
        t2 = make_transcript("B", [(1, 100), (181, 320), (401, 500)])

        events = classify(t1, t2)

        assert tags(events) == ["EI", "II", "II"]
        isoform = events.bucket(EventType.EI)[0]
        assert isoform.event_type is EventType.EI
        assert (isoform.start, isoform.end) == (181, 320)
        assert [e.identifier for e in isoform.set_a] == ["E181_320"]
        assert isoform.transcript_pair_ids == [("B", "A")]

        introns = events.bucket(EventType.II)
        assert [(e.start, e.end) for e in introns] == [(101, 200), (301, 400)]


# =============================================================================
# Intron retention
# =============================================================================


class TestIntronRetention:
    """IR events."""

    def test_retained_intron(self, make_transcript) -> None:
        t1 = make_transcript("A", [(1, 100), (201, 300)])
        t2 = make_transcript("B", [(1, 300)])

        events = classify(t1, t2)

        assert tags(events) == ["IR"]
        event = events.bucket(EventType.IR)[0]
        assert (event.start, event.end) == (1, 300)
        assert [e.identifier for e in event.set_a] == ["E1_300"]
        assert [e.identifier for e in event.set_b] == ["E1_100", "E201_300"]
        assert event.sites_b == [Site(SiteKind.EXON, 1, 100), Site(SiteKind.EXON, 201, 300)]
        assert event.transcript_pair_ids == [("B", "A")]

    def test_retained_intron_either_order(self, make_transcript) -> None:
        """The retaining transcript is first whatever the row order."""
        t1 = make_transcript("A", [(1, 100), (201, 300)])
        t2 = make_transcript("B", [(1, 300)])

        events = classify(t2, t1)

        assert tags(events) == ["IR"]
        assert events.bucket(EventType.IR)[0].transcript_pair_ids == [("B", "A")]


# =============================================================================
# Cassette and mutually exclusive exons
# =============================================================================


class TestCassetteExon:
    """CE events."""

    def test_skipped_exon(self, make_transcript) -> None:
        t1 = make_transcript("T1", [(1, 100), (201, 300), (401, 500)])
        t2 = make_transcript("T2", [(1, 100), (401, 500)])

        events = classify(t1, t2)

        assert tags(events) == ["CE"]
        event = events.bucket(EventType.CE)[0]
        assert (event.start, event.end) == (101, 400)
        assert [e.identifier for e in event.set_a] == ["E201_300"]
        assert event.sites_a == [Site(SiteKind.EXON, 201, 300)]
        assert event.transcript_pair_ids == [("T2", "T1")]

    def test_skipped_exon_symmetric(self, make_transcript) -> None:
        """Swapping the transcripts gives the same event."""
        t1 = make_transcript("T1", [(1, 100), (201, 300), (401, 500)])
        t2 = make_transcript("T2", [(1, 100), (401, 500)])

        events = classify(t2, t1)

        assert tags(events) == ["CE"]
        event = events.bucket(EventType.CE)[0]
        assert (event.start, event.end) == (101, 400)
        assert event.transcript_pair_ids == [("T2", "T1")]

    def test_skipped_exon_minus_strand(self, make_transcript) -> None:
        t1 = make_transcript("T1", [(1, 100), (201, 300), (401, 500)], strand=-1)
        t2 = make_transcript("T2", [(1, 100), (401, 500)], strand=-1)

        events = classify(t1, t2)

        assert tags(events) == ["CE"]
        event = events.bucket(EventType.CE)[0]
        assert (event.start, event.end) == (101, 400)
        assert [e.identifier for e in event.set_a] == ["E201_300"]

    def test_consecutive_skipped_exons_reported_once(self, make_transcript) -> None:
        """Two skipped exons form one cassette, found once."""
        t1 = make_transcript("T1", [(1, 100), (201, 300), (401, 500), (601, 700)])
        t2 = make_transcript("T2", [(1, 100), (601, 700)])

        events = classify(t1, t2)

        assert tags(events) == ["CE"]
        event = events.bucket(EventType.CE)[0]
        assert (event.start, event.end) == (101, 600)
        assert [e.identifier for e in event.set_a] == ["E201_300", "E401_500"]


class TestMutualExclusion:
    """MXE events."""

    @pytest.fixture
    def exclusive_pair(self, make_transcript):
        t1 = make_transcript("A", [(1, 100), (201, 300), (601, 700)])
        t2 = make_transcript("B", [(1, 100), (401, 500), (601, 700)])
        return t1, t2

    def test_mutually_exclusive_exons(self, exclusive_pair) -> None:
        events = classify(*exclusive_pair)

        assert tags(events) == ["MXE"]
        event = events.bucket(EventType.MXE)[0]
        assert (event.start, event.end) == (100, 601)
        assert [e.identifier for e in event.set_a] == ["E201_300"]
        assert [e.identifier for e in event.set_b] == ["E401_500"]
        assert event.transcript_pair_ids == [("A", "B")]

    def test_relaxed_mode_accepts_overlapping_flanks(self, exclusive_pair) -> None:
        """Relaxed matching also reports each exon as a cassette."""
        events = classify(*exclusive_pair, relaxed=True)

        assert tags(events) == ["CE", "CE", "MXE"]
        spans = sorted((e.start, e.end) for e in events.bucket(EventType.CE))
        assert spans == [(101, 400), (301, 600)]

    def test_classifier_object(self, exclusive_pair) -> None:
        """The classifier exposes its options and accumulated events."""
        classifier = SplicingEventClassifier(build_matrix(*exclusive_pair), relaxed=True)
        assert classifier.relaxed
        events = classifier.compute()
        assert events is classifier.events
