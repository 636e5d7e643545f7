"""Pytest configuration and shared fixtures for AltSplice tests.

Fixtures are organized by category:

- Model fixtures: build genes and transcripts from exon coordinates
- Annotation fixtures: write small BioMart GTF files
"""

import logging
from pathlib import Path
from typing import Callable, Iterator

import pytest

from altsplice.core.models import Gene, Transcript, TranscriptFeature

# =============================================================================
# Model Fixtures
# =============================================================================


@pytest.fixture
def gene() -> Gene:
    """Return the default test gene."""
    return Gene("G1")


@pytest.fixture
def make_transcript(gene: Gene) -> Callable[..., Transcript]:
    """Factory building transcripts of the test gene.

    Exons with identical coordinates are shared between the transcripts
    built by one factory, as in an Ensembl annotation. Exon identifiers
    are ``E<start>_<end>``.

    Example:
        t1 = make_transcript("T1", [(1, 100), (201, 300)])
        t2 = make_transcript("T2", [(1, 100), (251, 300)], strand=-1)
    """
    exons: dict[tuple[int, int, int], TranscriptFeature] = {}

    def _make(
        identifier: str,
        coordinates: list[tuple[int, int]],
        strand: int = 1,
        chromosome: str = "1",
        owner: Gene | None = None,
    ) -> Transcript:
        transcript = Transcript(identifier, chromosome=chromosome, strand=strand, gene=owner or gene)
        for start, end in coordinates:
            key = (start, end, strand)
            exon = exons.get(key)
            if exon is None:
                exon = TranscriptFeature.exon(f"E{start}_{end}", start, end, chromosome, strand, index=len(exons) + 1)
                exons[key] = exon
            transcript.add_exon(exon)
        return transcript

    return _make


# =============================================================================
# Annotation Fixtures
# =============================================================================


def gtf_row(chrom: str, start: int, end: int, strand: str, gene_id: str, transcript_id: str, exon_id: str) -> str:
    """Format one BioMart GTF exon row."""
    attributes = f'gene_id "{gene_id}"; transcript_id "{transcript_id}"; exon_id "{exon_id}";'
    return "\t".join([chrom, "ensembl", "exon", str(start), str(end), ".", strand, ".", attributes])


# G1 (+): T2 skips exon E2 of T1 -> one cassette exon, E1 and E3 constitutive
# G2 (-): T3 and T4 differ in their last exon -> one alternative termination
SAMPLE_GTF_ROWS = [
    gtf_row("1", 1, 100, "+", "G1", "T1", "E1"),
    gtf_row("1", 201, 300, "+", "G1", "T1", "E2"),
    gtf_row("1", 401, 500, "+", "G1", "T1", "E3"),
    gtf_row("1", 1, 100, "+", "G1", "T2", "E1"),
    gtf_row("1", 401, 500, "+", "G1", "T2", "E3"),
    gtf_row("2", 1201, 1300, "-", "G2", "T3", "E5"),
    gtf_row("2", 1001, 1100, "-", "G2", "T3", "E4"),
    gtf_row("2", 1201, 1300, "-", "G2", "T4", "E5"),
    gtf_row("2", 1051, 1100, "-", "G2", "T4", "E6"),
]


@pytest.fixture
def sample_gtf_text() -> str:
    """Return a two-gene BioMart GTF export."""
    return "\n".join(["#!genome-build GRCh38", *SAMPLE_GTF_ROWS]) + "\n"


@pytest.fixture
def sample_gtf(tmp_path: Path, sample_gtf_text: str) -> Path:
    """Write the two-gene GTF to a temporary file."""
    path = tmp_path / "mart_export.gtf"
    path.write_text(sample_gtf_text)
    return path


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(autouse=True)
def reset_package_logger() -> Iterator[None]:
    """Drop handlers installed by setup_logging between tests."""
    yield
    package_logger = logging.getLogger("altsplice")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.NOTSET)


# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
