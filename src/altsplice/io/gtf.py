"""BioMart GTF reading.

Reads Ensembl BioMart style GTF exports and groups the exon rows into
genes, transcripts and shared exons:

    1  ensembl  exon  100  200  .  +  .  gene_id "G1"; transcript_id "T1"; exon_id "E1";

Only ``exon`` rows are used. Rows of one gene must be contiguous; the gene
is complete as soon as a row with another ``gene_id`` is read. Within a
gene, exons are de-duplicated by ``exon_id`` so that one exon object is
shared by every transcript listing it.

Example:
    >>> from altsplice.io.gtf import GTFParser
    >>> for record in GTFParser("mart_export.gtf").iter_genes():
    ...     print(record.gene.identifier, len(record.transcripts))
"""

from __future__ import annotations

import logging
import re
import sys
from pathlib import Path
from typing import Iterator, TextIO

import attrs

from altsplice.core.exceptions import AnnotationFormatError
from altsplice.core.models import Gene, Transcript, TranscriptFeature, parse_strand

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

# GTF column indices
COL_SEQID = 0
COL_SOURCE = 1
COL_TYPE = 2
COL_START = 3
COL_END = 4
COL_SCORE = 5
COL_STRAND = 6
COL_FRAME = 7
COL_ATTRIBUTES = 8

FEATURE_EXON = "exon"

ATTR_GENE_ID = "gene_id"
ATTR_TRANSCRIPT_ID = "transcript_id"
ATTR_EXON_ID = "exon_id"

_ATTRIBUTE_PATTERN = re.compile(r'\s*([^\s;]+)\s+"?([^";]*)"?\s*')


# =============================================================================
# Data Models
# =============================================================================


@attrs.define(slots=True)
class GeneRecord:
    """One gene read from the annotation.

    Attributes:
        gene: The gene.
        transcripts: Transcripts of the gene, ordered by identifier.
        exons: Distinct exons of the gene, by exon identifier.
    """

    gene: Gene
    transcripts: list[Transcript] = attrs.Factory(list)
    exons: dict[str, TranscriptFeature] = attrs.Factory(dict)

    @property
    def n_transcripts(self) -> int:
        return len(self.transcripts)


# =============================================================================
# Utility Functions
# =============================================================================


def parse_attributes(attr_string: str) -> dict[str, str]:
    """Parse a GTF attribute column (``key "value"; key "value";``).

    Args:
        attr_string: The attribute column.

    Returns:
        Dictionary of attribute key/value pairs.
    """
    attributes: dict[str, str] = {}
    for item in attr_string.strip().split(";"):
        if not item.strip():
            continue
        match = _ATTRIBUTE_PATTERN.fullmatch(item)
        if match:
            attributes[match.group(1)] = match.group(2).strip()
    return attributes


# =============================================================================
# Parser
# =============================================================================


class _GeneBuilder:
    """Accumulates the exon rows of one gene."""

    def __init__(self, gene_id: str) -> None:
        self.gene = Gene(gene_id)
        self.transcripts: dict[str, Transcript] = {}
        self.exons: dict[str, TranscriptFeature] = {}

    def add_exon_row(
        self,
        chromosome: str,
        start: int,
        end: int,
        strand: int,
        transcript_id: str,
        exon_id: str,
    ) -> None:
        transcript = self.transcripts.get(transcript_id)
        if transcript is None:
            transcript = Transcript(transcript_id, chromosome=chromosome, strand=strand, gene=self.gene)
            self.transcripts[transcript_id] = transcript

        exon = self.exons.get(exon_id)
        if exon is None:
            exon = TranscriptFeature.exon(
                exon_id, start, end, chromosome, strand, index=len(self.exons) + 1
            )
            self.exons[exon_id] = exon

        transcript.add_exon(exon)

    def build(self) -> GeneRecord:
        transcripts = [self.transcripts[key] for key in sorted(self.transcripts)]
        return GeneRecord(gene=self.gene, transcripts=transcripts, exons=dict(self.exons))


class GTFParser:
    """Streaming parser for BioMart GTF exports.

    Attributes:
        source: Path of the annotation, or an open text stream.
        limit: Maximum number of genes to yield, 0 for all.

    Example:
        >>> parser = GTFParser("mart_export.gtf", limit=10)
        >>> genes = list(parser.iter_genes())
    """

    def __init__(self, source: Path | str | TextIO, limit: int = 0) -> None:
        """Initialize the parser.

        Args:
            source: Path to the GTF file, "-" for standard input, or an
                open text stream.
            limit: Maximum number of genes to yield, 0 for all.

        Raises:
            FileNotFoundError: If the file doesn't exist.
        """
        if isinstance(source, (str, Path)):
            if str(source) != "-" and not Path(source).exists():
                raise FileNotFoundError(f"GTF file not found: {source}")
        self.source = source
        self.limit = limit

    @property
    def name(self) -> str:
        if isinstance(self.source, (str, Path)):
            return str(self.source)
        return getattr(self.source, "name", "<stream>")

    def _lines(self) -> Iterator[str]:
        if isinstance(self.source, (str, Path)):
            if str(self.source) == "-":
                yield from sys.stdin
                return
            with open(self.source) as f:
                yield from f
        else:
            yield from self.source

    def _parse_line(self, line: str, line_number: int) -> dict[str, object] | None:
        """Parse one GTF line.

        Returns:
            The fields of an exon row, or None for comments, blank lines
            and other feature types.

        Raises:
            AnnotationFormatError: On malformed exon rows.
        """
        line = line.rstrip("\n\r")
        if not line.strip() or line.startswith("#"):
            return None

        fields = line.split("\t")
        if len(fields) != 9:
            raise AnnotationFormatError(
                f"Expected 9 tab-separated columns, found {len(fields)}", self.name, line_number
            )

        if fields[COL_TYPE] != FEATURE_EXON:
            return None

        try:
            start = int(fields[COL_START])
            end = int(fields[COL_END])
        except ValueError as e:
            raise AnnotationFormatError(f"Invalid coordinates: {e}", self.name, line_number) from e

        try:
            strand = parse_strand(fields[COL_STRAND])
        except ValueError as e:
            raise AnnotationFormatError(str(e), self.name, line_number) from e

        attributes = parse_attributes(fields[COL_ATTRIBUTES])
        gene_id = attributes.get(ATTR_GENE_ID)
        transcript_id = attributes.get(ATTR_TRANSCRIPT_ID)
        if not gene_id or not transcript_id:
            raise AnnotationFormatError("Missing gene_id or transcript_id attribute", self.name, line_number)

        chromosome = fields[COL_SEQID]
        exon_id = attributes.get(ATTR_EXON_ID) or f"{chromosome}:{start}-{end}"

        return {
            "chromosome": chromosome,
            "start": start,
            "end": end,
            "strand": strand,
            "gene_id": gene_id,
            "transcript_id": transcript_id,
            "exon_id": exon_id,
        }

    def iter_genes(self) -> Iterator[GeneRecord]:
        """Iterate over the genes of the annotation, in file order.

        Yields:
            GeneRecord for each gene.

        Raises:
            AnnotationFormatError: On malformed exon rows.
        """
        builder: _GeneBuilder | None = None
        seen: set[str] = set()
        count = 0

        for line_number, line in enumerate(self._lines(), start=1):
            row = self._parse_line(line, line_number)
            if row is None:
                continue

            gene_id = row.pop("gene_id")
            if builder is None or builder.gene.identifier != gene_id:
                if builder is not None:
                    yield builder.build()
                    count += 1
                    if self.limit and count >= self.limit:
                        logger.info(f"Gene limit reached ({self.limit})")
                        return
                if gene_id in seen:
                    logger.warning(f"Gene {gene_id} appears in several blocks (line {line_number})")
                seen.add(gene_id)
                builder = _GeneBuilder(gene_id)

            builder.add_exon_row(**row)

        if builder is not None:
            yield builder.build()
            count += 1

        logger.info(f"Parsed {count} genes from {self.name}")


# =============================================================================
# Convenience Functions
# =============================================================================


def iter_gtf(source: Path | str | TextIO, limit: int = 0) -> Iterator[GeneRecord]:
    """Iterate over the genes of a GTF file.

    Args:
        source: Path, "-" or open text stream.
        limit: Maximum number of genes, 0 for all.

    Returns:
        Iterator of gene records.
    """
    return GTFParser(source, limit=limit).iter_genes()


def read_gtf(source: Path | str | TextIO, limit: int = 0) -> list[GeneRecord]:
    """Read all genes of a GTF file.

    Args:
        source: Path, "-" or open text stream.
        limit: Maximum number of genes, 0 for all.

    Returns:
        List of gene records.
    """
    return list(iter_gtf(source, limit=limit))
