"""Exception hierarchy for AltSplice.

Errors are split by how the caller recovers from them:

- InvalidTranscriptPair: the pair is skipped, the gene continues.
- GeneProcessingError: the current gene is abandoned, the run continues.
- AnnotationFormatError / ConfigurationError: fatal for the run.
"""

from __future__ import annotations


class AltSpliceError(Exception):
    """Base class for all AltSplice errors."""

    pass


class InvalidTranscriptPair(AltSpliceError, ValueError):
    """Two transcripts cannot be compared.

    Raised when a transcript has no exons or when the two transcripts do
    not share gene, chromosome and strand.
    """

    def __init__(self, message: str, transcript_a: str = "", transcript_b: str = "") -> None:
        self.message = message
        self.transcript_a = transcript_a
        self.transcript_b = transcript_b
        super().__init__(message)

    def __str__(self) -> str:
        if self.transcript_a or self.transcript_b:
            return f"{self.message} ({self.transcript_a} <=> {self.transcript_b})"
        return self.message


class GeneProcessingError(AltSpliceError, RuntimeError):
    """An internal invariant was violated while processing one gene."""

    def __init__(
        self,
        message: str,
        gene_id: str | None = None,
        transcript_ids: tuple[str, ...] = (),
    ) -> None:
        self.message = message
        self.gene_id = gene_id
        self.transcript_ids = tuple(transcript_ids)
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.gene_id:
            parts.append(f"gene={self.gene_id}")
        if self.transcript_ids:
            parts.append(f"transcripts={','.join(self.transcript_ids)}")
        return " | ".join(parts)


class AnnotationFormatError(AltSpliceError, ValueError):
    """A line of the input annotation could not be interpreted."""

    def __init__(self, message: str, filename: str | None = None, line_number: int | None = None) -> None:
        self.message = message
        self.filename = filename
        self.line_number = line_number
        super().__init__(message)

    def __str__(self) -> str:
        if self.filename is not None and self.line_number is not None:
            return f"{self.filename}:{self.line_number}: {self.message}"
        if self.line_number is not None:
            return f"line {self.line_number}: {self.message}"
        return self.message


class ConfigurationError(AltSpliceError, ValueError):
    """Invalid configuration value or configuration file."""

    pass
