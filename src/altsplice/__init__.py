"""AltSplice: alternative splicing event detection for gene annotations.

AltSplice compares the exon/intron structures of every pair of transcripts
of a gene, classifies the differences into typed splicing events, merges
equivalent events found across transcript pairs, and reports exons shared
by every transcript of the gene.

Example:
    >>> import altsplice
    >>> altsplice.__version__
    '0.1.0'

Modules:
    core: Feature model, overlap matrix, event classifiers and merge logic
    io: BioMart GTF reader and GFF event report writer
    utils: Interval projection and logging utilities
"""

__version__ = "0.1.0"

from altsplice.core.events import EventType, SplicingEvent, SplicingEventContainer
from altsplice.core.models import Gene, Transcript, TranscriptFeature

__all__ = [
    "__version__",
    "EventType",
    "Gene",
    "SplicingEvent",
    "SplicingEventContainer",
    "Transcript",
    "TranscriptFeature",
]
