"""Splicing event detection and merge engine.

- models: transcripts, exons and synthesized introns
- matrix: relative-coordinate overlap matrix of a transcript pair
- classify: event classifiers over the matrix
- events: splicing events, per-gene container and merge
- chunks: gene-wide exon chunks and constitutive exons
- pipeline: gene-by-gene orchestration and run statistics

Example:
    >>> from altsplice.core import build_matrix, compute_splicing_events
    >>> events = compute_splicing_events(build_matrix(t1, t2))
"""

from altsplice.core.chunks import ExonChunk, RegionChunk
from altsplice.core.classify import SplicingEventClassifier, compute_splicing_events
from altsplice.core.events import (
    EventType,
    Site,
    SiteKind,
    SplicingEvent,
    SplicingEventContainer,
    merge_into,
)
from altsplice.core.exceptions import (
    AltSpliceError,
    AnnotationFormatError,
    ConfigurationError,
    GeneProcessingError,
    InvalidTranscriptPair,
)
from altsplice.core.matrix import OverlapMatrix, build_matrix, overlap_code
from altsplice.core.models import (
    Coordinates,
    Feature,
    FeatureType,
    Gene,
    Transcript,
    TranscriptFeature,
)

__all__: list[str] = [
    # Model
    "Coordinates",
    "Feature",
    "FeatureType",
    "Gene",
    "Transcript",
    "TranscriptFeature",
    # Matrix and classification
    "OverlapMatrix",
    "SplicingEventClassifier",
    "build_matrix",
    "compute_splicing_events",
    "overlap_code",
    # Events
    "EventType",
    "Site",
    "SiteKind",
    "SplicingEvent",
    "SplicingEventContainer",
    "merge_into",
    # Constitutive exons
    "ExonChunk",
    "RegionChunk",
    # Errors
    "AltSpliceError",
    "AnnotationFormatError",
    "ConfigurationError",
    "GeneProcessingError",
    "InvalidTranscriptPair",
]
