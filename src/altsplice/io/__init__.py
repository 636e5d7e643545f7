"""Input/output for AltSplice.

- gtf: BioMart GTF annotation reader
- gff: GFF splicing event report writer
"""

from altsplice.io.gff import EventGFFWriter, format_event_attributes
from altsplice.io.gtf import GeneRecord, GTFParser, iter_gtf, parse_attributes, read_gtf

__all__: list[str] = [
    "EventGFFWriter",
    "GTFParser",
    "GeneRecord",
    "format_event_attributes",
    "iter_gtf",
    "parse_attributes",
    "read_gtf",
]
