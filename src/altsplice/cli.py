"""Command-line interface for AltSplice.

Commands:
    find: Detect splicing events and constitutive exons, write a GFF report
    stats: Print event statistics only

Example:
    $ altsplice --help
    $ altsplice find -i mart_export.gtf -o events.gff --relax --statistics
    $ zcat mart_export.gtf.gz | altsplice find > events.gff
    $ altsplice stats -i mart_export.gtf
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from altsplice import __version__
from altsplice.config import Config
from altsplice.core.exceptions import AltSpliceError
from altsplice.core.pipeline import GeneEventFinder, RunStatistics
from altsplice.io.gff import EventGFFWriter
from altsplice.io.gtf import GTFParser
from altsplice.utils.logging import ProgressLogger, Timer, setup_logging

logger = logging.getLogger(__name__)

# The report may go to standard output, so messages go to standard error
console = Console(stderr=True)


@click.group()
@click.version_option(version=__version__, prog_name="altsplice")
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug).")
@click.option("-q", "--quiet", is_flag=True, help="Only report errors.")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write debug messages to this file.",
)
@click.pass_context
def main(ctx: click.Context, verbose: int, quiet: bool, log_file: Path | None) -> None:
    """AltSplice: alternative splicing events from transcript annotations.

    Every pair of transcripts of each gene is compared to detect alternative
    initiation and termination, alternative first and last exons, exon and
    intron isoforms, intron retention, cassette exons and mutually exclusive
    exons. Exons shared by all transcripts are reported as constitutive.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    setup_logging(verbosity=-1 if quiet else verbose, log_file=log_file)


# =============================================================================
# Shared options
# =============================================================================


def _load_config(
    config_file: Path | None,
    relax: bool,
    constitutives: bool,
    limit: int | None,
    datasource: str | None,
    statistics: bool,
) -> Config:
    # Flags only override the configuration file when given
    return Config.load(config_file).update(
        relaxed=relax or None,
        constitutives_only=constitutives or None,
        limit=limit,
        datasource=datasource,
        statistics=statistics or None,
    )


def _print_statistics(stats: RunStatistics) -> None:
    table = Table(title="Splicing statistics")
    table.add_column("Measure", style="cyan")
    table.add_column("Value", justify="right")
    for label, value in stats.rows():
        table.add_row(label, value)
    console.print(table)


def _run(config: Config, input_path: str, output: Path | None, write_report: bool) -> RunStatistics:
    """Process every gene of the annotation."""
    finder = GeneEventFinder(config)
    stats = RunStatistics()
    progress = ProgressLogger(logger, interval=1000)
    parser = GTFParser(input_path, limit=config.limit)

    writer: EventGFFWriter | None = None
    if write_report:
        target = output if output is not None else sys.stdout
        writer = EventGFFWriter(target, datasource=config.datasource)

    try:
        with Timer("Splicing analysis", logger):
            for record in parser.iter_genes():
                result = finder.process_gene(record.gene, record.transcripts)
                stats.record(result)
                if writer is not None and not result.failed:
                    writer.write_gene(result.constitutive_exons, result.events)
                progress.update()
        progress.finish()
    finally:
        if writer is not None:
            writer.close()

    return stats


# =============================================================================
# find command
# =============================================================================


@main.command()
@click.option(
    "-i",
    "--input",
    "input_path",
    default="-",
    show_default=True,
    help="BioMart GTF annotation, - for standard input.",
)
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output GFF report. Default: standard output.",
)
@click.option(
    "-r",
    "--relax",
    is_flag=True,
    help="Accept overlapping flanking exons in place of identical splice sites.",
)
@click.option(
    "-c",
    "--constitutives",
    is_flag=True,
    help="Only report constitutive exons.",
)
@click.option("-l", "--limit", type=click.IntRange(min=0), help="Maximum number of genes to read (0: all).")
@click.option("-s", "--statistics", is_flag=True, help="Print event statistics to stderr.")
@click.option("--datasource", type=str, help="Source column of the report.  [default: Ensembl]")
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML or TOML configuration file.",
)
@click.pass_context
def find(
    ctx: click.Context,
    input_path: str,
    output: Path | None,
    relax: bool,
    constitutives: bool,
    limit: int | None,
    statistics: bool,
    datasource: str | None,
    config_file: Path | None,
) -> None:
    """Detect splicing events and write them as GFF.

    Example:
        altsplice find -i mart_export.gtf -o events.gff
    """
    try:
        config = _load_config(config_file, relax, constitutives, limit, datasource, statistics)
        run_stats = _run(config, input_path, output, write_report=True)
    except (AltSpliceError, OSError) as e:
        console.print(f"[red]Error:[/red] {e}")
        if ctx.obj.get("verbose"):
            import traceback
            traceback.print_exc()
        raise SystemExit(1)

    if config.statistics:
        _print_statistics(run_stats)


# =============================================================================
# stats command
# =============================================================================


@main.command()
@click.option(
    "-i",
    "--input",
    "input_path",
    default="-",
    show_default=True,
    help="BioMart GTF annotation, - for standard input.",
)
@click.option("-r", "--relax", is_flag=True, help="Relaxed splice site matching.")
@click.option("-l", "--limit", type=click.IntRange(min=0), help="Maximum number of genes to read (0: all).")
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML or TOML configuration file.",
)
@click.pass_context
def stats(ctx: click.Context, input_path: str, relax: bool, limit: int | None, config_file: Path | None) -> None:
    """Print splicing event statistics without writing a report."""
    try:
        config = _load_config(config_file, relax, False, limit, None, True)
        run_stats = _run(config, input_path, None, write_report=False)
    except (AltSpliceError, OSError) as e:
        console.print(f"[red]Error:[/red] {e}")
        if ctx.obj.get("verbose"):
            import traceback
            traceback.print_exc()
        raise SystemExit(1)

    _print_statistics(run_stats)


if __name__ == "__main__":
    main()
