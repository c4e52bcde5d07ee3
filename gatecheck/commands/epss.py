import csv
import sys
from enum import Enum
from pathlib import Path

import structlog
import typer

from gatecheck.core.client import fetch
from gatecheck.core.container import get_container
from gatecheck.core.decorators import handle_errors
from gatecheck.core.errors import UserInputError
from gatecheck.core.fs import read_bytes
from gatecheck.core.fs import STDIO
from gatecheck.core.fs import write_bytes
from gatecheck.core.logging import console
from gatecheck.core.render import epss_table
from gatecheck.services.decoders import GrypeDecoder
from gatecheck.services.epss import EPSSService

logger = structlog.get_logger('epss')
app = typer.Typer(help='Exploit Prediction Scoring System (EPSS) lookups')


class OutputFormat(str, Enum):
    TABLE = 'table'
    CSV = 'csv'


@app.command()
@handle_errors
def scores(
    file: Path = typer.Argument(..., help='Grype report'),
    epss_file: Path | None = typer.Option(
        None, '--epss-file', '-e', help='Downloaded EPSS CSV; the API is not queried',
    ),
    fetch_scores: bool = typer.Option(
        False, '--fetch', help='Download current EPSS scores',
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.TABLE, '--format', '-f', help='Output format',
    ),
):
    """Show the EPSS score of every vulnerability in a grype report."""
    if epss_file is None and not fetch_scores:
        raise UserInputError('no EPSS file or --fetch flag')

    container = get_container()
    service = container.get_epss_service(epss_file, fetch_scores)
    report = GrypeDecoder().decode(read_bytes(file))
    cves = service.scores(EPSSService.cves_for(report))

    if output_format == OutputFormat.CSV:
        writer = csv.writer(sys.stdout)
        writer.writerow(['CVE', 'Severity', 'EPSS Score', 'Percentile', 'Link'])
        for cve in cves:
            writer.writerow([cve.id, cve.severity, cve.probability, cve.percentile, cve.link])
        return

    console.print(epss_table(cves))
    if service.score_date:
        console.print(f"[dim]Scores dated {service.score_date}[/dim]")


@app.command()
@handle_errors
def download(
    output: Path = typer.Option(
        Path(STDIO), '--output', '-o', help='Destination file (default: stdout)',
    ),
):
    """Download the EPSS scores CSV for all CVEs."""
    container = get_container()
    url = container.settings.feeds.epss_url
    written = write_bytes(output, fetch(container.get_http_client(), url))
    logger.info('EPSS feed written', url=url, bytes_written=written, output=str(output))
