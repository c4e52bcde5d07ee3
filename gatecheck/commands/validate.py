from pathlib import Path

import structlog
import typer

from gatecheck.core.container import get_container
from gatecheck.core.decorators import handle_errors
from gatecheck.core.fs import read_bytes
from gatecheck.core.logging import console
from gatecheck.services.policy import load_policy_config

logger = structlog.get_logger('validate')


@handle_errors
def validate(
    file: Path = typer.Argument(..., help='Report or bundle to validate (- for stdin)'),
    config: Path = typer.Option(
        ..., '--config', '-c', help='Gatecheck policy configuration file',
    ),
    kev_file: Path | None = typer.Option(
        None, '--kev-file', '-k', help='CISA KEV catalog (JSON or CSV)',
    ),
    fetch_kev: bool = typer.Option(
        False, '--fetch-kev', help='Download the KEV catalog',
    ),
    epss_file: Path | None = typer.Option(
        None, '--epss-file', '-e', help='EPSS scores CSV (optionally gzipped)',
    ),
    fetch_epss: bool = typer.Option(
        False, '--fetch-epss', help='Download the EPSS scores',
    ),
    audit: bool = typer.Option(
        False, '--audit', '-a', help='Exit 0 even if validation fails',
    ),
    timeout: float | None = typer.Option(
        None, '--timeout', help='Seconds allowed for file type detection',
    ),
):
    """
    Validate a report or bundle against the thresholds in a policy file.
    Grype reports can be enriched with KEV matches and EPSS scores.
    """
    container = get_container()
    policy = load_policy_config(config)
    content = read_bytes(file)

    service = container.create_validation_service(
        kev_service=container.get_kev_service(kev_file, fetch_kev),
        epss_service=container.get_epss_service(epss_file, fetch_epss),
        timeout=timeout,
    )
    decoded = service.validate_bytes(content, policy)
    console.print(f"[bold green]Passed:[/] {decoded.file_type}")
