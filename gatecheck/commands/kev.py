from pathlib import Path

import typer

from gatecheck.core.container import get_container
from gatecheck.core.decorators import handle_errors
from gatecheck.core.errors import UserInputError
from gatecheck.core.fs import read_bytes
from gatecheck.core.logging import console
from gatecheck.core.render import kev_table
from gatecheck.services.decoders import GrypeDecoder


@handle_errors
def kev(
    file: Path = typer.Argument(..., help='Grype report'),
    kev_file: Path | None = typer.Option(
        None, '--kev-file', '-k', help='CISA KEV catalog (JSON or CSV)',
    ),
    fetch_catalog: bool = typer.Option(
        False, '--fetch', help='Download the current KEV catalog',
    ),
):
    """List the vulnerabilities in a grype report that appear in the CISA KEV catalog."""
    if kev_file is None and not fetch_catalog:
        raise UserInputError('no KEV file or --fetch flag')

    service = get_container().get_kev_service(kev_file, fetch_catalog)
    report = GrypeDecoder().decode(read_bytes(file))
    console.print(kev_table(service.match(report), service.catalog.catalog_version))
