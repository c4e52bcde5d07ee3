import io
from pathlib import Path

import structlog
import typer

from gatecheck.core.container import get_container
from gatecheck.core.decorators import handle_errors
from gatecheck.core.fs import read_bytes
from gatecheck.core.fs import write_bytes
from gatecheck.core.logging import console
from gatecheck.core.render import bundle_table
from gatecheck.models.bundle import Bundle
from gatecheck.services.archive import decode_bundle
from gatecheck.services.archive import encode_bundle

logger = structlog.get_logger('bundle')


@handle_errors
def create(
    files: list[Path] = typer.Argument(..., help='Files to add to the bundle'),
    output: Path | None = typer.Option(
        None, '--output', '-o',
        help='Bundle file; new files are added to it if it already exists',
    ),
    allow_missing: bool = typer.Option(
        False, '--allow-missing', '-m', help='Skip files that do not exist',
    ),
):
    """
    Add files to a new or existing gatecheck bundle.
    Files are labelled by their base name; re-adding a name replaces it.
    """
    container = get_container()
    output = output or Path(container.settings.bundle_filename)

    bundle = Bundle()
    if output.exists() and output.stat().st_size > 0:
        logger.info('Adding to existing bundle', path=str(output), size=output.stat().st_size)
        bundle = decode_bundle(read_bytes(output))

    for path in files:
        if allow_missing and not path.exists():
            logger.warning('Skipping missing file', path=str(path))
            continue
        label = bundle.add_file(path)
        logger.info('Added artifact', label=label, size=len(bundle.get(label)))

    buf = io.BytesIO()
    encode_bundle(bundle, buf)
    write_bytes(output, buf.getvalue())
    logger.info('Bundle written', path=str(output), artifacts=len(bundle))

    console.print(
        bundle_table(
            bundle,
            detector=container.get_detector(),
            timeout=container.settings.decode_timeout,
        ),
    )
