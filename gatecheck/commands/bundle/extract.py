from pathlib import Path

import structlog
import typer

from gatecheck.core.decorators import handle_errors
from gatecheck.core.errors import UserInputError
from gatecheck.core.fs import read_bytes
from gatecheck.core.fs import STDIO
from gatecheck.core.fs import write_bytes
from gatecheck.services.archive import decode_bundle

logger = structlog.get_logger('bundle')


@handle_errors
def extract(
    bundle_file: Path = typer.Argument(..., help='Gatecheck bundle'),
    label: str = typer.Option(..., '--label', '-l', help='Label of the artifact to extract'),
    output: Path = typer.Option(
        Path(STDIO), '--output', '-o', help='Destination file (default: stdout)',
    ),
):
    """Write one artifact from a bundle to stdout or a file."""
    bundle = decode_bundle(read_bytes(bundle_file))
    if label not in bundle:
        raise UserInputError(
            f"no artifact labelled '{label}', bundle contains: {', '.join(bundle.labels()) or 'nothing'}",
        )
    written = write_bytes(output, bundle.get(label))
    logger.info('Extracted artifact', label=label, bytes_written=written, output=str(output))
