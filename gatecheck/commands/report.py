from pathlib import Path

import structlog
import typer

from gatecheck.core.container import get_container
from gatecheck.core.decorators import handle_errors
from gatecheck.core.fs import read_bytes
from gatecheck.core.logging import console
from gatecheck.core.render import report_table

logger = structlog.get_logger('print')


@handle_errors
def print_reports(
    files: list[Path] = typer.Argument(..., help='Reports or bundles to print'),
):
    """Detect each file's type and print it as a table."""
    container = get_container()
    detector = container.get_detector()
    timeout = container.settings.decode_timeout

    for path in files:
        decoded = detector.detect(read_bytes(path), timeout=timeout)
        table = report_table(decoded, detector=detector)
        if table is None:
            logger.warning(
                'No table for this file type',
                path=str(path), file_type=str(decoded.file_type),
            )
            continue
        console.print(table)
