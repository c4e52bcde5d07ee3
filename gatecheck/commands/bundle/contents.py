from pathlib import Path

import typer

from gatecheck.core.container import get_container
from gatecheck.core.decorators import handle_errors
from gatecheck.core.fs import read_bytes
from gatecheck.core.logging import console
from gatecheck.core.render import bundle_table
from gatecheck.models.file_type import FileType
from gatecheck.services.archive import decode_bundle
from gatecheck.services.policy import load_policy_config
from gatecheck.services.policy import POLICY_RULES


@handle_errors
def list_contents(
    bundle_file: Path = typer.Argument(..., help='Gatecheck bundle'),
    config: Path | None = typer.Option(
        None, '--config', '-c', help='Policy file used to mark required artifacts',
    ),
):
    """List the artifacts in a bundle with their type, digest and size."""
    container = get_container()
    bundle = decode_bundle(read_bytes(bundle_file))

    required: list[FileType] = []
    if config is not None:
        fields = set(load_policy_config(config).required())
        required = [
            rule.file_type for rule in POLICY_RULES.values() if rule.field_name in fields
        ]

    console.print(
        bundle_table(
            bundle,
            detector=container.get_detector(),
            required=required,
            timeout=container.settings.decode_timeout,
        ),
    )
