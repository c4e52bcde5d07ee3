import typer
import yaml
from rich.table import Table

from gatecheck.core.container import get_container
from gatecheck.core.logging import console
from gatecheck.models.policy import default_config

app = typer.Typer(help='Policy file and settings helpers')


@app.command()
def init():
    """Print a permissive policy file to start from."""
    typer.echo(
        yaml.safe_dump(default_config().to_document(), sort_keys=False),
        nl=False,
    )


@app.command()
def info():
    """Show the settings resolved from the environment."""
    table = Table(title='Gatecheck Settings')
    table.add_column('Setting', style='cyan')
    table.add_column('Environment Variable', style='dim')
    table.add_column('Value', style='magenta')
    for row in get_container().settings.as_rows():
        table.add_row(*row)
    console.print(table)
