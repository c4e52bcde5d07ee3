import dotenv
import typer

from gatecheck.__version__ import __version__
from gatecheck.commands import bundle
from gatecheck.commands import config
from gatecheck.commands import epss
from gatecheck.commands import kev
from gatecheck.commands import report
from gatecheck.commands import validate
from gatecheck.core.logging import console
from gatecheck.core.logging import LoggingConfig
from gatecheck.core.logging import setup_logging

app = typer.Typer(
    help='Gatecheck: validate security scan reports against a severity policy.',
    no_args_is_help=True,
    pretty_exceptions_show_locals=False,
)

app.command(name='validate')(validate.validate)
app.command(name='print')(report.print_reports)
app.command(name='kev')(kev.kev)
app.add_typer(bundle.app, name='bundle')
app.add_typer(epss.app, name='epss')
app.add_typer(config.app, name='config')


@app.command()
def version():
    """Print the gatecheck version."""
    console.print(f"gatecheck {__version__}")


@app.callback()
def main(
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Enable debug logging'),
    silent: bool = typer.Option(False, '--silent', '-s', help='Only log warnings and errors'),
):
    """
    Gatecheck - aggregate, validate and enrich security scan reports.
    """
    dotenv.load_dotenv()
    setup_logging(LoggingConfig.from_flags(verbose=verbose, silent=silent))


if __name__ == '__main__':
    app()
