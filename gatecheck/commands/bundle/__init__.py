import typer

from . import contents
from . import create
from . import extract

app = typer.Typer(help='Create, inspect and extract gatecheck bundles')

app.command(name='create')(create.create)
app.command(name='extract')(extract.extract)
app.command(name='list')(contents.list_contents)
