import functools
from collections.abc import Callable
from typing import Any

import structlog
import typer
from rich.markup import escape

from gatecheck.core.errors import exit_code_for
from gatecheck.core.errors import FileAccessError
from gatecheck.core.errors import GatecheckError
from gatecheck.core.errors import ValidationError
from gatecheck.core.logging import err_console

logger = structlog.get_logger('cli')

ERROR_TITLES = {
    ValidationError: 'Validation Failed',
    FileAccessError: 'File Access Error',
}


def _title(error: BaseException) -> str:
    for kind, title in ERROR_TITLES.items():
        if isinstance(error, kind):
            return title
    return type(error).__name__


def handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """
    Map gatecheck errors to exit codes for CLI commands.

    A command called with `audit=True` reports a ValidationError and still
    exits 0; no other error kind is downgraded.
    """
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except typer.Exit:
            raise
        except ValidationError as e:
            if kwargs.get('audit'):
                err_console.print(f"[bold yellow]Audit:[/] {escape(str(e))}", highlight=False)
                logger.debug('Validation failure ignored in audit mode')
                return None
            err_console.print(f"[bold red]{_title(e)}:[/] {escape(str(e))}", highlight=False)
            raise typer.Exit(exit_code_for(e))
        except GatecheckError as e:
            err_console.print(f"[bold red]{_title(e)}:[/] {escape(str(e))}", highlight=False)
            logger.debug('Command failed', exc_info=True)
            raise typer.Exit(exit_code_for(e))
        except KeyboardInterrupt:
            err_console.print('\n[yellow]Operation cancelled by user.[/]')
            raise typer.Exit(130)
    return wrapper
