import logging
import os
import sys
from dataclasses import dataclass
from typing import Any

import structlog
from rich.console import Console

# Report tables and command output
console = Console()
# Diagnostics and audit messages
err_console = Console(stderr=True)


@dataclass(frozen=True)
class LoggingConfig:
    """How gatecheck logs, built once by the CLI and passed down explicitly."""
    level: str = 'INFO'
    json: bool = False

    @classmethod
    def from_flags(cls, verbose: bool = False, silent: bool = False) -> 'LoggingConfig':
        if verbose:
            level = 'DEBUG'
        elif silent:
            level = 'WARNING'
        else:
            level = 'INFO'
        return cls(level=level, json=os.getenv('ENV') == 'production')


class RichConsoleRenderer:
    """
    A structlog renderer that prints events through a rich Console on stderr.
    Events are rendered as key=value pairs; an optional '_style' key in the
    event dict overrides the line style.
    """

    def __init__(self, console: Console | None = None):
        self._console = console or err_console
        self._level_styles = {
            'debug': 'dim',
            'info': 'green',
            'warning': 'yellow',
            'error': 'bold red',
            'critical': 'bold magenta',
        }

    def __call__(self, logger, name, event_dict):
        custom_style = event_dict.pop('_style', None)

        event = event_dict.pop('event', '')
        log_level = event_dict.pop('level', 'info')
        logger_name = event_dict.pop('logger', None)
        timestamp = event_dict.pop('timestamp', '')
        exception = event_dict.pop('exception', None)
        stack_info = event_dict.pop('stack_info', None)

        parts = []
        if timestamp:
            parts.append(f"[dim]{timestamp}[/dim]")
        if logger_name:
            parts.append(f"[bold]{logger_name}[/bold]")

        level_style = self._level_styles.get(log_level, 'white')
        parts.append(f"[{level_style}]{log_level:<8}[/{level_style}]")
        parts.append(str(event))

        for key, value in event_dict.items():
            parts.append(f"[cyan]{key}[/cyan]=[green]{value!r}[/green]")

        final_msg = ' '.join(parts)
        if exception:
            final_msg += f"\n[red]{exception}[/red]"
        if stack_info:
            final_msg += f"\n[dim]{stack_info}[/dim]"

        self._console.print(final_msg, style=custom_style, highlight=False)

        # Already printed; keep the stdlib handler from emitting an empty line
        raise structlog.DropEvent


def drop_style_processor(logger, method_name, event_dict):
    """Remove the '_style' hint so it never leaks into JSON logs."""
    event_dict.pop('_style', None)
    return event_dict


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Configure structlog for the whole process from an explicit LoggingConfig."""
    config = config or LoggingConfig()

    logging.basicConfig(
        format='%(message)s', stream=sys.stderr,
        level=config.level, force=True,
    )

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt='iso'),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if config.json:
        processors = shared_processors + [
            drop_style_processor,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            RichConsoleRenderer(),
        ]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
