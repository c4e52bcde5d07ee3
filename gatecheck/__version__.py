"""Version information for gatecheck."""
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version


def get_version() -> str:
    """Version string from the installed package metadata."""
    try:
        return version('gatecheck')
    except PackageNotFoundError:
        return '0.0.0-dev'


__version__ = get_version()
