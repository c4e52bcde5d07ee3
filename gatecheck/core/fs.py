import sys
from pathlib import Path

from gatecheck.core.errors import FileAccessError

STDIO = '-'


def read_bytes(path: str | Path) -> bytes:
    """Read a whole file, or stdin for '-', raising FileAccessError on failure."""
    if str(path) == STDIO:
        return sys.stdin.buffer.read()
    try:
        return Path(path).read_bytes()
    except OSError as e:
        raise FileAccessError(f"{path}: {e.strerror or e}") from e


def write_bytes(path: str | Path, content: bytes) -> int:
    """Write a whole file, or stdout for '-'; returns the number of bytes written."""
    if str(path) == STDIO:
        sys.stdout.buffer.write(content)
        sys.stdout.buffer.flush()
        return len(content)
    try:
        return Path(path).write_bytes(content)
    except OSError as e:
        raise FileAccessError(f"{path}: {e.strerror or e}") from e
