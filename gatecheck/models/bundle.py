from collections.abc import Iterator
from pathlib import Path

from gatecheck.core.fs import read_bytes
from gatecheck.models.artifact import Artifact

BUNDLE_VERSION = '1'


class Bundle:
    """
    A named collection of raw artifact payloads.

    Labels are unique; adding under an existing label replaces its payload.
    Payloads are stored as immutable bytes exactly as given.
    """

    def __init__(self, artifacts: dict[str, bytes] | None = None, version: str = BUNDLE_VERSION):
        self.version = version
        self._artifacts: dict[str, bytes] = {}
        for label, content in (artifacts or {}).items():
            self.add(label, content)

    def add(self, label: str, content: bytes) -> None:
        if not label:
            raise ValueError('bundle labels must be non-empty')
        self._artifacts[label] = bytes(content)

    def add_file(self, path: str | Path, label: str | None = None) -> str:
        """Add a file's bytes under its base name (or an explicit label)."""
        content = read_bytes(path)
        label = label or Path(path).name
        self.add(label, content)
        return label

    def get(self, label: str) -> bytes:
        try:
            return self._artifacts[label]
        except KeyError:
            raise KeyError(f"no artifact labelled '{label}' in bundle") from None

    def remove(self, label: str) -> None:
        self._artifacts.pop(label, None)

    def labels(self) -> list[str]:
        return sorted(self._artifacts)

    def items(self) -> Iterator[tuple[str, bytes]]:
        for label in self.labels():
            yield label, self._artifacts[label]

    def artifacts(self, detector=None, timeout: float | None = None) -> Iterator[Artifact]:
        for label, content in self.items():
            yield Artifact.from_bytes(label, content, detector=detector, timeout=timeout)

    @property
    def total_size(self) -> int:
        return sum(len(content) for content in self._artifacts.values())

    def __contains__(self, label: object) -> bool:
        return label in self._artifacts

    def __len__(self) -> int:
        return len(self._artifacts)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Bundle):
            return NotImplemented
        return self.version == other.version and self._artifacts == other._artifacts

    def __repr__(self) -> str:
        return f"Bundle(version={self.version!r}, labels={self.labels()!r})"
