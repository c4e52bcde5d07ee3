import hashlib
from dataclasses import dataclass

import humanize

from gatecheck.models.file_type import FileType


@dataclass(frozen=True)
class Artifact:
    """A labelled payload with its SHA-256 digest and detected format."""
    label: str
    digest: bytes
    file_type: FileType
    content: bytes

    @classmethod
    def from_bytes(
        cls,
        label: str,
        content: bytes,
        detector=None,
        timeout: float | None = None,
    ) -> 'Artifact':
        """Wrap raw bytes, hashing them once and inferring the type if a detector is given."""
        content = bytes(content)
        file_type = FileType.GENERIC
        if detector is not None:
            file_type = detector.file_type(content, timeout=timeout)
        return cls(
            label=label,
            digest=hashlib.sha256(content).digest(),
            file_type=file_type,
            content=content,
        )

    @property
    def digest_string(self) -> str:
        return 'sha256:' + self.digest.hex().upper()

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def natural_size(self) -> str:
        return humanize.naturalsize(self.size, binary=True)

    def __str__(self) -> str:
        return f"{self.label} ({self.file_type}) [{self.digest_string}] {self.natural_size}"
