"""
Bundle wire format.

A bundle is written as a gzip stream wrapping one JSON document:

    {"version": "1", "artifacts": {"<label>": "<base64 payload>", ...}}

Decoding validates the top-level shape before any payload is exposed.
"""
import base64
import binascii
import gzip
import io
import json
import zlib
from typing import BinaryIO

import structlog
from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import field_validator
from pydantic import ValidationError as PydanticValidationError

from gatecheck.core.errors import EncodingError
from gatecheck.models.bundle import Bundle
from gatecheck.models.bundle import BUNDLE_VERSION

logger = structlog.get_logger('archive')

# a multiple of 3, so base64 chunks concatenate without padding in between
ENCODE_CHUNK_SIZE = 3 * 64 * 1024


class BundleDocument(BaseModel):
    """The serialised shape of a bundle."""
    version: str
    artifacts: dict[str, str]

    model_config = ConfigDict(extra='forbid', strict=True)

    @field_validator('version')
    @classmethod
    def check_version(cls, v: str) -> str:
        if v != BUNDLE_VERSION:
            raise ValueError(
                f"bundle version '{v}' is not supported, supported version is '{BUNDLE_VERSION}'",
            )
        return v

    @field_validator('artifacts')
    @classmethod
    def check_labels(cls, v: dict[str, str]) -> dict[str, str]:
        if any(not label for label in v):
            raise ValueError('artifact labels must be non-empty')
        return v

    def to_bundle(self) -> Bundle:
        bundle = Bundle(version=self.version)
        for label, encoded in self.artifacts.items():
            try:
                content = base64.b64decode(encoded, validate=True)
            except binascii.Error as e:
                raise EncodingError(f"artifact '{label}' is not valid base64: {e}") from e
            bundle.add(label, content)
        return bundle


def encode_bundle(bundle: Bundle, stream: BinaryIO) -> None:
    """
    Serialise a bundle and write it gzip-compressed to a binary stream.

    The JSON document is written piecewise, one label at a time, and each
    payload is base64-encoded in chunks straight into the compressor.
    """
    with gzip.GzipFile(fileobj=stream, mode='wb', mtime=0) as gz:
        gz.write(b'{"version":' + _json_string(bundle.version) + b',"artifacts":{')
        for index, (label, content) in enumerate(bundle.items()):
            if index:
                gz.write(b',')
            gz.write(_json_string(label) + b':"')
            view = memoryview(content)
            for start in range(0, len(view), ENCODE_CHUNK_SIZE):
                gz.write(base64.b64encode(view[start:start + ENCODE_CHUNK_SIZE]))
            gz.write(b'"')
        gz.write(b'}}')
    logger.debug(
        'Encoded bundle',
        artifacts=len(bundle),
        total_size=bundle.total_size,
    )


def _json_string(value: str) -> bytes:
    return json.dumps(value).encode('ascii')


def decode_bundle(source: BinaryIO | bytes) -> Bundle:
    """Read a gzip-compressed bundle from a binary stream or a bytes object."""
    if isinstance(source, (bytes, bytearray, memoryview)):
        source = io.BytesIO(bytes(source))
    try:
        with gzip.GzipFile(fileobj=source, mode='rb') as gz:
            raw = gz.read()
    except (OSError, EOFError, zlib.error) as e:
        raise EncodingError(f"bundle decompression failed: {e}") from e

    try:
        document = BundleDocument.model_validate_json(raw)
    except PydanticValidationError as e:
        raise EncodingError(
            f"bundle has an invalid structure: {e.error_count()} error(s), "
            f"first: {e.errors()[0]['msg']}",
        ) from e

    bundle = document.to_bundle()
    logger.debug('Decoded bundle', artifacts=len(bundle))
    return bundle


def dumps(bundle: Bundle) -> bytes:
    buf = io.BytesIO()
    encode_bundle(bundle, buf)
    return buf.getvalue()


def loads(content: bytes) -> Bundle:
    return decode_bundle(content)
