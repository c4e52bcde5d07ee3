import time
from collections.abc import Sequence
from concurrent.futures import FIRST_COMPLETED
from concurrent.futures import Future
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import wait

import structlog

from gatecheck.core.errors import DecodeTimeoutError
from gatecheck.core.errors import EncodingError
from gatecheck.core.errors import NoMatchingFormatError
from gatecheck.models.file_type import Decoded
from gatecheck.models.file_type import FileType


class TypeDetector:
    """
    Races every registered decoder against the same bytes.

    The first decoder to both parse and pass its structural check wins and
    its result is returned straight away; slower decoders keep running in
    the background but their results are discarded. When no decoder wins
    before the deadline a DecodeTimeoutError is raised, even if a decoder
    finishes just after it.
    """

    def __init__(self, decoders: Sequence, max_workers: int | None = None, logger=None):
        self.decoders = list(decoders)
        self.max_workers = max_workers or max(len(self.decoders), 1)
        self.logger = logger or structlog.get_logger('detector')

    def detect(self, content: bytes, timeout: float | None = None) -> Decoded:
        if not self.decoders:
            raise EncodingError('no decoders provided')

        content = bytes(content)
        deadline = None if timeout is None else time.monotonic() + timeout

        executor = ThreadPoolExecutor(
            max_workers=self.max_workers,
            thread_name_prefix='gatecheck-detect',
        )
        try:
            futures: dict[Future, object] = {
                executor.submit(decoder.decode, content): decoder
                for decoder in self.decoders
            }
            order = list(futures)
            pending = set(futures)
            causes: dict[str, Exception] = {}

            while pending:
                remaining = None
                if deadline is not None:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        raise self._timeout(timeout)

                done, pending = wait(
                    pending, timeout=remaining, return_when=FIRST_COMPLETED,
                )
                if deadline is not None and time.monotonic() >= deadline:
                    raise self._timeout(timeout)

                for future in (f for f in order if f in done):
                    decoder = futures[future]
                    error = future.exception()
                    if error is None:
                        self.logger.debug(
                            'Detected file type',
                            file_type=str(decoder.file_type),
                            size=len(content),
                        )
                        return Decoded(decoder.file_type, future.result())
                    if not isinstance(error, EncodingError):
                        error = EncodingError(f"{decoder.name}: {error!r}")
                    causes[decoder.name] = error

            self.logger.debug('No decoder matched', size=len(content), causes=len(causes))
            raise NoMatchingFormatError(causes)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def file_type(self, content: bytes, timeout: float | None = None) -> FileType:
        """The detected file type, or GENERIC if nothing recognises the bytes."""
        try:
            return self.detect(content, timeout=timeout).file_type
        except EncodingError:
            return FileType.GENERIC

    def _timeout(self, timeout: float | None) -> DecodeTimeoutError:
        self.logger.debug('Type detection timed out', timeout=timeout)
        return DecodeTimeoutError(f"type detection timed out after {timeout}s")
