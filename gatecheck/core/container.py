"""Dependency Injection Container."""
from pathlib import Path
from typing import Optional

import requests

from gatecheck.core.client import get_http_client
from gatecheck.core.config import GatecheckSettings
from gatecheck.core.config import get_settings
from gatecheck.core.detector import TypeDetector
from gatecheck.core.errors import UserInputError
from gatecheck.services.decoders import standard_decoders
from gatecheck.services.epss import EPSSService
from gatecheck.services.kev import KEVService
from gatecheck.services.validation import ValidationService


class Container:
    """Builds the services a command needs from the resolved settings."""

    _instance: Optional['Container'] = None

    def __init__(self, settings: GatecheckSettings | None = None) -> None:
        self.settings: GatecheckSettings = settings or get_settings()
        self._session: requests.Session | None = None

    @classmethod
    def get_instance(cls) -> 'Container':
        if cls._instance is None:
            cls._instance = Container()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        cls._instance = None

    def get_http_client(self) -> requests.Session:
        if self._session is None:
            self._session = get_http_client()
        return self._session

    def get_detector(self) -> TypeDetector:
        return TypeDetector(standard_decoders())

    def get_kev_service(self, kev_file: Path | None = None, fetch: bool = False) -> KEVService | None:
        """KEV catalog from a local file or the live feed; None when neither is asked for."""
        if kev_file is not None and fetch:
            raise UserInputError('use either a KEV file or --fetch-kev, not both')
        if kev_file is not None:
            return KEVService.from_file(kev_file, timeout=self.settings.decode_timeout)
        if fetch:
            return KEVService.from_url(
                self.settings.feeds.kev_url,
                self.get_http_client(),
                timeout=self.settings.decode_timeout,
            )
        return None

    def get_epss_service(self, epss_file: Path | None = None, fetch: bool = False) -> EPSSService | None:
        if epss_file is not None and fetch:
            raise UserInputError('use either an EPSS file or --fetch-epss, not both')
        if epss_file is not None:
            return EPSSService.from_file(epss_file)
        if fetch:
            return EPSSService.from_url(self.settings.feeds.epss_url, self.get_http_client())
        return None

    def create_validation_service(
        self,
        kev_service: KEVService | None = None,
        epss_service: EPSSService | None = None,
        timeout: float | None = None,
    ) -> ValidationService:
        """Factory (not singleton): each run carries its own feeds and deadline."""
        return ValidationService(
            self.get_detector(),
            kev_service=kev_service,
            epss_service=epss_service,
            timeout=timeout if timeout is not None else self.settings.decode_timeout,
        )


def get_container() -> Container:
    return Container.get_instance()
