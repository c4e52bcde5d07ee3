"""Configuration management for gatecheck."""
import os
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path

DEFAULT_KEV_URL = 'https://www.cisa.gov/sites/default/files/feeds/known_exploited_vulnerabilities.json'
DEFAULT_EPSS_URL = 'https://epss.cyentia.com/epss_scores-current.csv.gz'
DEFAULT_BUNDLE_FILENAME = 'gatecheck-bundle.tar.gz'


@dataclass
class FeedConfig:
    """Where the vulnerability-intelligence feeds are fetched from."""
    kev_url: str = field(
        default_factory=lambda: os.getenv(
            'GATECHECK_KEV_URL', DEFAULT_KEV_URL,
        ),
    )
    epss_url: str = field(
        default_factory=lambda: os.getenv(
            'GATECHECK_EPSS_URL', DEFAULT_EPSS_URL,
        ),
    )
    request_timeout: float = 60.0


@dataclass
class CacheConfig:
    """HTTP response cache used for feed downloads."""
    cache_dir: Path = field(
        default_factory=lambda: Path(
            os.getenv('GATECHECK_CACHE_DIR', '.cache'),
        ),
    )
    ttl: int = field(
        default_factory=lambda: int(
            os.getenv('GATECHECK_CACHE_TTL', str(60 * 60 * 24)),
        ),
    )

    @property
    def http_cache_path(self) -> Path:
        return self.cache_dir / 'http_cache'


@dataclass
class GatecheckSettings:
    feeds: FeedConfig = field(default_factory=FeedConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    decode_timeout: float = field(
        default_factory=lambda: float(
            os.getenv('GATECHECK_DECODE_TIMEOUT', '5'),
        ),
    )
    bundle_filename: str = field(
        default_factory=lambda: os.getenv(
            'GATECHECK_BUNDLE_FILENAME', DEFAULT_BUNDLE_FILENAME,
        ),
    )

    @classmethod
    def load(cls) -> 'GatecheckSettings':
        return cls()

    def as_rows(self) -> list[tuple[str, str, str]]:
        """(setting, environment variable, value) rows for `config info`."""
        return [
            ('KEV URL', 'GATECHECK_KEV_URL', self.feeds.kev_url),
            ('EPSS URL', 'GATECHECK_EPSS_URL', self.feeds.epss_url),
            ('Decode timeout', 'GATECHECK_DECODE_TIMEOUT', f"{self.decode_timeout:g}s"),
            ('Bundle filename', 'GATECHECK_BUNDLE_FILENAME', self.bundle_filename),
            ('Cache directory', 'GATECHECK_CACHE_DIR', str(self.cache.cache_dir)),
            ('Cache TTL', 'GATECHECK_CACHE_TTL', f"{self.cache.ttl}s"),
        ]


_settings: GatecheckSettings | None = None


def get_settings() -> GatecheckSettings:
    global _settings
    if _settings is None:
        _settings = GatecheckSettings.load()
    return _settings


def reset_settings() -> None:
    """Forget the cached settings so the environment is read again."""
    global _settings
    _settings = None
