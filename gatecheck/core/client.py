from datetime import timedelta
from pathlib import Path

import requests
import requests_cache
import structlog
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from gatecheck.core.config import get_settings
from gatecheck.core.errors import APIError

logger = structlog.get_logger('client')


def get_http_client(
    cache_name: str | None = None,
    expire_after: int | None = None,
    retries: int = 3,
) -> requests_cache.CachedSession:
    """
    Returns a requests session with caching and retry logic.
    """
    settings = get_settings()
    cache_path = Path(cache_name) if cache_name else settings.cache.http_cache_path
    cache_path.parent.mkdir(parents=True, exist_ok=True)
    if expire_after is None:
        expire_after = settings.cache.ttl

    session = requests_cache.CachedSession(
        cache_name=str(cache_path),
        backend='sqlite',
        expire_after=timedelta(seconds=expire_after),
        allowable_codes=[200],
    )

    def logging_hook(response, *args, **kwargs):
        if getattr(response, '_logged', False):
            return
        response._logged = True

        is_cached = getattr(response, 'from_cache', False)
        log_kwargs = {
            'method': response.request.method,
            'url': response.url,
            'status': response.status_code,
            'elapsed': f"{response.elapsed.total_seconds():.3f}s",
            'cached': is_cached,
        }
        length = response.headers.get('Content-Length')
        if length:
            log_kwargs['content_length'] = length

        if is_cached:
            logger.debug('HTTP Request', _style='dim', **log_kwargs)
        else:
            logger.debug('HTTP Request', **log_kwargs)
    session.hooks['response'].append(logging_hook)

    retry_strategy = Retry(
        total=retries,
        backoff_factor=1,
        status_forcelist=[500, 502, 503, 504],
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount('https://', adapter)
    session.mount('http://', adapter)

    logger.debug(
        'Initialized Cached HTTP Client',
        cache_name=str(cache_path),
        expire_after=expire_after,
    )
    return session


def fetch(session: requests.Session, url: str, timeout: float | None = None) -> bytes:
    """GET a feed and return its body, turning every transport failure into APIError."""
    if timeout is None:
        timeout = get_settings().feeds.request_timeout
    try:
        response = session.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise APIError(f"GET {url}: {e}") from e
    return response.content
