"""
Refreshing the local API cache from the data source.
"""

import asyncio
import logging
import shutil
from pathlib import Path
from typing import Iterable

import httpx

from ..config import API_ENDPOINTS, SyncConfig
from ..exceptions import SourceFetchError
from .cache import cache_path

logger = logging.getLogger("daggerheart-sync")

MAX_RETRIES = 3
RETRY_BACKOFF = 2.0


class ApiFetcher:
    """Downloads endpoint payloads with retry on rate limits and server errors."""

    def __init__(self, base_url: str, client: httpx.AsyncClient):
        self.base_url = base_url.rstrip("/")
        self._client = client

    def endpoint_url(self, endpoint: str) -> str:
        return f"{self.base_url}/{endpoint}"

    async def fetch(self, endpoint: str, lang: str) -> bytes:
        """Fetch one endpoint in one language as raw bytes.

        Raises:
            SourceFetchError: On a client error or once retries are exhausted
        """
        url = self.endpoint_url(endpoint)
        last_error: Exception | None = None

        for attempt in range(MAX_RETRIES):
            try:
                response = await self._client.get(url, params={"lang": lang})

                if response.status_code == 429:
                    wait = RETRY_BACKOFF ** attempt
                    logger.warning(f"Rate limited, waiting {wait}s")
                    last_error = httpx.HTTPStatusError("429 Too Many Requests", request=response.request, response=response)
                    await asyncio.sleep(wait)
                    continue

                response.raise_for_status()
                return response.content

            except httpx.TimeoutException as e:
                logger.warning(f"Timeout fetching {url}?lang={lang}, attempt {attempt + 1}")
                last_error = e
                await asyncio.sleep(RETRY_BACKOFF ** attempt)

            except httpx.HTTPStatusError as e:
                if e.response.status_code >= 500:
                    logger.warning(f"Server error {e.response.status_code}, attempt {attempt + 1}")
                    last_error = e
                    await asyncio.sleep(RETRY_BACKOFF ** attempt)
                else:
                    raise SourceFetchError(
                        f"Failed to fetch {url}?lang={lang}: {e.response.status_code}",
                        {"endpoint": endpoint, "lang": lang, "status": e.response.status_code},
                    ) from e

            except httpx.RequestError as e:
                raise SourceFetchError(
                    f"Network error fetching {url}?lang={lang}: {e}",
                    {"endpoint": endpoint, "lang": lang},
                ) from e

        raise SourceFetchError(
            f"Failed to fetch {url}?lang={lang} after {MAX_RETRIES} retries: {last_error}",
            {"endpoint": endpoint, "lang": lang},
        )


async def refresh_api_cache(
    config: SyncConfig,
    endpoints: Iterable[str] = API_ENDPOINTS,
    client: httpx.AsyncClient | None = None,
) -> list[Path]:
    """Replace the cache with fresh payloads for every endpoint and language.

    Args:
        config: Cache location, API base URL, timeout and languages
        endpoints: Endpoint names to fetch
        client: Existing client to reuse; one is created and closed otherwise

    Returns:
        Paths of the written files, or an empty list when
        ``config.skip_api_refresh`` is set and the cache is left untouched

    Raises:
        SourceFetchError: If an endpoint still fails after retries
    """
    cache_dir: Path = config.cache_dir
    cache_dir.mkdir(parents=True, exist_ok=True)
    if config.skip_api_refresh:
        logger.info("Skipping API data refresh (cached data)")
        return []

    logger.info("Refreshing API cache...")
    shutil.rmtree(cache_dir, ignore_errors=True)
    for lang in config.languages:
        (cache_dir / lang).mkdir(parents=True, exist_ok=True)

    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=config.request_timeout)
    written: list[Path] = []
    try:
        fetcher = ApiFetcher(config.api_base_url, client)
        for endpoint in endpoints:
            logger.info(f"  Fetching {endpoint} data from API...")
            payloads = await asyncio.gather(*(fetcher.fetch(endpoint, lang) for lang in config.languages))
            for lang, payload in zip(config.languages, payloads):
                target = cache_path(cache_dir, endpoint, lang)
                target.write_bytes(payload)
                written.append(target)
    finally:
        if owns_client:
            await client.aclose()
    return written
