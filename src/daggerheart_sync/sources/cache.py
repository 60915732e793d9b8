"""
Reading the local API cache.

The cache holds one file per language and endpoint at
``<cache_dir>/<lang>/<endpoint>.json`` with a ``{"data": [...]}`` envelope.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Iterable

from pydantic import ValidationError

from ..exceptions import SourceCacheError
from .models import BilingualDataset, SourceEntity

logger = logging.getLogger("daggerheart-sync")


def cache_path(cache_dir: Path, endpoint: str, lang: str) -> Path:
    return cache_dir / lang / f"{endpoint}.json"


def _read_envelope(path: Path) -> list[SourceEntity]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise SourceCacheError(
            f"API cache file is missing: {path}. Run daggerheart-sync-sources to refresh API data.",
            {"path": str(path)},
        ) from None
    except json.JSONDecodeError as e:
        raise SourceCacheError(f"API cache file is not valid JSON: {path}", {"path": str(path), "error": str(e)}) from e

    records = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(records, list):
        raise SourceCacheError(f"API cache file has no data list: {path}", {"path": str(path)})
    try:
        return [SourceEntity.model_validate(record) for record in records if isinstance(record, dict)]
    except ValidationError as e:
        raise SourceCacheError(f"Unexpected record shape in {path}", {"path": str(path), "error": str(e)}) from e


async def load_language_dataset(cache_dir: Path, endpoint: str, lang: str) -> list[SourceEntity]:
    """Load one endpoint in one language.

    Raises:
        SourceCacheError: If the file is missing or malformed
    """
    path = cache_path(cache_dir, endpoint, lang)
    entities = await asyncio.to_thread(_read_envelope, path)
    logger.debug(f"Loaded {len(entities)} {endpoint} records ({lang})")
    return entities


async def load_endpoint(cache_dir: Path, endpoint: str, languages: tuple[str, str] = ("ru", "en")) -> BilingualDataset:
    target_lang, source_lang = languages
    target, source = await asyncio.gather(
        load_language_dataset(cache_dir, endpoint, target_lang),
        load_language_dataset(cache_dir, endpoint, source_lang),
    )
    return BilingualDataset(endpoint=endpoint, target=target, source=source)


async def load_all(
    cache_dir: Path,
    endpoints: Iterable[str],
    languages: tuple[str, str] = ("ru", "en"),
) -> dict[str, BilingualDataset]:
    """Load every endpoint concurrently, keyed by endpoint name."""
    endpoints = list(endpoints)
    datasets = await asyncio.gather(*(load_endpoint(cache_dir, name, languages) for name in endpoints))
    return dict(zip(endpoints, datasets))
