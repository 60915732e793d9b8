"""Data source access: cached API payloads, refresh and lookup maps."""

from .cache import load_all, load_endpoint, load_language_dataset
from .fetcher import ApiFetcher, refresh_api_cache
from .models import BilingualDataset, LookupEntry, SourceEntity, SourceFeature, TransformationLookup

__all__ = [
    "load_all",
    "load_endpoint",
    "load_language_dataset",
    "ApiFetcher",
    "refresh_api_cache",
    "BilingualDataset",
    "LookupEntry",
    "SourceEntity",
    "SourceFeature",
    "TransformationLookup",
]
