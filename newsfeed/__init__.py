from .errors import (
    FetchError,
    InitializationError,
    NewsFeedError,
    NotInitializedError,
    PersistenceError,
)
from .extract import DEFAULT_SELECTORS, ListingSelectors, extract_records, parse_tags
from .models import NewsRecord
from .page_fetcher import PageFetcher, build_listing_url

__all__ = [
    "NewsFeedError",
    "InitializationError",
    "NotInitializedError",
    "FetchError",
    "PersistenceError",
    "ListingSelectors",
    "DEFAULT_SELECTORS",
    "extract_records",
    "parse_tags",
    "NewsRecord",
    "PageFetcher",
    "build_listing_url",
]
