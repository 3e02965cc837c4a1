class NewsFeedError(Exception):
    """Base error for the news feed fetcher."""


class InitializationError(NewsFeedError):
    """Raised when the browser session cannot be acquired."""


class NotInitializedError(NewsFeedError):
    """Raised when a browser operation runs without a live session."""


class FetchError(NewsFeedError):
    """Raised when a listing page cannot be navigated to."""


class PersistenceError(NewsFeedError):
    """Raised when the records cannot be written to disk."""
