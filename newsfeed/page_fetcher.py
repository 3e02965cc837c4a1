import enum
import logging
import os
import shutil
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Sequence

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright_stealth import Stealth

from settings import get_setting

from .antibot import ANTIBOT_MARKER, is_antibot_interstitial
from .errors import FetchError, InitializationError, NotInitializedError, PersistenceError
from .extract import DEFAULT_SELECTORS, ListingSelectors, extract_records
from .models import NewsRecord
from .storage import save_json

logger = logging.getLogger(__name__)

LISTING_URL = "https://mid.ru/ru/foreign_policy/news/"
PAGE_PARAM = "PAGEN_1"
DEFAULT_FILENAME = "news_feed.json"

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
]
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/127.0.0.0 Safari/537.36"
)
ACCEPT = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,"
    "image/avif,image/webp,image/apng,*/*;q=0.8"
)
ACCEPT_LANGUAGE = "en-US,en;q=0.9"

NAVIGATION_TIMEOUT_MS = 60_000
SELECTOR_TIMEOUT_MS = 10_000
ANTIBOT_TIMEOUT_MS = 30_000


def _get_chromium_binary() -> Optional[str]:
    """Return a system Chromium path, or None to use Playwright's bundled build."""
    configured = os.getenv("CHROMIUM_EXECUTABLE") or get_setting("chromium_executable")
    if configured:
        if os.path.exists(configured):
            return configured
        logger.warning("Configured Chromium %s does not exist; ignoring it", configured)

    if not sys.platform.startswith("linux"):
        return None

    for name in ("chromium-browser", "chromium"):
        path = shutil.which(name)
        if path:
            return path
    return None


def build_listing_url(
    page_number: int = 1,
    listing_url: str = LISTING_URL,
    page_param: str = PAGE_PARAM,
) -> str:
    """Return the listing URL for a 1-based page number."""
    if isinstance(page_number, bool) or not isinstance(page_number, int):
        raise ValueError(f"page number must be an integer, got {page_number!r}")
    if page_number < 1:
        raise ValueError(f"page number must be >= 1, got {page_number}")
    if page_number == 1:
        return listing_url
    return f"{listing_url}?{page_param}={page_number}"


class FetcherState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    FETCHED = "fetched"
    PERSISTED = "persisted"
    CLOSED = "closed"


@dataclass
class BrowserSession:
    """Everything one run holds open in the browser."""

    playwright: Playwright
    browser: Browser
    context: BrowserContext
    page: Page


class PageFetcher:
    """Fetches one page of the news listing with a headless browser.

    Use it as an async context manager so the browser is released on every
    exit path::

        async with PageFetcher() as fetcher:
            records = await fetcher.fetch_listing_page(1)
            fetcher.persist(records)
    """

    def __init__(
        self,
        *,
        listing_url: Optional[str] = None,
        output_dir: Optional[str] = None,
        selectors: ListingSelectors = DEFAULT_SELECTORS,
        antibot_marker: str = ANTIBOT_MARKER,
        headless: Optional[bool] = None,
        stealth: Optional[bool] = None,
    ) -> None:
        self.listing_url = listing_url or get_setting("listing_url", LISTING_URL)
        self.page_param = get_setting("page_param", PAGE_PARAM)
        self.output_dir = Path(output_dir or get_setting("output_dir", "output"))
        self.selectors = selectors
        self.antibot_marker = antibot_marker
        self.headless = get_setting("headless", True) if headless is None else headless
        self.stealth = get_setting("stealth", True) if stealth is None else stealth
        self.user_agent = get_setting("user_agent", USER_AGENT)
        self.accept_language = get_setting("accept_language", ACCEPT_LANGUAGE)
        self.navigation_timeout = get_setting("navigation_timeout_ms", NAVIGATION_TIMEOUT_MS)
        self.selector_timeout = get_setting("selector_timeout_ms", SELECTOR_TIMEOUT_MS)
        self.antibot_timeout = get_setting("antibot_timeout_ms", ANTIBOT_TIMEOUT_MS)

        self.state = FetcherState.UNINITIALIZED
        self.listing_rendered: Optional[bool] = None
        self._session: Optional[BrowserSession] = None

    async def __aenter__(self) -> "PageFetcher":
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.shutdown()

    def _require_session(self) -> BrowserSession:
        if self._session is None:
            raise NotInitializedError("Browser not initialized")
        return self._session

    async def initialize(self) -> None:
        """Launch the browser and open a page with a spoofed identity."""
        if self.state is not FetcherState.UNINITIALIZED:
            raise InitializationError(f"Cannot initialize a fetcher that is {self.state.value}")

        playwright = None
        browser = None
        try:
            playwright = await async_playwright().start()
            launch_options = {"headless": self.headless, "args": LAUNCH_ARGS}
            binary = _get_chromium_binary()
            if binary:
                launch_options["executable_path"] = binary
                logger.info("Using Chromium binary at %s", binary)
            browser = await playwright.chromium.launch(**launch_options)
            context = await browser.new_context(
                user_agent=self.user_agent,
                extra_http_headers={
                    "Accept": ACCEPT,
                    "Accept-Language": self.accept_language,
                },
            )
            page = await context.new_page()
            if self.stealth:
                await Stealth().apply_stealth_async(page)
        except Exception as exc:
            logger.error("Failed to initialize browser: %s", exc)
            if browser is not None:
                await self._close_quietly(browser.close, "browser")
            if playwright is not None:
                await self._close_quietly(playwright.stop, "playwright")
            raise InitializationError(f"Failed to initialize browser: {exc}") from exc

        self._session = BrowserSession(playwright, browser, context, page)
        self.state = FetcherState.INITIALIZED
        logger.info("Browser initialized")

    async def fetch_listing_page(self, page_number: int = 1) -> List[NewsRecord]:
        """Navigate to one listing page and return its records in DOM order."""
        session = self._require_session()
        if self.state is not FetcherState.INITIALIZED:
            raise FetchError(f"Cannot fetch with a fetcher that is {self.state.value}")
        url = build_listing_url(page_number, self.listing_url, self.page_param)
        page = session.page

        logger.info("Fetching page %d: %s", page_number, url)
        try:
            await page.goto(url, wait_until="domcontentloaded", timeout=self.navigation_timeout)
        except PlaywrightError as exc:
            raise FetchError(f"Navigation to {url} failed: {exc}") from exc

        self.listing_rendered = await self._wait_for_listing(page)

        content = await self._read_content(page)
        if is_antibot_interstitial(content, self.antibot_marker):
            logger.info("Anti-bot protection detected. Waiting for page to load...")
            await self._wait_for_antibot(page)
            content = await self._read_content(page)

        records = extract_records(content, page.url or url, self.selectors)
        self.state = FetcherState.FETCHED

        if records:
            logger.info("Found %d news items on page %d", len(records), page_number)
        elif not self.listing_rendered:
            logger.warning(
                "Found 0 news items on page %d; the listing never rendered", page_number
            )
        else:
            logger.warning("Found 0 news items on page %d", page_number)
        return records

    async def _read_content(self, page: Page) -> str:
        """Return the rendered HTML, letting an in-flight navigation settle once."""
        try:
            return await page.content()
        except PlaywrightError as exc:
            if "navigating" not in str(exc):
                raise FetchError(f"Could not read page content: {exc}") from exc
            logger.info("Page is navigating; waiting before reading content")
        try:
            await page.wait_for_load_state("domcontentloaded", timeout=self.antibot_timeout)
            return await page.content()
        except PlaywrightError as exc:
            raise FetchError(f"Could not read page content: {exc}") from exc

    async def _wait_for_listing(self, page: Page) -> bool:
        try:
            await page.wait_for_selector(self.selectors.ready_selector, timeout=self.selector_timeout)
        except PlaywrightTimeoutError:
            logger.warning("Timeout waiting for %s", self.selectors.ready_selector)
            return False
        return True

    async def _wait_for_antibot(self, page: Page) -> None:
        # navigation and network idle share one budget
        deadline = time.monotonic() + self.antibot_timeout / 1000
        try:
            await page.wait_for_event(
                "framenavigated",
                predicate=lambda frame: frame == page.main_frame,
                timeout=self.antibot_timeout,
            )
            # a zero timeout disables the limit in Playwright
            remaining = max(1.0, (deadline - time.monotonic()) * 1000)
            await page.wait_for_load_state("networkidle", timeout=remaining)
        except PlaywrightTimeoutError:
            logger.warning("Timeout waiting for navigation past the anti-bot page")
            return
        except PlaywrightError as exc:
            raise FetchError(f"Waiting past the anti-bot page failed: {exc}") from exc
        self.listing_rendered = await self._wait_for_listing(page)

    def persist(self, records: Sequence[NewsRecord], filename: str = DEFAULT_FILENAME) -> Path:
        """Write ``records`` as JSON to ``<output_dir>/<filename>``.

        Needs no browser session, but a fetcher persists at most once and never
        after it has been closed.
        """
        if self.state in (FetcherState.PERSISTED, FetcherState.CLOSED):
            raise PersistenceError(f"Cannot persist with a fetcher that is {self.state.value}")
        path = save_json(self.output_dir / filename, records)
        self.state = FetcherState.PERSISTED
        return path

    async def shutdown(self) -> None:
        """Release the browser session. Safe to call more than once."""
        session, self._session = self._session, None
        self.state = FetcherState.CLOSED
        if session is None:
            return
        await self._close_quietly(session.context.close, "context")
        await self._close_quietly(session.browser.close, "browser")
        await self._close_quietly(session.playwright.stop, "playwright")
        logger.info("Browser closed")

    @staticmethod
    async def _close_quietly(close, what: str) -> None:
        try:
            await close()
        except Exception as e:
            logger.error(f"Error during {what} cleanup: {str(e)}")
