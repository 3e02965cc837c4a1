from types import SimpleNamespace

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

import newsfeed.page_fetcher as page_fetcher

LISTING_HTML = """
<html><body>
<ul class="announce">
  <li class="announce__item">
    <span class="announce__date"> 17 октября 2026 </span>
    <span class="announce__time">12:30</span>
    <a class="announce__link" href="/ru/foreign_policy/news/2001/"> Briefing by the spokesperson </a>
    <div class="announce__meta-tags">Diplomacy, Europe, Bilateral</div>
  </li>
  <li class="announce__item">
    <span class="announce__date">17 октября 2026</span>
    <a class="announce__link" href="/ru/foreign_policy/news/2002/">No time here</a>
  </li>
  <li class="announce__item">
    <span class="announce__date">16 октября 2026</span>
    <span class="announce__time">18:05</span>
    <a class="announce__link" href="https://mid.ru/ru/foreign_policy/news/2003/">Telephone conversation</a>
  </li>
</ul>
</body></html>
"""

ANTIBOT_HTML = "<html><body><p>Data processing... Please, wait.</p></body></html>"


class FakePage:
    def __init__(
        self,
        html=LISTING_HTML,
        *,
        after_navigation_html=None,
        goto_error=None,
        selector_times_out=False,
        navigation_times_out=False,
        content_errors=(),
    ):
        self.html = html
        self.after_navigation_html = after_navigation_html
        self.goto_error = goto_error
        self.selector_times_out = selector_times_out
        self.navigation_times_out = navigation_times_out
        self.main_frame = object()
        self.url = ""
        self.goto_calls = []
        self.waited_for_navigation = False
        self.content_errors = list(content_errors)
        self.load_state_calls = []

    async def goto(self, url, wait_until=None, timeout=None):
        self.goto_calls.append({"url": url, "wait_until": wait_until, "timeout": timeout})
        if self.goto_error is not None:
            raise self.goto_error
        self.url = url

    async def wait_for_selector(self, selector, timeout=None):
        if self.selector_times_out:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")

    async def content(self):
        if self.content_errors:
            raise self.content_errors.pop(0)
        return self.html

    async def wait_for_event(self, event, predicate=None, timeout=None):
        self.waited_for_navigation = True
        if self.navigation_times_out:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {event}")
        if predicate is not None:
            assert predicate(self.main_frame)
        if self.after_navigation_html is not None:
            self.html = self.after_navigation_html
            self.selector_times_out = False

    async def wait_for_load_state(self, state=None, timeout=None):
        self.load_state_calls.append({"state": state, "timeout": timeout})


class FakeContext:
    def __init__(self, page):
        self.page = page
        self.closed = 0

    async def new_page(self):
        return self.page

    async def close(self):
        self.closed += 1


class FakeBrowser:
    def __init__(self, page, close_error=None):
        self.page = page
        self.close_error = close_error
        self.closed = 0
        self.context_options = None
        self.context = FakeContext(page)

    async def new_context(self, **kwargs):
        self.context_options = kwargs
        return self.context

    async def close(self):
        self.closed += 1
        if self.close_error is not None:
            raise self.close_error


class FakePlaywright:
    def __init__(self, browser, launch_error=None):
        self.browser = browser
        self.launch_error = launch_error
        self.launch_options = None
        self.stopped = 0
        self.chromium = SimpleNamespace(launch=self._launch)

    async def _launch(self, **kwargs):
        self.launch_options = kwargs
        if self.launch_error is not None:
            raise self.launch_error
        return self.browser

    async def stop(self):
        self.stopped += 1


class FakeStealth:
    applied = []

    async def apply_stealth_async(self, page):
        FakeStealth.applied.append(page)


@pytest.fixture
def fake_browser(monkeypatch):
    """Install a fake Playwright and return a factory configuring it."""

    def install(page=None, *, launch_error=None, close_error=None):
        page = page or FakePage()
        browser = FakeBrowser(page, close_error=close_error)
        pw = FakePlaywright(browser, launch_error=launch_error)

        class _Starter:
            async def start(self):
                return pw

        monkeypatch.setattr(page_fetcher, "async_playwright", lambda: _Starter())
        monkeypatch.setattr(page_fetcher, "Stealth", FakeStealth)
        monkeypatch.setattr(page_fetcher, "_get_chromium_binary", lambda: None)
        return pw

    return install


@pytest.fixture
def navigation_error():
    return PlaywrightError("net::ERR_NAME_NOT_RESOLVED")
