"""Tests for the Playwright-backed browser session."""
from unittest.mock import Mock, patch

import pytest
from playwright.sync_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeoutError

from fortum_fetch.auth.browser import PlaywrightBrowserSession
from fortum_fetch.exceptions import BrowserActionError, BrowserTimeoutError


@pytest.fixture
def playwright():
    """Mock Playwright driver as returned by sync_playwright().start()."""
    driver = Mock()
    with patch("fortum_fetch.auth.browser.sync_playwright") as sync_playwright:
        sync_playwright.return_value.start.return_value = driver
        yield driver


@pytest.fixture
def page():
    return Mock()


@pytest.fixture
def session(page):
    return PlaywrightBrowserSession(Mock(), Mock(), Mock(), page)


class TestLaunch:
    """Test suite for PlaywrightBrowserSession.launch."""

    def test_launches_chromium(self, playwright):
        """Test Chromium is started with the headless flag and GPU disabled."""
        browser = playwright.chromium.launch.return_value
        page = browser.new_context.return_value.new_page.return_value

        session = PlaywrightBrowserSession.launch(headless=False)

        playwright.chromium.launch.assert_called_once_with(headless=False, args=["--disable-gpu"])
        assert session.page is page
        playwright.stop.assert_not_called()

    def test_launch_failure_stops_playwright(self, playwright):
        """Test a browser that cannot start raises BrowserActionError and stops the driver."""
        playwright.chromium.launch.side_effect = PlaywrightError("Executable doesn't exist")

        with pytest.raises(BrowserActionError) as exc_info:
            PlaywrightBrowserSession.launch()

        assert "failed to launch browser" in str(exc_info.value)
        playwright.stop.assert_called_once()

    def test_new_page_failure_stops_playwright(self, playwright):
        """Test a failure after the browser started still stops the driver."""
        browser = playwright.chromium.launch.return_value
        browser.new_context.return_value.new_page.side_effect = PlaywrightError("Target closed")

        with pytest.raises(BrowserActionError):
            PlaywrightBrowserSession.launch()

        playwright.stop.assert_called_once()


class TestActions:
    """Test suite for the primitive page operations."""

    def test_timeouts_converted_to_milliseconds(self, session, page):
        session.wait_ready("body", 2.5)

        page.wait_for_selector.assert_called_once_with("body", state="attached", timeout=2500)

    def test_navigate(self, session, page):
        session.navigate("https://example.test/login?lang=en", 10)

        page.goto.assert_called_once_with(
            "https://example.test/login?lang=en", wait_until="domcontentloaded", timeout=10000
        )

    def test_wait_not_present(self, session, page):
        session.wait_not_present("#user", 1)

        page.wait_for_selector.assert_called_once_with("#user", state="detached", timeout=1000)

    def test_send_keys(self, session, page):
        session.send_keys("#user", "alice", 1)

        page.locator.assert_called_once_with("#user")
        page.locator.return_value.press_sequentially.assert_called_once_with("alice", timeout=1000)

    def test_playwright_timeout_translated(self, session, page):
        """Test Playwright timeouts become BrowserTimeoutError."""
        page.wait_for_selector.side_effect = PlaywrightTimeoutError("Timeout 1000ms exceeded")

        with pytest.raises(BrowserTimeoutError):
            session.wait_ready("body", 1)

    def test_playwright_error_translated(self, session, page):
        """Test other Playwright errors become BrowserActionError."""
        page.click.side_effect = PlaywrightError("Element is not attached to the DOM")

        with pytest.raises(BrowserActionError) as exc_info:
            session.click("a.btn--login", 1)

        assert "Element is not attached" in str(exc_info.value)
        assert not isinstance(exc_info.value, BrowserTimeoutError)


class TestEvaluate:
    """Test suite for bounded script evaluation."""

    def test_returns_script_value(self, session, page):
        """Test the expression value is read through a bounded wait."""
        handle = page.wait_for_function.return_value
        handle.json_value.return_value = ["tok-123"]

        result = session.evaluate('sessionStorage.getItem("accessToken")', 1.5)

        assert result == "tok-123"
        page.wait_for_function.assert_called_once_with(
            '() => [sessionStorage.getItem("accessToken")]', timeout=1500
        )
        handle.dispose.assert_called_once()

    def test_null_value(self, session, page):
        """Test a null expression value comes back as None."""
        page.wait_for_function.return_value.json_value.return_value = [None]

        assert session.evaluate('sessionStorage.getItem("accessToken")', 1) is None

    def test_evaluation_timeout(self, session, page):
        """Test a page that never answers raises BrowserTimeoutError."""
        page.wait_for_function.side_effect = PlaywrightTimeoutError("Timeout 1000ms exceeded")

        with pytest.raises(BrowserTimeoutError):
            session.evaluate("1 + 1", 1)


class TestClose:
    """Test suite for releasing browser resources."""

    def test_close_releases_everything(self):
        playwright, browser, context = Mock(), Mock(), Mock()
        session = PlaywrightBrowserSession(playwright, browser, context, Mock())

        session.close()

        context.close.assert_called_once()
        browser.close.assert_called_once()
        playwright.stop.assert_called_once()

    def test_close_error_still_stops_playwright(self):
        """Test the driver is stopped even when closing the context fails."""
        playwright, browser, context = Mock(), Mock(), Mock()
        context.close.side_effect = PlaywrightError("Target page, context or browser has been closed")
        session = PlaywrightBrowserSession(playwright, browser, context, Mock())

        session.close()

        playwright.stop.assert_called_once()
