"""Headless browser sessions and phase execution for the login flow."""

import logging
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional, Sequence

from playwright.sync_api import (
    sync_playwright,
    Browser,
    BrowserContext,
    Page,
    Playwright,
    Error as PlaywrightError,
    TimeoutError as PlaywrightTimeoutError,
)

from ..exceptions import BrowserActionError, BrowserTimeoutError, PhaseTimeoutError
from ..utils.config import AuthSettings
from .actions import UIAction


logger = logging.getLogger(__name__)


class BrowserSession(ABC):
    """Primitive operations of a browser page.

    Timeouts are in seconds. Implementations raise BrowserTimeoutError when a
    wait does not finish in time and BrowserActionError for any other failure.
    """

    @abstractmethod
    def navigate(self, url: str, timeout: float) -> None:
        pass

    @abstractmethod
    def wait_ready(self, selector: str, timeout: float) -> None:
        pass

    @abstractmethod
    def send_keys(self, selector: str, text: str, timeout: float) -> None:
        pass

    @abstractmethod
    def click(self, selector: str, timeout: float) -> None:
        pass

    @abstractmethod
    def wait_not_present(self, selector: str, timeout: float) -> None:
        pass

    @abstractmethod
    def sleep(self, seconds: float) -> None:
        pass

    @abstractmethod
    def evaluate(self, script: str, timeout: float) -> Any:
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the page, browser context and browser process."""


class PlaywrightBrowserSession(BrowserSession):
    """BrowserSession backed by a Playwright-controlled Chromium."""

    def __init__(self, playwright: Playwright, browser: Browser, context: BrowserContext, page: Page):
        self._playwright = playwright
        self._browser = browser
        self._context = context
        self.page = page

    @classmethod
    def launch(cls, headless: bool = True) -> "PlaywrightBrowserSession":
        """Start Chromium and open a fresh page.

        Args:
            headless: Run browser in headless mode

        Raises:
            BrowserActionError: If the browser cannot be started
        """
        logger.debug(f"Launching Chromium browser (headless={headless})...")
        playwright = sync_playwright().start()
        try:
            browser = playwright.chromium.launch(headless=headless, args=["--disable-gpu"])
            context = browser.new_context()
            page = context.new_page()
        except PlaywrightError as e:
            playwright.stop()
            raise BrowserActionError(f"failed to launch browser: {e}") from e
        return cls(playwright, browser, context, page)

    @contextmanager
    def _translate_errors(self, description: str) -> Iterator[None]:
        try:
            yield
        except PlaywrightTimeoutError as e:
            raise BrowserTimeoutError(f"{description} timed out") from e
        except PlaywrightError as e:
            raise BrowserActionError(f"{description} failed: {e.message}") from e

    def navigate(self, url, timeout):
        with self._translate_errors(f"navigate to {url}"):
            self.page.goto(url, wait_until="domcontentloaded", timeout=_ms(timeout))

    def wait_ready(self, selector, timeout):
        with self._translate_errors(f"wait for {selector}"):
            self.page.wait_for_selector(selector, state="attached", timeout=_ms(timeout))

    def send_keys(self, selector, text, timeout):
        with self._translate_errors(f"send keys to {selector}"):
            self.page.locator(selector).press_sequentially(text, timeout=_ms(timeout))

    def click(self, selector, timeout):
        with self._translate_errors(f"click {selector}"):
            self.page.click(selector, timeout=_ms(timeout))

    def wait_not_present(self, selector, timeout):
        with self._translate_errors(f"wait for {selector} to disappear"):
            self.page.wait_for_selector(selector, state="detached", timeout=_ms(timeout))

    def sleep(self, seconds):
        with self._translate_errors("sleep"):
            self.page.wait_for_timeout(_ms(seconds))

    def evaluate(self, script, timeout):
        # page.evaluate has no timeout of its own; wrapping the result in an
        # array keeps it truthy so wait_for_function resolves on first read
        with self._translate_errors("evaluate script"):
            handle = self.page.wait_for_function(f"() => [{script}]", timeout=_ms(timeout))
            try:
                return handle.json_value()[0]
            finally:
                handle.dispose()

    def close(self):
        logger.debug("Closing browser...")
        try:
            self._context.close()
            self._browser.close()
        except PlaywrightError as e:
            logger.warning(f"Error while closing browser: {e}")
        finally:
            self._playwright.stop()


def _ms(seconds: float) -> float:
    return max(0.0, seconds) * 1000


SessionFactory = Callable[[bool], BrowserSession]


class BrowserSessionController:
    """Opens browser sessions and runs timed phases of UI actions."""

    def __init__(
        self,
        settings: Optional[AuthSettings] = None,
        session_factory: Optional[SessionFactory] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize controller.

        Args:
            settings: Login flow settings (headless mode)
            session_factory: Callable creating a session for a headless flag
                (default: PlaywrightBrowserSession.launch)
            clock: Monotonic clock used for phase deadlines
        """
        self.settings = settings or AuthSettings()
        self.session_factory = session_factory or PlaywrightBrowserSession.launch
        self.clock = clock

    @contextmanager
    def open(self, headless: Optional[bool] = None) -> Iterator[BrowserSession]:
        """Open a browser session that is closed when the block exits.

        Args:
            headless: Override for settings.headless
        """
        if headless is None:
            headless = self.settings.headless
        logger.debug(f"Creating new browser session, headless {headless}")
        session = self.session_factory(headless)
        try:
            yield session
        finally:
            session.close()

    def run_phase(self, session: BrowserSession, timeout: float, actions: Sequence[UIAction]) -> Any:
        """Run actions in order within a single deadline.

        Actions already issued are not undone when a later one fails.

        Args:
            session: Session to act on
            timeout: Seconds allowed for the whole phase
            actions: Ordered UI actions

        Returns:
            Result of the last action

        Raises:
            PhaseTimeoutError: If the deadline passes before all actions finished
            BrowserError: If an action fails
        """
        deadline = self.clock() + timeout
        result = None
        for index, action in enumerate(actions):
            remaining = deadline - self.clock()
            if remaining <= 0:
                raise PhaseTimeoutError(
                    f"phase timed out after {timeout:.1f}s before step {index + 1}/{len(actions)} ({action!r})"
                )
            logger.debug(f"  step {index + 1}/{len(actions)}: {action!r}")
            result = action.run(session, remaining)
        if self.clock() > deadline:
            raise PhaseTimeoutError(f"phase timed out after {timeout:.1f}s in step {len(actions)}/{len(actions)}")
        return result
