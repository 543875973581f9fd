"""Playwright-based authentication for My Fortum."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..exceptions import (
    BrowserError,
    ConfigError,
    FormInteractionError,
    LoginFailedError,
    NavigationError,
)
from ..utils.config import AuthSettings
from .actions import Click, Navigate, SendKeys, Sleep, WaitNotPresent, WaitReady
from .browser import BrowserSessionController
from .token_extractor import TokenExtractor


logger = logging.getLogger(__name__)

LOGIN_PATH = "/login?lang=en"


@dataclass(frozen=True)
class Credentials:
    """Credentials for a single authentication attempt."""

    username: str
    password: str = field(repr=False)
    login_url: str

    def __post_init__(self):
        if not self.username:
            raise ConfigError("user cannot be empty")
        if not self.password:
            raise ConfigError("password cannot be empty")
        if not self.login_url:
            raise ConfigError("url cannot be empty")

    @classmethod
    def from_values(
        cls,
        username: Optional[str],
        password: Optional[str],
        base_url: Optional[str],
    ) -> "Credentials":
        """Build credentials from user-supplied values.

        Args:
            username: My Fortum user
            password: Password for the user
            base_url: Portal base URL, e.g. https://web.fortum.fi

        Raises:
            ConfigError: If any value is missing or empty
        """
        login_url = base_url.rstrip("/") + LOGIN_PATH if base_url else ""
        return cls(username=username, password=password, login_url=login_url)


class AuthState(Enum):
    INIT = "init"
    NAVIGATED = "navigated"
    CREDENTIALS_ENTERED = "credentials_entered"
    SUBMITTED = "submitted"
    TOKEN_POLLING = "token_polling"
    SUCCESS = "success"
    FAILED = "failed"


class FortumAuthenticator:
    """Logs in to My Fortum with a headless browser and returns the access token."""

    # Form elements in My Fortum
    USERNAME_FIELD = '//input[@id="ttqusername"]'
    PASSWORD_FIELD = '//input[@id="user-password"]'
    SUBMIT_BUTTON = "a.btn--login"

    def __init__(
        self,
        settings: Optional[AuthSettings] = None,
        controller: Optional[BrowserSessionController] = None,
        token_extractor: Optional[TokenExtractor] = None,
    ):
        """Initialize authenticator.

        Args:
            settings: Login flow settings (timeouts, headless mode)
            controller: Browser session controller (default: Playwright backed)
            token_extractor: Token extractor (default: polls sessionStorage)
        """
        self.settings = settings or AuthSettings()
        self.controller = controller or BrowserSessionController(self.settings)
        self.token_extractor = token_extractor or TokenExtractor(self.settings, self.controller)

    def authenticate(self, credentials: Credentials) -> str:
        """Perform the login flow and read the access token.

        Args:
            credentials: Validated credentials

        Returns:
            str: Access token

        Raises:
            NavigationError: If the login page does not load
            FormInteractionError: If the credential fields cannot be filled
            LoginFailedError: If the login form does not go away after submit
            TokenTimeoutError: If the token never appears in session storage
        """
        state = AuthState.INIT
        timeout = self.settings.step_timeout

        try:
            with self.controller.open() as session:
                # Step 1: Open the login page
                logger.info(f"Step 1: Navigating to {credentials.login_url}")
                try:
                    self.controller.run_phase(session, timeout, [
                        Navigate(credentials.login_url),
                        WaitReady("body"),
                    ])
                except BrowserError as e:
                    raise NavigationError(f"could not open {credentials.login_url}", cause=e) from e
                state = self._transition(state, AuthState.NAVIGATED)

                # Step 2: Fill the login form
                # The page scripts attach to the inputs slowly, hence the settle delay
                logger.info(f"Step 2: Entering credentials for {credentials.username}")
                try:
                    self.controller.run_phase(session, timeout, [
                        Sleep(self.settings.settle_delay),
                        SendKeys(self.USERNAME_FIELD, credentials.username),
                        SendKeys(self.PASSWORD_FIELD, credentials.password),
                    ])
                except BrowserError as e:
                    raise FormInteractionError("could not fill the login form", cause=e) from e
                state = self._transition(state, AuthState.CREDENTIALS_ENTERED)

                # Step 3: Submit and wait for the form to go away
                # The disappearing username field is the only success signal the page gives
                logger.info("Step 3: Submitting login form")
                try:
                    self.controller.run_phase(session, timeout, [
                        WaitReady(self.SUBMIT_BUTTON),
                        Click(self.SUBMIT_BUTTON),
                        WaitNotPresent(self.USERNAME_FIELD),
                    ])
                except BrowserError as e:
                    raise LoginFailedError("login failed", cause=e) from e
                state = self._transition(state, AuthState.SUBMITTED)

                # Step 4: Read the access token
                logger.info("Step 4: Reading access token from session storage")
                state = self._transition(state, AuthState.TOKEN_POLLING)
                token = self.token_extractor.extract_token(session)
        except BrowserError as e:
            # Phase failures are already wrapped, so this is the browser failing to start
            self._transition(state, AuthState.FAILED)
            error = NavigationError("could not start browser", cause=e)
            logger.error(f"Authentication failed: {error}")
            raise error from e
        except Exception as e:
            self._transition(state, AuthState.FAILED)
            logger.error(f"Authentication failed: {e}")
            raise

        self._transition(state, AuthState.SUCCESS)
        logger.info("✓ Authentication completed successfully")
        return token

    @staticmethod
    def _transition(current: AuthState, new: AuthState) -> AuthState:
        logger.debug(f"  auth state {current.value} -> {new.value}")
        return new


def authenticate(
    user: Optional[str],
    password: Optional[str],
    base_url: Optional[str],
    settings: Optional[AuthSettings] = None,
) -> str:
    """Log in to My Fortum and return the access token.

    Raises:
        ConfigError: If a credential is missing (no browser is started)
        AuthError: If any login phase fails
    """
    credentials = Credentials.from_values(user, password, base_url)
    return FortumAuthenticator(settings).authenticate(credentials)
