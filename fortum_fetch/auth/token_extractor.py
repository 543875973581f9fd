"""Read the My Fortum access token from browser session storage."""

import json
import logging
import time
from typing import Callable, Optional

from ..exceptions import BrowserError, TokenTimeoutError
from ..utils.config import AuthSettings
from ..utils.logger import mask_secret
from .actions import Evaluate, WaitReady
from .browser import BrowserSession, BrowserSessionController


logger = logging.getLogger(__name__)


class TokenExtractor:
    """Polls sessionStorage until the access token shows up."""

    def __init__(
        self,
        settings: AuthSettings,
        controller: BrowserSessionController,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings
        self.controller = controller
        self._sleep = sleep

    @property
    def script(self) -> str:
        """JavaScript expression reading the token entry."""
        return f"sessionStorage.getItem({json.dumps(self.settings.token_storage_key)})"

    def extract_token(self, session: BrowserSession) -> str:
        """Poll session storage for the access token.

        Args:
            session: Authenticated browser session

        Returns:
            str: The access token

        Raises:
            TokenTimeoutError: If no token appears within the attempt budget.
                Wraps the error of the last attempt when that attempt failed.
        """
        attempts = self.settings.token_attempts
        last_error: Optional[BrowserError] = None

        for attempt in range(1, attempts + 1):
            try:
                value = self.controller.run_phase(
                    session,
                    self.settings.token_read_timeout,
                    [WaitReady("body"), Evaluate(self.script)],
                )
                last_error = None
            except BrowserError as e:
                logger.debug(f"  Token read attempt {attempt}/{attempts} failed: {e}")
                value = None
                last_error = e

            if isinstance(value, str) and value:
                logger.info(f"  ✓ Access token found after {attempt} attempt(s): {mask_secret(value)}")
                return value

            if attempt < attempts:
                self._sleep(self.settings.token_poll_interval)

        if last_error is not None:
            raise TokenTimeoutError("failed to get accessToken", cause=last_error) from last_error
        raise TokenTimeoutError("accessToken not found")
