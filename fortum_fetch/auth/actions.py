"""UI actions run against a browser session.

Each action receives the session and the time left in the current phase, and
forwards to the matching BrowserSession primitive.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, TYPE_CHECKING

from ..exceptions import PhaseTimeoutError

if TYPE_CHECKING:
    from .browser import BrowserSession


class UIAction(ABC):
    """A single step in a browser phase."""

    @abstractmethod
    def run(self, session: "BrowserSession", timeout: float) -> Any:
        """Execute the action.

        Args:
            session: Browser session to act on
            timeout: Seconds left before the phase deadline

        Returns:
            Action result (only Evaluate returns a value)
        """


@dataclass(frozen=True)
class Navigate(UIAction):
    url: str

    def run(self, session, timeout):
        session.navigate(self.url, timeout)


@dataclass(frozen=True)
class WaitReady(UIAction):
    """Wait until an element matching the selector is in the DOM."""

    selector: str

    def run(self, session, timeout):
        session.wait_ready(self.selector, timeout)


@dataclass(frozen=True)
class SendKeys(UIAction):
    selector: str
    # Passwords go through here
    text: str = field(repr=False)

    def run(self, session, timeout):
        session.send_keys(self.selector, self.text, timeout)


@dataclass(frozen=True)
class Click(UIAction):
    selector: str

    def run(self, session, timeout):
        session.click(self.selector, timeout)


@dataclass(frozen=True)
class WaitNotPresent(UIAction):
    """Wait until no element matches the selector."""

    selector: str

    def run(self, session, timeout):
        session.wait_not_present(self.selector, timeout)


@dataclass(frozen=True)
class Sleep(UIAction):
    seconds: float

    def run(self, session, timeout):
        if self.seconds > timeout:
            session.sleep(timeout)
            raise PhaseTimeoutError(
                f"sleep of {self.seconds:.1f}s exceeds remaining phase time {timeout:.1f}s"
            )
        session.sleep(self.seconds)


@dataclass(frozen=True)
class Evaluate(UIAction):
    """Evaluate a JavaScript expression in the page and return its value."""

    script: str

    def run(self, session, timeout):
        return session.evaluate(self.script, timeout)
