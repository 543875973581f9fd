"""Browser-driven authentication for My Fortum."""

from .authenticator import Credentials, FortumAuthenticator, authenticate
from .browser import BrowserSession, BrowserSessionController, PlaywrightBrowserSession
from .token_extractor import TokenExtractor

__all__ = [
    'Credentials',
    'FortumAuthenticator',
    'authenticate',
    'BrowserSession',
    'BrowserSessionController',
    'PlaywrightBrowserSession',
    'TokenExtractor',
]
