"""Fetch energy usage data from My Fortum."""

__version__ = "0.1.0"
