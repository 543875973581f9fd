"""Shared utilities: configuration, logging and date handling."""
