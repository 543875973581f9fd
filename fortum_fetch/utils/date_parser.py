"""Centralized date parsing utilities."""

from datetime import datetime, timezone
from typing import Optional
import logging

logger = logging.getLogger(__name__)

# Timestamp layout used by the consumption API (no zone, UTC)
API_TIME_FORMAT = '%Y-%m-%dT%H:%M:%S'


def parse_date_string(date_str: str) -> Optional[datetime]:
    """Parse date string in various formats.

    Args:
        date_str: Date string (MM/DD/YYYY, YYYY-MM-DD, ISO format, etc.)

    Returns:
        datetime object or None if parsing fails
    """
    if not date_str:
        return None

    try:
        # Try MM/DD/YYYY format first
        if '/' in date_str and len(date_str.split('/')) == 3:
            return datetime.strptime(date_str, '%m/%d/%Y')
        # Try ISO format
        elif 'T' in date_str:
            return datetime.fromisoformat(date_str.replace('Z', '+00:00'))
        # Try YYYY-MM-DD
        else:
            return datetime.strptime(date_str[:10], '%Y-%m-%d')
    except (ValueError, AttributeError) as e:
        logger.debug(f"Failed to parse date string '{date_str}': {e}")
        return None


def parse_api_time(value: Optional[str]) -> Optional[datetime]:
    """Parse a consumption timestamp as returned by the API.

    The API sends local-less timestamps like "2024-01-31T23:00:00"; they are
    interpreted as UTC. Empty and "null" values yield None.

    Raises:
        ValueError: If the value is not a string in the API layout
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"expected a timestamp string, got {type(value).__name__}")
    value = value.strip().strip('"')
    if value == "" or value == "null":
        return None
    return datetime.strptime(value, API_TIME_FORMAT).replace(tzinfo=timezone.utc)


def format_rfc3339(value: datetime) -> str:
    """Format an aware datetime as RFC 3339 (Z for UTC)."""
    text = value.isoformat(timespec='seconds')
    if text.endswith('+00:00'):
        text = text[:-6] + 'Z'
    return text
