"""Output formatting for consumption data."""

from .template import MeteringRow, MeteringTemplate, build_rows

__all__ = ['MeteringRow', 'MeteringTemplate', 'build_rows']
