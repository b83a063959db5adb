"""
Utility helpers for docquery.
"""

from .time_utils import is_null_marker, to_datetime

__all__ = ['is_null_marker', 'to_datetime']
