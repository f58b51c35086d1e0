"""Readers for activity summary rows (plain mappings from the activity store)."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence

import pandas as pd


def parse_timestamp(value) -> Optional[pd.Timestamp]:
    """
    Parse a date/datetime value into a timezone-naive Timestamp.

    Aware values keep their wall-clock time. Empty or unparseable values give None.
    """
    if value is None or value == '':
        return None
    try:
        ts = pd.Timestamp(value)
    except (TypeError, ValueError):
        return None
    if pd.isna(ts):
        return None
    return ts.tz_localize(None) if ts.tzinfo is not None else ts


def activity_time(activity: Mapping[str, Any]) -> Optional[pd.Timestamp]:
    return parse_timestamp(activity.get('activity_date'))


def row_number(activity: Mapping[str, Any], key: str) -> float:
    """Numeric field of a row; missing or non-numeric values read as 0."""
    try:
        return float(activity.get(key) or 0)
    except (TypeError, ValueError):
        return 0.0


def most_recent_first(activities: Sequence[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
    # Undated rows sort last
    return sorted(
        activities,
        key=lambda a: (activity_time(a) is not None, activity_time(a) or pd.Timestamp.min),
        reverse=True,
    )
