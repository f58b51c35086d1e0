"""
FIT file loader.

Turns the `record` messages of a recorded ride into Sample objects the
analytics core consumes.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

import fitparse

from cyclo_analytics.errors import ActivityFileError
from cyclo_analytics.models import Sample

logger = logging.getLogger(__name__)

SEMICIRCLE_TO_DEGREES = 180 / 2**31
MPS_TO_KPH = 3.6


def get_best_value(record, legacy_key, enhanced_key):
    """Get value from either enhanced or legacy key."""
    val = record.get(enhanced_key)
    if val is None:
        val = record.get(legacy_key)
    return val


def _to_degrees(value) -> Optional[float]:
    """FIT positions are always semicircles."""
    if value is None:
        return None
    return float(value) * SEMICIRCLE_TO_DEGREES


def _float_or_none(value) -> Optional[float]:
    try:
        return None if value is None else float(value)
    except (TypeError, ValueError):
        return None


def samples_from_records(records: Iterable[Dict[str, Any]]) -> List[Sample]:
    """
    Build samples from decoded record dicts (fitparse get_values() output).

    Timestamps become seconds since the first timestamped record; speed is
    converted from m/s to km/h. Records without a timestamp are skipped.
    """
    samples = []
    start_time = None
    for r in records:
        ts = r.get('timestamp')
        if ts is None:
            continue
        if start_time is None:
            start_time = ts

        speed = _float_or_none(get_best_value(r, 'speed', 'enhanced_speed'))
        samples.append(Sample(
            timestamp=(ts - start_time).total_seconds(),
            latitude=_to_degrees(r.get('position_lat')),
            longitude=_to_degrees(r.get('position_long')),
            elevation=_float_or_none(get_best_value(r, 'altitude', 'enhanced_altitude')),
            grade=_float_or_none(r.get('grade')),
            speed=speed * MPS_TO_KPH if speed is not None else None,
            power=_float_or_none(r.get('power')),
            heart_rate=_float_or_none(r.get('heart_rate')),
            cadence=_float_or_none(r.get('cadence')),
            distance=_float_or_none(r.get('distance')),
        ))
    return samples


def load_fit_samples(filename: str) -> List[Sample]:
    """
    Parse a FIT file into samples.

    Raises:
        ActivityFileError: the file is missing or not a valid FIT file
    """
    try:
        fitfile = fitparse.FitFile(filename)
        records = [record.get_values() for record in fitfile.get_messages("record")]
    except (OSError, fitparse.FitParseError) as e:
        logger.warning("Unable to read FIT file '%s': %s", filename, e)
        raise ActivityFileError(f"Error opening {filename}: {e}") from e

    samples = samples_from_records(records)
    logger.debug("Loaded %s samples from %s", len(samples), filename)
    return samples
