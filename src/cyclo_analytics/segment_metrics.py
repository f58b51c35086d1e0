"""
Segment Metrics Engine.

Descriptive and power/HR-derived statistics for a contiguous slice of
telemetry samples (a climb, a sprint, a lap selected on the map).
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import date
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from cyclo_analytics.constants import MIN_SEGMENT_SAMPLES, NP_WINDOW_SAMPLES, PRECISION
from cyclo_analytics.errors import InvalidSegmentError, SegmentTooShortError
from cyclo_analytics.models import AthleteProfile, Sample, SegmentMetrics
from cyclo_analytics.rounding import round_half_away, round_whole

logger = logging.getLogger(__name__)

SAMPLE_COLUMNS = [
    'timestamp', 'latitude', 'longitude', 'elevation', 'grade',
    'speed', 'power', 'heart_rate', 'cadence', 'distance',
]


def select_segment(samples: Sequence[Sample], start_index: int, end_index: int) -> List[Sample]:
    """Return the inclusive slice [start_index, end_index] of a track."""
    if start_index < 0 or end_index >= len(samples) or start_index > end_index:
        raise InvalidSegmentError(
            f"invalid segment bounds {start_index}..{end_index} for {len(samples)} samples"
        )
    return list(samples[start_index:end_index + 1])


def samples_frame(samples: Sequence[Sample]) -> pd.DataFrame:
    df = pd.DataFrame([asdict(s) for s in samples], columns=SAMPLE_COLUMNS)
    # Object columns full of None become float NaN
    return df.apply(pd.to_numeric, errors='coerce')


def _mean_max(series: pd.Series) -> Tuple[Optional[float], Optional[float]]:
    valid = series.dropna()
    if valid.empty:
        return None, None
    return float(valid.mean()), float(valid.max())


def _valid_power(readings) -> pd.Series:
    power = pd.to_numeric(pd.Series(list(readings), dtype=object), errors='coerce').dropna()
    # Negative watts are sensor faults
    return power[power >= 0].reset_index(drop=True)


def normalized_power(power_readings) -> Optional[float]:
    """
    Normalized Power over a power stream.

    Uses a 30-sample rolling mean (1 Hz sampling assumed). With fewer than
    30 valid readings there is no full window and the simple average is
    returned instead.
    """
    power = _valid_power(power_readings)
    if power.empty:
        return None
    if len(power) < NP_WINDOW_SAMPLES:
        logger.debug("NP fallback to average power (%s samples)", len(power))
        return float(power.mean())

    rolling = power.rolling(NP_WINDOW_SAMPLES).mean().dropna()
    quartic_mean = float((rolling ** 4).mean())
    if not quartic_mean > 0:
        return None
    return float(np.power(quartic_mean, 0.25))


def _elevation_gain_loss(elevation: pd.Series) -> Tuple[float, float]:
    # diff() is NaN wherever either neighbour is missing, so those pairs drop out
    deltas = elevation.diff()
    gain = float(deltas[deltas > 0].sum())
    loss = float(-deltas[deltas < 0].sum())
    return gain, loss


def analyze_segment(
    samples: Sequence[Sample],
    profile: Optional[AthleteProfile] = None,
    warning: Optional[str] = None,
) -> SegmentMetrics:
    """
    Compute SegmentMetrics for an ordered sequence of samples.

    Args:
        samples: Segment samples, ordered by timestamp
        profile: Athlete context; FTP and weight unlock W/kg, IF and TSS
        warning: Advisory text to attach to the result

    Raises:
        SegmentTooShortError: fewer than two samples
    """
    if samples is None or len(samples) < MIN_SEGMENT_SAMPLES:
        raise SegmentTooShortError(
            f"segment too short for analysis (minimum {MIN_SEGMENT_SAMPLES} samples required)"
        )

    first, last = samples[0], samples[-1]
    duration = last.timestamp - first.timestamp
    start_distance = first.distance if first.distance is not None else 0.0
    end_distance = last.distance if last.distance is not None else start_distance
    distance = end_distance - start_distance

    df = samples_frame(samples)

    gain, loss = _elevation_gain_loss(df['elevation'])
    avg_grade, max_grade = _mean_max(df['grade'])
    avg_speed, max_speed = _mean_max(df['speed'])
    avg_hr, max_hr = _mean_max(df['heart_rate'])
    avg_cadence, max_cadence = _mean_max(df['cadence'])

    vam = gain / (duration / 3600.0) if gain > 0 and duration > 0 else None

    power = _valid_power(df['power'])
    avg_power, max_power = _mean_max(power)
    np_watts = normalized_power(power)
    work_kj = avg_power * duration / 1000.0 if avg_power is not None and duration > 0 else None
    vi = np_watts / avg_power if avg_power and np_watts is not None else None

    weight = profile.weight_kg if profile else None
    ftp = profile.ftp_watts if profile else None

    w_per_kg = avg_power / weight if weight and weight > 0 and avg_power is not None else None
    intensity = np_watts / ftp if ftp and ftp > 0 and np_watts is not None else None
    tss = None
    if intensity is not None and duration > 0:
        tss = (duration * np_watts * intensity) / (ftp * 3600.0) * 100.0

    return SegmentMetrics(
        duration_seconds=duration,
        distance_meters=distance,
        elevation_gain=round_half_away(gain, PRECISION['elevation']),
        elevation_loss=round_half_away(loss, PRECISION['elevation']),
        average_grade=round_half_away(avg_grade, PRECISION['grade']),
        max_grade=round_half_away(max_grade, PRECISION['grade']),
        average_speed_kph=round_half_away(avg_speed, PRECISION['speed']),
        max_speed_kph=round_half_away(max_speed, PRECISION['speed']),
        vam=round_whole(vam),
        average_power=round_whole(avg_power),
        max_power=round_whole(max_power),
        normalized_power=round_whole(np_watts),
        work_kj=round_half_away(work_kj, PRECISION['work_kj']),
        variability_index=round_half_away(vi, PRECISION['variability_index']),
        average_heart_rate=round_whole(avg_hr),
        max_heart_rate=round_whole(max_hr),
        average_cadence=round_whole(avg_cadence),
        max_cadence=round_whole(max_cadence),
        watts_per_kg=round_half_away(w_per_kg, PRECISION['watts_per_kg']),
        intensity_factor=round_half_away(intensity, PRECISION['intensity_factor']),
        tss=round_half_away(tss, PRECISION['tss']),
        warning=warning,
    )


def analyze_activity_segment(
    samples: Sequence[Sample],
    profile_lookup=None,
    coach_id: Optional[str] = None,
    athlete_id: Optional[str] = None,
    activity_date: Optional[date] = None,
) -> SegmentMetrics:
    """
    Analyze a segment using the athlete profile effective on the activity date.

    `profile_lookup` is anything with get_profile_as_of(athlete_id, as_of, coach_id=None),
    e.g. db.ProfileStore. When coach, athlete and date are all known but no
    FTP/weight entry exists, metrics are still returned with a warning.
    """
    if samples is None or len(samples) < MIN_SEGMENT_SAMPLES:
        raise SegmentTooShortError(
            f"segment too short for analysis (minimum {MIN_SEGMENT_SAMPLES} samples required)"
        )

    profile = None
    warning = None
    if profile_lookup is not None and coach_id and athlete_id and activity_date:
        profile = profile_lookup.get_profile_as_of(athlete_id, activity_date, coach_id=coach_id)
        if profile is None or (profile.ftp_watts is None and profile.weight_kg is None):
            warning = (
                f"No FTP/weight profile found for athlete {athlete_id} "
                f"on or before {activity_date}; athlete-dependent metrics unavailable"
            )
            logger.warning("%s", warning)

    return analyze_segment(samples, profile, warning=warning)
