"""
Climb detection.

Scans a track for sustained ascents, keeps the ones that are long, high
and steep enough, merges ascents split by a short false flat, and
categorises each one on the grade x length scale (HC, 1-4).
"""

from __future__ import annotations

import logging
from typing import List, NamedTuple, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from cyclo_analytics import constants as c
from cyclo_analytics.models import ClimbCategory, ClimbDetectionConfig, DetectedClimb, Sample
from cyclo_analytics.rounding import clamp, round_half_away, round_whole
from cyclo_analytics.segment_metrics import samples_frame

logger = logging.getLogger(__name__)

EARTH_RADIUS_M = 6371000.0

CATEGORY_LABELS = {
    ClimbCategory.HC: 'Hors Categorie',
    ClimbCategory.CAT_1: 'Category 1',
    ClimbCategory.CAT_2: 'Category 2',
    ClimbCategory.CAT_3: 'Category 3',
    ClimbCategory.CAT_4: 'Category 4',
    ClimbCategory.UNCATEGORIZED: 'Uncategorized',
}


class _Track(NamedTuple):
    frame: pd.DataFrame
    elevation: np.ndarray  # smoothed, m
    distance: np.ndarray  # cumulative, m
    grades: np.ndarray  # per step, %; grades[0] is 0


def haversine_m(lat1, lon1, lat2, lon2):
    """Great-circle distance in meters; works on scalars and numpy arrays."""
    p1 = np.radians(lat1)
    p2 = np.radians(lat2)
    dp = np.radians(np.subtract(lat2, lat1))
    dl = np.radians(np.subtract(lon2, lon1))
    a = np.sin(dp / 2) ** 2 + np.cos(p1) * np.cos(p2) * np.sin(dl / 2) ** 2
    return 2 * EARTH_RADIUS_M * np.arcsin(np.minimum(1.0, np.sqrt(a)))


def _grade(distance, rise) -> float:
    return rise / distance * 100 if distance > 0 else 0.0


def _smoothed_elevation(df: pd.DataFrame, window: int) -> np.ndarray:
    # Centered mean over window // 2 samples each side; gaps are skipped
    span = 2 * (max(1, window) // 2) + 1
    smooth = df['elevation'].rolling(span, center=True, min_periods=1).mean()
    return smooth.fillna(0.0).to_numpy()


def _cumulative_distance(df: pd.DataFrame) -> np.ndarray:
    """Step lengths from GPS where both ends have a fix, else from the distance field."""
    lat = df['latitude'].to_numpy()
    lon = df['longitude'].to_numpy()
    with np.errstate(invalid='ignore'):
        geo = haversine_m(lat[:-1], lon[:-1], lat[1:], lon[1:])
    recorded = np.diff(df['distance'].to_numpy())
    step = np.where(~np.isnan(geo), geo, np.where(~np.isnan(recorded), recorded, 0.0))
    # Odometer resets must not shorten the track
    step = np.clip(step, 0.0, None)
    return np.concatenate([[0.0], np.cumsum(step)])


def _build_track(samples: Sequence[Sample], config: ClimbDetectionConfig) -> _Track:
    df = samples_frame(samples)
    elevation = _smoothed_elevation(df, config.smoothing_window)
    distance = _cumulative_distance(df)
    steps = np.diff(distance)
    rises = np.diff(elevation)
    with np.errstate(divide='ignore', invalid='ignore'):
        step_grades = np.where(steps > 0, rises / steps * 100, 0.0)
    return _Track(df, elevation, distance, np.concatenate([[0.0], step_grades]))


def _find_start(track: _Track, first: int) -> Optional[int]:
    n = len(track.elevation)
    for j in range(first, n - c.CLIMB_MIN_SAMPLES):
        ahead = min(j + c.CLIMB_LOOKAHEAD_SAMPLES, n - 1)
        gain = track.elevation[ahead] - track.elevation[j]
        grade = _grade(track.distance[ahead] - track.distance[j], max(0.0, gain))
        if grade >= c.CLIMB_START_MIN_GRADE and gain >= c.CLIMB_START_MIN_GAIN:
            return j
    return None


def _follow(track: _Track, start: int) -> int:
    """Last index that still gains height before a descent or a long false flat."""
    last_climbing = start
    flat_streak = 0
    for j in range(start + 1, len(track.elevation)):
        rise = track.elevation[j] - track.elevation[j - 1]
        grade = _grade(track.distance[j] - track.distance[j - 1], rise)
        if grade > 0.5 and rise > 0:
            last_climbing = j
            flat_streak = 0
        elif grade < -2.0 or rise < -5:
            break
        elif abs(grade) <= 2.0 and abs(rise) <= 3:
            flat_streak += 1
            if flat_streak >= c.CLIMB_MAX_FLAT_STREAK:
                break
    return last_climbing


def _gain(track: _Track, start: int, end: int) -> float:
    return max(0.0, track.elevation[end] - track.elevation[start])


def _candidate_segments(track: _Track) -> List[Tuple[int, int]]:
    segments = []
    i = 0
    n = len(track.elevation)
    while i < n - c.CLIMB_MIN_SAMPLES:
        start = _find_start(track, i)
        if start is None:
            break
        end = _follow(track, start)
        length = track.distance[end] - track.distance[start]
        gain = _gain(track, start, end)
        if length >= 500 and gain >= 30 and _grade(length, gain) >= 1.0:
            segments.append((start, end))
        else:
            logger.debug("Discarding ascent %s-%s: %.0f m, +%.0f m", start, end, length, gain)
        i = end + c.CLIMB_RESUME_GAP_SAMPLES
    return segments


def _qualifies(track: _Track, start: int, end: int, config: ClimbDetectionConfig) -> bool:
    length = track.distance[end] - track.distance[start]
    gain = _gain(track, start, end)
    grade = _grade(length, gain)
    if (
        length >= config.min_distance
        and gain >= config.min_elevation_gain
        and grade >= config.min_average_grade * 0.8
    ):
        return True
    # Long gentle climbs still count
    long_climb = (
        length >= config.min_distance * 2
        and gain >= config.min_elevation_gain * 1.5
        and grade >= 1.5
    )
    very_long_climb = (
        length >= config.min_distance * 6
        and gain >= config.min_elevation_gain * 2
        and grade >= 1.0
    )
    return long_climb or very_long_climb


def _merge_nearby(track: _Track, segments: List[Tuple[int, int]]) -> List[Tuple[int, int]]:
    """Join consecutive climbs separated by a short gap that loses little height."""
    if len(segments) <= 1:
        return segments
    merged = []
    current = segments[0]
    for following in segments[1:]:
        gap_m = track.distance[following[0]] - track.distance[current[1]]
        index_gap = following[0] - current[1]
        similar = abs(_gain(track, *current) - _gain(track, *following)) < 50
        close = gap_m < 1000 or index_gap < 100 or (gap_m < 2000 and similar)
        drop = track.elevation[current[1]] - track.elevation[following[0]]
        if close and drop < c.CLIMB_MERGE_MAX_DROP:
            logger.debug("Merging climbs %s and %s", current, following)
            current = (current[0], following[1])
            continue
        merged.append(current)
        current = following
    merged.append(current)
    return merged


def categorize_climb(climb_score: float) -> ClimbCategory:
    for threshold, category in c.CLIMB_CATEGORY_THRESHOLDS:
        if climb_score >= threshold:
            return ClimbCategory(category)
    return ClimbCategory.UNCATEGORIZED


def difficulty_rating(climb_score: float, average_grade: float, elevation_gain: float) -> int:
    """1-10 rating: category base, bumped for very steep or very high climbs."""
    ratings = (10, 9, 7, 5, 3)
    rating = 1.0
    for (threshold, _category), base in zip(c.CLIMB_CATEGORY_THRESHOLDS, ratings):
        if climb_score >= threshold:
            rating = base
            break
    else:
        if climb_score >= 1500:
            rating = 2
    if average_grade > 15:
        rating += 2
    elif average_grade > 12:
        rating += 1
    if elevation_gain > 1500:
        rating += 1
    elif elevation_gain > 1000:
        rating += 0.5
    return int(clamp(round_whole(rating), 1, 10))


def _mean_max(series: pd.Series) -> Tuple[Optional[int], Optional[int]]:
    valid = series.dropna()
    if valid.empty:
        return None, None
    return round_whole(valid.mean()), round_whole(valid.max())


def _describe(track: _Track, start: int, end: int) -> DetectedClimb:
    length = float(track.distance[end] - track.distance[start])
    gain = _gain(track, start, end)
    rises = np.diff(track.elevation[start:end + 1])
    loss = float(-rises[rises < 0].sum())

    times = track.frame['timestamp']
    elapsed = times.iloc[end] - times.iloc[start]
    duration = float(elapsed) if pd.notna(elapsed) and elapsed > 0 else 0.0

    grades = track.grades[start:end + 1]
    average_grade = _grade(length, gain)
    score = average_grade * length
    hours = duration / 3600

    window = track.frame.iloc[start:end + 1]
    avg_power, max_power = _mean_max(window['power'])
    avg_hr, max_hr = _mean_max(window['heart_rate'])
    avg_cadence, _ = _mean_max(window['cadence'])

    return DetectedClimb(
        start_index=start,
        end_index=end,
        distance_meters=round_half_away(length, 1),
        elevation_gain=round_half_away(gain, 1),
        elevation_loss=round_half_away(loss, 1),
        duration_seconds=duration,
        average_grade=round_half_away(average_grade, 1),
        max_grade=round_half_away(float(grades.max()), 1),
        min_grade=round_half_away(float(grades.min()), 1),
        average_speed_kph=round_half_away(length / 1000 / hours, 1) if hours > 0 else 0.0,
        vam=round_whole(gain / hours) if hours > 0 else 0,
        climb_score=round_whole(score),
        category=categorize_climb(score),
        difficulty_rating=difficulty_rating(score, average_grade, gain),
        average_power=avg_power,
        max_power=max_power,
        average_heart_rate=avg_hr,
        max_heart_rate=max_hr,
        average_cadence=avg_cadence,
    )


def detect_climbs(samples: Sequence[Sample], config: Optional[ClimbDetectionConfig] = None) -> List[DetectedClimb]:
    """
    Find the climbs of a track, hardest first.

    Elevation is smoothed before anything else. An ascent starts where the
    next 20 samples gain at least 3 m at 0.8% or more, and ends at the last
    rising sample before a descent (-2% or -5 m in one step) or 30 flat
    samples. Tracks under 10 samples have no climbs.
    """
    config = config or ClimbDetectionConfig()
    if len(samples) < c.CLIMB_MIN_SAMPLES:
        return []

    track = _build_track(samples, config)
    candidates = [seg for seg in _candidate_segments(track) if _qualifies(track, *seg, config)]
    climbs = [_describe(track, start, end) for start, end in _merge_nearby(track, candidates)]
    logger.debug("Detected %s climbs in %s samples", len(climbs), len(samples))
    return sorted(climbs, key=lambda climb: climb.climb_score, reverse=True)


def climb_name(climb: DetectedClimb, activity_title: Optional[str] = None) -> str:
    name = f"Climb {climb.elevation_gain:.0f}m ({climb.average_grade:.1f}%)"
    return f"{name} - {activity_title}" if activity_title else name
