"""
FTP estimation from activity summaries.

Looks for explicit FTP tests first (20-min, 8-min, 60-min efforts), then
falls back to a best-effort power curve. Activities are mappings with
activity_date, title, duration_seconds, avg_power_watts and optionally
normalized_power_watts and intensity_factor.
"""

from __future__ import annotations

import logging
import math
import re
from datetime import date, timedelta
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Sequence, Tuple

import pandas as pd

from cyclo_analytics import constants as c
from cyclo_analytics.activity_rows import activity_time, most_recent_first, parse_timestamp, row_number
from cyclo_analytics.models import FTPEstimationMethod, FTPEstimationResult, WorkoutType
from cyclo_analytics.rounding import round_whole

logger = logging.getLogger(__name__)


class _Method(NamedTuple):
    factor: float
    confidence: float
    label: str


FTP_METHODS: Dict[FTPEstimationMethod, _Method] = {
    FTPEstimationMethod.TWENTY_MINUTE_TEST: _Method(0.95, 0.95, '20-minute test'),
    FTPEstimationMethod.EIGHT_MINUTE_TEST: _Method(0.90, 0.85, '8-minute test'),
    FTPEstimationMethod.SIXTY_MINUTE_POWER: _Method(1.0, 0.98, '60-minute power'),
    FTPEstimationMethod.CRITICAL_POWER: _Method(1.0, 0.80, 'power curve'),
}

# Duration windows (seconds) in which a test activity is read directly.
TEST_WINDOWS: Tuple[Tuple[FTPEstimationMethod, int, int], ...] = (
    (FTPEstimationMethod.TWENTY_MINUTE_TEST, 1140, 1260),
    (FTPEstimationMethod.EIGHT_MINUTE_TEST, 450, 540),
    (FTPEstimationMethod.SIXTY_MINUTE_POWER, 3540, 3660),
)

_TEST_NAME = re.compile(
    r'ftp.*test|test.*ftp|20.*min.*test|8.*min.*test|threshold.*test|test.*threshold|\bcp\b.*test|test.*\bcp\b',
    re.IGNORECASE,
)
_CLIMB_NAME = re.compile(r'salita|climb|ascent|monte|passo|\bcol(le)?\b', re.IGNORECASE)
_WORKOUT_NAME = re.compile(r'interval|workout|training|sweet.*spot|threshold|tempo', re.IGNORECASE)
_RACE_NAME = re.compile(r'race|gara|criterium|\bcrit\b|\btt\b|time.*trial|crono', re.IGNORECASE)


def classify_workout_type(activity: Mapping[str, Any]) -> WorkoutType:
    """Guess what kind of session an activity was from its title and power profile."""
    name = str(activity.get('title') or '')
    duration = row_number(activity, 'duration_seconds')
    avg_power = row_number(activity, 'avg_power_watts')
    np_watts = row_number(activity, 'normalized_power_watts')
    steadiness = np_watts / avg_power if np_watts and avg_power else None

    if _TEST_NAME.search(name):
        return WorkoutType.TEST
    # 8-25 min at near-constant power
    if 480 <= duration <= 1500 and steadiness is not None and steadiness > 0.95:
        return WorkoutType.TEST
    # Long steady climbs double as tests
    if _CLIMB_NAME.search(name) and 1140 <= duration <= 1800 and steadiness is not None and steadiness > 0.92:
        return WorkoutType.TEST
    if _WORKOUT_NAME.search(name):
        return WorkoutType.WORKOUT
    if _RACE_NAME.search(name):
        return WorkoutType.RACE
    intensity = row_number(activity, 'intensity_factor')
    if duration > 3600 and 0 < intensity < 0.75:
        return WorkoutType.ENDURANCE
    return WorkoutType.UNKNOWN


def _has_power(activity: Mapping[str, Any]) -> bool:
    return (
        activity_time(activity) is not None
        and row_number(activity, 'avg_power_watts') > 0
        and row_number(activity, 'duration_seconds') > c.FTP_MIN_DURATION_SECONDS
    )


def _effort_power(activity: Mapping[str, Any]) -> float:
    return row_number(activity, 'normalized_power_watts') or row_number(activity, 'avg_power_watts')


def _source_summary(activity: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        'id': activity.get('id'),
        'date': activity.get('activity_date'),
        'name': activity.get('title') or 'Untitled activity',
        'duration': activity.get('duration_seconds'),
        'avg_power': activity.get('avg_power_watts'),
        'normalized_power': activity.get('normalized_power_watts'),
    }


def _best_efforts(activities: Sequence[Mapping[str, Any]]) -> Dict[int, Tuple[float, Mapping[str, Any]]]:
    """
    Best power per target duration, from activities at least that long.

    Summaries carry no power stream, so an activity's NP (or average power)
    stands in for its best effort at every duration it covers.
    """
    bests: Dict[int, Tuple[float, Mapping[str, Any]]] = {}
    for activity in activities:
        power = _effort_power(activity)
        duration = row_number(activity, 'duration_seconds')
        for target in c.FTP_BEST_EFFORT_DURATIONS:
            if duration >= target and (target not in bests or power > bests[target][0]):
                bests[target] = (power, activity)
    return bests


def _critical_power_ftp(bests: Dict[int, Tuple[float, Mapping[str, Any]]]) -> Optional[int]:
    if len(bests) < c.FTP_CRITICAL_POWER_MIN_EFFORTS:
        return None
    if 3600 in bests:
        return round_whole(bests[3600][0])
    if 1200 in bests:
        return round_whole(bests[1200][0] * c.FTP_TWENTY_MINUTE_FACTOR)
    return None


def _from_test(activity: Mapping[str, Any], method: FTPEstimationMethod, period_days: int) -> FTPEstimationResult:
    info = FTP_METHODS[method]
    avg_power = row_number(activity, 'avg_power_watts')
    ftp = round_whole(avg_power * info.factor)
    return FTPEstimationResult(
        estimated_ftp=ftp,
        method=method,
        confidence=info.confidence,
        reasoning=f"{info.label} found (last {period_days} days): "
                  f"FTP {ftp}W = {info.factor:.0%} of {avg_power:g}W",
        is_reliable=True,
        period_days=period_days,
        source_activity=_source_summary(activity),
    )


def _estimate(activities: List[Mapping[str, Any]], period_days: int) -> Optional[FTPEstimationResult]:
    # Explicit tests win, most recent first
    for activity in activities:
        if classify_workout_type(activity) is not WorkoutType.TEST:
            continue
        duration = row_number(activity, 'duration_seconds')
        for method, low, high in TEST_WINDOWS:
            if low <= duration <= high:
                logger.debug("FTP from %s test activity %s", method.value, activity.get('id'))
                return _from_test(activity, method, period_days)

    bests = _best_efforts(activities)
    ftp = _critical_power_ftp(bests)
    if ftp is None:
        logger.debug("No FTP estimate from %s activities", len(activities))
        return None

    source = max((activity for _power, activity in bests.values()), key=activity_time)
    info = FTP_METHODS[FTPEstimationMethod.CRITICAL_POWER]
    return FTPEstimationResult(
        estimated_ftp=ftp,
        method=FTPEstimationMethod.CRITICAL_POWER,
        confidence=info.confidence,
        reasoning=f"Estimated from the {info.label} (last {period_days} days), "
                  f"based on {len(bests)} best efforts",
        is_reliable=len(bests) >= c.FTP_CRITICAL_POWER_MIN_EFFORTS,
        period_days=period_days,
        source_activity=_source_summary(source),
    )


def estimate_ftp_from_activities(
    activities: Sequence[Mapping[str, Any]],
    min_activities: int = 3,
    as_of: Optional[date] = None,
) -> Optional[FTPEstimationResult]:
    """
    Estimate FTP from recent activities with power.

    Tries 90 days back from `as_of` (today by default) and widens the window
    (180 days ... 6 years) until min_activities qualify. The widest window
    settles for a single activity. Returns None when nothing qualifies or no
    method applies.
    """
    ref = parse_timestamp(as_of) or pd.Timestamp.now()
    powered = most_recent_first([a for a in activities or [] if _has_power(a)])
    widest = c.FTP_LOOKBACK_PERIODS_DAYS[-1]

    for period in c.FTP_LOOKBACK_PERIODS_DAYS:
        cutoff = ref - timedelta(days=period)
        recent = [a for a in powered if activity_time(a) >= cutoff]
        if len(recent) >= min_activities or (period == widest and recent):
            return _estimate(recent, period)

    logger.debug("FTP estimation skipped: %s activities with power", len(powered))
    return None


def estimate_ftp_from_history(
    activities: Sequence[Mapping[str, Any]],
    min_activities: int = 2,
) -> Optional[FTPEstimationResult]:
    """Estimate FTP from every dated activity with power, regardless of age."""
    powered = most_recent_first([a for a in activities or [] if _has_power(a)])
    if len(powered) < min_activities or not powered:
        return None
    span = activity_time(powered[0]) - activity_time(powered[-1])
    days_covered = math.ceil(span.total_seconds() / 86400)
    logger.debug("FTP estimation over %s activities spanning %s days", len(powered), days_covered)
    return _estimate(powered, days_covered)


def should_suggest_ftp_update(
    estimation: FTPEstimationResult,
    current_ftp: Optional[float] = None,
    threshold: float = c.FTP_UPDATE_THRESHOLD,
) -> bool:
    """Whether a reliable estimate is new or differs from the stored FTP by at least `threshold`."""
    if not estimation.is_reliable:
        return False
    if not current_ftp or current_ftp <= 0:
        return True
    return abs(estimation.estimated_ftp - current_ftp) / current_ftp >= threshold
