"""Heart-rate zones: band calculators, classification, and HRmax/LTHR estimation from history."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from cyclo_analytics import constants as c
from cyclo_analytics.activity_rows import activity_time, most_recent_first, row_number
from cyclo_analytics.models import HRZone, HRZoneEstimationResult, HRZoneMethod
from cyclo_analytics.rounding import round_half_away, round_whole

logger = logging.getLogger(__name__)

DEFAULT_MAX_HR = 185.0

HR_ZONE_ORDER: Tuple[str, ...] = ('Z1', 'Z2', 'Z3', 'Z4', 'Z5')

HR_ZONE_COLORS: Dict[str, str] = {
    'Z1': '#6b7280',  # Gray
    'Z2': '#10b981',  # Emerald
    'Z3': '#f59e0b',  # Amber
    'Z4': '#ef4444',  # Red
    'Z5': '#8b5cf6',  # Violet
}

# zone, name, description, min %, max %, training effect
HR_MAX_BANDS = (
    ('Z1', 'Active Recovery', 'Active recovery, circulation', 50, 60,
     'Recovery, circulation, fat burning'),
    ('Z2', 'Aerobic Base', 'Base aerobic endurance', 60, 70,
     'Improves aerobic capacity and metabolic efficiency'),
    ('Z3', 'Aerobic', 'Sustained aerobic pace', 70, 80,
     'Develops cardio-respiratory efficiency'),
    ('Z4', 'Lactate Threshold', 'Anaerobic threshold intensity', 80, 90,
     'Raises lactate tolerance and sustainable power'),
    ('Z5', 'VO2max', 'Maximal oxygen uptake', 90, 100,
     'Develops VO2max and anaerobic capacity'),
)

LTHR_BANDS = (
    ('Z1', 'Active Recovery', 'Active recovery, circulation', 65, 75,
     'Recovery, regeneration'),
    ('Z2', 'Aerobic Base', 'Aerobic zone, fat burning', 75, 85,
     'Aerobic base, metabolic efficiency'),
    ('Z3', 'Tempo', 'Middle-distance race pace', 85, 95,
     'Muscular endurance, aerobic strength'),
    ('Z4', 'Lactate Threshold', 'Anaerobic threshold, LTHR', 95, 105,
     'Raises lactate threshold and FTP'),
    ('Z5', 'VO2max', 'Maximal oxygen uptake', 105, None,
     'VO2max, anaerobic power'),
)


def normalize_max_hr(max_hr, default: float = DEFAULT_MAX_HR) -> float:
    """Return a valid max-HR value."""
    try:
        value = float(max_hr or 0)
    except (TypeError, ValueError):
        value = 0.0
    if value <= 0:
        return float(default)
    return value


def zones_from_hr_max(hr_max: float) -> List[HRZone]:
    """Five zones spanning 50-100% of HRmax."""
    zones = []
    for zone, name, description, low, high, effect in HR_MAX_BANDS:
        zones.append(HRZone(
            zone=zone,
            name=name,
            description=description,
            min_bpm=round_whole(hr_max * low / 100.0),
            max_bpm=round_whole(hr_max) if high == 100 else round_whole(hr_max * high / 100.0),
            min_percent=low,
            max_percent=high,
            color=HR_ZONE_COLORS[zone],
            training_effect=effect,
        ))
    return zones


def zones_from_lthr(lthr: float) -> List[HRZone]:
    """Five zones from 65% to 105%+ of LTHR; Z5 tops out at HRmax estimated as LTHR / 0.90."""
    estimated_hr_max = round_whole(lthr / c.LTHR_TO_HR_MAX)
    zones = []
    for zone, name, description, low, high, effect in LTHR_BANDS:
        if high is None:
            max_bpm = estimated_hr_max
            max_percent = round_whole(estimated_hr_max / lthr * 100.0)
        else:
            max_bpm = round_whole(lthr * high / 100.0)
            max_percent = high
        zones.append(HRZone(
            zone=zone,
            name=name,
            description=description,
            min_bpm=round_whole(lthr * low / 100.0),
            max_bpm=max_bpm,
            min_percent=low,
            max_percent=max_percent,
            color=HR_ZONE_COLORS[zone],
            training_effect=effect,
        ))
    return zones


def classify_hr_zone_by_ratio(ratio: float) -> str:
    """Classify by HR/max-HR ratio using the HRmax band boundaries."""
    try:
        ratio = float(ratio)
    except (TypeError, ValueError):
        ratio = 0.0
    if ratio < 0.60:
        return 'Z1'
    if ratio < 0.70:
        return 'Z2'
    if ratio < 0.80:
        return 'Z3'
    if ratio < 0.90:
        return 'Z4'
    return 'Z5'


def classify_hr_zone(hr_value, max_hr) -> str:
    """Classify a heart-rate value into one of 5 zones."""
    try:
        hr = float(hr_value or 0)
    except (TypeError, ValueError):
        hr = 0.0
    if hr <= 0:
        return 'Z1'
    return classify_hr_zone_by_ratio(hr / normalize_max_hr(max_hr))


def time_in_hr_zones(hr_stream, max_hr) -> Dict[str, float]:
    """
    Minutes spent in each zone, assuming one reading per second.

    Args:
        hr_stream: Heart rate readings; None entries are ignored
        max_hr: Maximum heart rate for the zone boundaries
    """
    zone_counts = {zone: 0 for zone in HR_ZONE_ORDER}
    for hr in hr_stream or []:
        if hr is None:
            continue
        zone_counts[classify_hr_zone(hr, max_hr)] += 1
    return {zone: zone_counts[zone] / 60.0 for zone in HR_ZONE_ORDER}


# --- Estimation from activity history ---

def _has_plausible_hr(activity: Mapping[str, Any]) -> bool:
    max_hr = row_number(activity, 'max_heart_rate_bpm')
    return (
        c.HR_PLAUSIBLE_MAX_LOW < max_hr < c.HR_PLAUSIBLE_MAX_HIGH
        and row_number(activity, 'avg_heart_rate_bpm') > c.HR_PLAUSIBLE_AVG_LOW
        and row_number(activity, 'duration_seconds') > c.HR_MIN_DURATION_SECONDS
    )


def _within_lookback(activities: List[Mapping[str, Any]], lookback_days: Optional[int]) -> List[Mapping[str, Any]]:
    if not lookback_days:
        return activities
    dated = [activity_time(a) for a in activities if activity_time(a) is not None]
    if not dated:
        return activities
    cutoff = max(dated) - timedelta(days=lookback_days)
    return [a for a in activities if activity_time(a) is None or activity_time(a) >= cutoff]


def _source_summary(activity: Mapping[str, Any], default_name: str) -> Dict[str, Any]:
    return {
        'id': activity.get('id'),
        'date': activity.get('activity_date'),
        'name': activity.get('title') or default_name,
        'max_hr': activity.get('max_heart_rate_bpm'),
        'avg_hr': activity.get('avg_heart_rate_bpm'),
        'duration': activity.get('duration_seconds'),
    }


def _sample_confidence(count: int) -> float:
    for minimum, confidence in c.HR_SAMPLE_CONFIDENCE:
        if count >= minimum:
            return confidence
    return c.HR_BASE_CONFIDENCE


def analyze_hr_from_activities(
    activities: Sequence[Mapping[str, Any]],
    min_activities: int = 2,
    lookback_days: Optional[int] = 365 * 3,
) -> Optional[HRZoneEstimationResult]:
    """
    Estimate HRmax and LTHR from activity summaries.

    Activities are mappings with activity_date, duration_seconds,
    avg_heart_rate_bpm and max_heart_rate_bpm (id and title optional).
    The lookback window is counted back from the newest dated activity.

    Returns None when fewer than min_activities have plausible HR data.
    """
    candidates = _within_lookback(list(activities or []), lookback_days)
    hr_activities = most_recent_first([a for a in candidates if _has_plausible_hr(a)])

    if len(hr_activities) < min_activities or not hr_activities:
        logger.debug("HR estimation skipped: %s qualifying activities", len(hr_activities))
        return None

    hr_activities = hr_activities[:c.HR_MAX_ACTIVITIES]
    count = len(hr_activities)

    # 95th percentile of per-activity max HR suppresses strap glitches
    max_values = sorted((row_number(a, 'max_heart_rate_bpm') for a in hr_activities), reverse=True)
    hr_max = max_values[int(np.floor(count * c.HR_MAX_PERCENTILE_OFFSET))]

    method = HRZoneMethod.ACTIVITY_ANALYSIS
    confidence = _sample_confidence(count)
    source_activity = None

    threshold_efforts = [
        a for a in hr_activities
        if row_number(a, 'avg_heart_rate_bpm') > hr_max * c.THRESHOLD_AVG_HR_RATIO
        and c.THRESHOLD_MIN_SECONDS <= row_number(a, 'duration_seconds') <= c.THRESHOLD_MAX_SECONDS
    ]

    if threshold_efforts:
        best = threshold_efforts[:c.THRESHOLD_BEST_EFFORTS]
        lthr = round_whole(float(np.mean([row_number(a, 'avg_heart_rate_bpm') for a in best])))
        method = HRZoneMethod.LACTATE_THRESHOLD
        confidence = min(confidence + c.THRESHOLD_BONUS, c.THRESHOLD_CONFIDENCE_CAP)
        reasoning = (
            f"LTHR estimated from {len(best)} threshold effort(s) "
            f"({round_whole(row_number(best[0], 'duration_seconds') / 60)} min)"
        )
        source_activity = _source_summary(best[0], 'Threshold test')
    else:
        lthr = round_whole(hr_max * c.LTHR_FALLBACK_RATIO)
        reasoning = f"LTHR estimated as 85% of HRmax ({hr_max:g} bpm)"

    if hr_max > c.HR_MAX_TEST_BPM:
        method = HRZoneMethod.HRMAX_TEST
        confidence = min(confidence + c.HR_MAX_TEST_BONUS, c.HR_MAX_TEST_CONFIDENCE_CAP)
        if source_activity is None:
            peak = next(a for a in hr_activities if row_number(a, 'max_heart_rate_bpm') == hr_max)
            source_activity = _source_summary(peak, 'HRmax test')

    quality = 'high' if count >= 10 else 'medium' if count >= 5 else 'limited'
    reasoning += f" (data quality: {quality}, {count} activities)"

    confidence = round_half_away(confidence, 2)
    logger.debug("HR estimation: HRmax=%s LTHR=%s method=%s confidence=%.2f",
                 hr_max, lthr, method.value, confidence)

    return HRZoneEstimationResult(
        estimated_hr_max=round_whole(hr_max),
        estimated_lthr=lthr,
        method=method,
        confidence=confidence,
        reasoning=reasoning,
        is_reliable=confidence > c.HR_RELIABLE_CONFIDENCE,
        activities_analyzed=count,
        source_activity=source_activity,
    )


def should_suggest_hr_update(
    estimation: HRZoneEstimationResult,
    current_hr_max: Optional[float] = None,
    current_lthr: Optional[float] = None,
    threshold: float = c.HR_UPDATE_THRESHOLD,
) -> bool:
    """Whether a reliable estimate is new or differs from stored values by at least `threshold`."""
    if not estimation.is_reliable:
        return False
    if not current_hr_max and not current_lthr:
        return True
    if current_hr_max:
        if abs(estimation.estimated_hr_max - current_hr_max) / current_hr_max >= threshold:
            return True
    if current_lthr and estimation.estimated_lthr:
        if abs(estimation.estimated_lthr - current_lthr) / current_lthr >= threshold:
            return True
    return False


def calculate_hr_stats(
    activities: Sequence[Mapping[str, Any]],
    days: int = 30,
    as_of: Optional[date] = None,
) -> Optional[Dict[str, Any]]:
    """Average/max/min heart rate over activities from the last `days` days."""
    ref = pd.Timestamp(as_of or datetime.now())
    cutoff = ref - timedelta(days=days)
    recent = [
        a for a in activities or []
        if activity_time(a) is not None and activity_time(a) >= cutoff
        and row_number(a, 'avg_heart_rate_bpm') > 0
    ]
    if not recent:
        return None

    avg_values = [row_number(a, 'avg_heart_rate_bpm') for a in recent]
    return {
        'avg_hr': round_whole(float(np.mean(avg_values))),
        'max_hr': round_whole(max(row_number(a, 'max_heart_rate_bpm') for a in recent)),
        'min_hr': round_whole(min(avg_values)),
        'activities_with_hr': len(recent),
        'total_activities': len(activities),
    }
