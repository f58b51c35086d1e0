"""
Cyclo Analytics
Cycling performance analytics: segment metrics, climbs, VO2max and FTP estimation, HR and power zones.
"""

__version__ = "1.0.0"
__author__ = ""

from cyclo_analytics.climbs import detect_climbs
from cyclo_analytics.errors import AnalyticsError, SegmentTooShortError
from cyclo_analytics.ftp_estimation import estimate_ftp_from_activities, should_suggest_ftp_update
from cyclo_analytics.hr_zones import (
    analyze_hr_from_activities,
    should_suggest_hr_update,
    zones_from_hr_max,
    zones_from_lthr,
)
from cyclo_analytics.models import AthleteProfile, Sample, SegmentMetrics, VO2maxInput, VO2maxResult
from cyclo_analytics.power_zones import zones_from_ftp
from cyclo_analytics.segment_metrics import analyze_activity_segment, analyze_segment
from cyclo_analytics.vo2max import estimate_vo2max, evaluate_vo2max_quality

__all__ = [
    "AnalyticsError",
    "SegmentTooShortError",
    "AthleteProfile",
    "Sample",
    "SegmentMetrics",
    "VO2maxInput",
    "VO2maxResult",
    "analyze_segment",
    "analyze_activity_segment",
    "estimate_vo2max",
    "evaluate_vo2max_quality",
    "zones_from_hr_max",
    "zones_from_lthr",
    "zones_from_ftp",
    "analyze_hr_from_activities",
    "should_suggest_hr_update",
    "estimate_ftp_from_activities",
    "should_suggest_ftp_update",
    "detect_climbs",
]
