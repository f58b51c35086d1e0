"""Physiological constants, thresholds and zone bands shared across the analytics core."""

from __future__ import annotations

from typing import Dict, Optional, Tuple

# --- Segment metrics ---
MIN_SEGMENT_SAMPLES = 2
NP_WINDOW_SAMPLES = 30  # ~30 s at 1 Hz

# Output precision (decimal places) applied when building SegmentMetrics.
PRECISION: Dict[str, int] = {
    'elevation': 1,
    'grade': 1,
    'speed': 1,
    'vam': 0,
    'power': 0,
    'work_kj': 1,
    'heart_rate': 0,
    'cadence': 0,
    'variability_index': 2,
    'watts_per_kg': 2,
    'intensity_factor': 2,
    'tss': 1,
}

# --- VO2max ---
VO2MAX_MIN = 25.0  # beginner
VO2MAX_MAX = 85.0  # world-class

PPO_1MIN_TO_5MIN = 0.85
PPO_20MIN_TO_5MIN = 0.95

FTP_VO2MAX_BASE_FACTOR = 11.5  # ml/min per W/kg
AGE_DECLINE_START = 25
AGE_DECLINE_PER_YEAR = 0.005
AGE_FACTOR_FLOOR = 0.7
FEMALE_FTP_FACTOR = 0.88

CONFIDENCE_STORER_5MIN = 0.90
CONFIDENCE_STORER_1MIN = 0.80
CONFIDENCE_STORER_20MIN = 0.75
CONFIDENCE_FTP_ADVANCED = 0.70
CONFIDENCE_FTP_BASIC = 0.60

# Lower bounds of fair, good, very_good, excellent, superior.
VO2MAX_GENERIC_THRESHOLDS: Tuple[float, ...] = (35, 45, 55, 65, 75)

# (upper age bound exclusive, thresholds); the last band is open-ended.
VO2MAX_AGE_THRESHOLDS: Dict[str, Tuple[Tuple[Optional[int], Tuple[float, ...]], ...]] = {
    'M': (
        (30, (40, 48, 56, 64, 72)),
        (40, (38, 46, 54, 62, 70)),
        (50, (36, 44, 52, 60, 68)),
        (None, (34, 42, 50, 58, 66)),
    ),
    'F': (
        (30, (35, 42, 50, 58, 66)),
        (40, (33, 40, 48, 56, 64)),
        (50, (31, 38, 46, 54, 62)),
        (None, (29, 36, 44, 52, 60)),
    ),
}

# --- HR zone estimation ---
HR_PLAUSIBLE_MAX_LOW = 50
HR_PLAUSIBLE_MAX_HIGH = 220
HR_PLAUSIBLE_AVG_LOW = 40
HR_MIN_DURATION_SECONDS = 300
HR_MAX_ACTIVITIES = 50
HR_MAX_PERCENTILE_OFFSET = 0.05

THRESHOLD_AVG_HR_RATIO = 0.80
THRESHOLD_MIN_SECONDS = 600
THRESHOLD_MAX_SECONDS = 2400
THRESHOLD_BEST_EFFORTS = 3
LTHR_FALLBACK_RATIO = 0.85
LTHR_TO_HR_MAX = 0.90

HR_BASE_CONFIDENCE = 0.70
# (minimum qualifying activities, confidence), highest first.
HR_SAMPLE_CONFIDENCE: Tuple[Tuple[int, float], ...] = (
    (10, 0.85),
    (5, 0.75),
)
THRESHOLD_BONUS = 0.10
THRESHOLD_CONFIDENCE_CAP = 0.95
HR_MAX_TEST_BPM = 170
HR_MAX_TEST_BONUS = 0.05
HR_MAX_TEST_CONFIDENCE_CAP = 0.98
HR_RELIABLE_CONFIDENCE = 0.6
HR_UPDATE_THRESHOLD = 0.05

# --- Power bests ---
PB_DURATIONS_SECONDS: Tuple[int, ...] = (5, 15, 30, 60, 300, 600, 1200, 1800, 3600, 5400)

# --- Performance management chart ---
CTL_DAYS = 42
ATL_DAYS = 7

# --- FTP estimation ---
# Widening windows (days back from as_of); the last one accepts a single activity.
FTP_LOOKBACK_PERIODS_DAYS: Tuple[int, ...] = (90, 180, 365, 1095, 1460, 2190)
FTP_MIN_DURATION_SECONDS = 300
FTP_BEST_EFFORT_DURATIONS: Tuple[int, ...] = (300, 600, 1200, 1800, 3600)
FTP_CRITICAL_POWER_MIN_EFFORTS = 3
FTP_TWENTY_MINUTE_FACTOR = 0.95
FTP_UPDATE_THRESHOLD = 0.10

# --- Climb detection ---
CLIMB_MIN_SAMPLES = 10
CLIMB_LOOKAHEAD_SAMPLES = 20
CLIMB_START_MIN_GRADE = 0.8  # % over the lookahead window
CLIMB_START_MIN_GAIN = 3.0  # m over the lookahead window
CLIMB_MAX_FLAT_STREAK = 30
CLIMB_RESUME_GAP_SAMPLES = 10
CLIMB_MERGE_MAX_DROP = 30.0  # m

# Lower bounds of the climb score (average grade % x length m), hardest first.
CLIMB_CATEGORY_THRESHOLDS: Tuple[Tuple[float, str], ...] = (
    (80000, 'HC'),
    (64000, '1'),
    (32000, '2'),
    (16000, '3'),
    (8000, '4'),
)
