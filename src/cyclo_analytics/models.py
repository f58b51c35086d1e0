"""Value objects consumed and produced by the analytics core."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional


class Sex(str, Enum):
    MALE = "M"
    FEMALE = "F"


def parse_sex(value) -> Optional[Sex]:
    """Accept 'M'/'F' (any case), a Sex, or None."""
    if value is None or value == "":
        return None
    if isinstance(value, Sex):
        return value
    try:
        return Sex(str(value).strip().upper())
    except ValueError:
        return None


@dataclass(frozen=True)
class Sample:
    """One telemetry point of a track."""

    timestamp: float
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    elevation: Optional[float] = None
    grade: Optional[float] = None
    speed: Optional[float] = None  # km/h
    power: Optional[float] = None
    heart_rate: Optional[float] = None
    cadence: Optional[float] = None
    distance: Optional[float] = None  # cumulative meters


@dataclass(frozen=True)
class AthleteProfile:
    weight_kg: Optional[float] = None
    ftp_watts: Optional[float] = None
    birth_date: Optional[date] = None
    sex: Optional[Sex] = None
    effective_date: Optional[date] = None


@dataclass(frozen=True)
class SegmentMetrics:
    duration_seconds: float
    distance_meters: float
    elevation_gain: float
    elevation_loss: float
    average_grade: Optional[float] = None
    max_grade: Optional[float] = None
    average_speed_kph: Optional[float] = None
    max_speed_kph: Optional[float] = None
    vam: Optional[int] = None
    average_power: Optional[int] = None
    max_power: Optional[int] = None
    normalized_power: Optional[int] = None
    work_kj: Optional[float] = None
    variability_index: Optional[float] = None
    average_heart_rate: Optional[int] = None
    max_heart_rate: Optional[int] = None
    average_cadence: Optional[int] = None
    max_cadence: Optional[int] = None
    watts_per_kg: Optional[float] = None
    intensity_factor: Optional[float] = None
    tss: Optional[float] = None
    warning: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class VO2maxMethod(str, Enum):
    STORER_PPO = "storer_ppo"
    STORER_CP = "storer_cp"
    FTP_ADVANCED = "ftp_advanced"
    FTP_BASIC = "ftp_basic"
    ESTIMATION = "estimation"


@dataclass(frozen=True)
class VO2maxInput:
    weight_kg: Optional[float] = None
    ftp_watts: Optional[float] = None
    sex: Optional[Sex] = None
    birth_date: Optional[date] = None
    age: Optional[int] = None
    pb_power_300s_watts: Optional[float] = None
    pb_power_60s_watts: Optional[float] = None
    pb_power_1200s_watts: Optional[float] = None
    as_of: Optional[date] = None

    @classmethod
    def from_profile(
        cls,
        profile: Optional[AthleteProfile],
        power_bests: Iterable[Mapping[str, Any]] = (),
        as_of: Optional[date] = None,
    ) -> "VO2maxInput":
        """Combine a profile with the best PPO values found across activities."""
        best = {'p300s': None, 'p60s': None, 'p1200s': None}
        for bests in power_bests:
            for key in best:
                value = bests.get(key)
                if value and (best[key] is None or value > best[key]):
                    best[key] = value
        profile = profile or AthleteProfile()
        return cls(
            weight_kg=profile.weight_kg,
            ftp_watts=profile.ftp_watts,
            sex=profile.sex,
            birth_date=profile.birth_date,
            pb_power_300s_watts=best['p300s'],
            pb_power_60s_watts=best['p60s'],
            pb_power_1200s_watts=best['p1200s'],
            as_of=as_of,
        )


@dataclass(frozen=True)
class VO2maxResult:
    vo2max: int
    method: VO2maxMethod
    confidence: float
    reasoning: str
    power_used: Optional[float] = None
    adaptive_message: Optional[str] = None


class VO2maxCategory(str, Enum):
    POOR = "poor"
    FAIR = "fair"
    GOOD = "good"
    VERY_GOOD = "very_good"
    EXCELLENT = "excellent"
    SUPERIOR = "superior"


@dataclass(frozen=True)
class VO2maxQuality:
    category: VO2maxCategory
    percentile: str
    description: str


@dataclass(frozen=True)
class HRZone:
    zone: str
    name: str
    description: str
    min_bpm: int
    max_bpm: int
    min_percent: int
    max_percent: int
    color: str
    training_effect: str


@dataclass(frozen=True)
class PowerZone:
    zone: str
    name: str
    description: str
    min_watts: int
    max_watts: Optional[int]
    min_percent: int
    max_percent: Optional[int]
    color: str
    training_effect: str


class HRZoneMethod(str, Enum):
    HRMAX_TEST = "HRMAX_TEST"
    LACTATE_THRESHOLD = "LACTATE_THRESHOLD"
    ACTIVITY_ANALYSIS = "ACTIVITY_ANALYSIS"


@dataclass(frozen=True)
class HRZoneEstimationResult:
    estimated_hr_max: int
    estimated_lthr: Optional[int]
    method: HRZoneMethod
    confidence: float
    reasoning: str
    is_reliable: bool
    activities_analyzed: int = 0
    source_activity: Optional[Dict[str, Any]] = field(default=None, compare=False)


@dataclass(frozen=True)
class DailyPmcStats:
    date: str
    tss: float
    ctl: float
    atl: float
    tsb: float


class FTPEstimationMethod(str, Enum):
    TWENTY_MINUTE_TEST = "TWENTY_MINUTE_TEST"
    EIGHT_MINUTE_TEST = "EIGHT_MINUTE_TEST"
    SIXTY_MINUTE_POWER = "SIXTY_MINUTE_POWER"
    CRITICAL_POWER = "CRITICAL_POWER"


class WorkoutType(str, Enum):
    TEST = "test"
    WORKOUT = "workout"
    RACE = "race"
    ENDURANCE = "endurance"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class FTPEstimationResult:
    estimated_ftp: int
    method: FTPEstimationMethod
    confidence: float
    reasoning: str
    is_reliable: bool
    period_days: int
    source_activity: Optional[Dict[str, Any]] = field(default=None, compare=False)


class ClimbCategory(str, Enum):
    HC = "HC"
    CAT_1 = "1"
    CAT_2 = "2"
    CAT_3 = "3"
    CAT_4 = "4"
    UNCATEGORIZED = "uncategorized"


@dataclass(frozen=True)
class ClimbDetectionConfig:
    min_elevation_gain: float = 30.0  # m
    min_distance: float = 500.0  # m
    min_average_grade: float = 1.5  # %
    smoothing_window: int = 5  # samples


@dataclass(frozen=True)
class DetectedClimb:
    """A climb found in a track; indices are inclusive positions in the sample list."""

    start_index: int
    end_index: int
    distance_meters: float
    elevation_gain: float
    elevation_loss: float
    duration_seconds: float
    average_grade: float
    max_grade: float
    min_grade: float
    average_speed_kph: float
    vam: int
    climb_score: int
    category: ClimbCategory
    difficulty_rating: int
    average_power: Optional[int] = None
    max_power: Optional[int] = None
    average_heart_rate: Optional[int] = None
    max_heart_rate: Optional[int] = None
    average_cadence: Optional[int] = None
