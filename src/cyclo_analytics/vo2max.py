"""
VO2max Estimator.

Picks the most accurate applicable formula from an ordered fallback chain:
Storer et al. (1990) regression on peak power output when age and sex are
known, then an FTP-based linear estimate, then an explicit
"insufficient data" result.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, List, NamedTuple, Optional, Union

import pandas as pd

from cyclo_analytics import constants as c
from cyclo_analytics.models import (
    Sex,
    VO2maxCategory,
    VO2maxInput,
    VO2maxMethod,
    VO2maxQuality,
    VO2maxResult,
    parse_sex,
)
from cyclo_analytics.rounding import clamp, round_whole

logger = logging.getLogger(__name__)


def calculate_age(birth_date: Union[date, datetime, str, None], as_of: Optional[date] = None) -> Optional[int]:
    """Completed years between birth_date and as_of (today by default)."""
    if birth_date is None or birth_date == "":
        return None
    try:
        born = pd.Timestamp(birth_date).date()
    except (TypeError, ValueError):
        return None
    ref = as_of or date.today()
    if isinstance(ref, datetime):
        ref = ref.date()
    years = ref.year - born.year - ((ref.month, ref.day) < (born.month, born.day))
    return years if years >= 0 else None


def storer_vo2max(ppo: float, weight: float, age: float, sex: Sex) -> float:
    """
    Storer, Davis & Caiozzo (1990) cycle-ergometer regression, in ml/kg/min.

    Men:   (10.51*PPO + 6.35*W - 10.49*age + 519.3) / W
    Women: (9.39*PPO + 7.7*W - 5.88*age + 137.7) / W
    """
    if sex == Sex.MALE:
        absolute = 10.51 * ppo + 6.35 * weight - 10.49 * age + 519.3
    else:
        absolute = 9.39 * ppo + 7.7 * weight - 5.88 * age + 137.7
    return clamp(absolute / weight, c.VO2MAX_MIN, c.VO2MAX_MAX)


def ftp_vo2max(ftp: float, weight: float, age: Optional[float] = None, sex: Optional[Sex] = None) -> float:
    """FTP-based estimate with optional age decline and sex correction, in ml/kg/min."""
    age_factor = 1.0
    if age and age > c.AGE_DECLINE_START:
        age_factor = max(c.AGE_FACTOR_FLOOR, 1.0 - (age - c.AGE_DECLINE_START) * c.AGE_DECLINE_PER_YEAR)

    sex_factor = c.FEMALE_FTP_FACTOR if sex == Sex.FEMALE else 1.0

    vo2max = c.FTP_VO2MAX_BASE_FACTOR * (ftp / weight) * age_factor * sex_factor
    return clamp(vo2max, c.VO2MAX_MIN, c.VO2MAX_MAX)


def _has(value) -> bool:
    return value is not None and value > 0


class _Facts(NamedTuple):
    weight: Optional[float]
    ftp: Optional[float]
    age: Optional[int]
    sex: Optional[Sex]
    ppo_5min: Optional[float]
    ppo_1min: Optional[float]
    ppo_20min: Optional[float]

    @property
    def demographics(self) -> bool:
        return _has(self.weight) and _has(self.age) and self.sex is not None


def _storer_5min(f: _Facts) -> VO2maxResult:
    vo2max = storer_vo2max(f.ppo_5min, f.weight, f.age, f.sex)
    return VO2maxResult(
        vo2max=round_whole(vo2max),
        method=VO2maxMethod.STORER_PPO,
        confidence=c.CONFIDENCE_STORER_5MIN,
        reasoning=f"Storer formula with 5-min PPO ({f.ppo_5min:g}W), weight {f.weight:g}kg, "
                  f"age {f.age}, sex {f.sex.value}",
        power_used=f.ppo_5min,
    )


def _storer_1min(f: _Facts) -> VO2maxResult:
    estimated = f.ppo_1min * c.PPO_1MIN_TO_5MIN
    vo2max = storer_vo2max(estimated, f.weight, f.age, f.sex)
    return VO2maxResult(
        vo2max=round_whole(vo2max),
        method=VO2maxMethod.STORER_PPO,
        confidence=c.CONFIDENCE_STORER_1MIN,
        reasoning=f"Storer formula with 5-min PPO estimated as {round_whole(estimated)}W "
                  f"from 1-min PPO {f.ppo_1min:g}W, weight {f.weight:g}kg, age {f.age}, sex {f.sex.value}",
        power_used=f.ppo_1min,
        adaptive_message="Used 1-min power with 5-min estimate (-15%)",
    )


def _storer_20min(f: _Facts) -> VO2maxResult:
    estimated = f.ppo_20min * c.PPO_20MIN_TO_5MIN
    vo2max = storer_vo2max(estimated, f.weight, f.age, f.sex)
    return VO2maxResult(
        vo2max=round_whole(vo2max),
        method=VO2maxMethod.STORER_CP,
        confidence=c.CONFIDENCE_STORER_20MIN,
        reasoning=f"Storer formula with critical power: 5-min PPO estimated as {round_whole(estimated)}W "
                  f"from 20-min power {f.ppo_20min:g}W, weight {f.weight:g}kg, age {f.age}, sex {f.sex.value}",
        power_used=f.ppo_20min,
        adaptive_message="Used 20-min critical power with 5-min estimate (-5%)",
    )


def _ftp_advanced(f: _Facts) -> VO2maxResult:
    vo2max = ftp_vo2max(f.ftp, f.weight, f.age, f.sex)
    return VO2maxResult(
        vo2max=round_whole(vo2max),
        method=VO2maxMethod.FTP_ADVANCED,
        confidence=c.CONFIDENCE_FTP_ADVANCED,
        reasoning=f"FTP-based formula ({f.ftp:g}W, {f.weight:g}kg) with age ({f.age}) "
                  f"and sex ({f.sex.value}) correction",
        power_used=f.ftp,
        adaptive_message="Used FTP with age and sex correction factors",
    )


def _ftp_basic(f: _Facts) -> VO2maxResult:
    vo2max = ftp_vo2max(f.ftp, f.weight)
    return VO2maxResult(
        vo2max=round_whole(vo2max),
        method=VO2maxMethod.FTP_BASIC,
        confidence=c.CONFIDENCE_FTP_BASIC,
        reasoning=f"Simplified FTP formula ({f.ftp:g}W, {f.weight:g}kg) without age/sex correction",
        power_used=f.ftp,
        adaptive_message="Limited estimate: add age and sex for better accuracy",
    )


def _insufficient(_f: _Facts) -> VO2maxResult:
    return VO2maxResult(
        vo2max=0,
        method=VO2maxMethod.ESTIMATION,
        confidence=0.0,
        reasoning="Insufficient data: weight plus FTP or power personal bests required",
        adaptive_message="Add a weight measurement and activities with power data",
    )


class _Tier(NamedTuple):
    name: str
    applies: Callable[[_Facts], bool]
    estimate: Callable[[_Facts], VO2maxResult]


# First match wins; each tier needs more data than the one below it.
VO2MAX_TIERS: List[_Tier] = [
    _Tier('storer_5min', lambda f: _has(f.ppo_5min) and f.demographics, _storer_5min),
    _Tier('storer_1min', lambda f: _has(f.ppo_1min) and f.demographics, _storer_1min),
    _Tier('storer_20min', lambda f: _has(f.ppo_20min) and f.demographics, _storer_20min),
    _Tier('ftp_advanced', lambda f: _has(f.ftp) and f.demographics, _ftp_advanced),
    _Tier('ftp_basic', lambda f: _has(f.ftp) and _has(f.weight), _ftp_basic),
    _Tier('insufficient', lambda f: True, _insufficient),
]


def estimate_vo2max(data: VO2maxInput) -> VO2maxResult:
    """Estimate VO2max with the best formula the available data supports. Never raises."""
    age = data.age if data.age is not None else calculate_age(data.birth_date, data.as_of)
    facts = _Facts(
        weight=data.weight_kg,
        ftp=data.ftp_watts,
        age=age,
        sex=parse_sex(data.sex),
        ppo_5min=data.pb_power_300s_watts,
        ppo_1min=data.pb_power_60s_watts,
        ppo_20min=data.pb_power_1200s_watts,
    )
    for tier in VO2MAX_TIERS:
        if tier.applies(facts):
            result = tier.estimate(facts)
            logger.debug("VO2max tier %s -> %s (confidence %.2f)", tier.name, result.vo2max, result.confidence)
            return result
    return _insufficient(facts)


_QUALITY_LABELS = (
    (VO2maxCategory.POOR, '<20%', 'Below average'),
    (VO2maxCategory.FAIR, '20-40%', 'Average'),
    (VO2maxCategory.GOOD, '40-60%', 'Good'),
    (VO2maxCategory.VERY_GOOD, '60-80%', 'Very good'),
    (VO2maxCategory.EXCELLENT, '80-95%', 'Excellent'),
    (VO2maxCategory.SUPERIOR, '>95%', 'Elite'),
)


def _age_sex_thresholds(age: int, sex: Optional[Sex]):
    # Unknown sex uses the female table
    table = c.VO2MAX_AGE_THRESHOLDS['M' if sex == Sex.MALE else 'F']
    for upper, thresholds in table:
        if upper is None or age < upper:
            return thresholds
    return table[-1][1]


def evaluate_vo2max_quality(vo2max: float, age: Optional[int] = None, sex=None) -> VO2maxQuality:
    """Map a VO2max value to a qualitative band, age/sex specific when age is known."""
    sex = parse_sex(sex)
    if age:
        thresholds = _age_sex_thresholds(age, sex)
        suffix = ' for age/sex'
    else:
        thresholds = c.VO2MAX_GENERIC_THRESHOLDS
        suffix = ''

    index = sum(1 for limit in thresholds if vo2max >= limit)
    category, percentile, description = _QUALITY_LABELS[index]
    return VO2maxQuality(category=category, percentile=percentile, description=description + suffix)
