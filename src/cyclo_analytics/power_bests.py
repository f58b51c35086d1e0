"""Mean-maximal power (personal bests) for the standard durations."""

from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence

import pandas as pd

from cyclo_analytics.constants import PB_DURATIONS_SECONDS
from cyclo_analytics.models import Sample
from cyclo_analytics.rounding import round_whole

logger = logging.getLogger(__name__)


def power_best_key(duration: int) -> str:
    return f"p{duration}s"


def calculate_power_bests(samples: Sequence[Sample]) -> Dict[str, Optional[int]]:
    """
    Best average power for each duration in PB_DURATIONS_SECONDS.

    Returns a dict with 'peak_power' and 'p5s' ... 'p5400s'. Windows are
    counted in samples (1 Hz assumed); durations longer than the stream are None.
    """
    bests: Dict[str, Optional[int]] = {'peak_power': None}
    bests.update({power_best_key(d): None for d in PB_DURATIONS_SECONDS})

    readings = [
        (s.timestamp, s.power) for s in samples or []
        if s.power is not None and s.power >= 0
    ]
    if not readings:
        return bests

    power = pd.DataFrame(readings, columns=['timestamp', 'power']).sort_values('timestamp')['power']
    power = power.reset_index(drop=True).astype(float)

    peak = power.max()
    bests['peak_power'] = round_whole(peak) if peak > 0 else None

    for duration in PB_DURATIONS_SECONDS:
        if len(power) < duration:
            logger.debug("Not enough samples (%s) for %ss power best", len(power), duration)
            continue
        best = power.rolling(duration).mean().max()
        if best > 0:
            bests[power_best_key(duration)] = round_whole(float(best))

    return bests
