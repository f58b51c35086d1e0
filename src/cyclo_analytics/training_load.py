"""Performance management chart: CTL, ATL and TSB from daily TSS."""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Sequence

import pandas as pd

from cyclo_analytics.activity_rows import activity_time, row_number
from cyclo_analytics.constants import ATL_DAYS, CTL_DAYS
from cyclo_analytics.models import DailyPmcStats
from cyclo_analytics.rounding import round_half_away

logger = logging.getLogger(__name__)

CTL_K = 2 / (CTL_DAYS + 1)
ATL_K = 2 / (ATL_DAYS + 1)


def calculate_pmc(
    activities: Sequence[Mapping[str, Any]],
    initial_ctl: float = 0.0,
    initial_atl: float = 0.0,
) -> List[DailyPmcStats]:
    """
    Daily fitness (CTL), fatigue (ATL) and form (TSB = CTL - ATL).

    Activities are mappings with 'activity_date' and 'tss'. Every calendar
    day from the first to the last activity gets a row; rest days have TSS 0.
    Rows whose date is missing or unparseable are skipped.
    TSB uses the same day's updated CTL and ATL.
    """
    rows = []
    for a in activities or []:
        day = activity_time(a)
        if day is None:
            logger.debug("Skipping activity %s without a usable date", a.get('id'))
            continue
        rows.append((day.normalize(), row_number(a, 'tss')))
    if not rows:
        return []

    frame = pd.DataFrame(rows, columns=['date', 'tss'])
    daily = frame.groupby('date')['tss'].sum()
    daily = daily.reindex(pd.date_range(daily.index.min(), daily.index.max(), freq='D'), fill_value=0.0)

    ctl, atl = float(initial_ctl), float(initial_atl)
    stats = []
    for day, tss in daily.items():
        ctl += (tss - ctl) * CTL_K
        atl += (tss - atl) * ATL_K
        stats.append(DailyPmcStats(
            date=day.strftime('%Y-%m-%d'),
            tss=float(tss),
            ctl=round_half_away(ctl, 1),
            atl=round_half_away(atl, 1),
            tsb=round_half_away(ctl - atl, 1),
        ))
    return stats
