"""Seven-zone power model (Coggan) derived from FTP."""

from __future__ import annotations

from typing import List, Optional

from cyclo_analytics.models import PowerZone
from cyclo_analytics.rounding import round_whole

# zone, name, min %, max % (None = open), color, training effect
POWER_ZONE_BANDS = (
    ('Z1', 'Active Recovery', 0, 55, '#6b7280', 'Recovery between hard days'),
    ('Z2', 'Endurance', 56, 75, '#3b82f6', 'Aerobic base, fat oxidation'),
    ('Z3', 'Tempo', 76, 90, '#10b981', 'Muscular endurance, glycogen storage'),
    ('Z4', 'Lactate Threshold', 91, 105, '#f59e0b', 'Raises FTP and lactate clearance'),
    ('Z5', 'VO2 Max', 106, 120, '#ef4444', 'Maximal aerobic power'),
    ('Z6', 'Anaerobic Capacity', 121, 150, '#8b5cf6', 'Short, hard efforts above VO2max'),
    ('Z7', 'Neuromuscular Power', 151, None, '#ec4899', 'Sprints and peak power'),
)


def zones_from_ftp(ftp: float) -> List[PowerZone]:
    """Power zones as watt ranges of FTP; Z7 has no upper bound."""
    zones = []
    for zone, name, low, high, color, effect in POWER_ZONE_BANDS:
        max_watts: Optional[int] = None if high is None else round_whole(ftp * high / 100.0)
        zones.append(PowerZone(
            zone=zone,
            name=name,
            description=f"{low}-{high}% FTP" if high is not None else f">{low - 1}% FTP",
            min_watts=round_whole(ftp * low / 100.0),
            max_watts=max_watts,
            min_percent=low,
            max_percent=high,
            color=color,
            training_effect=effect,
        ))
    return zones


def classify_power_zone(watts, ftp) -> Optional[str]:
    """Zone label for a power reading, or None without a usable FTP."""
    try:
        watts = float(watts or 0)
        ftp = float(ftp or 0)
    except (TypeError, ValueError):
        return None
    if ftp <= 0:
        return None
    percent = watts / ftp * 100.0
    for zone, _name, _low, high, _color, _effect in POWER_ZONE_BANDS:
        # Bands are integer percentages; 55.4% still belongs to Z1
        if high is None or percent < high + 1:
            return zone
    return POWER_ZONE_BANDS[-1][0]
