"""
Cyclo Analytics - Command Line Interface
Run segment, zone and VO2max analysis from the terminal
"""

import argparse
import logging
import os
import sys
from datetime import date

from cyclo_analytics.climbs import CATEGORY_LABELS, climb_name, detect_climbs
from cyclo_analytics.errors import AnalyticsError
from cyclo_analytics.fit_loader import load_fit_samples
from cyclo_analytics.hr_zones import zones_from_hr_max, zones_from_lthr
from cyclo_analytics.models import AthleteProfile, VO2maxInput, parse_sex
from cyclo_analytics.power_bests import calculate_power_bests
from cyclo_analytics.power_zones import zones_from_ftp
from cyclo_analytics.segment_metrics import analyze_segment, select_segment
from cyclo_analytics.vo2max import calculate_age, estimate_vo2max, evaluate_vo2max_quality


def _iso_date(value):
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got '{value}'")


def _fmt(value, unit=""):
    if value is None:
        return "N/A"
    return f"{value:g}{unit}" if isinstance(value, float) else f"{value}{unit}"


def _print_zones(title, zones, unit):
    print(title)
    print("-" * 50)
    for z in zones:
        upper = _fmt(getattr(z, f"max_{unit}"))
        lower = getattr(z, f"min_{unit}")
        print(f"{z.zone}  {z.name:<22} {lower:>4} - {upper:<4} {unit}  {z.training_effect}")


def cmd_segment(args):
    samples = load_fit_samples(args.file)
    end = args.end if args.end is not None else len(samples) - 1
    segment = select_segment(samples, args.start, end)
    profile = AthleteProfile(weight_kg=args.weight, ftp_watts=args.ftp)
    m = analyze_segment(segment, profile)

    print(f"\n🚴 SEGMENT: samples {args.start}-{end} ({os.path.basename(args.file)})")
    print("-" * 50)
    print(f"Stats:    {m.distance_meters / 1000:.2f} km in {m.duration_seconds / 60:.1f} min  "
          f"@ {_fmt(m.average_speed_kph, ' km/h')}")
    print(f"Climb:    +{m.elevation_gain:g} m / -{m.elevation_loss:g} m  |  "
          f"Grade {_fmt(m.average_grade, '%')} (max {_fmt(m.max_grade, '%')})  |  VAM {_fmt(m.vam, ' m/h')}")
    print(f"Power:    Avg {_fmt(m.average_power, ' W')} | NP {_fmt(m.normalized_power, ' W')} | "
          f"Max {_fmt(m.max_power, ' W')} | VI {_fmt(m.variability_index)} | Work {_fmt(m.work_kj, ' kJ')}")
    print(f"Athlete:  {_fmt(m.watts_per_kg, ' W/kg')} | IF {_fmt(m.intensity_factor)} | TSS {_fmt(m.tss)}")
    print(f"Body:     HR {_fmt(m.average_heart_rate, ' bpm')} (max {_fmt(m.max_heart_rate)}) | "
          f"Cad {_fmt(m.average_cadence, ' rpm')} (max {_fmt(m.max_cadence)})")


def cmd_bests(args):
    bests = calculate_power_bests(load_fit_samples(args.file))
    print(f"\n⚡ POWER BESTS ({os.path.basename(args.file)})")
    print("-" * 50)
    for key, value in bests.items():
        print(f"{key:<12} {_fmt(value, ' W')}")


def cmd_climbs(args):
    samples = load_fit_samples(args.file)
    climbs = detect_climbs(samples)
    print(f"\n⛰️  CLIMBS ({os.path.basename(args.file)})")
    print("-" * 50)
    if not climbs:
        print("No climbs found")
        return 0
    for n, climb in enumerate(climbs, 1):
        print(f"{n}. {climb_name(climb)}  {climb.distance_meters / 1000:.2f} km  "
              f"{CATEGORY_LABELS[climb.category]}  difficulty {climb.difficulty_rating}/10  "
              f"VAM {climb.vam} m/h  (samples {climb.start_index}-{climb.end_index})")
    return 0


def cmd_zones(args):
    if args.hr_max is None and args.lthr is None and args.ftp is None:
        print("❌ Error: provide --hr-max, --lthr or --ftp")
        return 1
    if args.hr_max is not None:
        _print_zones(f"\n❤️  HR ZONES (HRmax {args.hr_max:g} bpm)", zones_from_hr_max(args.hr_max), "bpm")
    if args.lthr is not None:
        _print_zones(f"\n❤️  HR ZONES (LTHR {args.lthr:g} bpm)", zones_from_lthr(args.lthr), "bpm")
    if args.ftp is not None:
        _print_zones(f"\n⚡ POWER ZONES (FTP {args.ftp:g} W)", zones_from_ftp(args.ftp), "watts")
    return 0


def cmd_vo2max(args):
    data = VO2maxInput(
        weight_kg=args.weight,
        ftp_watts=args.ftp,
        sex=parse_sex(args.sex),
        age=args.age,
        birth_date=args.birth_date,
        pb_power_300s_watts=args.p5min,
        pb_power_60s_watts=args.p1min,
        pb_power_1200s_watts=args.p20min,
    )
    result = estimate_vo2max(data)
    print(f"\n🫁 VO2max: {result.vo2max} ml/kg/min  ({result.method.value}, confidence {result.confidence:.0%})")
    print(f"Reason:   {result.reasoning}")
    if result.adaptive_message:
        print(f"Note:     {result.adaptive_message}")
    if result.vo2max > 0:
        age = data.age if data.age is not None else calculate_age(data.birth_date)
        quality = evaluate_vo2max_quality(result.vo2max, age, data.sex)
        print(f"Rating:   {quality.category.value} ({quality.percentile}) - {quality.description}")
    return 0


def build_parser():
    parser = argparse.ArgumentParser(prog="cyclo-analytics", description="Cycling performance analytics")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("segment", help="Analyze a segment of a FIT file")
    p.add_argument("file")
    p.add_argument("--start", type=int, default=0, help="First sample index (default: 0)")
    p.add_argument("--end", type=int, default=None, help="Last sample index (default: last sample)")
    p.add_argument("--ftp", type=float, default=None)
    p.add_argument("--weight", type=float, default=None)
    p.set_defaults(func=cmd_segment)

    p = sub.add_parser("bests", help="Mean-maximal power of a FIT file")
    p.add_argument("file")
    p.set_defaults(func=cmd_bests)

    p = sub.add_parser("climbs", help="Detect climbs in a FIT file")
    p.add_argument("file")
    p.set_defaults(func=cmd_climbs)

    p = sub.add_parser("zones", help="Print HR and/or power zones")
    p.add_argument("--hr-max", type=float, default=None)
    p.add_argument("--lthr", type=float, default=None)
    p.add_argument("--ftp", type=float, default=None)
    p.set_defaults(func=cmd_zones)

    p = sub.add_parser("vo2max", help="Estimate VO2max")
    p.add_argument("--weight", type=float, default=None)
    p.add_argument("--ftp", type=float, default=None)
    p.add_argument("--sex", choices=["M", "F"], default=None)
    p.add_argument("--age", type=int, default=None)
    p.add_argument("--birth-date", type=_iso_date, default=None, help="YYYY-MM-DD")
    p.add_argument("--p5min", type=float, default=None, help="Best 5-min power (W)")
    p.add_argument("--p1min", type=float, default=None, help="Best 1-min power (W)")
    p.add_argument("--p20min", type=float, default=None, help="Best 20-min power (W)")
    p.set_defaults(func=cmd_vo2max)
    return parser


def main(argv=None):
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args) or 0
    except AnalyticsError as e:
        print(f"❌ Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
