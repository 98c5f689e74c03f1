#!/usr/bin/env python3
"""
Fitness Engine - CLI Entry Point

Usage:
    python main.py metrics [--archetype A] [--weeks W] [--seed S]
    python main.py zones --max-hr HR --threshold-pace P
    python main.py paces --aerobic-index I
    python main.py adapt [--archetype A] [--weeks W] [--seed S] [--soreness N]
    python main.py demo
"""

import argparse
import json
import logging
from datetime import timedelta

from data.synthetic import ARCHETYPES, generate_session_history, generate_planned_workouts
from fitness_engine import (
    AdaptationEngine,
    InvalidAerobicIndex,
    RecoveryMetrics,
    TrainingPlan,
    analyze_weekly_patterns,
    compute_fitness_metrics,
    derive_training_paces,
    evaluate_intensity_distribution,
    format_pace,
    personalize_zones,
)
from fitness_engine.patterns import DAY_NAMES

logger = logging.getLogger(__name__)


def run_metrics(archetype: str = 'recreational', n_weeks: int = 8, seed: int = 42,
                as_json: bool = False):
    """Print fitness metrics for a synthetic history."""
    sessions = generate_session_history(archetype, n_weeks, seed)
    metrics = compute_fitness_metrics(sessions)
    patterns = analyze_weekly_patterns(sessions)

    if as_json:
        result = metrics.to_dict()
        result['training_load']['trend'] = metrics.training_load.trend.value
        result['patterns'] = patterns.to_dict()
        print(json.dumps(result, indent=2))
        return metrics

    print(f"Fitness metrics: {archetype}, {len(sessions)} sessions over {n_weeks} weeks")
    print("-" * 50)
    print(f"  Aerobic index:      {metrics.aerobic_index:.1f}")
    print(f"  Critical speed:     {metrics.critical_speed:.2f} km/h")
    print(f"  Running economy:    {metrics.running_economy:.0f}")
    print(f"  Threshold pace:     {format_pace(metrics.lactate_threshold_pace)} /km")
    load = metrics.training_load
    print(f"  Load (A/C):         {load.acute:.0f} / {load.chronic:.0f} "
          f"(ratio {load.ratio:.2f}, {load.trend.value})")
    print(f"  Recovery score:     {metrics.recovery_score:.0f}")
    print(f"  Injury risk:        {metrics.injury_risk:.0f}")
    print(f"  {load.recommendation}")
    print()
    print(f"  Avg weekly distance: {patterns.avg_weekly_distance:.0f} km "
          f"(max {patterns.max_weekly_distance:.0f})")
    print(f"  Runs per week:       {patterns.avg_runs_per_week}")
    print(f"  Preferred days:      {', '.join(patterns.optimal_day_names)}")
    if patterns.typical_long_run_day is not None:
        print(f"  Long run day:        {DAY_NAMES[patterns.typical_long_run_day]}")

    return metrics


def run_zones(max_hr: float, threshold_pace: float) -> int:
    """Print personalized zones; returns a process exit code."""
    try:
        zones = personalize_zones(max_hr, threshold_pace)
    except ValueError as e:
        print(f"Error: {e}")
        return 2

    print(f"Training zones (max HR {max_hr:.0f}, threshold {format_pace(threshold_pace)} /km)")
    print("-" * 60)
    for zone in zones:
        hr_low, hr_high = zone.heart_rate_range
        pace_low, pace_high = zone.pace_range
        print(f"  {zone.name:<14} {hr_low:>3}-{hr_high:<3} bpm  "
              f"{pace_low:5.2f}-{pace_high:5.2f}  {zone.description}")
    return 0


def run_paces(aerobic_index: float) -> int:
    """Print training paces; returns a process exit code."""
    try:
        paces = derive_training_paces(aerobic_index)
    except InvalidAerobicIndex as e:
        print(f"Error: {e}")
        return 2

    print(f"Training paces for aerobic index {aerobic_index:.0f}")
    print("-" * 30)
    for name, pace in paces.to_dict().items():
        print(f"  {name:<11} {format_pace(pace)} /km")
    return 0


def run_adapt(archetype: str = 'declining', n_weeks: int = 8, seed: int = 42,
              soreness: float = None, recovery_score: float = None):
    """Evaluate a synthetic athlete against a plan and print modifications."""
    sessions = generate_session_history(archetype, n_weeks, seed)
    planned = generate_planned_workouts(archetype, n_weeks + 1)
    as_of = sessions[-1].date if sessions else None

    engine = AdaptationEngine()
    logger.debug("Evaluating %d sessions against %d planned workouts", len(sessions), len(planned))
    progress = engine.analyze_progress(sessions, planned, as_of=as_of)
    upcoming = [w for w in planned if as_of is None or w.date > as_of]
    plan = TrainingPlan(archetype, workouts=upcoming)

    recovery = None
    if soreness is not None or recovery_score is not None:
        recovery = RecoveryMetrics(recovery_score=recovery_score, muscle_soreness=soreness)

    print(f"Adaptation: {archetype}, {len(sessions)} sessions")
    print("-" * 60)
    print(f"  Adherence:   {progress.adherence_rate:.0f}%")
    print(f"  Trend:       {progress.performance_trend.value}")
    print(f"  Volume:      {progress.volume_progress.trend} "
          f"({progress.volume_progress.change_pct:+.1f}%)")
    print(f"  Plateau:     {'yes' if progress.plateau_detected else 'no'}")

    recent = [s for s in sessions if as_of - timedelta(days=28) < s.date] if as_of else []
    report = evaluate_intensity_distribution(recent)
    print(f"  Intensity:   {report.overall.easy:.1f}/{report.overall.moderate:.1f}/"
          f"{report.overall.hard:.1f} (compliance {report.compliance:.0f})")

    fatigue = engine.detect_fatigue(sessions, upcoming, as_of=as_of)
    print(f"  Fatigue:     {fatigue.level}")
    risk = engine.assess_overreaching_risk(sessions, upcoming, as_of=as_of)
    print(f"  Overreach:   {risk.risk_level} (current {risk.current_risk:.0f}, "
          f"projected {risk.projected_risk:.0f})")

    modifications = engine.suggest_modifications(plan, progress, recovery)
    print()
    if not modifications:
        print("  No modifications needed.")
    for mod in modifications:
        print(f"  [{mod.priority.value:<6}] {mod.type.value:<18} {mod.reason}")
        changes = mod.suggested_changes.to_dict()
        if changes:
            print(f"           {changes}")

    return modifications


def run_demo():
    """Run every archetype through metrics and adaptation."""
    for archetype in ARCHETYPES:
        run_metrics(archetype, 8, 42)
        print()
        run_adapt(archetype, 8, 42)
        print("\n" + "=" * 60 + "\n")
    run_zones(185, 4.5)
    print()
    run_paces(50)


def main(argv=None):
    parser = argparse.ArgumentParser(description='Fitness Metrics & Adaptive Load Engine')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Metrics command
    m_parser = subparsers.add_parser('metrics', help='Fitness metrics for a synthetic history')
    m_parser.add_argument('--archetype', choices=sorted(ARCHETYPES), default='recreational')
    m_parser.add_argument('--weeks', type=int, default=8, help='History weeks')
    m_parser.add_argument('--seed', type=int, default=42, help='Random seed')
    m_parser.add_argument('--json', action='store_true', help='Print JSON')

    # Zones command
    z_parser = subparsers.add_parser('zones', help='Personalized training zones')
    z_parser.add_argument('--max-hr', type=float, default=185, help='Maximum heart rate')
    z_parser.add_argument('--threshold-pace', type=float, default=4.5, help='min/km')

    # Paces command
    p_parser = subparsers.add_parser('paces', help='Training paces from aerobic index')
    p_parser.add_argument('--aerobic-index', type=float, default=50)

    # Adapt command
    a_parser = subparsers.add_parser('adapt', help='Suggest plan modifications')
    a_parser.add_argument('--archetype', choices=sorted(ARCHETYPES), default='declining')
    a_parser.add_argument('--weeks', type=int, default=8, help='History weeks')
    a_parser.add_argument('--seed', type=int, default=42, help='Random seed')
    a_parser.add_argument('--soreness', type=float, default=None, help='Muscle soreness 1-10')
    a_parser.add_argument('--recovery-score', type=float, default=None, help='Recovery 0-100')

    # Demo command
    subparsers.add_parser('demo', help='Run all archetypes')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    if args.command == 'metrics':
        run_metrics(args.archetype, args.weeks, args.seed, args.json)
    elif args.command == 'zones':
        return run_zones(args.max_hr, args.threshold_pace)
    elif args.command == 'paces':
        return run_paces(args.aerobic_index)
    elif args.command == 'adapt':
        run_adapt(args.archetype, args.weeks, args.seed, args.soreness, args.recovery_score)
    elif args.command == 'demo':
        run_demo()
    else:
        parser.print_help()
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
