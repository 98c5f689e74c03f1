"""
Synthetic session histories for demos and tests.

Generates realistic runner logs with:
- Archetype-specific volume, pace and effort
- Session-to-session variance
- Compliance modeling (missed sessions)
- Progression, overreaching or decline over the weeks
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List, Optional

import numpy as np

from fitness_engine.sessions import PlannedWorkout, SessionRecord, WorkoutType


@dataclass(frozen=True)
class Archetype:
    """Runner behavior a synthetic history is drawn from."""
    name: str
    runs_per_week: int
    base_distance: float      # km per regular run
    base_pace: float          # min/km on an easy run
    weekly_growth: float      # Fractional volume growth per week
    pace_drift: float         # min/km per week; negative means getting faster
    effort_mean: float        # Typical perceived effort (1-10)
    easy_hr: float            # Heart rate at effort 5
    compliance_rate: float    # Probability of completing a scheduled run
    completion_mean: float    # Fraction of planned duration actually run
    race_every: int = 0       # Weeks between races, 0 for none


ARCHETYPES: Dict[str, Archetype] = {
    'beginner': Archetype(
        'beginner', runs_per_week=3, base_distance=5.0, base_pace=6.8,
        weekly_growth=0.03, pace_drift=-0.02, effort_mean=5, easy_hr=150,
        compliance_rate=0.80, completion_mean=0.95,
    ),
    'recreational': Archetype(
        'recreational', runs_per_week=4, base_distance=8.0, base_pace=5.8,
        weekly_growth=0.03, pace_drift=-0.01, effort_mean=5, easy_hr=142,
        compliance_rate=0.90, completion_mean=1.0, race_every=6,
    ),
    'advanced': Archetype(
        'advanced', runs_per_week=6, base_distance=12.0, base_pace=4.7,
        weekly_growth=0.02, pace_drift=-0.01, effort_mean=6, easy_hr=135,
        compliance_rate=0.95, completion_mean=1.0, race_every=4,
    ),
    'overreaching': Archetype(
        'overreaching', runs_per_week=5, base_distance=9.0, base_pace=5.5,
        weekly_growth=0.20, pace_drift=0.0, effort_mean=7.5, easy_hr=148,
        compliance_rate=0.95, completion_mean=0.9,
    ),
    'declining': Archetype(
        'declining', runs_per_week=4, base_distance=8.0, base_pace=5.6,
        weekly_growth=0.0, pace_drift=0.08, effort_mean=7, easy_hr=145,
        compliance_rate=0.85, completion_mean=0.82,
    ),
}


def _get_run_schedule(runs_per_week: int) -> List[int]:
    """Get typical run days for given frequency (0 = Monday)."""
    schedules = {
        2: [2, 5],           # Wed, Sat
        3: [1, 3, 5],        # Tue, Thu, Sat
        4: [1, 3, 5, 6],     # Tue, Thu, Sat, Sun
        5: [0, 1, 3, 5, 6],  # Mon, Tue, Thu, Sat, Sun
        6: [0, 1, 2, 4, 5, 6],
        7: list(range(7)),
    }
    return schedules.get(runs_per_week, [1, 3, 5])  # Default 3x


def get_archetype(name: str) -> Archetype:
    if name not in ARCHETYPES:
        raise ValueError(f"Unknown archetype '{name}', choose from {sorted(ARCHETYPES)}")
    return ARCHETYPES[name]


def generate_session_history(
    archetype: str = 'recreational',
    weeks: int = 8,
    seed: Optional[int] = None,
    start: Optional[date] = None
) -> List[SessionRecord]:
    """
    Generate a chronological session log.

    The last run day of each week is the long run (1.8x distance). Races
    replace the long run every `race_every` weeks.

    Args:
        archetype: Archetype name (see ARCHETYPES)
        weeks: Number of weeks to generate
        seed: Random seed
        start: First Monday of the log (2024-01-01 by default)

    Returns:
        List of SessionRecord
    """
    profile = get_archetype(archetype)
    rng = np.random.default_rng(seed)
    if start is None:
        start = date(2024, 1, 1)
    start = start - timedelta(days=start.weekday())

    run_days = _get_run_schedule(profile.runs_per_week)
    long_run_day = run_days[-1]
    sessions = []

    for week in range(weeks):
        volume_factor = (1 + profile.weekly_growth) ** week
        week_pace = profile.base_pace + profile.pace_drift * week
        race_week = profile.race_every and week % profile.race_every == profile.race_every - 1

        for day in run_days:
            if rng.random() > profile.compliance_rate:
                continue

            session_date = start + timedelta(weeks=week, days=day)
            is_long = day == long_run_day

            if is_long and race_week:
                distance = 10.0
                pace = week_pace * 0.82 + rng.normal(0, 0.05)
                effort = 9
                is_race = True
            else:
                distance = profile.base_distance * volume_factor * rng.uniform(0.85, 1.15)
                pace = week_pace + rng.normal(0, 0.1)
                effort = int(np.clip(round(rng.normal(profile.effort_mean, 1.0)), 1, 10))
                is_race = False
                if is_long:
                    distance *= 1.8
                    pace += 0.3

            duration = distance * pace
            completion = float(np.clip(rng.normal(profile.completion_mean, 0.04), 0.5, 1.1))
            heart_rate = profile.easy_hr + (effort - 5) * 6 + rng.normal(0, 3)

            sessions.append(SessionRecord(
                date=session_date,
                distance=round(distance, 2),
                duration=round(duration, 1),
                average_pace=round(float(pace), 2),
                average_heart_rate=round(float(heart_rate)),
                perceived_effort=effort,
                is_race=is_race,
                planned_duration=round(duration / completion, 1),
                intensity=float(effort * 10),
                notes="tired legs" if effort >= 8 and completion < 0.85 else "",
            ))

    return sessions


def generate_planned_workouts(
    archetype: str = 'recreational',
    weeks: int = 8,
    start: Optional[date] = None
) -> List[PlannedWorkout]:
    """
    A simple plan on the archetype's schedule: easy runs, one tempo, and a
    Sunday-side long run each week.
    """
    profile = get_archetype(archetype)
    if start is None:
        start = date(2024, 1, 1)
    start = start - timedelta(days=start.weekday())

    run_days = _get_run_schedule(profile.runs_per_week)
    workouts = []

    for week in range(weeks):
        volume_factor = (1 + profile.weekly_growth) ** week
        easy_minutes = profile.base_distance * profile.base_pace * volume_factor

        for i, day in enumerate(run_days):
            if day == run_days[-1]:
                workout_type, minutes, intensity = WorkoutType.LONG_RUN, easy_minutes * 1.8, 68
            elif i == 1:
                workout_type, minutes, intensity = WorkoutType.TEMPO, easy_minutes * 0.8, 85
            else:
                workout_type, minutes, intensity = WorkoutType.EASY, easy_minutes, 65
            workouts.append(PlannedWorkout(
                date=start + timedelta(weeks=week, days=day),
                workout_type=workout_type,
                duration=round(minutes, 1),
                intensity=intensity,
            ))

    return workouts


if __name__ == '__main__':
    print("Testing synthetic data generation...")

    for name in ARCHETYPES:
        history = generate_session_history(name, weeks=6, seed=42)
        total = sum(s.distance for s in history)
        print(f"  {name:<13} {len(history):3d} sessions, {total:6.1f} km")
