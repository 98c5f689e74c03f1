"""
Fitness metrics derived from a runner's session history.

Based on:
- Daniels & Gilbert (1979): oxygen cost of running and %VO2max sustainable
  for a given race duration (VDOT)
- Jones & Vanhatalo (2017): two-parameter critical speed model
- Heart-rate reserve as a VO2 proxy for running economy (Swain, 1997)

Every calculator falls back to a conservative default when the history cannot
support an estimate, so a new athlete always gets usable numbers.
"""

from dataclasses import dataclass, asdict
from datetime import date
import logging
import math
from typing import Any, Dict, Optional, Sequence

import numpy as np

from .config import EngineParams
from .sessions import SessionRecord
from .training_load import (
    TrainingLoad,
    compute_training_load,
    compute_recovery_score,
    compute_injury_risk,
    calculate_weekly_increase,
)

logger = logging.getLogger(__name__)


@dataclass
class FitnessMetrics:
    """Snapshot of derived fitness for one session window."""
    aerobic_index: float
    critical_speed: float            # km/h
    running_economy: float           # ml/kg/km, lower is better
    lactate_threshold: float         # km/h
    lactate_threshold_pace: float    # min/km
    training_load: TrainingLoad
    injury_risk: float               # 0-100
    recovery_score: float            # 0-100
    weekly_increase: float = 0.0     # % vs average week

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ═══════════════════════════════════════════════════════════════════════════════
# DANIELS REGRESSIONS
# ═══════════════════════════════════════════════════════════════════════════════

def oxygen_cost(velocity_m_min: float) -> float:
    """
    Oxygen cost of running at a given velocity.

    VO2 = -4.6 + 0.182258 × v + 0.000104 × v²   (v in m/min)
    """
    return -4.6 + 0.182258 * velocity_m_min + 0.000104 * velocity_m_min ** 2


def percent_max_sustainable(duration_min: float) -> float:
    """
    Fraction of VO2max sustainable for an all-out effort of this duration.

    %max = 0.8 + 0.1894393 × e^(-0.012778 t) + 0.2989558 × e^(-0.1932605 t)
    """
    return (
        0.8
        + 0.1894393 * math.exp(-0.012778 * duration_min)
        + 0.2989558 * math.exp(-0.1932605 * duration_min)
    )


def estimate_aerobic_index(distance_km: float, duration_min: float) -> float:
    """
    Aerobic index (VDOT) implied by covering distance_km in duration_min.

    Args:
        distance_km: Distance covered
        duration_min: Time taken in minutes

    Returns:
        Rounded aerobic index
    """
    if distance_km <= 0 or duration_min <= 0:
        raise ValueError(
            f"distance ({distance_km}) and duration ({duration_min}) must be positive"
        )
    velocity = distance_km * 1000 / duration_min  # m/min
    return round(oxygen_cost(velocity) / percent_max_sustainable(duration_min))


# ═══════════════════════════════════════════════════════════════════════════════
# CALCULATORS
# ═══════════════════════════════════════════════════════════════════════════════

def _is_race_effort(session: SessionRecord, params: EngineParams) -> bool:
    effort = session.perceived_effort
    return session.is_race or (effort is not None and effort >= params.race_effort_threshold)


def calculate_aerobic_index(
    sessions: Sequence[SessionRecord],
    params: Optional[EngineParams] = None
) -> float:
    """
    Estimate the aerobic index from the session history.

    Race efforts (flagged races or effort >= 9) are preferred and the best one
    is used. Without races, the fastest session of at least 3 km with a
    logged average pace stands in.

    Args:
        sessions: Session history
        params: Engine parameters

    Returns:
        Aerobic index, or the conservative default when nothing qualifies
    """
    if params is None:
        params = EngineParams()

    races = [
        s for s in sessions
        if _is_race_effort(s, params) and s.distance > 0 and s.duration > 0
    ]
    if races:
        best = max(estimate_aerobic_index(s.distance, s.duration) for s in races)
        if best > 0:
            return float(best)

    candidates = [
        s for s in sessions
        if s.distance >= params.min_effort_distance_km and s.duration > 0 and s.average_pace
    ]
    if candidates:
        fastest = min(candidates, key=lambda s: s.average_pace)
        estimate = estimate_aerobic_index(fastest.distance, fastest.duration)
        if estimate > 0:
            return float(estimate)

    logger.debug("No usable sessions for aerobic index, using default %.0f",
                 params.default_aerobic_index)
    return params.default_aerobic_index


def calculate_critical_speed(
    sessions: Sequence[SessionRecord],
    params: Optional[EngineParams] = None
) -> float:
    """
    Critical speed from the shortest and longest hard time trials.

    CS = (d2 - d1) / (t2 - t1), converted from m/s to km/h.

    Args:
        sessions: Session history
        params: Engine parameters

    Returns:
        Critical speed in km/h (default 10 when fewer than two trials qualify)
    """
    if params is None:
        params = EngineParams()

    trials = sorted(
        (
            (s.distance * 1000.0, s.duration * 60.0)
            for s in sessions
            if s.distance >= params.min_effort_distance_km
            and s.perceived_effort is not None
            and s.perceived_effort >= params.time_trial_effort_threshold
        ),
        key=lambda t: t[0],
    )

    if len(trials) < 2:
        return params.default_critical_speed

    d1, t1 = trials[0]
    d2, t2 = trials[-1]
    if d2 <= d1 or t2 <= t1:
        # Same distance, or the longer trial was not slower: model undefined
        return params.default_critical_speed

    return (d2 - d1) / (t2 - t1) * 3.6


def estimate_running_economy(
    sessions: Sequence[SessionRecord],
    params: Optional[EngineParams] = None
) -> float:
    """
    Oxygen cost per km from easy, steady-state sessions with heart rate.

    Uses heart-rate reserve (assumed rest 60, max 190) scaled to a VO2 proxy,
    divided by speed in km/min. Lower is better.
    """
    if params is None:
        params = EngineParams()

    economies = []
    for s in sessions:
        if (
            s.average_heart_rate
            and s.average_pace
            and s.duration > params.economy_min_duration
            and s.perceived_effort
            and s.perceived_effort <= params.economy_max_effort
        ):
            hr_reserve = (
                (s.average_heart_rate - params.economy_resting_hr)
                / (params.economy_max_hr - params.economy_resting_hr)
            )
            vo2 = hr_reserve * params.economy_vo2_scale
            economies.append(vo2 / (60.0 / s.average_pace))

    if not economies:
        return params.default_running_economy
    return float(round(np.mean(economies)))


def calculate_lactate_threshold(
    aerobic_index: float,
    params: Optional[EngineParams] = None
) -> float:
    """Lactate-threshold velocity (km/h): index × 0.88 / 3.5."""
    if params is None:
        params = EngineParams()
    return aerobic_index * params.threshold_fraction / params.threshold_velocity_divisor


def threshold_pace_from_velocity(velocity_kmh: float) -> float:
    """Convert a velocity in km/h to a pace in min/km."""
    if velocity_kmh <= 0:
        raise ValueError(f"velocity ({velocity_kmh}) must be positive")
    return 60.0 / velocity_kmh


def compute_fitness_metrics(
    sessions: Sequence[SessionRecord],
    as_of: Optional[date] = None,
    resting_hr: Optional[float] = None,
    hrv: Optional[float] = None,
    params: Optional[EngineParams] = None
) -> FitnessMetrics:
    """
    Derive the full metric set from a session window.

    Never raises on sparse data: an empty history yields the defaults
    (aerobic index 35, critical speed 10 km/h, economy 200).

    Args:
        sessions: Session history (any order)
        as_of: Reference date for trailing windows (latest session by default)
        resting_hr: Optional resting heart rate for the recovery score
        hrv: Optional heart-rate variability for the recovery score
        params: Engine parameters

    Returns:
        FitnessMetrics
    """
    if params is None:
        params = EngineParams()

    aerobic_index = calculate_aerobic_index(sessions, params)
    critical_speed = calculate_critical_speed(sessions, params)
    running_economy = estimate_running_economy(sessions, params)
    lactate_threshold = calculate_lactate_threshold(aerobic_index, params)
    threshold_pace = threshold_pace_from_velocity(lactate_threshold)

    training_load = compute_training_load(sessions, threshold_pace, params)
    recovery_score = compute_recovery_score(
        sessions, resting_hr=resting_hr, hrv=hrv, as_of=as_of, params=params
    )
    weekly_increase = calculate_weekly_increase(sessions, as_of=as_of, params=params)
    injury_risk = compute_injury_risk(training_load, weekly_increase, recovery_score, params)

    return FitnessMetrics(
        aerobic_index=aerobic_index,
        critical_speed=critical_speed,
        running_economy=running_economy,
        lactate_threshold=lactate_threshold,
        lactate_threshold_pace=threshold_pace,
        training_load=training_load,
        injury_risk=injury_risk,
        recovery_score=recovery_score,
        weekly_increase=weekly_increase,
    )


if __name__ == '__main__':
    print("Testing fitness metrics...")

    history = [
        SessionRecord(date(2024, 3, 4), 10.0, 55.0, average_pace=5.5,
                      perceived_effort=5, average_heart_rate=140),
        SessionRecord(date(2024, 3, 6), 5.0, 21.0, perceived_effort=8),
        SessionRecord(date(2024, 3, 10), 10.0, 44.0, perceived_effort=9, is_race=True),
    ]
    metrics = compute_fitness_metrics(history)
    print(f"Aerobic index: {metrics.aerobic_index:.0f}")
    print(f"Critical speed: {metrics.critical_speed:.2f} km/h")
    print(f"Threshold pace: {metrics.lactate_threshold_pace:.2f} min/km")
    print(f"Injury risk: {metrics.injury_risk:.0f}")
