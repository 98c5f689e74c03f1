"""
Training load, recovery and injury-risk scoring.

Based on:
- Coggan: Training Stress Score relative to threshold pace
- Williams et al. (2017): EWMA acute and chronic load
- Gabbett (2016): acute:chronic ratio risk bands

Loads are updated session by session in chronological order:

    load = load × decay + TSS × (1 - decay),   decay = e^(-1/window)

with a 7-session acute window and a 28-session chronic window.
"""

from dataclasses import dataclass, asdict
from datetime import date, timedelta
from enum import Enum
import logging
import math
from typing import Any, Dict, Optional, Sequence

import numpy as np
import pandas as pd

from .config import EngineParams
from .patterns import analyze_weekly_patterns
from .sessions import SessionRecord

logger = logging.getLogger(__name__)


class LoadTrend(Enum):
    """Direction of acute load versus a week of sessions ago."""
    INCREASING = "increasing"
    STABLE = "stable"
    DECREASING = "decreasing"


LOAD_RECOMMENDATIONS = {
    'low': "Training load is low. Consider increasing volume gradually.",
    'high': "Training load is very high. Risk of overtraining. Consider recovery.",
    'elevated': "Training load is high. Monitor fatigue carefully.",
    'optimal': "Training load is in optimal range for adaptation.",
}


@dataclass
class TrainingLoad:
    """
    Rolled-up acute/chronic load.

    ratio = acute / chronic when chronic > 0, otherwise 1 (neutral).
    """
    acute: float
    chronic: float
    ratio: float
    trend: LoadTrend
    recommendation: str

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d['trend'] = self.trend.value
        return d


def calculate_tss(session: SessionRecord, threshold_pace: float) -> float:
    """
    Training Stress Score for one session.

    TSS = duration × (threshold_pace / pace)² × 100 / 60

    Args:
        session: The session
        threshold_pace: Lactate-threshold pace in min/km

    Returns:
        Rounded TSS, 0 when no average pace was logged
    """
    pace = session.average_pace
    if not pace or session.duration <= 0:
        return 0
    intensity_factor = threshold_pace / pace
    return round(session.duration * intensity_factor ** 2 * 100 / 60)


def calculate_load_ewma(values: np.ndarray, window: float) -> np.ndarray:
    """
    Exponentially-decayed load starting from zero.

    Args:
        values: Per-session TSS values in chronological order
        window: Decay window in sessions (7 acute, 28 chronic)

    Returns:
        Array of load values after each session
    """
    values = np.asarray(values, dtype=float)
    decay = math.exp(-1.0 / window)

    load = np.zeros(len(values))
    current = 0.0
    for i, value in enumerate(values):
        current = current * decay + value * (1 - decay)
        load[i] = current

    return load


def calculate_load_series(
    sessions: Sequence[SessionRecord],
    threshold_pace: float,
    params: Optional[EngineParams] = None
) -> pd.DataFrame:
    """
    Per-session TSS with acute load, chronic load and their ratio.

    Returns:
        DataFrame with columns date, tss, acute, chronic, ratio
    """
    if params is None:
        params = EngineParams()

    ordered = sorted(sessions, key=lambda s: s.date)
    tss = np.array([calculate_tss(s, threshold_pace) for s in ordered], dtype=float)
    acute = calculate_load_ewma(tss, params.acute_window)
    chronic = calculate_load_ewma(tss, params.chronic_window)

    with np.errstate(divide='ignore', invalid='ignore'):
        ratio = np.where(chronic > 0, acute / np.where(chronic > 0, chronic, 1.0), 1.0)

    return pd.DataFrame({
        'date': [s.date for s in ordered],
        'tss': tss,
        'acute': acute,
        'chronic': chronic,
        'ratio': ratio,
    })


def classify_load_ratio(ratio: float, params: Optional[EngineParams] = None) -> str:
    """
    Classify an acute:chronic ratio.

    Bands:
        - low: < 0.8 (under-training)
        - optimal: 0.8-1.3
        - elevated: 1.3-1.5 (monitor fatigue)
        - high: > 1.5 (overtraining risk)
    """
    if params is None:
        params = EngineParams()

    if ratio < params.ratio_low:
        return 'low'
    elif ratio > params.ratio_very_high:
        return 'high'
    elif ratio > params.ratio_high:
        return 'elevated'
    return 'optimal'


def compute_training_load(
    sessions: Sequence[SessionRecord],
    threshold_pace: float,
    params: Optional[EngineParams] = None
) -> TrainingLoad:
    """
    Current acute/chronic load, ratio, trend and recommendation.

    Args:
        sessions: Session history (any order)
        threshold_pace: Lactate-threshold pace in min/km
        params: Engine parameters

    Returns:
        TrainingLoad with acute/chronic rounded to integers, ratio to 2 dp
    """
    if params is None:
        params = EngineParams()

    series = calculate_load_series(sessions, threshold_pace, params)

    if series.empty:
        acute, chronic, ratio = 0.0, 0.0, 1.0
    else:
        last = series.iloc[-1]
        acute, chronic, ratio = float(last['acute']), float(last['chronic']), float(last['ratio'])

    trend = LoadTrend.STABLE
    if len(series) > params.trend_lookback:
        previous = float(series['acute'].iloc[-(params.trend_lookback + 1)])
        if acute > previous * params.trend_increase_factor:
            trend = LoadTrend.INCREASING
        elif acute < previous * params.trend_decrease_factor:
            trend = LoadTrend.DECREASING

    return TrainingLoad(
        acute=float(round(acute)),
        chronic=float(round(chronic)),
        ratio=round(ratio, 2),
        trend=trend,
        recommendation=LOAD_RECOMMENDATIONS[classify_load_ratio(ratio, params)],
    )


def _reference_date(sessions: Sequence[SessionRecord], as_of: Optional[date]) -> date:
    if as_of is not None:
        return as_of
    if sessions:
        return max(s.date for s in sessions)
    return date.today()


def _trailing(sessions: Sequence[SessionRecord], as_of: date, days: int):
    start = as_of - timedelta(days=days)
    return [s for s in sessions if start < s.date <= as_of]


def compute_recovery_score(
    sessions: Sequence[SessionRecord],
    resting_hr: Optional[float] = None,
    hrv: Optional[float] = None,
    as_of: Optional[date] = None,
    params: Optional[EngineParams] = None
) -> float:
    """
    Recovery score from recent hard sessions and optional wellness markers.

    Starts at 70, loses 5 points per effort >= 7 session in the trailing
    7 days, and moves ±10 for HRV and resting-HR bands.

    Args:
        sessions: Session history
        resting_hr: Resting heart rate (bpm)
        hrv: Heart-rate variability (ms)
        as_of: End of the trailing window (latest session date by default)
        params: Engine parameters

    Returns:
        Score clamped to [0, 100]
    """
    if params is None:
        params = EngineParams()

    reference = _reference_date(sessions, as_of)
    hard_sessions = [
        s for s in _trailing(sessions, reference, params.recovery_window_days)
        if s.perceived_effort and s.perceived_effort >= params.hard_session_effort
    ]

    score = params.recovery_baseline - len(hard_sessions) * params.hard_session_penalty

    if hrv:
        if hrv > params.hrv_high:
            score += params.recovery_marker_adjustment
        elif hrv < params.hrv_low:
            score -= params.recovery_marker_adjustment

    if resting_hr:
        if resting_hr < params.resting_hr_low:
            score += params.recovery_marker_adjustment
        elif resting_hr > params.resting_hr_high:
            score -= params.recovery_marker_adjustment

    return float(np.clip(score, 0, 100))


def calculate_weekly_increase(
    sessions: Sequence[SessionRecord],
    as_of: Optional[date] = None,
    params: Optional[EngineParams] = None
) -> float:
    """
    Distance of the trailing 7 days relative to the average week (%).

    Returns:
        Percentage change, 0 when there is no weekly history
    """
    if params is None:
        params = EngineParams()

    patterns = analyze_weekly_patterns(sessions, params=params)
    if patterns.avg_weekly_distance <= 0:
        return 0.0

    reference = _reference_date(sessions, as_of)
    recent = sum(s.distance for s in _trailing(sessions, reference, 7))
    return (recent - patterns.avg_weekly_distance) / patterns.avg_weekly_distance * 100


def compute_injury_risk(
    training_load: TrainingLoad,
    weekly_increase: float,
    recovery_score: float,
    params: Optional[EngineParams] = None
) -> float:
    """
    Additive 0-100 injury-risk score.

    Components:
        - Load ratio: 20 (< 0.8), 10 (optimal), 25 (> 1.3), 40 (> 1.5)
        - Weekly distance growth: 0 / 10 (> 5%) / 20 (> 10%) / 30 (> 20%)
        - Recovery: (100 - recovery_score) × 0.3

    Args:
        training_load: Current training load
        weekly_increase: Weekly distance growth in percent
        recovery_score: Recovery score 0-100
        params: Engine parameters

    Returns:
        Risk clamped to [0, 100]
    """
    if params is None:
        params = EngineParams()

    ratio_points = {
        'low': params.risk_points_undertraining,
        'optimal': params.risk_points_optimal,
        'elevated': params.risk_points_elevated,
        'high': params.risk_points_high,
    }
    risk = ratio_points[classify_load_ratio(training_load.ratio, params)]

    for threshold, points in params.growth_bands:
        if weekly_increase > threshold:
            risk += points
            break

    risk += round((100 - recovery_score) * params.recovery_risk_weight)

    return float(np.clip(risk, 0, 100))


if __name__ == '__main__':
    print("Testing training load...")

    history = [
        SessionRecord(date(2024, 1, 1) + timedelta(days=2 * i), 8.0, 45.0, average_pace=5.625)
        for i in range(20)
    ]
    load = compute_training_load(history, threshold_pace=5.0)
    print(f"Acute {load.acute:.0f}, chronic {load.chronic:.0f}, ratio {load.ratio:.2f}")
    print(f"Trend: {load.trend.value}")
    print(load.recommendation)

    recovery = compute_recovery_score(history, resting_hr=48, hrv=65)
    print(f"Recovery score: {recovery:.0f}")
    print(f"Injury risk: {compute_injury_risk(load, 12.0, recovery):.0f}")
