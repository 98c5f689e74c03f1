"""
Weekly training patterns: volume, frequency, preferred days and consistency.

Sessions are grouped into calendar weeks starting Monday. Day-of-week indices
follow Python's convention (Monday = 0, Sunday = 6).
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from .config import EngineParams
from .sessions import SessionRecord

DAY_NAMES = ['Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday']


@dataclass
class WeeklyPatterns:
    """Aggregate view of how an athlete trains across weeks."""
    avg_weekly_distance: float = 0.0       # km, rounded
    max_weekly_distance: float = 0.0       # km, rounded
    avg_runs_per_week: float = 0.0         # 1 decimal
    consistency_score: float = 0.0         # 0-100
    optimal_days: List[int] = field(default_factory=list)
    typical_long_run_day: Optional[int] = None
    weeks: int = 0
    day_frequency: List[int] = field(default_factory=lambda: [0] * 7)

    @property
    def optimal_day_names(self) -> List[str]:
        return [DAY_NAMES[d] for d in self.optimal_days]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def sessions_to_frame(sessions: Sequence[SessionRecord]) -> pd.DataFrame:
    """Session history as a date-sorted DataFrame."""
    frame = pd.DataFrame({
        'date': pd.to_datetime([s.date for s in sessions]),
        'distance': pd.Series([s.distance for s in sessions], dtype=float),
        'duration': pd.Series([s.duration for s in sessions], dtype=float),
        'pace': pd.Series([s.pace for s in sessions], dtype=float),
        'heart_rate': pd.Series([s.average_heart_rate for s in sessions], dtype=float),
        'effort': pd.Series([s.perceived_effort for s in sessions], dtype=float),
    })
    return frame.sort_values('date', kind='mergesort').reset_index(drop=True)


def analyze_weekly_patterns(
    sessions: Sequence[SessionRecord],
    target_runs_per_week: Optional[float] = None,
    params: Optional[EngineParams] = None
) -> WeeklyPatterns:
    """
    Summarize weekly volume and scheduling habits.

    Consistency compares the sessions logged against the sessions expected:
    target_runs_per_week × weeks when a target is given, otherwise the
    observed average (which scores 100 by construction).

    Args:
        sessions: Session history
        target_runs_per_week: Planned sessions per week, if known
        params: Engine parameters

    Returns:
        WeeklyPatterns (all zeros for an empty history)
    """
    if params is None:
        params = EngineParams()

    if not sessions:
        return WeeklyPatterns()

    frame = sessions_to_frame(sessions)
    frame['week'] = frame['date'].dt.to_period(params.week_anchor)
    frame['weekday'] = frame['date'].dt.weekday

    weekly = frame.groupby('week').agg(distance=('distance', 'sum'), runs=('distance', 'size'))
    n_weeks = len(weekly)
    avg_runs = len(frame) / n_weeks

    day_counts = frame['weekday'].value_counts().reindex(range(7), fill_value=0)
    # Most frequent first, earlier weekday wins ties
    ranked = sorted(range(7), key=lambda d: (-day_counts[d], d))
    optimal_days = [d for d in ranked[:int(round(avg_runs))] if day_counts[d] > 0]

    long_runs = frame[frame['distance'] > params.long_run_km]
    typical_long_run_day = None
    if not long_runs.empty:
        long_counts = long_runs['weekday'].value_counts()
        top = long_counts.max()
        typical_long_run_day = int(min(d for d, c in long_counts.items() if c == top))

    expected = (target_runs_per_week if target_runs_per_week else avg_runs) * n_weeks
    consistency = min(100, round(len(frame) / expected * 100)) if expected > 0 else 0

    return WeeklyPatterns(
        avg_weekly_distance=float(round(weekly['distance'].mean())),
        max_weekly_distance=float(round(weekly['distance'].max())),
        avg_runs_per_week=round(avg_runs, 1),
        consistency_score=float(consistency),
        optimal_days=optimal_days,
        typical_long_run_day=typical_long_run_day,
        weeks=n_weeks,
        day_frequency=[int(day_counts[d]) for d in range(7)],
    )


def weekly_totals(
    sessions: Sequence[SessionRecord],
    params: Optional[EngineParams] = None
) -> pd.DataFrame:
    """
    Per-week distance, duration, mean pace and mean heart rate.

    Weeks without sessions between the first and last week are omitted.
    """
    if params is None:
        params = EngineParams()

    if not sessions:
        return pd.DataFrame(columns=['distance', 'duration', 'pace', 'heart_rate', 'runs'])

    frame = sessions_to_frame(sessions)
    frame['week'] = frame['date'].dt.to_period(params.week_anchor)
    return frame.groupby('week').agg(
        distance=('distance', 'sum'),
        duration=('duration', 'sum'),
        pace=('pace', 'mean'),
        heart_rate=('heart_rate', 'mean'),
        runs=('distance', 'size'),
    )
