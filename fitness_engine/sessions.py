"""
Session and plan records exchanged with the logging and plan-generation layers.

SessionRecord is an immutable historical fact. PlannedWorkout and TrainingPlan
are read-only views of the plan being adapted; the engine never mutates them.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional

from .config import AthleteConstraints


class WorkoutType(Enum):
    """Workout categories a plan can schedule."""
    RECOVERY = "recovery"
    EASY = "easy"
    STEADY = "steady"
    LONG_RUN = "long_run"
    TEMPO = "tempo"
    THRESHOLD = "threshold"
    VO2MAX = "vo2max"
    SPEED = "speed"
    HILL_REPEATS = "hill_repeats"
    FARTLEK = "fartlek"
    PROGRESSION = "progression"
    RACE_PACE = "race_pace"
    TIME_TRIAL = "time_trial"
    CROSS_TRAINING = "cross_training"


class TrainingPhase(Enum):
    """Plan stage; each has its own target intensity distribution."""
    BASE = "base"
    BUILD = "build"
    PEAK = "peak"
    TAPER = "taper"
    RECOVERY = "recovery"


class Methodology(Enum):
    """Coaching methodology the plan follows."""
    DANIELS = "daniels"
    LYDIARD = "lydiard"
    PFITZINGER = "pfitzinger"
    HUDSON = "hudson"
    CUSTOM = "custom"


@dataclass(frozen=True)
class SessionRecord:
    """
    One logged run.

    Distances in km, durations in minutes, pace in min/km.
    """
    date: date
    distance: float
    duration: float
    average_pace: Optional[float] = None
    average_heart_rate: Optional[float] = None
    perceived_effort: Optional[int] = None   # 1-10
    is_race: bool = False

    # Optional context from the logging layer
    planned_duration: Optional[float] = None
    intensity: Optional[float] = None         # % of max effort
    notes: str = ""

    @property
    def pace(self) -> Optional[float]:
        """Average pace, derived from distance and duration when not logged."""
        if self.average_pace:
            return self.average_pace
        if self.distance > 0 and self.duration > 0:
            return self.duration / self.distance
        return None

    @property
    def completion_rate(self) -> float:
        """Fraction of the planned duration actually run (1.0 when unknown)."""
        if not self.planned_duration:
            return 1.0
        return self.duration / self.planned_duration


@dataclass(frozen=True)
class PlannedWorkout:
    """A scheduled workout in the plan under adaptation."""
    date: date
    workout_type: WorkoutType
    duration: float                           # Minutes
    intensity: float                          # % of max effort
    distance: Optional[float] = None
    estimated_tss: Optional[float] = None


@dataclass
class TrainingPlan:
    """The in-progress plan an adaptation is evaluated against."""
    athlete_id: str
    phase: TrainingPhase = TrainingPhase.BASE
    methodology: Methodology = Methodology.DANIELS
    workouts: List[PlannedWorkout] = field(default_factory=list)
    constraints: AthleteConstraints = field(default_factory=AthleteConstraints)
