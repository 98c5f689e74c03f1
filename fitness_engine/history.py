"""
Per-athlete adaptation pattern history.

The repository is the only shared mutable state in the engine. Reads and
writes for one athlete are serialized through a per-athlete lock; different
athletes never contend. Pattern records learn how an athlete responds to
training: how often a response pattern shows up, how many evaluations in a
row it has persisted, and how effective the associated adjustments have been.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from copy import deepcopy
from dataclasses import dataclass, asdict, replace
from datetime import date
import logging
import threading
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

from .config import EngineParams

logger = logging.getLogger(__name__)

# Pattern identifiers
WORKOUT_COMPLETION = 'workout_completion'
VOLUME_SENSITIVITY = 'volume_sensitivity'
STABLE_TRAINING = 'stable_training'
RECOVERY_NEED = 'recovery_need'
PROGRESS = 'progress'
PLATEAU = 'plateau'


@dataclass
class AdaptationPattern:
    """A recurring training response observed for one athlete."""
    pattern_id: str
    trigger: str
    response: str
    effectiveness: float = 50.0       # 0-100
    frequency: int = 1                # Evaluations this pattern was seen in
    streak: int = 1                   # Consecutive evaluations, 0 once absent
    last_observed: Optional[date] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class PatternRepository(ABC):
    """Athlete-keyed store of adaptation patterns."""

    @abstractmethod
    def get(self, athlete_id: str) -> List[AdaptationPattern]:
        """Copy of the athlete's patterns (empty when unknown)."""

    @abstractmethod
    def put(self, athlete_id: str, patterns: Sequence[AdaptationPattern]) -> None:
        """Replace the athlete's patterns."""

    @abstractmethod
    @contextmanager
    def transaction(self, athlete_id: str) -> Iterator[List[AdaptationPattern]]:
        """
        Exclusive read-modify-write of one athlete's patterns.

        Yields a working copy; changes are stored when the block exits
        normally and discarded when it raises.
        """

    def update(
        self,
        athlete_id: str,
        fn: Callable[[List[AdaptationPattern]], List[AdaptationPattern]]
    ) -> List[AdaptationPattern]:
        """Apply fn to the athlete's patterns inside one transaction."""
        with self.transaction(athlete_id) as patterns:
            patterns[:] = fn(list(patterns))
            return list(patterns)


class InMemoryPatternRepository(PatternRepository):
    """Process-local repository with one lock per athlete."""

    def __init__(self):
        self._store: Dict[str, List[AdaptationPattern]] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, athlete_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(athlete_id)
            if lock is None:
                lock = self._locks[athlete_id] = threading.Lock()
            return lock

    def get(self, athlete_id: str) -> List[AdaptationPattern]:
        with self._lock_for(athlete_id):
            return deepcopy(self._store.get(athlete_id, []))

    def _store_patterns(self, athlete_id: str, patterns: List[AdaptationPattern]) -> None:
        # Caller holds the athlete lock; the registry lock guards the key set.
        with self._registry_lock:
            self._store[athlete_id] = patterns

    def put(self, athlete_id: str, patterns: Sequence[AdaptationPattern]) -> None:
        with self._lock_for(athlete_id):
            self._store_patterns(athlete_id, deepcopy(list(patterns)))

    @contextmanager
    def transaction(self, athlete_id: str) -> Iterator[List[AdaptationPattern]]:
        with self._lock_for(athlete_id):
            patterns = deepcopy(self._store.get(athlete_id, []))
            yield patterns
            self._store_patterns(athlete_id, patterns)
            logger.info("Stored %d patterns for athlete %s", len(patterns), athlete_id)

    def athletes(self) -> List[str]:
        with self._registry_lock:
            athlete_ids = list(self._store)
        return sorted(athlete_ids)


# ═══════════════════════════════════════════════════════════════════════════════
# PATTERN LEARNING
# ═══════════════════════════════════════════════════════════════════════════════

def identify_patterns(
    adherence_rate: float,
    performance_trend: str,
    modification_types: Sequence[str],
    plateau_detected: bool = False,
    observed_on: Optional[date] = None
) -> List[AdaptationPattern]:
    """
    Patterns evident in one evaluation.

    Args:
        adherence_rate: Adherence in percent
        performance_trend: 'improving', 'stable' or 'declining'
        modification_types: Types of the modifications emitted this evaluation
        plateau_detected: Whether progress has flattened
        observed_on: Evaluation date

    Returns:
        Observed patterns, each with frequency and streak of 1
    """
    observed = []

    if adherence_rate > 70:
        observed.append(AdaptationPattern(
            WORKOUT_COMPLETION,
            trigger=f"adherence {'> 80%' if adherence_rate > 80 else '> 70%'}",
            response=('maintain or increase intensity' if adherence_rate > 85
                      else 'maintain intensity'),
            effectiveness=min(adherence_rate + 10, 90),
            last_observed=observed_on,
        ))

    if modification_types:
        if 'reduce_volume' in modification_types:
            observed.append(AdaptationPattern(
                VOLUME_SENSITIVITY, 'high training load', 'reduce volume by 15%',
                effectiveness=75, last_observed=observed_on,
            ))
    else:
        observed.append(AdaptationPattern(
            STABLE_TRAINING, 'no modifications needed', 'continue current approach',
            effectiveness=85, last_observed=observed_on,
        ))

    if performance_trend == 'declining':
        observed.append(AdaptationPattern(
            RECOVERY_NEED, 'declining performance', 'add recovery days',
            effectiveness=80, last_observed=observed_on,
        ))
    elif performance_trend == 'improving':
        observed.append(AdaptationPattern(
            PROGRESS, 'improving performance', 'gradual progression',
            effectiveness=85, last_observed=observed_on,
        ))

    if plateau_detected:
        observed.append(AdaptationPattern(
            PLATEAU, 'flat pace and heart rate', 'vary training stimulus',
            effectiveness=50, last_observed=observed_on,
        ))

    return observed


def merge_patterns(
    existing: Sequence[AdaptationPattern],
    observed: Sequence[AdaptationPattern]
) -> List[AdaptationPattern]:
    """
    Fold one evaluation's observations into the history.

    Re-observed patterns gain frequency and streak; patterns not seen this
    time keep their frequency but reset their streak to 0.
    """
    seen = {p.pattern_id: p for p in observed}
    merged = []

    for pattern in existing:
        new = seen.pop(pattern.pattern_id, None)
        if new is None:
            merged.append(replace(pattern, streak=0))
        else:
            merged.append(replace(
                pattern,
                trigger=new.trigger,
                response=new.response,
                frequency=pattern.frequency + 1,
                streak=pattern.streak + 1,
                last_observed=new.last_observed or pattern.last_observed,
            ))

    # Patterns never seen before, in observation order
    merged.extend(p for p in observed if p.pattern_id in seen)
    return merged


def current_streak(patterns: Sequence[AdaptationPattern], pattern_id: str) -> int:
    """Consecutive evaluations the pattern has been observed in (0 if absent)."""
    for pattern in patterns:
        if pattern.pattern_id == pattern_id:
            return pattern.streak
    return 0


def record_outcome(
    pattern: AdaptationPattern,
    performance: float,
    adherence: float,
    recovery: float,
    satisfaction: float,
    params: Optional[EngineParams] = None
) -> AdaptationPattern:
    """
    Update a pattern's effectiveness from an observed outcome.

    outcome = 0.4 × performance + 0.3 × adherence + 0.2 × recovery
              + 0.1 × satisfaction                      (each 0-100)
    effectiveness = α × outcome + (1 - α) × effectiveness,  α = 0.3

    Returns:
        A new pattern; the input is left unchanged
    """
    if params is None:
        params = EngineParams()

    weights = params.outcome_weights
    outcome = (
        weights['performance'] * performance
        + weights['adherence'] * adherence
        + weights['recovery'] * recovery
        + weights['satisfaction'] * satisfaction
    )
    outcome = max(0.0, min(100.0, outcome))
    alpha = params.effectiveness_alpha
    effectiveness = alpha * outcome + (1 - alpha) * pattern.effectiveness
    return replace(pattern, effectiveness=round(effectiveness, 2))


def select_effective_patterns(
    patterns: Sequence[AdaptationPattern],
    params: Optional[EngineParams] = None
) -> List[AdaptationPattern]:
    """Patterns worth acting on: effective or frequently seen, best first (top 10)."""
    if params is None:
        params = EngineParams()

    selected = [
        p for p in patterns
        if p.effectiveness > params.effective_pattern_score
        or p.frequency > params.effective_pattern_frequency
    ]
    selected.sort(key=lambda p: p.effectiveness, reverse=True)
    return selected[:params.max_effective_patterns]


def preferred_patterns(
    patterns: Sequence[AdaptationPattern],
    params: Optional[EngineParams] = None
) -> List[AdaptationPattern]:
    if params is None:
        params = EngineParams()
    return [p for p in patterns if p.effectiveness > params.preferred_pattern_score]


def avoided_patterns(
    patterns: Sequence[AdaptationPattern],
    params: Optional[EngineParams] = None
) -> List[AdaptationPattern]:
    if params is None:
        params = EngineParams()
    return [p for p in patterns if p.effectiveness < params.avoided_pattern_score]
