"""
Intensity distribution: how training time splits into easy, moderate and hard.

Based on:
- Seiler & Kjerland (2006): polarized distribution in endurance athletes
- Fitzgerald, M. (2014). 80/20 Running
- Methodology phase targets (Daniels, Lydiard, Pfitzinger, Hudson)

Percentages are time-weighted: a 90 minute easy run counts three times as much
as a 30 minute one. The enforcer only reports; it never changes the sessions
it is given.
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
import logging
import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .config import EngineParams
from .sessions import Methodology, TrainingPhase

logger = logging.getLogger(__name__)

BUCKETS = ('easy', 'moderate', 'hard')


@dataclass(frozen=True)
class IntensityDistribution:
    """Share of training time per bucket, in percent."""
    easy: float
    moderate: float
    hard: float

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.easy, self.moderate, self.hard)

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


INTENSITY_MODELS: Dict[str, IntensityDistribution] = {
    'polarized': IntensityDistribution(80, 5, 15),
    'pyramidal': IntensityDistribution(70, 20, 10),
    'threshold': IntensityDistribution(60, 30, 10),
}

D = IntensityDistribution
PHASE_TARGETS: Dict[Methodology, Dict[TrainingPhase, IntensityDistribution]] = {
    Methodology.DANIELS: {
        TrainingPhase.BASE: D(85, 10, 5),        # Aerobic emphasis
        TrainingPhase.BUILD: D(80, 15, 5),
        TrainingPhase.PEAK: D(75, 15, 10),       # More VO2max work
        TrainingPhase.TAPER: D(80, 15, 5),
        TrainingPhase.RECOVERY: D(95, 5, 0),
    },
    Methodology.LYDIARD: {
        TrainingPhase.BASE: D(90, 8, 2),         # Heavy aerobic base
        TrainingPhase.BUILD: D(85, 12, 3),
        TrainingPhase.PEAK: D(80, 15, 5),
        TrainingPhase.TAPER: D(85, 12, 3),
        TrainingPhase.RECOVERY: D(100, 0, 0),
    },
    Methodology.PFITZINGER: {
        TrainingPhase.BASE: D(75, 20, 5),        # Threshold volume
        TrainingPhase.BUILD: D(70, 25, 5),
        TrainingPhase.PEAK: D(70, 20, 10),
        TrainingPhase.TAPER: D(75, 20, 5),
        TrainingPhase.RECOVERY: D(90, 10, 0),
    },
    Methodology.HUDSON: {
        TrainingPhase.BASE: D(80, 15, 5),
        TrainingPhase.BUILD: D(75, 20, 5),
        TrainingPhase.PEAK: D(70, 20, 10),
        TrainingPhase.TAPER: D(80, 15, 5),
        TrainingPhase.RECOVERY: D(90, 10, 0),
    },
    Methodology.CUSTOM: {
        TrainingPhase.BASE: D(80, 15, 5),
        TrainingPhase.BUILD: D(75, 20, 5),
        TrainingPhase.PEAK: D(70, 20, 10),
        TrainingPhase.TAPER: D(80, 15, 5),
        TrainingPhase.RECOVERY: D(90, 10, 0),
    },
}
del D


class ViolationSeverity(Enum):
    """How far a bucket strays from its target."""
    LOW = "low"             # <= 5 points
    MEDIUM = "medium"       # <= 10 points
    HIGH = "high"           # <= 15 points
    CRITICAL = "critical"   # > 15 points


VIOLATION_RECOMMENDATIONS = {
    'insufficient_easy': "Increase easy volume: convert some moderate sessions to easy runs",
    'excess_easy': "Add quality: replace an easy run with a structured workout",
    'insufficient_moderate': "Add steady or tempo running to reach the moderate target",
    'excess_moderate': "Reduce tempo work: keep easy days easy and hard days hard",
    'insufficient_hard': "Add a hard session (intervals or threshold) each week",
    'excess_hard': "Reduce hard-session frequency to protect recovery",
}


@dataclass
class IntensityViolation:
    """One bucket outside the tolerated band around its target."""
    violation_type: str
    bucket: str
    actual: float
    target: float
    difference: float        # actual - target
    severity: ViolationSeverity
    recommendation: str

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d['severity'] = self.severity.value
        return d


@dataclass
class IntensityReport:
    """Observed distribution compared with a target."""
    overall: IntensityDistribution
    target: IntensityDistribution
    violations: List[IntensityViolation] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    compliance: float = 0.0
    total_minutes: float = 0.0
    phase: Optional[TrainingPhase] = None
    methodology: Optional[Methodology] = None

    @property
    def is_compliant(self) -> bool:
        return not self.violations

    def to_dict(self) -> Dict[str, Any]:
        return {
            'overall': self.overall.to_dict(),
            'target': self.target.to_dict(),
            'violations': [v.to_dict() for v in self.violations],
            'recommendations': list(self.recommendations),
            'compliance': self.compliance,
            'total_minutes': self.total_minutes,
            'phase': self.phase.value if self.phase else None,
            'methodology': self.methodology.value if self.methodology else None,
        }


def target_for_phase(
    methodology: Methodology = Methodology.DANIELS,
    phase: Optional[TrainingPhase] = None
) -> IntensityDistribution:
    """Target distribution for a methodology and phase (polarized by default)."""
    if phase is None:
        return INTENSITY_MODELS['polarized']
    return PHASE_TARGETS.get(methodology, {}).get(phase, INTENSITY_MODELS['polarized'])


def classify_intensity(intensity: float, params: Optional[EngineParams] = None) -> str:
    """
    Bucket an intensity percentage.

    <= 70: easy, 70-87: moderate (tempo band), > 87: hard.
    """
    if params is None:
        params = EngineParams()

    if intensity <= params.easy_upper:
        return 'easy'
    elif intensity <= params.moderate_upper:
        return 'moderate'
    return 'hard'


def session_intensity(session: Any) -> Optional[float]:
    """
    Intensity percentage of a planned or completed session.

    Uses the explicit intensity when present, otherwise perceived effort × 10.
    """
    intensity = getattr(session, 'intensity', None)
    if intensity is not None:
        return float(intensity)
    effort = getattr(session, 'perceived_effort', None)
    if effort is not None:
        return float(effort) * 10
    return None


def _round_to_total(values: Sequence[float], total: float = 100.0, decimals: int = 1) -> List[float]:
    """Round values so they still sum exactly to total (largest remainder)."""
    scale = 10 ** decimals
    scaled = [v * scale for v in values]
    floors = [math.floor(v) for v in scaled]
    remainder = int(round(total * scale)) - sum(floors)
    order = sorted(range(len(values)), key=lambda i: scaled[i] - floors[i], reverse=True)
    for i in order[:max(remainder, 0)]:
        floors[i] += 1
    return [f / scale for f in floors]


def calculate_distribution(
    sessions: Sequence[Any],
    params: Optional[EngineParams] = None
) -> Tuple[IntensityDistribution, float]:
    """
    Time-weighted easy/moderate/hard split.

    Sessions without an intensity or with non-positive duration are skipped.

    Args:
        sessions: SessionRecord or PlannedWorkout objects
        params: Engine parameters

    Returns:
        Tuple of (distribution, total_minutes); all zeros when nothing counts
    """
    if params is None:
        params = EngineParams()

    minutes = {bucket: 0.0 for bucket in BUCKETS}
    for session in sessions:
        intensity = session_intensity(session)
        if intensity is None or session.duration <= 0:
            continue
        minutes[classify_intensity(intensity, params)] += session.duration

    total = sum(minutes.values())
    if total <= 0:
        return IntensityDistribution(0.0, 0.0, 0.0), 0.0

    shares = _round_to_total([minutes[b] / total * 100 for b in BUCKETS])
    return IntensityDistribution(*shares), total


def classify_severity(difference: float) -> ViolationSeverity:
    """Severity of a deviation in percentage points."""
    magnitude = abs(difference)
    if magnitude <= 5:
        return ViolationSeverity.LOW
    elif magnitude <= 10:
        return ViolationSeverity.MEDIUM
    elif magnitude <= 15:
        return ViolationSeverity.HIGH
    return ViolationSeverity.CRITICAL


def find_violations(
    actual: IntensityDistribution,
    target: IntensityDistribution,
    tolerance: float
) -> List[IntensityViolation]:
    """Buckets whose share deviates from target by more than tolerance."""
    violations = []
    for bucket, a, t in zip(BUCKETS, actual.as_tuple(), target.as_tuple()):
        difference = round(a - t, 1)
        if abs(difference) <= tolerance:
            continue
        violation_type = f"{'excess' if difference > 0 else 'insufficient'}_{bucket}"
        violations.append(IntensityViolation(
            violation_type=violation_type,
            bucket=bucket,
            actual=a,
            target=t,
            difference=difference,
            severity=classify_severity(difference),
            recommendation=VIOLATION_RECOMMENDATIONS[violation_type],
        ))
    return violations


def calculate_compliance(
    actual: IntensityDistribution,
    target: IntensityDistribution,
    params: Optional[EngineParams] = None
) -> float:
    """
    Similarity score: 100 - (total absolute deviation / 3), floored at 0.
    """
    if params is None:
        params = EngineParams()
    deviation = sum(abs(a - t) for a, t in zip(actual.as_tuple(), target.as_tuple()))
    return float(max(0, round(100 - deviation / params.compliance_divisor)))


def evaluate_intensity_distribution(
    sessions: Sequence[Any],
    target: Optional[IntensityDistribution] = None,
    tolerance: Optional[float] = None,
    phase: Optional[TrainingPhase] = None,
    methodology: Optional[Methodology] = None,
    params: Optional[EngineParams] = None
) -> IntensityReport:
    """
    Compare the observed intensity split with a target distribution.

    When no target is passed it is looked up from methodology and phase
    (polarized 80/5/15 when neither is given).

    Args:
        sessions: Planned or completed sessions carrying an intensity
        target: Target distribution
        tolerance: Allowed deviation per bucket in points (default 5)
        phase: Training phase, for target lookup and reporting
        methodology: Methodology, for target lookup and reporting
        params: Engine parameters

    Returns:
        IntensityReport
    """
    if params is None:
        params = EngineParams()
    if tolerance is None:
        tolerance = params.distribution_tolerance
    if target is None:
        target = target_for_phase(methodology or Methodology.DANIELS, phase)

    overall, total_minutes = calculate_distribution(sessions, params)

    if total_minutes <= 0:
        logger.debug("No timed sessions with an intensity; distribution not evaluated")
        return IntensityReport(
            overall=overall,
            target=target,
            recommendations=["Log sessions with duration and intensity to evaluate distribution"],
            compliance=0.0,
            total_minutes=0.0,
            phase=phase,
            methodology=methodology,
        )

    violations = find_violations(overall, target, tolerance)
    severity_rank = list(ViolationSeverity)
    violations.sort(key=lambda v: severity_rank.index(v.severity), reverse=True)

    recommendations = [v.recommendation for v in violations]
    for v in violations:
        if v.severity in (ViolationSeverity.HIGH, ViolationSeverity.CRITICAL):
            label = phase.value if phase else 'overall'
            recommendations.append(f"Critical: {v.violation_type} in {label} phase - adjust immediately")
    if not recommendations:
        recommendations.append("Intensity distribution looks good - maintain current balance")

    return IntensityReport(
        overall=overall,
        target=target,
        violations=violations,
        recommendations=recommendations,
        compliance=calculate_compliance(overall, target, params),
        total_minutes=total_minutes,
        phase=phase,
        methodology=methodology,
    )


if __name__ == '__main__':
    from datetime import date
    from .sessions import PlannedWorkout, WorkoutType

    print("Testing intensity distribution...")
    week = [PlannedWorkout(date(2024, 5, d), WorkoutType.EASY, 60, 70) for d in range(6, 11)]
    week.append(PlannedWorkout(date(2024, 5, 11), WorkoutType.VO2MAX, 25, 92))

    report = evaluate_intensity_distribution(week, INTENSITY_MODELS['polarized'])
    print(f"Overall: {report.overall}")
    print(f"Compliance: {report.compliance:.0f}")
    for violation in report.violations:
        print(f"  {violation.violation_type}: {violation.difference:+.1f} ({violation.severity.value})")
