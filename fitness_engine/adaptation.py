"""
Adaptation engine: turns completed-versus-planned training into bounded,
prioritized plan modifications.

Each evaluation infers the athlete's current response (overreach, plateau,
decline, good adaptation) from progress, recovery and load, then runs an
ordered rule table. Every triggered rule contributes one modification; the
output is ordered high → medium → low priority without deduplication.

Based on:
- Gabbett (2016): acute:chronic workload ratio bands
- Meeusen et al. (2013): overtraining and overreaching markers
- Seiler (2010): phase intensity distribution
"""

from dataclasses import dataclass, field, asdict, replace
from datetime import date, timedelta
from enum import Enum
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
from scipy import stats

from .config import AthleteConstraints, EngineParams
from .history import (
    AdaptationPattern,
    InMemoryPatternRepository,
    PatternRepository,
    RECOVERY_NEED,
    current_streak,
    identify_patterns,
    merge_patterns,
    record_outcome,
    select_effective_patterns,
)
from .intensity import (
    IntensityDistribution,
    IntensityReport,
    evaluate_intensity_distribution,
    target_for_phase,
)
from .metrics import (
    calculate_aerobic_index,
    calculate_lactate_threshold,
    compute_fitness_metrics,
    threshold_pace_from_velocity,
)
from .patterns import weekly_totals
from .sessions import PlannedWorkout, SessionRecord, TrainingPlan, WorkoutType
from .training_load import TrainingLoad, compute_recovery_score, compute_training_load

logger = logging.getLogger(__name__)


class ModificationType(Enum):
    """Kinds of change the plan-construction layer knows how to apply."""
    REDUCE_VOLUME = "reduce_volume"
    REDUCE_INTENSITY = "reduce_intensity"
    ADD_RECOVERY = "add_recovery"
    SUBSTITUTE_WORKOUT = "substitute_workout"
    DELAY_PROGRESSION = "delay_progression"
    INJURY_PROTOCOL = "injury_protocol"
    PHASE_ADJUSTMENT = "phase_adjustment"


class Priority(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


PRIORITY_RANK = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}


class PerformanceTrend(Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


# ═══════════════════════════════════════════════════════════════════════════════
# VALUE TYPES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class SuggestedChanges:
    """
    Typed payload of a modification. Only the fields relevant to the
    modification type are set.
    """
    volume_reduction: Optional[float] = None          # %
    intensity_reduction: Optional[float] = None       # %
    volume_increase: Optional[float] = None           # %
    additional_recovery_days: Optional[int] = None
    delay_days: Optional[int] = None
    substitute_workout_type: Optional[WorkoutType] = None
    target_distribution: Optional[IntensityDistribution] = None
    hard_share_reduction: Optional[float] = None       # % points of planned time

    def to_dict(self) -> Dict[str, Any]:
        d = {}
        for key, value in asdict(self).items():
            if value is None:
                continue
            d[key] = value
        if self.substitute_workout_type is not None:
            d['substitute_workout_type'] = self.substitute_workout_type.value
        return d


@dataclass
class PlanModification:
    """One proposed change; applying it is the plan layer's job."""
    type: ModificationType
    reason: str
    priority: Priority
    suggested_changes: SuggestedChanges = field(default_factory=SuggestedChanges)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type.value,
            'reason': self.reason,
            'priority': self.priority.value,
            'suggested_changes': self.suggested_changes.to_dict(),
        }


@dataclass
class RecoveryMetrics:
    """
    Wellness snapshot from an external tracker.

    Subjective scales run 1-10; recovery_score is 0-100 when the tracker
    supplies one.
    """
    recovery_score: Optional[float] = None
    sleep_quality: Optional[float] = None
    sleep_duration: Optional[float] = None    # Hours
    stress_level: Optional[float] = None
    muscle_soreness: Optional[float] = None
    energy_level: Optional[float] = None
    motivation: Optional[float] = None
    hrv: Optional[float] = None               # ms
    resting_hr: Optional[float] = None        # bpm
    injury_status: bool = False
    illness_status: bool = False


@dataclass
class VolumeProgress:
    trend: str = 'stable'                     # increasing / stable / decreasing
    change_pct: float = 0.0
    weekly_distances: List[float] = field(default_factory=list)


@dataclass
class ProgressData:
    """Completed-versus-planned summary for one evaluation."""
    adherence_rate: float                     # 0-100
    performance_trend: PerformanceTrend
    completed_workouts: Tuple[SessionRecord, ...]
    total_workouts: int = 0
    volume_progress: VolumeProgress = field(default_factory=VolumeProgress)
    effort_distribution: Dict[str, int] = field(default_factory=dict)
    plateau_detected: bool = False
    weeks_analyzed: int = 0
    as_of: Optional[date] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'adherence_rate': self.adherence_rate,
            'performance_trend': self.performance_trend.value,
            'completed_workouts': len(self.completed_workouts),
            'total_workouts': self.total_workouts,
            'volume_progress': asdict(self.volume_progress),
            'effort_distribution': dict(self.effort_distribution),
            'plateau_detected': self.plateau_detected,
            'weeks_analyzed': self.weeks_analyzed,
        }


@dataclass
class RecoveryAssessment:
    score: float
    status: str                               # recovered / adequate / fatigued / overreached
    recommendations: List[str] = field(default_factory=list)


@dataclass
class FatigueAssessment:
    level: str                                # low / moderate / high / severe
    acute_fatigue: float
    chronic_fatigue: int                      # Longest run of underperformed hard sessions
    load_ratio: float
    overload_days: int                        # Longest run of consecutive >150 TSS days
    volume_factor: float
    intensity_factor: float
    adjusted_workouts: List[PlannedWorkout] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    indicators: List[str] = field(default_factory=list)


@dataclass
class OverreachingAssessment:
    risk_level: str                           # low / moderate / high / critical
    current_risk: float
    projected_risk: float
    load_ratio: float
    weekly_increase: float
    mitigation_strategies: List[str] = field(default_factory=list)


@dataclass
class EvaluationContext:
    """Everything the rule table looks at for one evaluation."""
    plan: TrainingPlan
    progress: ProgressData
    recovery: Optional[RecoveryMetrics]
    recovery_score: Optional[float]
    training_load: TrainingLoad
    decline_streak: int
    planned_weekly_hours: float
    planned_peak_intensity: float
    intensity_report: Optional[IntensityReport]
    params: EngineParams

    @property
    def constraints(self) -> AthleteConstraints:
        return self.plan.constraints

    @property
    def ratio(self) -> float:
        return self.training_load.ratio

    @property
    def soreness(self) -> float:
        if self.recovery is None or self.recovery.muscle_soreness is None:
            return 0.0
        return self.recovery.muscle_soreness

    @property
    def volume_headroom(self) -> float:
        """Percent the planned week can grow before hitting max weekly hours."""
        hours = self.planned_weekly_hours
        if hours <= 0:
            return 100.0
        return (self.constraints.max_weekly_hours - hours) / hours * 100


@dataclass(frozen=True)
class AdaptationRule:
    name: str
    applies: Callable[[EvaluationContext], bool]
    respond: Callable[[EvaluationContext], PlanModification]


# ═══════════════════════════════════════════════════════════════════════════════
# RULE TABLE
# ═══════════════════════════════════════════════════════════════════════════════

def _load_very_high(ctx: EvaluationContext) -> PlanModification:
    return PlanModification(
        ModificationType.REDUCE_VOLUME,
        f"Acute:Chronic workload ratio ({ctx.ratio:.2f}) exceeds safe threshold",
        Priority.HIGH,
        SuggestedChanges(volume_reduction=30),
    )


def _load_elevated(ctx: EvaluationContext) -> PlanModification:
    return PlanModification(
        ModificationType.REDUCE_INTENSITY,
        f"Elevated training load (A:C ratio {ctx.ratio:.2f})",
        Priority.MEDIUM,
        SuggestedChanges(intensity_reduction=20),
    )


def _is_overreaching(ctx: EvaluationContext) -> bool:
    low_recovery = (ctx.recovery_score is not None
                    and ctx.recovery_score < ctx.params.overreach_recovery_score)
    return low_recovery or ctx.soreness >= ctx.params.high_soreness


def _overreach(ctx: EvaluationContext) -> PlanModification:
    score = f"{ctx.recovery_score:.0f}" if ctx.recovery_score is not None else "n/a"
    return PlanModification(
        ModificationType.REDUCE_VOLUME,
        f"Signs of overreaching (recovery {score}, soreness {ctx.soreness:.0f}/10)",
        Priority.HIGH,
        SuggestedChanges(volume_reduction=30),
    )


def _low_recovery(ctx: EvaluationContext) -> PlanModification:
    return PlanModification(
        ModificationType.ADD_RECOVERY,
        f"Low recovery score ({ctx.recovery_score:.0f}), indicating high fatigue",
        Priority.HIGH,
        SuggestedChanges(additional_recovery_days=2, intensity_reduction=30),
    )


def _injury_or_illness(ctx: EvaluationContext) -> PlanModification:
    injured = ctx.recovery.injury_status
    return PlanModification(
        ModificationType.INJURY_PROTOCOL,
        "Injury reported" if injured else "Illness reported",
        Priority.HIGH,
        SuggestedChanges(
            volume_reduction=100 if injured else 50,
            substitute_workout_type=WorkoutType.RECOVERY,
        ),
    )


def _low_adherence(ctx: EvaluationContext) -> PlanModification:
    return PlanModification(
        ModificationType.REDUCE_VOLUME,
        f"Low adherence rate ({ctx.progress.adherence_rate:.0f}%)",
        Priority.MEDIUM,
        SuggestedChanges(volume_reduction=20, delay_days=7),
    )


def _declining(ctx: EvaluationContext) -> PlanModification:
    streak = ctx.decline_streak
    escalated = streak >= ctx.params.decline_escalation_streak
    reason = "Performance trend showing decline"
    if streak > 1:
        reason += f" for {streak} consecutive evaluations"
    return PlanModification(
        ModificationType.ADD_RECOVERY,
        reason,
        Priority.HIGH if escalated else Priority.MEDIUM,
        SuggestedChanges(
            additional_recovery_days=min(streak, 3),
            intensity_reduction=15,
            delay_days=7,
        ),
    )


def _is_plateau(ctx: EvaluationContext) -> bool:
    return ctx.progress.plateau_detected


def _plateau(ctx: EvaluationContext) -> PlanModification:
    weeks = ctx.progress.weeks_analyzed
    good_recovery = (ctx.recovery_score is None
                     or ctx.recovery_score >= ctx.params.good_recovery_score)
    if good_recovery:
        return PlanModification(
            ModificationType.SUBSTITUTE_WORKOUT,
            f"Performance plateau over {weeks} weeks: vary the stimulus",
            Priority.MEDIUM,
            SuggestedChanges(substitute_workout_type=WorkoutType.VO2MAX),
        )
    return PlanModification(
        ModificationType.DELAY_PROGRESSION,
        f"Performance plateau over {weeks} weeks with incomplete recovery",
        Priority.MEDIUM,
        SuggestedChanges(delay_days=7),
    )


def _off_phase_target(ctx: EvaluationContext) -> bool:
    report = ctx.intensity_report
    return report is not None and report.total_minutes > 0 and bool(report.violations)


def _phase_distribution(ctx: EvaluationContext) -> PlanModification:
    report = ctx.intensity_report
    changes = SuggestedChanges(target_distribution=report.target)
    excess_hard = report.overall.hard - report.target.hard
    if excess_hard > ctx.params.distribution_tolerance:
        changes.hard_share_reduction = round(excess_hard, 1)
        changes.intensity_reduction = ctx.params.phase_intensity_reduction
    return PlanModification(
        ModificationType.PHASE_ADJUSTMENT,
        f"Planned intensity misses the {ctx.plan.phase.value} phase target "
        f"(compliance {report.compliance:.0f}%)",
        Priority.MEDIUM,
        changes,
    )


def _is_adapting_well(ctx: EvaluationContext) -> bool:
    p = ctx.params
    good_recovery = ctx.recovery_score is None or ctx.recovery_score >= p.good_recovery_score
    return (
        ctx.progress.adherence_rate >= p.good_adherence
        and ctx.progress.performance_trend == PerformanceTrend.IMPROVING
        and p.ratio_low <= ctx.ratio <= p.ratio_high
        and good_recovery
        and ctx.volume_headroom > 0
    )


def _progression(ctx: EvaluationContext) -> PlanModification:
    return PlanModification(
        ModificationType.PHASE_ADJUSTMENT,
        "Good adaptation: ready for progressive overload",
        Priority.LOW,
        SuggestedChanges(volume_increase=ctx.params.progression_volume_increase),
    )


ADAPTATION_RULES: Tuple[AdaptationRule, ...] = (
    AdaptationRule(
        'load_very_high',
        lambda ctx: ctx.ratio > ctx.params.ratio_very_high,
        _load_very_high,
    ),
    AdaptationRule(
        'load_elevated',
        lambda ctx: ctx.params.ratio_high < ctx.ratio <= ctx.params.ratio_very_high,
        _load_elevated,
    ),
    AdaptationRule('overreach', _is_overreaching, _overreach),
    AdaptationRule(
        'low_recovery',
        lambda ctx: (ctx.recovery_score is not None
                     and ctx.recovery_score < ctx.params.min_recovery_score),
        _low_recovery,
    ),
    AdaptationRule(
        'injury_or_illness',
        lambda ctx: ctx.recovery is not None
        and (ctx.recovery.injury_status or ctx.recovery.illness_status),
        _injury_or_illness,
    ),
    AdaptationRule(
        'low_adherence',
        lambda ctx: ctx.progress.adherence_rate < ctx.params.low_adherence,
        _low_adherence,
    ),
    AdaptationRule(
        'declining_performance',
        lambda ctx: ctx.progress.performance_trend == PerformanceTrend.DECLINING,
        _declining,
    ),
    AdaptationRule('plateau', _is_plateau, _plateau),
    AdaptationRule('phase_distribution', _off_phase_target, _phase_distribution),
    AdaptationRule('good_adaptation', _is_adapting_well, _progression),
)


def clamp_changes(
    changes: SuggestedChanges,
    constraints: AthleteConstraints,
    planned_weekly_hours: float = 0.0,
    planned_peak_intensity: float = 0.0
) -> SuggestedChanges:
    """
    Bound a payload to percentages in [0, 100] and the athlete's constraints.

    - Recovery days: at least min_recovery_days, at most 7
    - Volume increase: no more than the headroom below max_weekly_hours
    - Volume reduction: at least the cut needed to get under max_weekly_hours
    - Intensity reduction: at least the cut that brings the week's hardest
      workout down to max_intensity_percentage
    """
    def pct(value):
        return None if value is None else float(np.clip(value, 0, 100))

    volume_reduction = pct(changes.volume_reduction)
    volume_increase = pct(changes.volume_increase)
    intensity_reduction = pct(changes.intensity_reduction)

    if planned_weekly_hours > 0:
        excess = (planned_weekly_hours - constraints.max_weekly_hours) / planned_weekly_hours * 100
        if volume_reduction is not None and excess > volume_reduction:
            volume_reduction = pct(excess)
        if volume_increase is not None:
            volume_increase = float(np.clip(volume_increase, 0, max(-excess, 0.0)))

    cap = constraints.max_intensity_percentage
    if intensity_reduction is not None and planned_peak_intensity > cap:
        required = (planned_peak_intensity - cap) / planned_peak_intensity * 100
        intensity_reduction = pct(max(intensity_reduction, required))

    recovery_days = changes.additional_recovery_days
    if recovery_days is not None:
        recovery_days = int(min(max(recovery_days, constraints.min_recovery_days), 7))

    delay_days = changes.delay_days
    if delay_days is not None:
        delay_days = max(int(delay_days), 0)

    return replace(
        changes,
        volume_reduction=volume_reduction,
        intensity_reduction=intensity_reduction,
        volume_increase=volume_increase,
        hard_share_reduction=pct(changes.hard_share_reduction),
        additional_recovery_days=recovery_days,
        delay_days=delay_days,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# ENGINE
# ═══════════════════════════════════════════════════════════════════════════════

class AdaptationEngine:
    """
    Classifies training response and proposes plan modifications.

    The pattern repository is the engine's only state; pass a shared one to
    let several engines learn from the same history.
    """

    def __init__(
        self,
        repository: Optional[PatternRepository] = None,
        params: Optional[EngineParams] = None
    ):
        if repository is None:
            repository = InMemoryPatternRepository()
        if params is None:
            params = EngineParams()
        self.repository = repository
        self.params = params
        self.rules = ADAPTATION_RULES

    # ─── Progress ──────────────────────────────────────────────────────────────

    def analyze_progress(
        self,
        completed: Sequence[SessionRecord],
        planned: Sequence[PlannedWorkout],
        as_of: Optional[date] = None
    ) -> ProgressData:
        """
        Summarize completed training against the plan.

        Args:
            completed: Completed sessions
            planned: Planned workouts
            as_of: Evaluation date; planned workouts after it are not yet due
                (today by default)

        Returns:
            ProgressData
        """
        if as_of is None:
            as_of = date.today()

        ordered = tuple(sorted(completed, key=lambda s: s.date))
        due = [w for w in planned if w.date <= as_of]
        if due:
            adherence = min(100.0, len(ordered) / len(due) * 100)
        else:
            adherence = 100.0

        trend = self.performance_trend(ordered)
        weekly = weekly_totals(ordered, self.params)
        plateau = trend == PerformanceTrend.STABLE and self.detect_plateau(ordered)

        return ProgressData(
            adherence_rate=round(adherence, 1),
            performance_trend=trend,
            completed_workouts=ordered,
            total_workouts=len(planned),
            volume_progress=self.volume_progress(ordered),
            effort_distribution=self.effort_distribution(ordered),
            plateau_detected=plateau,
            weeks_analyzed=len(weekly),
            as_of=as_of,
        )

    def performance_trend(self, sessions: Sequence[SessionRecord]) -> PerformanceTrend:
        """
        Compare effort-adjusted pace of the older and the recent half.

        relative pace = pace / (effort / 10); lower is better. A change of
        more than 2 % either way counts as a trend.
        """
        p = self.params
        if len(sessions) < p.trend_min_sessions:
            return PerformanceTrend.STABLE

        ordered = sorted(sessions, key=lambda s: s.date)
        mid = len(ordered) // 2

        def relative_pace(half):
            values = [
                s.pace / (s.perceived_effort / 10)
                for s in half
                if s.pace and s.perceived_effort
            ]
            return float(np.mean(values)) if values else None

        older = relative_pace(ordered[:mid])
        recent = relative_pace(ordered[mid:])
        if not older or recent is None:
            return PerformanceTrend.STABLE

        improvement = (older - recent) / older * 100
        if improvement > p.trend_change_pct:
            return PerformanceTrend.IMPROVING
        elif improvement < -p.trend_change_pct:
            return PerformanceTrend.DECLINING
        return PerformanceTrend.STABLE

    def volume_progress(self, sessions: Sequence[SessionRecord]) -> VolumeProgress:
        """Weekly distance of the last third of weeks versus the first third."""
        weekly = weekly_totals(sessions, self.params)
        distances = [float(d) for d in weekly['distance']]
        if len(distances) < 3:
            return VolumeProgress(weekly_distances=distances)

        third = len(distances) // 3
        first = float(np.mean(distances[:third]))
        last = float(np.mean(distances[-third:]))
        if first <= 0:
            return VolumeProgress(weekly_distances=distances)

        change = last / first
        trend = 'stable'
        if change > 1.1:
            trend = 'increasing'
        elif change < 0.9:
            trend = 'decreasing'
        return VolumeProgress(trend, round((change - 1) * 100, 1), distances)

    @staticmethod
    def effort_distribution(sessions: Sequence[SessionRecord]) -> Dict[str, int]:
        """Session counts by perceived effort (missing effort counts as 5)."""
        counts = {'easy': 0, 'moderate': 0, 'hard': 0, 'very_hard': 0}
        for s in sessions:
            effort = s.perceived_effort or 5
            if effort <= 3:
                counts['easy'] += 1
            elif effort <= 6:
                counts['moderate'] += 1
            elif effort <= 8:
                counts['hard'] += 1
            else:
                counts['very_hard'] += 1
        return counts

    def detect_plateau(self, sessions: Sequence[SessionRecord]) -> bool:
        """
        True when weekly mean pace and heart rate have both stopped moving.

        Needs at least 3 weeks. A series is flat when its least-squares slope
        is within ±1 % of its mean per week; heart rate is only checked when
        enough weeks carry it.
        """
        p = self.params
        weekly = weekly_totals(sessions, p)
        if len(weekly) < p.plateau_min_weeks:
            return False

        def is_flat(series) -> bool:
            values = series.dropna().to_numpy(dtype=float)
            if len(values) < p.plateau_min_weeks:
                return True
            mean = float(np.mean(values))
            if mean == 0:
                return True
            slope = stats.linregress(np.arange(len(values)), values).slope
            return abs(slope) <= abs(mean) * p.plateau_slope_pct / 100

        return is_flat(weekly['pace']) and is_flat(weekly['heart_rate'])

    # ─── Recovery ──────────────────────────────────────────────────────────────

    @staticmethod
    def calculate_overall_recovery(recovery: RecoveryMetrics) -> float:
        """
        Composite 0-100 recovery from subjective and physiological markers.

        70 + (sleep quality - 5) × 4 - (soreness - 5) × 4 + (energy - 5) × 4,
        then HRV (> 60: +10, > 50: +5, < 40: -10) and resting HR (< 50: +10,
        < 60: +5, > 70: -10). Missing markers contribute nothing.
        """
        score = 70.0
        if recovery.sleep_quality:
            score += (recovery.sleep_quality - 5) * 4
        if recovery.muscle_soreness:
            score -= (recovery.muscle_soreness - 5) * 4
        if recovery.energy_level:
            score += (recovery.energy_level - 5) * 4

        if recovery.hrv:
            if recovery.hrv > 60:
                score += 10
            elif recovery.hrv > 50:
                score += 5
            elif recovery.hrv < 40:
                score -= 10

        if recovery.resting_hr:
            if recovery.resting_hr < 50:
                score += 10
            elif recovery.resting_hr < 60:
                score += 5
            elif recovery.resting_hr > 70:
                score -= 10

        return float(np.clip(score, 0, 100))

    def effective_recovery_score(self, recovery: Optional[RecoveryMetrics]) -> Optional[float]:
        """The tracker's own score when given, otherwise the composite."""
        if recovery is None:
            return None
        if recovery.recovery_score is not None:
            return float(recovery.recovery_score)
        return self.calculate_overall_recovery(recovery)

    def assess_recovery_status(
        self,
        completed: Sequence[SessionRecord],
        recovery: Optional[RecoveryMetrics] = None
    ) -> RecoveryAssessment:
        """Recovery score, status band and what to do about it."""
        if recovery is not None:
            score = self.effective_recovery_score(recovery)
        else:
            score = compute_recovery_score(completed, params=self.params)

        if score >= 80:
            status = 'recovered'
        elif score >= 60:
            status = 'adequate'
        elif score >= 40:
            status = 'fatigued'
        else:
            status = 'overreached'

        recommendations = []
        if status == 'overreached':
            recommendations += [
                "Take 2-3 days of complete rest",
                "Focus on sleep quality (8+ hours)",
                "Consider massage or light stretching",
            ]
        elif status == 'fatigued':
            recommendations += [
                "Reduce training intensity by 30%",
                "Add an extra recovery day this week",
                "Prioritize hydration and nutrition",
            ]

        if recovery is not None:
            if recovery.sleep_quality is not None and recovery.sleep_quality < 6:
                recommendations.append("Improve sleep hygiene - aim for consistent bedtime")
            if recovery.muscle_soreness is not None and recovery.muscle_soreness > 7:
                recommendations.append("Consider foam rolling and dynamic stretching")
            if recovery.hrv is not None and recovery.hrv < 40:
                recommendations.append("HRV is low - reduce stress and training load")

        return RecoveryAssessment(score, status, recommendations)

    # ─── Load ──────────────────────────────────────────────────────────────────

    def training_load_for(self, sessions: Sequence[SessionRecord]) -> TrainingLoad:
        """Training load using the threshold pace implied by the sessions."""
        aerobic_index = calculate_aerobic_index(sessions, self.params)
        threshold_pace = threshold_pace_from_velocity(
            calculate_lactate_threshold(aerobic_index, self.params)
        )
        return compute_training_load(sessions, threshold_pace, self.params)

    def detect_fatigue(
        self,
        completed: Sequence[SessionRecord],
        upcoming: Sequence[PlannedWorkout],
        as_of: Optional[date] = None
    ) -> FatigueAssessment:
        """
        Grade fatigue and scale upcoming workouts accordingly.

        Signals:
            - Acute: sessions in the last 3 days that fell short of plan,
              were very hard (effort >= 8) or mention tiredness
            - Chronic: longest run of hard sessions (effort >= 7) completed
              below 85 % of plan
            - Overload: longest run of consecutive days above 150 TSS
            - Load ratio

        Recovery workouts and anything on or before as_of are left alone.
        """
        p = self.params
        ordered = sorted(completed, key=lambda s: s.date)
        if as_of is None:
            as_of = ordered[-1].date if ordered else date.today()

        acute = 0.0
        for s in ordered:
            if not (as_of - timedelta(days=3) < s.date <= as_of):
                continue
            if s.completion_rate < 0.9:
                acute += 10
            if s.perceived_effort and s.perceived_effort >= 8:
                acute += s.perceived_effort * 2
            notes = s.notes.lower()
            if 'tired' in notes or 'fatigue' in notes:
                acute += 15
        acute = min(acute, 100.0)

        chronic = run = 0
        for s in ordered:
            if s.perceived_effort and s.perceived_effort >= 7 and s.completion_rate < 0.85:
                run += 1
                chronic = max(chronic, run)
            else:
                run = 0

        daily_tss: Dict[date, float] = {}
        for s in ordered:
            effort = s.perceived_effort or 5
            daily_tss[s.date] = daily_tss.get(s.date, 0.0) + s.duration * (effort / 10) ** 2 * 100 / 60
        overload = run = 0
        previous = None
        for day in sorted(daily_tss):
            if daily_tss[day] > p.overreaching_tss:
                run = run + 1 if previous is not None and day - previous == timedelta(days=1) else 1
                previous = day
                overload = max(overload, run)
            else:
                run, previous = 0, None

        ratio = self.training_load_for(ordered).ratio

        if chronic >= p.chronic_fatigue_days or overload >= 3:
            level = 'severe'
        elif acute > p.high_fatigue_score or ratio > p.ratio_very_high:
            level = 'high'
        elif acute > p.moderate_fatigue_score or ratio > p.ratio_high:
            level = 'moderate'
        else:
            level = 'low'

        indicators = []
        if chronic >= p.chronic_fatigue_days:
            indicators.append('persistent_underperformance')
        elif chronic >= 3:
            indicators.append('emerging_fatigue')
        if overload >= 3:
            indicators.append('consecutive_overload')

        warnings = {
            'severe': ["Severe fatigue detected - immediate rest recommended"],
            'high': ["High fatigue levels - reduce training intensity"],
            'moderate': ["Moderate fatigue - monitor closely"],
            'low': [],
        }[level]
        if level == 'severe':
            logger.warning("Severe fatigue: chronic=%d overload_days=%d", chronic, overload)

        volume_factor, intensity_factor = p.fatigue_factors[level]
        adjusted = []
        for w in sorted(upcoming, key=lambda w: w.date):
            if level == 'low' or w.date <= as_of or w.workout_type == WorkoutType.RECOVERY:
                adjusted.append(w)
                continue
            adjusted.append(replace(
                w,
                duration=round(w.duration * volume_factor, 1),
                intensity=round(w.intensity * intensity_factor, 1),
                distance=None if w.distance is None else round(w.distance * volume_factor, 2),
                estimated_tss=(None if w.estimated_tss is None
                               else round(w.estimated_tss * volume_factor * intensity_factor ** 2, 1)),
            ))

        return FatigueAssessment(
            level=level,
            acute_fatigue=acute,
            chronic_fatigue=chronic,
            load_ratio=ratio,
            overload_days=overload,
            volume_factor=volume_factor,
            intensity_factor=intensity_factor,
            adjusted_workouts=adjusted,
            warnings=list(warnings),
            indicators=indicators,
        )

    def assess_overreaching_risk(
        self,
        completed: Sequence[SessionRecord],
        planned: Sequence[PlannedWorkout],
        as_of: Optional[date] = None
    ) -> OverreachingAssessment:
        """
        Current injury risk plus the risk the next 7 planned days would bring.

        projected ratio = ratio + planned TSS (next 7 days, 50 per workout
        without an estimate) / 350
        """
        ordered = sorted(completed, key=lambda s: s.date)
        if as_of is None:
            as_of = ordered[-1].date if ordered else date.today()

        metrics = compute_fitness_metrics(ordered, as_of=as_of, params=self.params)
        ratio = metrics.training_load.ratio

        horizon = as_of + timedelta(days=7)
        planned_tss = sum(
            w.estimated_tss if w.estimated_tss is not None else 50
            for w in planned
            if as_of < w.date <= horizon
        )
        projected_ratio = ratio + planned_tss / 350

        projected = 0.0
        if projected_ratio > 1.5:
            projected += 40
        elif projected_ratio > 1.3:
            projected += 25
        elif projected_ratio < 0.8:
            projected += 20
        hard_recent = [
            s for s in ordered
            if as_of - timedelta(days=7) < s.date <= as_of
            and s.perceived_effort and s.perceived_effort >= 8
        ]
        projected = min(projected + 10 * len(hard_recent), 100.0)

        current = metrics.injury_risk
        if current >= 80 or projected >= 90:
            level = 'critical'
        elif current >= 60 or projected >= 70:
            level = 'high'
        elif current >= 40 or projected >= 50:
            level = 'moderate'
        else:
            level = 'low'

        strategies = []
        if level in ('critical', 'high'):
            strategies += [
                "Immediately reduce training volume by 30-40%",
                "Replace high-intensity workouts with easy recovery runs",
                "Schedule professional assessment if pain persists",
            ]
        if ratio > self.params.ratio_high:
            strategies += [
                "Gradually reduce training load over 2 weeks",
                "Focus on maintaining fitness rather than building",
            ]
        if metrics.weekly_increase > 10:
            strategies += [
                "Limit weekly mileage increases to 10%",
                "Add recovery weeks every 3-4 weeks",
            ]
        if metrics.recovery_score < self.params.min_recovery_score:
            strategies += [
                "Prioritize sleep and nutrition",
                "Consider cross-training activities",
                "Monitor morning heart rate variability",
            ]

        if level == 'critical':
            logger.warning("Critical overreaching risk: current=%.0f projected=%.0f",
                           current, projected)

        return OverreachingAssessment(
            risk_level=level,
            current_risk=current,
            projected_risk=projected,
            load_ratio=ratio,
            weekly_increase=round(metrics.weekly_increase, 1),
            mitigation_strategies=strategies,
        )

    # ─── Modifications ─────────────────────────────────────────────────────────

    def needs_adaptation(
        self,
        progress: ProgressData,
        recovery: Optional[RecoveryMetrics] = None,
        training_load: Optional[TrainingLoad] = None
    ) -> Tuple[bool, List[str]]:
        """
        Whether the plan needs changing, with the reasons.

        Returns:
            Tuple of (needs_adaptation, reasons)
        """
        p = self.params
        if training_load is None:
            training_load = self.training_load_for(progress.completed_workouts)

        reasons = []
        ratio = training_load.ratio
        if ratio > p.ratio_high:
            reasons.append(f"Acute:Chronic workload ratio ({ratio:.2f}) exceeds safe threshold")
        elif ratio < p.ratio_low and progress.completed_workouts:
            reasons.append(f"Training load is low (A:C ratio {ratio:.2f})")

        if recovery is not None:
            score = self.effective_recovery_score(recovery)
            if score < p.min_recovery_score:
                reasons.append(f"Low recovery score ({score:.0f}), indicating high fatigue")
            if recovery.injury_status:
                reasons.append("Injury reported")
            if recovery.illness_status:
                reasons.append("Illness reported")

        if progress.adherence_rate < p.low_adherence:
            reasons.append(f"Low adherence rate ({progress.adherence_rate:.0f}%)")

        if progress.performance_trend == PerformanceTrend.DECLINING:
            reasons.append("Performance trend showing decline")

        if progress.plateau_detected:
            reasons.append("Performance has plateaued")

        return bool(reasons), reasons

    def _planned_week(self, plan: TrainingPlan, as_of: Optional[date]) -> List[PlannedWorkout]:
        """Workouts in the first plan week after as_of (the earliest week if none)."""
        if not plan.workouts:
            return []
        upcoming = [w.date for w in plan.workouts if as_of is None or w.date > as_of]
        first = min(upcoming) if upcoming else min(w.date for w in plan.workouts)
        week_start = first - timedelta(days=first.weekday())
        week_end = week_start + timedelta(days=7)
        return [w for w in plan.workouts if week_start <= w.date < week_end]

    def build_context(
        self,
        plan: TrainingPlan,
        progress: ProgressData,
        recovery: Optional[RecoveryMetrics] = None,
        training_load: Optional[TrainingLoad] = None,
        history: Sequence[AdaptationPattern] = ()
    ) -> EvaluationContext:
        """Gather the signals the rule table evaluates."""
        if training_load is None:
            training_load = self.training_load_for(progress.completed_workouts)

        decline_streak = 0
        if progress.performance_trend == PerformanceTrend.DECLINING:
            decline_streak = current_streak(history, RECOVERY_NEED) + 1

        week = self._planned_week(plan, progress.as_of)
        report = None
        if plan.workouts:
            report = evaluate_intensity_distribution(
                plan.workouts,
                target=target_for_phase(plan.methodology, plan.phase),
                phase=plan.phase,
                methodology=plan.methodology,
                params=self.params,
            )

        return EvaluationContext(
            plan=plan,
            progress=progress,
            recovery=recovery,
            recovery_score=self.effective_recovery_score(recovery),
            training_load=training_load,
            decline_streak=decline_streak,
            planned_weekly_hours=sum(w.duration for w in week) / 60.0,
            planned_peak_intensity=max((w.intensity for w in week), default=0.0),
            intensity_report=report,
            params=self.params,
        )

    def evaluate_rules(self, ctx: EvaluationContext) -> List[PlanModification]:
        """Run the rule table and return bounded modifications, high priority first."""
        modifications = []
        for rule in self.rules:
            if not rule.applies(ctx):
                continue
            modification = rule.respond(ctx)
            modification.suggested_changes = clamp_changes(
                modification.suggested_changes, ctx.constraints,
                ctx.planned_weekly_hours, ctx.planned_peak_intensity,
            )
            logger.debug("Rule %s triggered: %s", rule.name, modification.reason)
            modifications.append(modification)

        modifications.sort(key=lambda m: PRIORITY_RANK[m.priority])
        return modifications

    def suggest_modifications(
        self,
        plan: TrainingPlan,
        progress: ProgressData,
        recovery: Optional[RecoveryMetrics] = None,
        training_load: Optional[TrainingLoad] = None
    ) -> List[PlanModification]:
        """
        Propose plan modifications and learn from this evaluation.

        Runs as one repository transaction for the plan's athlete: the
        pattern history is read, the rules evaluated, and the observed
        patterns merged back before the lock is released.

        Args:
            plan: Plan being adapted (not modified)
            progress: Output of analyze_progress
            recovery: Optional wellness snapshot
            training_load: Precomputed load; derived from the completed
                workouts when omitted

        Returns:
            Modifications ordered high → medium → low priority
        """
        with self.repository.transaction(plan.athlete_id) as history:
            ctx = self.build_context(plan, progress, recovery, training_load, history)
            modifications = self.evaluate_rules(ctx)

            observed = identify_patterns(
                progress.adherence_rate,
                progress.performance_trend.value,
                [m.type.value for m in modifications],
                plateau_detected=progress.plateau_detected,
                observed_on=progress.as_of,
            )
            history[:] = merge_patterns(history, observed)

        logger.info("Athlete %s: %d modification(s) suggested",
                    plan.athlete_id, len(modifications))
        return modifications

    # ─── Pattern history ───────────────────────────────────────────────────────

    def record_outcome(
        self,
        athlete_id: str,
        pattern_id: str,
        performance: float,
        adherence: float,
        recovery: float,
        satisfaction: float
    ) -> Optional[AdaptationPattern]:
        """Feed an observed outcome back into one of the athlete's patterns."""
        updated = []

        def apply(patterns):
            result = []
            for pattern in patterns:
                if pattern.pattern_id == pattern_id:
                    pattern = record_outcome(
                        pattern, performance, adherence, recovery, satisfaction, self.params
                    )
                    updated.append(pattern)
                result.append(pattern)
            return result

        self.repository.update(athlete_id, apply)
        return updated[0] if updated else None

    def effective_patterns(self, athlete_id: str) -> List[AdaptationPattern]:
        return select_effective_patterns(self.repository.get(athlete_id), self.params)


if __name__ == '__main__':
    print("Testing adaptation engine...")

    start = date(2024, 4, 1)
    completed = [
        SessionRecord(start + timedelta(days=2 * i), 8.0, 44.0 + i,
                      average_pace=(44.0 + i) / 8, perceived_effort=6)
        for i in range(12)
    ]
    planned = [
        PlannedWorkout(start + timedelta(days=2 * i), WorkoutType.EASY, 45, 65)
        for i in range(16)
    ]

    engine = AdaptationEngine()
    progress = engine.analyze_progress(completed, planned, as_of=start + timedelta(days=23))
    print(f"Adherence: {progress.adherence_rate:.0f}%  trend: {progress.performance_trend.value}")

    plan = TrainingPlan('demo', workouts=planned)
    recovery = RecoveryMetrics(recovery_score=25, muscle_soreness=9)
    for mod in engine.suggest_modifications(plan, progress, recovery):
        print(f"  [{mod.priority.value}] {mod.type.value}: {mod.reason}")
