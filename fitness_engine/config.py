"""
Engine parameters: every numeric assumption used by the metric, load, zone,
intensity and adaptation components.

Values are configurable defaults rather than physiological law. Band
boundaries come from:
- Daniels & Gilbert (1979): oxygen cost and drop-dead regressions
- Gabbett (2016): acute:chronic workload ratio bands
- Seiler (2010): easy/moderate/hard intensity distribution
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Tuple


@dataclass
class EngineParams:
    """
    Tunable parameters shared by all engine components.

    Percentages are expressed on a 0-100 scale unless noted otherwise.
    """

    # ═══════════════════════════════════════════════════════════════════════════
    # FITNESS DEFAULTS (returned when the session history cannot support a value)
    # ═══════════════════════════════════════════════════════════════════════════

    default_aerobic_index: float = 35.0
    default_critical_speed: float = 10.0     # km/h
    default_running_economy: float = 200.0

    race_effort_threshold: int = 9           # Effort >= this counts as a race
    time_trial_effort_threshold: int = 8     # Effort >= this for critical speed
    min_effort_distance_km: float = 3.0
    economy_max_effort: int = 6
    economy_min_duration: float = 20.0       # Minutes
    economy_resting_hr: float = 60.0
    economy_max_hr: float = 190.0
    economy_vo2_scale: float = 50.0

    threshold_fraction: float = 0.88         # Threshold runs at 88% of VO2max
    threshold_velocity_divisor: float = 3.5

    # ═══════════════════════════════════════════════════════════════════════════
    # TRAINING LOAD WINDOWS (session-by-session EWMA)
    # ═══════════════════════════════════════════════════════════════════════════

    acute_window: float = 7.0                # decay = exp(-1/7)
    chronic_window: float = 28.0             # decay = exp(-1/28)
    trend_lookback: int = 7                  # Sessions back for trend comparison
    trend_increase_factor: float = 1.1
    trend_decrease_factor: float = 0.9

    # ═══════════════════════════════════════════════════════════════════════════
    # LOAD RATIO BANDS
    # ═══════════════════════════════════════════════════════════════════════════

    ratio_low: float = 0.8                   # Below this: under-training
    ratio_high: float = 1.3                  # Above this: monitor fatigue
    ratio_very_high: float = 1.5             # Above this: overtraining risk

    # ═══════════════════════════════════════════════════════════════════════════
    # RECOVERY SCORE
    # ═══════════════════════════════════════════════════════════════════════════

    recovery_baseline: float = 70.0
    recovery_window_days: int = 7
    hard_session_effort: int = 7
    hard_session_penalty: float = 5.0
    hrv_high: float = 60.0
    hrv_low: float = 40.0
    resting_hr_low: float = 50.0
    resting_hr_high: float = 65.0
    recovery_marker_adjustment: float = 10.0

    # ═══════════════════════════════════════════════════════════════════════════
    # INJURY RISK (additive points, clamped to 100)
    # ═══════════════════════════════════════════════════════════════════════════

    risk_points_optimal: float = 10.0
    risk_points_undertraining: float = 20.0
    risk_points_elevated: float = 25.0
    risk_points_high: float = 40.0
    # (growth threshold %, points), checked from largest to smallest
    growth_bands: Tuple[Tuple[float, float], ...] = ((20.0, 30.0), (10.0, 20.0), (5.0, 10.0))
    recovery_risk_weight: float = 0.3

    # ═══════════════════════════════════════════════════════════════════════════
    # WEEKLY PATTERNS
    # ═══════════════════════════════════════════════════════════════════════════

    long_run_km: float = 15.0
    week_anchor: str = 'W-SUN'               # Weekly periods end Sunday, start Monday

    # ═══════════════════════════════════════════════════════════════════════════
    # INTENSITY DISTRIBUTION
    # ═══════════════════════════════════════════════════════════════════════════

    easy_upper: float = 70.0                 # <= this: easy
    moderate_upper: float = 87.0             # <= this: moderate, above: hard
    distribution_tolerance: float = 5.0
    compliance_divisor: float = 3.0

    # ═══════════════════════════════════════════════════════════════════════════
    # ADAPTATION THRESHOLDS
    # ═══════════════════════════════════════════════════════════════════════════

    min_recovery_score: float = 60.0
    overreach_recovery_score: float = 40.0
    high_soreness: float = 8.0
    low_adherence: float = 70.0              # Percent
    good_adherence: float = 90.0
    good_recovery_score: float = 70.0
    trend_min_sessions: int = 5
    trend_change_pct: float = 2.0
    plateau_min_weeks: int = 3
    plateau_slope_pct: float = 1.0           # Weekly change within +/- this % of mean
    decline_escalation_streak: int = 3
    progression_volume_increase: float = 10.0
    phase_intensity_reduction: float = 10.0  # % cut when a plan is too hard for its phase

    chronic_fatigue_days: int = 5
    overreaching_tss: float = 150.0
    high_fatigue_score: float = 70.0
    moderate_fatigue_score: float = 50.0
    fatigue_factors: Dict[str, Tuple[float, float]] = field(default_factory=lambda: {
        'low': (1.0, 1.0),                   # (volume, intensity)
        'moderate': (0.9, 0.95),
        'high': (0.7, 0.85),
        'severe': (0.5, 0.7),
    })

    # ═══════════════════════════════════════════════════════════════════════════
    # PATTERN LEARNING
    # ═══════════════════════════════════════════════════════════════════════════

    effectiveness_alpha: float = 0.3
    outcome_weights: Dict[str, float] = field(default_factory=lambda: {
        'performance': 0.4,
        'adherence': 0.3,
        'recovery': 0.2,
        'satisfaction': 0.1,
    })
    effective_pattern_score: float = 60.0
    effective_pattern_frequency: int = 3
    preferred_pattern_score: float = 75.0
    avoided_pattern_score: float = 40.0
    max_effective_patterns: int = 10

    def to_dict(self) -> Dict[str, Any]:
        """Convert parameters to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'EngineParams':
        """Create parameters from dictionary."""
        d = dict(d)
        if 'growth_bands' in d:
            d['growth_bands'] = tuple(tuple(band) for band in d['growth_bands'])
        if 'fatigue_factors' in d:
            d['fatigue_factors'] = {k: tuple(v) for k, v in d['fatigue_factors'].items()}
        return cls(**d)

    def validate(self) -> Tuple[bool, str]:
        """Validate parameter constraints."""
        issues = []

        if not (0 < self.ratio_low < self.ratio_high < self.ratio_very_high):
            issues.append("Load ratio bands must be in ascending order")

        if not (0 < self.acute_window < self.chronic_window):
            issues.append("Acute window must be shorter than chronic window")

        if not (0 < self.easy_upper < self.moderate_upper < 100):
            issues.append("Intensity breakpoints: 0 < easy < moderate < 100")

        thresholds = [band[0] for band in self.growth_bands]
        if thresholds != sorted(thresholds, reverse=True):
            issues.append("Growth bands must be ordered from largest to smallest")

        if not (0 <= self.overreach_recovery_score <= self.min_recovery_score <= 100):
            issues.append("Recovery thresholds: 0 <= overreach <= min <= 100")

        if not (0 < self.effectiveness_alpha <= 1):
            issues.append("Effectiveness alpha must be in (0, 1]")

        if abs(sum(self.outcome_weights.values()) - 1.0) > 1e-6:
            issues.append("Outcome weights must sum to 1")

        if self.distribution_tolerance < 0:
            issues.append("Distribution tolerance must be non-negative")

        if issues:
            return False, "; ".join(issues)
        return True, "Valid"


@dataclass
class AthleteConstraints:
    """Hard limits a plan modification must respect."""
    max_weekly_hours: float = 10.0
    min_recovery_days: int = 1
    max_intensity_percentage: float = 95.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
