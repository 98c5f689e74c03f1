"""
Fitness metrics and adaptive load engine for runners.

This package turns a session log into:
- Fitness metrics (aerobic index, critical speed, economy, threshold pace)
- Training load, recovery and injury risk
- Weekly training patterns
- Personalized zones and training paces
- Intensity distribution reports
- Prioritized, bounded plan modifications
"""

# Configuration and errors
from .config import EngineParams, AthleteConstraints
from .errors import InvalidMetricRange, InvalidAerobicIndex

# Session and plan records
from .sessions import (
    SessionRecord,
    PlannedWorkout,
    TrainingPlan,
    WorkoutType,
    TrainingPhase,
    Methodology,
)

# Fitness metrics
from .metrics import (
    FitnessMetrics,
    compute_fitness_metrics,
    estimate_aerobic_index,
    calculate_aerobic_index,
    calculate_critical_speed,
    estimate_running_economy,
    calculate_lactate_threshold,
)

# Training load, recovery and injury risk
from .training_load import (
    TrainingLoad,
    LoadTrend,
    calculate_tss,
    calculate_load_series,
    compute_training_load,
    compute_recovery_score,
    compute_injury_risk,
    calculate_weekly_increase,
)

# Weekly patterns
from .patterns import WeeklyPatterns, analyze_weekly_patterns, weekly_totals

# Zones and paces
from .zones import (
    TrainingZone,
    TrainingPaces,
    ZONE_LADDER,
    personalize_zones,
    zone_for_intensity,
    derive_training_paces,
    format_pace,
)

# Intensity distribution
from .intensity import (
    IntensityDistribution,
    IntensityReport,
    IntensityViolation,
    ViolationSeverity,
    INTENSITY_MODELS,
    PHASE_TARGETS,
    target_for_phase,
    evaluate_intensity_distribution,
)

# Pattern history
from .history import (
    AdaptationPattern,
    PatternRepository,
    InMemoryPatternRepository,
)

# Adaptation engine
from .adaptation import (
    AdaptationEngine,
    AdaptationRule,
    ADAPTATION_RULES,
    ModificationType,
    Priority,
    PerformanceTrend,
    PlanModification,
    SuggestedChanges,
    RecoveryMetrics,
    ProgressData,
    FatigueAssessment,
    RecoveryAssessment,
    OverreachingAssessment,
)

__all__ = [
    # Config
    'EngineParams',
    'AthleteConstraints',
    'InvalidMetricRange',
    'InvalidAerobicIndex',
    # Sessions
    'SessionRecord',
    'PlannedWorkout',
    'TrainingPlan',
    'WorkoutType',
    'TrainingPhase',
    'Methodology',
    # Metrics
    'FitnessMetrics',
    'compute_fitness_metrics',
    'estimate_aerobic_index',
    'calculate_aerobic_index',
    'calculate_critical_speed',
    'estimate_running_economy',
    'calculate_lactate_threshold',
    # Load
    'TrainingLoad',
    'LoadTrend',
    'calculate_tss',
    'calculate_load_series',
    'compute_training_load',
    'compute_recovery_score',
    'compute_injury_risk',
    'calculate_weekly_increase',
    # Patterns
    'WeeklyPatterns',
    'analyze_weekly_patterns',
    'weekly_totals',
    # Zones
    'TrainingZone',
    'TrainingPaces',
    'ZONE_LADDER',
    'personalize_zones',
    'zone_for_intensity',
    'derive_training_paces',
    'format_pace',
    # Intensity
    'IntensityDistribution',
    'IntensityReport',
    'IntensityViolation',
    'ViolationSeverity',
    'INTENSITY_MODELS',
    'PHASE_TARGETS',
    'target_for_phase',
    'evaluate_intensity_distribution',
    # History
    'AdaptationPattern',
    'PatternRepository',
    'InMemoryPatternRepository',
    # Adaptation
    'AdaptationEngine',
    'AdaptationRule',
    'ADAPTATION_RULES',
    'ModificationType',
    'Priority',
    'PerformanceTrend',
    'PlanModification',
    'SuggestedChanges',
    'RecoveryMetrics',
    'ProgressData',
    'FatigueAssessment',
    'RecoveryAssessment',
    'OverreachingAssessment',
]
