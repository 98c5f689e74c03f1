"""
Training zones and pace derivation.

The canonical ladder has seven tiers from Recovery to Neuromuscular. Heart-rate
ranges are percentages of maximum heart rate; pace ranges are percentages of
threshold pace. Personalization only rescales the bounds, never the tier count
or order.

Based on:
- Daniels, J. (2014). Daniels' Running Formula, 3rd ed.
- Seiler (2010): intensity zone boundaries
"""

from dataclasses import dataclass, asdict, replace
from typing import Any, Dict, List, Tuple

from .errors import InvalidAerobicIndex


@dataclass(frozen=True)
class TrainingZone:
    """One effort tier with its heart-rate and pace bounds."""
    name: str
    rpe: int
    heart_rate_range: Tuple[float, float]   # % max HR, or bpm once personalized
    pace_range: Tuple[float, float]         # % threshold pace, or min/km
    description: str
    purpose: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


RECOVERY = TrainingZone(
    'Recovery', 1, (50, 60), (0, 75),
    'Very easy effort, conversational',
    'Active recovery, promote blood flow',
)
EASY = TrainingZone(
    'Easy', 2, (60, 70), (75, 85),
    'Comfortable, conversational pace',
    'Build aerobic base, improve fat oxidation',
)
STEADY = TrainingZone(
    'Steady', 3, (70, 80), (85, 90),
    'Moderate effort, slightly harder breathing',
    'Aerobic development, mitochondrial density',
)
TEMPO = TrainingZone(
    'Tempo', 4, (80, 87), (90, 95),
    'Comfortably hard, controlled discomfort',
    'Improve lactate clearance, mental toughness',
)
THRESHOLD = TrainingZone(
    'Threshold', 5, (87, 92), (95, 100),
    'Hard effort, sustainable for ~1 hour',
    'Increase lactate threshold, improve efficiency',
)
VO2_MAX = TrainingZone(
    'VO2 Max', 6, (92, 97), (105, 115),
    'Very hard, heavy breathing',
    'Maximize oxygen uptake, increase power',
)
NEUROMUSCULAR = TrainingZone(
    'Neuromuscular', 7, (97, 100), (115, 130),
    'Maximum effort, short duration',
    'Improve speed, power, and running economy',
)

ZONE_LADDER: Tuple[TrainingZone, ...] = (
    RECOVERY, EASY, STEADY, TEMPO, THRESHOLD, VO2_MAX, NEUROMUSCULAR,
)

# Upper bound (exclusive) of intensity % for each tier; the last tier is open
INTENSITY_BREAKPOINTS: Tuple[float, ...] = (60, 70, 80, 87, 92, 97)

# Fraction of VO2max pace each training pace is run at
PACE_FRACTIONS: Dict[str, float] = {
    'easy': 0.70,
    'marathon': 0.84,
    'threshold': 0.88,
    'interval': 0.98,
    'repetition': 1.05,
}

MIN_AEROBIC_INDEX = 30
MAX_AEROBIC_INDEX = 85


@dataclass(frozen=True)
class TrainingPaces:
    """Target paces in min/km; faster workouts have smaller numbers."""
    easy: float
    marathon: float
    threshold: float
    interval: float
    repetition: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def personalize_zones(max_hr: float, threshold_pace: float) -> List[TrainingZone]:
    """
    Scale the canonical ladder to an athlete.

    Heart rate bounds become round(pct / 100 × max_hr) bpm; pace bounds become
    threshold_pace × pct / 100 min/km.

    Args:
        max_hr: Maximum heart rate (bpm)
        threshold_pace: Lactate-threshold pace (min/km)

    Returns:
        Seven zones, Recovery first
    """
    if max_hr <= 0:
        raise ValueError(f"max_hr ({max_hr}) must be positive")
    if threshold_pace <= 0:
        raise ValueError(f"threshold_pace ({threshold_pace}) must be positive")

    zones = []
    for zone in ZONE_LADDER:
        hr_low, hr_high = zone.heart_rate_range
        pace_low, pace_high = zone.pace_range
        zones.append(replace(
            zone,
            heart_rate_range=(round(hr_low / 100 * max_hr), round(hr_high / 100 * max_hr)),
            pace_range=(threshold_pace * pace_low / 100, threshold_pace * pace_high / 100),
        ))
    return zones


def zone_for_intensity(intensity: float) -> TrainingZone:
    """
    Map an intensity percentage to exactly one canonical tier.

    Breakpoints: < 60 Recovery, < 70 Easy, < 80 Steady, < 87 Tempo,
    < 92 Threshold, < 97 VO2 Max, otherwise Neuromuscular.
    """
    for zone, upper in zip(ZONE_LADDER, INTENSITY_BREAKPOINTS):
        if intensity < upper:
            return zone
    return NEUROMUSCULAR


def derive_training_paces(aerobic_index: float) -> TrainingPaces:
    """
    Training paces from the aerobic index.

    Approximates the Daniels tables with a linear VO2max pace:
        base = 5.5 - (index - 30) × 0.05   (min/km)
    and divides it by each pace's fraction of VO2max.

    Args:
        aerobic_index: Aerobic index in [30, 85]

    Returns:
        TrainingPaces ordered repetition < interval < threshold < marathon < easy

    Raises:
        InvalidAerobicIndex: index outside [30, 85]
    """
    if not (MIN_AEROBIC_INDEX <= aerobic_index <= MAX_AEROBIC_INDEX):
        raise InvalidAerobicIndex(aerobic_index, MIN_AEROBIC_INDEX, MAX_AEROBIC_INDEX)

    vo2max_pace = 5.5 - (aerobic_index - 30) * 0.05
    return TrainingPaces(**{
        name: vo2max_pace / fraction for name, fraction in PACE_FRACTIONS.items()
    })


def format_pace(pace: float) -> str:
    """Format decimal minutes per km as m:ss."""
    minutes = int(pace)
    seconds = int(round((pace - minutes) * 60))
    if seconds == 60:
        minutes, seconds = minutes + 1, 0
    return f"{minutes}:{seconds:02d}"


if __name__ == '__main__':
    print("Testing zones...")

    for zone in personalize_zones(max_hr=185, threshold_pace=4.5):
        hr_low, hr_high = zone.heart_rate_range
        print(f"  {zone.name:<14} {hr_low:>3}-{hr_high:<3} bpm")

    paces = derive_training_paces(50)
    for name, pace in paces.to_dict().items():
        print(f"  {name:<11} {format_pace(pace)} /km")
