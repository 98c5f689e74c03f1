"""Synthetic data generation utilities."""

from .synthetic import (
    Archetype,
    ARCHETYPES,
    get_archetype,
    generate_session_history,
    generate_planned_workouts,
)

__all__ = [
    'Archetype',
    'ARCHETYPES',
    'get_archetype',
    'generate_session_history',
    'generate_planned_workouts',
]
