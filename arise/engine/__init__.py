"""Progression and recurrence engines for arise."""

from arise.engine.progression import apply_xp, xp_for_task
from arise.engine.recurrence import compute_next_occurrence, initial_next_due, materialize_next_instance

__all__ = [
    "apply_xp",
    "xp_for_task",
    "compute_next_occurrence",
    "initial_next_due",
    "materialize_next_instance",
]
