"""Progression engine for arise.

Applies an XP award to a user's progression state, cascading through as many
level-ups as the award covers and advancing the rank on every tenth level.
This module is pure: no I/O, no clock reads.
"""

import math
from numbers import Integral, Real

from arise.errors import ValidationError
from arise.models.constants import (
    BASE_XP_BY_PRIORITY,
    RANK_UP_LEVEL_INTERVAL,
    RECURRING_XP_MULTIPLIER,
    XP_GROWTH_FACTOR,
)
from arise.models.progress import Rank, UserProgress, XPResult, next_rank
from arise.models.task import Task, TaskPriority


def apply_xp(state: UserProgress, xp_delta: int) -> XPResult:
    """Apply an XP delta to a progression state.

    The level-up check is a loop: one large award can cross several
    thresholds, and each iteration re-tests against the grown threshold.
    The rank advances one step per level gained that lands on a multiple of
    RANK_UP_LEVEL_INTERVAL, and stays put at the top rank.

    Args:
        state: Current progression state (must satisfy 0 <= current_xp < required_xp)
        xp_delta: Non-negative XP amount to add

    Returns:
        XPResult with the new state, whether a level-up happened, and the
        rank before this call if (and only if) the rank changed

    Raises:
        ValidationError: If xp_delta is negative or not finite, or state is malformed
    """
    _validate(state, xp_delta)

    level = state.level
    current_xp = state.current_xp + int(xp_delta)
    required_xp = state.required_xp
    starting_rank = Rank(state.rank)
    rank = starting_rank
    leveled_up = False

    while current_xp >= required_xp:
        level += 1
        current_xp -= required_xp
        required_xp = math.floor(required_xp * XP_GROWTH_FACTOR)
        leveled_up = True

        if level % RANK_UP_LEVEL_INTERVAL == 0:
            rank = next_rank(rank)

    return XPResult(
        new_state=UserProgress(
            level=level,
            current_xp=current_xp,
            required_xp=required_xp,
            rank=rank,
        ),
        leveled_up=leveled_up,
        previous_rank=starting_rank if rank != starting_rank else None,
    )


def _is_finite(value: Real) -> bool:
    if isinstance(value, Integral):
        return True
    try:
        return math.isfinite(value)
    except OverflowError:
        # Exact rationals too large for a float are still finite
        return True


def _validate(state: UserProgress, xp_delta: int) -> None:
    if isinstance(xp_delta, bool) or not isinstance(xp_delta, Real):
        raise ValidationError(f"xp_delta must be a number, got {type(xp_delta).__name__}")
    if not _is_finite(xp_delta):
        raise ValidationError("xp_delta must be finite")
    if xp_delta < 0:
        raise ValidationError(f"xp_delta must be >= 0, got {xp_delta}")
    if xp_delta != int(xp_delta):
        raise ValidationError(f"xp_delta must be a whole number, got {xp_delta}")
    if state.required_xp <= 0:
        raise ValidationError(f"required_xp must be > 0, got {state.required_xp}")
    if state.level < 1:
        raise ValidationError(f"level must be >= 1, got {state.level}")
    if state.current_xp < 0 or state.current_xp >= state.required_xp:
        raise ValidationError(
            f"current_xp must satisfy 0 <= current_xp < required_xp "
            f"(got {state.current_xp} / {state.required_xp})"
        )


def xp_for_task(task: Task) -> int:
    """XP awarded for completing a task.

    Base XP comes from the task priority; recurring tasks earn double.
    """
    xp = BASE_XP_BY_PRIORITY[TaskPriority(task.priority)]
    if task.recurring is not None:
        xp *= RECURRING_XP_MULTIPLIER
    return xp
