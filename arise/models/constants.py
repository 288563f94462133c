"""Constants for arise.

This module centralizes all magic numbers and default values used throughout the application.
"""

from fractions import Fraction

from arise.models.progress import Rank
from arise.models.task import TaskPriority


# Progression defaults (new profiles)
INITIAL_RANK = Rank.E
INITIAL_LEVEL = 1
INITIAL_CURRENT_XP = 0
INITIAL_REQUIRED_XP = 100

# Each level-up multiplies the threshold by this factor (floored)
XP_GROWTH_FACTOR = Fraction(6, 5)

# Rank advances every N levels
RANK_UP_LEVEL_INTERVAL = 10

# XP policy
BASE_XP_BY_PRIORITY = {
    TaskPriority.LOW: 5,
    TaskPriority.NORMAL: 10,
    TaskPriority.HIGH: 20,
    TaskPriority.URGENT: 40,
}
RECURRING_XP_MULTIPLIER = 2

# Task defaults
DEFAULT_PRIORITY = TaskPriority.NORMAL
