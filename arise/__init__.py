"""arise: a leveling system over a to-do list."""

__version__ = "0.1.0"
