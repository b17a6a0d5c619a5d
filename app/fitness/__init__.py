"""
Fitness Module

Logged lifts, the derived current PR per lift, and training notes.
"""

from .models import LiftType, PersonalRecord, FitnessNote
from .records import current_prs, current_pr_map, lift_history
from .router import router

__all__ = [
    "LiftType",
    "PersonalRecord",
    "FitnessNote",
    "current_prs",
    "current_pr_map",
    "lift_history",
    "router",
]
