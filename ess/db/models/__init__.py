"""
Domain-split SQLAlchemy models.

Exposes `Base`, `now_utc`, and all ORM classes so callers can use
`from ess.db import models` and refer to `models.EvacuationFile` etc.
"""

from .base import Base, now_utc  # re-export

# Domain models
from .reference import Jurisdiction, Registrant, TeamMember, Task, Supplier, NumberSequence
from .evacuations import (
    EvacuationFile,
    NeedsAssessment,
    HouseholdMember,
    Pet,
    Note,
    needs_assessment_household_members,
)
from .supports import Support, SupportFlag, Queue, QueueItem, support_household_members

__all__ = [
    # base
    "Base",
    "now_utc",
    # reference data
    "Jurisdiction",
    "Registrant",
    "TeamMember",
    "Task",
    "Supplier",
    "NumberSequence",
    # evacuation file aggregate
    "EvacuationFile",
    "NeedsAssessment",
    "HouseholdMember",
    "Pet",
    "Note",
    "needs_assessment_household_members",
    # supports
    "Support",
    "SupportFlag",
    "Queue",
    "QueueItem",
    "support_household_members",
]
