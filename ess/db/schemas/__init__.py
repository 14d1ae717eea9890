"""
Domain-split Pydantic schemas.

Re-exports record types plus the command and query messages handled by the
repositories, so callers can use `from ess.db import schemas`.
"""

from .reference import RegistrantSummary
from .supports import (
    SupportFlag,
    Support,
    SaveEvacuationFileSupportCommand,
    SaveEvacuationFileSupportCommandResult,
    SupportStatusChange,
    ChangeSupportStatusCommand,
    ChangeSupportStatusCommandResult,
    SubmitSupportForApprovalCommand,
    SubmitSupportForApprovalCommandResult,
    SearchSupportsQuery,
    SearchSupportsQueryResult,
)
from .evacuations import (
    HouseholdMember,
    Pet,
    NeedsAssessment,
    Note,
    EvacuationFile,
    SubmitEvacuationFileCommand,
    DeleteEvacuationFileCommand,
    SaveEvacuationFileNoteCommand,
    EvacuationFilesQuery,
    EvacuationFilesQueryResult,
)

__all__ = [
    "RegistrantSummary",
    # supports
    "SupportFlag",
    "Support",
    "SaveEvacuationFileSupportCommand",
    "SaveEvacuationFileSupportCommandResult",
    "SupportStatusChange",
    "ChangeSupportStatusCommand",
    "ChangeSupportStatusCommandResult",
    "SubmitSupportForApprovalCommand",
    "SubmitSupportForApprovalCommandResult",
    "SearchSupportsQuery",
    "SearchSupportsQueryResult",
    # evacuation files
    "HouseholdMember",
    "Pet",
    "NeedsAssessment",
    "Note",
    "EvacuationFile",
    "SubmitEvacuationFileCommand",
    "DeleteEvacuationFileCommand",
    "SaveEvacuationFileNoteCommand",
    "EvacuationFilesQuery",
    "EvacuationFilesQueryResult",
]
