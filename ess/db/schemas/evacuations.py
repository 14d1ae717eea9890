import uuid
from datetime import date, datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from ess.db.enums import EvacuationFileStatus, NeedsAssessmentType
from .reference import RegistrantSummary
from .supports import Support


class HouseholdMember(BaseModel):
    id: Optional[uuid.UUID] = None
    registrant_id: Optional[uuid.UUID] = None
    is_primary_registrant: bool = False
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    initials: Optional[str] = None
    gender: Optional[str] = None
    date_of_birth: Optional[date] = None
    is_under_19: bool = False
    # Populated on read when the member is linked to a registrant profile
    linked_registrant: Optional[RegistrantSummary] = None


class Pet(BaseModel):
    type: str
    quantity: int = 1


class NeedsAssessment(BaseModel):
    id: Optional[uuid.UUID] = None
    type: NeedsAssessmentType = NeedsAssessmentType.PRELIMINARY
    jurisdiction_code: Optional[str] = None
    reviewed_by_id: Optional[uuid.UUID] = None
    insurance: Optional[str] = None
    can_provide_food: Optional[bool] = None
    can_provide_lodging: Optional[bool] = None
    can_provide_clothing: Optional[bool] = None
    can_provide_transportation: Optional[bool] = None
    can_provide_incidentals: Optional[bool] = None
    have_medication: Optional[bool] = None
    have_special_diet: Optional[bool] = None
    special_diet_details: Optional[str] = None
    household_members: List[HouseholdMember] = Field(default_factory=list)
    created_at: Optional[datetime] = None


class Note(BaseModel):
    id: Optional[uuid.UUID] = None
    type: str = "general"
    content: str
    team_member_id: Optional[uuid.UUID] = None
    is_hidden: bool = False
    created_at: Optional[datetime] = None


class EvacuationFile(BaseModel):
    id: Optional[str] = None  # file number; None means "create"
    status: EvacuationFileStatus = EvacuationFileStatus.ACTIVE
    is_active: bool = True
    primary_registrant_id: Optional[uuid.UUID] = None
    task_id: Optional[str] = None  # task number
    evacuated_from_code: Optional[str] = None
    evacuation_date: Optional[datetime] = None
    security_phrase: Optional[str] = None
    security_phrase_changed: bool = False
    is_restricted: bool = False
    needs_assessment: Optional[NeedsAssessment] = None
    household_members: List[HouseholdMember] = Field(default_factory=list)
    pets: List[Pet] = Field(default_factory=list)
    notes: List[Note] = Field(default_factory=list)
    supports: List[Support] = Field(default_factory=list)
    created_at: Optional[datetime] = None


# Commands


class SubmitEvacuationFileCommand(BaseModel):
    file: EvacuationFile


class DeleteEvacuationFileCommand(BaseModel):
    file_id: str


class SaveEvacuationFileNoteCommand(BaseModel):
    file_id: str
    note: Note


# Queries


class EvacuationFilesQuery(BaseModel):
    file_id: Optional[str] = None
    needs_assessment_id: Optional[uuid.UUID] = None
    primary_registrant_id: Optional[uuid.UUID] = None
    household_member_id: Optional[uuid.UUID] = None
    linked_registrant_id: Optional[uuid.UUID] = None
    registration_date_from: Optional[datetime] = None
    registration_date_to: Optional[datetime] = None
    include_file_statuses: List[EvacuationFileStatus] = Field(default_factory=list)
    limit: Optional[int] = Field(default=None, gt=0)
    mask_security_phrase: bool = True


class EvacuationFilesQueryResult(BaseModel):
    items: List[EvacuationFile]
