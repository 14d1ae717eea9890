import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field

from ess.db.enums import (
    SupportCategory,
    SupportDeliveryMethod,
    SupportFlagType,
    SupportStatus,
    SupportVoidReason,
)


class SupportFlag(BaseModel):
    id: Optional[uuid.UUID] = None
    flag_type: SupportFlagType
    # Support number of the support this one duplicates (duplicate flags only)
    duplicated_support_id: Optional[str] = None
    approver_name: Optional[str] = None
    reason: Optional[str] = None


class Support(BaseModel):
    id: Optional[str] = None  # support number; None means "create"
    file_id: Optional[str] = None
    needs_assessment_id: Optional[uuid.UUID] = None
    category: SupportCategory
    delivery_method: SupportDeliveryMethod = SupportDeliveryMethod.REFERRAL
    status: SupportStatus = SupportStatus.ACTIVE
    is_active: bool = True
    void_reason: Optional[SupportVoidReason] = None
    supplier_id: Optional[uuid.UUID] = None
    payee_id: Optional[uuid.UUID] = None
    group_lodging_city_code: Optional[str] = None
    issued_by_id: Optional[uuid.UUID] = None
    manual_referral_id: Optional[str] = None
    amount: Optional[Decimal] = None
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None
    notification_email: Optional[str] = None
    notification_phone: Optional[str] = None
    household_member_ids: List[uuid.UUID] = Field(default_factory=list)
    flags: List[SupportFlag] = Field(default_factory=list)
    created_at: Optional[datetime] = None


# Commands


class SaveEvacuationFileSupportCommand(BaseModel):
    file_id: str
    supports: List[Support]


class SaveEvacuationFileSupportCommandResult(BaseModel):
    supports: List[Support]


class SupportStatusChange(BaseModel):
    support_id: str
    to_status: SupportStatus
    reason: Optional[str] = None


class ChangeSupportStatusCommand(BaseModel):
    items: List[SupportStatusChange]


class ChangeSupportStatusCommandResult(BaseModel):
    ids: List[str]


class SubmitSupportForApprovalCommand(BaseModel):
    support_id: str
    flags: List[SupportFlag] = Field(default_factory=list)


class SubmitSupportForApprovalCommandResult(BaseModel):
    queue_id: uuid.UUID
    queue_item_id: uuid.UUID


# Queries


class SearchSupportsQuery(BaseModel):
    by_id: Optional[str] = None
    by_manual_referral_id: Optional[str] = None
    by_evacuation_file_id: Optional[str] = None
    by_status: Optional[SupportStatus] = None
    limit: Optional[int] = Field(default=None, gt=0)


class SearchSupportsQueryResult(BaseModel):
    items: List[Support]
