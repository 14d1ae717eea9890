"""
Enumerations stored as plain strings in the database.

Values are the canonical database representation; schemas expose the enums
directly so API payloads use the same strings.
"""
from enum import Enum


class EntityState(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class EvacuationFileStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    EXPIRED = "expired"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class NeedsAssessmentType(str, Enum):
    PRELIMINARY = "preliminary"
    ASSESSED = "assessed"


class SupportCategory(str, Enum):
    FOOD_GROCERIES = "food_groceries"
    FOOD_RESTAURANT = "food_restaurant"
    LODGING_HOTEL = "lodging_hotel"
    LODGING_BILLETING = "lodging_billeting"
    LODGING_GROUP = "lodging_group"
    CLOTHING = "clothing"
    INCIDENTALS = "incidentals"
    TRANSPORTATION_TAXI = "transportation_taxi"
    TRANSPORTATION_OTHER = "transportation_other"


class SupportDeliveryMethod(str, Enum):
    REFERRAL = "referral"
    ETRANSFER = "etransfer"


class SupportStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    EXPIRED = "expired"
    VOID = "void"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    PAID = "paid"
    CANCELLED = "cancelled"
    UNDER_REVIEW = "under_review"
    ISSUED = "issued"


class SupportVoidReason(str, Enum):
    ERROR_ON_PRINTED_REFERRAL = "error_on_printed_referral"
    NEW_SUPPLIER_REQUIRED = "new_supplier_required"
    SUPPLIER_COULD_NOT_MEET_NEED = "supplier_could_not_meet_need"


class SupportFlagType(str, Enum):
    DUPLICATE = "duplicate"
    AMOUNT_OVERRIDE = "amount_override"
    LIMIT_EXCEEDED = "limit_exceeded"
