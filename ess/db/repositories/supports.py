"""
Support repository functions.

Implements the support lifecycle commands (save, status change, submit for
approval) and the support search query. Every command runs as a single unit
of work and leaves the session empty (``expunge_all``) when it returns.
"""
from __future__ import annotations

import logging
import uuid
from functools import partial
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session, joinedload, selectinload

from ess.db import models, schemas
from ess.db.enums import (
    EntityState,
    SupportDeliveryMethod,
    SupportFlagType,
    SupportStatus,
    SupportVoidReason,
)
from ess.db.reference_data import APPROVAL_QUEUE_ID, REVIEW_QUEUE_ID
from ess.db.sequences import SUPPORT_SEQUENCE, next_number
from ess.errors import (
    InvariantViolationError,
    NotFoundError,
    NotSupportedError,
    UnsupportedTransitionError,
)
from ess.utils.concurrency import gather_bounded, run_blocking
from ess.utils.settings import get_settings

logger = logging.getLogger(__name__)

# Object type tag the approval queues expect for support items
SUPPORT_OBJECT_TYPE_CODE = 10056

SessionFactory = Callable[[], Session]


def manage(db: Session, cmd):
    """Dispatch a support command to its handler."""
    if isinstance(cmd, schemas.SaveEvacuationFileSupportCommand):
        return save_supports(db, cmd)
    if isinstance(cmd, schemas.ChangeSupportStatusCommand):
        return change_support_status(db, cmd)
    if isinstance(cmd, schemas.SubmitSupportForApprovalCommand):
        return submit_support_for_approval(db, cmd)
    raise NotSupportedError(f"{type(cmd).__name__} is not supported")


async def query(session_factory: SessionFactory, q, *, max_concurrency: Optional[int] = None):
    """Dispatch a support query to its handler."""
    if isinstance(q, schemas.SearchSupportsQuery):
        return await search_supports(session_factory, q, max_concurrency=max_concurrency)
    raise NotSupportedError(f"{type(q).__name__} is not supported")


# Save


def save_supports(db: Session, cmd: schemas.SaveEvacuationFileSupportCommand) -> schemas.SaveEvacuationFileSupportCommandResult:
    db_file = (
        db.query(models.EvacuationFile)
        .options(joinedload(models.EvacuationFile.current_needs_assessment))
        .filter(models.EvacuationFile.file_number == cmd.file_id)
        .first()
    )
    if db_file is None:
        raise NotFoundError(f"Evacuation file {cmd.file_id} not found")
    if db_file.current_needs_assessment is None:
        raise InvariantViolationError(f"Evacuation file {cmd.file_id} has no current needs assessment")

    saved: List[models.Support] = []
    for support in cmd.supports:
        if support.id is None:
            saved.append(_create_support(db, db_file, support))
        else:
            saved.append(_update_support(db, db_file, support))

    db.commit()
    results = [to_support_record(s) for s in saved]
    db.expunge_all()
    logger.info("supports_saved: file=%s count=%d", cmd.file_id, len(results))
    return schemas.SaveEvacuationFileSupportCommandResult(supports=results)


def _create_support(db: Session, db_file: models.EvacuationFile, support: schemas.Support) -> models.Support:
    if support.issued_by_id is None:
        raise NotFoundError("A new support must name the team member issuing it")
    db_support = models.Support(
        id=uuid.uuid4(),
        support_number=next_number(db, SUPPORT_SEQUENCE),
        evacuation_file=db_file,
        needs_assessment=db_file.current_needs_assessment,
        state=EntityState.ACTIVE.value,
    )
    _apply_support_fields(db, db_support, support)
    db_support.household_members = _get_file_household_members(db, db_file, support.household_member_ids)
    db.add(db_support)
    return db_support


def _update_support(db: Session, db_file: models.EvacuationFile, support: schemas.Support) -> models.Support:
    db_support = (
        db.query(models.Support)
        .options(selectinload(models.Support.household_members))
        .filter(models.Support.support_number == support.id)
        .first()
    )
    if db_support is None:
        raise NotFoundError(f"Support {support.id} not found")
    if db_support.evacuation_file_id != db_file.id:
        raise InvariantViolationError(f"Support {support.id} not found in file {db_file.file_number}")

    _apply_support_fields(db, db_support, support)

    current = {m.id: m for m in db_support.household_members}
    to_remove, to_add = diff_household_members(current.keys(), support.household_member_ids)
    for member_id in to_remove:
        db_support.household_members.remove(current[member_id])
    db_support.household_members.extend(_get_file_household_members(db, db_file, to_add))
    return db_support


def diff_household_members(
    current_ids: Iterable[uuid.UUID], requested_ids: Iterable[uuid.UUID]
) -> Tuple[List[uuid.UUID], List[uuid.UUID]]:
    """Return (ids to unlink, ids to link); members present in both are untouched."""
    current = list(dict.fromkeys(current_ids))
    requested = list(dict.fromkeys(requested_ids))
    requested_set = set(requested)
    current_set = set(current)
    to_remove = [m for m in current if m not in requested_set]
    to_add = [m for m in requested if m not in current_set]
    return to_remove, to_add


def _apply_support_fields(db: Session, db_support: models.Support, support: schemas.Support) -> None:
    db_support.category = support.category.value
    db_support.delivery_method = support.delivery_method.value
    db_support.status = support.status.value
    db_support.manual_referral_id = support.manual_referral_id
    db_support.amount = support.amount
    db_support.from_date = support.from_date
    db_support.to_date = support.to_date
    db_support.notification_email = support.notification_email
    db_support.notification_phone = support.notification_phone
    db_support.group_lodging_city = _lookup_jurisdiction(db, support.group_lodging_city_code)

    if support.issued_by_id is not None:
        team_member = db.get(models.TeamMember, support.issued_by_id)
        if team_member is None:
            raise NotFoundError(f"Team member {support.issued_by_id} not found")
        db_support.issued_by = team_member

    if support.supplier_id is not None:
        supplier = (
            db.query(models.Supplier)
            .filter(models.Supplier.id == support.supplier_id, models.Supplier.is_active.is_(True))
            .first()
        )
        if supplier is None:
            raise NotFoundError(f"Supplier id {support.supplier_id} not found or is not active")
        db_support.supplier = supplier

    if support.payee_id is not None:
        payee = (
            db.query(models.Registrant)
            .filter(models.Registrant.id == support.payee_id, models.Registrant.is_active.is_(True))
            .first()
        )
        if payee is None:
            raise NotFoundError(f"Registrant id {support.payee_id} not found or is not active")
        db_support.payee = payee


def _lookup_jurisdiction(db: Session, code: Optional[str]) -> Optional[models.Jurisdiction]:
    if not code:
        return None
    jurisdiction = db.query(models.Jurisdiction).filter(models.Jurisdiction.code == code).first()
    if jurisdiction is None:
        raise NotFoundError(f"Jurisdiction {code} not found")
    return jurisdiction


def _get_file_household_members(
    db: Session, db_file: models.EvacuationFile, member_ids: Sequence[uuid.UUID]
) -> List[models.HouseholdMember]:
    member_ids = list(dict.fromkeys(member_ids))
    if not member_ids:
        return []
    members = (
        db.query(models.HouseholdMember)
        .filter(
            models.HouseholdMember.id.in_(member_ids),
            models.HouseholdMember.evacuation_file_id == db_file.id,
        )
        .all()
    )
    by_id = {m.id: m for m in members}
    missing = [str(m) for m in member_ids if m not in by_id]
    if missing:
        raise NotFoundError(f"Household members {', '.join(missing)} not found in file {db_file.file_number}")
    return [by_id[m] for m in member_ids]


# Status changes


def change_support_status(db: Session, cmd: schemas.ChangeSupportStatusCommand) -> schemas.ChangeSupportStatusCommandResult:
    changed: List[str] = []
    for item in cmd.items:
        db_support = db.query(models.Support).filter(models.Support.support_number == item.support_id).first()
        if db_support is None:
            raise NotFoundError(f"Support {item.support_id} not found, can't update its status")
        apply_status_change(db_support, item.to_status, item.reason)
        changed.append(item.support_id)

    db.commit()
    db.expunge_all()
    logger.info("support_status_changed: ids=%s", ",".join(changed))
    return schemas.ChangeSupportStatusCommandResult(ids=changed)


def apply_status_change(db_support: models.Support, status: SupportStatus, reason: Optional[str]) -> None:
    """Apply the support status policy.

    void is only allowed for referrals and deactivates them; cancelling an
    e-transfer deactivates it. Every other change, including cancelling a
    referral, sets the status directly.
    """
    method = SupportDeliveryMethod(db_support.delivery_method)

    if status == SupportStatus.VOID:
        if method != SupportDeliveryMethod.REFERRAL:
            raise UnsupportedTransitionError(
                f"Support {db_support.support_number} with delivery method {method.value} can not be voided"
            )
        db_support.void_reason = parse_void_reason(reason).value
        _deactivate(db_support, status)
    elif status == SupportStatus.CANCELLED and method == SupportDeliveryMethod.ETRANSFER:
        _deactivate(db_support, status)
    else:
        db_support.status = status.value


def parse_void_reason(reason: Optional[str]) -> SupportVoidReason:
    """Parse a void reason from its value or its name, case-insensitively."""
    if reason:
        normalized = reason.strip().lower()
        for candidate in SupportVoidReason:
            if normalized in (candidate.value, candidate.name.lower()):
                return candidate
    raise InvariantViolationError(f"'{reason}' is not a valid support void reason")


def _deactivate(db_support: models.Support, status: SupportStatus) -> None:
    db_support.state = EntityState.INACTIVE.value
    db_support.status = status.value


# Approval


def submit_support_for_approval(
    db: Session, cmd: schemas.SubmitSupportForApprovalCommand
) -> schemas.SubmitSupportForApprovalCommandResult:
    db_support = db.query(models.Support).filter(models.Support.support_number == cmd.support_id).first()
    if db_support is None:
        raise NotFoundError(f"Support {cmd.support_id} not found")

    for flag in cmd.flags:
        db_flag = models.SupportFlag(
            id=uuid.uuid4(),
            support=db_support,
            flag_type=flag.flag_type.value,
            approver_name=flag.approver_name,
            reason=flag.reason,
        )
        if flag.flag_type == SupportFlagType.DUPLICATE:
            if not flag.duplicated_support_id:
                raise InvariantViolationError("A duplicate flag must reference the duplicated support")
            duplicate = (
                db.query(models.Support)
                .filter(models.Support.support_number == flag.duplicated_support_id)
                .first()
            )
            if duplicate is None:
                raise NotFoundError(f"Support {flag.duplicated_support_id} not found")
            db_flag.duplicate_support = duplicate
        db.add(db_flag)

    queue_id = REVIEW_QUEUE_ID if cmd.flags else APPROVAL_QUEUE_ID
    queue = db.get(models.Queue, queue_id)
    if queue is None:
        raise NotFoundError(f"Queue {queue_id} not found")

    queue_item = models.QueueItem(
        id=uuid.uuid4(),
        queue=queue,
        object_id=db_support.id,
        object_type_code=SUPPORT_OBJECT_TYPE_CODE,
    )
    db.add(queue_item)
    db_support.status = SupportStatus.PENDING_APPROVAL.value

    db.commit()
    result = schemas.SubmitSupportForApprovalCommandResult(queue_id=queue.id, queue_item_id=queue_item.id)
    db.expunge_all()
    logger.info("support_submitted_for_approval: support=%s queue=%s flags=%d", cmd.support_id, queue.name, len(cmd.flags))
    return result


# Search


async def search_supports(
    session_factory: SessionFactory,
    q: schemas.SearchSupportsQuery,
    *,
    max_concurrency: Optional[int] = None,
) -> schemas.SearchSupportsQueryResult:
    if not (q.by_id or q.by_manual_referral_id or q.by_evacuation_file_id or q.by_status):
        raise InvariantViolationError("Supports query must have at least one criteria")

    support_ids = await run_blocking(_find_support_ids, session_factory, q)

    items = await gather_bounded(
        partial(_load_support, session_factory),
        support_ids,
        max_concurrency or get_settings().read_concurrency,
    )
    return schemas.SearchSupportsQueryResult(items=items)


def _find_support_ids(session_factory: SessionFactory, q: schemas.SearchSupportsQuery) -> List[uuid.UUID]:
    with session_factory() as db:
        return _search_support_ids(db, q)


def _search_support_ids(db: Session, q: schemas.SearchSupportsQuery) -> List[uuid.UUID]:
    order = (models.Support.created_at, models.Support.support_number)

    # search a specific file
    if q.by_evacuation_file_id:
        db_file = (
            db.query(models.EvacuationFile)
            .filter(models.EvacuationFile.file_number == q.by_evacuation_file_id)
            .first()
        )
        if db_file is None:
            return []
        supports = db.query(models.Support).filter(models.Support.evacuation_file_id == db_file.id)
        if q.by_id:
            supports = supports.filter(models.Support.support_number == q.by_id)
        if q.by_manual_referral_id:
            supports = supports.filter(models.Support.manual_referral_id == q.by_manual_referral_id)
        return [s.id for s in supports.order_by(*order).all()]

    # search all supports
    supports = db.query(models.Support)
    if q.by_id:
        supports = supports.filter(models.Support.support_number == q.by_id)
    if q.by_manual_referral_id:
        supports = supports.filter(models.Support.manual_referral_id == q.by_manual_referral_id)
    if q.by_status:
        supports = supports.filter(models.Support.status == q.by_status.value)
    supports = supports.order_by(*order)
    if q.limit:
        supports = supports.limit(q.limit)
    return [s.id for s in supports.all()]


def _load_support(session_factory: SessionFactory, support_id: uuid.UUID) -> schemas.Support:
    with session_factory() as db:
        db_support = (
            db.query(models.Support)
            .options(
                joinedload(models.Support.evacuation_file),
                joinedload(models.Support.group_lodging_city),
                selectinload(models.Support.household_members),
                selectinload(models.Support.flags).joinedload(models.SupportFlag.duplicate_support),
            )
            .filter(models.Support.id == support_id)
            .one()
        )
        return to_support_record(db_support)


def to_support_record(db_support: models.Support) -> schemas.Support:
    """Map a support row (with its relationships reachable) to a record."""
    return schemas.Support(
        id=db_support.support_number,
        file_id=db_support.evacuation_file.file_number if db_support.evacuation_file else None,
        needs_assessment_id=db_support.needs_assessment_id,
        category=db_support.category,
        delivery_method=db_support.delivery_method,
        status=db_support.status,
        is_active=db_support.state == EntityState.ACTIVE.value,
        void_reason=db_support.void_reason,
        supplier_id=db_support.supplier_id,
        payee_id=db_support.payee_id,
        group_lodging_city_code=db_support.group_lodging_city.code if db_support.group_lodging_city else None,
        issued_by_id=db_support.issued_by_id,
        manual_referral_id=db_support.manual_referral_id,
        amount=db_support.amount,
        from_date=db_support.from_date,
        to_date=db_support.to_date,
        notification_email=db_support.notification_email,
        notification_phone=db_support.notification_phone,
        household_member_ids=[m.id for m in db_support.household_members],
        flags=[
            schemas.SupportFlag(
                id=f.id,
                flag_type=f.flag_type,
                duplicated_support_id=f.duplicate_support.support_number if f.duplicate_support else None,
                approver_name=f.approver_name,
                reason=f.reason,
            )
            for f in db_support.flags
        ],
        created_at=db_support.created_at,
    )
