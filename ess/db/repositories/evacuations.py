"""
Evacuation file repository functions.

Writes the evacuation file aggregate (file, needs assessment, household
members, pets), manages file notes, and assembles file read models.

Writes are two units of work: the file itself first, so its generated file
number exists, then the new needs assessment and its member links. A failure
between the two commits is not compensated; readers skip files without a
current needs assessment.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import partial
from typing import Callable, Iterable, List, Optional

from sqlalchemy.orm import Session, joinedload, selectinload

from ess.db import models, schemas
from ess.db.enums import EntityState
from ess.db.repositories.supports import to_support_record
from ess.db.sequences import EVACUATION_FILE_SEQUENCE, next_number
from ess.errors import InvariantViolationError, NotFoundError
from ess.utils.concurrency import gather_bounded, run_blocking
from ess.utils.settings import get_settings

logger = logging.getLogger(__name__)

MASKED_SECURITY_PHRASE = "********"

SessionFactory = Callable[[], Session]

_MEMBER_FIELDS = (
    "is_primary_registrant",
    "first_name",
    "last_name",
    "initials",
    "gender",
    "date_of_birth",
    "is_under_19",
)

_NEEDS_FIELDS = (
    "insurance",
    "can_provide_food",
    "can_provide_lodging",
    "can_provide_clothing",
    "can_provide_transportation",
    "can_provide_incidentals",
    "have_medication",
    "have_special_diet",
    "special_diet_details",
)


# Writes


def verify_evacuation_file_invariants(file: schemas.EvacuationFile) -> None:
    if not file.primary_registrant_id:
        raise InvariantViolationError("The file has no associated primary registrant")
    if file.needs_assessment is None:
        raise InvariantViolationError(f"File {file.id} must have a needs assessment")

    primary_count = sum(1 for m in file.needs_assessment.household_members if m.is_primary_registrant)
    if file.id is None:
        if primary_count != 1:
            raise InvariantViolationError(f"File {file.id} must have a single primary registrant household member")
    elif primary_count > 1:
        raise InvariantViolationError(f"File {file.id} can not have multiple primary registrant household members")


def create_evacuation_file(db: Session, file: schemas.EvacuationFile) -> str:
    """Create the file aggregate and return its generated file number."""
    verify_evacuation_file_invariants(file)

    primary_registrant = _get_primary_registrant(db, file.primary_registrant_id)
    task = _get_task(db, file.task_id)
    _check_needs_assessment_references(db, file.needs_assessment)

    db_file = models.EvacuationFile(
        id=uuid.uuid4(),
        file_number=next_number(db, EVACUATION_FILE_SEQUENCE),
        state=EntityState.ACTIVE.value,
        primary_registrant=primary_registrant,
        task=task,
        security_phrase=file.security_phrase,
    )
    _apply_file_fields(db, db_file, file)
    _add_pets(db_file, file.pets)
    db.add(db_file)
    db.commit()

    file_id = db_file.id
    file_number = db_file.file_number
    db.expunge_all()

    _attach_needs_assessment(db, file_id, file.needs_assessment)
    logger.info("evacuation_file_created: file=%s", file_number)
    return file_number


def update_evacuation_file(db: Session, file: schemas.EvacuationFile) -> str:
    """Update the file aggregate; the needs assessment becomes a new current snapshot."""
    verify_evacuation_file_invariants(file)

    db_file = _get_file(db, file.id)
    primary_registrant = _get_primary_registrant(db, file.primary_registrant_id)
    task = _get_task(db, file.task_id)
    _check_needs_assessment_references(db, file.needs_assessment)

    # pets are replaced wholesale
    db_file.pets.clear()
    _add_pets(db_file, file.pets)

    _apply_file_fields(db, db_file, file)
    if file.security_phrase_changed:
        db_file.security_phrase = file.security_phrase
    db_file.primary_registrant = primary_registrant
    if task is not None:
        db_file.task = task

    for member in file.household_members:
        if member.id is not None:
            _upsert_household_member(db, db_file, member)

    db.commit()

    file_id = db_file.id
    file_number = db_file.file_number
    db.expunge_all()

    _attach_needs_assessment(db, file_id, file.needs_assessment)
    logger.info("evacuation_file_updated: file=%s", file_number)
    return file_number


def delete_evacuation_file(db: Session, file_number: str) -> str:
    """Deactivate a file. Files are never physically removed."""
    db_file = db.query(models.EvacuationFile).filter(models.EvacuationFile.file_number == file_number).first()
    if db_file is not None:
        db_file.state = EntityState.INACTIVE.value
        db.commit()
        logger.info("evacuation_file_deactivated: file=%s", file_number)
    db.expunge_all()
    return file_number


def create_note(db: Session, file_number: str, note: schemas.Note) -> str:
    db_file = _get_file(db, file_number)

    db_note = models.Note(
        id=uuid.uuid4(),
        evacuation_file=db_file,
        type=note.type,
        content=note.content,
        is_hidden=note.is_hidden,
    )
    if note.team_member_id is not None:
        # an unknown author does not block the note
        db_note.team_member = db.get(models.TeamMember, note.team_member_id)
    db.add(db_note)
    db.commit()

    note_id = str(db_note.id)
    db.expunge_all()
    return note_id


def update_note(db: Session, file_number: str, note: schemas.Note) -> str:
    db_note = None
    if note.id is not None:
        db_note = (
            db.query(models.Note)
            .join(models.EvacuationFile, models.Note.evacuation_file_id == models.EvacuationFile.id)
            .filter(models.Note.id == note.id, models.EvacuationFile.file_number == file_number)
            .first()
        )
    if db_note is None:
        raise NotFoundError(f"Evacuation file note {note.id} not found")

    db_note.type = note.type
    db_note.content = note.content
    db_note.is_hidden = note.is_hidden
    db.commit()

    note_id = str(db_note.id)
    db.expunge_all()
    return note_id


def _attach_needs_assessment(db: Session, file_id: uuid.UUID, needs_assessment: schemas.NeedsAssessment) -> None:
    db_file = db.get(models.EvacuationFile, file_id)

    db_needs = models.NeedsAssessment(
        id=uuid.uuid4(),
        evacuation_file=db_file,
        type=needs_assessment.type.value,
        jurisdiction=_lookup_jurisdiction(db, needs_assessment.jurisdiction_code),
    )
    for field in _NEEDS_FIELDS:
        setattr(db_needs, field, getattr(needs_assessment, field))
    if needs_assessment.reviewed_by_id is not None:
        db_needs.reviewed_by = _get_team_member(db, needs_assessment.reviewed_by_id)
    db.add(db_needs)

    for member in needs_assessment.household_members:
        db_member = _upsert_household_member(db, db_file, member)
        db_needs.household_members.append(db_member)

    db_file.current_needs_assessment = db_needs
    db.commit()
    db.expunge_all()


def _upsert_household_member(
    db: Session, db_file: models.EvacuationFile, member: schemas.HouseholdMember
) -> models.HouseholdMember:
    if member.id is not None:
        db_member = db.get(models.HouseholdMember, member.id)
        if db_member is None:
            raise NotFoundError(f"Household member {member.id} not found")
        if db_member.evacuation_file_id not in (None, db_file.id):
            raise InvariantViolationError(
                f"Household member {member.id} belongs to another evacuation file"
            )
    else:
        db_member = models.HouseholdMember(id=uuid.uuid4(), is_active=True)
        db.add(db_member)

    for field in _MEMBER_FIELDS:
        setattr(db_member, field, getattr(member, field))
    if member.registrant_id is not None:
        db_member.registrant = _get_member_registrant(db, member.registrant_id)
    db_member.evacuation_file = db_file
    return db_member


def _apply_file_fields(db: Session, db_file: models.EvacuationFile, file: schemas.EvacuationFile) -> None:
    db_file.status = file.status.value
    db_file.evacuation_date = file.evacuation_date
    db_file.is_restricted = file.is_restricted
    db_file.evacuated_from = _lookup_jurisdiction(db, file.evacuated_from_code)


def _add_pets(db_file: models.EvacuationFile, pets: Iterable[schemas.Pet]) -> None:
    for pet in pets:
        db_file.pets.append(models.Pet(id=uuid.uuid4(), type=pet.type, quantity=pet.quantity))


def _check_needs_assessment_references(db: Session, needs_assessment: schemas.NeedsAssessment) -> None:
    """Resolve the needs assessment references up front so the second commit is unlikely to fail."""
    _lookup_jurisdiction(db, needs_assessment.jurisdiction_code)
    if needs_assessment.reviewed_by_id is not None:
        _get_team_member(db, needs_assessment.reviewed_by_id)
    for member in needs_assessment.household_members:
        if member.registrant_id is not None:
            _get_member_registrant(db, member.registrant_id)


def _get_file(db: Session, file_number: Optional[str]) -> models.EvacuationFile:
    db_file = db.query(models.EvacuationFile).filter(models.EvacuationFile.file_number == file_number).first()
    if db_file is None:
        raise NotFoundError(f"Evacuation file {file_number} not found")
    return db_file


def _get_primary_registrant(db: Session, registrant_id: uuid.UUID) -> models.Registrant:
    registrant = (
        db.query(models.Registrant)
        .filter(models.Registrant.id == registrant_id, models.Registrant.is_active.is_(True))
        .first()
    )
    if registrant is None:
        raise NotFoundError(f"Primary registrant {registrant_id} not found")
    return registrant


def _get_member_registrant(db: Session, registrant_id: uuid.UUID) -> models.Registrant:
    registrant = db.get(models.Registrant, registrant_id)
    if registrant is None:
        raise NotFoundError(f"Household member has registrant id {registrant_id} which was not found")
    return registrant


def _get_task(db: Session, task_number: Optional[str]) -> Optional[models.Task]:
    if not task_number:
        return None
    task = db.query(models.Task).filter(models.Task.number == task_number).first()
    if task is None:
        raise NotFoundError(f"Task {task_number} not found")
    return task


def _get_team_member(db: Session, team_member_id: uuid.UUID) -> models.TeamMember:
    team_member = db.get(models.TeamMember, team_member_id)
    if team_member is None:
        raise NotFoundError(f"Team member {team_member_id} not found")
    return team_member


def _lookup_jurisdiction(db: Session, code: Optional[str]) -> Optional[models.Jurisdiction]:
    if not code:
        return None
    jurisdiction = db.query(models.Jurisdiction).filter(models.Jurisdiction.code == code).first()
    if jurisdiction is None:
        raise NotFoundError(f"Jurisdiction {code} not found")
    return jurisdiction


# Reads


@dataclass(frozen=True)
class _FileHit:
    """A candidate file produced by one of the query strategies."""
    id: uuid.UUID
    file_number: str
    state: str
    status: str
    created_at: Optional[datetime]
    needs_assessment_id: Optional[uuid.UUID]

    @classmethod
    def from_model(cls, db_file: models.EvacuationFile, needs_assessment_id: Optional[uuid.UUID] = None) -> "_FileHit":
        return cls(
            id=db_file.id,
            file_number=db_file.file_number,
            state=db_file.state,
            status=db_file.status,
            created_at=_as_utc(db_file.created_at),
            needs_assessment_id=needs_assessment_id or db_file.current_needs_assessment_id,
        )


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


async def read_evacuation_files(
    session_factory: SessionFactory,
    query: schemas.EvacuationFilesQuery,
    *,
    max_concurrency: Optional[int] = None,
) -> List[schemas.EvacuationFile]:
    """Find files matching the query and hydrate them concurrently."""
    hits = await run_blocking(_find_file_hits, session_factory, query)

    return await gather_bounded(
        partial(_load_evacuation_file, session_factory, mask_security_phrase=query.mask_security_phrase),
        hits,
        max_concurrency or get_settings().read_concurrency,
    )


def _find_file_hits(session_factory: SessionFactory, query: schemas.EvacuationFilesQuery) -> List[_FileHit]:
    with session_factory() as db:
        hits = (
            _query_household_member_files(db, query)
            + _query_evacuation_files(db, query)
            + _query_needs_assessments(db, query)
        )
    return filter_file_hits(hits, query)


def filter_file_hits(hits: List[_FileHit], query: schemas.EvacuationFilesQuery) -> List[_FileHit]:
    """Re-apply the query predicates, limit, and de-duplicate.

    Strategies only partially apply the criteria, so id, date and status
    filters run again here before keeping active files that have a needs
    assessment, once each.
    """
    date_from = _as_utc(query.registration_date_from)
    date_to = _as_utc(query.registration_date_to)
    statuses = {s.value for s in query.include_file_statuses}

    if query.file_id:
        hits = [h for h in hits if h.file_number == query.file_id]
    if date_from is not None:
        hits = [h for h in hits if h.created_at is not None and h.created_at >= date_from]
    if date_to is not None:
        hits = [h for h in hits if h.created_at is not None and h.created_at <= date_to]
    if statuses:
        hits = [h for h in hits if h.status in statuses]
    if query.limit:
        hits = sorted(hits, key=lambda h: h.file_number, reverse=True)[: query.limit]

    unique: List[_FileHit] = []
    seen = set()
    for hit in hits:
        if hit.state != EntityState.ACTIVE.value or hit.needs_assessment_id is None:
            continue
        if hit.id in seen:
            continue
        seen.add(hit.id)
        unique.append(hit)
    return unique


def _query_household_member_files(db: Session, query: schemas.EvacuationFilesQuery) -> List[_FileHit]:
    should_query = (
        not query.file_id
        and not query.needs_assessment_id
        and (query.linked_registrant_id or query.primary_registrant_id or query.household_member_id)
    )
    if not should_query:
        return []

    members = (
        db.query(models.HouseholdMember)
        .options(joinedload(models.HouseholdMember.evacuation_file))
        .filter(models.HouseholdMember.is_active.is_(True))
    )
    if query.primary_registrant_id:
        members = members.filter(
            models.HouseholdMember.is_primary_registrant.is_(True),
            models.HouseholdMember.registrant_id == query.primary_registrant_id,
        )
    if query.household_member_id:
        members = members.filter(models.HouseholdMember.id == query.household_member_id)
    if query.linked_registrant_id:
        members = members.filter(models.HouseholdMember.registrant_id == query.linked_registrant_id)

    return [_FileHit.from_model(m.evacuation_file) for m in members.all() if m.evacuation_file is not None]


def _query_evacuation_files(db: Session, query: schemas.EvacuationFilesQuery) -> List[_FileHit]:
    should_query = not query.needs_assessment_id and (
        query.file_id or query.registration_date_from or query.registration_date_to
    )
    if not should_query:
        return []

    files = db.query(models.EvacuationFile).filter(models.EvacuationFile.state == EntityState.ACTIVE.value)
    if query.file_id:
        files = files.filter(models.EvacuationFile.file_number == query.file_id)
    if query.registration_date_from:
        files = files.filter(models.EvacuationFile.created_at >= _as_utc(query.registration_date_from))
    if query.registration_date_to:
        files = files.filter(models.EvacuationFile.created_at <= _as_utc(query.registration_date_to))

    return [_FileHit.from_model(f) for f in files.all()]


def _query_needs_assessments(db: Session, query: schemas.EvacuationFilesQuery) -> List[_FileHit]:
    if not (query.needs_assessment_id and query.file_id):
        return []

    needs_assessments = (
        db.query(models.NeedsAssessment)
        .options(joinedload(models.NeedsAssessment.evacuation_file))
        .filter(models.NeedsAssessment.id == query.needs_assessment_id)
        .all()
    )
    # the requested needs assessment stands in as the file's current one
    return [
        _FileHit.from_model(na.evacuation_file, needs_assessment_id=na.id)
        for na in needs_assessments
        if na.evacuation_file.file_number == query.file_id
    ]


def _load_evacuation_file(
    session_factory: SessionFactory, hit: _FileHit, *, mask_security_phrase: bool = True
) -> schemas.EvacuationFile:
    with session_factory() as db:
        db_file = (
            db.query(models.EvacuationFile)
            .options(
                joinedload(models.EvacuationFile.task),
                joinedload(models.EvacuationFile.evacuated_from),
                selectinload(models.EvacuationFile.pets),
                selectinload(models.EvacuationFile.notes),
                selectinload(models.EvacuationFile.household_members).joinedload(models.HouseholdMember.registrant),
                selectinload(models.EvacuationFile.supports).selectinload(models.Support.household_members),
                selectinload(models.EvacuationFile.supports).selectinload(models.Support.flags),
            )
            .filter(models.EvacuationFile.id == hit.id)
            .one()
        )
        db_needs = (
            db.query(models.NeedsAssessment)
            .options(
                joinedload(models.NeedsAssessment.jurisdiction),
                selectinload(models.NeedsAssessment.household_members).joinedload(models.HouseholdMember.registrant),
            )
            .filter(models.NeedsAssessment.id == hit.needs_assessment_id)
            .one()
        )
        return _to_evacuation_file_record(db_file, db_needs, mask_security_phrase)


def _to_household_member_record(db_member: models.HouseholdMember) -> schemas.HouseholdMember:
    registrant = db_member.registrant
    return schemas.HouseholdMember(
        id=db_member.id,
        registrant_id=db_member.registrant_id,
        is_primary_registrant=db_member.is_primary_registrant,
        first_name=db_member.first_name,
        last_name=db_member.last_name,
        initials=db_member.initials,
        gender=db_member.gender,
        date_of_birth=db_member.date_of_birth,
        is_under_19=db_member.is_under_19,
        linked_registrant=schemas.RegistrantSummary.model_validate(registrant) if registrant else None,
    )


def _to_evacuation_file_record(
    db_file: models.EvacuationFile, db_needs: models.NeedsAssessment, mask_security_phrase: bool
) -> schemas.EvacuationFile:
    needs_assessment = schemas.NeedsAssessment(
        id=db_needs.id,
        type=db_needs.type,
        jurisdiction_code=db_needs.jurisdiction.code if db_needs.jurisdiction else None,
        reviewed_by_id=db_needs.reviewed_by_id,
        household_members=[_to_household_member_record(m) for m in db_needs.household_members],
        created_at=db_needs.created_at,
        **{field: getattr(db_needs, field) for field in _NEEDS_FIELDS},
    )
    security_phrase = db_file.security_phrase
    if mask_security_phrase and security_phrase:
        security_phrase = MASKED_SECURITY_PHRASE

    return schemas.EvacuationFile(
        id=db_file.file_number,
        status=db_file.status,
        is_active=db_file.state == EntityState.ACTIVE.value,
        primary_registrant_id=db_file.primary_registrant_id,
        task_id=db_file.task.number if db_file.task else None,
        evacuated_from_code=db_file.evacuated_from.code if db_file.evacuated_from else None,
        evacuation_date=db_file.evacuation_date,
        security_phrase=security_phrase,
        is_restricted=db_file.is_restricted,
        needs_assessment=needs_assessment,
        household_members=[_to_household_member_record(m) for m in db_file.household_members],
        pets=[schemas.Pet(type=p.type, quantity=p.quantity) for p in db_file.pets],
        notes=[
            schemas.Note(
                id=n.id,
                type=n.type,
                content=n.content,
                team_member_id=n.team_member_id,
                is_hidden=n.is_hidden,
                created_at=n.created_at,
            )
            for n in db_file.notes
        ],
        supports=[to_support_record(s) for s in db_file.supports],
        created_at=db_file.created_at,
    )
