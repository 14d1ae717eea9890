import uuid
from datetime import datetime, timedelta, timezone

import pytest

from ess.db import models, schemas
from ess.db.enums import EvacuationFileStatus, SupportCategory
from ess.db.repositories import evacuations as repo
from ess.db.repositories import supports as support_repo

pytestmark = pytest.mark.asyncio


async def _read(session_factory, **criteria):
    return await repo.read_evacuation_files(session_factory, schemas.EvacuationFilesQuery(**criteria))


def _create(session_factory, file):
    with session_factory() as db:
        return repo.create_evacuation_file(db, file)


async def test_read_by_file_number_hydrates_aggregate(session_factory, make_file, reference):
    file_number = _create(session_factory, make_file())
    with session_factory() as db:
        repo.create_note(db, file_number, schemas.Note(content="Checked in"))
        support_repo.save_supports(db, schemas.SaveEvacuationFileSupportCommand(
            file_id=file_number,
            supports=[schemas.Support(category=SupportCategory.FOOD_GROCERIES, supplier_id=reference.supplier_id,
                                     issued_by_id=reference.team_member_id)],
        ))

    files = await _read(session_factory, file_id=file_number)

    assert len(files) == 1
    file = files[0]
    assert file.id == file_number
    assert file.is_active is True
    assert file.task_id == reference.task_number
    assert file.evacuated_from_code == reference.jurisdiction_code
    assert file.security_phrase == repo.MASKED_SECURITY_PHRASE
    assert [(p.type, p.quantity) for p in file.pets] == [("dog", 2)]
    assert [n.content for n in file.notes] == ["Checked in"]
    assert len(file.supports) == 1
    assert file.supports[0].file_id == file_number
    assert file.needs_assessment.have_medication is True
    assert len(file.needs_assessment.household_members) == 2
    primary = next(m for m in file.household_members if m.is_primary_registrant)
    assert primary.linked_registrant.id == reference.registrant_id
    assert primary.linked_registrant.email == "ada@example.com"


async def test_security_phrase_unmasked_on_request(session_factory, make_file):
    file_number = _create(session_factory, make_file())
    files = await _read(session_factory, file_id=file_number, mask_security_phrase=False)
    assert files[0].security_phrase == "blue heron"


async def test_no_criteria_returns_nothing(session_factory, make_file):
    _create(session_factory, make_file())
    assert await _read(session_factory) == []


async def test_read_by_primary_and_linked_registrant(session_factory, make_file, reference):
    file_number = _create(session_factory, make_file())
    _create(
        session_factory,
        make_file(
            primary_registrant_id=reference.other_registrant_id,
            members=[
                schemas.HouseholdMember(registrant_id=reference.other_registrant_id, is_primary_registrant=True),
                schemas.HouseholdMember(registrant_id=reference.registrant_id, first_name="Ada"),
            ],
        ),
    )

    by_primary = await _read(session_factory, primary_registrant_id=reference.registrant_id)
    assert [f.id for f in by_primary] == [file_number]

    by_link = await _read(session_factory, linked_registrant_id=reference.registrant_id)
    assert len(by_link) == 2


async def test_read_by_household_member(session_factory, make_file):
    file_number = _create(session_factory, make_file())
    _create(session_factory, make_file())
    with session_factory() as db:
        member_id = (
            db.query(models.HouseholdMember.id)
            .join(models.EvacuationFile, models.HouseholdMember.evacuation_file_id == models.EvacuationFile.id)
            .filter(models.EvacuationFile.file_number == file_number, models.HouseholdMember.first_name == "Kit")
            .scalar()
        )

    files = await _read(session_factory, household_member_id=member_id)
    assert [f.id for f in files] == [file_number]


async def test_file_id_suppresses_household_member_strategy(session_factory, make_file, reference):
    file_number = _create(session_factory, make_file())
    other = _create(session_factory, make_file())

    files = await _read(session_factory, file_id=other, primary_registrant_id=reference.registrant_id)
    assert [f.id for f in files] == [other]
    assert file_number != other


async def test_results_are_deduplicated(session_factory, make_file, reference):
    file_number = _create(session_factory, make_file())
    with session_factory() as db:
        # a second snapshot adds new member rows linked to the same registrant
        repo.update_evacuation_file(db, make_file(id=file_number))
        assert (
            db.query(models.HouseholdMember)
            .filter(models.HouseholdMember.registrant_id == reference.registrant_id)
            .count()
            == 2
        )

    files = await _read(session_factory, linked_registrant_id=reference.registrant_id)
    assert [f.id for f in files] == [file_number]


async def test_inactive_files_are_excluded(session_factory, make_file, reference):
    file_number = _create(session_factory, make_file())
    with session_factory() as db:
        repo.delete_evacuation_file(db, file_number)

    assert await _read(session_factory, file_id=file_number) == []
    assert await _read(session_factory, primary_registrant_id=reference.registrant_id) == []


async def test_needs_assessment_snapshot_becomes_current(session_factory, make_file):
    file_number = _create(session_factory, make_file())
    with session_factory() as db:
        first_needs_id = (
            db.query(models.EvacuationFile.current_needs_assessment_id)
            .filter(models.EvacuationFile.file_number == file_number)
            .scalar()
        )
        repo.update_evacuation_file(
            db,
            make_file(
                id=file_number,
                needs_assessment=schemas.NeedsAssessment(
                    have_medication=False,
                    household_members=[schemas.HouseholdMember(first_name="Kit")],
                ),
            ),
        )

    current = await _read(session_factory, file_id=file_number)
    assert current[0].needs_assessment.id != first_needs_id
    assert current[0].needs_assessment.have_medication is False

    historic = await _read(session_factory, file_id=file_number, needs_assessment_id=first_needs_id)
    assert len(historic) == 1
    assert historic[0].needs_assessment.id == first_needs_id
    assert historic[0].needs_assessment.have_medication is True
    assert len(historic[0].needs_assessment.household_members) == 2

    # without the file number the needs assessment strategy does not run
    assert await _read(session_factory, needs_assessment_id=first_needs_id) == []


async def test_registration_date_range(session_factory, make_file):
    file_number = _create(session_factory, make_file())
    now = datetime.now(timezone.utc)

    found = await _read(session_factory, registration_date_from=now - timedelta(hours=1))
    assert [f.id for f in found] == [file_number]

    assert await _read(session_factory, registration_date_from=now + timedelta(hours=1)) == []
    assert await _read(session_factory, registration_date_to=now - timedelta(hours=1)) == []


async def test_status_filter(session_factory, make_file):
    active = _create(session_factory, make_file())
    pending = _create(session_factory, make_file(status=EvacuationFileStatus.PENDING))
    since = datetime.now(timezone.utc) - timedelta(hours=1)

    files = await _read(
        session_factory, registration_date_from=since, include_file_statuses=[EvacuationFileStatus.PENDING]
    )
    assert [f.id for f in files] == [pending]
    assert active != pending


async def test_limit_keeps_highest_file_numbers(session_factory, make_file):
    numbers = [_create(session_factory, make_file()) for _ in range(3)]
    since = datetime.now(timezone.utc) - timedelta(hours=1)

    files = await _read(session_factory, registration_date_from=since, limit=2)
    assert [f.id for f in files] == sorted(numbers, reverse=True)[:2]


async def test_file_without_needs_assessment_is_skipped(session_factory, make_file, reference):
    with session_factory() as db:
        # simulates a failure between the two writes
        db.add(models.EvacuationFile(
            id=uuid.uuid4(), file_number="555555", primary_registrant_id=reference.registrant_id,
        ))
        db.commit()

    assert await _read(session_factory, file_id="555555") == []


async def test_hydration_with_single_worker(session_factory, make_file):
    numbers = sorted((_create(session_factory, make_file()) for _ in range(4)), reverse=True)
    since = datetime.now(timezone.utc) - timedelta(hours=1)

    files = await repo.read_evacuation_files(
        session_factory, schemas.EvacuationFilesQuery(registration_date_from=since), max_concurrency=1
    )
    assert sorted((f.id for f in files), reverse=True) == numbers
