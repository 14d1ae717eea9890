import os
import uuid
from datetime import date, datetime, timezone
from types import SimpleNamespace

import pytest
from sqlalchemy.orm import sessionmaker

os.environ.setdefault("PYTEST_RUNNING", "1")
os.environ.setdefault("ESS_SEED_REFERENCE_DATA", "false")

from ess.db import models, schemas
from ess.db.database import build_engine
from ess.db.reference_data import seed_reference_data


@pytest.fixture
def engine(tmp_path):
    # File-backed so worker threads used for hydration share one database
    eng = build_engine(f"sqlite:///{tmp_path / 'ess.db'}")
    models.Base.metadata.create_all(bind=eng)
    try:
        yield eng
    finally:
        eng.dispose()


@pytest.fixture
def session_factory(engine):
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    with factory() as db:
        seed_reference_data(db)
    return factory


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def reference(session_factory):
    """Registrants, staff, a task, suppliers and jurisdictions the writers resolve against."""
    ids = SimpleNamespace(
        registrant_id=uuid.uuid4(),
        other_registrant_id=uuid.uuid4(),
        inactive_registrant_id=uuid.uuid4(),
        team_member_id=uuid.uuid4(),
        supplier_id=uuid.uuid4(),
        inactive_supplier_id=uuid.uuid4(),
        task_number="T-2021-001",
        jurisdiction_code="VIC",
        other_jurisdiction_code="NAN",
    )
    with session_factory() as db:
        db.add_all([
            models.Registrant(id=ids.registrant_id, first_name="Ada", last_name="Moss", email="ada@example.com",
                              date_of_birth=date(1980, 2, 1)),
            models.Registrant(id=ids.other_registrant_id, first_name="Ben", last_name="Moss"),
            models.Registrant(id=ids.inactive_registrant_id, first_name="Cy", last_name="Gone", is_active=False),
            models.TeamMember(id=ids.team_member_id, first_name="Rae", last_name="Staff"),
            models.Supplier(id=ids.supplier_id, name="Harbour Inn"),
            models.Supplier(id=ids.inactive_supplier_id, name="Closed Motel", is_active=False),
            models.Task(number=ids.task_number, description="Wildfire response",
                        start_date=datetime(2021, 7, 1, tzinfo=timezone.utc)),
            models.Jurisdiction(code=ids.jurisdiction_code, name="Victoria"),
            models.Jurisdiction(code=ids.other_jurisdiction_code, name="Nanaimo"),
        ])
        db.commit()
    return ids


@pytest.fixture
def make_file(reference):
    """Build an evacuation file record; keyword arguments override the defaults."""

    def _make(**overrides):
        members = overrides.pop("members", None)
        if members is None:
            members = [
                schemas.HouseholdMember(
                    registrant_id=reference.registrant_id,
                    is_primary_registrant=True,
                    first_name="Ada",
                    last_name="Moss",
                    date_of_birth=date(1980, 2, 1),
                ),
                schemas.HouseholdMember(first_name="Kit", last_name="Moss", is_under_19=True),
            ]
        needs_assessment = overrides.pop(
            "needs_assessment",
            schemas.NeedsAssessment(
                jurisdiction_code=reference.jurisdiction_code,
                can_provide_food=False,
                have_medication=True,
                household_members=members,
            ),
        )
        values = dict(
            primary_registrant_id=reference.registrant_id,
            task_id=reference.task_number,
            evacuated_from_code=reference.jurisdiction_code,
            evacuation_date=datetime(2021, 7, 12, 18, 0, tzinfo=timezone.utc),
            security_phrase="blue heron",
            needs_assessment=needs_assessment,
            pets=[schemas.Pet(type="dog", quantity=2)],
        )
        values.update(overrides)
        return schemas.EvacuationFile(**values)

    return _make
