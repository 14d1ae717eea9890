from ess.db import models
from ess.db.reference_data import APPROVAL_QUEUE_ID, REVIEW_QUEUE_ID, seed_reference_data
from ess.db.sequences import next_number


def test_queues_are_seeded_once(db):
    # the session_factory fixture has already seeded
    assert seed_reference_data(db) == 0
    assert {q.id for q in db.query(models.Queue).all()} == {APPROVAL_QUEUE_ID, REVIEW_QUEUE_ID}


def test_seed_restores_missing_queue(db):
    db.query(models.Queue).filter(models.Queue.id == REVIEW_QUEUE_ID).delete()
    db.commit()
    assert seed_reference_data(db) == 1
    assert db.get(models.Queue, REVIEW_QUEUE_ID).name == "ESS Support Review"


def test_next_number_is_per_sequence(db):
    assert next_number(db, "evacuation_file") == "100000"
    assert next_number(db, "evacuation_file") == "100001"
    assert next_number(db, "support", start=1000000) == "1000000"
    db.commit()
    assert db.get(models.NumberSequence, "evacuation_file").next_value == 100002


def test_uncommitted_numbers_are_not_consumed(db):
    next_number(db, "evacuation_file")
    db.rollback()
    assert next_number(db, "evacuation_file") == "100000"


def test_number_sequences_are_seeded(db):
    assert db.get(models.NumberSequence, "evacuation_file").next_value == 100000
    assert db.get(models.NumberSequence, "support").next_value == 1000000


def test_seed_restores_missing_sequence(db):
    db.query(models.NumberSequence).filter(models.NumberSequence.name == "support").delete()
    db.commit()
    assert seed_reference_data(db) == 1
    assert next_number(db, "support") == "1000000"
