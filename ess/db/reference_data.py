"""
Fixed reference rows the service depends on.

The two support routing queues are external configuration: their ids are
constants and repositories look them up by id rather than by name. The
number sequences are seeded up front so concurrent first inserts never race
to create the same sequence row.
"""
import logging
import uuid

from sqlalchemy.orm import Session

from ess.db import models
from ess.db.sequences import SEQUENCE_STARTS

logger = logging.getLogger(__name__)

APPROVAL_QUEUE_ID = uuid.UUID("a4f0fbbe-89a1-ec11-b831-00505683fbf4")
REVIEW_QUEUE_ID = uuid.UUID("e969aae7-8aa1-ec11-b831-00505683fbf4")

QUEUES = {
    APPROVAL_QUEUE_ID: "ESS Support Approval",
    REVIEW_QUEUE_ID: "ESS Support Review",
}


def seed_reference_data(db: Session) -> int:
    """Insert missing routing queues and number sequences. Returns the number of rows created."""
    queues = 0
    for queue_id, name in QUEUES.items():
        if db.get(models.Queue, queue_id) is None:
            db.add(models.Queue(id=queue_id, name=name))
            queues += 1

    sequences = 0
    for name, start in SEQUENCE_STARTS.items():
        if db.get(models.NumberSequence, name) is None:
            db.add(models.NumberSequence(name=name, next_value=start))
            sequences += 1

    created = queues + sequences
    if created:
        db.commit()
        logger.info("reference_data_seeded: queues=%d sequences=%d", queues, sequences)
    return created
