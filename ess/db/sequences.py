"""
Generated human-readable numbers.

Files and supports are identified externally by a short numeric string that
the store assigns on insert, separate from the UUID primary key. Each named
sequence is one `number_sequences` row, seeded with its starting value.
"""
from typing import Optional

from sqlalchemy.orm import Session

from ess.db import models

EVACUATION_FILE_SEQUENCE = "evacuation_file"
SUPPORT_SEQUENCE = "support"

DEFAULT_START = 100000
SEQUENCE_STARTS = {
    EVACUATION_FILE_SEQUENCE: DEFAULT_START,
    SUPPORT_SEQUENCE: 1000000,
}


def next_number(db: Session, name: str, start: Optional[int] = None) -> str:
    """Reserve and return the next number for the named sequence.

    The increment is flushed with the caller's unit of work, so the number is
    only consumed when the surrounding transaction commits.
    """
    sequence = (
        db.query(models.NumberSequence)
        .filter(models.NumberSequence.name == name)
        .with_for_update()
        .first()
    )
    if sequence is None:
        # unseeded sequences start on first use
        sequence = models.NumberSequence(name=name, next_value=start or SEQUENCE_STARTS.get(name, DEFAULT_START))
        db.add(sequence)
    value = sequence.next_value
    sequence.next_value = value + 1
    db.flush()
    return str(value)
