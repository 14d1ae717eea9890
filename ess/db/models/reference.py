import uuid
from sqlalchemy import Column, String, DateTime, Boolean, Date, Integer
from sqlalchemy.dialects.postgresql import UUID
from .base import Base, now_utc


class Jurisdiction(Base):
    __tablename__ = 'jurisdictions'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    code = Column(String(50), nullable=False, unique=True)
    name = Column(String(255), nullable=False)


class Registrant(Base):
    """Person profile referenced by files, household members and e-transfer payees."""
    __tablename__ = 'registrants'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)


class TeamMember(Base):
    __tablename__ = 'team_members'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)


class Task(Base):
    __tablename__ = 'tasks'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    number = Column(String(50), nullable=False, unique=True)
    description = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default='active')
    start_date = Column(DateTime(timezone=True), nullable=True)
    end_date = Column(DateTime(timezone=True), nullable=True)


class Supplier(Base):
    __tablename__ = 'suppliers'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    legal_name = Column(String(255), nullable=True)
    gst_number = Column(String(50), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)


class NumberSequence(Base):
    """Counter backing generated human-readable numbers (file and support numbers)."""
    __tablename__ = 'number_sequences'
    name = Column(String(50), primary_key=True)
    next_value = Column(Integer, nullable=False)
