import uuid
from sqlalchemy import Column, String, DateTime, Boolean, Date, ForeignKey, Index, Integer, Table, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


# Needs assessment <-> household member. Independent of household_members.evacuation_file_id.
needs_assessment_household_members = Table(
    'needs_assessment_household_members',
    Base.metadata,
    Column('needs_assessment_id', UUID(as_uuid=True), ForeignKey('needs_assessments.id', ondelete='CASCADE'), primary_key=True),
    Column('household_member_id', UUID(as_uuid=True), ForeignKey('household_members.id', ondelete='CASCADE'), primary_key=True),
)


class EvacuationFile(Base):
    __tablename__ = 'evacuation_files'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    file_number = Column(String(32), nullable=False, unique=True)
    state = Column(String(20), nullable=False, default='active')  # active|inactive
    status = Column(String(20), nullable=False, default='active')  # pending|active|expired|completed|archived
    primary_registrant_id = Column(UUID(as_uuid=True), ForeignKey('registrants.id'), nullable=False)
    task_id = Column(UUID(as_uuid=True), ForeignKey('tasks.id'), nullable=True)
    evacuated_from_id = Column(UUID(as_uuid=True), ForeignKey('jurisdictions.id'), nullable=True)
    current_needs_assessment_id = Column(
        UUID(as_uuid=True),
        ForeignKey('needs_assessments.id', use_alter=True, name='fk_evacuation_files_current_needs_assessment_id'),
        nullable=True,
    )
    evacuation_date = Column(DateTime(timezone=True), nullable=True)
    security_phrase = Column(String(100), nullable=True)
    is_restricted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    primary_registrant = relationship("Registrant", foreign_keys=[primary_registrant_id])
    task = relationship("Task")
    evacuated_from = relationship("Jurisdiction", foreign_keys=[evacuated_from_id])
    current_needs_assessment = relationship(
        "NeedsAssessment", foreign_keys=[current_needs_assessment_id], post_update=True
    )
    needs_assessments = relationship(
        "NeedsAssessment", foreign_keys="NeedsAssessment.evacuation_file_id", back_populates="evacuation_file"
    )
    household_members = relationship("HouseholdMember", back_populates="evacuation_file")
    pets = relationship("Pet", back_populates="evacuation_file", cascade="all, delete-orphan")
    notes = relationship("Note", back_populates="evacuation_file", order_by="Note.created_at")
    supports = relationship("Support", back_populates="evacuation_file", order_by="Support.created_at")

    __table_args__ = (
        Index('idx_evacuation_files_primary_registrant_id', 'primary_registrant_id'),
        Index('idx_evacuation_files_created_at', 'created_at'),
    )


class NeedsAssessment(Base):
    __tablename__ = 'needs_assessments'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    evacuation_file_id = Column(UUID(as_uuid=True), ForeignKey('evacuation_files.id'), nullable=False)
    jurisdiction_id = Column(UUID(as_uuid=True), ForeignKey('jurisdictions.id'), nullable=True)
    reviewed_by_id = Column(UUID(as_uuid=True), ForeignKey('team_members.id'), nullable=True)
    type = Column(String(20), nullable=False, default='preliminary')
    insurance = Column(String(50), nullable=True)
    can_provide_food = Column(Boolean, nullable=True)
    can_provide_lodging = Column(Boolean, nullable=True)
    can_provide_clothing = Column(Boolean, nullable=True)
    can_provide_transportation = Column(Boolean, nullable=True)
    can_provide_incidentals = Column(Boolean, nullable=True)
    have_medication = Column(Boolean, nullable=True)
    have_special_diet = Column(Boolean, nullable=True)
    special_diet_details = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    evacuation_file = relationship(
        "EvacuationFile", foreign_keys=[evacuation_file_id], back_populates="needs_assessments"
    )
    jurisdiction = relationship("Jurisdiction")
    reviewed_by = relationship("TeamMember")
    household_members = relationship(
        "HouseholdMember", secondary=needs_assessment_household_members, back_populates="needs_assessments"
    )

    __table_args__ = (
        Index('idx_needs_assessments_evacuation_file_id', 'evacuation_file_id'),
    )


class HouseholdMember(Base):
    __tablename__ = 'household_members'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    evacuation_file_id = Column(UUID(as_uuid=True), ForeignKey('evacuation_files.id'), nullable=True)
    registrant_id = Column(UUID(as_uuid=True), ForeignKey('registrants.id'), nullable=True)
    is_primary_registrant = Column(Boolean, nullable=False, default=False)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    initials = Column(String(10), nullable=True)
    gender = Column(String(20), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    is_under_19 = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)

    evacuation_file = relationship("EvacuationFile", back_populates="household_members")
    registrant = relationship("Registrant")
    needs_assessments = relationship(
        "NeedsAssessment", secondary=needs_assessment_household_members, back_populates="household_members"
    )

    __table_args__ = (
        Index('idx_household_members_evacuation_file_id', 'evacuation_file_id'),
        Index('idx_household_members_registrant_id', 'registrant_id'),
    )


class Pet(Base):
    __tablename__ = 'pets'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    evacuation_file_id = Column(UUID(as_uuid=True), ForeignKey('evacuation_files.id'), nullable=False)
    type = Column(String(100), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)

    evacuation_file = relationship("EvacuationFile", back_populates="pets")


class Note(Base):
    __tablename__ = 'notes'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    evacuation_file_id = Column(UUID(as_uuid=True), ForeignKey('evacuation_files.id'), nullable=False)
    team_member_id = Column(UUID(as_uuid=True), ForeignKey('team_members.id'), nullable=True)
    type = Column(String(20), nullable=False, default='general')
    content = Column(Text, nullable=False)
    is_hidden = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    evacuation_file = relationship("EvacuationFile", back_populates="notes")
    team_member = relationship("TeamMember")
