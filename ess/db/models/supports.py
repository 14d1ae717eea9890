import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Index, Integer, Numeric, Table, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


# Support beneficiaries
support_household_members = Table(
    'support_household_members',
    Base.metadata,
    Column('support_id', UUID(as_uuid=True), ForeignKey('supports.id', ondelete='CASCADE'), primary_key=True),
    Column('household_member_id', UUID(as_uuid=True), ForeignKey('household_members.id', ondelete='CASCADE'), primary_key=True),
)


class Support(Base):
    __tablename__ = 'supports'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    support_number = Column(String(32), nullable=False, unique=True)
    evacuation_file_id = Column(UUID(as_uuid=True), ForeignKey('evacuation_files.id'), nullable=False)
    needs_assessment_id = Column(UUID(as_uuid=True), ForeignKey('needs_assessments.id'), nullable=False)
    category = Column(String(50), nullable=False)
    delivery_method = Column(String(20), nullable=False)  # referral|etransfer
    state = Column(String(20), nullable=False, default='active')  # active|inactive
    status = Column(String(20), nullable=False, default='active')
    void_reason = Column(String(50), nullable=True)
    supplier_id = Column(UUID(as_uuid=True), ForeignKey('suppliers.id'), nullable=True)
    payee_id = Column(UUID(as_uuid=True), ForeignKey('registrants.id'), nullable=True)
    group_lodging_city_id = Column(UUID(as_uuid=True), ForeignKey('jurisdictions.id'), nullable=True)
    issued_by_id = Column(UUID(as_uuid=True), ForeignKey('team_members.id'), nullable=True)
    manual_referral_id = Column(String(50), nullable=True)
    amount = Column(Numeric(12, 2), nullable=True)
    from_date = Column(DateTime(timezone=True), nullable=True)
    to_date = Column(DateTime(timezone=True), nullable=True)
    notification_email = Column(String(255), nullable=True)
    notification_phone = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    evacuation_file = relationship("EvacuationFile", back_populates="supports")
    needs_assessment = relationship("NeedsAssessment")
    supplier = relationship("Supplier")
    payee = relationship("Registrant")
    group_lodging_city = relationship("Jurisdiction")
    issued_by = relationship("TeamMember")
    household_members = relationship("HouseholdMember", secondary=support_household_members)
    flags = relationship(
        "SupportFlag", foreign_keys="SupportFlag.support_id", back_populates="support", order_by="SupportFlag.created_at"
    )

    __table_args__ = (
        Index('idx_supports_evacuation_file_id', 'evacuation_file_id'),
        Index('idx_supports_status', 'status'),
        Index('idx_supports_manual_referral_id', 'manual_referral_id'),
    )


class SupportFlag(Base):
    __tablename__ = 'support_flags'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    support_id = Column(UUID(as_uuid=True), ForeignKey('supports.id'), nullable=False)
    flag_type = Column(String(30), nullable=False)  # duplicate|amount_override|limit_exceeded
    duplicate_support_id = Column(UUID(as_uuid=True), ForeignKey('supports.id'), nullable=True)
    approver_name = Column(String(255), nullable=True)
    reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    support = relationship("Support", foreign_keys=[support_id], back_populates="flags")
    duplicate_support = relationship("Support", foreign_keys=[duplicate_support_id])

    __table_args__ = (
        Index('idx_support_flags_support_id', 'support_id'),
    )


class Queue(Base):
    __tablename__ = 'queues'
    id = Column(UUID(as_uuid=True), primary_key=True)
    name = Column(String(255), nullable=False)


class QueueItem(Base):
    __tablename__ = 'queue_items'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    queue_id = Column(UUID(as_uuid=True), ForeignKey('queues.id'), nullable=False)
    object_id = Column(UUID(as_uuid=True), ForeignKey('supports.id'), nullable=False)
    object_type_code = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    queue = relationship("Queue")

    __table_args__ = (
        Index('idx_queue_items_queue_id', 'queue_id'),
    )
