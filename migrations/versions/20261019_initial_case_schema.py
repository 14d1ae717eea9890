"""
Initial case management schema.

Creates reference tables (jurisdictions, registrants, team members, tasks,
suppliers), the evacuation file aggregate, supports with their flags and
beneficiaries, the approval queues with their two fixed rows, and the file
and support number sequences with their starting values.

evacuation_files.current_needs_assessment_id and needs_assessments.evacuation_file_id
reference each other, so the current pointer FK is added once both tables exist.
"""
import uuid

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = 'initial_case_schema_20261019'
down_revision = None
branch_labels = None
depends_on = None

APPROVAL_QUEUE_ID = uuid.UUID('a4f0fbbe-89a1-ec11-b831-00505683fbf4')
REVIEW_QUEUE_ID = uuid.UUID('e969aae7-8aa1-ec11-b831-00505683fbf4')


def upgrade() -> None:
    op.create_table(
        'jurisdictions',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('code', sa.String(50), nullable=False, unique=True),
        sa.Column('name', sa.String(255), nullable=False),
    )
    op.create_table(
        'registrants',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('first_name', sa.String(100), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
    )
    op.create_table(
        'team_members',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('first_name', sa.String(100), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_table(
        'tasks',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('number', sa.String(50), nullable=False, unique=True),
        sa.Column('description', sa.String(255), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('start_date', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('end_date', sa.TIMESTAMP(timezone=True), nullable=True),
    )
    op.create_table(
        'suppliers',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('legal_name', sa.String(255), nullable=True),
        sa.Column('gst_number', sa.String(50), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    number_sequences = op.create_table(
        'number_sequences',
        sa.Column('name', sa.String(50), primary_key=True),
        sa.Column('next_value', sa.Integer(), nullable=False),
    )

    op.create_table(
        'evacuation_files',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('file_number', sa.String(32), nullable=False, unique=True),
        sa.Column('state', sa.String(20), sa.CheckConstraint("state IN ('active', 'inactive')"), nullable=False, server_default='active'),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('primary_registrant_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('registrants.id'), nullable=False),
        sa.Column('task_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('tasks.id'), nullable=True),
        sa.Column('evacuated_from_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('jurisdictions.id'), nullable=True),
        sa.Column('current_needs_assessment_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('evacuation_date', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('security_phrase', sa.String(100), nullable=True),
        sa.Column('is_restricted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
    )
    op.create_index('idx_evacuation_files_primary_registrant_id', 'evacuation_files', ['primary_registrant_id'])
    op.create_index('idx_evacuation_files_created_at', 'evacuation_files', ['created_at'])

    op.create_table(
        'needs_assessments',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('evacuation_file_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('evacuation_files.id'), nullable=False),
        sa.Column('jurisdiction_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('jurisdictions.id'), nullable=True),
        sa.Column('reviewed_by_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('team_members.id'), nullable=True),
        sa.Column('type', sa.String(20), nullable=False, server_default='preliminary'),
        sa.Column('insurance', sa.String(50), nullable=True),
        sa.Column('can_provide_food', sa.Boolean(), nullable=True),
        sa.Column('can_provide_lodging', sa.Boolean(), nullable=True),
        sa.Column('can_provide_clothing', sa.Boolean(), nullable=True),
        sa.Column('can_provide_transportation', sa.Boolean(), nullable=True),
        sa.Column('can_provide_incidentals', sa.Boolean(), nullable=True),
        sa.Column('have_medication', sa.Boolean(), nullable=True),
        sa.Column('have_special_diet', sa.Boolean(), nullable=True),
        sa.Column('special_diet_details', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
    )
    op.create_index('idx_needs_assessments_evacuation_file_id', 'needs_assessments', ['evacuation_file_id'])
    op.create_foreign_key(
        'fk_evacuation_files_current_needs_assessment_id',
        'evacuation_files', 'needs_assessments',
        ['current_needs_assessment_id'], ['id'],
    )

    op.create_table(
        'household_members',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('evacuation_file_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('evacuation_files.id'), nullable=True),
        sa.Column('registrant_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('registrants.id'), nullable=True),
        sa.Column('is_primary_registrant', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('first_name', sa.String(100), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=True),
        sa.Column('initials', sa.String(10), nullable=True),
        sa.Column('gender', sa.String(20), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('is_under_19', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index('idx_household_members_evacuation_file_id', 'household_members', ['evacuation_file_id'])
    op.create_index('idx_household_members_registrant_id', 'household_members', ['registrant_id'])

    op.create_table(
        'needs_assessment_household_members',
        sa.Column('needs_assessment_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('needs_assessments.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('household_member_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('household_members.id', ondelete='CASCADE'), primary_key=True),
    )

    op.create_table(
        'pets',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('evacuation_file_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('evacuation_files.id'), nullable=False),
        sa.Column('type', sa.String(100), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
    )

    op.create_table(
        'notes',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('evacuation_file_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('evacuation_files.id'), nullable=False),
        sa.Column('team_member_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('team_members.id'), nullable=True),
        sa.Column('type', sa.String(20), nullable=False, server_default='general'),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('is_hidden', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
    )

    op.create_table(
        'supports',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('support_number', sa.String(32), nullable=False, unique=True),
        sa.Column('evacuation_file_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('evacuation_files.id'), nullable=False),
        sa.Column('needs_assessment_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('needs_assessments.id'), nullable=False),
        sa.Column('category', sa.String(50), nullable=False),
        sa.Column('delivery_method', sa.String(20), sa.CheckConstraint("delivery_method IN ('referral', 'etransfer')"), nullable=False),
        sa.Column('state', sa.String(20), sa.CheckConstraint("state IN ('active', 'inactive')"), nullable=False, server_default='active'),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('void_reason', sa.String(50), nullable=True),
        sa.Column('supplier_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('suppliers.id'), nullable=True),
        sa.Column('payee_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('registrants.id'), nullable=True),
        sa.Column('group_lodging_city_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('jurisdictions.id'), nullable=True),
        sa.Column('issued_by_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('team_members.id'), nullable=True),
        sa.Column('manual_referral_id', sa.String(50), nullable=True),
        sa.Column('amount', sa.Numeric(12, 2), nullable=True),
        sa.Column('from_date', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('to_date', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('notification_email', sa.String(255), nullable=True),
        sa.Column('notification_phone', sa.String(50), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
    )
    op.create_index('idx_supports_evacuation_file_id', 'supports', ['evacuation_file_id'])
    op.create_index('idx_supports_status', 'supports', ['status'])
    op.create_index('idx_supports_manual_referral_id', 'supports', ['manual_referral_id'])

    op.create_table(
        'support_household_members',
        sa.Column('support_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('supports.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('household_member_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('household_members.id', ondelete='CASCADE'), primary_key=True),
    )

    op.create_table(
        'support_flags',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('support_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('supports.id'), nullable=False),
        sa.Column('flag_type', sa.String(30), sa.CheckConstraint("flag_type IN ('duplicate', 'amount_override', 'limit_exceeded')"), nullable=False),
        sa.Column('duplicate_support_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('supports.id'), nullable=True),
        sa.Column('approver_name', sa.String(255), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
    )
    op.create_index('idx_support_flags_support_id', 'support_flags', ['support_id'])

    queues = op.create_table(
        'queues',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
    )
    op.create_table(
        'queue_items',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('queue_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('queues.id'), nullable=False),
        sa.Column('object_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('supports.id'), nullable=False),
        sa.Column('object_type_code', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
    )
    op.create_index('idx_queue_items_queue_id', 'queue_items', ['queue_id'])

    op.bulk_insert(
        queues,
        [
            {'id': APPROVAL_QUEUE_ID, 'name': 'ESS Support Approval'},
            {'id': REVIEW_QUEUE_ID, 'name': 'ESS Support Review'},
        ],
    )
    op.bulk_insert(
        number_sequences,
        [
            {'name': 'evacuation_file', 'next_value': 100000},
            {'name': 'support', 'next_value': 1000000},
        ],
    )


def downgrade() -> None:
    op.drop_index('idx_queue_items_queue_id', table_name='queue_items')
    op.drop_table('queue_items')
    op.drop_table('queues')
    op.drop_index('idx_support_flags_support_id', table_name='support_flags')
    op.drop_table('support_flags')
    op.drop_table('support_household_members')
    op.drop_index('idx_supports_manual_referral_id', table_name='supports')
    op.drop_index('idx_supports_status', table_name='supports')
    op.drop_index('idx_supports_evacuation_file_id', table_name='supports')
    op.drop_table('supports')
    op.drop_table('notes')
    op.drop_table('pets')
    op.drop_table('needs_assessment_household_members')
    op.drop_index('idx_household_members_registrant_id', table_name='household_members')
    op.drop_index('idx_household_members_evacuation_file_id', table_name='household_members')
    op.drop_table('household_members')
    op.drop_constraint('fk_evacuation_files_current_needs_assessment_id', 'evacuation_files', type_='foreignkey')
    op.drop_index('idx_needs_assessments_evacuation_file_id', table_name='needs_assessments')
    op.drop_table('needs_assessments')
    op.drop_index('idx_evacuation_files_created_at', table_name='evacuation_files')
    op.drop_index('idx_evacuation_files_primary_registrant_id', table_name='evacuation_files')
    op.drop_table('evacuation_files')
    op.drop_table('number_sequences')
    op.drop_table('suppliers')
    op.drop_table('tasks')
    op.drop_table('team_members')
    op.drop_table('registrants')
    op.drop_table('jurisdictions')
