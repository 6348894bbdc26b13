"""Create verification workflow tables

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    # Create updated_at trigger function (reused by all mutable tables)
    op.execute("""
        CREATE OR REPLACE FUNCTION update_updated_at_column()
        RETURNS TRIGGER AS $$
        BEGIN
          NEW.updated_at = NOW();
          RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)

    # Accounts
    op.create_table(
        'app_user',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('role', sa.Text(), nullable=False),
        sa.Column('jurisdiction', sa.Text(), nullable=True),
        sa.Column('full_name', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('phone_number', sa.Text(), nullable=True),
        sa.Column('organization', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint("role IN ('submitter', 'moderator', 'admin')", name='ck_app_user_role')
    )
    op.create_index('ix_app_user_role_jurisdiction', 'app_user', ['role', 'jurisdiction'])

    op.execute("""
        CREATE TRIGGER update_app_user_updated_at
        BEFORE UPDATE ON app_user
        FOR EACH ROW
        EXECUTE FUNCTION update_updated_at_column();
    """)

    # One-time invite codes
    op.create_table(
        'registration_code',
        sa.Column('code', sa.Text(), nullable=False),
        sa.Column('role', sa.Text(), nullable=False),
        sa.Column('full_name', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('phone_number', sa.Text(), nullable=True),
        sa.Column('organization', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('created_by', sa.Text(), nullable=True),
        sa.Column('consumed', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('consumed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('consumed_by', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('code'),
        sa.CheckConstraint("role IN ('user', 'moderator')", name='ck_registration_code_role')
    )

    # Verification documents (never deleted)
    op.create_table(
        'verification_document',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('submitter_id', sa.Text(), nullable=False),
        sa.Column('full_name', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=True),
        sa.Column('phone', sa.Text(), nullable=True),
        sa.Column('street', sa.Text(), nullable=False),
        sa.Column('city', sa.Text(), nullable=False),
        sa.Column('state', sa.Text(), nullable=False),
        sa.Column('country', sa.Text(), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('region', sa.Text(), nullable=True),
        sa.Column('geocode_pending', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('status', sa.Text(), server_default='pending_assignment', nullable=False),
        sa.Column('assigned_moderator_id', sa.Text(), nullable=True),
        sa.Column('assigned_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('address_exists', sa.Boolean(), nullable=True),
        sa.Column('building_type', sa.Text(), nullable=True),
        sa.Column('occupant_met', sa.Boolean(), nullable=True),
        sa.Column('relationship', sa.Text(), nullable=True),
        sa.Column('comments', sa.Text(), nullable=True),
        sa.Column('photo_reference', sa.Text(), nullable=True),
        sa.Column('findings_distance_meters', sa.Float(), nullable=True),
        sa.Column('findings_submitted_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('decided_by', sa.Text(), nullable=True),
        sa.Column('decided_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('decision_notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            "status IN ('pending_assignment', 'assigned_to_moderator', 'moderator_verified', "
            "'verification_failed', 'verified', 'rejected')",
            name='ck_verification_document_status'
        )
    )
    op.create_index('ix_verification_document_submitter', 'verification_document', ['submitter_id'])
    op.create_index('ix_verification_document_status', 'verification_document', ['status'])
    op.create_index(
        'ix_verification_document_moderator_status',
        'verification_document',
        ['assigned_moderator_id', 'status']
    )
    op.create_index('ix_verification_document_created', 'verification_document', ['created_at', 'id'])

    op.execute("""
        CREATE TRIGGER update_verification_document_updated_at
        BEFORE UPDATE ON verification_document
        FOR EACH ROW
        EXECUTE FUNCTION update_updated_at_column();
    """)

    # Append-only audit trail
    op.create_table(
        'audit_event',
        sa.Column('id', sa.BigInteger(), sa.Identity(always=False), nullable=False),
        sa.Column('document_id', sa.Text(), nullable=True),
        sa.Column('actor_id', sa.Text(), nullable=True),
        sa.Column('actor_role', sa.Text(), nullable=True),
        sa.Column('action', sa.Text(), nullable=False),
        sa.Column('prior_status', sa.Text(), nullable=True),
        sa.Column('new_status', sa.Text(), nullable=True),
        sa.Column('outcome', sa.Text(), nullable=False),
        sa.Column('failure_kind', sa.Text(), nullable=True),
        sa.Column('override', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('payload', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint("outcome IN ('accepted', 'denied')", name='ck_audit_event_outcome')
    )
    op.create_index('ix_audit_event_document_id', 'audit_event', ['document_id', 'id'])
    op.create_index('ix_audit_event_actor_id', 'audit_event', ['actor_id'])

    # Audit rows are immutable
    op.execute("""
        CREATE OR REPLACE FUNCTION reject_audit_event_change()
        RETURNS TRIGGER AS $$
        BEGIN
          RAISE EXCEPTION 'audit_event is append-only';
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TRIGGER audit_event_append_only
        BEFORE UPDATE OR DELETE ON audit_event
        FOR EACH ROW
        EXECUTE FUNCTION reject_audit_event_change();
    """)


def downgrade():
    op.execute('DROP TRIGGER IF EXISTS audit_event_append_only ON audit_event')
    op.execute('DROP FUNCTION IF EXISTS reject_audit_event_change()')
    op.drop_index('ix_audit_event_actor_id', table_name='audit_event')
    op.drop_index('ix_audit_event_document_id', table_name='audit_event')
    op.drop_table('audit_event')

    op.execute('DROP TRIGGER IF EXISTS update_verification_document_updated_at ON verification_document')
    op.drop_index('ix_verification_document_created', table_name='verification_document')
    op.drop_index('ix_verification_document_moderator_status', table_name='verification_document')
    op.drop_index('ix_verification_document_status', table_name='verification_document')
    op.drop_index('ix_verification_document_submitter', table_name='verification_document')
    op.drop_table('verification_document')

    op.drop_table('registration_code')

    op.execute('DROP TRIGGER IF EXISTS update_app_user_updated_at ON app_user')
    op.drop_index('ix_app_user_role_jurisdiction', table_name='app_user')
    op.drop_table('app_user')

    op.execute('DROP FUNCTION IF EXISTS update_updated_at_column()')
