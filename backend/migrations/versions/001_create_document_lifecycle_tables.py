"""Create document lifecycle, hierarchy and audit trail tables

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


LIFECYCLE_ACTION_TYPES = [
    ('view', 'User viewed a document'),
    ('edit', 'User edited document metadata'),
    ('process', 'User marked a document as processed'),
    ('unprocess', 'User marked a document as unprocessed'),
    ('trash', 'User moved a document to trash'),
    ('restore', 'User restored a document from trash'),
]


def _timestamp(name, nullable=False):
    return sa.Column(name, sa.TIMESTAMP(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=nullable)


def upgrade():
    # Users and groups
    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=True),
        sa.Column('first_name', sa.Text(), nullable=True),
        sa.Column('last_name', sa.Text(), nullable=True),
        sa.Column('status', sa.Text(), server_default='ACTIVE', nullable=False),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username', name='uq_user_username'),
        sa.CheckConstraint("status IN ('ACTIVE', 'DISABLED')", name='ck_user_status'),
    )

    op.create_table(
        'user_group',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        _timestamp('created_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', name='uq_user_group_name'),
    )

    # Metadata hierarchy: Policy -> Loss -> Claimant, plus Producer
    op.create_table(
        'policy_prefix',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', name='uq_policy_prefix_name'),
    )

    op.create_table(
        'policy',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('policy_prefix_id', sa.Integer(), nullable=True),
        sa.Column('number', sa.Text(), nullable=False),
        sa.Column('effective_date', sa.Date(), nullable=True),
        sa.Column('expiration_date', sa.Date(), nullable=True),
        sa.Column('status', sa.Text(), server_default='ACTIVE', nullable=False),
        _timestamp('created_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['policy_prefix_id'], ['policy_prefix.id'], ondelete='RESTRICT'),
    )
    op.create_index('ix_policy_number', 'policy', ['number'])

    op.create_table(
        'producer',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('number', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('status', sa.Text(), server_default='ACTIVE', nullable=False),
        _timestamp('created_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('number', name='uq_producer_number'),
    )

    op.create_table(
        'loss',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('date', sa.Date(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.Text(), server_default='ACTIVE', nullable=False),
        _timestamp('created_at'),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'claimant',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('first_name', sa.Text(), nullable=True),
        sa.Column('last_name', sa.Text(), nullable=True),
        sa.Column('organization_name', sa.Text(), nullable=True),
        sa.Column('status', sa.Text(), server_default='ACTIVE', nullable=False),
        _timestamp('created_at'),
        sa.PrimaryKeyConstraint('id'),
    )

    # Association rows; created_at drives the display sequence numbers
    op.create_table(
        'map_producer_policy',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('producer_id', sa.Integer(), nullable=False),
        sa.Column('policy_id', sa.Integer(), nullable=False),
        _timestamp('created_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['producer_id'], ['producer.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['policy_id'], ['policy.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('producer_id', 'policy_id', name='uq_map_producer_policy'),
    )

    op.create_table(
        'map_policy_loss',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('policy_id', sa.Integer(), nullable=False),
        sa.Column('loss_id', sa.Integer(), nullable=False),
        _timestamp('created_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['policy_id'], ['policy.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['loss_id'], ['loss.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('policy_id', 'loss_id', name='uq_map_policy_loss'),
    )
    op.create_index('ix_map_policy_loss_policy_created', 'map_policy_loss', ['policy_id', 'created_at'])

    op.create_table(
        'map_loss_claimant',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('loss_id', sa.Integer(), nullable=False),
        sa.Column('claimant_id', sa.Integer(), nullable=False),
        _timestamp('created_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['loss_id'], ['loss.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['claimant_id'], ['claimant.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('loss_id', 'claimant_id', name='uq_map_loss_claimant'),
    )
    op.create_index('ix_map_loss_claimant_loss_created', 'map_loss_claimant', ['loss_id', 'created_at'])

    # Documents
    op.create_table(
        'document',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('date_received', sa.Date(), nullable=True),
        sa.Column('policy_id', sa.Integer(), nullable=True),
        sa.Column('loss_id', sa.Integer(), nullable=True),
        sa.Column('claimant_id', sa.Integer(), nullable=True),
        sa.Column('producer_id', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=20), server_default='UNPROCESSED', nullable=False),
        sa.Column('deleted_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('version', sa.Integer(), server_default='1', nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('updated_by', sa.Integer(), nullable=True),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['policy_id'], ['policy.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['loss_id'], ['loss.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['claimant_id'], ['claimant.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['producer_id'], ['producer.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['created_by'], ['user.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['updated_by'], ['user.id'], ondelete='RESTRICT'),
        sa.CheckConstraint(
            "status IN ('UNPROCESSED', 'PROCESSED', 'TRASHED')",
            name='ck_document_status'
        ),
        sa.CheckConstraint(
            "status <> 'TRASHED' OR deleted_at IS NOT NULL",
            name='ck_document_trashed_has_deleted_at'
        ),
    )
    op.create_index('ix_document_status', 'document', ['status'])
    op.create_index('ix_document_policy_id', 'document', ['policy_id'])
    op.create_index('ix_document_loss_id', 'document', ['loss_id'])

    op.create_table(
        'map_user_document',
        sa.Column('document_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        _timestamp('created_at'),
        sa.PrimaryKeyConstraint('document_id', 'user_id'),
        sa.ForeignKeyConstraint(['document_id'], ['document.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ondelete='CASCADE'),
    )

    op.create_table(
        'map_user_group_document',
        sa.Column('document_id', sa.Integer(), nullable=False),
        sa.Column('user_group_id', sa.Integer(), nullable=False),
        _timestamp('created_at'),
        sa.PrimaryKeyConstraint('document_id', 'user_group_id'),
        sa.ForeignKeyConstraint(['document_id'], ['document.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_group_id'], ['user_group.id'], ondelete='CASCADE'),
    )

    # Audit trail
    action_type = op.create_table(
        'action_type',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        _timestamp('created_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', name='uq_action_type_name'),
    )

    op.create_table(
        'action',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('action_type_id', sa.Integer(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('status', sa.Text(), server_default='ACTIVE', nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=False),
        _timestamp('created_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['action_type_id'], ['action_type.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['created_by'], ['user.id'], ondelete='RESTRICT'),
    )
    op.create_index('ix_action_created_at_id', 'action', ['created_at', 'id'])
    op.create_index('ix_action_action_type_id', 'action', ['action_type_id'])

    op.create_table(
        'map_document_action',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('document_id', sa.Integer(), nullable=False),
        sa.Column('action_id', sa.Integer(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('status', sa.Text(), server_default='ACTIVE', nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=False),
        _timestamp('created_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['document_id'], ['document.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['action_id'], ['action.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['created_by'], ['user.id'], ondelete='RESTRICT'),
        sa.UniqueConstraint('document_id', 'action_id', name='uq_map_document_action'),
    )
    op.create_index('ix_map_document_action_document_id', 'map_document_action', ['document_id'])

    op.bulk_insert(action_type, [
        {'name': name, 'description': description}
        for name, description in LIFECYCLE_ACTION_TYPES
    ])

    # Append-only enforcement for audit rows (PostgreSQL)
    if op.get_bind().dialect.name == 'postgresql':
        op.execute("""
            CREATE OR REPLACE FUNCTION reject_audit_mutation()
            RETURNS TRIGGER AS $$
            BEGIN
                RAISE EXCEPTION '% rows are append-only', TG_TABLE_NAME;
            END;
            $$ LANGUAGE plpgsql;
        """)
        for table in ('action', 'map_document_action'):
            op.execute(f"""
                CREATE TRIGGER {table}_append_only
                BEFORE UPDATE OR DELETE ON {table}
                FOR EACH ROW
                EXECUTE FUNCTION reject_audit_mutation();
            """)


def downgrade():
    if op.get_bind().dialect.name == 'postgresql':
        for table in ('action', 'map_document_action'):
            op.execute(f"DROP TRIGGER IF EXISTS {table}_append_only ON {table}")
        op.execute("DROP FUNCTION IF EXISTS reject_audit_mutation()")

    op.drop_table('map_document_action')
    op.drop_table('action')
    op.drop_table('action_type')
    op.drop_table('map_user_group_document')
    op.drop_table('map_user_document')
    op.drop_table('document')
    op.drop_table('map_loss_claimant')
    op.drop_table('map_policy_loss')
    op.drop_table('map_producer_policy')
    op.drop_table('claimant')
    op.drop_table('loss')
    op.drop_table('producer')
    op.drop_table('policy')
    op.drop_table('policy_prefix')
    op.drop_table('user_group')
    op.drop_table('user')
