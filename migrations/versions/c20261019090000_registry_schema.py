"""registry schema: accounts, members, scan events, assets, id sequence

Revision ID: c20261019090000
Revises:
Create Date: 2026-10-19 09:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'c20261019090000'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    tables = set(inspector.get_table_names())

    if 'account' not in tables:
        op.create_table(
            'account',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('username', sa.String(length=80), nullable=False),
            sa.Column('username_key', sa.String(length=160), nullable=False, unique=True),
            sa.Column('password_hash', sa.String(length=256), nullable=False),
            sa.Column('role', sa.String(length=20), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
        )

    if 'member' not in tables:
        op.create_table(
            'member',
            sa.Column('id', sa.Integer(), primary_key=True, autoincrement=False),
            sa.Column('id_number', sa.String(length=32), nullable=False, unique=True),
            sa.Column('full_name_am', sa.String(length=200)),
            sa.Column('full_name_en', sa.String(length=200)),
            sa.Column('rank_am', sa.String(length=100)),
            sa.Column('rank_en', sa.String(length=100)),
            sa.Column('responsibility_am', sa.String(length=200)),
            sa.Column('responsibility_en', sa.String(length=200)),
            sa.Column('phone', sa.String(length=40)),
            sa.Column('photo_url', sa.Text()),
            sa.Column('commissioner_signature', sa.Text()),
            sa.Column('blood_type', sa.String(length=10)),
            sa.Column('badge_number', sa.String(length=40)),
            sa.Column('gender', sa.String(length=20)),
            sa.Column('complexion', sa.String(length=40)),
            sa.Column('height', sa.String(length=20)),
            sa.Column('emergency_contact_name', sa.String(length=200)),
            sa.Column('emergency_contact_phone', sa.String(length=40)),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=True),
        )

    if 'scan_event' not in tables:
        op.create_table(
            'scan_event',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('id_number', sa.String(length=32), nullable=False),
            sa.Column('ip_address', sa.String(length=64)),
            sa.Column('user_agent', sa.String(length=512)),
            sa.Column('scanned_at', sa.DateTime(), nullable=False),
        )
        op.create_index('ix_scan_event_id_number', 'scan_event', ['id_number'])

    if 'asset' not in tables:
        op.create_table(
            'asset',
            sa.Column('key', sa.String(length=100), primary_key=True),
            sa.Column('value', sa.Text(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=True),
        )

    if 'id_sequence' not in tables:
        op.create_table(
            'id_sequence',
            sa.Column('name', sa.String(length=50), primary_key=True),
            sa.Column('value', sa.Integer(), nullable=False),
        )


def downgrade():
    op.drop_table('id_sequence')
    op.drop_table('asset')
    op.drop_index('ix_scan_event_id_number', table_name='scan_event')
    op.drop_table('scan_event')
    op.drop_table('member')
    op.drop_table('account')
