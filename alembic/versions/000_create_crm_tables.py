"""Create CRM tables (customers, tags, customer_tags, segments, brands)

Revision ID: 000_create_crm_tables
Revises:
Create Date: 2026-10-17

Note: ids are 17 character random strings generated by the application.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '000_create_crm_tables'
down_revision = None
branch_labels = None
depends_on = None

ID_LENGTH = 17


def _table_exists(name):
    return sa.inspect(op.get_bind()).has_table(name)


def upgrade():
    """Create CRM tables."""
    if not _table_exists('customers'):
        op.create_table(
            'customers',
            sa.Column('id', sa.String(ID_LENGTH), primary_key=True),
            sa.Column('first_name', sa.String(100)),
            sa.Column('last_name', sa.String(100)),
            sa.Column('email', sa.String(255), index=True),
            sa.Column('phone', sa.String(50)),
            sa.Column('position', sa.String(100)),
            sa.Column('department', sa.String(100)),
            sa.Column('lead_status', sa.String(50)),
            sa.Column('lifecycle_state', sa.String(50)),
            sa.Column('description', sa.Text()),
            sa.Column('do_not_disturb', sa.Boolean(), default=False),
            sa.Column('owner_id', sa.String(ID_LENGTH)),
            # Timestamps
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
            sa.Column('modified_at', sa.DateTime(timezone=True)),
        )

    if not _table_exists('tags'):
        op.create_table(
            'tags',
            sa.Column('id', sa.String(ID_LENGTH), primary_key=True),
            sa.Column('name', sa.String(100), nullable=False),
            sa.Column('type', sa.String(50), nullable=False, index=True),
            sa.Column('color_code', sa.String(7)),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        )

    if not _table_exists('customer_tags'):
        op.create_table(
            'customer_tags',
            sa.Column(
                'customer_id', sa.String(ID_LENGTH),
                sa.ForeignKey('customers.id', ondelete='CASCADE'), primary_key=True,
            ),
            sa.Column(
                'tag_id', sa.String(ID_LENGTH),
                sa.ForeignKey('tags.id', ondelete='CASCADE'), primary_key=True, index=True,
            ),
        )

    if not _table_exists('segments'):
        op.create_table(
            'segments',
            sa.Column('id', sa.String(ID_LENGTH), primary_key=True),
            sa.Column('content_type', sa.String(50), nullable=False, index=True),
            sa.Column('name', sa.String(100), nullable=False),
            sa.Column('description', sa.Text()),
            sa.Column('sub_of', sa.String(ID_LENGTH), index=True),
            sa.Column('color', sa.String(7)),
            sa.Column('connector', sa.String(10)),
            # [{"field", "operator", "value", "type"}]
            sa.Column('conditions', sa.JSON()),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        )

    if not _table_exists('brands'):
        op.create_table(
            'brands',
            sa.Column('id', sa.String(ID_LENGTH), primary_key=True),
            sa.Column('code', sa.String(50), index=True),
            sa.Column('name', sa.String(100)),
            sa.Column('description', sa.Text()),
            sa.Column('user_id', sa.String(ID_LENGTH)),
            sa.Column('created_at', sa.DateTime(timezone=True)),
            sa.Column('email_config', sa.JSON()),
        )


def downgrade():
    """Drop CRM tables."""
    for table in ['brands', 'segments', 'customer_tags', 'tags', 'customers']:
        if _table_exists(table):
            op.drop_table(table)
