"""
Initial migration - Create users and reports tables

Revision ID: 001_initial
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

# Revision identifiers
revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create all tables."""

    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('name', sa.String(100)),
        sa.Column('avatar_url', sa.String(500)),
        sa.Column('provider', sa.String(50)),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )

    # Create reports table
    op.create_table(
        'reports',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('image_url', sa.Text(), nullable=False),
        sa.Column(
            'problem_type',
            sa.Enum('PARKING', 'INFRASTRUCTURE', name='problemtype'),
            nullable=False,
        ),
        sa.Column('problem_subtype', sa.Text()),
        sa.Column('license_plate', sa.Text()),
        sa.Column('location', sa.Text()),
        sa.Column('description', sa.Text()),
        sa.Column('ai_analysis', sa.Text()),
        sa.Column('confidence_score', sa.Float()),
        sa.Column(
            'status',
            sa.Enum('PENDING', 'APPROVED', 'REJECTED', name='reportstatus'),
            nullable=False,
            server_default='PENDING',
        ),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )

    op.create_index('idx_report_user_id', 'reports', ['user_id'])
    op.create_index('idx_report_status', 'reports', ['status'])
    op.create_index('idx_report_created_at', 'reports', ['created_at'])
    op.create_index('idx_report_license_plate', 'reports', ['license_plate'])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table('reports')
    op.drop_table('users')
    sa.Enum(name='reportstatus').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='problemtype').drop(op.get_bind(), checkfirst=True)
