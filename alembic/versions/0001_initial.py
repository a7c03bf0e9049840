"""Initial schema: users, report groups and report rows

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18

Works on SQLite and PostgreSQL:
- CURRENT_TIMESTAMP instead of now()
- the role enum is stored as VARCHAR (native_enum=False in the model)
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = '0001_initial'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _audit_columns():
    return [
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table('users',
        sa.Column('username', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=10), server_default='ACCOUNTANT', nullable=False),
        *_audit_columns(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_users'))
    )
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=True)

    op.create_table('report_groups',
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('report_date', sa.Date(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        *_audit_columns(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_report_group_user_id', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_report_groups'))
    )
    op.create_index(op.f('ix_report_groups_report_date'), 'report_groups', ['report_date'], unique=False)
    op.create_index('idx_report_group_user_date', 'report_groups', ['user_id', 'report_date'], unique=False)

    op.create_table('reports',
        sa.Column('group_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('sabablar', sa.Text(), nullable=False),
        sa.Column('tovar', sa.BigInteger(), server_default='0', nullable=False),
        sa.Column('ok', sa.BigInteger(), server_default='0', nullable=False),
        sa.Column('rasxod', sa.BigInteger(), server_default='0', nullable=False),
        sa.Column('vazvirat', sa.BigInteger(), server_default='0', nullable=False),
        sa.Column('pul', sa.BigInteger(), server_default='0', nullable=False),
        sa.Column('kilik_ozi', sa.BigInteger(), server_default='0', nullable=False),
        *_audit_columns(),
        sa.ForeignKeyConstraint(['group_id'], ['report_groups.id'], name='fk_report_row_group_id', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_reports'))
    )
    op.create_index(op.f('ix_reports_group_id'), 'reports', ['group_id'], unique=False)
    op.create_index(op.f('ix_reports_user_id'), 'reports', ['user_id'], unique=False)
    op.create_index('idx_report_row_group_position', 'reports', ['group_id', 'position'], unique=False)


def downgrade() -> None:
    op.drop_index('idx_report_row_group_position', table_name='reports')
    op.drop_index(op.f('ix_reports_user_id'), table_name='reports')
    op.drop_index(op.f('ix_reports_group_id'), table_name='reports')
    op.drop_table('reports')
    op.drop_index('idx_report_group_user_date', table_name='report_groups')
    op.drop_index(op.f('ix_report_groups_report_date'), table_name='report_groups')
    op.drop_table('report_groups')
    op.drop_index(op.f('ix_users_username'), table_name='users')
    op.drop_table('users')
