"""one_active_subscription_per_owner

Revision ID: 7d3f9b2c4e18
Revises: 5c1e0a7d2b91
Create Date: 2026-10-20 09:31:05.442917

Adds a partial unique index so an owner can hold at most one active
subscription row. Older duplicates, if any, are cancelled first so the
index can be built.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '7d3f9b2c4e18'
down_revision: Union[str, None] = '5c1e0a7d2b91'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SUBSCRIPTION_TABLES = ('employee_plan_subscriptions', 'employer_plan_subscriptions')


def index_exists(index_name: str, table_name: str) -> bool:
    bind = op.get_bind()
    inspector = inspect(bind)
    return any(index['name'] == index_name for index in inspector.get_indexes(table_name))


def upgrade() -> None:
    bind = op.get_bind()

    for table_name in SUBSCRIPTION_TABLES:
        index_name = f'uq_{table_name}_one_active'
        if index_exists(index_name, table_name):
            continue

        # Keep the newest active row per owner
        bind.execute(sa.text(f"""
            UPDATE {table_name} SET status = 'cancelled'
            WHERE status = 'active'
            AND id NOT IN (
                SELECT max_id FROM (
                    SELECT MAX(id) AS max_id FROM {table_name}
                    WHERE status = 'active'
                    GROUP BY owner_id
                ) AS newest
            )
        """))

        op.create_index(
            index_name,
            table_name,
            ['owner_id'],
            unique=True,
            sqlite_where=sa.text("status = 'active'"),
            postgresql_where=sa.text("status = 'active'"),
        )


def downgrade() -> None:
    for table_name in SUBSCRIPTION_TABLES:
        index_name = f'uq_{table_name}_one_active'
        if index_exists(index_name, table_name):
            op.drop_index(index_name, table_name=table_name)
