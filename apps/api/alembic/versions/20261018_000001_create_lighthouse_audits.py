"""create lighthouse_audits

Revision ID: 20261018_000001
Revises:
Create Date: 2026-10-18 00:00:01.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261018_000001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "lighthouse_audits",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("url", sa.String(), nullable=False),
        sa.Column("time_created", sa.DateTime(timezone=True), nullable=False),
        sa.Column("time_completed", sa.DateTime(timezone=True), nullable=True),
        sa.Column("report_json", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_lighthouse_audits_url"), "lighthouse_audits", ["url"], unique=False)
    op.create_index(op.f("ix_lighthouse_audits_time_created"), "lighthouse_audits", ["time_created"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_lighthouse_audits_time_created"), table_name="lighthouse_audits")
    op.drop_index(op.f("ix_lighthouse_audits_url"), table_name="lighthouse_audits")
    op.drop_table("lighthouse_audits")
