"""Create inventory table

Revision ID: 001
Revises: None
Create Date: 2024-06-10 00:00:00.000000+00:00

What:  Creates the `inventory` table backing SqlInventoryRepository.
How:   Integer autoincrement primary key (AUTOINCREMENT on SQLite so ids
       freed by deletes are never reissued).

Rollback: downgrade() drops the table and all item rows.
Photo blobs live on disk and are unaffected.
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "inventory",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("inventory_name", sa.String(255), nullable=False),
        sa.Column(
            "description",
            sa.Text(),
            nullable=False,
            server_default=sa.text("''"),
        ),
        # Photo store key; NULL when no photo is attached
        sa.Column("photo", sa.String(255), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )


def downgrade() -> None:
    op.drop_table("inventory")
