"""baseline schema

Revision ID: 8c1d4e7a2b90
Revises:
Create Date: 2026-10-19 09:12:41.503117

Baseline for the users, founder, fundraising, investor directory, matching
and pipeline tables. Databases created by create_tables() at startup
should be stamped with:

    alembic stamp head

Later migrations build on this revision.
"""
from typing import Sequence, Union

# revision identifiers, used by Alembic.
revision: str = '8c1d4e7a2b90'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Tables already exist via create_all().
    pass


def downgrade() -> None:
    pass
