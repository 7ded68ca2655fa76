"""Add token_blacklist table for persistent token revocation.

Logout stores the SHA-256 digest of the bearer token with the token's own
expiry, so revoked tokens stay invalid across process restarts.

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-05

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "token_blacklist",
        sa.Column("token_hash", sa.String(64), primary_key=True),
        sa.Column(
            "expires_at",
            sa.DateTime(timezone=True),
            nullable=False,
            index=True,
        ),
    )


def downgrade() -> None:
    op.drop_table("token_blacklist")
