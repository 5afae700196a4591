"""Baseline: signing key store

Revision ID: 3f9c2a7d41b0
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the `keys` table holding one row per RSA signing key:
- kid: integer identifier, AUTOINCREMENT so identifiers are never reused
- key: PEM-encoded PKCS#8 private key
- exp: expiry instant in Unix epoch seconds
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "3f9c2a7d41b0"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "keys",
        sa.Column("kid", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("key", sa.LargeBinary, nullable=False),
        sa.Column("exp", sa.Integer, nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("idx_keys_exp", "keys", ["exp"])


def downgrade() -> None:
    op.drop_index("idx_keys_exp", table_name="keys")
    op.drop_table("keys")
