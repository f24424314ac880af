"""Add partial index for finals pending publication

Revision ID: 0002_finals_publication_index
Revises: 0001
Create Date: 2026-10-19 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa


revision = "0002_finals_publication_index"
down_revision = "0001"
branch_labels = None
depends_on = None


def upgrade():
    op.create_index(
        "ix_matches_finals_pending",
        "matches",
        ["is_test", "played_at"],
        unique=False,
        postgresql_where=sa.text("(stage = 'FINAL' OR is_final) AND NOT is_published"),
    )


def downgrade():
    op.drop_index("ix_matches_finals_pending", table_name="matches")
