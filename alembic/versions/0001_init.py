"""init competition schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
from alembic import op


revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.execute(
        """
        CREATE TABLE IF NOT EXISTS teams (
          id TEXT PRIMARY KEY,
          name VARCHAR(120) NOT NULL,
          group_key TEXT NULL,
          created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
        """
    )
    op.execute(
        """
        CREATE TABLE IF NOT EXISTS matches (
          id TEXT PRIMARY KEY,
          stage VARCHAR(20) NOT NULL,
          group_key TEXT NULL,
          home_team_id TEXT NOT NULL REFERENCES teams(id),
          away_team_id TEXT NOT NULL REFERENCES teams(id),
          status VARCHAR(20) NOT NULL DEFAULT 'SCHEDULED',
          is_final BOOLEAN NOT NULL DEFAULT false,
          is_published BOOLEAN NOT NULL DEFAULT false,
          is_test BOOLEAN NOT NULL DEFAULT false,
          played_at TIMESTAMPTZ NULL,
          updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
          CONSTRAINT ck_matches_distinct_teams CHECK (home_team_id <> away_team_id)
        )
        """
    )
    # Results were written by two generations of the admin tool; older rows
    # only carry home_score/away_score.
    op.execute(
        """
        CREATE TABLE IF NOT EXISTS match_results (
          id BIGSERIAL PRIMARY KEY,
          match_id TEXT NOT NULL REFERENCES matches(id) ON DELETE CASCADE,
          home_team_score INTEGER NULL,
          away_team_score INTEGER NULL,
          home_score INTEGER NULL,
          away_score INTEGER NULL,
          created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
        """
    )
    op.execute("CREATE INDEX IF NOT EXISTS idx_matches_stage_group ON matches(stage, group_key)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_match_results_match ON match_results(match_id, created_at DESC)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_teams_group ON teams(group_key)")


def downgrade():
    op.execute("DROP INDEX IF EXISTS idx_teams_group")
    op.execute("DROP INDEX IF EXISTS idx_match_results_match")
    op.execute("DROP INDEX IF EXISTS idx_matches_stage_group")
    op.execute("DROP TABLE IF EXISTS match_results")
    op.execute("DROP TABLE IF EXISTS matches")
    op.execute("DROP TABLE IF EXISTS teams")
