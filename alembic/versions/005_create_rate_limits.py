"""005: create rate_limits table and window functions

Revision ID: 005
Revises: 004
Create Date: 2026-10-17

The application gate (rm_ratelimit.RateLimiter) is the enforcement point and
runs inside the bid transaction. The SQL functions mirror its semantics for
operators and ad hoc checks; no trigger calls them.
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE rate_limits (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id         VARCHAR(64)     NOT NULL,
            action_type     VARCHAR(32)     NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            expires_at      TIMESTAMPTZ     NOT NULL,
            CONSTRAINT ck_rate_limits_window CHECK (expires_at > created_at)
        );
    """)
    op.execute("""
        CREATE INDEX idx_rate_limits_lookup
        ON rate_limits (user_id, action_type, expires_at);
    """)
    op.execute("""
        CREATE OR REPLACE FUNCTION check_rate_limit(
            p_user_id VARCHAR,
            p_action_type VARCHAR,
            p_max_attempts INT,
            p_window_seconds INT
        ) RETURNS BOOLEAN AS $$
        DECLARE
            v_count INT;
        BEGIN
            DELETE FROM rate_limits
            WHERE user_id = p_user_id
              AND action_type = p_action_type
              AND expires_at <= NOW();

            SELECT COUNT(*) INTO v_count
            FROM rate_limits
            WHERE user_id = p_user_id
              AND action_type = p_action_type
              AND expires_at > NOW();

            RETURN v_count < p_max_attempts;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE OR REPLACE FUNCTION record_rate_limit_attempt(
            p_user_id VARCHAR,
            p_action_type VARCHAR,
            p_window_seconds INT
        ) RETURNS VOID AS $$
        BEGIN
            INSERT INTO rate_limits (user_id, action_type, expires_at)
            VALUES (p_user_id, p_action_type, NOW() + make_interval(secs => p_window_seconds));
        END;
        $$ LANGUAGE plpgsql;
    """)


def downgrade() -> None:
    op.execute("DROP FUNCTION IF EXISTS record_rate_limit_attempt(VARCHAR, VARCHAR, INT);")
    op.execute("DROP FUNCTION IF EXISTS check_rate_limit(VARCHAR, VARCHAR, INT, INT);")
    op.execute("DROP TABLE IF EXISTS rate_limits CASCADE;")
