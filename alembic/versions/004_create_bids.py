"""004: create bids table

Revision ID: 004
Revises: 003
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE bids (
            id              VARCHAR(64)     PRIMARY KEY,
            listing_id      VARCHAR(64)     NOT NULL REFERENCES listings (id) ON DELETE CASCADE,
            bidder_id       VARCHAR(64)     NOT NULL,
            amount_cents    BIGINT          NOT NULL,
            status          VARCHAR(16)     NOT NULL DEFAULT 'open',
            expires_at      TIMESTAMPTZ,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_bids_amount  CHECK (amount_cents > 0),
            CONSTRAINT ck_bids_status  CHECK (status IN ('open', 'accepted', 'rejected', 'expired'))
        );
    """)
    # At most one accepted bid per listing; acceptance is terminal
    op.execute("""
        CREATE UNIQUE INDEX uq_bids_one_accepted_per_listing
        ON bids (listing_id)
        WHERE status = 'accepted';
    """)
    op.execute("""
        CREATE INDEX idx_bids_listing_open
        ON bids (listing_id, amount_cents DESC)
        WHERE status = 'open';
    """)
    op.execute("""
        CREATE INDEX idx_bids_open_expiry
        ON bids (expires_at)
        WHERE status = 'open';
    """)
    op.execute("CREATE INDEX idx_bids_bidder ON bids (bidder_id, created_at DESC);")
    op.execute("""
        CREATE TRIGGER trg_bids_updated_at
            BEFORE UPDATE ON bids
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS bids CASCADE;")
