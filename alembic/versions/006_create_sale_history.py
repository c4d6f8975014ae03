"""006: create sale_history table (append-only)

Revision ID: 006
Revises: 005
Create Date: 2026-10-17

listing_id carries no foreign key: history outlives a deleted listing.
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE sale_history (
            id              VARCHAR(64)     PRIMARY KEY,
            listing_id      VARCHAR(64)     NOT NULL,
            buyer_id        VARCHAR(64)     NOT NULL,
            buyer_name      VARCHAR(128)    NOT NULL,
            price           BIGINT          NOT NULL,
            executed_at     TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_sale_history_price CHECK (price > 0)
        );
    """)
    op.execute("""
        CREATE INDEX idx_sale_history_listing
        ON sale_history (listing_id, executed_at DESC, id DESC);
    """)
    op.execute("""
        CREATE TRIGGER trg_sale_history_append_only
            BEFORE UPDATE OR DELETE ON sale_history
            FOR EACH ROW EXECUTE FUNCTION fn_reject_modification();
    """)
    op.execute("COMMENT ON TABLE sale_history IS 'Executed sales: append-only ledger';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS sale_history CASCADE;")
