"""003: create listings table

Revision ID: 003
Revises: 002
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE listings (
            id                      VARCHAR(64)     PRIMARY KEY,
            seller_id               VARCHAR(64)     NOT NULL,
            restaurant_name         VARCHAR(200)    NOT NULL,
            location                VARCHAR(200)    NOT NULL,
            cuisine                 VARCHAR(64)     NOT NULL,
            reservation_date        DATE            NOT NULL,
            reservation_time        TIME            NOT NULL,
            party_size              INT             NOT NULL,
            description             TEXT,
            image_url               VARCHAR(500),
            price_cents             BIGINT          NOT NULL,
            original_price_cents    BIGINT          NOT NULL,
            status                  VARCHAR(16)     NOT NULL DEFAULT 'available',
            stock_remaining         INT             NOT NULL DEFAULT 1,
            allow_bidding           BOOLEAN         NOT NULL DEFAULT FALSE,
            minimum_bid_cents       BIGINT,
            current_bid_cents       BIGINT,
            bid_end_time            TIMESTAMPTZ,
            last_sale_price_cents   BIGINT,
            last_sale_date          TIMESTAMPTZ,
            created_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_listings_status          CHECK (
                status IN ('available', 'pending', 'sold', 'expired')
            ),
            CONSTRAINT ck_listings_stock           CHECK (stock_remaining >= 0),
            CONSTRAINT ck_listings_price           CHECK (price_cents > 0),
            CONSTRAINT ck_listings_original_price  CHECK (original_price_cents > 0),
            CONSTRAINT ck_listings_party_size      CHECK (party_size > 0),
            CONSTRAINT ck_listings_minimum_bid     CHECK (minimum_bid_cents IS NULL OR minimum_bid_cents > 0),
            CONSTRAINT ck_listings_current_bid     CHECK (current_bid_cents IS NULL OR current_bid_cents > 0),
            CONSTRAINT ck_listings_sold_no_stock   CHECK (status <> 'sold' OR stock_remaining = 0)
        );
    """)
    op.execute("CREATE INDEX idx_listings_created ON listings (created_at DESC, id DESC);")
    op.execute("CREATE INDEX idx_listings_seller ON listings (seller_id, created_at DESC);")
    op.execute("""
        CREATE INDEX idx_listings_bid_deadline
        ON listings (bid_end_time)
        WHERE status = 'available' AND allow_bidding = TRUE;
    """)
    op.execute("""
        CREATE TRIGGER trg_listings_updated_at
            BEFORE UPDATE ON listings
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS listings CASCADE;")
