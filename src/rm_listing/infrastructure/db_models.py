"""SQLAlchemy ORM model for the listings table (DDL reference only; queries use raw SQL).

Table is created by Alembic migration: alembic/versions/003_create_listings.py
"""

from datetime import date, datetime, time

from sqlalchemy import BigInteger, Boolean, Date, DateTime, Integer, String, Text, Time, func
from sqlalchemy.orm import Mapped, mapped_column

from src.rm_common.database import Base


class ListingORM(Base):
    __tablename__ = "listings"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    seller_id: Mapped[str] = mapped_column(String(64), nullable=False)
    restaurant_name: Mapped[str] = mapped_column(String(200), nullable=False)
    location: Mapped[str] = mapped_column(String(200), nullable=False)
    cuisine: Mapped[str] = mapped_column(String(64), nullable=False)
    reservation_date: Mapped[date] = mapped_column(Date, nullable=False)
    reservation_time: Mapped[time] = mapped_column(Time, nullable=False)
    party_size: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    price_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    original_price_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="available")
    stock_remaining: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    allow_bidding: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    minimum_bid_cents: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    current_bid_cents: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    bid_end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_sale_price_cents: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    last_sale_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
