"""SQLAlchemy ORM model for the sale_history table (DDL reference only; queries use raw SQL).

Table is created by Alembic migration: alembic/versions/006_create_sale_history.py
An UPDATE/DELETE trigger on the table raises, so rows are immutable once written.
"""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from src.rm_common.database import Base


class SaleHistoryORM(Base):
    __tablename__ = "sale_history"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    listing_id: Mapped[str] = mapped_column(String(64), nullable=False)
    buyer_id: Mapped[str] = mapped_column(String(64), nullable=False)
    buyer_name: Mapped[str] = mapped_column(String(128), nullable=False)
    price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    executed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
