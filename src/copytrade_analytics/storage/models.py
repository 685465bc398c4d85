"""SQLAlchemy ORM models for the copy-trading ledger database.

Define the tracked address, trade, config, and recommendation tables. The
schema supports per-trader queries ordered by time and the rolling-window
scan used for large-loss alerts.
"""

from sqlalchemy import BigInteger, Float, ForeignKey, Index, Integer, LargeBinary, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base class for all ledger ORM models."""


class TrackedAddress(Base):
    """A wallet address whose trades are copied and analysed.

    Attributes:
        id: Auto-incrementing primary key, used as the trader id.
        address: Wallet address (unique).
        label: Optional human-readable name.
        added_at: Epoch seconds when tracking started.

    """

    __tablename__ = "tracked_addresses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    address: Mapped[str] = mapped_column(String, unique=True)
    label: Mapped[str | None] = mapped_column(String, nullable=True)
    added_at: Mapped[int] = mapped_column(BigInteger)


class TradeRecord(Base):
    """A single trade made by a tracked address.

    Attributes:
        id: Auto-incrementing primary key.
        address_id: Owning tracked address (indexed).
        tx_hash: On-chain transaction hash, the deduplication key.
        asset: Traded token or market identifier.
        side: ``"BUY"`` or ``"SELL"``.
        size_usd: Notional size in USD.
        price_or_amount_in: Execution price or input amount.
        amount_out: Output amount received.
        profit_loss: Realised P&L, ``NULL`` when unknown.
        timestamp: Epoch seconds (indexed).

    """

    __tablename__ = "trades"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    address_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tracked_addresses.id", ondelete="CASCADE"), index=True
    )
    tx_hash: Mapped[str] = mapped_column(String, unique=True)
    asset: Mapped[str] = mapped_column(String, default="")
    side: Mapped[str] = mapped_column(String, default="BUY")
    size_usd: Mapped[float] = mapped_column(Float, default=0.0)
    price_or_amount_in: Mapped[float] = mapped_column(Float, default=0.0)
    amount_out: Mapped[float] = mapped_column(Float, default=0.0)
    profit_loss: Mapped[float | None] = mapped_column(Float, nullable=True)
    timestamp: Mapped[int] = mapped_column(BigInteger, index=True)

    __table_args__ = (Index("ix_trades_address_timestamp", "address_id", "timestamp"),)


class ConfigEntry(Base):
    """An opaque configuration blob stored under a string key."""

    __tablename__ = "config"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[bytes] = mapped_column(LargeBinary)


class RecommendationRecord(Base):
    """A persisted advisor recommendation.

    Attributes:
        id: Auto-incrementing primary key.
        type: Recommendation kind, e.g. ``"remove"`` or ``"increase"``.
        address_id: Trader the recommendation concerns, if any.
        reason: Human-readable justification.
        confidence: Optional confidence value.
        created_at: Epoch seconds when it was recorded.

    """

    __tablename__ = "ai_recommendations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type: Mapped[str] = mapped_column(String)
    address_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("tracked_addresses.id", ondelete="SET NULL"), nullable=True
    )
    reason: Mapped[str | None] = mapped_column(String, nullable=True)
    confidence: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[int] = mapped_column(BigInteger)

    __table_args__ = (Index("ix_recs_type_created", "type", "created_at"),)
