"""SQLAlchemy-backed trade repository and config store.

Wrap a synchronous SQLAlchemy engine and session factory. Provide the
read queries the analytics engine needs, the ingestion helpers external
sync jobs use to populate the ledger, and recommendation persistence for
the advisor. The repository is database-agnostic: swap SQLite for
PostgreSQL by changing the connection string.
"""

import logging
import time
from decimal import Decimal

from sqlalchemy import Engine, create_engine, select
from sqlalchemy.orm import sessionmaker

from copytrade_analytics.analytics.metrics import compute_trader_stats
from copytrade_analytics.core.exceptions import InvalidInputError
from copytrade_analytics.core.models import ZERO, Side, TrackedTrader, Trade, TraderStats
from copytrade_analytics.storage.models import (
    Base,
    ConfigEntry,
    RecommendationRecord,
    TrackedAddress,
    TradeRecord,
)

logger = logging.getLogger(__name__)

_DEFAULT_RECOMMENDATION_LIMIT = 20


def _to_decimal(value: float | None) -> Decimal | None:
    return None if value is None else Decimal(str(value))


def parse_trader_id(trader_id: str) -> int:
    """Convert a trader id string into the tracked address primary key.

    Raises:
        InvalidInputError: If ``trader_id`` is not a positive integer string.

    """
    if not isinstance(trader_id, str) or not trader_id.isdigit() or int(trader_id) == 0:
        msg = f"Malformed trader id: {trader_id!r}"
        raise InvalidInputError(msg)
    return int(trader_id)


def _to_trade(record: TradeRecord) -> Trade:
    return Trade(
        id=str(record.id),
        trader_id=str(record.address_id),
        asset=record.asset,
        side=Side(record.side),
        size_usd=Decimal(str(record.size_usd)),
        price_or_amount_in=Decimal(str(record.price_or_amount_in)),
        amount_out=Decimal(str(record.amount_out)),
        profit_loss=_to_decimal(record.profit_loss),
        timestamp=record.timestamp,
    )


class SqlTradeRepository:
    """Trade repository persisted through SQLAlchemy.

    Args:
        db_url: SQLAlchemy connection string (e.g. ``sqlite:///copytrade.db``).

    """

    def __init__(self, db_url: str) -> None:
        """Initialize the repository with a database engine.

        Args:
            db_url: SQLAlchemy connection string.

        """
        self._engine: Engine = create_engine(db_url, echo=False)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False)

    @property
    def engine(self) -> Engine:
        """Return the underlying engine, e.g. to share with a config store."""
        return self._engine

    def init_db(self) -> None:
        """Create all tables if they do not already exist.

        Idempotent, safe to call on every startup.
        """
        Base.metadata.create_all(self._engine)
        logger.info("Database tables initialised")

    def add_address(self, address: str, label: str | None = None) -> str:
        """Start tracking a wallet address, returning its trader id.

        Adding an address that is already tracked returns the existing id.
        """
        if not address:
            raise InvalidInputError("address must be a non-empty string")
        with self._session_factory() as session, session.begin():
            existing = session.scalar(
                select(TrackedAddress).where(TrackedAddress.address == address)
            )
            if existing is not None:
                return str(existing.id)
            row = TrackedAddress(address=address, label=label, added_at=int(time.time()))
            session.add(row)
            session.flush()
            logger.info("Tracking address %s as trader %d", address, row.id)
            return str(row.id)

    def add_trade(  # noqa: PLR0913
        self,
        trader_id: str,
        tx_hash: str,
        *,
        timestamp: int,
        profit_loss: Decimal | None = None,
        asset: str = "",
        side: Side = Side.BUY,
        size_usd: Decimal = ZERO,
        price_or_amount_in: Decimal = ZERO,
        amount_out: Decimal = ZERO,
    ) -> bool:
        """Insert a trade unless its transaction hash is already stored.

        Returns:
            ``True`` if the trade was inserted, ``False`` for a duplicate.

        """
        address_id = parse_trader_id(trader_id)
        if not tx_hash:
            raise InvalidInputError("tx_hash must be a non-empty string")
        with self._session_factory() as session, session.begin():
            duplicate = session.scalar(
                select(TradeRecord.id).where(TradeRecord.tx_hash == tx_hash)
            )
            if duplicate is not None:
                return False
            session.add(
                TradeRecord(
                    address_id=address_id,
                    tx_hash=tx_hash,
                    asset=asset,
                    side=side.value,
                    size_usd=float(size_usd),
                    price_or_amount_in=float(price_or_amount_in),
                    amount_out=float(amount_out),
                    profit_loss=None if profit_loss is None else float(profit_loss),
                    timestamp=timestamp,
                )
            )
        return True

    def has_trader(self, trader_id: str) -> bool:
        """Return ``True`` when the trader id refers to a tracked address."""
        address_id = parse_trader_id(trader_id)
        with self._session_factory() as session:
            return session.get(TrackedAddress, address_id) is not None

    def get_trader(self, trader_id: str) -> TrackedTrader | None:
        """Return the tracked address and label of a trader, or ``None``."""
        address_id = parse_trader_id(trader_id)
        with self._session_factory() as session:
            row = session.get(TrackedAddress, address_id)
        if row is None:
            return None
        return TrackedTrader(trader_id=trader_id, address=row.address, label=row.label)

    def list_trades(self, trader_id: str) -> list[Trade]:
        """Return every trade of a trader ordered by timestamp ascending."""
        stmt = (
            select(TradeRecord)
            .where(TradeRecord.address_id == parse_trader_id(trader_id))
            .order_by(TradeRecord.timestamp, TradeRecord.id)
        )
        with self._session_factory() as session:
            return [_to_trade(r) for r in session.scalars(stmt).all()]

    def list_all_trader_stats(self) -> list[TraderStats]:
        """Return aggregate stats for every tracked address, in id order.

        Rows are converted to ``Decimal`` one by one and aggregated in
        Python, so the result matches ``compute_trader_stats`` exactly
        instead of inheriting float rounding from a SQL ``SUM``.
        """
        with self._session_factory() as session:
            addresses = session.scalars(
                select(TrackedAddress).order_by(TrackedAddress.id)
            ).all()
            records = session.scalars(
                select(TradeRecord).order_by(
                    TradeRecord.address_id, TradeRecord.timestamp, TradeRecord.id
                )
            ).all()
        ledgers: dict[int, list[Trade]] = {row.id: [] for row in addresses}
        for record in records:
            ledgers.setdefault(record.address_id, []).append(_to_trade(record))
        return [
            compute_trader_stats(
                str(row.id), ledgers[row.id], address=row.address, label=row.label
            )
            for row in addresses
        ]

    def list_recent_trades(
        self, since_timestamp: int, max_loss_threshold: Decimal
    ) -> list[Trade]:
        """Return trades after ``since_timestamp`` losing more than the threshold.

        Args:
            since_timestamp: Exclusive lower bound (epoch seconds).
            max_loss_threshold: Only trades with ``profit_loss`` strictly
                below this value are returned.

        Returns:
            Matching trades ordered by timestamp descending.

        """
        stmt = (
            select(TradeRecord)
            .where(
                TradeRecord.timestamp > since_timestamp,
                TradeRecord.profit_loss < float(max_loss_threshold),
            )
            .order_by(TradeRecord.timestamp.desc())
        )
        with self._session_factory() as session:
            return [_to_trade(r) for r in session.scalars(stmt).all()]

    def save_recommendation(
        self,
        rec_type: str,
        trader_id: str | None,
        reason: str,
        confidence: Decimal | None = None,
        created_at: int | None = None,
    ) -> int:
        """Persist an advisor recommendation and return its id.

        Raises:
            InvalidInputError: If ``rec_type`` is empty or the trader id is
                malformed.

        """
        if not rec_type:
            raise InvalidInputError("recommendation type is required")
        address_id = None if trader_id is None else parse_trader_id(trader_id)
        row = RecommendationRecord(
            type=rec_type,
            address_id=address_id,
            reason=reason or None,
            confidence=None if confidence is None else float(confidence),
            created_at=int(time.time()) if created_at is None else created_at,
        )
        with self._session_factory() as session, session.begin():
            session.add(row)
            session.flush()
            return row.id

    def get_latest_recommendations(
        self,
        rec_type: str | None = None,
        trader_id: str | None = None,
        limit: int = _DEFAULT_RECOMMENDATION_LIMIT,
    ) -> list[RecommendationRecord]:
        """Return stored recommendations, newest first.

        Args:
            rec_type: Only return recommendations of this type.
            trader_id: Only return recommendations about this trader.
            limit: Maximum number of rows.

        """
        stmt = select(RecommendationRecord)
        if rec_type is not None:
            stmt = stmt.where(RecommendationRecord.type == rec_type)
        if trader_id is not None:
            stmt = stmt.where(RecommendationRecord.address_id == parse_trader_id(trader_id))
        stmt = stmt.order_by(
            RecommendationRecord.created_at.desc(), RecommendationRecord.id.desc()
        ).limit(limit)
        with self._session_factory() as session:
            return list(session.scalars(stmt).all())

    def close(self) -> None:
        """Dispose the engine and release all connections."""
        self._engine.dispose()
        logger.info("Database engine disposed")


class SqlConfigStore:
    """Key-value blob store kept in the ``config`` table.

    Args:
        engine: Engine of an initialised ledger database.

    """

    def __init__(self, engine: Engine) -> None:
        """Initialize the store on an existing engine."""
        self._session_factory = sessionmaker(engine, expire_on_commit=False)

    def get(self, key: str) -> bytes | None:
        """Return the blob stored under ``key`` or ``None``."""
        with self._session_factory() as session:
            entry = session.get(ConfigEntry, key)
            return None if entry is None else entry.value

    def set(self, key: str, value: bytes) -> None:
        """Insert or replace the blob stored under ``key``."""
        with self._session_factory() as session, session.begin():
            session.merge(ConfigEntry(key=key, value=value))
