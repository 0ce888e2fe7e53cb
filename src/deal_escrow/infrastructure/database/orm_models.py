"""SQLAlchemy 2.0 ORM models for the deal escrow projection.

Three tables:
    1. deals          — Snapshot of every deal, keyed by its sequential id.
    2. arbiters       — Registry membership (address -> approved flag).
    3. ledger_events  — Append-only copy of the ledger event log.

Design decisions:
    - Integer deal ids assigned by the ledger (no autoincrement, never reused).
    - Amounts stored as decimal strings: uint256 values overflow SQL numerics
      on SQLite and lose precision as floats.
    - Generic JSON column so the same models run on PostgreSQL and SQLite.
    - CHECK constraint on state to prevent invalid enum values at DB level.
    - ledger_events is append-only: no UPDATE or DELETE at the application level.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# ---------------------------------------------------------------------------
# 1. deals
# ---------------------------------------------------------------------------
class DealRecord(Base):
    """Latest snapshot of one escrow deal."""

    __tablename__ = "deals"

    # --- Primary Key (ledger-assigned) ---
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)

    # --- Participants ---
    buyer: Mapped[str] = mapped_column(String(42), nullable=False)
    seller: Mapped[str] = mapped_column(String(42), nullable=False)
    arbiter: Mapped[str] = mapped_column(
        String(42),
        nullable=False,
        comment="Fixed at creation; sole authority to resolve disputes on this deal",
    )

    # --- Financials ---
    asset: Mapped[str] = mapped_column(
        String(42),
        nullable=False,
        comment="Zero address for the native currency, else the token address",
    )
    amount: Mapped[str] = mapped_column(String(78), nullable=False)

    # --- Status ---
    state: Mapped[str] = mapped_column(String(20), nullable=False, default="AWAITING_PAYMENT")

    # --- Dispute ---
    dispute_reason: Mapped[str] = mapped_column(Text, nullable=False, default="")
    dispute_initiator: Mapped[str | None] = mapped_column(String(42), nullable=True, default=None)
    is_cancellation_request: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # --- Timestamps ---
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    __table_args__ = (
        CheckConstraint(
            "state IN ('AWAITING_PAYMENT', 'AWAITING_DELIVERY', 'SHIPPED', "
            "'DISPUTED', 'COMPLETED', 'REFUNDED', 'CANCELLED')",
            name="ck_deal_valid_state",
        ),
        Index("idx_deal_state", "state"),
        Index("idx_deal_buyer", "buyer"),
        Index("idx_deal_seller", "seller"),
        Index("idx_deal_arbiter", "arbiter"),
    )

    def __repr__(self) -> str:
        return f"<DealRecord id={self.id} state={self.state} amount={self.amount}>"


# ---------------------------------------------------------------------------
# 2. arbiters
# ---------------------------------------------------------------------------
class ArbiterRecord(Base):
    """Registry membership for one address."""

    __tablename__ = "arbiters"

    address: Mapped[str] = mapped_column(String(42), primary_key=True)
    approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    def __repr__(self) -> str:
        return f"<ArbiterRecord {self.address} approved={self.approved}>"


# ---------------------------------------------------------------------------
# 3. ledger_events (Append-Only Audit Log)
# ---------------------------------------------------------------------------
class LedgerEventRecord(Base):
    """Immutable copy of one ledger event.

    This table is APPEND-ONLY. The primary key is the ledger's own sequence
    number, so replaying the same event twice fails loudly.
    """

    __tablename__ = "ledger_events"

    sequence: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    event_type: Mapped[str] = mapped_column(String(40), nullable=False)
    deal_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    actor: Mapped[str | None] = mapped_column(String(42), nullable=True)
    payload: Mapped[dict | None] = mapped_column(JSON, nullable=True, default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    __table_args__ = (
        Index("idx_event_deal", "deal_id"),
        Index("idx_event_type", "event_type"),
    )

    def __repr__(self) -> str:
        return f"<LedgerEventRecord #{self.sequence} {self.event_type} deal={self.deal_id}>"
