"""Application services — the ledger and its collaborators."""

from deal_escrow.services.arbiter_registry import ArbiterRegistry
from deal_escrow.services.escrow_ledger import EscrowLedger, build_ledger
from deal_escrow.services.escrow_service import EscrowService
from deal_escrow.services.event_log import EventLog
from deal_escrow.services.payment_service import PaymentService

__all__ = [
    "ArbiterRegistry",
    "EscrowLedger",
    "EscrowService",
    "EventLog",
    "PaymentService",
    "build_ledger",
]
