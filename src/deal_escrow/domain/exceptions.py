"""Domain exceptions for the deal escrow ledger.

These exceptions are framework-agnostic and represent business rule violations.
They are caught and translated to HTTP responses by the API layer's middleware.
Every precondition failure in the ledger raises exactly one of these, so a
caller can tell a wrong role from a wrong state from a bad argument.
"""


class EscrowError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str, code: str = "ESCROW_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


# --- Authorization ---


class AuthorizationError(EscrowError):
    """Raised when the caller does not hold the role an operation requires.

    Example: a buyer calling confirm_shipment (seller only).
    """

    def __init__(self, caller: str, required_role: str) -> None:
        super().__init__(
            message=f"Caller {caller} is not authorized: only {required_role} can call",
            code="UNAUTHORIZED",
        )
        self.caller = caller
        self.required_role = required_role


# --- State Machine Errors ---


class InvalidStateTransitionError(EscrowError):
    """Raised when an operation is not valid from the deal's current state.

    Example: AWAITING_PAYMENT -> SHIPPED (payment must be received first).
    """

    def __init__(self, current_state: str, attempted: str) -> None:
        super().__init__(
            message=f"Invalid state transition: {attempted} not allowed in {current_state}",
            code="INVALID_STATE_TRANSITION",
        )
        self.current_state = current_state
        self.attempted = attempted


class ReentrantCallError(InvalidStateTransitionError):
    """Raised when a deal is re-entered while one of its operations is in flight."""

    def __init__(self, deal_id: int, attempted: str) -> None:
        super().__init__(current_state="IN_FLIGHT", attempted=attempted)
        self.message = f"Reentrant call: {attempted} on deal {deal_id} while in flight"
        self.args = (self.message,)
        self.code = "REENTRANT_CALL"
        self.deal_id = deal_id


# --- Argument Errors ---


class InvalidArgumentError(EscrowError):
    """Raised for zero addresses, zero amounts, unknown assets and the like."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message=message, code="INVALID_ARGUMENT")
        self.field = field


# --- Lookup Errors ---


class DuplicateArbiterError(EscrowError):
    """Raised when adding an arbiter that is already approved."""

    def __init__(self, address: str) -> None:
        super().__init__(
            message=f"Arbiter already exists: {address}",
            code="ARBITER_ALREADY_EXISTS",
        )
        self.address = address


class NotFoundError(EscrowError):
    """Base exception for lookups of things that do not exist."""


class ArbiterNotFoundError(NotFoundError):
    """Raised when removing an arbiter that is not currently approved."""

    def __init__(self, address: str) -> None:
        super().__init__(
            message=f"Arbiter not found: {address}",
            code="ARBITER_NOT_FOUND",
        )
        self.address = address


class DealNotFoundError(NotFoundError):
    """Raised when a deal id has never been allocated."""

    def __init__(self, deal_id: int) -> None:
        super().__init__(
            message=f"Deal not found: {deal_id}",
            code="DEAL_NOT_FOUND",
        )
        self.deal_id = deal_id


# --- Transfer Errors ---


class ExternalTransferError(EscrowError):
    """Raised when the underlying asset refuses or fails a transfer."""

    def __init__(self, message: str, asset: str | None = None) -> None:
        super().__init__(message=message, code="EXTERNAL_TRANSFER_FAILED")
        self.asset = asset


# --- Projection Errors ---


class ProjectionError(EscrowError):
    """Raised when a committed ledger operation could not be written to the database.

    The in-memory ledger has already applied the operation; only the
    database copy is behind.
    """

    def __init__(self, message: str, deal_ids: list[int] | None = None) -> None:
        super().__init__(
            message=f"Ledger operation committed but not persisted: {message}",
            code="PROJECTION_WRITE_FAILED",
        )
        self.deal_ids = deal_ids or []


class StaleProjectionError(EscrowError):
    """Raised at startup when the database holds deals or events of an earlier run."""

    def __init__(self, deals: int, events: int) -> None:
        super().__init__(
            message=(
                f"Database already holds {deals} deals and {events} events from an earlier "
                "run; set DATABASE_RESET_ON_STARTUP=true to clear them"
            ),
            code="STALE_PROJECTION",
        )
        self.deals = deals
        self.events = events
