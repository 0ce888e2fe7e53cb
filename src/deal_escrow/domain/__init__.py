"""Domain layer — pure business logic with zero framework dependencies."""

from deal_escrow.domain.asset_protocol import (
    FungibleAsset,
    NativeCurrency,
    TokenResolver,
)
from deal_escrow.domain.enums import (
    AssetKind,
    DealState,
    EventType,
)
from deal_escrow.domain.exceptions import (
    ArbiterNotFoundError,
    AuthorizationError,
    DealNotFoundError,
    DuplicateArbiterError,
    EscrowError,
    ExternalTransferError,
    InvalidArgumentError,
    InvalidStateTransitionError,
    NotFoundError,
    ProjectionError,
    ReentrantCallError,
    StaleProjectionError,
)
from deal_escrow.domain.models import (
    NATIVE_ASSET,
    ZERO_ADDRESS,
    Deal,
    DealView,
    normalize_address,
)
from deal_escrow.domain.state_machine import (
    DealStateMachine,
    validate_transition,
)

__all__ = [
    "FungibleAsset",
    "NativeCurrency",
    "TokenResolver",
    "AssetKind",
    "DealState",
    "EventType",
    "ArbiterNotFoundError",
    "AuthorizationError",
    "DealNotFoundError",
    "DuplicateArbiterError",
    "EscrowError",
    "ExternalTransferError",
    "InvalidArgumentError",
    "InvalidStateTransitionError",
    "NotFoundError",
    "ProjectionError",
    "ReentrantCallError",
    "StaleProjectionError",
    "NATIVE_ASSET",
    "ZERO_ADDRESS",
    "Deal",
    "DealView",
    "normalize_address",
    "DealStateMachine",
    "validate_transition",
]
