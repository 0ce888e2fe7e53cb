"""Asset Protocols.

Defines the interfaces the ledger consumes to move value. These are Protocols
(structural subtyping), so an adapter for a real chain or the in-memory
simulation only has to match the shape.

The ledger never assumes a transfer succeeded: a False return or a raised
exception aborts the triggering operation.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class FungibleAsset(Protocol):
    """A standard transferable-balance token.

    Concrete implementations:
        - infrastructure/assets.py  (SimulatedToken)
    """

    address: str

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """Move `amount` from `sender` (the calling account) to `recipient`."""
        ...

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> bool:
        """Move `amount` from `owner` to `recipient` against spender's allowance."""
        ...

    def balance_of(self, owner: str) -> int:
        ...

    def allowance(self, owner: str, spender: str) -> int:
        ...


@runtime_checkable
class NativeCurrency(Protocol):
    """The chain's intrinsic currency.

    Concrete implementations:
        - infrastructure/assets.py  (SimulatedNativeBank)
    """

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        ...

    def balance_of(self, owner: str) -> int:
        ...


@runtime_checkable
class TokenResolver(Protocol):
    """Looks up the FungibleAsset deployed at a token address."""

    def resolve(self, address: str) -> FungibleAsset | None:
        ...
