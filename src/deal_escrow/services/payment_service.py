"""Payment Service — the only code path that moves escrowed value.

Wraps a NativeCurrency and a TokenResolver behind three calls:
    - collect_native: pull an attached native payment into custody
    - collect_token:  pull a token deposit via transfer_from
    - pay_out:        release custody to a buyer or seller

Any refusal (False return) or failure (raised exception) of the underlying
asset becomes an ExternalTransferError. Nothing is retried here; the caller
decides whether to try again.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from deal_escrow.domain.exceptions import ExternalTransferError, InvalidArgumentError
from deal_escrow.domain.models import NATIVE_ASSET
from deal_escrow.logging_config import get_logger

if TYPE_CHECKING:
    from deal_escrow.domain.asset_protocol import (
        FungibleAsset,
        NativeCurrency,
        TokenResolver,
    )

logger = get_logger(__name__)


class PaymentService:
    """Handles custody deposits and settlement payouts for the ledger."""

    def __init__(
        self,
        native: NativeCurrency,
        tokens: TokenResolver,
        custody_address: str,
    ) -> None:
        """Initialize payment service.

        Args:
            native: The native currency adapter.
            tokens: Resolver for token addresses used as deal assets.
            custody_address: The ledger's own account; holds escrowed funds
                and is the spender on token allowances.
        """
        self._native = native
        self._tokens = tokens
        self.custody_address = custody_address.lower()

    def is_known_asset(self, asset: str) -> bool:
        return asset == NATIVE_ASSET or self._tokens.resolve(asset) is not None

    def balance_of(self, asset: str, owner: str) -> int:
        if asset == NATIVE_ASSET:
            return self._native.balance_of(owner)
        return self._token(asset).balance_of(owner)

    def collect_native(self, payer: str, amount: int) -> None:
        """Move an attached native payment from the payer into custody."""
        self._run(
            "native_deposit",
            NATIVE_ASSET,
            lambda: self._native.transfer(payer, self.custody_address, amount),
            payer=payer,
            amount=amount,
        )

    def collect_token(self, asset: str, payer: str, amount: int) -> None:
        """Pull a token deposit from the payer using the custody allowance."""
        token = self._token(asset)
        allowance = token.allowance(payer, self.custody_address)
        if allowance < amount:
            raise ExternalTransferError(
                f"Insufficient allowance: required {amount}, approved {allowance}",
                asset=asset,
            )
        balance = token.balance_of(payer)
        if balance < amount:
            raise ExternalTransferError(
                f"Insufficient balance: required {amount}, available {balance}",
                asset=asset,
            )
        self._run(
            "token_deposit",
            asset,
            lambda: token.transfer_from(self.custody_address, payer, self.custody_address, amount),
            payer=payer,
            amount=amount,
        )

    def pay_out(self, asset: str, recipient: str, amount: int) -> None:
        """Release `amount` of `asset` from custody to `recipient`."""
        if asset == NATIVE_ASSET:
            action = lambda: self._native.transfer(self.custody_address, recipient, amount)  # noqa: E731
        else:
            token = self._token(asset)
            action = lambda: token.transfer(self.custody_address, recipient, amount)  # noqa: E731
        self._run("payout", asset, action, recipient=recipient, amount=amount)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _token(self, asset: str) -> FungibleAsset:
        token = self._tokens.resolve(asset)
        if token is None:
            raise InvalidArgumentError(f"Unknown asset: {asset}", field="asset")
        return token

    def _run(self, kind: str, asset: str, action, **log_fields) -> None:  # noqa: ANN001
        try:
            ok = action()
        except ExternalTransferError:
            raise
        except Exception as exc:
            logger.warning(f"payment.{kind}_failed", asset=asset, error=str(exc), **log_fields)
            raise ExternalTransferError(f"Transfer failed: {exc}", asset=asset) from exc
        if not ok:
            logger.warning(f"payment.{kind}_refused", asset=asset, **log_fields)
            raise ExternalTransferError(f"Transfer refused by asset {asset}", asset=asset)
        logger.info(f"payment.{kind}_complete", asset=asset, **log_fields)
