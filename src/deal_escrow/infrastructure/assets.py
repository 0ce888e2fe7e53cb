"""In-memory asset adapters used by the dev server, simulation.py and tests.

SimulatedNativeBank stands in for the chain's native currency and
SimulatedToken for a minimal standard fungible token. Both satisfy the
protocols in domain/asset_protocol.py, so the ledger cannot tell them apart
from a real chain adapter.

A receive hook can be registered for any account. It runs after the account
is credited, which is how a recipient calling back into the ledger in the
middle of a payout is modelled. If the hook raises, the transfer is undone
and the exception propagates, like a reverting receive function.
"""

from __future__ import annotations

from collections.abc import Callable

from deal_escrow.domain.models import normalize_address
from deal_escrow.logging_config import get_logger

logger = get_logger(__name__)

ReceiveHook = Callable[[str, int], None]


def _check_amount(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise ValueError(f"Transfer amount must be a non-negative integer, got {amount!r}")


class SimulatedNativeBank:
    """Native currency balances keyed by address."""

    def __init__(self) -> None:
        self._balances: dict[str, int] = {}
        self._hooks: dict[str, ReceiveHook] = {}

    def mint(self, owner: str, amount: int) -> int:
        """Credit new currency to an account (faucet). Returns the new balance."""
        _check_amount(amount)
        owner = normalize_address(owner, "owner")
        self._balances[owner] = self._balances.get(owner, 0) + amount
        logger.debug("bank.minted", owner=owner, amount=amount)
        return self._balances[owner]

    def balance_of(self, owner: str) -> int:
        return self._balances.get(normalize_address(owner, "owner"), 0)

    def set_receive_hook(self, account: str, hook: ReceiveHook | None) -> None:
        account = normalize_address(account, "account")
        if hook is None:
            self._hooks.pop(account, None)
        else:
            self._hooks[account] = hook

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        _check_amount(amount)
        sender = normalize_address(sender, "sender")
        recipient = normalize_address(recipient, "recipient")
        if self._balances.get(sender, 0) < amount:
            return False

        self._balances[sender] -= amount
        self._balances[recipient] = self._balances.get(recipient, 0) + amount

        hook = self._hooks.get(recipient)
        if hook is not None:
            try:
                hook(sender, amount)
            except Exception:
                self._balances[recipient] -= amount
                self._balances[sender] += amount
                raise
        return True


class SimulatedToken:
    """A minimal standard fungible token (mint / approve / transfer / transferFrom)."""

    def __init__(self, address: str, symbol: str = "NXT", decimals: int = 18) -> None:
        self.address = normalize_address(address, "token")
        self.symbol = symbol
        self.decimals = decimals
        self.total_supply = 0
        self._balances: dict[str, int] = {}
        self._allowances: dict[tuple[str, str], int] = {}

    def __repr__(self) -> str:
        return f"<SimulatedToken {self.symbol} at {self.address}>"

    def mint(self, owner: str, amount: int) -> int:
        _check_amount(amount)
        owner = normalize_address(owner, "owner")
        self._balances[owner] = self._balances.get(owner, 0) + amount
        self.total_supply += amount
        logger.debug("token.minted", token=self.symbol, owner=owner, amount=amount)
        return self._balances[owner]

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        _check_amount(amount)
        key = (normalize_address(owner, "owner"), normalize_address(spender, "spender"))
        self._allowances[key] = amount
        return True

    def balance_of(self, owner: str) -> int:
        return self._balances.get(normalize_address(owner, "owner"), 0)

    def allowance(self, owner: str, spender: str) -> int:
        key = (normalize_address(owner, "owner"), normalize_address(spender, "spender"))
        return self._allowances.get(key, 0)

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        _check_amount(amount)
        sender = normalize_address(sender, "sender")
        recipient = normalize_address(recipient, "recipient")
        if self._balances.get(sender, 0) < amount:
            return False
        self._balances[sender] -= amount
        self._balances[recipient] = self._balances.get(recipient, 0) + amount
        return True

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> bool:
        _check_amount(amount)
        key = (normalize_address(owner, "owner"), normalize_address(spender, "spender"))
        if self._allowances.get(key, 0) < amount:
            return False
        if not self.transfer(owner, recipient, amount):
            return False
        self._allowances[key] -= amount
        return True


class TokenDirectory:
    """Token address -> FungibleAsset lookup (satisfies TokenResolver)."""

    def __init__(self, tokens: list | None = None) -> None:
        self._tokens: dict[str, object] = {}
        for token in tokens or []:
            self.register(token)

    def register(self, token) -> None:  # noqa: ANN001
        self._tokens[normalize_address(token.address, "token")] = token

    def resolve(self, address: str):  # noqa: ANN201
        return self._tokens.get(address.lower())

    def addresses(self) -> list[str]:
        return sorted(self._tokens)
