"""Development-only routes for the simulated assets.

Mounted only when APP_ENV=development. They stand in for a wallet: crediting
funds and granting the ledger a token allowance.

Routes:
    POST /api/v1/dev/faucet              — Mint native currency or tokens
    POST /api/v1/dev/approve             — Approve the ledger as token spender
    GET  /api/v1/dev/balances/{address}  — Native and token balances
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from deal_escrow.api.deps import get_app_settings
from deal_escrow.config import Settings
from deal_escrow.domain.exceptions import InvalidArgumentError
from deal_escrow.domain.models import is_zero_address, normalize_address
from deal_escrow.infrastructure.assets import SimulatedNativeBank, SimulatedToken, TokenDirectory
from deal_escrow.logging_config import get_logger
from deal_escrow.schemas.escrow import ApproveRequest, BalanceResponse, FaucetRequest

router = APIRouter(prefix="/api/v1/dev", tags=["Development"])
logger = get_logger(__name__)


def get_native_bank(request: Request) -> SimulatedNativeBank:
    return request.app.state.native_bank


def get_token_directory(request: Request) -> TokenDirectory:
    return request.app.state.token_directory


def _resolve_token(tokens: TokenDirectory, asset: str) -> SimulatedToken:
    token = tokens.resolve(asset)
    if token is None:
        raise InvalidArgumentError(f"Unknown asset: {asset}", field="asset")
    return token


def _balances(
    address: str,
    bank: SimulatedNativeBank,
    tokens: TokenDirectory,
    spender: str,
) -> BalanceResponse:
    address = normalize_address(address)
    token_balances: dict[str, int] = {}
    allowances: dict[str, int] = {}
    for token_address in tokens.addresses():
        token = tokens.resolve(token_address)
        token_balances[token_address] = token.balance_of(address)
        allowances[token_address] = token.allowance(address, spender)
    return BalanceResponse(
        address=address,
        native=bank.balance_of(address),
        tokens=token_balances,
        allowances=allowances,
    )


@router.post("/faucet", response_model=BalanceResponse, summary="Mint simulated funds")
async def faucet(
    request: FaucetRequest,
    bank: SimulatedNativeBank = Depends(get_native_bank),
    tokens: TokenDirectory = Depends(get_token_directory),
    settings: Settings = Depends(get_app_settings),
) -> BalanceResponse:
    if is_zero_address(request.asset):
        bank.mint(request.address, request.amount)
    else:
        _resolve_token(tokens, request.asset).mint(request.address, request.amount)
    logger.info("dev.faucet", address=request.address, asset=request.asset, amount=request.amount)
    return _balances(request.address, bank, tokens, settings.ledger_address)


@router.post("/approve", response_model=BalanceResponse, summary="Approve the ledger as spender")
async def approve(
    request: ApproveRequest,
    bank: SimulatedNativeBank = Depends(get_native_bank),
    tokens: TokenDirectory = Depends(get_token_directory),
    settings: Settings = Depends(get_app_settings),
) -> BalanceResponse:
    _resolve_token(tokens, request.asset).approve(request.owner, settings.ledger_address, request.amount)
    logger.info("dev.approved", owner=request.owner, asset=request.asset, amount=request.amount)
    return _balances(request.owner, bank, tokens, settings.ledger_address)


@router.get("/balances/{address}", response_model=BalanceResponse, summary="Get simulated balances")
async def balances(
    address: str,
    bank: SimulatedNativeBank = Depends(get_native_bank),
    tokens: TokenDirectory = Depends(get_token_directory),
    settings: Settings = Depends(get_app_settings),
) -> BalanceResponse:
    return _balances(address, bank, tokens, settings.ledger_address)
