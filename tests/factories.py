"""Well-known addresses and amounts shared by the test modules."""

from __future__ import annotations

from datetime import UTC, datetime

OWNER = "0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266"
BUYER = "0x70997970c51812dc3a010c7d01b50e0d17dc79c8"
SELLER = "0x3c44cdddb6a900fa2b585dd299e03d12fa4293bc"
ARBITER = "0xcd3b766ccdd6ae721141f452c550ca635964ce71"
OTHER_ARBITER = "0x2546bcd3c84621e976d8185a91a922ae77ecec30"
STRANGER = "0x90f79bf6eb2c4f870365e785982e1f101e93b906"
LEDGER_ADDRESS = "0x5fbdb2315678afecb367f032d93f642f64180aa3"
TOKEN_ADDRESS = "0xe7f1725e7734ce288f8367e1bb143e90bb3f0512"

ONE_ETH = 10**18
FIXED_NOW = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)
