"""Buyer/seller escrow ledger with arbiter-mediated disputes."""

__version__ = "0.1.0"
