"""Ledger error hierarchy — every failure aborts the single operation."""
from __future__ import annotations


class LedgerError(Exception):
    """Base exception for all credit ledger failures."""


class UnsupportedAsset(LedgerError):
    """Asset is not registered, or not eligible for the requested operation."""


class AssetAlreadyRegistered(LedgerError):
    """Asset identifier already has a descriptor."""


class InsufficientBalance(LedgerError):
    """Requested amount exceeds the recorded deposit or fee balance."""


class InsufficientBorrowed(LedgerError):
    """Repayment exceeds the outstanding borrowed amount."""


class CapacityExceeded(LedgerError):
    """Collateral power or score-derived capacity would be exceeded."""


class GlobalLimitExceeded(LedgerError):
    """Pool-wide credit ceiling would be exceeded."""


class InvalidOraclePrice(LedgerError):
    """Oracle returned a non-positive price."""


class AdapterCallFailed(LedgerError):
    """An external collaborator reported a non-success status."""


class Unauthorized(LedgerError):
    """Caller lacks the role required by the entry point."""


class UnknownUser(LedgerError):
    """User has no credit profile."""


class UserAlreadyRegistered(LedgerError):
    """User already has a credit profile."""


class ReentrantCall(LedgerError):
    """A ledger operation was entered while another one is in flight."""
