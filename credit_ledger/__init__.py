"""Multi-asset credit ledger with collateral, credit scoring and fee routing."""
from .access import Role, RoleAuthority
from .config import AppConfig, load_config
from .errors import (
    AdapterCallFailed,
    AssetAlreadyRegistered,
    CapacityExceeded,
    GlobalLimitExceeded,
    InsufficientBalance,
    InsufficientBorrowed,
    InvalidOraclePrice,
    LedgerError,
    ReentrantCall,
    Unauthorized,
    UnknownUser,
    UnsupportedAsset,
    UserAlreadyRegistered,
)
from .factory import build_ledger
from .ledger import CreditLedger
from .logging_setup import configure_logging
from .models import CreditInfo, InflowSplit, SweepPolicy, SweepResult

__all__ = [
    "AdapterCallFailed",
    "AppConfig",
    "AssetAlreadyRegistered",
    "CapacityExceeded",
    "CreditInfo",
    "CreditLedger",
    "GlobalLimitExceeded",
    "InflowSplit",
    "InsufficientBalance",
    "InsufficientBorrowed",
    "InvalidOraclePrice",
    "LedgerError",
    "ReentrantCall",
    "Role",
    "RoleAuthority",
    "SweepPolicy",
    "SweepResult",
    "Unauthorized",
    "UnknownUser",
    "UnsupportedAsset",
    "UserAlreadyRegistered",
    "build_ledger",
    "configure_logging",
    "load_config",
]
