"""Authority protocol — injected role check used at every entry point."""
from typing import Protocol


class Authority(Protocol):
    """Abstract interface for role-based authorization."""

    def has_role(self, account: str, role: str) -> bool: ...

    def require(self, account: str, *roles: str) -> None: ...

    def grant(self, role: str, account: str) -> None: ...

    def revoke(self, role: str, account: str) -> None: ...
