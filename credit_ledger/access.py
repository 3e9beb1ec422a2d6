"""Role-based authorization capability, injected into the ledger."""
from __future__ import annotations

import logging
from collections.abc import Iterable

from .errors import Unauthorized

logger = logging.getLogger(__name__)


class Role:
    ADMIN = "admin"
    REGISTRAR = "registrar"

    ALL = (ADMIN, REGISTRAR)


class RoleAuthority:
    """In-process role table seeded from the ``access`` config section."""

    def __init__(
        self, admins: Iterable[str] = (), registrars: Iterable[str] = ()
    ) -> None:
        self._members: dict[str, set[str]] = {
            Role.ADMIN: set(admins),
            Role.REGISTRAR: set(registrars),
        }

    def has_role(self, account: str, role: str) -> bool:
        return account in self._members.get(role, set())

    def require(self, account: str, *roles: str) -> None:
        """Raise ``Unauthorized`` unless ``account`` holds one of ``roles``."""
        if any(self.has_role(account, role) for role in roles):
            return
        raise Unauthorized(f"'{account}' lacks role {' or '.join(roles)}")

    def grant(self, role: str, account: str) -> None:
        if role not in Role.ALL:
            raise ValueError(f"Unknown role '{role}'")
        self._members[role].add(account)
        logger.info("Granted %s to %s", role, account)

    def revoke(self, role: str, account: str) -> None:
        if role not in Role.ALL:
            raise ValueError(f"Unknown role '{role}'")
        self._members[role].discard(account)
        logger.info("Revoked %s from %s", role, account)
