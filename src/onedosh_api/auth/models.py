"""
onedosh_api.auth.models

Auth domain models.

Responsibilities:
- Define the authenticated identity type (`Principal`) injected into endpoints.
"""

from __future__ import annotations

from dataclasses import dataclass

SUPER_ADMIN_ROLE = "super-admin"


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated caller identity.
    """

    subject: str
    roles: frozenset[str]
    permissions: frozenset[str] = frozenset()

    @property
    def is_super_admin(self) -> bool:
        return SUPER_ADMIN_ROLE in self.roles


# --- Module Notes -----------------------------------------------------------
# Keep this model minimal; it is used across API and service boundaries.
