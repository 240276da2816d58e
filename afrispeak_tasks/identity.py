"""Who is running an import.

Every created task records its creator, and ASR image paths are keyed
by it, so an import cannot start without a resolved identity.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class IdentityProvider(ABC):
    @abstractmethod
    def current_user_id(self) -> str | None:
        """Return the signed-in user's id, or ``None`` if nobody is signed in."""
        ...


class StaticIdentity(IdentityProvider):
    """Identity fixed at construction time (CLI config, tests)."""

    def __init__(self, user_id: str | None) -> None:
        self._user_id = user_id or None

    def current_user_id(self) -> str | None:
        return self._user_id
