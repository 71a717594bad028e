"""
Actor -- the already-resolved caller of every engine operation.

Identity and session handling live outside the engine.  Request handlers
resolve the caller and pass an ActorContext explicitly into each call; there
is no ambient "current user".
"""

from dataclasses import dataclass
from uuid import UUID


class SystemRole:
    """Role codes with built-in grants."""

    OWNER = "OWNER"
    CEO = "CEO"


@dataclass(frozen=True)
class ActorContext:
    """Resolved caller: id, role code and display name."""

    actor_id: UUID
    role_code: str | None = None
    full_name: str = ""

    @property
    def display_name(self) -> str:
        return self.full_name or str(self.actor_id)
