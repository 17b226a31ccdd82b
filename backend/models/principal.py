"""Principal (identity) data models."""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union


class PrincipalKind(str, Enum):
    """
    The two kinds of principal a session can carry.

    Values are the ``type`` strings used in the session user payload.
    """
    DURABLE = "google"
    EPHEMERAL = "guest"


@dataclass(frozen=True)
class Principal:
    """The authenticated (or guest) identity associated with a session."""
    id: Union[int, str]  # users row id for durable accounts, "guest_<ms>" for guests
    display_name: str
    kind: PrincipalKind
    avatar_url: Optional[str] = None

    @property
    def is_durable(self) -> bool:
        return self.kind is PrincipalKind.DURABLE

    @classmethod
    def from_session_user(cls, user: Dict[str, Any]) -> "Principal":
        """
        Build a principal from a session user mapping ``{id, name, type, photo?}``.

        Raises:
            ValueError: If ``type`` is not one of the known principal kinds
        """
        return cls(
            id=user["id"],
            display_name=user.get("name") or "Guest",
            kind=PrincipalKind(user.get("type", PrincipalKind.EPHEMERAL.value)),
            avatar_url=user.get("photo") or None,
        )

    def to_session_user(self) -> Dict[str, Any]:
        user: Dict[str, Any] = {
            "id": self.id,
            "name": self.display_name,
            "type": self.kind.value,
        }
        if self.avatar_url:
            user["photo"] = self.avatar_url
        return user
