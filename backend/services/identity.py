"""Identity and session model: who is logged in and where their history lives."""
import logging
import time
from enum import Enum
from typing import Any, Dict, Optional

from models.principal import Principal, PrincipalKind
from config import LOGIN_PAGE

logger = logging.getLogger(__name__)


class AuthenticationRequired(Exception):
    """Raised when an operation needs a principal and there is none."""

    def __init__(self, message: str = "Not authenticated", entry_point: str = LOGIN_PAGE):
        self.entry_point = entry_point
        super().__init__(message)


class InvalidTransition(Exception):
    """Raised on a session transition the state machine does not allow."""


class SessionState(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


class HistoryBackend(str, Enum):
    SERVER = "server"
    LOCAL = "local"


def history_backend_for(kind: PrincipalKind) -> HistoryBackend:
    """Return where a principal kind keeps its history."""
    if kind is PrincipalKind.DURABLE:
        return HistoryBackend.SERVER
    if kind is PrincipalKind.EPHEMERAL:
        return HistoryBackend.LOCAL
    raise ValueError(f"Unknown principal kind: {kind!r}")


def create_guest_principal(name: str, now_ms: Optional[int] = None) -> Principal:
    """
    Create an ephemeral principal for a guest login.

    The id is derived from the login timestamp, so two guests logging in within
    the same millisecond share an id.

    Args:
        name: Display name supplied by the guest
        now_ms: Epoch milliseconds (defaults to the current time)

    Raises:
        ValueError: If the name is blank
    """
    if not name or not name.strip():
        raise ValueError("Name required")
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return Principal(
        id=f"guest_{stamp}",
        display_name=name.strip(),
        kind=PrincipalKind.EPHEMERAL,
    )


class IdentitySession:
    """
    Per-browser-session identity state.

    anonymous -> (login) -> authenticated(kind) -> (logout) -> anonymous
    """

    def __init__(self):
        self.state = SessionState.ANONYMOUS
        self.principal: Optional[Principal] = None

    def login(self, principal: Principal) -> None:
        if self.state is not SessionState.ANONYMOUS:
            raise InvalidTransition("Already authenticated; log out first")
        self.principal = principal
        self.state = SessionState.AUTHENTICATED
        logger.info(
            f"Session authenticated as {principal.kind.value} principal",
            extra={"principal_kind": principal.kind.value}
        )

    def logout(self) -> None:
        if self.state is not SessionState.AUTHENTICATED:
            raise InvalidTransition("Not authenticated")
        self.principal = None
        self.state = SessionState.ANONYMOUS
        logger.info("Session logged out")

    def resolve(self, payload: Dict[str, Any]) -> Principal:
        """
        Log in from a session/identity query payload ``{loggedIn, user?}``.

        Raises:
            AuthenticationRequired: If the payload does not carry a usable logged-in user
        """
        user = payload.get("user")
        if not payload.get("loggedIn") or not user:
            raise AuthenticationRequired()
        try:
            principal = Principal.from_session_user(user)
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Unusable session user: {e!r}")
            raise AuthenticationRequired("Malformed session user") from e
        self.login(principal)
        return principal

    def require_principal(self) -> Principal:
        if self.principal is None:
            raise AuthenticationRequired()
        return self.principal

