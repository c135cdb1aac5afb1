"""
Session - Owner Identity and the Session Guard

The identity provider resolves asynchronously. Until it does, the owner id
is None and the session is RESOLVING: views wait, no locator is built and
no query is fired. Once SIGNED_OUT, protected views redirect to the login
page.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Final, Optional

from core.errors import NotAuthenticatedError

LOGIN_URL: Final[str] = "/login"


class AuthState(Enum):
    """Where the identity provider is in resolving the current user."""

    RESOLVING = "resolving"
    SIGNED_IN = "signed_in"
    SIGNED_OUT = "signed_out"


class GuardAction(Enum):
    """What a protected view should do for the current session."""

    ALLOW = "allow"
    WAIT = "wait"
    REDIRECT = "redirect"


@dataclass(frozen=True)
class GuardDecision:
    action: GuardAction
    redirect_to: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.action == GuardAction.ALLOW


SessionListener = Callable[["Session"], None]


class Session:
    """Tracks the authenticated owner and notifies listeners on change."""

    def __init__(self, owner_id: Optional[str] = None, state: Optional[AuthState] = None):
        if state is None:
            state = AuthState.SIGNED_IN if owner_id else AuthState.RESOLVING
        if state == AuthState.SIGNED_IN and not owner_id:
            raise ValueError("A signed-in session needs an owner id")
        self._owner_id = owner_id if state == AuthState.SIGNED_IN else None
        self._state = state
        self._listeners: list[SessionListener] = []

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def owner_id(self) -> Optional[str]:
        """The owner id, or None while unknown or signed out."""
        return self._owner_id

    def require_owner(self) -> str:
        """Owner id for code paths that cannot proceed without one."""
        if self._owner_id is None:
            raise NotAuthenticatedError("You must be logged in.")
        return self._owner_id

    def add_listener(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _changed(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def sign_in(self, owner_id: str) -> None:
        if not owner_id:
            raise ValueError("owner_id is required")
        self._owner_id = owner_id
        self._state = AuthState.SIGNED_IN
        self._changed()

    def sign_out(self) -> None:
        self._owner_id = None
        self._state = AuthState.SIGNED_OUT
        self._changed()


def guard(session: Session, login_url: str = LOGIN_URL) -> GuardDecision:
    """Decide whether a protected view may render for this session."""
    if session.state == AuthState.SIGNED_IN:
        return GuardDecision(GuardAction.ALLOW)
    if session.state == AuthState.RESOLVING:
        return GuardDecision(GuardAction.WAIT)
    return GuardDecision(GuardAction.REDIRECT, redirect_to=login_url)
