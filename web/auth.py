"""
Owner Authentication - Password Login and Signed Session Cookies

An owner signs in with one of the configured emails and the shared
password. The session travels in a cookie holding a compact claims payload
and its HMAC:

    base64url({"sub": email, "oid": owner_id, "iat": ..., "exp": ..., "sid": ...}).hexdigest

Records are stored under owners/{owner_id}/..., so the owner id has to be
the same on every login. It is the first 28 hex characters of the SHA-256
of the lower-cased email.

To produce OWNER_PASSWORD_HASH:
    python -c "from web.auth import hash_password; print(hash_password('...'))"
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Final, Optional

from fastapi import Request, Response

from core.session import AuthState, Session
from utils.config import Config

SESSION_COOKIE_NAME: Final[str] = "portfolio_session"
OWNER_ID_LENGTH: Final[int] = 28
PBKDF2_ITERATIONS: Final[int] = 100000


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _normalise_email(email: str) -> str:
    return email.strip().lower()


# =============================================================================
# Passwords & Owner Ids
# =============================================================================


def hash_password(password: str, salt: Optional[str] = None) -> str:
    """PBKDF2-HMAC-SHA256 of ``password``, stored as ``salt$digest`` in hex."""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), PBKDF2_ITERATIONS)
    return f"{salt}${digest.hex()}"


def verify_password(password: str, stored_hash: Optional[str]) -> bool:
    if not stored_hash or "$" not in stored_hash:
        return False
    salt = stored_hash.split("$", 1)[0]
    return hmac.compare_digest(hash_password(password, salt), stored_hash)


def owner_id_for(email: str) -> str:
    """Stable owner id for a login email."""
    digest = hashlib.sha256(_normalise_email(email).encode("utf-8")).hexdigest()
    return digest[:OWNER_ID_LENGTH]


# =============================================================================
# Owner Sessions
# =============================================================================


@dataclass(frozen=True)
class OwnerSession:
    """A signed-in owner, as carried by the session cookie."""

    email: str
    owner_id: str
    issued_at: datetime
    expires_at: datetime
    session_id: str

    def expired(self, now: Optional[datetime] = None) -> bool:
        return (now or _utcnow()) >= self.expires_at

    def claims(self) -> dict:
        return {
            "sub": self.email,
            "oid": self.owner_id,
            "iat": int(self.issued_at.timestamp()),
            "exp": int(self.expires_at.timestamp()),
            "sid": self.session_id,
        }

    @classmethod
    def from_claims(cls, claims: dict) -> "OwnerSession":
        return cls(
            email=claims["sub"],
            owner_id=claims["oid"],
            issued_at=datetime.fromtimestamp(claims["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
            session_id=claims["sid"],
        )


def create_session(email: str, duration_hours: int = 8) -> OwnerSession:
    # Claims carry whole seconds
    issued = _utcnow().replace(microsecond=0)
    email = _normalise_email(email)
    return OwnerSession(
        email=email,
        owner_id=owner_id_for(email),
        issued_at=issued,
        expires_at=issued + timedelta(hours=duration_hours),
        session_id=secrets.token_urlsafe(12),
    )


def _mac(payload: str, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), payload.encode("ascii"), hashlib.sha256).hexdigest()


def sign_session(session: OwnerSession, secret: str) -> str:
    """Encode ``session`` for the cookie as ``payload.mac``."""
    raw = json.dumps(session.claims(), separators=(",", ":"), sort_keys=True)
    payload = base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii")
    return f"{payload}.{_mac(payload, secret)}"


def verify_session(token: str, secret: str) -> Optional[OwnerSession]:
    """The session in ``token``, or None if it is forged, malformed or expired."""
    payload, _, mac = token.rpartition(".")
    try:
        if not payload or not hmac.compare_digest(mac, _mac(payload, secret)):
            return None
        claims = json.loads(base64.urlsafe_b64decode(payload.encode("ascii")))
        session = OwnerSession.from_claims(claims)
    except (ValueError, KeyError, TypeError):
        return None
    return None if session.expired() else session


# =============================================================================
# Login & Cookies
# =============================================================================


def is_login_configured(config: Config) -> bool:
    return bool(config.owner_emails) and bool(config.owner_password_hash)


def authenticate_owner(email: str, password: str, config: Config) -> Optional[OwnerSession]:
    """
    Check an email and password against the configured owners.

    Returns:
        A fresh OwnerSession, or None if login is not configured, the email
        is not an owner or the password is wrong.
    """
    email = _normalise_email(email)
    if not is_login_configured(config) or email not in config.owner_emails:
        return None
    if not verify_password(password, config.owner_password_hash):
        return None
    return create_session(email, config.session_duration_hours)


def get_current_owner(request: Request, secret: str) -> Optional[OwnerSession]:
    token = request.cookies.get(SESSION_COOKIE_NAME)
    return verify_session(token, secret) if token else None


def session_for(owner: Optional[OwnerSession]) -> Session:
    """Identity state for the session guard."""
    if owner is None:
        return Session(state=AuthState.SIGNED_OUT)
    return Session(owner.owner_id)


def set_session_cookie(response: Response, session: OwnerSession, secret: str, secure: bool = False) -> None:
    """Attach the signed session; the cookie lives exactly as long as the session."""
    response.set_cookie(
        SESSION_COOKIE_NAME,
        sign_session(session, secret),
        max_age=int((session.expires_at - session.issued_at).total_seconds()),
        httponly=True,
        secure=secure,
        samesite="lax",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE_NAME)
