"""
Session handling for Adventurers Guild.

Handles password checks with bcrypt hashing and role gating. The signed-in
user travels as an explicit Session object passed to whoever needs it.
"""

import logging
from dataclasses import dataclass

import bcrypt

from guild.errors import AuthenticationError, AuthorizationError
from guild.ranks import get_rank_for_xp

logger = logging.getLogger(__name__)

ROLES = ("adventurer", "company", "admin")


@dataclass(frozen=True)
class Session:
    """The signed-in user, as seen by the engine.

    Only adventurers carry a rank; it is always derived from their XP.
    """
    user_id: str
    email: str
    name: str
    role: str
    xp: int = 0
    rank: str | None = None


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt with automatic salt generation.

    Args:
        password: The plaintext password to hash

    Returns:
        The bcrypt hash as a string

    Example:
        >>> password_hash = hash_password("hunter22")
        >>> password_hash != "hunter22"  # Hash never equals plaintext
        True
    """
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify a password against a stored bcrypt hash.

    Returns:
        True if password matches hash, False otherwise (including
        malformed hashes)
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except (ValueError, TypeError, AttributeError):
        # Missing or malformed hash
        return False


def session_from_record(record: dict) -> Session:
    """Build a Session from a user record of the user directory."""
    role = record['role']
    if role not in ROLES:
        raise AuthorizationError(f"Unknown role: {role}")

    xp = int(record.get('xp') or 0)
    return Session(
        user_id=record['id'],
        email=record['email'],
        name=record.get('name', ''),
        role=role,
        xp=xp,
        rank=get_rank_for_xp(xp) if role == 'adventurer' else None
    )


def sign_in(email: str, password: str, directory) -> Session | None:
    """
    Authenticate a user against the user directory.

    Args:
        email: The user's email address
        password: The plaintext password
        directory: User directory with ``get_user_by_email(email)`` returning
            a user record dict (id, email, name, role, xp, password_hash)
            or None

    Returns:
        Session on success, None on unknown email or wrong password
    """
    record = directory.get_user_by_email(email)
    if record is None:
        logger.info(f"Sign-in failed: no user for {email}")
        return None

    if not verify_password(password, record.get('password_hash') or ''):
        logger.info(f"Sign-in failed: wrong password for {email}")
        return None

    return session_from_record(record)


def require_role(session: Session | None, *roles: str) -> Session:
    """
    Check that a session exists and has one of the given roles.

    Args:
        session: The caller's session, or None if not signed in
        *roles: Allowed roles; no roles means any signed-in user

    Returns:
        The session, for chaining

    Raises:
        AuthenticationError: If there is no session
        AuthorizationError: If the session's role is not allowed
    """
    if session is None:
        raise AuthenticationError()

    if roles and session.role not in roles:
        logger.warning(f"User {session.user_id} with role {session.role} denied; needs {', '.join(roles)}")
        raise AuthorizationError()

    return session
