"""Verification of bearer tokens issued by the clinic auth service."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any
from uuid import UUID

from jose import JWTError, jwt

from frontdesk.config import settings


class ActorRole(str, Enum):
    """Roles that may call the scheduling API."""

    STAFF = "staff"
    PATIENT = "patient"


@dataclass(frozen=True)
class Actor:
    """Authenticated caller."""

    id: UUID
    role: ActorRole
    patient_id: UUID | None = None


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a JWT access token.

    Tokens are normally minted by the auth service; this helper exists for
    tooling and tests that need a token signed with the shared secret.

    Args:
        data: Payload data to encode
        expires_delta: Optional expiration time delta

    Returns:
        Encoded JWT token
    """
    to_encode = data.copy()
    now = datetime.now(UTC)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))

    to_encode.update({"exp": expire, "iat": now, "type": "access"})

    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_access_token(token: str) -> dict[str, Any] | None:
    """
    Decode and validate a JWT access token.

    Args:
        token: JWT token to decode

    Returns:
        Decoded payload or None if invalid
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None

    if payload.get("type") != "access":
        return None

    return payload


def actor_from_claims(payload: dict[str, Any]) -> Actor | None:
    """Build an actor from token claims, or None when claims are incomplete."""
    try:
        actor_id = UUID(str(payload["sub"]))
        role = ActorRole(payload.get("role"))
        patient_id = UUID(str(payload["patient_id"])) if payload.get("patient_id") else None
    except (KeyError, ValueError):
        return None

    if role == ActorRole.PATIENT and patient_id is None:
        return None

    return Actor(id=actor_id, role=role, patient_id=patient_id)
