"""Ed25519 session token utilities using PyNaCl.

A session token is ``<user_id>.<issued_at>.<signature_hex>`` where the
signature covers ``<user_id>.<issued_at>`` and is made with a key derived
from the platform signing secret.
"""

import hashlib
import time
import uuid

from nacl.encoding import HexEncoder
from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey

from app.config import settings


def _platform_signing_key() -> SigningKey:
    seed = hashlib.sha256(settings.platform_signing_key.encode()).digest()
    return SigningKey(seed)


def build_session_message(user_id: uuid.UUID, issued_at: int) -> bytes:
    """Build the message to sign: user_id.issued_at."""
    return f"{user_id}.{issued_at}".encode()


def issue_session_token(user_id: uuid.UUID, issued_at: int | None = None) -> str:
    """Sign a session token for the user."""
    if issued_at is None:
        issued_at = int(time.time())
    message = build_session_message(user_id, issued_at)
    signed = _platform_signing_key().sign(message, encoder=HexEncoder)
    return f"{user_id}.{issued_at}.{signed.signature.decode()}"


def is_issued_at_valid(issued_at: int, max_age_seconds: int) -> bool:
    """Check that a token is not older than the allowed window nor from the future."""
    age = time.time() - issued_at
    # Allow a little clock skew on the future side
    return -30 <= age <= max_age_seconds


def verify_session_token(token: str, max_age_seconds: int | None = None) -> uuid.UUID | None:
    """Return the user id for a valid, unexpired token, else None."""
    if max_age_seconds is None:
        max_age_seconds = settings.session_max_age_seconds
    try:
        user_id_str, issued_at_str, signature_hex = token.split(".")
        user_id = uuid.UUID(user_id_str)
        issued_at = int(issued_at_str)
    except ValueError:
        return None

    if not is_issued_at_valid(issued_at, max_age_seconds):
        return None

    verify_key = _platform_signing_key().verify_key
    try:
        verify_key.verify(
            build_session_message(user_id, issued_at),
            HexEncoder.decode(signature_hex.encode()),
        )
    except (BadSignatureError, ValueError, TypeError):
        return None
    return user_id
