"""Identity signatures — HMAC-SHA256 when a secret is set, degraded otherwise.

Two modes
---------
1. **HMAC** (``secret`` non-empty): HMAC-SHA256 over ``"user:<id>"`` keyed by
   the secret.  Only holders of the secret can mint a valid tag.

2. **Degraded** (no secret): plain SHA-256 over ``"user:<id>:fallback"``.
   Tags still have the same shape and still round-trip, but anyone who knows
   the scheme can forge one.  Running without a secret is an operational
   security decision and is logged as such by ``IdentityTagCodec``.

Both modes truncate the hex digest to ``SIGNATURE_LENGTH`` characters.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Any

from tgrelay.core.validation import validate_user_id
from tgrelay.models.identity import SigningMode

SIGNATURE_LENGTH = 16


def signing_mode(secret: str | None) -> SigningMode:
    """Return the signing mode implied by *secret*."""
    return SigningMode.HMAC if secret else SigningMode.DEGRADED


def sign(user_id: Any, secret: str | None) -> str:
    """Return the 16-hex-character signature of *user_id*.

    Raises
    ------
    ValidationError
        If *user_id* is not a non-negative integer.
    """
    uid = validate_user_id(user_id)
    if not secret:
        digest = hashlib.sha256(f"user:{uid}:fallback".encode("utf-8")).hexdigest()
    else:
        digest = hmac.new(
            secret.encode("utf-8"),
            f"user:{uid}".encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()
    return digest[:SIGNATURE_LENGTH]


def verify(user_id: Any, signature: str, secret: str | None) -> bool:
    """Check *signature* against the expected signature of *user_id*.

    Never raises: a malformed user id or signature simply fails.
    """
    if not signature:
        return False
    try:
        expected = sign(user_id, secret)
    except ValueError:
        return False
    return hmac.compare_digest(expected, signature)
