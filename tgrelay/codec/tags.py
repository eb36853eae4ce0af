"""IdentityTagCodec — embeds and recovers user identities in message text.

The relay keeps no session state.  A reply from the administrator is routed
back to the right user only because the forwarded message it replies to
carries an identity tag.  Signed tags are verified before they are trusted;
unsigned legacy tags from older deployments are still honoured.
"""

from __future__ import annotations

import logging
from typing import Any

from tgrelay.codec import signing
from tgrelay.codec.formats import find_tag, render_signed, render_unsigned
from tgrelay.core.errors import SignatureMismatch
from tgrelay.models.identity import SignedTag, SigningMode, TagFormat

logger = logging.getLogger(__name__)


class IdentityTagCodec:
    """Builds and resolves identity tags for one signing secret.

    Parameters
    ----------
    secret:
        HMAC key for tag signatures.  Empty or ``None`` selects the degraded
        mode, in which tags are forgeable; a warning is logged once per codec.
    """

    def __init__(self, secret: str | None = None) -> None:
        self._secret = secret or None
        if self.mode is SigningMode.DEGRADED:
            logger.warning(
                "IdentityTagCodec: no signing secret configured — identity tags "
                "use an unkeyed hash and can be forged.  Set TGRELAY_USER_ID_SECRET."
            )

    @property
    def mode(self) -> SigningMode:
        return signing.signing_mode(self._secret)

    # ------------------------------------------------------------------
    # Signing
    # ------------------------------------------------------------------

    def sign(self, user_id: Any) -> str:
        """Return the signature for *user_id*.  Raises ``ValidationError``."""
        return signing.sign(user_id, self._secret)

    def verify(self, tag: SignedTag) -> int:
        """Return the tag's user id if its signature verifies.

        Raises
        ------
        SignatureMismatch
            If the embedded signature does not match.
        """
        if tag.user_id is None or tag.signature is None:
            raise ValueError(f"{tag.format.value} tags carry no signature")
        if not signing.verify(tag.user_id, tag.signature, self._secret):
            raise SignatureMismatch(tag.user_id, tag.signature)
        return tag.user_id

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def build_tag(self, user_id: Any, username: str | None = None) -> str:
        """Render a clickable identity marker for outbound text.

        If signing fails the marker is rendered unsigned.  An unsigned
        deep link still resolves through the legacy path; an unsigned
        mention does not resolve at all.
        """
        try:
            signature = self.sign(user_id)
        except ValueError as exc:
            logger.error("build_tag: signing failed for %r: %s", user_id, exc)
            return render_unsigned(user_id, username)
        return render_signed(int(user_id), signature, username)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def parse(self, text: Any) -> SignedTag | None:
        """Return the highest-priority tag in *text* without verifying it."""
        if not text or not isinstance(text, str):
            return None
        return find_tag(text)

    def extract_user_id(self, text: Any) -> int | None:
        """Recover the originating user id from *text*, or ``None``.

        Resolution follows ``TAG_PRIORITY``: the newest format present in the
        text wins, and a failed signature check on that format yields
        ``None`` rather than falling through to an older marker.
        """
        tag = self.parse(text)
        if tag is None:
            return None

        if tag.format.is_signed:
            try:
                return self.verify(tag)
            except SignatureMismatch as exc:
                logger.warning(
                    "SECURITY: identity tag signature mismatch "
                    "(user_id=%s, signature=%s, format=%s) — possible tampering "
                    "or secret rotation",
                    exc.user_id,
                    exc.signature,
                    tag.format.value,
                )
                return None

        if tag.format is TagFormat.MENTION_LEGACY:
            logger.info(
                "extract_user_id: legacy username tag @%s, unrecoverable "
                "(no user id embedded)",
                tag.username,
            )
            return None

        logger.info(
            "extract_user_id: trusting unsigned legacy tag (format=%s, user_id=%s)",
            tag.format.value,
            tag.user_id,
        )
        return tag.user_id

    def has_tag_marker(self, text: Any) -> bool:
        """Whether *text* carries any identity tag, valid or not."""
        return self.parse(text) is not None

