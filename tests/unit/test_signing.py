"""Unit tests for identity signatures — HMAC and degraded modes."""

from __future__ import annotations

import hashlib
import hmac

import pytest

from tgrelay.codec.signing import SIGNATURE_LENGTH, sign, signing_mode, verify
from tgrelay.core.errors import ValidationError
from tgrelay.models.identity import SigningMode


class TestSign:
    """sign() must be deterministic, keyed, and 16 hex characters long."""

    def test_example_is_stable(self):
        """sign(42, 's3cr3t') twice yields the identical 16-char hex string."""
        first = sign(42, "s3cr3t")
        second = sign(42, "s3cr3t")
        assert first == second
        assert len(first) == SIGNATURE_LENGTH == 16
        assert all(c in "0123456789abcdef" for c in first)

    def test_matches_truncated_hmac_sha256(self):
        expected = hmac.new(b"s3cr3t", b"user:42", hashlib.sha256).hexdigest()[:16]
        assert sign(42, "s3cr3t") == expected

    def test_changing_secret_changes_signature(self):
        assert sign(42, "s3cr3t") != sign(42, "other-secret")

    def test_string_and_int_ids_sign_identically(self):
        assert sign("42", "s3cr3t") == sign(42, "s3cr3t")

    def test_no_collisions_across_realistic_sample(self):
        signatures = {sign(uid, "s3cr3t") for uid in range(1, 5001)}
        assert len(signatures) == 5000

    @pytest.mark.parametrize("bad", [-1, "abc", "", None, True, "12a", 1.5])
    def test_invalid_user_id_rejected(self, bad):
        with pytest.raises(ValidationError):
            sign(bad, "s3cr3t")


class TestDegradedMode:
    """Without a secret the signature is an unkeyed hash — distinct from HMAC."""

    def test_mode_selection(self):
        assert signing_mode("s3cr3t") is SigningMode.HMAC
        assert signing_mode("") is SigningMode.DEGRADED
        assert signing_mode(None) is SigningMode.DEGRADED

    def test_degraded_uses_fallback_hash(self):
        expected = hashlib.sha256(b"user:42:fallback").hexdigest()[:16]
        assert sign(42, None) == expected
        assert sign(42, "") == expected

    def test_degraded_differs_from_hmac(self):
        assert sign(42, None) != sign(42, "s3cr3t")

    def test_degraded_signature_still_verifies(self):
        assert verify(42, sign(42, None), None) is True


class TestVerify:
    def test_accepts_own_signature(self):
        assert verify(42, sign(42, "s3cr3t"), "s3cr3t") is True

    def test_rejects_other_users_signature(self):
        assert verify(43, sign(42, "s3cr3t"), "s3cr3t") is False

    def test_rejects_wrong_secret(self):
        assert verify(42, sign(42, "s3cr3t"), "rotated") is False

    def test_never_raises_on_garbage(self):
        assert verify("not-a-number", "0" * 16, "s3cr3t") is False
        assert verify(42, "", "s3cr3t") is False
