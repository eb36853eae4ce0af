"""Unit tests for IdentityTagCodec — rendering, parsing and resolution."""

from __future__ import annotations

import logging

import pytest

from tgrelay.codec.formats import TAG_PRIORITY, TAG_VARIANTS, find_tag
from tgrelay.codec.signing import sign
from tgrelay.codec.tags import IdentityTagCodec
from tgrelay.core.errors import SignatureMismatch
from tgrelay.models.identity import SignedTag, SigningMode, TagFormat

SECRET = "s3cr3t"


class TestBuildTag:
    """build_tag renders the mention form with a username, deep link without."""

    def test_deep_link_without_username(self, codec):
        tag = codec.build_tag(42)
        assert tag == f"[👤 USER:42:{sign(42, SECRET)}](tg://user?id=42)"

    def test_mention_with_username(self, codec):
        tag = codec.build_tag(42, "alice")
        assert tag == f"[@alice (42:{sign(42, SECRET)})](https://t.me/alice)"

    def test_invalid_user_id_falls_back_to_unsigned(self, codec):
        assert codec.build_tag("nope") == "[👤 USER:nope](tg://user?id=nope)"
        assert codec.build_tag("nope", "bob") == "[@bob](https://t.me/bob)"

    @pytest.mark.parametrize("user_id", [1, 42, 555000111, 9_999_999_999])
    @pytest.mark.parametrize("username", [None, "alice", "Bob_99"])
    def test_round_trip(self, codec, user_id, username):
        """extract_user_id(build_tag(uid)) == uid for every render form."""
        text = f"📝 *Message:*\nhello\n\n📍 *From:* {codec.build_tag(user_id, username)}"
        assert codec.extract_user_id(text) == user_id


class TestParse:
    def test_each_format_is_recognised(self):
        sig = "0123456789abcdef"
        samples = {
            TagFormat.MENTION_SIGNED: f"[@alice (42:{sig})](https://t.me/alice)",
            TagFormat.MENTION_LEGACY: "[@alice](https://t.me/alice)",
            TagFormat.DEEP_LINK_SIGNED: f"[👤 USER:42:{sig}](tg://user?id=42)",
            TagFormat.DEEP_LINK_LEGACY: "[👤 USER:42](tg://user?id=42)",
            TagFormat.BRACKET_SIGNED: f"[USER:42:{sig}]",
            TagFormat.BRACKET_LEGACY: "[USER:42]",
        }
        for fmt, text in samples.items():
            tag = find_tag(f"prefix {text} suffix")
            assert tag is not None and tag.format is fmt, fmt

    def test_priority_covers_every_variant_once(self):
        assert set(TAG_PRIORITY) == set(TAG_VARIANTS) == set(TagFormat)
        assert len(TAG_PRIORITY) == len(TagFormat)

    def test_priority_is_newest_first(self):
        assert TAG_PRIORITY[0] is TagFormat.MENTION_SIGNED
        assert TAG_PRIORITY[-1] is TagFormat.BRACKET_LEGACY

    def test_uppercase_hex_is_not_a_signature(self):
        assert find_tag("[USER:42:0123456789ABCDEF]") is None

    def test_short_signature_is_not_a_signature(self):
        tag = find_tag("[USER:42:0123456789abc]")
        assert tag is None

    @pytest.mark.parametrize("text", [None, "", 42, "no tag here", "[USER:]"])
    def test_no_tag(self, codec, text):
        assert codec.parse(text) is None
        assert codec.extract_user_id(text) is None
        assert codec.has_tag_marker(text) is False


class TestExtractUserId:
    """Resolution follows TAG_PRIORITY and verifies signed formats."""

    def test_signed_bracket_format(self, codec):
        assert codec.extract_user_id(f"[USER:42:{sign(42, SECRET)}]") == 42

    def test_legacy_deep_link_trusted_unverified(self, codec, caplog):
        with caplog.at_level(logging.INFO, logger="tgrelay.codec.tags"):
            assert codec.extract_user_id("[👤 USER:77](tg://user?id=77)") == 77
        assert "unsigned legacy tag" in caplog.text

    def test_legacy_bracket_trusted_unverified(self, codec):
        assert codec.extract_user_id("hello [USER:77] bye") == 77

    def test_legacy_mention_is_unrecoverable(self, codec):
        assert codec.extract_user_id("[@alice](https://t.me/alice)") is None

    def test_signed_marker_beats_legacy_marker(self, codec):
        """A text with both a signed and a legacy marker resolves via the signed one."""
        text = f"[USER:99] then [👤 USER:42:{sign(42, SECRET)}](tg://user?id=42)"
        assert codec.extract_user_id(text) == 42

    def test_newest_format_decides_even_if_invalid(self, codec):
        """A bad signature on the winning format does not fall through to older markers."""
        text = "[👤 USER:42:0000000000000000](tg://user?id=42) [USER:99]"
        assert codec.extract_user_id(text) is None

    def test_mismatch_logged_as_security_warning(self, codec, caplog):
        with caplog.at_level(logging.WARNING, logger="tgrelay.codec.tags"):
            assert codec.extract_user_id("[USER:42:0000000000000000]") is None
        assert "SECURITY" in caplog.text

    def test_has_tag_marker_detects_any_variant(self, codec):
        assert codec.has_tag_marker("[👤 USER:1](tg://user?id=1)")
        assert codec.has_tag_marker("[@bob](https://t.me/bob)")
        assert codec.has_tag_marker("[USER:1:0000000000000000]")


class TestVerifyTag:
    def test_returns_user_id(self, codec):
        tag = SignedTag(format=TagFormat.BRACKET_SIGNED, user_id=5, signature=sign(5, SECRET))
        assert codec.verify(tag) == 5

    def test_raises_on_mismatch(self, codec):
        tag = SignedTag(format=TagFormat.BRACKET_SIGNED, user_id=5, signature="0" * 16)
        with pytest.raises(SignatureMismatch) as info:
            codec.verify(tag)
        assert info.value.user_id == 5

    def test_unsigned_tag_cannot_be_verified(self, codec):
        with pytest.raises(ValueError):
            codec.verify(SignedTag(format=TagFormat.BRACKET_LEGACY, user_id=5))


class TestSigningModes:
    def test_hmac_mode(self, codec):
        assert codec.mode is SigningMode.HMAC

    def test_degraded_mode_is_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="tgrelay.codec.tags"):
            codec = IdentityTagCodec(None)
        assert codec.mode is SigningMode.DEGRADED
        assert "can be forged" in caplog.text

    def test_degraded_tags_round_trip(self, caplog):
        codec = IdentityTagCodec("")
        assert codec.extract_user_id(codec.build_tag(42)) == 42

    def test_tags_from_other_secret_do_not_resolve(self, codec):
        foreign = IdentityTagCodec("someone-else").build_tag(42)
        assert codec.extract_user_id(foreign) is None

    def test_degraded_tags_rejected_by_hmac_codec(self, codec):
        degraded = IdentityTagCodec(None).build_tag(42)
        assert codec.extract_user_id(degraded) is None
