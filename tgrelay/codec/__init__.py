"""Identity tag codec — signed user markers embedded in relayed text."""

from tgrelay.codec.formats import TAG_PRIORITY, TAG_VARIANTS, TagVariant
from tgrelay.codec.signing import SIGNATURE_LENGTH, sign, verify
from tgrelay.codec.tags import IdentityTagCodec

__all__ = [
    "IdentityTagCodec",
    "SIGNATURE_LENGTH",
    "TAG_PRIORITY",
    "TAG_VARIANTS",
    "TagVariant",
    "sign",
    "verify",
]
