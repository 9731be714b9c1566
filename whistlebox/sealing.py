"""
Sealed-box primitives.

Anonymous public-key encryption (libsodium ``crypto_box_seal``): every call
generates an ephemeral X25519 keypair, so two seals of the same plaintext
differ and nothing identifies the sender. Only the holder of the matching
private key can open the box; nothing here ever needs it.

The digest is BLAKE2b with a 32-byte output, byte-compatible with
``crypto_generichash(32, data)``. It is integrity bookkeeping, not secrecy.
"""

import logging

import nacl.encoding
import nacl.exceptions
import nacl.hash
from nacl.public import PublicKey, SealedBox

from .errors import EncryptionFailure

logger = logging.getLogger(__name__)

DIGEST_SIZE = 32
# ephemeral public key (32) + Poly1305 tag (16)
SEAL_OVERHEAD = PublicKey.SIZE + 16


def digest(data: bytes, key: bytes = b"") -> bytes:
    """32-byte BLAKE2b of ``data``; keyed when ``key`` is non-empty."""
    return nacl.hash.blake2b(
        data, digest_size=DIGEST_SIZE, key=key, encoder=nacl.encoding.RawEncoder
    )


def seal_bytes(data: bytes, public_key: bytes) -> bytes:
    if not isinstance(data, (bytes, bytearray)):
        raise EncryptionFailure("plaintext must be bytes")
    try:
        box = SealedBox(PublicKey(bytes(public_key)))
        return box.encrypt(bytes(data))
    except (nacl.exceptions.CryptoError, TypeError, ValueError) as e:
        # Report the category only. The input stays out of the message.
        logger.debug("sealed box failed: %s", type(e).__name__)
        raise EncryptionFailure(f"sealed box encryption failed ({type(e).__name__})") from e


def encode_message(plaintext: str) -> bytes:
    """UTF-8 bytes of the report text; what gets digested and sealed."""
    if not isinstance(plaintext, str):
        raise EncryptionFailure("message must be text")
    try:
        return plaintext.encode("utf-8")
    except UnicodeEncodeError:
        # the codec error quotes the offending character
        raise EncryptionFailure("message is not valid text") from None


def seal_message(plaintext: str, public_key: bytes) -> bytes:
    return seal_bytes(encode_message(plaintext), public_key)
