"""
Server-side integrity checks for incoming submissions.

The server holds no private key, so nothing here decrypts. What it can check
is shape: the algorithm, that ciphertexts are base64 and at least a sealed
box long, that checksums have the right width and encoding, that a file's
ciphertext is exactly ``size`` plus the seal overhead, and that the indexed
``sha256Hash`` mirrors the message checksum.
"""

import binascii
import hmac
import logging
import re
from typing import Optional

from .envelopes import base64d, parse_envelope
from .errors import IntegrityError
from .schemas import FileEnvelope, MessageEnvelope, SubmissionRequest
from .sealing import DIGEST_SIZE, SEAL_OVERHEAD

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
HEX_CHECKSUM_RE = re.compile(r"^[0-9a-f]{%d}$" % (DIGEST_SIZE * 2))


def _ciphertext(envelope) -> bytes:
    try:
        data = base64d(envelope.data)
    except (binascii.Error, ValueError) as e:
        raise IntegrityError("ciphertext is not valid base64") from e
    if len(data) < SEAL_OVERHEAD:
        raise IntegrityError("ciphertext is shorter than a sealed box")
    return data


class IntegrityVerifier:
    def __init__(self, max_file_bytes: Optional[int] = None):
        self.max_file_bytes = max_file_bytes

    def verify_message(self, raw: str) -> bytes:
        """Validate a serialized message envelope and return its checksum bytes."""
        envelope = parse_envelope(raw)
        if not isinstance(envelope, MessageEnvelope):
            raise IntegrityError("encryptedMessage must be a message envelope")
        if len(_ciphertext(envelope)) == SEAL_OVERHEAD:
            raise IntegrityError("message is empty")
        try:
            checksum = base64d(envelope.checksum)
        except (binascii.Error, ValueError) as e:
            raise IntegrityError("message checksum is not valid base64") from e
        if len(checksum) != DIGEST_SIZE:
            raise IntegrityError("message checksum has the wrong length")
        return checksum

    def verify_file(self, raw: str) -> FileEnvelope:
        envelope = parse_envelope(raw)
        if not isinstance(envelope, FileEnvelope):
            raise IntegrityError("encryptedFile must be a file envelope")
        if self.max_file_bytes is not None and envelope.size > self.max_file_bytes:
            raise IntegrityError("file too large", status_code=413)
        if not HEX_CHECKSUM_RE.match(envelope.checksum):
            raise IntegrityError("file checksum must be lowercase hex")
        if len(_ciphertext(envelope)) != envelope.size + SEAL_OVERHEAD:
            raise IntegrityError("file ciphertext does not match declared size")
        return envelope

    def verify(self, request: SubmissionRequest) -> None:
        checksum = self.verify_message(request.encryptedMessage)
        try:
            indexed = bytes.fromhex(request.sha256Hash)
        except ValueError as e:
            raise IntegrityError("sha256Hash is not hex") from e
        if not hmac.compare_digest(indexed, checksum):
            raise IntegrityError("sha256Hash does not match message checksum")

        if request.encryptedFile:
            self.verify_file(request.encryptedFile)
        if request.replyEmail and not EMAIL_RE.match(request.replyEmail):
            raise IntegrityError("invalid email format")
        logger.debug("Submission passed integrity checks")
