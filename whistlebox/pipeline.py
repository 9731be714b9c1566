import asyncio
import logging
from typing import Optional, Tuple

import requests

from . import sealing
from .envelopes import (
    Attachment,
    build_file_envelope,
    build_message_envelope,
    serialize_envelope,
)
from .errors import (
    ENCRYPT_FAILED_MESSAGE,
    INIT_FAILED_MESSAGE,
    EncryptionFailure,
    KeyFetchError,
    PipelineNotReady,
    SubmissionEncryptionError,
    SubmissionRejected,
)
from .keys import KeyDirectory
from .schemas import SubmissionReceipt, SubmissionRequest

logger = logging.getLogger(__name__)


class SubmissionPipeline:
    """
    Turns report text and an optional attachment into the wire-ready body.

    For each item: make sure the key directory is ready, digest the plaintext,
    seal it, wrap it in an envelope. Any failure reaches the caller as a
    ``SubmissionEncryptionError`` with a user-safe message; the real cause is
    chained and logged. Nothing is sent unless every item sealed.
    """

    def __init__(self, keys: KeyDirectory, submit_url: Optional[str] = None,
                 session: Optional[requests.Session] = None, timeout: Optional[float] = None):
        self._keys = keys
        self._submit_url = submit_url
        self._session = session or requests.Session()
        self._timeout = timeout

    async def _public_key(self) -> bytes:
        try:
            await self._keys.ensure_ready()
        except KeyFetchError as e:
            raise PipelineNotReady("key directory failed to initialise") from e
        # a concurrent caller may have seen initialisation fail
        key = self._keys.public_key
        if key is None:
            raise PipelineNotReady("no public key after initialisation")
        return key

    async def _guarded(self, coro):
        try:
            return await coro
        except PipelineNotReady as e:
            logger.error("Encryption unavailable: %s", e, exc_info=True)
            raise SubmissionEncryptionError(INIT_FAILED_MESSAGE) from e
        except EncryptionFailure as e:
            logger.error("Encryption failed: %s", e, exc_info=True)
            raise SubmissionEncryptionError(ENCRYPT_FAILED_MESSAGE) from e

    async def _seal_message(self, plaintext: str) -> Tuple[str, bytes]:
        key = await self._public_key()
        checksum = sealing.digest(sealing.encode_message(plaintext))
        ciphertext = sealing.seal_message(plaintext, key)
        return serialize_envelope(build_message_envelope(ciphertext, checksum)), checksum

    async def _seal_attachment(self, attachment: Attachment) -> str:
        key = await self._public_key()
        if not isinstance(attachment.content, (bytes, bytearray)):
            raise EncryptionFailure("attachment content must be bytes")
        content = bytes(attachment.content)
        checksum = sealing.digest(content)
        ciphertext = sealing.seal_bytes(content, key)
        return serialize_envelope(build_file_envelope(attachment, ciphertext, checksum))

    async def encrypt_message(self, plaintext: str) -> str:
        envelope, _ = await self._guarded(self._seal_message(plaintext))
        return envelope

    async def encrypt_attachment(self, attachment: Attachment) -> str:
        return await self._guarded(self._seal_attachment(attachment))

    async def build_submission(self, message: str, attachment: Optional[Attachment] = None,
                               reply_email: Optional[str] = None,
                               hospital_trust: Optional[str] = None) -> SubmissionRequest:
        encrypted_message, checksum = await self._guarded(self._seal_message(message))
        encrypted_file = None
        if attachment is not None:
            encrypted_file = await self.encrypt_attachment(attachment)

        return SubmissionRequest(
            encryptedMessage=encrypted_message,
            encryptedFile=encrypted_file,
            replyEmail=reply_email or None,
            hospitalTrust=hospital_trust or None,
            sha256Hash=checksum.hex(),
        )

    async def submit(self, request: SubmissionRequest) -> SubmissionReceipt:
        if not self._submit_url:
            raise ValueError("pipeline has no submit_url")
        body = request.model_dump(exclude_none=True)
        r = await asyncio.to_thread(self._session.post, self._submit_url, json=body,
                                    timeout=self._timeout)
        if not r.ok:
            try:
                error = r.json().get("detail", r.reason)
            except (ValueError, AttributeError):
                error = r.reason
            logger.warning("Submission rejected with HTTP %s", r.status_code)
            raise SubmissionRejected(r.status_code, str(error))

        receipt = SubmissionReceipt.model_validate(r.json())
        logger.info("Submission %s accepted", receipt.id)
        return receipt
