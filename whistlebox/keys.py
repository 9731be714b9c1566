import asyncio
import base64
import binascii
import logging
from typing import Optional

import requests
from nacl.public import PublicKey
from pydantic import ValidationError

from .errors import KeyFetchError
from .schemas import KeyStatus, PublicKeyResponse

logger = logging.getLogger(__name__)


class KeyDirectory:
    """
    Session-scoped holder of the reviewer's public key.

    Construct one per application session and hand it to the pipeline. The key
    is fetched on the first ``ensure_ready()`` and reused afterwards; callers
    that arrive while that fetch is running await the same in-flight task, so
    the endpoint is hit once and everyone gets the same ``bytes`` object.
    """

    def __init__(self, endpoint: str, session: Optional[requests.Session] = None,
                 timeout: Optional[float] = None):
        self._endpoint = endpoint
        self._session = session or requests.Session()
        self._timeout = timeout
        self._key: Optional[bytes] = None
        self._inflight: Optional[asyncio.Task] = None

    @property
    def public_key(self) -> Optional[bytes]:
        return self._key

    def is_ready(self) -> bool:
        return self._key is not None

    def status(self) -> KeyStatus:
        return KeyStatus(
            ready=self._key is not None,
            fetching=self._inflight is not None,
            publicKey=base64.b64encode(self._key).decode() if self._key else None,
        )

    def reset(self) -> None:
        """Drop the cached key and abandon any fetch still running."""
        self._key = None
        if self._inflight is not None:
            self._inflight.cancel()
            self._inflight = None

    async def ensure_ready(self) -> bytes:
        if self._key is not None:
            return self._key

        task = self._inflight
        if task is None:
            task = asyncio.ensure_future(self._fetch())
            task.add_done_callback(self._fetch_done)
            self._inflight = task
        # shield: a cancelled caller must not cancel the fetch the others wait on
        return await asyncio.shield(task)

    def _fetch_done(self, task: asyncio.Task) -> None:
        # runs even when every caller has gone away
        if self._inflight is task:
            self._inflight = None
        if not task.cancelled() and task.exception() is not None:
            logger.warning("Public key fetch failed: %s", task.exception())

    async def _fetch(self) -> bytes:
        logger.info("Fetching reviewer public key from %s", self._endpoint)
        try:
            r = await asyncio.to_thread(self._session.get, self._endpoint, timeout=self._timeout)
        except requests.RequestException as e:
            raise KeyFetchError(f"public key request failed: {type(e).__name__}") from e

        if not r.ok:
            raise KeyFetchError(f"public key endpoint returned HTTP {r.status_code}")

        try:
            body = PublicKeyResponse.model_validate(r.json())
        except (ValueError, ValidationError) as e:
            raise KeyFetchError("public key response is malformed") from e
        if not body.publicKey:
            raise KeyFetchError("public key response is empty")

        try:
            key = base64.b64decode(body.publicKey, validate=True)
        except (binascii.Error, ValueError) as e:
            raise KeyFetchError("public key is not valid base64") from e
        if len(key) != PublicKey.SIZE:
            raise KeyFetchError(f"public key must be {PublicKey.SIZE} bytes, got {len(key)}")

        self._key = key
        logger.info("Reviewer public key cached")
        return key
