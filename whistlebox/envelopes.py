import asyncio
import base64
import json
import mimetypes
import os
from dataclasses import dataclass
from typing import Optional, Union

from pydantic import ValidationError

from .errors import IntegrityError
from .schemas import ALGORITHM, FileEnvelope, MessageEnvelope

Envelope = Union[MessageEnvelope, FileEnvelope]

DEFAULT_MIMETYPE = "application/octet-stream"


def base64u(b: bytes) -> str:
    return base64.b64encode(b).decode()


def base64d(s: str) -> bytes:
    return base64.b64decode(s.encode(), validate=True)


@dataclass(frozen=True)
class Attachment:
    filename: str
    mimetype: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)

    @classmethod
    def from_upload(cls, uploaded) -> "Attachment":
        """Wrap a Streamlit ``UploadedFile``."""
        return cls(
            filename=uploaded.name,
            mimetype=uploaded.type or DEFAULT_MIMETYPE,
            content=uploaded.getvalue(),
        )

    @classmethod
    async def from_path(cls, path: str, mimetype: Optional[str] = None) -> "Attachment":
        def _read() -> bytes:
            with open(path, "rb") as f:
                return f.read()

        content = await asyncio.to_thread(_read)
        if mimetype is None:
            mimetype = mimetypes.guess_type(path)[0] or DEFAULT_MIMETYPE
        return cls(filename=os.path.basename(path), mimetype=mimetype, content=content)


def build_message_envelope(ciphertext: bytes, checksum: bytes) -> MessageEnvelope:
    return MessageEnvelope(data=base64u(ciphertext), checksum=base64u(checksum))


def build_file_envelope(attachment: Attachment, ciphertext: bytes, checksum: bytes) -> FileEnvelope:
    return FileEnvelope(
        filename=attachment.filename,
        mimetype=attachment.mimetype,
        size=attachment.size,
        data=base64u(ciphertext),
        checksum=checksum.hex(),
    )


def serialize_envelope(envelope: Envelope) -> str:
    """Compact JSON with every key present, in wire order."""
    if isinstance(envelope, (MessageEnvelope, FileEnvelope)):
        return envelope.model_dump_json()
    raise TypeError(f"not an envelope: {type(envelope).__name__}")


def parse_envelope(raw: str) -> Envelope:
    """Parse a serialized envelope; the presence of ``filename`` marks a file."""
    try:
        obj = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise IntegrityError("envelope is not valid JSON") from e
    if not isinstance(obj, dict):
        raise IntegrityError("envelope must be a JSON object")
    if obj.get("algorithm") != ALGORITHM:
        raise IntegrityError("unsupported encryption algorithm")

    model = FileEnvelope if "filename" in obj else MessageEnvelope
    try:
        return model.model_validate(obj)
    except ValidationError as e:
        raise IntegrityError(f"malformed {model.__name__}") from e
