from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ALGORITHM = "libsodium-sealed-box"


class PublicKeyResponse(BaseModel):
    publicKey: str


class KeyStatus(BaseModel):
    ready: bool
    fetching: bool
    publicKey: Optional[str] = None


class MessageEnvelope(BaseModel):
    """Sealed report text. ``checksum`` is base64 of the plaintext digest."""

    model_config = ConfigDict(extra="forbid")

    algorithm: Literal["libsodium-sealed-box"] = ALGORITHM
    data: str = ""
    checksum: str = ""


class FileEnvelope(BaseModel):
    """Sealed attachment. Metadata stays in clear and ``checksum`` is hex."""

    model_config = ConfigDict(extra="forbid")

    filename: str = ""
    mimetype: str = ""
    size: int = Field(default=0, ge=0)
    algorithm: Literal["libsodium-sealed-box"] = ALGORITHM
    data: str = ""
    checksum: str = ""


class SubmissionRequest(BaseModel):
    encryptedMessage: str
    encryptedFile: Optional[str] = None
    replyEmail: Optional[str] = None
    hospitalTrust: Optional[str] = None
    sha256Hash: str


class SubmissionReceipt(BaseModel):
    message: str
    id: int
    submittedAt: datetime


class HealthResponse(BaseModel):
    status: str
    submissionCount: int
    timestamp: datetime
