import base64
import binascii
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from nacl.public import PublicKey

from .config import HEALTH_PATH, PUBLIC_KEY_PATH, SUBMIT_PATH, Settings, get_settings
from .errors import IntegrityError
from .schemas import HealthResponse, PublicKeyResponse, SubmissionReceipt, SubmissionRequest
from .storage import SubmissionStore
from .verifier import IntegrityVerifier

logger = logging.getLogger(__name__)

router = APIRouter()

store = SubmissionStore()


def get_store() -> SubmissionStore:
    return store


@router.get(PUBLIC_KEY_PATH, response_model=PublicKeyResponse)
def public_key(settings: Settings = Depends(get_settings)):
    if not settings.admin_public_key:
        raise HTTPException(status_code=503, detail="Encryption key not configured")
    try:
        raw = base64.b64decode(settings.admin_public_key, validate=True)
    except (binascii.Error, ValueError):
        raw = b""
    if len(raw) != PublicKey.SIZE:
        logger.error("ADMIN_ENCRYPTION_PUBLIC_KEY is not a base64 %d-byte key", PublicKey.SIZE)
        raise HTTPException(status_code=503, detail="Encryption key not configured")
    return PublicKeyResponse(publicKey=settings.admin_public_key)


@router.post(SUBMIT_PATH, response_model=SubmissionReceipt, status_code=201)
def submit(req: SubmissionRequest, settings: Settings = Depends(get_settings),
           submissions: SubmissionStore = Depends(get_store)):
    verifier = IntegrityVerifier(max_file_bytes=settings.max_file_bytes)
    try:
        verifier.verify(req)
    except IntegrityError as e:
        logger.warning("Rejected submission: %s", e)
        raise HTTPException(status_code=e.status_code, detail=str(e))

    record = submissions.create(req)
    submissions.purge_older_than(settings.retention_days)
    logger.info("Stored submission %d", record.id)

    return SubmissionReceipt(
        message="Submission received successfully",
        id=record.id,
        submittedAt=record.submitted_at,
    )


@router.get(HEALTH_PATH, response_model=HealthResponse)
def health(submissions: SubmissionStore = Depends(get_store)):
    return HealthResponse(
        status="healthy",
        submissionCount=submissions.count(),
        timestamp=datetime.now(timezone.utc),
    )
