import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from .schemas import SubmissionRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionRecord:
    id: int
    encrypted_message: str
    encrypted_file: Optional[str]
    reply_email: Optional[str]
    hospital_trust: Optional[str]
    sha256_hash: str
    submitted_at: datetime


class SubmissionStore:
    """In-memory submission records. Envelopes are kept exactly as received."""

    def __init__(self):
        self._records: Dict[int, SubmissionRecord] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def create(self, req: SubmissionRequest, now: Optional[datetime] = None) -> SubmissionRecord:
        with self._lock:
            record = SubmissionRecord(
                id=self._next_id,
                encrypted_message=req.encryptedMessage,
                encrypted_file=req.encryptedFile,
                reply_email=req.replyEmail,
                hospital_trust=req.hospitalTrust,
                sha256_hash=req.sha256Hash,
                submitted_at=now or datetime.now(timezone.utc),
            )
            self._records[record.id] = record
            self._next_id += 1
        return record

    def get(self, submission_id: int) -> Optional[SubmissionRecord]:
        return self._records.get(submission_id)

    def count(self) -> int:
        return len(self._records)

    def purge_older_than(self, days: int, now: Optional[datetime] = None) -> int:
        cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=days)
        with self._lock:
            expired = [k for k, r in self._records.items() if r.submitted_at < cutoff]
            for k in expired:
                del self._records[k]
        if expired:
            logger.info("Purged %d submissions older than %d days", len(expired), days)
        return len(expired)
