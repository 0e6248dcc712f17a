"""
Pydantic models for form submissions.

Models:
  SubmissionRecord   — the record persisted for one form submission
  OutcomeStatus      — stored / rejected / failed
  FailureReason      — why a submission was not (fully) stored
  SubmissionOutcome  — the single result of one submit() call
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class SubmissionRecord(BaseModel):
    """
    One form submission, as persisted in the object store.

    Field names are the snake_case keys of the stored JSON object. Every field
    is optional because the inbound form is not validated; email_address is
    nevertheless the identity key and must be non-empty for a write.
    """
    model_config = {"frozen": True}

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email_address: Optional[str] = None
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None

    def to_json_bytes(self) -> bytes:
        """Serialize to the stored JSON encoding (absent fields become null)."""
        return self.model_dump_json().encode("utf-8")


class OutcomeStatus(str, Enum):
    STORED = "stored"
    REJECTED = "rejected"
    FAILED = "failed"


class FailureReason(str, Enum):
    DUPLICATE_KEY = "duplicate_key"
    CHECK_ERROR = "check_error"
    WRITE_ERROR = "write_error"
    # Write succeeded, only the link is missing. Reported alongside STORED.
    URL_ERROR = "url_error"
    INVALID_RECORD = "invalid_record"


class SubmissionOutcome(BaseModel):
    """
    Result of SubmissionStore.submit().

    status=STORED carries read_url when a signed URL could be derived, and
    reason=URL_ERROR when it could not. REJECTED and FAILED always carry a
    reason and never a read_url.
    """
    model_config = {"frozen": True}

    status: OutcomeStatus
    message: str
    reason: Optional[FailureReason] = None
    key: Optional[str] = None
    read_url: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status == OutcomeStatus.STORED

    @classmethod
    def stored(cls, key: str, message: str, read_url: Optional[str] = None) -> "SubmissionOutcome":
        return cls(
            status=OutcomeStatus.STORED,
            message=message,
            key=key,
            read_url=read_url,
            reason=None if read_url else FailureReason.URL_ERROR,
        )

    @classmethod
    def rejected(cls, key: str, message: str) -> "SubmissionOutcome":
        return cls(
            status=OutcomeStatus.REJECTED,
            message=message,
            key=key,
            reason=FailureReason.DUPLICATE_KEY,
        )

    @classmethod
    def failed(cls, reason: FailureReason, message: str, key: Optional[str] = None) -> "SubmissionOutcome":
        return cls(status=OutcomeStatus.FAILED, message=message, key=key, reason=reason)
