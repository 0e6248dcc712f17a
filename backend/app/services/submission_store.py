"""
Write-once submission pipeline.

SubmissionStore.submit() derives the object key from the submitter's email,
rejects emails that already have an object, writes the record as JSON and
derives a long-lived signed read URL. Every store failure is turned into a
SubmissionOutcome; nothing raises out of submit().

Environment variables
---------------------
SUBMISSIONS_BUCKET          Supabase Storage bucket (default: "submissions").
SUBMISSIONS_PREFIX          Key prefix (default: "processedData").
SUBMISSIONS_NORMALIZE_KEYS  "true" to strip + lowercase emails before keying
                            (default: off, emails are used verbatim).
"""

import logging
import os
from datetime import datetime, timezone
from typing import Optional

from app.models.submission import FailureReason, SubmissionOutcome, SubmissionRecord
from app.services.storage import ObjectExistsError, ObjectStore, SupabaseObjectStore

logger = logging.getLogger(__name__)

DEFAULT_BUCKET = "submissions"
DEFAULT_PREFIX = "processedData"

JSON_CONTENT_TYPE = "application/json"

# Signed links are meant to be effectively permanent
LINK_EXPIRES_AT = datetime(2145, 12, 3, tzinfo=timezone.utc)


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes", "on")


def get_bucket_name() -> str:
    """Return the configured submissions bucket (SUBMISSIONS_BUCKET or the default)."""
    return os.getenv("SUBMISSIONS_BUCKET", "").strip() or DEFAULT_BUCKET


def seconds_until_link_expiry(now: Optional[datetime] = None) -> int:
    """Return the signed URL lifetime in seconds, counted from now."""
    now = now or datetime.now(timezone.utc)
    return max(int((LINK_EXPIRES_AT - now).total_seconds()), 1)


class SubmissionStore:
    """Enforces at most one stored object per email and reports one outcome per submit()."""

    def __init__(
        self,
        store: ObjectStore,
        prefix: str = DEFAULT_PREFIX,
        normalize_keys: bool = False,
    ):
        self.store = store
        self.prefix = prefix.rstrip("/")
        self.normalize_keys = normalize_keys

    def storage_key(self, email: str) -> str:
        """
        Build the object key for an email: <prefix>/<email>.json

        Emails are used verbatim unless normalize_keys is set, so two emails
        differing only by case map to different keys by default.
        """
        if self.normalize_keys:
            email = email.strip().lower()
        return f"{self.prefix}/{email}.json"

    def _stored_message(self, key: str) -> str:
        return (
            f"Stored a file ({key}), with the form details, user-agent and ip address "
            f"of the user in a cloud storage bucket ({self.store.bucket_name})"
        )

    def submit(self, record: SubmissionRecord) -> SubmissionOutcome:
        """
        Persist record under its email key unless an object is already there.

        Returns:
            STORED (with or without read_url), REJECTED (duplicate email) or
            FAILED (check error, write error, or a record without an email).
        """
        email = record.email_address
        if not email or not email.strip():
            logger.warning("Submission rejected: no email address provided")
            return SubmissionOutcome.failed(
                FailureReason.INVALID_RECORD,
                "An email address is required to store the form details",
            )

        key = self.storage_key(email)
        duplicate_msg = (
            f"The email: {email}, has already been used before. "
            f"Please try again with another email!"
        )

        try:
            already_stored = self.store.exists(key)
        except Exception as e:
            logger.error(f"Existence check failed for {key}: {e}")
            return SubmissionOutcome.failed(
                FailureReason.CHECK_ERROR,
                f"Error occurred while checking if {key} file already exists in cloud storage bucket",
                key=key,
            )

        if already_stored:
            logger.info(f"Duplicate submission rejected for {key}")
            return SubmissionOutcome.rejected(key, duplicate_msg)

        try:
            self.store.put(key, record.to_json_bytes(), JSON_CONTENT_TYPE, public=True)
        except ObjectExistsError:
            # A concurrent submission for the same email won the write
            logger.info(f"Duplicate submission rejected at write time for {key}")
            return SubmissionOutcome.rejected(key, duplicate_msg)
        except Exception as e:
            logger.error(f"Failed to store {key}: {e}")
            return SubmissionOutcome.failed(
                FailureReason.WRITE_ERROR,
                f"Unable to store form details as {key} file in cloud storage bucket",
                key=key,
            )

        stored_msg = self._stored_message(key)

        try:
            read_url = self.store.signed_read_url(key, seconds_until_link_expiry())
        except Exception as e:
            logger.warning(f"Stored {key} but could not generate a signed URL: {e}")
            return SubmissionOutcome.stored(
                key, f"{stored_msg}, but a public link could not be generated"
            )

        logger.info(f"Stored submission at {key}")
        return SubmissionOutcome.stored(key, stored_msg, read_url=read_url)


def build_submission_store(client) -> SubmissionStore:
    """Wire a SubmissionStore over a Supabase client using environment configuration."""
    prefix = os.getenv("SUBMISSIONS_PREFIX", "").strip() or DEFAULT_PREFIX
    return SubmissionStore(
        SupabaseObjectStore(client, get_bucket_name()),
        prefix=prefix,
        normalize_keys=_env_flag("SUBMISSIONS_NORMALIZE_KEYS"),
    )
