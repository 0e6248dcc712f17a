"""
Object store service for form submissions.
Defines the store contract used by SubmissionStore and its Supabase Storage
implementation: existence check, create-if-absent upload, signed URL generation.
"""

import logging
import os
from typing import Optional, Protocol
from urllib.parse import quote, urlparse, urlunparse

from supabase import Client

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """An object store call failed."""


class ObjectExistsError(StorageError):
    """A create-if-absent write found an object already stored under the key."""

    def __init__(self, key: str):
        super().__init__(f"Object already exists: {key}")
        self.key = key


class ObjectStore(Protocol):
    """
    Contract SubmissionStore needs from a backend.

    Every method raises on failure; put() raises ObjectExistsError when the
    key is already taken and must never overwrite.
    """

    @property
    def bucket_name(self) -> str: ...

    def exists(self, key: str) -> bool: ...

    def put(self, key: str, data: bytes, content_type: str, public: bool = True) -> None: ...

    def signed_read_url(self, key: str, expires_in: int) -> str: ...


def _error_status(exc: Exception) -> Optional[str]:
    """
    Pull an HTTP-ish status out of a storage client exception.

    storage3 has raised both StorageApiError (attributes) and StorageException
    (a dict payload as the first arg) across versions.
    """
    for attr in ("status", "status_code", "statusCode"):
        value = getattr(exc, attr, None)
        if value is not None:
            return str(value)
    if exc.args and isinstance(exc.args[0], dict):
        value = exc.args[0].get("statusCode") or exc.args[0].get("status")
        if value is not None:
            return str(value)
    return None


def _is_duplicate_error(exc: Exception) -> bool:
    return _error_status(exc) == "409" or getattr(exc, "code", None) == "Duplicate"


def _is_not_found_error(exc: Exception) -> bool:
    return _error_status(exc) == "404" or getattr(exc, "code", None) == "not_found"


def _object_path(key: str) -> str:
    """
    Percent-encode an object key for the storage client.

    storage3 parses paths as URLs, so a raw "#" or "?" (both legal in an email
    local part) would cut the key short.
    """
    return quote(key, safe="/@")


def _rewrite_signed_url_host(signed_url: str) -> str:
    """
    Replace the host in a signed URL with the browser-accessible Supabase URL.

    When the backend runs inside Docker it reaches Supabase through an internal
    URL like ``http://host.docker.internal:54321`` and Supabase embeds that host
    in every signed URL it generates. Those URLs are unreachable from the
    submitter's browser.

    If ``SUPABASE_PUBLIC_URL`` is set it is used as the replacement origin.
    Otherwise the URL is returned unchanged.
    """
    public_url = os.getenv("SUPABASE_PUBLIC_URL", "").strip()
    if not public_url:
        return signed_url

    parsed_signed = urlparse(signed_url)
    parsed_public = urlparse(public_url)

    # Swap scheme + netloc; keep path/query/fragment from the signed URL.
    return urlunparse((
        parsed_public.scheme,
        parsed_public.netloc,
        parsed_signed.path,
        parsed_signed.params,
        parsed_signed.query,
        parsed_signed.fragment,
    ))


class SupabaseObjectStore:
    """
    ObjectStore backed by one Supabase Storage bucket.

    Supabase has no per-object ACL: public readability is a property of the
    bucket. put(public=True) therefore checks (once) that the bucket is public
    and refuses the write if it is not.
    """

    def __init__(self, client: Client, bucket_name: str):
        self._client = client
        self._bucket_name = bucket_name
        self._bucket_public: Optional[bool] = None

    @property
    def bucket_name(self) -> str:
        return self._bucket_name

    def _bucket(self):
        return self._client.storage.from_(self._bucket_name)

    def exists(self, key: str) -> bool:
        """
        Return True if an object is stored under key.

        Raises:
            StorageError: If the check itself fails
        """
        try:
            return bool(self._bucket().exists(_object_path(key)))
        except Exception as e:
            # Some storage3 versions raise instead of returning False on a miss
            if _is_not_found_error(e):
                return False
            raise StorageError(f"Failed to check object in storage: {str(e)}") from e

    def _is_bucket_public(self) -> bool:
        if self._bucket_public is None:
            bucket = self._client.storage.get_bucket(self._bucket_name)
            self._bucket_public = bool(getattr(bucket, "public", False))
        return self._bucket_public

    def put(self, key: str, data: bytes, content_type: str, public: bool = True) -> None:
        """
        Upload data under key, only if nothing is stored there yet.

        Uses upsert=false so Supabase enforces create-if-absent atomically.

        Raises:
            ObjectExistsError: If the key is already taken
            StorageError: If the upload fails for any other reason
        """
        try:
            if public and not self._is_bucket_public():
                raise StorageError(
                    f"Bucket '{self._bucket_name}' is not public; stored objects would not be publicly readable"
                )
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read bucket settings: {str(e)}") from e

        try:
            self._bucket().upload(
                _object_path(key),
                data,
                {
                    "content-type": content_type,
                    "upsert": "false",  # create-if-absent
                },
            )
        except Exception as e:
            if _is_duplicate_error(e):
                raise ObjectExistsError(key) from e
            raise StorageError(f"Failed to upload object to storage: {str(e)}") from e

    def signed_read_url(self, key: str, expires_in: int) -> str:
        """
        Generate a signed read URL for key, valid for expires_in seconds.

        Raises:
            StorageError: If URL generation fails
        """
        try:
            result = self._bucket().create_signed_url(_object_path(key), expires_in)
        except Exception as e:
            raise StorageError(f"Failed to generate signed URL: {str(e)}") from e

        signed_url = None
        if result:
            signed_url = result.get("signedURL") or result.get("signedUrl")
        if not signed_url:
            raise StorageError("No signed URL returned from storage")

        return _rewrite_signed_url_host(signed_url)
