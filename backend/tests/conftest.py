"""
Shared fixtures. Tests mock ALL external calls; no real Supabase access.
"""

import os

import pytest

# Ensure env vars are set before importing anything that triggers app imports
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")

from app.services.storage import ObjectExistsError


class FakeObjectStore:
    """In-memory ObjectStore that records calls and can be told to fail."""

    bucket_name = "test-bucket"

    def __init__(self):
        self.objects: dict[str, dict] = {}
        self.calls: list[tuple] = []
        self.exists_error: Exception | None = None
        self.put_error: Exception | None = None
        self.url_error: Exception | None = None

    def exists(self, key):
        self.calls.append(("exists", key))
        if self.exists_error:
            raise self.exists_error
        return key in self.objects

    def put(self, key, data, content_type, public=True):
        self.calls.append(("put", key))
        if self.put_error:
            raise self.put_error
        if key in self.objects:
            raise ObjectExistsError(key)
        self.objects[key] = {"data": data, "content_type": content_type, "public": public}

    def signed_read_url(self, key, expires_in):
        self.calls.append(("signed_read_url", key))
        if self.url_error:
            raise self.url_error
        return f"https://storage.example.com/{key}?token=signed-token"

    def call_names(self):
        return [name for name, _ in self.calls]


@pytest.fixture
def fake_store():
    return FakeObjectStore()
