"""
Form Intake Backend API
FastAPI application that stores form submissions as write-once JSON objects.
"""

import logging
import os
from typing import List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from app.db import get_supabase_admin
from app.routers import submissions
from app.services.submission_store import get_bucket_name

# Configure logging to output to console
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Form Intake API",
    description="Stores form submissions in cloud storage, one object per email",
    version="0.1.0",
)


def get_cors_origins() -> List[str]:
    """
    Build the list of allowed CORS origins.

    Always includes http://localhost:3000 (local frontend dev server).
    Additional origins are read from the CORS_ORIGINS environment variable
    as a comma-separated list, e.g.:
        CORS_ORIGINS=https://forms.example.com,https://preview.example.com

    Duplicates are removed while preserving order.
    """
    always_included = ["http://localhost:3000"]

    extra_origins: List[str] = []
    cors_env = os.getenv("CORS_ORIGINS", "").strip()
    if cors_env:
        extra_origins = [o.strip() for o in cors_env.split(",") if o.strip()]

    # Deduplicate while preserving order
    seen: set = set()
    origins: List[str] = []
    for origin in always_included + extra_origins:
        if origin not in seen:
            seen.add(origin)
            origins.append(origin)

    return origins


app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(submissions.router, tags=["submissions"])


@app.get("/")
async def root():
    return {"message": "Form Intake API", "version": "0.1.0"}


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/health/storage")
async def health_storage():
    """
    Test Supabase Storage access.

    Lists storage buckets and verifies the submissions bucket exists.
    Returns 503 if storage is unreachable, unconfigured, or the bucket is missing.
    """
    bucket_name = get_bucket_name()

    try:
        client = get_supabase_admin()
    except ValueError as exc:
        raise HTTPException(
            status_code=503,
            detail=f"Storage client unavailable: {str(exc)}",
        )

    try:
        buckets = client.storage.list_buckets()
        matching = [b for b in buckets if b.name == bucket_name]

        if not matching:
            raise HTTPException(
                status_code=503,
                detail=f"Storage bucket '{bucket_name}' not found",
            )

        return {
            "status": "ok",
            "storage": "reachable",
            "bucket": bucket_name,
            "public": bool(getattr(matching[0], "public", False)),
        }
    except HTTPException:
        raise
    except Exception as exc:
        logger.error(f"Storage health check failed: {exc}")
        raise HTTPException(
            status_code=503,
            detail=f"Storage check failed: {str(exc)}",
        )
