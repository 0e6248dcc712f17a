"""
Form submission endpoint.

Endpoints:
  POST /processFormData  — store the submitted form, then redirect the browser
                           to ?redirectTo with the outcome in the query string

Body fields (urlencoded form or JSON): firstName, lastName, email
Query parameters: userAgent, redirectTo

The response is always a 302 redirect once redirectTo is known; success or
failure is carried only by the success/publicUrl/msg query parameters.
"""

import logging
from functools import lru_cache
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import RedirectResponse

from app.db import get_supabase_admin
from app.models.submission import SubmissionRecord
from app.services.redirect import build_redirect_url
from app.services.submission_store import SubmissionStore, build_submission_store

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache(maxsize=1)
def _cached_submission_store() -> SubmissionStore:
    return build_submission_store(get_supabase_admin())


def get_submission_store() -> SubmissionStore:
    """
    FastAPI dependency returning the process-wide SubmissionStore.

    Raises 503 when storage credentials are not configured.
    """
    try:
        return _cached_submission_store()
    except ValueError as exc:
        logger.error(f"Submission store unavailable: {exc}")
        raise HTTPException(status_code=503, detail=f"Storage unavailable: {str(exc)}")


def _as_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def get_client_ip(request: Request) -> Optional[str]:
    """
    Determine the submitter's IP address.

    Behind a proxy the X-Forwarded-For header carries "client, proxy1, ...";
    the first entry is the originating client. Otherwise the direct connection
    address is used.
    """
    forwarded_for = request.headers.get("x-forwarded-for", "").strip()
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None


async def _read_form_fields(request: Request) -> dict:
    """Read the submitted body as JSON or as form data, depending on content type."""
    content_type = request.headers.get("content-type", "")
    try:
        if content_type.startswith("application/json"):
            body = await request.json()
            return body if isinstance(body, dict) else {}
        form = await request.form()
        return dict(form)
    except Exception as exc:
        # An unreadable body is treated like an empty form
        logger.warning(f"Could not parse submission body: {exc}")
        return {}


@router.post("/processFormData", status_code=302)
async def process_form_data(
    request: Request,
    redirect_to: Optional[str] = Query(default=None, alias="redirectTo"),
    user_agent: Optional[str] = Query(default=None, alias="userAgent"),
    store: SubmissionStore = Depends(get_submission_store),
):
    """
    Store the submitted form details as a JSON object and redirect with the outcome.

    Returns 400 only when redirectTo is missing, since there is nowhere to
    report the outcome to.
    """
    if not redirect_to:
        raise HTTPException(status_code=400, detail="redirectTo query parameter is required")

    fields = await _read_form_fields(request)

    record = SubmissionRecord(
        first_name=_as_str(fields.get("firstName")),
        last_name=_as_str(fields.get("lastName")),
        email_address=_as_str(fields.get("email")),
        user_agent=user_agent,
        ip_address=get_client_ip(request),
    )

    # submit() makes blocking storage calls
    outcome = await run_in_threadpool(store.submit, record)
    logger.info(
        f"Submission outcome: status={outcome.status.value} "
        f"reason={outcome.reason.value if outcome.reason else None} key={outcome.key}"
    )

    return RedirectResponse(url=build_redirect_url(redirect_to, outcome), status_code=302)
