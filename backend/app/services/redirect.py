"""
Encodes a SubmissionOutcome into the caller's redirect URL.

The query string is the whole response contract:
  success    "true" | "false"
  publicUrl  signed read URL, only when one was generated
  msg        human-readable message
"""

from urllib.parse import urlencode, urlsplit, urlunsplit

from app.models.submission import SubmissionOutcome


def outcome_query_params(outcome: SubmissionOutcome) -> list[tuple[str, str]]:
    params = [("success", "true" if outcome.success else "false")]
    if outcome.read_url:
        params.append(("publicUrl", outcome.read_url))
    params.append(("msg", outcome.message))
    return params


def build_redirect_url(redirect_to: str, outcome: SubmissionOutcome) -> str:
    """
    Append the outcome parameters to redirect_to.

    Any query string already on redirect_to is kept; the outcome parameters
    follow it. Fragments are preserved.
    """
    parts = urlsplit(redirect_to)
    encoded = urlencode(outcome_query_params(outcome))
    query = f"{parts.query}&{encoded}" if parts.query else encoded
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))
