"""
Unit tests for outcome → redirect URL encoding.
"""

from urllib.parse import parse_qs, urlsplit

from app.models.submission import FailureReason, SubmissionOutcome
from app.services.redirect import build_redirect_url, outcome_query_params


def _query(url: str) -> dict:
    return parse_qs(urlsplit(url).query)


class TestOutcomeQueryParams:
    def test_stored_with_url_includes_public_url(self):
        outcome = SubmissionOutcome.stored("k.json", "Stored", read_url="https://signed/k.json?token=a")

        assert outcome_query_params(outcome) == [
            ("success", "true"),
            ("publicUrl", "https://signed/k.json?token=a"),
            ("msg", "Stored"),
        ]

    def test_stored_without_url_omits_public_url(self):
        outcome = SubmissionOutcome.stored("k.json", "Stored, no link")

        assert outcome_query_params(outcome) == [("success", "true"), ("msg", "Stored, no link")]

    def test_rejected_reports_failure(self):
        outcome = SubmissionOutcome.rejected("k.json", "already used")

        assert outcome_query_params(outcome)[0] == ("success", "false")

    def test_failed_reports_failure(self):
        outcome = SubmissionOutcome.failed(FailureReason.WRITE_ERROR, "Unable to store")

        assert outcome_query_params(outcome) == [("success", "false"), ("msg", "Unable to store")]


class TestBuildRedirectUrl:
    def test_appends_params_to_bare_url(self):
        outcome = SubmissionOutcome.stored("k.json", "Stored a file", read_url="https://signed/k.json?token=a&x=1")

        url = build_redirect_url("https://example.com/thanks", outcome)

        assert url.startswith("https://example.com/thanks?success=true&")
        query = _query(url)
        assert query["success"] == ["true"]
        # The signed URL's own query string must survive encoding intact
        assert query["publicUrl"] == ["https://signed/k.json?token=a&x=1"]
        assert query["msg"] == ["Stored a file"]

    def test_existing_query_string_is_preserved(self):
        outcome = SubmissionOutcome.failed(FailureReason.CHECK_ERROR, "Error occurred")

        url = build_redirect_url("https://example.com/form?lang=en", outcome)

        query = _query(url)
        assert query["lang"] == ["en"]
        assert query["success"] == ["false"]
        assert url.startswith("https://example.com/form?lang=en&success=false")

    def test_fragment_is_preserved(self):
        outcome = SubmissionOutcome.rejected("k.json", "dup")

        url = build_redirect_url("https://example.com/form#result", outcome)

        assert url.endswith("#result")
        assert _query(url)["msg"] == ["dup"]

    def test_message_with_special_characters_round_trips(self):
        message = "The email: a+b@x.com, has already been used before. Please try again with another email!"
        outcome = SubmissionOutcome.rejected("k.json", message)

        url = build_redirect_url("https://example.com/", outcome)

        assert _query(url)["msg"] == [message]
