"""Errors surfaced to callers of the search and webhook handlers.

Each carries the HTTP status and the public `error` string the dashboard
branches on. Per-item skips, scoring failures and notification failures are
not errors and never raise.
"""
from typing import Optional


class LeadSearchError(Exception):
    status_code = 500

    def __init__(self, error: str):
        super().__init__(error)
        self.error = error


class ValidationFailed(LeadSearchError):
    status_code = 400


class AuthenticationFailed(LeadSearchError):
    status_code = 401


class NoCredits(LeadSearchError):
    status_code = 402

    def __init__(self, error: str = "NO_CREDITS"):
        super().__init__(error)


class UnknownWebset(LeadSearchError):
    status_code = 404

    def __init__(self, error: str = "Unknown webset"):
        super().__init__(error)


class RateLimited(LeadSearchError):
    status_code = 429

    def __init__(self, retry_after: int, error: Optional[str] = None):
        super().__init__(error or f"Rate limit exceeded. Try again in {retry_after} seconds.")
        self.retry_after = retry_after


class ProviderError(LeadSearchError):
    status_code = 500
