from .lead import (
    Credentials,
    ParsedLead,
    WebsetLead,
    ScoreResult,
    ProfileData,
    LeadSummary,
)
from .search import (
    SearchRequest,
    WebsetSearchRequest,
    SearchResponse,
    WebsetSearchResponse,
)

__all__ = [
    "Credentials", "ParsedLead", "WebsetLead", "ScoreResult", "ProfileData", "LeadSummary",
    "SearchRequest", "WebsetSearchRequest", "SearchResponse", "WebsetSearchResponse",
]
