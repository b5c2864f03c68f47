"""Lead parsing, profile data and qualification scoring schemas."""
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class Credentials(BaseModel):
    """Comma-joined credential tokens found in free text (None when absent)."""

    certifications: Optional[str] = None
    licenses: Optional[str] = None
    specialty: Optional[str] = None


class ParsedLead(BaseModel):
    """One search hit turned into a candidate."""

    name: str
    title: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None
    email: Optional[str] = None
    linkedin_url: str
    text: str = ""
    exa_id: Optional[str] = None
    exa_score: Optional[float] = None


class WebsetLead(BaseModel):
    """One webset item after field resolution."""

    name: str = "Unknown"
    title: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None
    email: Optional[str] = None
    linkedin_url: Optional[str] = None
    item_id: Optional[str] = None
    enrichments: List[Dict[str, Any]] = Field(default_factory=list)

    @property
    def has_name(self) -> bool:
        return bool(self.name.strip()) and self.name != "Unknown"

    @property
    def has_linkedin(self) -> bool:
        return bool(self.linkedin_url) and "linkedin.com" in self.linkedin_url

    @property
    def has_email(self) -> bool:
        return bool(self.email) and "@" in self.email

    def is_usable(self) -> bool:
        """Worth persisting: a real name, a LinkedIn URL, or an email."""
        return self.has_name or self.has_linkedin or self.has_email


class ScoreResult(BaseModel):
    """Qualification score for one lead against a requirement text."""

    match_score: int = Field(ge=0, le=100)
    license_match: bool = False
    cert_match: bool = False
    experience_match: bool = False
    location_match: bool = False
    scoring_notes: str = ""


class ProfileData(BaseModel):
    """Typed view of leads.profile_data.

    Unknown keys are kept (extra="allow") so merging never drops provenance
    written by another path. Serialized to a plain dict only at the storage
    boundary via to_storage().
    """

    model_config = ConfigDict(extra="allow")

    source: Optional[str] = None
    exa_id: Optional[str] = None
    exa_score: Optional[float] = None
    item_id: Optional[str] = None
    enrichments: Optional[List[Dict[str, Any]]] = None
    snippet: Optional[str] = None

    certifications: Optional[str] = None
    licenses: Optional[str] = None
    specialty: Optional[str] = None

    match_score: Optional[int] = None
    license_match: Optional[bool] = None
    cert_match: Optional[bool] = None
    experience_match: Optional[bool] = None
    location_match: Optional[bool] = None
    scoring_notes: Optional[str] = None

    @classmethod
    def from_storage(cls, raw: Optional[Dict[str, Any]]) -> "ProfileData":
        return cls.model_validate(raw or {})

    def with_score(self, score: ScoreResult) -> "ProfileData":
        return self.model_copy(update=score.model_dump())

    def to_storage(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class LeadSummary(BaseModel):
    """Compact candidate view sent to the scorer."""

    id: UUID
    name: str
    title: Optional[str] = None
    location: Optional[str] = None
    certifications: Optional[str] = None
    licenses: Optional[str] = None
    specialty: Optional[str] = None
    excerpt: Optional[str] = None
