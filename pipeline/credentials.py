"""Credential extractor: licenses, certifications and specialty from free text.

Pure pattern lookup. Terms are matched as whole tokens (not inside longer
words) and reported in the order they first appear in the text. Certification
names and multi-word specialty phrases match case-insensitively; license codes
and short specialty acronyms must appear in capitals, since "do", "pa", "er"
and "or" are ordinary words in lower case.
"""
import re
from typing import Iterable, Optional

from schemas.lead import Credentials

CERTIFICATIONS = [
    "BLS", "ACLS", "PALS", "NRP", "CCRN", "CEN", "CPEN", "TNCC", "ENPC", "CNOR",
    "CPN", "RNC-OB", "RNC-NIC", "OCN", "CMSRN", "PCCN", "CHPN", "CWOCN", "NIHSS",
    "CCM", "CNRN", "CFRN", "CDE", "CRRN",
]

LICENSES = [
    "RN", "BSN", "MSN", "DNP", "LPN", "LVN", "NP", "FNP", "APRN", "CNA", "CRNA",
    "CNM", "MD", "DO", "PA-C", "PA", "PharmD", "RPh", "PT", "DPT", "OT", "RRT",
    "CRT", "CST", "EMT", "LCSW",
]

# canonical specialty -> synonyms
SPECIALTIES = {
    "ICU": ["ICU", "Intensive Care", "Critical Care", "MICU", "SICU", "CVICU"],
    "Emergency": ["ER", "ED", "Emergency Room", "Emergency Department", "Emergency Medicine"],
    "NICU": ["NICU", "Neonatal"],
    "Pediatrics": ["PICU", "Pediatric", "Pediatrics", "Peds"],
    "Labor & Delivery": ["L&D", "Labor and Delivery", "Labor & Delivery", "Obstetrics", "OB/GYN"],
    "Med-Surg": ["Med-Surg", "Med Surg", "Medical-Surgical", "Medical Surgical"],
    "Operating Room": ["OR", "Operating Room", "Perioperative", "Surgical Services"],
    "Oncology": ["Oncology", "Hematology"],
    "Cardiology": ["Cardiology", "Cardiac", "Cath Lab", "Telemetry"],
    "Behavioral Health": ["Psychiatric", "Psych", "Behavioral Health", "Mental Health"],
    "Home Health": ["Home Health", "Home Care"],
    "Hospice": ["Hospice", "Palliative"],
    "Dialysis": ["Dialysis", "Nephrology"],
    "Geriatrics": ["Geriatric", "Geriatrics", "Long-Term Care", "Skilled Nursing"],
}


def _term_pattern(term: str, case_sensitive: bool) -> re.Pattern:
    flags = 0 if case_sensitive else re.IGNORECASE
    # Boundaries that also work around '&', '/' and '-' inside terms.
    return re.compile(rf"(?<![A-Za-z0-9]){re.escape(term)}(?![A-Za-z0-9])", flags)


def _is_acronym(term: str) -> bool:
    return len(term) <= 5 and term.upper() == term


_CERT_PATTERNS = [(c, _term_pattern(c, case_sensitive=False)) for c in CERTIFICATIONS]
_LICENSE_PATTERNS = [(lic, _term_pattern(lic, case_sensitive=True)) for lic in LICENSES]
_SPECIALTY_PATTERNS = [
    (canonical, _term_pattern(term, case_sensitive=_is_acronym(term)))
    for canonical, terms in SPECIALTIES.items()
    for term in terms
]


def _first_positions(text: str, patterns: Iterable[tuple[str, re.Pattern]]) -> list[str]:
    """Labels ordered by where they first occur in text, each reported once."""
    found: dict[str, int] = {}
    for label, pattern in patterns:
        match = pattern.search(text)
        if match and (label not in found or match.start() < found[label]):
            found[label] = match.start()
    return [label for label, _ in sorted(found.items(), key=lambda kv: kv[1])]


def _drop_shadowed(labels: list[str], text: str) -> list[str]:
    # "PA" inside "PA-C" would otherwise be reported alongside it.
    if "PA-C" in labels and "PA" in labels and not re.search(r"(?<![A-Za-z0-9])PA(?![A-Za-z0-9-])", text):
        labels = [label for label in labels if label != "PA"]
    return labels


def _join(labels: list[str]) -> Optional[str]:
    return ", ".join(labels) if labels else None


def extract_credentials(text: Optional[str]) -> Credentials:
    """Extract certifications, licenses and specialty from free text."""
    if not text:
        return Credentials()
    licenses = _drop_shadowed(_first_positions(text, _LICENSE_PATTERNS), text)
    return Credentials(
        certifications=_join(_first_positions(text, _CERT_PATTERNS)),
        licenses=_join(licenses),
        specialty=_join(_first_positions(text, _SPECIALTY_PATTERNS)),
    )
