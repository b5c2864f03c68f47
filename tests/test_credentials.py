"""Unit tests for credential extraction."""
from pipeline.credentials import extract_credentials


def test_extracts_all_three_categories():
    creds = extract_credentials("RN, BLS, ACLS certified ICU nurse")
    assert creds.licenses == "RN"
    assert creds.certifications == "BLS, ACLS"
    assert creds.specialty == "ICU"


def test_extraction_is_pure():
    text = "RN, BLS, ACLS certified ICU nurse"
    assert extract_credentials(text) == extract_credentials(text)


def test_empty_text_yields_nothing():
    creds = extract_credentials("")
    assert creds.certifications is None
    assert creds.licenses is None
    assert creds.specialty is None
    assert extract_credentials(None) == creds


def test_codes_inside_longer_words_do_not_match():
    creds = extract_credentials("Learning BRN portal, ORDINARY PALSY, Pediatrician")
    assert creds.licenses is None
    assert creds.certifications is None


def test_certifications_match_any_case():
    assert extract_credentials("acls and pals current").certifications == "ACLS, PALS"


def test_lowercase_words_are_not_licenses_or_acronym_specialties():
    creds = extract_credentials("Worked on med-surg or telemetry floors, do not call")
    assert creds.licenses is None
    assert creds.specialty == "Med-Surg, Cardiology"


def test_encounter_order_and_synonym_grouping():
    creds = extract_credentials("Critical Care RN with CCRN, also ER experience in the Intensive Care Unit")
    assert creds.specialty == "ICU, Emergency"
    assert creds.licenses == "RN"
    assert creds.certifications == "CCRN"


def test_pa_c_is_not_double_reported_as_pa():
    creds = extract_credentials("PA-C with 4 years in Emergency Medicine")
    assert creds.licenses == "PA-C"
    assert creds.specialty == "Emergency"


def test_slash_separated_certifications():
    assert extract_credentials("BLS/ACLS/PALS").certifications == "BLS, ACLS, PALS"
