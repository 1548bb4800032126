"""Tests for the redactor: end-to-end scan, restore and placeholder rules."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import json
import re
from concurrent.futures import ThreadPoolExecutor

import pytest

from report_redactor import (
    Category, InputTooLarge, PIIPattern, RedactionMap, Redactor, RedactorConfig,
    RestoreMismatch, ScanOptions, Severity, restore, scan,
)
from report_redactor.scanner import PLACEHOLDER_RE


WHISTLEBLOWER_REPORT = """I am reporting financial misconduct by CFO James Miller (james.miller@acmecorp.com).

On 15/03/2024, I discovered he instructed staff to alter Q3 financials.
Evidence is on the shared drive at 192.168.1.50.

My contact details:
- Email: sarah.johnson@acmecorp.com
- Mobile: +44 7700 900123
- NI Number: AB123456C

I can be reached at my home address: 123 High Street, London, SW1A 1AA.
"""

SAMPLES = [
    WHISTLEBLOWER_REPORT,
    "Email john@example.com twice: john@example.com",
    "My manager is Sarah Johnson. Sarah Johnson approved it.",
    "Pay with card 4532 0151 1283 0366 or call 555-123-4567",
    "Transfer to GB82 WEST 1234 5698 7654 32 since March 3, 2021",
    "I live at 123 High Street near the park, postcode SW1A 1AA",
    "Template uses [EMAIL_1]; real address is bob@example.org",
    "Nothing sensitive here at all.",
]

OPTION_SETS = [
    ScanOptions(),
    ScanOptions(include_names=False),
    ScanOptions(include_addresses=False),
    ScanOptions(include_names=False, include_addresses=False),
]


# ── Basic Redaction ──────────────────────────────────────────────────

def test_redact_email():
    result = scan("Contact me at alice@example.com please")
    assert result.redacted_text == "Contact me at [EMAIL_1] please"
    assert result.pii_detected
    assert result.detection_stats == {Category.EMAIL: 1}
    assert result.redaction_map["[EMAIL_1]"].original == "alice@example.com"


def test_empty_input():
    for text in ("", None):
        result = scan(text)
        assert result.redacted_text == ""
        assert not result.pii_detected
        assert len(result.redaction_map) == 0
        assert result.detection_stats == {}
        assert result.privacy_score == 100


def test_clean_text_unchanged():
    text = "The weather is nice today"
    result = scan(text)
    assert result.redacted_text == text
    assert not result.pii_detected


def test_valid_card_redacted():
    result = scan("Pay with card 4532 0151 1283 0366")
    assert result.redacted_text == "Pay with card [CREDIT_CARD_1]"
    assert result.detection_stats == {Category.CREDIT_CARD: 1}


def test_luhn_failure_not_redacted_as_card():
    result = scan("Random number 1234 5678 9012 3456")
    assert Category.CREDIT_CARD not in result.detection_stats
    assert "1234 5678 9012 3456" in result.redacted_text

    text = "Card 4532 1234 5678 9010"
    assert scan(text).redacted_text == text


def test_ip_validation():
    assert scan("Server at 192.168.1.1").redacted_text == "Server at [IP_ADDRESS_1]"
    text = "Invalid: 999.999.999.999"
    assert scan(text).redacted_text == text


def test_iban_redacted():
    result = scan("Transfer to GB82 WEST 1234 5698 7654 32")
    assert result.redacted_text == "Transfer to [IBAN_1]"


def test_iban_followed_by_number():
    result = scan("Pay BE68 5390 0754 7034 2023 invoices")
    assert result.redacted_text == "Pay [IBAN_1] 2023 invoices"
    assert result.redaction_map["[IBAN_1]"].original == "BE68 5390 0754 7034"

    result = scan("Sent to AT611904300234573201 2024-05-01")
    assert result.redacted_text == "Sent to [IBAN_1] [DATE_1]"


def test_ni_number_prefix_rules():
    result = scan("NI number: AB 12 34 56 C and QQ123456C")
    assert result.detection_stats == {Category.NI_NUMBER: 1}
    assert "QQ123456C" in result.redacted_text
    assert "AB 12 34 56 C" not in result.redacted_text


def test_postcodes_redacted():
    result = scan("Address: SW1A 1AA and EC1A 1BB")
    assert result.redacted_text == "Address: [POSTCODE_1] and [POSTCODE_2]"


def test_employee_id_keyword_kept():
    result = scan("Employee ID: EMP12345 filed it")
    assert result.redacted_text == "Employee ID: [EMPLOYEE_ID_1] filed it"


def test_dates_share_numbering():
    result = scan("On 15/03/2024 we met; I joined on March 3, 2021.")
    assert result.redacted_text == "On [DATE_1] we met; I joined on [DATE_2]."
    assert result.detection_stats == {Category.DATE: 1, Category.SPECIFIC_DATE: 1}


# ── Names and Addresses ──────────────────────────────────────────────

def test_contextual_name():
    result = scan("My manager is Sarah Johnson.")
    assert result.redacted_text == "My manager is [NAME_1]."
    assert result.detections[0].category == Category.POSSIBLE_NAME


def test_standalone_names_share_label():
    result = scan("Report by Sarah Johnson about James Miller")
    assert result.redacted_text == "Report by [NAME_1] about [NAME_2]"
    assert result.detection_stats == {Category.STANDALONE_NAME: 2}


def test_place_names_not_redacted():
    text = "Visit New York or United Kingdom"
    result = scan(text, include_names=True)
    assert result.redacted_text == text
    assert Category.STANDALONE_NAME not in result.detection_stats
    assert Category.POSSIBLE_NAME not in result.detection_stats


def test_names_toggle():
    text = "Report by Sarah Johnson"
    assert scan(text, include_names=False).redacted_text == text
    assert scan(text, include_names=True).redacted_text == "Report by [NAME_1]"


def test_address_toggle():
    text = "I live at 123 High Street near the park."
    assert scan(text).redacted_text == "I live at [ADDRESS_1] near the park."
    assert scan(text, include_addresses=False).redacted_text == text


def test_repeated_name_fully_redacted():
    result = scan("Mr. Smith said hello and later Smith left.")
    assert result.redacted_text == "Mr. [NAME_1] said hello and later [NAME_1] left."
    entry = result.redaction_map["[NAME_1]"]
    assert entry.occurrences == ((4, 9), (31, 36))


def test_name_followed_by_organisation_word():
    result = scan("Complaint about Sarah Johnson Department head")
    assert result.redacted_text == "Complaint about [NAME_1] Department head"
    assert result.redaction_map["[NAME_1]"].original == "Sarah Johnson"


def test_repeats_only_match_whole_tokens():
    result = scan("Mr. Li said Linda was Lively.")
    assert result.redacted_text == "Mr. [NAME_1] said Linda was Lively."
    assert result.detection_stats == {Category.POSSIBLE_NAME: 1}

    result = scan("Call 555-1234 or 555-12345 ext")
    assert result.redacted_text == "Call [PHONE_1] or 555-12345 ext"


def test_name_after_place_preposition_not_redacted():
    text = "We met in Leeds City"
    assert scan(text).redacted_text == text


# ── Extended Identifiers ─────────────────────────────────────────────

def test_birth_date_and_nhs_number():
    result = scan("DOB: 15/03/1985, NHS 943 476 5919")
    assert result.redacted_text == "DOB: [DATE_OF_BIRTH_1], NHS [NHS_NUMBER_1]"
    assert result.detection_stats == {Category.DATE_OF_BIRTH: 1, Category.NHS_NUMBER: 1}


def test_uk_bank_details_redacted():
    result = scan("Sort code 12-34-56, account number 12345678")
    assert result.redacted_text == "Sort code [SORT_CODE_UK_1], account number [BANK_ACCOUNT_UK_1]"


def test_device_addresses_redacted():
    result = scan("Laptop 00:1A:2B:3C:4D:5E on fe80:0000:0000:0000:0202:b3ff:fe1e:8329")
    assert result.redacted_text == "Laptop [MAC_ADDRESS_1] on [IPV6_ADDRESS_1]"


def test_url_with_email_beats_plain_email():
    result = scan("Reset via https://jo@example.com/reset now")
    assert result.redacted_text == "Reset via [URL_WITH_EMAIL_1] now"


def test_zip_code_after_state():
    result = scan("Office in Albany, NY 12207")
    assert result.redacted_text == "Office in Albany, NY [POSTCODE_US_1]"


# ── Whistleblowing Report ────────────────────────────────────────────

def test_whistleblower_report():
    result = scan(WHISTLEBLOWER_REPORT, include_names=True, include_addresses=False)
    redacted = result.redacted_text

    for leaked in (
        "james.miller@acmecorp.com", "sarah.johnson@acmecorp.com",
        "7700 900123", "AB123456C", "192.168.1.50", "James Miller",
        "15/03/2024", "SW1A 1AA",
    ):
        assert leaked not in redacted

    # Non-PII content survives
    assert "financial misconduct" in redacted
    assert "Q3 financials" in redacted
    assert "shared drive" in redacted

    stats = result.detection_stats
    assert stats[Category.EMAIL] == 2
    assert stats[Category.PHONE] == 1
    assert stats[Category.NI_NUMBER] == 1
    assert stats[Category.IP_ADDRESS] == 1
    assert stats[Category.POSTCODE] == 1
    assert stats[Category.DATE] == 1
    assert stats[Category.STANDALONE_NAME] == 1
    assert result.privacy_score == 0
    assert result.summary.startswith("Found 8 privacy risks: ")

    assert restore(redacted, result.redaction_map) == WHISTLEBLOWER_REPORT


# ── Placeholder Rules ────────────────────────────────────────────────

def test_same_value_same_placeholder():
    result = scan("Email john@example.com twice: john@example.com")
    assert result.redacted_text == "Email [EMAIL_1] twice: [EMAIL_1]"
    assert len(result.redaction_map) == 1
    assert len(result.detections) == 2
    assert result.detection_stats == {Category.EMAIL: 2}


def test_different_values_different_placeholders():
    result = scan("a@example.com then b@example.com then a@example.com")
    assert result.redacted_text == "[EMAIL_1] then [EMAIL_2] then [EMAIL_1]"


def test_existing_placeholder_passthrough():
    text = "Template uses [EMAIL_1]; real address is bob@example.org"
    result = scan(text)
    assert result.redacted_text == "Template uses [EMAIL_1]; real address is [EMAIL_2]"
    assert result.redaction_map.passthrough == frozenset({"[EMAIL_1]"})
    assert "[EMAIL_1]" not in result.redaction_map
    assert restore(result.redacted_text, result.redaction_map) == text


# ── Invariants ───────────────────────────────────────────────────────

@pytest.mark.parametrize("options", OPTION_SETS)
@pytest.mark.parametrize("text", SAMPLES)
def test_round_trip(text, options):
    redactor = Redactor()
    result = redactor.scan(text, options)
    assert redactor.restore(result.redacted_text, result.redaction_map) == text


@pytest.mark.parametrize("text", SAMPLES)
def test_no_original_value_left_in_output(text):
    result = scan(text)
    for entry in result.redaction_map.values():
        assert entry.original not in result.redacted_text


@pytest.mark.parametrize("text", SAMPLES)
def test_rescan_leaves_placeholders_alone(text):
    first = scan(text)
    second = scan(first.redacted_text)
    tokens = [(m.start(), m.end()) for m in PLACEHOLDER_RE.finditer(first.redacted_text)]
    for d in second.detections:
        assert not any(d.start < e and d.end > s for s, e in tokens)


@pytest.mark.parametrize("text", SAMPLES)
def test_deterministic(text):
    a, b = scan(text), scan(text)
    assert a.redacted_text == b.redacted_text
    assert a.redaction_map == b.redaction_map
    assert a.detections == b.detections


@pytest.mark.parametrize("text", SAMPLES)
def test_detections_do_not_overlap(text):
    detections = scan(text).detections
    for a, b in zip(detections, detections[1:]):
        assert a.end <= b.start


@pytest.mark.parametrize("text", SAMPLES)
def test_placeholder_numbering_is_dense(text):
    result = scan(text)
    per_label = {}
    for placeholder in result.redaction_map:
        label, idx = re.fullmatch(r"\[([A-Z_]+)_(\d+)\]", placeholder).groups()
        per_label.setdefault(label, []).append(int(idx))
    reserved = result.redaction_map.passthrough
    for label, ids in per_label.items():
        expected = [
            i for i in range(1, max(ids) + 1)
            if f"[{label}_{i}]" not in reserved
        ]
        assert sorted(ids) == expected


def test_concurrent_scans_match_sequential():
    redactor = Redactor()
    expected = [redactor.scan(t).redacted_text for t in SAMPLES]
    with ThreadPoolExecutor(max_workers=4) as pool:
        got = list(pool.map(lambda t: redactor.scan(t).redacted_text, SAMPLES * 5))
    assert got == expected * 5


# ── Restore ──────────────────────────────────────────────────────────

def test_restore_accepts_plain_dict():
    result = scan("Contact alice@example.com")
    payload = json.loads(json.dumps(result.to_dict()))
    assert restore(result.redacted_text, payload["redaction_map"]) == "Contact alice@example.com"


def test_restore_unknown_placeholder_raises():
    result = scan("Contact alice@example.com")
    with pytest.raises(RestoreMismatch) as exc:
        restore(result.redacted_text + " and [EMAIL_7]", result.redaction_map)
    assert exc.value.unknown == ["[EMAIL_7]"]


def test_restore_missing_placeholder_strict_and_lenient():
    result = scan("Contact alice@example.com or 555-123-4567")
    edited = result.redacted_text.replace(" or [PHONE_1]", "")
    with pytest.raises(RestoreMismatch) as exc:
        restore(edited, result.redaction_map)
    assert exc.value.missing == ["[PHONE_1]"]
    assert restore(edited, result.redaction_map, strict=False) == "Contact alice@example.com"


# ── Configuration ────────────────────────────────────────────────────

def test_redact_allow_list():
    redactor = Redactor(RedactorConfig(allow_list={"safe@example.com"}))
    result = redactor.scan("Email safe@example.com or bad@example.com")
    assert "safe@example.com" in result.redacted_text
    assert "bad@example.com" not in result.redacted_text


def test_redact_skip_categories():
    redactor = Redactor(RedactorConfig(skip_categories={Category.EMAIL}))
    result = redactor.scan("Email alice@example.com, IP 10.0.0.1")
    assert "alice@example.com" in result.redacted_text
    assert "[IP_ADDRESS_1]" in result.redacted_text


def test_config_default_options():
    redactor = Redactor(RedactorConfig(options=ScanOptions(include_names=False)))
    text = "Report by Sarah Johnson"
    assert redactor.scan(text).redacted_text == text
    assert redactor.scan(text, ScanOptions()).redacted_text == "Report by [NAME_1]"


def test_custom_pattern():
    pattern = PIIPattern(
        Category.EMPLOYEE_ID,
        re.compile(r"\bWB-\d{6}\b"),
        Severity.HIGH,
        lambda raw: "WB-******",
    )
    redactor = Redactor(RedactorConfig(custom_patterns=[pattern]))
    result = redactor.scan("Case WB-123456 opened")
    assert result.redacted_text == "Case [EMPLOYEE_ID_1] opened"


def test_input_limit():
    redactor = Redactor(RedactorConfig(max_input_chars=10))
    with pytest.raises(InputTooLarge) as exc:
        redactor.scan("x" * 11)
    assert exc.value.length == 11
    assert exc.value.limit == 10
    assert redactor.scan("x" * 10).redacted_text == "x" * 10


def test_scan_fields():
    results = Redactor().scan_fields({
        "title": "Contact bob@example.com",
        "description": None,
    })
    assert results["title"].redacted_text == "Contact [EMAIL_1]"
    assert results["description"].redacted_text == ""
    assert isinstance(results["title"].redaction_map, RedactionMap)


# ── Serialization ────────────────────────────────────────────────────

def test_scan_result_json_round_trip():
    result = scan(WHISTLEBLOWER_REPORT)
    data = json.loads(json.dumps(result.to_dict()))
    assert data["redacted_text"] == result.redacted_text
    assert data["pii_detected"] is True
    assert RedactionMap.from_dict(data["redaction_map"]) == result.redaction_map
