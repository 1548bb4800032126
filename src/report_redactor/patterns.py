"""Pattern registry: one compiled regex per PII category.

Structured identifiers (emails, IDs, card numbers, IBANs, phones, IPs) are
always active.  Street addresses and the two name heuristics are gated by
``ScanOptions`` because they trade precision for recall.

Registry order breaks ties when two candidates start at the same offset
and have the same length: the earlier category wins.
"""

from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Callable
from urllib.parse import urlsplit

from .types import Category, Severity
from . import validators

_MONTHS = (
    r"(?:January|February|March|April|May|June|July|August|September|"
    r"October|November|December|Jan|Feb|Mar|Apr|Jun|Jul|Aug|Sept|Sep|Oct|Nov|Dec)"
)


@dataclass(frozen=True, slots=True)
class PIIPattern:
    """One category's matcher, validator and cosmetic redactor."""
    category: Category
    regex: re.Pattern[str]
    severity: Severity
    redactor: Callable[[str], str]              # masked preview, not reversible
    validator: Callable[[str], bool] | None = None
    group: int = 0                              # regex group holding the sensitive span
    description: str = ""
    gated_by: str | None = None                 # ScanOptions field that enables it


# ── Cosmetic redactors ───────────────────────────────────────────────

def _digits(raw: str) -> str:
    return re.sub(r"\D", "", raw)


def _mask_email(raw: str) -> str:
    name, _, domain = raw.partition("@")
    return f"{name[:1]}****@{domain}"


def _mask_url(raw: str) -> str:
    try:
        parts = urlsplit(raw)
    except ValueError:
        return "[URL REDACTED]"
    if not parts.hostname:
        return "[URL REDACTED]"
    return f"{parts.scheme}://{parts.hostname}/[REDACTED]"


def _mask_tail(prefix: str, keep: int = 4) -> Callable[[str], str]:
    def mask(raw: str) -> str:
        return prefix + _digits(raw)[-keep:]
    return mask


def _mask_iban(raw: str) -> str:
    compact = re.sub(r"\s", "", raw).upper()
    return f"{compact[:2]}** **** **** {compact[-4:]}"


def _mask_postcode(raw: str) -> str:
    compact = raw.replace(" ", "")
    return f"{compact[:-3]} ***"


def _mask_employee_id(raw: str) -> str:
    return "****" + raw[-2:]


def _fixed(replacement: str) -> Callable[[str], str]:
    return lambda raw: replacement


# ── Registry ─────────────────────────────────────────────────────────

_PATTERNS: tuple[PIIPattern, ...] = (
    PIIPattern(
        Category.EMAIL,
        re.compile(r"\b[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}\b"),
        Severity.HIGH,
        _mask_email,
        validator=validators.email_valid,
        description="Email addresses can identify you",
    ),
    PIIPattern(
        # Credentials or an address inside the link, e.g. https://jo@host/...
        Category.URL_WITH_EMAIL,
        re.compile(
            r"https?://[^\s<>\"{}|\\^`\[\]@]*@[^\s<>\"{}|\\^`\[\]]*"
            r"[^\s<>\"{}|\\^`\[\].,;:!?)'\"]"
        ),
        Severity.HIGH,
        _fixed("[URL REDACTED]"),
        description="URLs containing an email address identify you",
    ),
    PIIPattern(
        Category.URL,
        re.compile(
            r"https?://[^\s<>\"{}|\\^`\[\]]*"
            r"[^\s<>\"{}|\\^`\[\].,;:!?)'\"]"
        ),
        Severity.LOW,
        _mask_url,
        description="URLs may contain identifying information",
    ),
    PIIPattern(
        # Keyword stays in the text, only the identifier is redacted
        Category.EMPLOYEE_ID,
        re.compile(
            r"\b(?i:employee\s*(?:id|no\.?|number)|staff\s*(?:id|no\.?|number)"
            r"|personnel|empl|emp|id)"
            r"[:\s#\-]*"
            r"(?=[A-Z]*\d)([A-Z0-9]{4,12})\b"
        ),
        Severity.HIGH,
        _mask_employee_id,
        group=1,
        description="Employee/Office IDs can identify you",
    ),
    PIIPattern(
        Category.SSN,
        re.compile(r"\b\d{3}-\d{2}-\d{4}\b"),
        Severity.HIGH,
        _fixed("***-**-****"),
        validator=validators.ssn_valid,
        description="Social Security Numbers must be protected",
    ),
    PIIPattern(
        Category.NI_NUMBER,
        re.compile(
            r"\b[A-CEGHJ-PR-TW-Z][A-CEGHJ-NPR-TW-Z]\s?\d{2}\s?\d{2}\s?\d{2}\s?[A-D]\b",
            re.IGNORECASE,
        ),
        Severity.HIGH,
        lambda raw: raw.replace(" ", "")[:2].upper() + " ** ** ** *",
        validator=validators.ni_number_valid,
        description="National Insurance numbers identify you",
    ),
    PIIPattern(
        Category.PASSPORT_UK,
        re.compile(r"\b\d{9}[A-Z]{3}\b"),
        Severity.HIGH,
        _fixed("*********[PASSPORT]"),
        description="Passport numbers identify you",
    ),
    PIIPattern(
        Category.PASSPORT_US,
        re.compile(r"\b[A-Z]{1,2}\d{7,9}\b"),
        Severity.HIGH,
        _fixed("[PASSPORT REDACTED]"),
        description="Passport numbers identify you",
    ),
    PIIPattern(
        Category.DRIVERS_LICENSE_UK,
        re.compile(r"\b[A-Z]{5}\d{6}[A-Z]{2}\d[A-Z]{2}\b"),
        Severity.HIGH,
        _fixed("[LICENCE REDACTED]"),
        description="Driving licence numbers identify you",
    ),
    PIIPattern(
        Category.NHS_NUMBER,
        re.compile(r"\b\d{3}\s?\d{3}\s?\d{4}\b"),
        Severity.HIGH,
        _mask_tail("*** *** ", keep=4),
        validator=validators.nhs_number_valid,
        description="NHS numbers identify you",
    ),
    PIIPattern(
        Category.CREDIT_CARD,
        re.compile(
            r"\b(?:(?:\d{4}[\s\-]?){3}\d{4}"
            r"|\d{4}[\s\-]?\d{6}[\s\-]?\d{5})\b"
        ),
        Severity.MEDIUM,
        _mask_tail("****-****-****-"),
        validator=validators.luhn_valid,
        description="Credit card numbers detected",
    ),
    PIIPattern(
        Category.IBAN,
        re.compile(r"\b[A-Z]{2}\d{2}(?: ?[A-Z0-9]{4}){2,7}(?: ?[A-Z0-9]{1,4})?\b"),
        Severity.HIGH,
        _mask_iban,
        validator=validators.iban_valid,
        description="Bank account numbers identify you",
    ),
    PIIPattern(
        Category.SORT_CODE_UK,
        re.compile(r"\b\d{2}-\d{2}-\d{2}\b"),
        Severity.MEDIUM,
        _fixed("**-**-**"),
        description="Sort codes narrow down your bank branch",
    ),
    PIIPattern(
        # Bare 8-digit runs are too common; only after an account keyword
        Category.BANK_ACCOUNT_UK,
        re.compile(
            r"\b(?i:account|acct|a/c)(?:\s*(?i:no\.?|number|#))?[:\s]*(\d{8})\b"
        ),
        Severity.HIGH,
        _mask_tail("****", keep=4),
        group=1,
        description="Bank account numbers identify you",
    ),
    PIIPattern(
        Category.PHONE,
        re.compile(
            r"(?<![\w+])"
            r"(?:"
            r"\+\d{1,3}[\s.\-]?\(?\d{1,4}\)?(?:[\s.\-]?\d{2,4}){1,4}"   # international
            r"|\(?0\d{2,4}\)?[\s\-]?\d{3,4}[\s\-]?\d{3,4}"             # UK trunk prefix
            r"|(?:1[\s.\-]?)?\(?\d{3}\)?[\s.\-]?\d{3}[\s.\-]?\d{4}"    # North American
            r"|\d{3}[.\-]\d{4}"                                        # local
            r")"
            r"(?!\d)"
        ),
        Severity.HIGH,
        _mask_tail("***-***-"),
        description="Phone numbers can identify you",
    ),
    PIIPattern(
        Category.IP_ADDRESS,
        re.compile(r"\b(?:\d{1,3}\.){3}\d{1,3}\b"),
        Severity.MEDIUM,
        _fixed("***.***.***.***"),
        validator=validators.ipv4_valid,
        description="IP addresses can be used to trace you",
    ),
    PIIPattern(
        Category.IPV6_ADDRESS,
        re.compile(r"\b(?:[A-Fa-f0-9]{1,4}:){7}[A-Fa-f0-9]{1,4}\b"),
        Severity.MEDIUM,
        _fixed("****:****:****:****:****:****:****:****"),
        description="IP addresses can be used to trace you",
    ),
    PIIPattern(
        Category.MAC_ADDRESS,
        re.compile(r"\b(?:[0-9A-Fa-f]{2}[:\-]){5}[0-9A-Fa-f]{2}\b"),
        Severity.MEDIUM,
        _fixed("**:**:**:**:**:**"),
        description="Device addresses can be used to trace you",
    ),
    PIIPattern(
        Category.POSTCODE,
        re.compile(r"\b[A-Z]{1,2}\d[A-Z\d]?\s?\d[A-Z]{2}\b"),
        Severity.MEDIUM,
        _mask_postcode,
        description="Postcodes narrow down where you live",
    ),
    PIIPattern(
        # "NY 10001", "ZIP: 90210-1234"; bare 5-digit numbers are left alone
        Category.POSTCODE_US,
        re.compile(r"(?:\b[A-Z]{2}|\b(?i:zip(?:\s*code)?:?))\s+(\d{5}(?:-\d{4})?)\b"),
        Severity.MEDIUM,
        lambda raw: raw[:2] + "***",
        group=1,
        description="ZIP codes narrow down where you live",
    ),
    PIIPattern(
        Category.DATE_OF_BIRTH,
        re.compile(
            r"\b(?i:dob|date\s+of\s+birth|born(?:\s+on)?)[\s:]+"
            r"(\d{1,2}[\-/]\d{1,2}[\-/]\d{2,4})\b"
        ),
        Severity.HIGH,
        _fixed("**/**/****"),
        group=1,
        description="A date of birth is highly identifying",
    ),
    PIIPattern(
        Category.DATE,
        re.compile(
            r"\b(?:(?:19|20)\d{2}[\-/](?:0?[1-9]|1[0-2])[\-/](?:0?[1-9]|[12]\d|3[01])"
            r"|(?:0?[1-9]|[12]\d|3[01])[\-/](?:0?[1-9]|1[0-2])[\-/](?:19|20)\d{2})\b"
        ),
        Severity.LOW,
        _fixed("**/**/****"),
        description="Specific dates could narrow identification",
    ),
    PIIPattern(
        # "since March 3, 2021" -> "since [DATE_1]"
        Category.SPECIFIC_DATE,
        re.compile(
            r"\b(?:on|since|from|started|joined|hired)\s+"
            r"((?:" + _MONTHS + r"\.?\s+\d{1,2}(?:st|nd|rd|th)?"
            r"|\d{1,2}(?:st|nd|rd|th)?\s+(?:of\s+)?" + _MONTHS + r"\.?)"
            r",?\s+\d{4})\b",
            re.IGNORECASE,
        ),
        Severity.LOW,
        _fixed("[DATE REDACTED]"),
        group=1,
        description="Specific dates (hire date, etc.) could narrow identification",
    ),
    PIIPattern(
        Category.ADDRESS,
        re.compile(
            r"\b\d{1,5}[A-Za-z]?\s+(?:[A-Z][a-z]+\s+){1,3}"
            r"(?:Street|St|Avenue|Ave|Road|Rd|Drive|Dr|Lane|Ln|Boulevard|Blvd|Way|"
            r"Court|Ct|Close|Place|Pl|Square|Crescent|Terrace|Gardens)\b"
        ),
        Severity.MEDIUM,
        _fixed("[ADDRESS REDACTED]"),
        description="Street addresses can identify locations",
        gated_by="include_addresses",
    ),
    PIIPattern(
        # "my manager is Sarah Johnson" -> "my manager is [NAME_1]"
        Category.POSSIBLE_NAME,
        re.compile(
            r"\b(?i:my\s+name\s+is|i\s+am|i'm|"
            r"my\s+(?:line\s+)?(?:manager|supervisor|boss|colleague|co-?worker)(?:\s+is)?|"
            r"mr\.?|mrs\.?|ms\.?|dr\.?)"
            r"\s+([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)?)\b"
        ),
        Severity.HIGH,
        _fixed("[NAME REDACTED]"),
        validator=validators.name_valid,
        group=1,
        description="Names detected - highly identifying",
        gated_by="include_names",
    ),
    PIIPattern(
        # Not straight after "at/in/near/from/to": likely a place
        Category.STANDALONE_NAME,
        re.compile(
            r"(?<!\b[Aa]t\s)(?<!\b[Ii]n\s)(?<!\b[Nn]ear\s)(?<!\b[Ff]rom\s)(?<!\b[Tt]o\s)"
            r"\b[A-Z][a-z]{2,}(?:[ \t]+[A-Z][a-z]{2,}){1,2}\b"
        ),
        Severity.MEDIUM,
        _fixed("[NAME REDACTED]"),
        validator=validators.name_valid,
        description="Possible full name detected",
        gated_by="include_names",
    ),
)

_BY_CATEGORY: dict[Category, PIIPattern] = {p.category: p for p in _PATTERNS}


def list_patterns() -> tuple[PIIPattern, ...]:
    """All built-in patterns in registry order."""
    return _PATTERNS


def get_pattern(category: Category | str) -> PIIPattern:
    return _BY_CATEGORY[Category(category)]


def registry_order(patterns: tuple[PIIPattern, ...] | list[PIIPattern]) -> dict[Category, int]:
    """Category -> tie-break rank (first registration wins)."""
    order: dict[Category, int] = {}
    for idx, p in enumerate(patterns):
        order.setdefault(p.category, idx)
    return order
