"""Privacy score and human-readable summaries."""

from __future__ import annotations
from collections import Counter
from collections.abc import Iterable, Mapping
from typing import Any

from .patterns import get_pattern
from .types import AcceptedSpan, Category, Severity

SEVERITY_WEIGHTS: dict[Severity, int] = {
    Severity.HIGH: 30,
    Severity.MEDIUM: 15,
    Severity.LOW: 5,
}

NO_RISK_SUMMARY = "No privacy risks detected. Your report appears anonymous."

# Singular nouns used in summaries
SUMMARY_LABELS: dict[Category, str] = {
    Category.EMAIL: "email address",
    Category.URL_WITH_EMAIL: "URL containing an email",
    Category.URL: "URL",
    Category.EMPLOYEE_ID: "employee/office ID",
    Category.SSN: "social security number",
    Category.NI_NUMBER: "national insurance number",
    Category.PASSPORT_UK: "UK passport number",
    Category.PASSPORT_US: "US passport number",
    Category.DRIVERS_LICENSE_UK: "driving licence number",
    Category.NHS_NUMBER: "NHS number",
    Category.CREDIT_CARD: "credit card number",
    Category.IBAN: "IBAN",
    Category.SORT_CODE_UK: "sort code",
    Category.BANK_ACCOUNT_UK: "bank account number",
    Category.PHONE: "phone number",
    Category.IP_ADDRESS: "IP address",
    Category.IPV6_ADDRESS: "IPv6 address",
    Category.MAC_ADDRESS: "MAC address",
    Category.POSTCODE: "postcode",
    Category.POSTCODE_US: "ZIP code",
    Category.DATE_OF_BIRTH: "date of birth",
    Category.DATE: "date",
    Category.SPECIFIC_DATE: "specific date",
    Category.ADDRESS: "address",
    Category.POSSIBLE_NAME: "name",
    Category.STANDALONE_NAME: "possible name",
}

# Title-case labels for UI badges
DISPLAY_LABELS: dict[Category, str] = {
    Category.EMAIL: "Email Address",
    Category.URL_WITH_EMAIL: "URL with Email",
    Category.URL: "URL",
    Category.EMPLOYEE_ID: "Employee ID",
    Category.SSN: "Social Security Number",
    Category.NI_NUMBER: "National Insurance",
    Category.PASSPORT_UK: "UK Passport",
    Category.PASSPORT_US: "US Passport",
    Category.DRIVERS_LICENSE_UK: "Driving Licence",
    Category.NHS_NUMBER: "NHS Number",
    Category.CREDIT_CARD: "Credit Card",
    Category.IBAN: "Bank Account (IBAN)",
    Category.SORT_CODE_UK: "Sort Code",
    Category.BANK_ACCOUNT_UK: "Bank Account",
    Category.PHONE: "Phone Number",
    Category.IP_ADDRESS: "IP Address",
    Category.IPV6_ADDRESS: "IPv6 Address",
    Category.MAC_ADDRESS: "MAC Address",
    Category.POSTCODE: "Postcode",
    Category.POSTCODE_US: "ZIP Code",
    Category.DATE_OF_BIRTH: "Date of Birth",
    Category.DATE: "Date",
    Category.SPECIFIC_DATE: "Date",
    Category.ADDRESS: "Street Address",
    Category.POSSIBLE_NAME: "Person Name",
    Category.STANDALONE_NAME: "Person Name",
}


def score(detection_stats: Mapping[Category | str, int]) -> int:
    """Privacy score in [0, 100]: 100 minus a fixed weight per finding."""
    deduction = 0
    for category, count in detection_stats.items():
        severity = get_pattern(category).severity
        deduction += SEVERITY_WEIGHTS[severity] * count
    return max(0, 100 - deduction)


def _plural(noun: str, count: int) -> str:
    if count == 1:
        return noun
    return noun + ("es" if noun.endswith("s") else "s")


def summarize(detections: Iterable[AcceptedSpan]) -> str:
    """One sentence listing counts per category, in order of first appearance."""
    counts = Counter(d.category for d in detections)
    if not counts:
        return NO_RISK_SUMMARY

    total = sum(counts.values())
    parts = [
        f"{n} {_plural(SUMMARY_LABELS.get(c, c.value.lower()), n)}"
        for c, n in counts.items()
    ]
    return f"Found {total} privacy {_plural('risk', total)}: {', '.join(parts)}"


def severity_counts(detections: Iterable[AcceptedSpan]) -> dict[Severity, int]:
    counts = {s: 0 for s in Severity}
    for d in detections:
        counts[d.severity] += 1
    return counts


def redaction_stats(detection_stats: Mapping[Category, int]) -> dict[str, Any]:
    """Totals for monitoring: total findings, most common category, breakdown."""
    total = sum(detection_stats.values())
    most_common = "None"
    if detection_stats:
        # Ties go to the category seen first
        best = max(detection_stats.items(), key=lambda kv: kv[1])
        most_common = Category(best[0]).value
    return {
        "total": total,
        "most_common": most_common,
        "breakdown": {Category(c).value: n for c, n in detection_stats.items()},
    }


def format_category(category: Category | str) -> str:
    try:
        return DISPLAY_LABELS[Category(category)]
    except (KeyError, ValueError):
        return str(category).replace("_", " ").title()
