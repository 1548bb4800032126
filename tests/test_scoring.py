"""Tests for the privacy score and summaries."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from report_redactor.scoring import (
    NO_RISK_SUMMARY, format_category, redaction_stats, score, severity_counts, summarize,
)
from report_redactor.types import AcceptedSpan, Category, Severity


def _det(category, severity=Severity.HIGH):
    return AcceptedSpan(category, "x", 0, 1, severity, f"[{category.label}_1]", 1)


# ── Score ────────────────────────────────────────────────────────────

def test_score_clean():
    assert score({}) == 100


def test_score_weights():
    assert score({Category.EMAIL: 1}) == 70            # high
    assert score({Category.CREDIT_CARD: 1}) == 85      # medium
    assert score({Category.URL: 1}) == 95              # low
    assert score({Category.EMAIL: 1, Category.PHONE: 1, Category.IP_ADDRESS: 1}) == 25


def test_score_floor():
    assert score({Category.DATE: 50}) == 0
    assert score({Category.EMAIL: 4}) == 0


def test_score_accepts_string_keys():
    assert score({"EMAIL": 2}) == 40


def test_score_monotonic():
    stats = {}
    previous = score(stats)
    for category in (Category.URL, Category.POSTCODE, Category.EMAIL, Category.DATE):
        stats[category] = stats.get(category, 0) + 1
        current = score(stats)
        assert current <= previous
        previous = current


# ── Summary ──────────────────────────────────────────────────────────

def test_summary_no_risk():
    assert summarize([]) == NO_RISK_SUMMARY


def test_summary_counts_in_first_seen_order():
    detections = [_det(Category.EMAIL), _det(Category.PHONE), _det(Category.EMAIL)]
    assert summarize(detections) == "Found 3 privacy risks: 2 email addresses, 1 phone number"


def test_summary_singular():
    assert summarize([_det(Category.IP_ADDRESS, Severity.MEDIUM)]) == (
        "Found 1 privacy risk: 1 IP address"
    )


def test_severity_counts():
    detections = [_det(Category.EMAIL), _det(Category.DATE, Severity.LOW)]
    assert severity_counts(detections) == {
        Severity.HIGH: 1, Severity.MEDIUM: 0, Severity.LOW: 1,
    }


# ── Stats ────────────────────────────────────────────────────────────

def test_redaction_stats():
    stats = redaction_stats({Category.EMAIL: 2, Category.PHONE: 1, Category.IP_ADDRESS: 1})
    assert stats == {
        "total": 4,
        "most_common": "EMAIL",
        "breakdown": {"EMAIL": 2, "PHONE": 1, "IP_ADDRESS": 1},
    }


def test_redaction_stats_empty():
    assert redaction_stats({}) == {"total": 0, "most_common": "None", "breakdown": {}}


def test_format_category():
    assert format_category(Category.NI_NUMBER) == "National Insurance"
    assert format_category("IBAN") == "Bank Account (IBAN)"
    assert format_category("SOMETHING_ELSE") == "Something Else"
