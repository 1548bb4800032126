"""Per-category validators.

Each validator takes the raw matched text and returns True when the match
should be redacted.  They are pure: no I/O, no globals mutated.  A validator
that raises is treated by the scanner as a rejection.
"""

from __future__ import annotations
import re

_SEPARATORS = re.compile(r"[\s\-.]")


# ── Checksums ────────────────────────────────────────────────────────

def luhn_valid(number: str) -> bool:
    """Mod-10 (Luhn) check for card numbers with optional separators."""
    digits = _SEPARATORS.sub("", number)
    if not digits.isdigit() or not 13 <= len(digits) <= 19:
        return False

    total = 0
    for i, ch in enumerate(reversed(digits)):
        n = int(ch)
        if i % 2 == 1:
            n *= 2
            if n > 9:
                n -= 9
        total += n
    return total % 10 == 0


# Expected IBAN length by country (ISO 13616 registry, common subset)
IBAN_LENGTHS: dict[str, int] = {
    "AT": 20, "BE": 16, "BG": 22, "CH": 21, "CY": 28, "CZ": 24, "DE": 22,
    "DK": 18, "EE": 20, "ES": 24, "FI": 18, "FR": 27, "GB": 22, "GR": 27,
    "HR": 21, "HU": 28, "IE": 22, "IS": 26, "IT": 27, "LI": 21, "LT": 20,
    "LU": 20, "LV": 21, "MT": 31, "NL": 18, "NO": 15, "PL": 28, "PT": 25,
    "RO": 24, "SE": 24, "SI": 19, "SK": 24,
}


def iban_valid(iban: str) -> bool:
    """Country length table plus the ISO 7064 mod-97 check."""
    normalized = re.sub(r"\s", "", iban).upper()
    if not re.fullmatch(r"[A-Z]{2}\d{2}[A-Z0-9]+", normalized):
        return False
    if not 15 <= len(normalized) <= 34:
        return False
    expected = IBAN_LENGTHS.get(normalized[:2])
    if expected is not None and len(normalized) != expected:
        return False

    # Move the first four characters to the end, then A=10 .. Z=35
    rearranged = normalized[4:] + normalized[:4]
    numeric = "".join(str(int(ch, 36)) for ch in rearranged)
    return int(numeric) % 97 == 1


# ── Network ──────────────────────────────────────────────────────────

def ipv4_valid(ip: str) -> bool:
    """Four octets, each 0-255, no leading zeros."""
    octets = ip.split(".")
    if len(octets) != 4:
        return False
    for octet in octets:
        num = int(octet)
        if not 0 <= num <= 255 or octet != str(num):
            return False
    return True


_EMAIL_LABEL = re.compile(r"[A-Za-z0-9](?:[A-Za-z0-9\-]*[A-Za-z0-9])?")


def email_valid(email: str) -> bool:
    """Structural check on the domain part."""
    local, _, domain = email.rpartition("@")
    if not local or not domain or ".." in local:
        return False
    labels = domain.split(".")
    if len(labels) < 2:
        return False
    if not all(_EMAIL_LABEL.fullmatch(label) for label in labels):
        return False
    tld = labels[-1]
    return tld.isalpha() and len(tld) >= 2


# ── National identifiers ─────────────────────────────────────────────

NI_INVALID_PREFIXES = frozenset({"BG", "GB", "NK", "KN", "TN", "NT", "ZZ"})
_NI_FORMAT = re.compile(r"[A-Z]{2}\d{6}[A-D]")


def ni_number_valid(ni: str) -> bool:
    """UK National Insurance number prefix and format rules."""
    normalized = re.sub(r"\s", "", ni).upper()
    if not _NI_FORMAT.fullmatch(normalized):
        return False
    if normalized[:2] in NI_INVALID_PREFIXES:
        return False
    if normalized[0] in "DFIQUV":
        return False
    if normalized[1] in "DFIOQUV":
        return False
    return True


def nhs_number_valid(nhs: str) -> bool:
    """NHS number mod-11 check digit."""
    digits = re.sub(r"\s", "", nhs)
    if len(digits) != 10 or not digits.isdigit():
        return False
    total = sum(int(d) * w for d, w in zip(digits[:9], range(10, 1, -1)))
    check = 11 - total % 11
    if check == 11:
        check = 0
    return check != 10 and check == int(digits[9])


def ssn_valid(ssn: str) -> bool:
    """US SSN: area not 000, 666 or 9xx; group not 00; serial not 0000."""
    digits = re.sub(r"\D", "", ssn)
    if len(digits) != 9:
        return False
    area, group, serial = digits[:3], digits[3:5], digits[5:]
    if area in ("000", "666") or area.startswith("9"):
        return False
    return group != "00" and serial != "0000"


# ── Names ────────────────────────────────────────────────────────────

BUSINESS_PHRASES: tuple[str, ...] = (
    "customer care", "customer service", "client services", "human resources",
    "data protection", "chief executive", "chief financial", "managing director",
    "team lead", "account manager", "senior account", "hiring friends",
    "fraudulent expenses", "expense report", "financial misconduct",
    "workplace behaviour", "workplace behavior", "code of conduct",
    "policy violation", "internal audit", "compliance issue", "health and safety",
    "board of directors", "dear sir", "dear madam", "kind regards", "best regards",
)

PLACE_PHRASES: tuple[str, ...] = (
    "united kingdom", "united states", "european union", "great britain",
    "northern ireland", "new york", "new jersey", "new mexico", "new hampshire",
    "new zealand", "los angeles", "san francisco", "san diego", "las vegas",
    "north carolina", "south carolina", "north dakota", "south dakota",
    "rhode island", "west virginia", "hong kong", "south africa",
)

# Whole tokens that mark an address or an organisation, not a person
NON_NAME_TOKENS = frozenset({
    "street", "road", "avenue", "lane", "drive", "boulevard", "crescent",
    "terrace", "gardens", "square", "court", "building", "floor", "house",
    "centre", "center", "office",
    "company", "ltd", "limited", "inc", "group", "team", "manager", "director",
    "officer", "department", "board", "committee", "bank", "council",
    "services", "university", "college", "school", "hospital", "police",
})

# Substrings that mark a business term (report, expense policy, ...)
BUSINESS_INDICATORS: tuple[str, ...] = (
    "report", "expense", "fraud", "misconduct", "violation", "policy",
    "hiring", "recruitment", "process", "procedure", "system", "department",
)

# A first token from this set is an action or qualifier, not a first name
GENERIC_FIRST_WORDS = frozenset({
    "improper", "unauthorized", "unauthorised", "inappropriate", "illegal",
    "unlawful", "alleged", "suspected", "fraudulent", "unethical", "false",
    "visit", "contact", "please", "dear", "regarding", "meeting",
    "the", "this", "that", "these", "those", "our", "their", "his", "her",
    "when", "after", "before", "during", "last", "next", "every", "some",
    "many", "senior", "junior", "head", "chief", "acting", "former", "new",
    "very", "not", "really", "writing", "concerned", "worried", "sorry",
    "yesterday", "today", "tomorrow",
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
    "january", "february", "march", "june", "july", "august", "september",
    "october", "november", "december",
})


def name_valid(name: str) -> bool:
    """Exclusion heuristic for capitalised word runs that look like names.

    Precision/recall trade-off: rejects business phrases, place names,
    address and organisation words, and runs that start with a generic word.
    """
    lowered = " ".join(name.lower().split())
    if any(phrase in lowered for phrase in BUSINESS_PHRASES):
        return False
    if any(phrase in lowered for phrase in PLACE_PHRASES):
        return False
    tokens = lowered.split(" ")
    if tokens[0] in GENERIC_FIRST_WORDS:
        return False
    if any(t in NON_NAME_TOKENS for t in tokens):
        return False
    if any(ind in lowered for ind in BUSINESS_INDICATORS):
        return False
    return True
