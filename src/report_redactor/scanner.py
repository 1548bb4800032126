"""Scanner and overlap resolver.

``scan`` applies every pattern to the text and returns validated candidates
(which may overlap across categories); ``resolve_overlaps`` keeps a
pairwise non-overlapping subset.
"""

from __future__ import annotations
import logging
import re
from collections.abc import Iterable, Sequence

from .patterns import PIIPattern, list_patterns, registry_order
from .types import Category, Match

logger = logging.getLogger(__name__)

# Anything shaped like a placeholder this engine emits, e.g. "[EMAIL_1]"
PLACEHOLDER_RE = re.compile(r"\[[A-Z][A-Z0-9_]*_\d+\]")


def placeholder_spans(text: str) -> list[tuple[int, int]]:
    return [(m.start(), m.end()) for m in PLACEHOLDER_RE.finditer(text)]


def _overlaps(start: int, end: int, spans: Sequence[tuple[int, int]]) -> bool:
    return any(start < e and end > s for s, e in spans)


def _validate(pattern: PIIPattern, raw: str) -> bool:
    if pattern.validator is None:
        return True
    try:
        return bool(pattern.validator(raw))
    except Exception as exc:
        # A faulty validator drops the candidate, never the scan
        logger.debug(
            "validator for %s raised %s; candidate dropped",
            pattern.category.value, type(exc).__name__,
        )
        return False


def _is_word(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def _mid_token(text: str, pos: int) -> bool:
    """True when ``pos`` splits a run of word characters."""
    return 0 < pos < len(text) and _is_word(text[pos - 1]) and _is_word(text[pos])


def _accepts(pattern: PIIPattern, m: re.Match, protected: Sequence[tuple[int, int]]) -> bool:
    start, end = m.span(pattern.group)
    return (
        start < end
        and not _overlaps(start, end, protected)
        and _validate(pattern, m.group(pattern.group))
    )


def _shorter_match(
    text: str,
    pattern: PIIPattern,
    m: re.Match,
    protected: Sequence[tuple[int, int]],
) -> re.Match | None:
    """Longest accepted match at the same start that ends before ``m`` does.

    Only ends on a token boundary are tried, so "BE68 5390 0754 7034 2023"
    can fall back to "BE68 5390 0754 7034" but never to a cut-off "...703".
    """
    start = m.start()
    limit = m.end()
    while limit > start + 1:
        limit -= 1
        if _mid_token(text, limit):
            continue
        sub = pattern.regex.match(text, start, limit)
        if sub is None:
            continue
        if _accepts(pattern, sub, protected):
            return sub
        limit = min(limit, sub.end())
    return None


def scan_pattern(
    text: str,
    pattern: PIIPattern,
    *,
    protected: Sequence[tuple[int, int]] = (),
) -> list[Match]:
    """All accepted matches of one pattern, left to right.

    An accepted match consumes its span.  A rejected candidate is first
    retried with trailing tokens dropped ("Sarah Johnson" out of "Sarah
    Johnson Department"); failing that it only consumes its first character,
    so a later match inside it can still be found ("John Smith" inside
    "Visit John Smith").
    """
    matches: list[Match] = []
    pos = 0
    while pos <= len(text):
        m = pattern.regex.search(text, pos)
        if m is None:
            break
        if not _accepts(pattern, m, protected):
            shorter = _shorter_match(text, pattern, m, protected)
            if shorter is None:
                pos = m.start() + 1
                continue
            m = shorter
        start, end = m.span(pattern.group)
        matches.append(Match(
            category=pattern.category,
            text=m.group(pattern.group),
            start=start,
            end=end,
            severity=pattern.severity,
        ))
        pos = max(m.end(), m.start() + 1)
    return matches


def scan(text: str, patterns: Iterable[PIIPattern]) -> list[Match]:
    """Run every pattern over ``text``.  Pure; safe to call concurrently."""
    if not text:
        return []
    protected = placeholder_spans(text)
    matches: list[Match] = []
    for pattern in patterns:
        matches.extend(scan_pattern(text, pattern, protected=protected))
    return matches


def resolve_overlaps(
    matches: Iterable[Match],
    order: dict[Category, int] | None = None,
) -> list[Match]:
    """Greedy sweep: earliest start, then longest span, then registry order."""
    rank = order if order is not None else registry_order(list_patterns())
    ranked = sorted(
        matches,
        key=lambda m: (m.start, -m.length, rank.get(m.category, len(rank))),
    )
    taken: list[Match] = []
    last_end = -1
    for m in ranked:
        # Sorted by start, so only the last accepted span can intersect
        if m.start >= last_end:
            taken.append(m)
            last_end = m.end
    return taken


def propagate_occurrences(
    text: str,
    spans: Sequence[Match],
    *,
    protected: Sequence[tuple[int, int]] = (),
) -> list[Match]:
    """Add every other occurrence of an accepted value as a span of its own.

    "Mr. Smith ... Smith said" must not leave the second "Smith" behind.
    An occurrence must stand on token boundaries ("Li" never matches inside
    "Linda", "555-1234" never inside "555-12345").  Occurrences that touch an
    existing span or a protected region are skipped; longer values are
    placed first.
    """
    firsts: dict[str, Match] = {}
    for m in spans:
        firsts.setdefault(m.text, m)

    taken: list[tuple[int, int]] = [(m.start, m.end) for m in spans]
    blocked = list(protected)
    extra: list[Match] = []
    for value, first in sorted(firsts.items(), key=lambda kv: (-len(kv[0]), kv[1].start)):
        i = text.find(value)
        while i != -1:
            j = i + len(value)
            if (
                not _mid_token(text, i)
                and not _mid_token(text, j)
                and not _overlaps(i, j, taken)
                and not _overlaps(i, j, blocked)
            ):
                extra.append(Match(
                    category=first.category,
                    text=value,
                    start=i,
                    end=j,
                    severity=first.severity,
                ))
                taken.append((i, j))
                i = text.find(value, j)
            else:
                i = text.find(value, i + 1)
    if not extra:
        return list(spans)
    return sorted([*spans, *extra], key=lambda m: m.start)
