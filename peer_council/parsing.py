"""Turn a ranker's free-text evaluation into a structured ranking.

Everything here is pure and never raises on malformed input. The parse is a
tiered fallback: the stricter the format a model followed, the earlier tier
that picks it up.

    1. ``FINAL RANKING:`` section, numbered lines with a confidence tag
    2. ``FINAL RANKING:`` section, numbered lines without a confidence tag
    3. ``FINAL RANKING:`` section, any ``Response X`` mention
    4. the whole text, any ``Response X`` mention

Labels are returned as bare letters ("A", "B", ...), in textual order. The
leading number on a line is ignored; position in the list is the rank.
"""

import re

from peer_council.models import MEDIUM

FINAL_RANKING_MARKER = "FINAL RANKING:"

_NUMBERED_WITH_CONFIDENCE = re.compile(
    r"\d+\.\s*Response ([A-Z])\s*(\()?(HIGH|MEDIUM|LOW)(\))?",
    re.IGNORECASE,
)
_NUMBERED = re.compile(r"\d+\.\s*Response ([A-Z])")
_ANY_LABEL = re.compile(r"Response ([A-Z])")

CRITERIA_KEYWORDS = (
    "accuracy", "completeness", "clarity", "relevance", "depth",
    "detail", "precision", "coherence", "creativity", "practicality",
    "technical", "understandable", "concise", "thorough",
)
_EXPLICIT_CRITERIA = re.compile(
    r"(?:criteria|criterion|evaluat(?:ing|ed)|consider(?:ing|ed))[:\s]+([^.]+)",
    re.IGNORECASE,
)


def _all_labels(text: str) -> tuple[list[str], dict[str, str]]:
    order = _ANY_LABEL.findall(text)
    return order, {label: MEDIUM for label in order}


def parse_ranking_with_confidence(text: str) -> tuple[list[str], dict[str, str]]:
    """Parse the ranked order and per-label confidence out of ``text``.

    Duplicates are kept; for a repeated label the last confidence wins.
    Labels without an explicit confidence default to MEDIUM.
    """
    if FINAL_RANKING_MARKER in text:
        section = text.split(FINAL_RANKING_MARKER)[1]

        matches = list(_NUMBERED_WITH_CONFIDENCE.finditer(section))
        if matches:
            order: list[str] = []
            confidence: dict[str, str] = {}
            for m in matches:
                label = m.group(1).upper()
                order.append(label)
                # The tag only counts when it is parenthesised
                if m.group(2) and m.group(4):
                    confidence[label] = m.group(3).upper()
                else:
                    confidence[label] = MEDIUM
            return order, confidence

        order = _NUMBERED.findall(section)
        if order:
            return order, {label: MEDIUM for label in order}

        order, confidence = _all_labels(section)
        if order:
            return order, confidence

    return _all_labels(text)


def parse_ranking(text: str) -> list[str]:
    """Return just the ranked order from ``text``."""
    order, _ = parse_ranking_with_confidence(text)
    return order


def extract_ranking_criteria(text: str) -> list[str] | None:
    """Return evaluation criteria keywords mentioned in ``text``, or None."""
    lower_text = text.lower()
    mentioned = [kw for kw in CRITERIA_KEYWORDS if kw in lower_text]

    for match in _EXPLICIT_CRITERIA.finditer(text):
        criteria_text = match.group(1).lower()
        for kw in CRITERIA_KEYWORDS:
            if kw in criteria_text and kw not in mentioned:
                mentioned.append(kw)

    return mentioned or None


def validate_ranking(order: list[str], expected_count: int) -> bool:
    """A ranking is usable when it covers every candidate exactly once."""
    if not order:
        return False
    if len(order) < expected_count:
        return False
    return len(set(order)) == len(order)
