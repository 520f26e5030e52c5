"""Lexical similarity between specification texts."""

from __future__ import annotations

import re

STRUCTURE_PATTERNS = [
    re.compile(r"as a .+? i want", re.IGNORECASE),
    re.compile(r"given .+? when .+? then", re.IGNORECASE),
    re.compile(r"should .+", re.IGNORECASE),
    re.compile(r"must .+", re.IGNORECASE),
    re.compile(r"acceptance criteria", re.IGNORECASE),
    re.compile(r"user story", re.IGNORECASE),
]

WORD_WEIGHT = 0.6
LENGTH_WEIGHT = 0.2
STRUCTURE_WEIGHT = 0.2


def word_similarity(text1: str, text2: str) -> float:
    """Jaccard index over lowercase whitespace-separated words."""
    words1 = set(re.split(r"\s+", text1.lower()))
    words2 = set(re.split(r"\s+", text2.lower()))
    union = words1 | words2
    if not union:
        return 0.0
    return len(words1 & words2) / len(union)


def length_similarity(text1: str, text2: str) -> float:
    longest = max(len(text1), len(text2))
    if longest == 0:
        return 1.0
    return min(len(text1), len(text2)) / longest


def structure_similarity(text1: str, text2: str) -> float:
    """Share of structural markers that are present in both or absent in both."""
    matches = sum(
        1 for pattern in STRUCTURE_PATTERNS
        if bool(pattern.search(text1)) == bool(pattern.search(text2))
    )
    return matches / len(STRUCTURE_PATTERNS)


def calculate_similarity(text1: str, text2: str) -> float:
    return (
        word_similarity(text1, text2) * WORD_WEIGHT
        + length_similarity(text1, text2) * LENGTH_WEIGHT
        + structure_similarity(text1, text2) * STRUCTURE_WEIGHT
    )


def merge_specs(existing_spec: str, new_spec: str) -> str:
    """Combine two specs, keeping the longer one when either contains the other."""
    if new_spec in existing_spec or existing_spec in new_spec:
        return existing_spec if len(existing_spec) > len(new_spec) else new_spec
    return f"{existing_spec}\n\n--- Additional Requirements ---\n{new_spec}"
