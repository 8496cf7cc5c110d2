from __future__ import annotations

import re

# [3] or grouped forms like [1, 2] / [1][2]; markdown links [text](url) never match
CITATION_PATTERN = re.compile(r"\[(\d+(?:\s*,\s*\d+)*)\](?!\()")


def citation_indices(answer: str) -> list[int]:
    """All citation numbers in the order they appear, duplicates included."""
    indices: list[int] = []
    for match in CITATION_PATTERN.finditer(answer or ""):
        indices.extend(int(part) for part in match.group(1).split(","))
    return indices


def out_of_range_citations(answer: str, source_count: int) -> list[int]:
    """Distinct citation numbers that do not point at one of `source_count` sources."""
    seen: list[int] = []
    for index in citation_indices(answer):
        if not 1 <= index <= source_count and index not in seen:
            seen.append(index)
    return seen
