"""
Pattern helpers shared by the detectors.

Heuristics that separate real secrets from random-looking noise (hashes,
UUIDs, lowercase identifiers), plus line/context extraction around a match.
"""

import math
import string
from collections import Counter
from typing import Tuple

HASH_LENGTHS = (32, 40, 64)  # MD5, SHA1, SHA256
HEX_DIGITS = set(string.hexdigits)


def calculate_entropy(value: str) -> float:
    """Shannon entropy in bits per character"""
    if not value:
        return 0.0

    length = len(value)
    entropy = 0.0
    for count in Counter(value).values():
        p = count / length
        entropy -= p * math.log2(p)
    return entropy


def has_min_entropy(value: str, min_entropy: float) -> bool:
    return calculate_entropy(value) >= min_entropy


def has_mixed_case(value: str) -> bool:
    return any(c.isupper() for c in value) and any(c.islower() for c in value)


def has_digits(value: str) -> bool:
    return any(c in string.digits for c in value)


def looks_like_hash(value: str) -> bool:
    """All-hex strings of a common digest length"""
    return len(value) in HASH_LENGTHS and all(c in HEX_DIGITS for c in value)


def get_line_context(content: str, position: int, context_lines: int = 2) -> Tuple[int, str]:
    """
    Locate a match offset within its content.

    Args:
        content: Full text that was searched
        position: Character offset of the match start
        context_lines: Lines to include on each side of the match line

    Returns:
        (1-based line number, surrounding lines joined with newlines)
    """
    line_index = content.count("\n", 0, position)
    lines = content.split("\n")

    start = max(0, line_index - context_lines)
    end = min(len(lines), line_index + context_lines + 1)

    return line_index + 1, "\n".join(lines[start:end])
