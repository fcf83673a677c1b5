"""Similarity primitives shared by the scoring signals.

Text similarity is Jaccard over lowercase alphanumeric word tokens. Image
similarity compares the average RGB color of two images by Euclidean distance
and their 64-bit average hashes by Hamming distance. Every similarity is
normalized to the 0..1 range.
"""

import re
from typing import AbstractSet, FrozenSet, Optional

import numpy as np

from src.recommender.models import RGBColor

# sqrt(255**2 * 3), rounded the same way the storefront always has
MAX_COLOR_DISTANCE = 441.0
HASH_BITS = 64
BITS_PER_HEX_CHAR = 4

_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")
_WHITESPACE_RE = re.compile(r"\s+")


def tokenize(text: Optional[str]) -> FrozenSet[str]:
    """Split text into a set of lowercase alphanumeric tokens.

    Punctuation is replaced by spaces before splitting, so "hand-made" yields
    {"hand", "made"}.
    """
    if not text:
        return frozenset()
    cleaned = _NON_ALNUM_RE.sub(" ", text.lower())
    return frozenset(token for token in cleaned.split() if token)


def jaccard(a: AbstractSet[str], b: AbstractSet[str]) -> float:
    """Size of the intersection divided by the size of the union.

    Two empty sets have similarity 0.
    """
    intersection = len(a & b)
    union = len(a) + len(b) - intersection
    if union == 0:
        return 0.0
    return intersection / union


def normalize_title(title: Optional[str]) -> str:
    """Lowercase, collapse internal whitespace and trim."""
    return _WHITESPACE_RE.sub(" ", (title or "").lower()).strip()


def color_distance(a: RGBColor, b: RGBColor) -> float:
    """Euclidean distance between two RGB triples."""
    diff = np.array([a.r - b.r, a.g - b.g, a.b - b.b], dtype=np.float64)
    return float(np.linalg.norm(diff))


def color_similarity(a: RGBColor, b: RGBColor) -> float:
    return max(0.0, 1.0 - color_distance(a, b) / MAX_COLOR_DISTANCE)


def hamming_distance_hex(a: str, b: str) -> int:
    """Count differing bits between two hex-encoded bit strings.

    Characters are compared pairwise from the left; each extra character in
    the longer string counts as four differing bits.

    Raises:
        ValueError: If either string contains a non-hex character.
    """
    distance = 0
    for char_a, char_b in zip(a, b):
        distance += bin(int(char_a, 16) ^ int(char_b, 16)).count("1")
    distance += abs(len(a) - len(b)) * BITS_PER_HEX_CHAR
    return distance


def hash_similarity(a: str, b: str) -> float:
    return max(0.0, 1.0 - hamming_distance_hex(a, b) / HASH_BITS)
