"""Typo-tolerant product text search with relevance scoring."""

from collections.abc import Iterable, Sequence
from difflib import SequenceMatcher

from storefront_core.models.product import Product

# Per-token weights
NAME_CONTAINS = 40
TAGS_CONTAIN = 20
DESCRIPTION_CONTAINS = 10
MATERIAL_CONTAINS = 8
COLOR_CONTAINS = 8
CATEGORY_CONTAINS = 12
NAME_PREFIX = 12
TAGS_PREFIX = 6

# Near-miss matching against individual name words
TYPO_WEIGHT = 25
TYPO_MIN_RATIO = 0.8
TYPO_MIN_TOKEN_LENGTH = 3

# Badge boosts, only for products that matched something
NEW_BOOST = 6
BEST_SELLER_BOOST = 8


def tokenize(query: str) -> list[str]:
    """Lower-case whitespace tokens of a query."""
    return query.strip().lower().split()


def _typo_score(token: str, words: Iterable[str]) -> int:
    if len(token) < TYPO_MIN_TOKEN_LENGTH:
        return 0
    best = 0.0
    for word in words:
        ratio = SequenceMatcher(None, token, word).ratio()
        if ratio > best:
            best = ratio
    if best < TYPO_MIN_RATIO:
        return 0
    return round(TYPO_WEIGHT * best)


def score(product: Product, query: str) -> int:
    """
    Relevance of a product for a free-text query (0 = no match).

    Each token scores against name, tags, description, material, color and
    category. A token with no substring hit anywhere can still score through
    a near-miss against a word of the product name ("trensh" -> "trench").
    """
    tokens = tokenize(query)
    if not tokens:
        return 0

    name = product.name.lower()
    name_words = name.split()
    tags = " ".join(product.tags).lower()
    description = (product.description or "").lower()
    material = (product.material or "").lower()
    color = (product.color or "").lower()
    category = (product.category or "").lower()
    subcategory = (product.subcategory or "").lower()

    total = 0
    for token in tokens:
        token_score = 0
        if token in name:
            token_score += NAME_CONTAINS
        if token in tags:
            token_score += TAGS_CONTAIN
        if token in description:
            token_score += DESCRIPTION_CONTAINS
        if token in material:
            token_score += MATERIAL_CONTAINS
        if token in color:
            token_score += COLOR_CONTAINS
        if token in category or token in subcategory:
            token_score += CATEGORY_CONTAINS
        if name.startswith(token):
            token_score += NAME_PREFIX
        if tags.startswith(token):
            token_score += TAGS_PREFIX
        if token_score == 0:
            token_score = _typo_score(token, name_words)
        total += token_score

    if total == 0:
        return 0
    if product.is_new:
        total += NEW_BOOST
    if product.is_best_seller:
        total += BEST_SELLER_BOOST
    return total


def search(products: Sequence[Product], query: str) -> list[tuple[Product, int]]:
    """
    Score products against a query and keep the matches.

    Results are ordered by score, highest first; equal scores keep input
    order. A blank query matches everything with score 0.
    """
    needle = query.strip().lower()
    if not needle:
        return [(product, 0) for product in products]

    scored = [(product, score(product, needle)) for product in products]
    matches = [(product, value) for product, value in scored if value > 0]
    return sorted(matches, key=lambda pair: pair[1], reverse=True)
