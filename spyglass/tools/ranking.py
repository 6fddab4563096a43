"""
Relevance ranking of result titles against a query (using 'rapidfuzz').

Both inputs are expected to be normalised with
spyglass.utils.helpers.normalise_string first.
"""

from rapidfuzz import fuzz

# Ratio above which an equal word count earns the exact-match bonus
EXACT_MATCH_THRESHOLD = 95


def ranking_score(normalised_query: str, normalised_title: str) -> int:
    """
    Token-set similarity with small adjustments.

    - +1 when the match is near-perfect and both have the same word count,
      so "foo bar" ranks "Foo Bar" above "Foo Bar Baz".
    - -1 when any query word is missing from the title, so "foo bar"
      ranks "Foo Bar" above "Foo".

    Returns:
        int score, roughly 0-101
    """
    if not normalised_query or not normalised_title:
        return 0

    score = int(round(fuzz.token_set_ratio(normalised_query, normalised_title)))

    query_words = normalised_query.split()
    title_words = set(normalised_title.split())

    if score > EXACT_MATCH_THRESHOLD and len(query_words) == len(title_words):
        score += 1

    if any(word not in title_words for word in query_words):
        score -= 1

    return score
