"""Context snippet extraction for search results."""

import re

from tasklens.constants.search import SNIPPET_ELLIPSIS, SNIPPET_MAX_LENGTH


def _find_match(text: str, query: str) -> int:
    """Locate the query in the text, preferring its first word.

    Matching is case-insensitive and done on ``text`` itself, so the index
    is valid for slicing it even when lowercasing would change its length.

    Returns:
        Index of the match, or -1 if neither the first word nor the whole
        query occurs in the text.
    """
    words = query.split()
    candidates = [words[0], query] if words else []
    for needle in candidates:
        match = re.search(re.escape(needle), text, re.IGNORECASE)
        if match:
            return match.start()
    return -1


def get_context_snippet(text: str, query: str, max_length: int = SNIPPET_MAX_LENGTH) -> str:
    """Create a snippet of ``text`` positioned around the query.

    The window keeps ``max_length // 4`` characters before the match and
    extends ``len(query) + 3 * max_length // 4`` characters past its start.
    Ellipses mark text cut from either end.

    Args:
        text: Text to excerpt.
        query: Search query.
        max_length: Maximum snippet length in characters.

    Returns:
        The snippet, the whole text if it already fits, or "" for empty text.
    """
    if not text:
        return ""
    if len(text) <= max_length:
        return text

    query = query.strip()
    pos = _find_match(text, query)

    if pos == -1:
        return text[:max_length] + SNIPPET_ELLIPSIS

    start = max(0, pos - max_length // 4)
    end = min(len(text), pos + len(query) + (max_length * 3) // 4)

    snippet = text[start:end]
    if start > 0:
        snippet = SNIPPET_ELLIPSIS + snippet
    if end < len(text):
        snippet = snippet + SNIPPET_ELLIPSIS
    return snippet
