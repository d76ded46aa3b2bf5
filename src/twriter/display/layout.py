"""
Line layout helpers shared by the animator and the pygame surface.
"""

from typing import List, Sequence

LINE_FEED = "\n"


def current_column(clusters: Sequence[str]) -> int:
    """Clusters after the last line feed."""
    column = 0
    for cluster in reversed(clusters):
        if cluster == LINE_FEED:
            break
        column += 1
    return column


def wrap_for_typing(existing: Sequence[str], incoming: Sequence[str], limit: int) -> List[str]:
    """Break ``incoming`` so no word starts on a line it cannot finish on.

    Breaks only replace a space with a line feed, so the number of clusters
    never changes and counted deletes stay exact. A single word longer than
    ``limit`` is left to overflow.

    Args:
        existing: Clusters already visible
        incoming: Clusters about to be typed
        limit: Maximum clusters per line; 0 disables wrapping
    """
    result = list(incoming)
    if limit <= 0:
        return result

    column = current_column(existing)
    for i, cluster in enumerate(result):
        if cluster == LINE_FEED:
            column = 0
            continue
        if cluster.isspace() and column > 0:
            end = i + 1
            while end < len(result) and not result[end].isspace():
                end += 1
            word_length = end - i - 1
            if word_length and column + 1 + word_length > limit:
                result[i] = LINE_FEED
                column = 0
                continue
        column += 1

    return result


def split_words(line: str) -> List[str]:
    """Split a line into words keeping their leading spaces attached."""
    words: List[str] = []
    current = ""
    for char in line:
        if char == " " and current.strip():
            words.append(current)
            current = ""
        current += char
    if current:
        words.append(current)
    return words
