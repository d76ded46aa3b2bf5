"""
Grapheme cluster handling.

Text is stored and mutated as extended grapheme clusters so that combining
marks, emoji ZWJ sequences and flags are typed and deleted as one unit.
"""

from typing import Iterable, List, Optional

import regex

_CLUSTER = regex.compile(r"\X")


def segment_graphemes(text: str) -> List[str]:
    """Split ``text`` into extended grapheme clusters."""
    return _CLUSTER.findall(text)


def grapheme_length(text: str) -> int:
    """Number of user-perceived characters in ``text``."""
    return len(segment_graphemes(text))


class GraphemeBuffer:
    """The visible text of a typewriter, one cluster per entry.

    Only whole clusters are ever appended or removed, so the serialized
    text can never end in half of a cluster.
    """

    def __init__(self, clusters: Optional[Iterable[str]] = None):
        self._clusters: List[str] = list(clusters or [])

    def append(self, cluster: str) -> None:
        self._clusters.append(cluster)

    def extend(self, clusters: Iterable[str]) -> None:
        self._clusters.extend(clusters)

    def remove_last(self) -> Optional[str]:
        """Remove and return the last cluster, or ``None`` when empty."""
        if not self._clusters:
            return None
        return self._clusters.pop()

    def clear(self) -> None:
        self._clusters.clear()

    @property
    def clusters(self) -> List[str]:
        return list(self._clusters)

    @property
    def text(self) -> str:
        return "".join(self._clusters)

    def __len__(self) -> int:
        return len(self._clusters)

    def __bool__(self) -> bool:
        return bool(self._clusters)

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"GraphemeBuffer({self.text!r})"
