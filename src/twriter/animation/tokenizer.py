"""
Text tokenizer.

Turns a raw string into typed and paused segments. Punctuation at the end
of a word decides how long the typewriter rests before continuing, and a
backslash starts a new "page": the text so far is cleared after a pause
to read.
"""

import re
from typing import List

from ..core.types import ClearText, Command, Pause, TypeText

LINE_BREAK = "\\"
EMDASH = "—"
ELLIPSIS = "…"

_WHITESPACE = re.compile(r"\s+")


class RestType:
    """Pause lengths in milliseconds."""
    COMMA = 500
    EMDASH = 1000
    ELLIPSIS = 2000
    SENTENCE = 2500
    PAUSE_TO_READ = 3500
    CLEAR = 500


def classify_word(word: str):
    """Return the rest after ``word``, or ``None`` if typing continues.

    Checked in a fixed order: comma, em-dash, ellipsis, sentence end.
    """
    if word.endswith(","):
        return RestType.COMMA
    if word.endswith(EMDASH):
        return RestType.EMDASH
    if word.endswith("...") or word.endswith(ELLIPSIS):
        return RestType.ELLIPSIS
    if word.endswith((".", "!", "?")):
        return RestType.SENTENCE
    return None


def tokenize_segment(segment: str) -> List[Command]:
    """Tokenize one page of text (no line-break markers)."""
    commands: List[Command] = []
    words = [word for word in _WHITESPACE.split(segment.strip()) if word]
    buffer = ""

    for word in words:
        rest = classify_word(word)
        if rest is None:
            buffer += word + " "
            continue
        commands.append(TypeText(buffer + word))
        commands.append(Pause(rest))
        # keep the space between clauses
        buffer = " "

    if buffer.strip():
        commands.append(TypeText(buffer.strip()))

    return commands


def tokenize(text: str) -> List[Command]:
    """Convert ``text`` into an ordered list of commands."""
    commands: List[Command] = []
    segments = text.split(LINE_BREAK)

    for index, segment in enumerate(segments):
        if index > 0:
            commands.append(ClearText())
            commands.append(Pause(RestType.CLEAR))

        commands.extend(tokenize_segment(segment))

        if index < len(segments) - 1:
            commands.append(Pause(RestType.PAUSE_TO_READ))

    return commands
