"""
Animation system for typewriters.

Provides the tokenizer that paces raw text, the grapheme-aware animator,
the cursor blink state machine and the Typewriter queue interpreter that
ties them together.
"""

from .graphemes import GraphemeBuffer, grapheme_length, segment_graphemes
from .tokenizer import RestType, classify_word, tokenize
from .animator import Animator
from .cursor import Cursor
from .typewriter import Typewriter

__all__ = [
    'GraphemeBuffer',
    'grapheme_length',
    'segment_graphemes',
    'RestType',
    'classify_word',
    'tokenize',
    'Animator',
    'Cursor',
    'Typewriter',
]
