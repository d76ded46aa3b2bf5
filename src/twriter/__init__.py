"""
t-writer: typewriter text animation on an asyncio event loop.

Text is typed and deleted one grapheme cluster at a time with
punctuation-aware pauses and a blinking cursor, driven by a queue of
commands built with a fluent API.
"""

from .core import ConfigurationError, EventBus, EventType, TypewriterOptions
from .animation import RestType, Typewriter, tokenize
from .host import AsyncioHost, Host, VirtualHost
from .display import MemorySurface, Surface

__version__ = "1.0.0"

__all__ = [
    'ConfigurationError',
    'EventBus',
    'EventType',
    'TypewriterOptions',
    'RestType',
    'Typewriter',
    'tokenize',
    'AsyncioHost',
    'Host',
    'VirtualHost',
    'MemorySurface',
    'Surface',
]
