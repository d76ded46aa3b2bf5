"""
Display package: rendering surfaces for typewriters.

- surface: Element and the abstract Surface with transition signalling
- memory_surface: headless surface that records frames
- pygame_surface / window: pygame drawing and the window render loop

The pygame modules are imported lazily so headless use does not need a
display.
"""

from .surface import Element, Surface
from .memory_surface import Frame, MemorySurface
from .layout import wrap_for_typing

__all__ = [
    'Element',
    'Surface',
    'Frame',
    'MemorySurface',
    'wrap_for_typing',
]
