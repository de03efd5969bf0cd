"""Rendering of vault notes into Foundry page markup.

PandocRenderer turns a note's Markdown into HTML through Pandoc and builds
the link manifest consumed by the link resolution pass.
"""

from .errors import ConversionError
from .markdown_converter import PandocRenderer

__all__ = ['ConversionError', 'PandocRenderer']
