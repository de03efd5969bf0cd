"""Minimal Markdown to HTML conversion standing in for the Pandoc binary.

Handles only what the tests feed it: paragraphs, ATX headings, images and
inline links.
"""

import re
from contextlib import contextmanager
from typing import Iterator
from unittest.mock import patch

from src.content_converter.markdown_converter import PandocRenderer

IMAGE_PATTERN = re.compile(r'!\[([^\]]*)\]\(([^)\s]+)\)')
LINK_PATTERN = re.compile(r'\[((?:\\.|[^\]])*)\]\(([^)\s]+)\)')
HEADING_PATTERN = re.compile(r'^(#{1,6})\s+(.*)$')


def _slug(text: str) -> str:
    return re.sub(r'\s+', '-', text.strip().lower())


def _inline(text: str) -> str:
    text = IMAGE_PATTERN.sub(r'<img src="\2" alt="\1" />', text)
    text = LINK_PATTERN.sub(lambda m: f'<a href="{m.group(2)}">{m.group(1).replace(chr(92), "")}</a>', text)
    return text


def markdown_to_html(markdown: str, document_path: str = "") -> str:
    blocks = []
    for block in re.split(r'\n\s*\n', markdown.strip()):
        heading = HEADING_PATTERN.match(block.strip())
        if heading:
            level = len(heading.group(1))
            title = heading.group(2)
            blocks.append(f'<h{level} id="{_slug(title)}">{_inline(title)}</h{level}>')
        elif block.strip():
            blocks.append(f'<p>{_inline(block.strip())}</p>')
    return "\n".join(blocks) + "\n"


@contextmanager
def stub_pandoc() -> Iterator[None]:
    """Let PandocRenderer run without the pandoc executable."""
    with patch.object(PandocRenderer, "_pandoc_installed", return_value=True), \
            patch.object(PandocRenderer, "_run_pandoc", side_effect=lambda md, path: markdown_to_html(md, path)):
        yield
