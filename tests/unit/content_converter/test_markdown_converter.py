"""Unit tests for content_converter.markdown_converter module."""

import subprocess
from unittest.mock import patch

import pytest
from bs4 import BeautifulSoup

from src.assets.extractor import content_hash
from src.content_converter.errors import ConversionError
from src.content_converter.markdown_converter import PandocRenderer
from src.vault.models import LocalDocument
from tests.fixtures.vault_fixtures import write_image, write_note
from tests.helpers.pandoc_stub import stub_pandoc


@pytest.fixture
def renderer(store):
    with stub_pandoc():
        yield PandocRenderer(store)


def anchors(markup):
    return BeautifulSoup(markup, "html.parser").find_all("a")


class TestPandocAvailability:
    """Test cases for the Pandoc dependency check."""

    def test_missing_pandoc_raises(self, store):
        """ConversionError is raised when pandoc is not on PATH."""
        with patch.object(PandocRenderer, "_pandoc_installed", return_value=False):
            with pytest.raises(ConversionError) as exc_info:
                PandocRenderer(store)
        assert "Pandoc not found" in str(exc_info.value)

    @patch("src.content_converter.markdown_converter.subprocess.run")
    def test_pandoc_failure_raises(self, mock_run, store):
        """A failing pandoc run becomes ConversionError naming the note."""
        mock_run.side_effect = [
            subprocess.CompletedProcess(["which"], 0),
            subprocess.CalledProcessError(1, "pandoc", stderr="boom"),
        ]
        renderer = PandocRenderer(store)

        with pytest.raises(ConversionError) as exc_info:
            renderer._run_pandoc("# x", "a.md")

        assert exc_info.value.document_path == "a.md"
        assert "boom" in str(exc_info.value)

    @patch("src.content_converter.markdown_converter.subprocess.run")
    def test_pandoc_timeout_raises(self, mock_run, store):
        """A pandoc timeout becomes ConversionError."""
        mock_run.side_effect = [
            subprocess.CompletedProcess(["which"], 0),
            subprocess.TimeoutExpired("pandoc", 10),
        ]
        renderer = PandocRenderer(store)

        with pytest.raises(ConversionError):
            renderer._run_pandoc("# x", "a.md")


class TestObsidianSyntax:
    """Test cases for wikilink and embed rewriting."""

    def test_wikilink_to_existing_note(self, vault_dir, store, renderer):
        """A wikilink becomes a Markdown link to the note's vault path."""
        write_note(vault_dir, "World/Alice Smith.md", "x")
        assert renderer.normalize_obsidian_syntax("See [[Alice Smith]].", "a.md") == \
            "See [Alice Smith](World/Alice%20Smith.md)."

    def test_wikilink_with_alias_and_heading(self, vault_dir, store, renderer):
        """Alias is the display text; the heading becomes the fragment."""
        write_note(vault_dir, "Alice.md", "x")
        assert renderer.normalize_obsidian_syntax("[[Alice#Early Life|her past]]", "a.md") == \
            "[her past](Alice.md#Early%20Life)"

    def test_unresolved_wikilink_is_plain_text(self, renderer):
        """A wikilink to a missing note renders as its display text."""
        assert renderer.normalize_obsidian_syntax("[[Nobody|someone]] here", "a.md") == "someone here"

    def test_self_anchor(self, renderer):
        """[[#Heading]] links inside the same page."""
        assert renderer.normalize_obsidian_syntax("[[#Loot]]", "a.md") == "[Loot](#Loot)"

    def test_image_embed_with_size(self, vault_dir, store, renderer):
        """Image embeds become images; a size alias is dropped."""
        write_image(vault_dir, "img/map one.png")
        assert renderer.normalize_obsidian_syntax("![[map one.png|300]]", "a.md") == \
            "![](img/map%20one.png)"

    def test_fenced_code_untouched(self, renderer):
        """Wikilinks inside fenced code blocks are kept verbatim."""
        markdown = "```\n[[Alice]]\n```\n"
        assert renderer.normalize_obsidian_syntax(markdown, "a.md") == markdown


class TestRender:
    """Test cases for PandocRenderer.render and the link manifest."""

    def test_render_builds_manifest(self, vault_dir, store, renderer):
        """Internal links get ids, rewritten hrefs and manifest entries."""
        write_note(vault_dir, "World/Alice.md", "x", {"UUID": "alice-id"})
        path = write_note(vault_dir, "S1.md", "Met [[Alice]] and [[Alice#Family|kin]].\n\n[web](https://x.test)")
        document = store.load("S1.md")

        rendered = renderer.render(document)

        assert [l.link_id for l in rendered.links] == ["mtf-1", "mtf-2"]
        first, second = rendered.links
        assert first.link_path == "World/Alice.md"
        assert first.destination_uuid == "alice-id"
        assert first.text == "Alice"
        assert first.is_anchor is False
        assert second.anchor == "#Family"
        assert second.is_anchor is True
        hrefs = [(a.get("data-link-id"), a["href"]) for a in anchors(rendered.markup)]
        assert hrefs == [
            ("mtf-1", "World/Alice.md"),
            ("mtf-2", "World/Alice.md#Family"),
            (None, "https://x.test"),
        ]
        assert rendered.content_hash == content_hash(path.read_bytes())
        assert rendered.title == "S1"

    def test_self_anchor_record(self, vault_dir, store, renderer):
        """A same-page anchor is recorded without a link path."""
        write_note(vault_dir, "S1.md", "[[#Loot]]\n\n# Loot\n")

        rendered = renderer.render(store.load("S1.md"))

        link = rendered.links[0]
        assert link.link_path == ""
        assert link.is_anchor is True
        assert link.anchor == "#Loot"

    def test_links_to_other_files_are_ignored(self, vault_dir, store, renderer):
        """Links to non-note files are not part of the manifest."""
        write_image(vault_dir, "docs/sheet.pdf", b"%PDF")
        write_note(vault_dir, "S1.md", "[sheet](docs/sheet.pdf)")

        assert renderer.render(store.load("S1.md")).links == []

    def test_footnote_links_are_skipped(self, store, renderer):
        """Footnote references produced by Pandoc are not internal links."""
        html = '<p>x<a href="#fn1" class="footnote-ref" id="fnref1">1</a></p>'
        markup, links = renderer.collect_links(html, LocalDocument(path="S1.md", title="S1", body=""))
        assert links == []
        assert markup == html

    def test_remembered_identity_is_used(self, vault_dir, store, renderer):
        """An identity issued later in the batch is used for new links."""
        write_note(vault_dir, "Alice.md", "x")
        renderer.remember_identity("Alice.md", "issued-id")
        write_note(vault_dir, "S1.md", "[[Alice]]")

        rendered = renderer.render(store.load("S1.md"))

        assert rendered.links[0].destination_uuid == "issued-id"

    def test_empty_note(self, vault_dir, store, renderer):
        """An empty body renders to empty markup."""
        write_note(vault_dir, "empty.md", "", {"UUID": "x"})
        rendered = renderer.render(store.load("empty.md"))
        assert rendered.markup == ""
        assert rendered.links == []
