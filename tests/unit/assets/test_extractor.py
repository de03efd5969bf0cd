"""Unit tests for assets.extractor module."""

import logging

import pytest
import xxhash

from src.assets.extractor import (
    AssetCollector,
    content_hash,
    derive_remote_name,
    is_local_source,
)
from tests.fixtures.vault_fixtures import PNG_BYTES, write_image


class TestContentAddressing:
    """Test cases for hashing and name derivation."""

    def test_hash_is_seeded_xxh64(self):
        """content_hash uses xxh64 with the fixed seed."""
        digest = content_hash(b"abc")
        assert digest == xxhash.xxh64(b"abc", seed=987654321).hexdigest()
        assert len(digest) == 16
        assert digest != xxhash.xxh64(b"abc").hexdigest()

    def test_derive_remote_name(self):
        """The digest is inserted between stem and extension."""
        assert derive_remote_name("img/map.png", "0123456789abcdef") == "map_0123456789abcdef.png"
        assert derive_remote_name("noext", "ff") == "noext_ff"

    @pytest.mark.parametrize("src, expected", [
        ("img/map.png", True),
        ("/img/map.png", True),
        ("app://local/home/u/vault/img/map.png", True),
        ("file:///home/u/vault/img/map.png", True),
        ("https://example.com/map.png", False),
        ("//cdn.example.com/map.png", False),
        ("data:image/png;base64,AAAA", False),
        ("", False),
        (None, False),
    ])
    def test_is_local_source(self, src, expected):
        """Only sources pointing into the vault are local."""
        assert is_local_source(src) is expected


class TestAssetCollector:
    """Test cases for AssetCollector.collect."""

    def test_rewrites_local_image(self, vault_dir, store):
        """A local image is hashed and its src replaced by the upload path."""
        write_image(vault_dir, "Sessions/img/map.png")
        markup = '<p><img alt="Map" src="img/map.png"/></p>'

        rewritten, records = AssetCollector(store).collect(markup, "Sessions/S1.md", "/assets/pictures/")

        digest = content_hash(PNG_BYTES)
        assert len(records) == 1
        record = records[0]
        assert record.local_path == "Sessions/img/map.png"
        assert record.upload_path == f"assets/pictures/map_{digest}.png"
        assert f'src="assets/pictures/map_{digest}.png"' in rewritten

    def test_percent_encoded_source(self, vault_dir, store):
        """Percent-encoded sources are decoded before lookup."""
        write_image(vault_dir, "img/world map.png")

        _, records = AssetCollector(store).collect(
            '<img src="img/world%20map.png"/>', "a.md", "assets"
        )

        assert records[0].local_path == "img/world map.png"

    def test_absolute_app_source(self, vault_dir, store):
        """app:// sources pointing inside the vault root are resolved."""
        write_image(vault_dir, "img/map.png")
        src = f"app://local{vault_dir.resolve().as_posix()}/img/map.png?1700000000"

        _, records = AssetCollector(store).collect(f'<img src="{src}"/>', "a.md", "assets")

        assert records[0].local_path == "img/map.png"

    def test_same_bytes_share_upload_path(self, vault_dir, store):
        """Two notes embedding the same file get the same upload path."""
        write_image(vault_dir, "img/map.png")
        collector = AssetCollector(store)

        _, first = collector.collect('<img src="img/map.png"/>', "a.md", "assets")
        _, second = collector.collect('<img src="/img/map.png"/>', "Sub/b.md", "assets")

        assert first[0].upload_path == second[0].upload_path

    def test_remote_and_missing_images_are_left_alone(self, store, caplog):
        """Web images are ignored; missing images are logged and kept."""
        markup = '<img src="https://x.test/a.png"/><img src="img/none.png"/>'

        with caplog.at_level(logging.WARNING):
            rewritten, records = AssetCollector(store).collect(markup, "a.md", "assets")

        assert records == []
        assert rewritten == markup
        assert "img/none.png" in caplog.text

    def test_non_image_embed_is_skipped(self, vault_dir, store):
        """Embedded files that are not images produce no record."""
        write_image(vault_dir, "docs/sheet.pdf", b"%PDF")
        _, records = AssetCollector(store).collect('<img src="docs/sheet.pdf"/>', "a.md", "assets")
        assert records == []
