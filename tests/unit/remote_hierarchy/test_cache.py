"""Unit tests for remote_hierarchy.cache module."""

import logging

from src.models.page_provenance import PageProvenance
from src.remote_hierarchy.cache import HierarchyCache
from src.remote_hierarchy.models import RemoteCollection, RemotePage


def build_world(relay):
    """Exports/Sessions/Table1 with one exported page, plus a root journal."""
    exports = relay.add_folder("Exports")
    sessions = relay.add_folder("Sessions", exports)
    table = relay.add_journal("Table1", sessions)
    page_id = relay.add_page(table, "Session 1", "<p>x</p>", {"uuid": "u1", "filePath": "S1.md"})
    loose = relay.add_journal("Loose")
    return {"exports": exports, "sessions": sessions, "table": table,
            "page": page_id, "loose": loose}


class TestHierarchyCacheRefresh:
    """Test cases for HierarchyCache.refresh."""

    def test_refresh_indexes_by_id_and_path(self, fake_relay):
        """Folders, collections and pages are reachable by id and by path."""
        ids = build_world(fake_relay)
        fake_relay.select_client("client-1")
        cache = HierarchyCache(fake_relay)

        cache.refresh()

        assert cache.folder_by_path("Exports/Sessions").id == ids["sessions"]
        assert cache.folder_by_id(ids["exports"]).full_path == "Exports"
        assert cache.collection_by_path("Exports/Sessions/Table1").id == ids["table"]
        assert cache.collection_by_path("/Loose").id == ids["loose"]
        page = cache.page_by_path("Exports/Sessions/Table1.Session 1")
        assert page.id == ids["page"]
        assert cache.page_by_id(ids["page"]) is page
        assert page.provenance.source_uuid == "u1"

    def test_refresh_uses_two_round_trips(self, fake_relay):
        """Refresh runs exactly the folder and collection scripts."""
        build_world(fake_relay)
        HierarchyCache(fake_relay).refresh()
        assert fake_relay.operations() == ["get_folders", "get_collections"]

    def test_refresh_replaces_previous_state(self, fake_relay):
        """A second refresh does not keep entries that disappeared remotely."""
        ids = build_world(fake_relay)
        cache = HierarchyCache(fake_relay)
        cache.refresh()

        del fake_relay.journals[ids["loose"]]
        cache.refresh()

        assert cache.collection_by_path("/Loose") is None

    def test_failed_fetch_degrades_to_empty(self, fake_relay, caplog):
        """A relay failure leaves the affected table empty and logs a warning."""
        build_world(fake_relay)
        fake_relay.fail_on.add("get_collections")
        cache = HierarchyCache(fake_relay)

        with caplog.at_level(logging.WARNING):
            cache.refresh()

        assert cache.folder_by_path("Exports") is not None
        assert list(cache.collections()) == []
        assert "continuing with none" in caplog.text

    def test_lookup_of_empty_id_is_none(self, fake_relay):
        """Empty ids never match."""
        cache = HierarchyCache(fake_relay)
        assert cache.folder_by_id(None) is None
        assert cache.collection_by_id("") is None
        assert cache.page_by_id(None) is None


class TestHierarchyCacheInsertion:
    """Test cases for in-session insertion."""

    def test_add_page_replaces_stale_path(self, fake_relay):
        """A renamed page is reachable only under its new path."""
        cache = HierarchyCache(fake_relay)
        collection = RemoteCollection(id="J1", name="Table1", folder_id=None)
        cache.add_collection(collection)
        cache.add_page(RemotePage("P1", "Old", "J1", None, collection.page_path("Old")))

        cache.add_page(RemotePage("P1", "New", "J1", None, collection.page_path("New"),
                                  provenance=PageProvenance(source_uuid="u1")))

        assert cache.page_by_path("/Table1.Old") is None
        assert cache.page_by_path("/Table1.New").id == "P1"
        assert [p.name for p in collection.pages] == ["New"]
