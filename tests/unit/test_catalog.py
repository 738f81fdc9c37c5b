"""
Unit Tests for Badge Catalog Loading
====================================

Test Coverage
-------------
- Document parsing: ordering, duplicates, invalid entries
- Static, file and HTTP sources
- Fallback to the default badge on any failure

Testing Strategy
----------------
- File source against tmp_path
- HTTP source against a mocked aiohttp session (no network)
"""

import json

import aiohttp
import pytest

from clicker.domain.models import DEFAULT_BADGE, Rarity
from clicker.modules.badge.catalog import (
    BadgeCatalog,
    FileCatalogSource,
    HttpCatalogSource,
    StaticCatalogSource,
    build_catalog_source,
    load_catalog,
    parse_catalog,
)
from clicker.modules.shared.exceptions import CatalogUnavailableError


def _mock_session(mocker, status=200, document=None):
    response = mocker.MagicMock()
    response.status = status
    response.json = mocker.AsyncMock(return_value=document)
    session = mocker.MagicMock()
    session.get.return_value.__aenter__.return_value = response
    return session


@pytest.mark.unit
class TestParseCatalog:

    def test_parse_keeps_order_and_rarity(self, catalog_document):
        catalog = parse_catalog(catalog_document)

        assert [badge.id for badge in catalog] == ["tripi", "tung", "free-rare", "legend", "saturno"]
        assert catalog.get("saturno").rarity is Rarity.GOD_TIER
        assert catalog.get("saturno").multiplier == 10
        assert not catalog.is_fallback

    def test_invalid_entries_skipped(self):
        document = {"badges": [{"id": "ok"}, {"name": "no id"}, {"id": "neg", "cost": -1}, 42]}

        catalog = parse_catalog(document)

        assert [badge.id for badge in catalog] == ["ok"]

    def test_duplicate_ids_keep_first(self):
        document = {"badges": [{"id": "a", "cost": 1}, {"id": "a", "cost": 2}]}

        catalog = parse_catalog(document)

        assert len(catalog) == 1
        assert catalog.get("a").cost == 1

    @pytest.mark.parametrize("document", [None, [], {"items": []}, {"badges": "nope"}])
    def test_malformed_document(self, document):
        with pytest.raises(CatalogUnavailableError):
            parse_catalog(document)

    def test_contains_and_first(self, catalog):
        assert "tung" in catalog
        assert "nope" not in catalog
        assert catalog.first().id == "tripi"
        assert BadgeCatalog().first() is None


@pytest.mark.unit
class TestLoadCatalog:

    async def test_static_source(self, catalog_document):
        catalog = await load_catalog(StaticCatalogSource(catalog_document))

        assert len(catalog) == 5

    async def test_file_source(self, tmp_path, catalog_document):
        path = tmp_path / "badges.json"
        path.write_text(json.dumps(catalog_document), encoding="utf-8")

        catalog = await load_catalog(FileCatalogSource(path))

        assert catalog.get("tung").cost == 500

    async def test_missing_file_falls_back(self, tmp_path):
        catalog = await load_catalog(FileCatalogSource(tmp_path / "missing.json"))

        assert catalog.is_fallback
        assert list(catalog) == [DEFAULT_BADGE]

    async def test_unparsable_file_falls_back(self, tmp_path):
        path = tmp_path / "badges.json"
        path.write_text("{not json", encoding="utf-8")

        catalog = await load_catalog(FileCatalogSource(path))

        assert catalog.is_fallback

    async def test_deeply_nested_file_falls_back(self, tmp_path):
        path = tmp_path / "badges.json"
        path.write_text("[" * 200_000, encoding="utf-8")

        with pytest.raises(CatalogUnavailableError):
            await FileCatalogSource(path).fetch()
        catalog = await load_catalog(FileCatalogSource(path))

        assert catalog.is_fallback
        assert list(catalog) == [DEFAULT_BADGE]

    async def test_deeply_nested_http_body_falls_back(self, mocker):
        session = _mock_session(mocker)
        session.get.return_value.__aenter__.return_value.json.side_effect = RecursionError("too deep")
        source = HttpCatalogSource("https://example.test/badges.json", session=session)

        with pytest.raises(CatalogUnavailableError):
            await source.fetch()
        assert (await load_catalog(source)).is_fallback

    async def test_unexpected_source_failure_falls_back(self, mocker):
        source = StaticCatalogSource(None, description="broken")
        mocker.patch.object(source, "fetch", side_effect=RuntimeError("boom"))

        catalog = await load_catalog(source)

        assert catalog.is_fallback

    async def test_empty_catalog_falls_back(self):
        catalog = await load_catalog(StaticCatalogSource({"badges": []}))

        assert catalog.is_fallback

    async def test_http_source(self, mocker, catalog_document):
        session = _mock_session(mocker, document=catalog_document)
        source = HttpCatalogSource("https://example.test/badges.json", session=session)

        catalog = await load_catalog(source)

        session.get.assert_called_once_with("https://example.test/badges.json")
        assert len(catalog) == 5

    async def test_http_error_status(self, mocker):
        source = HttpCatalogSource("https://example.test/badges.json", session=_mock_session(mocker, status=404))

        with pytest.raises(CatalogUnavailableError) as exc_info:
            await source.fetch()

        assert exc_info.value.reason == "HTTP 404"

    async def test_http_connection_failure_falls_back(self, mocker):
        session = mocker.MagicMock()
        session.get.side_effect = aiohttp.ClientConnectionError("refused")
        source = HttpCatalogSource("https://example.test/badges.json", session=session)

        catalog = await load_catalog(source)

        assert catalog.is_fallback


@pytest.mark.unit
class TestBuildCatalogSource:

    def test_url_wins(self, tmp_path):
        source = build_catalog_source("https://example.test/b.json", tmp_path / "b.json")

        assert isinstance(source, HttpCatalogSource)

    def test_path(self, tmp_path):
        assert isinstance(build_catalog_source("", tmp_path / "b.json"), FileCatalogSource)

    def test_neither(self):
        with pytest.raises(ValueError):
            build_catalog_source("", None)
