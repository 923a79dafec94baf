"""Tests for metadata JSON Schema validation and schema loading."""

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from app.provenance import schema as schema_module
from app.provenance.exceptions import ConfigurationError, FetchError
from app.provenance.schema import (
    get_metadata_schema,
    load_metadata_schema,
    validate_metadata,
)

REPO_SCHEMA = Path(__file__).resolve().parents[1] / "offchain" / "schema" / "metadata.schema.json"

SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["contentHash", "createdAt", "signatures"],
    "properties": {
        "contentHash": {"type": "string", "pattern": "^0x[0-9a-f]{64}$"},
        "createdAt": {"type": "string"},
        "signatures": {
            "type": "array",
            "items": {"type": "object", "required": ["sig"]},
        },
    },
}

VALID = {
    "contentHash": "0x" + "ab" * 32,
    "createdAt": "2024-05-01T12:00:00Z",
    "signatures": [{"sig": "c2ln"}],
}


class TestValidateMetadata:

    def test_valid_document(self):
        assert validate_metadata(VALID, SCHEMA) == []

    def test_missing_required_field(self):
        doc = {k: v for k, v in VALID.items() if k != "createdAt"}
        violations = validate_metadata(doc, SCHEMA)
        assert len(violations) == 1
        assert violations[0].path == ""
        assert violations[0].validator == "required"
        assert "createdAt" in violations[0].message

    def test_collects_every_violation_with_pointers(self):
        doc = dict(VALID, contentHash="nothex", signatures=[{"pub": "x"}, 5])
        violations = validate_metadata(doc, SCHEMA)
        paths = [v.path for v in violations]
        assert paths == ["/contentHash", "/signatures/0", "/signatures/1"]

    def test_result_is_deterministic(self):
        doc = dict(VALID, contentHash=1, createdAt=2, signatures="x")
        assert validate_metadata(doc, SCHEMA) == validate_metadata(doc, SCHEMA)

    def test_repository_schema_accepts_signed_metadata(self):
        schema_doc = json.loads(REPO_SCHEMA.read_text())
        doc = dict(VALID, authorDID="did:web:author.test",
                   verifiableCredential={"uri": "https://vc.test/1"})
        assert validate_metadata(doc, schema_doc) == []


class TestLoadMetadataSchema:

    @pytest.mark.asyncio
    async def test_missing_file_skips(self, tmp_path):
        assert await load_metadata_schema(str(tmp_path / "none.json")) is None

    @pytest.mark.asyncio
    async def test_empty_source_skips(self):
        assert await load_metadata_schema("") is None

    @pytest.mark.asyncio
    async def test_loads_file(self, tmp_path):
        path = tmp_path / "metadata.schema.json"
        path.write_text(json.dumps(SCHEMA))
        assert await load_metadata_schema(str(path)) == SCHEMA

    @pytest.mark.asyncio
    async def test_unparseable_file_raises(self, tmp_path):
        path = tmp_path / "metadata.schema.json"
        path.write_text("{")
        with pytest.raises(ConfigurationError):
            await load_metadata_schema(str(path))

    @pytest.mark.asyncio
    async def test_invalid_schema_raises(self, tmp_path):
        path = tmp_path / "metadata.schema.json"
        path.write_text(json.dumps({"type": "no-such-type"}))
        with pytest.raises(ConfigurationError, match="Invalid metadata schema"):
            await load_metadata_schema(str(path))

    @pytest.mark.asyncio
    async def test_url_source_uses_fetcher(self):
        fetcher = AsyncMock()
        fetcher.fetch_json.return_value = SCHEMA
        result = await load_metadata_schema("https://schema.test/m.json", fetcher=fetcher)
        assert result == SCHEMA
        fetcher.fetch_json.assert_awaited_once_with("https://schema.test/m.json")

    @pytest.mark.asyncio
    async def test_unreachable_url_skips(self):
        fetcher = AsyncMock()
        fetcher.fetch_json.side_effect = FetchError("Fetch https://schema.test/m.json -> HTTP 503")
        assert await load_metadata_schema("https://schema.test/m.json", fetcher=fetcher) is None


class TestMetadataSchemaSingleton:

    @pytest.mark.asyncio
    async def test_absent_schema_is_cached(self, tmp_path, monkeypatch):
        monkeypatch.setattr(schema_module, "METADATA_SCHEMA_SOURCE", str(tmp_path / "none.json"))
        assert await get_metadata_schema() is None

        (tmp_path / "none.json").write_text(json.dumps(SCHEMA))
        assert await get_metadata_schema() is None

    @pytest.mark.asyncio
    async def test_unreachable_url_is_retried(self, monkeypatch):
        monkeypatch.setattr(schema_module, "METADATA_SCHEMA_SOURCE", "https://schema.test/m.json")
        fetcher = AsyncMock()
        fetcher.fetch_json.side_effect = [FetchError("Fetch https://schema.test/m.json -> HTTP 503"), SCHEMA]

        with patch("app.provenance.schema.ResourceFetcher", return_value=fetcher):
            assert await get_metadata_schema() is None
            assert await get_metadata_schema() == SCHEMA
            assert await get_metadata_schema() == SCHEMA

        assert fetcher.fetch_json.await_count == 2

    @pytest.mark.asyncio
    async def test_loaded_schema_is_cached(self, tmp_path, monkeypatch):
        path = tmp_path / "metadata.schema.json"
        path.write_text(json.dumps(SCHEMA))
        monkeypatch.setattr(schema_module, "METADATA_SCHEMA_SOURCE", str(path))
        assert await get_metadata_schema() == SCHEMA

        path.unlink()
        assert await get_metadata_schema() == SCHEMA
