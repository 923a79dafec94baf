"""Metadata validation against JSON Schema.

Uses JSON Schema Draft 7 and collects every violation, reported as
JSON-pointer paths so callers can point at the offending field.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import jsonschema
from jsonschema import Draft7Validator

from app.core.config import METADATA_SCHEMA_SOURCE

from .api_models import SchemaViolation
from .exceptions import ConfigurationError, FetchError
from .fetch import ResourceFetcher

log = logging.getLogger(__name__)


def _pointer(path) -> str:
    """Render a jsonschema error path as a JSON pointer ("" for the root)."""
    parts = [str(p).replace("~", "~0").replace("/", "~1") for p in path]
    return "".join(f"/{p}" for p in parts)


def validate_metadata(
    document: Dict[str, Any],
    schema_doc: Dict[str, Any],
) -> List[SchemaViolation]:
    """Validate a metadata document against a schema.

    Args:
        document: Raw metadata JSON object.
        schema_doc: JSON Schema document (checked at load time).

    Returns:
        All violations, ordered by path then message (empty if valid).
    """
    validator = Draft7Validator(schema_doc)
    violations = [
        SchemaViolation(
            path=_pointer(error.absolute_path),
            message=error.message,
            validator=str(error.validator),
        )
        for error in validator.iter_errors(document)
    ]
    violations.sort(key=lambda v: (v.path, v.validator, v.message))
    return violations


def check_schema(schema_doc: Any, source: str) -> Dict[str, Any]:
    """Ensure schema_doc is a usable Draft 7 schema.

    Raises:
        ConfigurationError: If the document is not a valid schema.
    """
    if not isinstance(schema_doc, dict):
        raise ConfigurationError(f"Metadata schema at {source} must be a JSON object")
    try:
        Draft7Validator.check_schema(schema_doc)
    except jsonschema.SchemaError as e:
        raise ConfigurationError(f"Invalid metadata schema at {source}: {e.message}")
    return schema_doc


def _is_remote(source: str) -> bool:
    return urlparse(source).scheme.lower() in ("http", "https")


async def load_metadata_schema(
    source: str,
    fetcher: Optional[ResourceFetcher] = None,
) -> Optional[Dict[str, Any]]:
    """Load the metadata schema from a file path or http(s) URL.

    Returns:
        The schema document, or None when it cannot be obtained (missing
        file, unreachable URL). Callers must report that validation was
        skipped.

    Raises:
        ConfigurationError: If the document exists but is not a valid schema.
    """
    if not source:
        return None

    if _is_remote(source):
        fetcher = fetcher or ResourceFetcher()
        try:
            schema_doc = await fetcher.fetch_json(source)
        except FetchError as e:
            log.warning(f"metadata schema unavailable, validation will be skipped: {e.message}")
            return None
        return check_schema(schema_doc, source)

    path = Path(source)
    if not path.is_file():
        log.warning(f"metadata schema not found at {source}, validation will be skipped")
        return None

    try:
        schema_doc = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Could not read metadata schema at {source}: {e}")
    return check_schema(schema_doc, source)


# Singleton state. None is cached for an absent schema file; an unreachable
# schema URL is retried on the next call.
_metadata_schema: Optional[Dict[str, Any]] = None
_metadata_schema_loaded: bool = False


async def get_metadata_schema() -> Optional[Dict[str, Any]]:
    """Get or load the process-wide metadata schema."""
    global _metadata_schema, _metadata_schema_loaded
    if not _metadata_schema_loaded:
        _metadata_schema = await load_metadata_schema(METADATA_SCHEMA_SOURCE)
        _metadata_schema_loaded = (
            _metadata_schema is not None or not _is_remote(METADATA_SCHEMA_SOURCE)
        )
    return _metadata_schema


def reset_metadata_schema() -> None:
    """Forget the cached schema (tests, config reload)."""
    global _metadata_schema, _metadata_schema_loaded
    _metadata_schema = None
    _metadata_schema_loaded = False
