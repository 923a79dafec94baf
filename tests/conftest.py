"""Shared fixtures for provenance verifier tests."""

import pytest

from app.provenance.policy import reset_issuer_policy
from app.provenance.schema import reset_metadata_schema


@pytest.fixture(autouse=True)
def reset_singletons():
    """Drop cached issuer policy and metadata schema around each test."""
    reset_issuer_policy()
    reset_metadata_schema()
    yield
    reset_issuer_policy()
    reset_metadata_schema()
