"""Test suite running all provenance test vectors."""

import pytest

from .conftest import load_all_vectors
from .runner import VectorRunner
from .schema import VectorCase


class TestVectorSuite:
    """Runs every vector in data/ through the full pipeline."""

    @pytest.mark.asyncio
    async def test_vector(self, test_vector: VectorCase):
        """Execute a single test vector."""
        if test_vector.skip_reason:
            pytest.skip(test_vector.skip_reason)

        runner = VectorRunner(test_vector)
        result, error = await runner.run()
        runner.verify_result(result, error)


def test_vector_coverage():
    """Every failure reason and both infrastructure outcomes have a vector."""
    vectors = load_all_vectors()
    reasons = {v.expected.reason or v.expected.reason_prefix for v in vectors if v.expected.ok is False}
    codes = {v.expected.error_code for v in vectors if v.expected.error_code}

    assert {
        "Token revoked",
        "Hash mismatch",
        "Bad metadata schema",
        "Missing author signature",
        "No DID or pubkey provided",
        "Author signature invalid",
        "VC invalid: ",
        "VC revoked",
        "VC issuer not allowed",
    } <= reasons
    assert {"LEDGER_LOOKUP_FAILED", "UNSUPPORTED_URI_SCHEME"} <= codes
