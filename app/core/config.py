"""
Provenance Verifier configuration constants.

Constants are organized into:
- NORMATIVE: Fixed by the verification protocol, cannot be changed
- POLICY: Implementation choices where enforcement is required but values are not fixed
- OPERATIONAL: Deployment-specific settings (env vars)
"""

import os

# =============================================================================
# NORMATIVE CONSTANTS
# =============================================================================

# Content digest: BLAKE3 with 256-bit output
DIGEST_SIZE_BYTES: int = 32

# Separator between contentHash and createdAt in the author-signed payload
SIGNED_PAYLOAD_SEPARATOR: str = "||"

# Ledger contract read function
LEDGER_RECORD_FUNCTION: str = "getRecord(uint256)"
LEDGER_RECORD_TYPES: tuple = ("(bytes32,string,bool)",)

# Only EdDSA (Ed25519) credentials are accepted
ALLOWED_VC_ALGORITHMS: frozenset[str] = frozenset({"EdDSA"})

# =============================================================================
# POLICY CONSTANTS
# =============================================================================

# Resource fetch constraints (metadata, credentials, status lists, schemas)
FETCH_TIMEOUT_SECONDS: float = float(os.getenv("PROVENANCE_FETCH_TIMEOUT", "10"))
FETCH_MAX_SIZE_BYTES: int = int(os.getenv("PROVENANCE_FETCH_MAX_BYTES", str(5 * 1024 * 1024)))
FETCH_MAX_REDIRECTS: int = int(os.getenv("PROVENANCE_FETCH_MAX_REDIRECTS", "3"))

# Upper bound on a decompressed StatusList2021 bitstring.
# The fetch size limit only bounds the compressed document.
STATUS_LIST_MAX_BYTES: int = int(
    os.getenv("PROVENANCE_STATUS_LIST_MAX_BYTES", str(16 * 1024 * 1024))
)

# Ledger JSON-RPC call timeout
RPC_TIMEOUT_SECONDS: float = float(os.getenv("PROVENANCE_RPC_TIMEOUT", "10"))

# Tolerance applied to VC exp/nbf checks
VC_CLOCK_SKEW_SECONDS: int = int(os.getenv("PROVENANCE_VC_CLOCK_SKEW", "300"))

# DID-only authors carry no cryptographic proof.
# False (default): report authorSignature=UNVERIFIED on an otherwise valid result
# True: treat an unverified author as a verification failure
REQUIRE_VERIFIED_AUTHOR: bool = (
    os.getenv("PROVENANCE_REQUIRE_VERIFIED_AUTHOR", "false").lower() == "true"
)

# =============================================================================
# OPERATIONAL SETTINGS (deployment-specific, via environment variables)
# =============================================================================

# Default JSON-RPC endpoint when a request does not name one
DEFAULT_RPC_URL: str = os.getenv("PROVENANCE_RPC_URL", "")

# Gateway used to rewrite ipfs:// URIs. Empty means ipfs:// is rejected.
IPFS_GATEWAY_URL: str = os.getenv("PROVENANCE_IPFS_GATEWAY", "").rstrip("/")

# Issuer allow-list document: {"issuers": ["did:..."]}
# A missing file means no restriction.
ALLOWED_ISSUERS_FILE: str = os.getenv(
    "PROVENANCE_ALLOWED_ISSUERS_FILE", "offchain/allowedIssuers.json"
)

# Metadata JSON Schema (file path or http(s) URL)
# When it cannot be loaded, schema validation is skipped and reported.
METADATA_SCHEMA_SOURCE: str = os.getenv(
    "PROVENANCE_METADATA_SCHEMA", "offchain/schema/metadata.schema.json"
)

# Admin endpoint visibility
# Default: True for dev, set to False in production deployments
ADMIN_ENDPOINT_ENABLED: bool = os.getenv("ADMIN_ENDPOINT_ENABLED", "true").lower() == "true"
