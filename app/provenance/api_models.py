"""
Provenance Verifier API models.

The verification verdict is a plain value: failures named by FailureReason
are normal outcomes, never exceptions.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Outcome enums
# =============================================================================

class AuthorSignatureStatus(str, Enum):
    """How the author of the metadata was established."""
    VERIFIED = "VERIFIED"      # Ed25519 signature checked against embedded key
    UNVERIFIED = "UNVERIFIED"  # Only an authorDID was given, no cryptographic check


class IssuerRestriction(str, Enum):
    """Whether an issuer allow-list was applied to credentials."""
    RESTRICTED = "RESTRICTED"
    UNRESTRICTED = "UNRESTRICTED"


# =============================================================================
# Failure reasons (verification verdicts)
# =============================================================================

class FailureReason:
    """Reason strings for ok=false results, in pipeline order."""
    TOKEN_REVOKED = "Token revoked"
    HASH_MISMATCH = "Hash mismatch"
    BAD_METADATA_SCHEMA = "Bad metadata schema"
    MISSING_AUTHOR_SIGNATURE = "Missing author signature"
    NO_DID_OR_PUBKEY = "No DID or pubkey provided"
    AUTHOR_SIGNATURE_INVALID = "Author signature invalid"
    AUTHOR_SIGNATURE_UNVERIFIED = "Author signature unverified"
    VC_INVALID_PREFIX = "VC invalid"
    VC_REVOKED = "VC revoked"
    VC_ISSUER_NOT_ALLOWED = "VC issuer not allowed"

    @classmethod
    def vc_invalid(cls, detail: str) -> str:
        return f"{cls.VC_INVALID_PREFIX}: {detail}"


# =============================================================================
# Error codes (infrastructure failures)
# =============================================================================

class ErrorCode:
    """Error code registry for exceptions that abort verification."""
    LEDGER_LOOKUP_FAILED = "LEDGER_LOOKUP_FAILED"
    FETCH_FAILED = "FETCH_FAILED"
    UNSUPPORTED_URI_SCHEME = "UNSUPPORTED_URI_SCHEME"
    CONFIGURATION_INVALID = "CONFIGURATION_INVALID"

    # Credential layer (caught inside the pipeline, reported as "VC invalid")
    CREDENTIAL_INVALID = "CREDENTIAL_INVALID"
    DID_RESOLUTION_FAILED = "DID_RESOLUTION_FAILED"
    STATUS_LIST_INVALID = "STATUS_LIST_INVALID"

    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Result models
# =============================================================================

class SchemaViolation(BaseModel):
    """A single JSON Schema violation found in the metadata document."""
    path: str
    message: str
    validator: str


class VerificationResult(BaseModel):
    """Verdict of one verification call.

    Serialize with to_response(); keys are camelCase and absent fields are
    dropped, so a failure renders as {ok, reason, schemaErrors?}.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    ok: bool
    reason: Optional[str] = None
    computed_hash: Optional[str] = Field(default=None, alias="computedHash")
    token_id: Optional[str] = Field(default=None, alias="tokenId")
    contract: Optional[str] = None
    schema_errors: Optional[List[SchemaViolation]] = Field(default=None, alias="schemaErrors")
    author_signature: Optional[AuthorSignatureStatus] = Field(default=None, alias="authorSignature")
    issuer_restriction: Optional[IssuerRestriction] = Field(default=None, alias="issuerRestriction")
    schema_validated: Optional[bool] = Field(default=None, alias="schemaValidated")
    credential_verified: Optional[bool] = Field(default=None, alias="credentialVerified")
    warnings: Optional[List[str]] = None

    @classmethod
    def failure(
        cls,
        reason: str,
        schema_errors: Optional[List[SchemaViolation]] = None,
    ) -> "VerificationResult":
        return cls(ok=False, reason=reason, schema_errors=schema_errors)

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ErrorResponse(BaseModel):
    """Body returned when verification could not determine an answer."""
    ok: bool = False
    reason: str
    code: str
