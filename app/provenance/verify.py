"""Provenance verification pipeline.

Runs a fixed sequence of steps and stops at the first failure:

    digest -> record_lookup -> token_revocation -> hash_match ->
    metadata_fetch -> schema_validation -> author_signature ->
    credential -> success

Revocation is checked before the hash, and the hash before any off-chain
fetch, so revoked or mismatched tokens never trigger metadata requests.

Each step returns None to continue or a failure VerificationResult to stop.
Infrastructure errors (ledger, fetch, configuration) are raised and escape
the pipeline: they mean "no answer", never "invalid".
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from app.core.config import REQUIRE_VERIFIED_AUTHOR

from .api_models import (
    AuthorSignatureStatus,
    FailureReason,
    VerificationResult,
)
from .credential import CredentialVerifier
from .did import DIDResolver
from .digest import content_digest, digests_match, normalize_hex, to_hex
from .exceptions import CredentialError
from .fetch import ResourceFetcher
from .ledger import JsonRpcLedgerReader, ProvenanceRecord
from .metadata import Metadata, parse_metadata
from .policy import IssuerPolicy
from .schema import validate_metadata
from .signature import check_author_signature
from .status_list import RevocationChecker, StatusList2021Checker

log = logging.getLogger(__name__)

WARN_SCHEMA_SKIPPED = "metadata schema unavailable; schema validation skipped"
WARN_AUTHOR_UNVERIFIED = "author identified by DID only; signature not cryptographically verified"
WARN_METADATA_HASH = "metadata contentHash does not match the computed digest"


@dataclass
class VerificationContext:
    """State carried from one step to the next during a single call."""
    content: bytes
    token_id: int
    contract: str
    computed_hash: str = ""
    record: Optional[ProvenanceRecord] = None
    raw_metadata: Optional[Dict[str, Any]] = None
    metadata: Optional[Metadata] = None
    schema_validated: bool = False
    author_status: Optional[AuthorSignatureStatus] = None
    credential_verified: bool = False
    warnings: List[str] = field(default_factory=list)


Step = Callable[[VerificationContext], Awaitable[Optional[VerificationResult]]]


class VerificationPipeline:
    """Verifies content against its on-chain provenance record.

    Collaborators are injected; only the ledger reader is required. The issuer
    policy and metadata schema are explicit inputs: pass
    IssuerPolicy.unrestricted() / None to opt out, and the success result
    reports what was actually applied.
    """

    def __init__(
        self,
        ledger,
        fetcher: Optional[ResourceFetcher] = None,
        *,
        issuer_policy: Optional[IssuerPolicy] = None,
        metadata_schema: Optional[Dict[str, Any]] = None,
        credential_verifier: Optional[CredentialVerifier] = None,
        revocation_checker: Optional[RevocationChecker] = None,
        require_verified_author: bool = REQUIRE_VERIFIED_AUTHOR,
    ):
        self.ledger = ledger
        self.fetcher = fetcher or ResourceFetcher()
        self.issuer_policy = issuer_policy or IssuerPolicy.unrestricted()
        self.metadata_schema = metadata_schema
        self.credential_verifier = credential_verifier or CredentialVerifier(
            resolver=DIDResolver(self.fetcher)
        )
        self.revocation_checker = revocation_checker or StatusList2021Checker(
            fetcher=self.fetcher,
            credential_verifier=self.credential_verifier,
        )
        self.require_verified_author = require_verified_author

    @property
    def steps(self) -> Tuple[Tuple[str, Step], ...]:
        """Ordered (name, step) pairs."""
        return (
            ("digest", self._digest),
            ("record_lookup", self._lookup_record),
            ("token_revocation", self._check_token_revocation),
            ("hash_match", self._check_hash),
            ("metadata_fetch", self._fetch_metadata),
            ("schema_validation", self._validate_schema),
            ("author_signature", self._check_author),
            ("credential", self._check_credential),
        )

    async def verify(self, content: bytes, token_id: int) -> VerificationResult:
        """Verify content against token_id on the reader's contract.

        Returns:
            VerificationResult; ok=False carries the first failure reason.

        Raises:
            LedgerLookupError: Ledger record could not be read.
            FetchError: Metadata or credential documents could not be fetched.
        """
        ctx = VerificationContext(
            content=content,
            token_id=token_id,
            contract=self.ledger.contract,
        )
        extra = {"token_id": str(token_id), "contract": ctx.contract}
        log.info(f"verify: contract={ctx.contract} token={token_id} bytes={len(content)}", extra=extra)

        for name, step in self.steps:
            failure = await step(ctx)
            if failure is not None:
                log.info(f"  {name}: FAILED reason={failure.reason}",
                         extra={**extra, "step": name, "reason": failure.reason})
                return failure
            log.info(f"  {name}: passed", extra={**extra, "step": name})

        return self._success(ctx)

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    async def _digest(self, ctx: VerificationContext) -> Optional[VerificationResult]:
        ctx.computed_hash = to_hex(content_digest(ctx.content))
        return None

    async def _lookup_record(self, ctx: VerificationContext) -> Optional[VerificationResult]:
        ctx.record = await self.ledger.get_record(ctx.token_id)
        return None

    async def _check_token_revocation(self, ctx: VerificationContext) -> Optional[VerificationResult]:
        if ctx.record.revoked:
            return VerificationResult.failure(FailureReason.TOKEN_REVOKED)
        return None

    async def _check_hash(self, ctx: VerificationContext) -> Optional[VerificationResult]:
        if not digests_match(ctx.computed_hash, ctx.record.content_hash_hex):
            return VerificationResult.failure(FailureReason.HASH_MISMATCH)
        return None

    async def _fetch_metadata(self, ctx: VerificationContext) -> Optional[VerificationResult]:
        ctx.raw_metadata = await self.fetcher.fetch_json_object(ctx.record.metadata_uri)
        ctx.metadata = parse_metadata(ctx.raw_metadata)
        if ctx.metadata.content_hash and normalize_hex(ctx.metadata.content_hash) != normalize_hex(ctx.computed_hash):
            ctx.warnings.append(WARN_METADATA_HASH)
        return None

    async def _validate_schema(self, ctx: VerificationContext) -> Optional[VerificationResult]:
        if self.metadata_schema is None:
            ctx.warnings.append(WARN_SCHEMA_SKIPPED)
            return None
        violations = validate_metadata(ctx.raw_metadata, self.metadata_schema)
        if violations:
            return VerificationResult.failure(
                FailureReason.BAD_METADATA_SCHEMA,
                schema_errors=violations,
            )
        ctx.schema_validated = True
        return None

    async def _check_author(self, ctx: VerificationContext) -> Optional[VerificationResult]:
        check = check_author_signature(ctx.metadata, self.require_verified_author)
        if not check.ok:
            return VerificationResult.failure(check.failure)
        ctx.author_status = check.status
        if check.status == AuthorSignatureStatus.UNVERIFIED:
            ctx.warnings.append(WARN_AUTHOR_UNVERIFIED)
        return None

    async def _check_credential(self, ctx: VerificationContext) -> Optional[VerificationResult]:
        ref = ctx.metadata.verifiable_credential
        if ref is None:
            return None

        # Fetch failures are infrastructure errors and propagate
        document = await self.fetcher.fetch_text(ref.uri)
        try:
            credential = await self.credential_verifier.verify(document)
            if ref.status_list and await self.revocation_checker.is_revoked(credential, ref.status_list):
                return VerificationResult.failure(FailureReason.VC_REVOKED)
        except CredentialError as e:
            return VerificationResult.failure(FailureReason.vc_invalid(e.message))

        if not self.issuer_policy.allows(credential.issuer):
            return VerificationResult.failure(FailureReason.VC_ISSUER_NOT_ALLOWED)

        ctx.credential_verified = True
        return None

    # -------------------------------------------------------------------------
    # Result shaping
    # -------------------------------------------------------------------------

    def _success(self, ctx: VerificationContext) -> VerificationResult:
        return VerificationResult(
            ok=True,
            computed_hash=ctx.computed_hash,
            token_id=str(ctx.token_id),
            contract=ctx.contract,
            author_signature=ctx.author_status,
            issuer_restriction=self.issuer_policy.restriction,
            schema_validated=ctx.schema_validated,
            credential_verified=ctx.credential_verified,
            warnings=list(ctx.warnings) or None,
        )


async def verify_content(
    content: bytes,
    rpc_url: str,
    contract: str,
    token_id: int,
    *,
    issuer_policy: Optional[IssuerPolicy] = None,
    metadata_schema: Optional[Dict[str, Any]] = None,
    fetcher: Optional[ResourceFetcher] = None,
) -> VerificationResult:
    """Verify content with the default JSON-RPC ledger reader and fetchers."""
    pipeline = VerificationPipeline(
        JsonRpcLedgerReader(rpc_url, contract),
        fetcher,
        issuer_policy=issuer_policy,
        metadata_schema=metadata_schema,
    )
    return await pipeline.verify(content, token_id)
