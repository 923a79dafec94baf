"""
Provenance Verifier exceptions.

Infrastructure errors (ledger, fetch, configuration) abort a verification
call: the verifier could not determine an answer. Credential-layer errors
are caught by the pipeline and reported as "VC invalid: <detail>".
"""

from app.provenance.api_models import ErrorCode


class ProvenanceError(Exception):
    """Base exception for provenance verification.

    Carries an error code from ErrorCode. The caller is responsible for
    mapping it to an HTTP status or exit code.
    """

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(message)


class LedgerLookupError(ProvenanceError):
    """Ledger record could not be read.

    Used when:
    - RPC endpoint unreachable or returns an HTTP error
    - JSON-RPC error object (e.g. call reverted for unknown token)
    - Empty or undecodable call result
    """

    def __init__(self, message: str = "Ledger lookup failed"):
        super().__init__(ErrorCode.LEDGER_LOOKUP_FAILED, message)


class FetchError(ProvenanceError):
    """Remote resource could not be fetched or parsed.

    Used when:
    - Network timeout or transport error
    - HTTP error status
    - Too many redirects
    - Response too large
    - Body is not the expected JSON shape
    """

    def __init__(self, message: str = "Fetch failed", code: str = ErrorCode.FETCH_FAILED):
        super().__init__(code, message)


class UnsupportedURISchemeError(FetchError):
    """URI scheme cannot be fetched directly (e.g. ipfs:// without a gateway)."""

    def __init__(self, uri: str, scheme: str):
        self.uri = uri
        self.scheme = scheme
        super().__init__(
            f"unsupported URI scheme: {scheme or '(none)'} for {uri}",
            code=ErrorCode.UNSUPPORTED_URI_SCHEME,
        )


class ConfigurationError(ProvenanceError):
    """A configuration document exists but is malformed."""

    def __init__(self, message: str = "Invalid configuration"):
        super().__init__(ErrorCode.CONFIGURATION_INVALID, message)


class CredentialError(ProvenanceError):
    """Verifiable Credential is structurally or cryptographically invalid."""

    def __init__(self, message: str = "Credential invalid", code: str = ErrorCode.CREDENTIAL_INVALID):
        super().__init__(code, message)


class DIDResolutionError(CredentialError):
    """DID could not be resolved to a usable verification key."""

    def __init__(self, message: str = "DID resolution failed"):
        super().__init__(message, code=ErrorCode.DID_RESOLUTION_FAILED)


class StatusListError(CredentialError):
    """Status list credential is malformed or the index is out of range."""

    def __init__(self, message: str = "Status list invalid"):
        super().__init__(message, code=ErrorCode.STATUS_LIST_INVALID)
