import logging
import os
import time
from typing import Optional

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse

from app.logging_config import configure_logging
from app.provenance.api_models import ErrorCode, ErrorResponse
from app.provenance.exceptions import ConfigurationError, ProvenanceError
from app.provenance.ledger import JsonRpcLedgerReader, parse_token_id
from app.provenance.policy import get_issuer_policy
from app.provenance.schema import get_metadata_schema
from app.provenance.verify import VerificationPipeline

configure_logging()
log = logging.getLogger("provenance")

MISSING_INPUT_REASON = "Missing file, rpc, contract or token"

app = FastAPI(title="Provenance Verifier", version="0.1.0")


@app.get("/healthz")
def healthz():
    return {"ok": True}


@app.middleware("http")
async def req_log(request: Request, call_next):
    start = time.time()
    route = request.url.path
    remote = request.client.host if request.client else "-"
    resp = await call_next(request)
    duration_ms = int((time.time() - start) * 1000)
    log.info(f"request_complete status={resp.status_code} duration_ms={duration_ms}",
             extra={"request_id": "-", "route": route, "remote_addr": remote})
    return resp


def _bad_request(reason: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"ok": False, "reason": reason})


def _error_response(status_code: int, code: str, reason: str) -> JSONResponse:
    body = ErrorResponse(reason=reason, code=code)
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.post("/verify")
async def verify(
    request: Request,
    file: Optional[UploadFile] = File(None),
    rpc: Optional[str] = Form(None),
    contract: Optional[str] = Form(None),
    token: Optional[str] = Form(None),
):
    """Verify an uploaded file against its on-chain provenance record.

    Status mapping:
    - 200: a verdict was reached (body ok=true or ok=false with reason)
    - 400: missing or malformed inputs
    - 502: ledger or remote document unavailable (no verdict)
    - 500: configuration or unexpected error
    """
    from app.core.config import DEFAULT_RPC_URL

    rpc_url = rpc or DEFAULT_RPC_URL
    if file is None or not rpc_url or not contract or not token:
        return _bad_request(MISSING_INPUT_REASON)

    try:
        token_id = parse_token_id(token)
        ledger = JsonRpcLedgerReader(rpc_url, contract)
    except ValueError as e:
        return _bad_request(str(e))

    content = await file.read()
    remote = request.client.host if request.client else "-"

    try:
        pipeline = VerificationPipeline(
            ledger,
            issuer_policy=get_issuer_policy(),
            metadata_schema=await get_metadata_schema(),
        )
        result = await pipeline.verify(content, token_id)
    except ConfigurationError as e:
        log.error(f"verify_config_error: {e.message}", extra={"route": "/verify", "remote_addr": remote})
        return _error_response(500, e.code, e.message)
    except ProvenanceError as e:
        log.warning(f"verify_indeterminate code={e.code}: {e.message}",
                    extra={"route": "/verify", "remote_addr": remote, "token_id": str(token_id),
                           "error_code": e.code})
        return _error_response(502, e.code, e.message)
    except Exception as e:
        log.exception("verify_internal_error", extra={"route": "/verify", "remote_addr": remote})
        return _error_response(500, ErrorCode.INTERNAL_ERROR, str(e))

    log.info(f"verify_called ok={result.ok}",
             extra={"route": "/verify", "remote_addr": remote, "token_id": str(token_id),
                    "reason": result.reason})
    return JSONResponse(result.to_response())


@app.get("/version")
def version():
    # GIT_SHA is injected at deploy time
    return {"git_sha": os.getenv("GIT_SHA", "unknown")}


@app.get("/admin")
def admin():
    """Return all configurable items for operator visibility.

    Gated by ADMIN_ENDPOINT_ENABLED (default: True for dev, False for prod).
    """
    from app.core.config import (
        ADMIN_ENDPOINT_ENABLED,
        ALLOWED_ISSUERS_FILE,
        ALLOWED_VC_ALGORITHMS,
        DEFAULT_RPC_URL,
        DIGEST_SIZE_BYTES,
        FETCH_MAX_REDIRECTS,
        FETCH_MAX_SIZE_BYTES,
        FETCH_TIMEOUT_SECONDS,
        IPFS_GATEWAY_URL,
        METADATA_SCHEMA_SOURCE,
        REQUIRE_VERIFIED_AUTHOR,
        RPC_TIMEOUT_SECONDS,
        SIGNED_PAYLOAD_SEPARATOR,
        STATUS_LIST_MAX_BYTES,
        VC_CLOCK_SKEW_SECONDS,
    )

    if not ADMIN_ENDPOINT_ENABLED:
        return JSONResponse(
            status_code=404,
            content={"detail": "Admin endpoint disabled"}
        )

    policy = get_issuer_policy()
    return {
        "normative": {
            "digest": f"blake3-{DIGEST_SIZE_BYTES * 8}",
            "signed_payload_separator": SIGNED_PAYLOAD_SEPARATOR,
            "allowed_vc_algorithms": sorted(ALLOWED_VC_ALGORITHMS),
        },
        "policy": {
            "fetch_timeout_seconds": FETCH_TIMEOUT_SECONDS,
            "fetch_max_size_bytes": FETCH_MAX_SIZE_BYTES,
            "fetch_max_redirects": FETCH_MAX_REDIRECTS,
            "status_list_max_bytes": STATUS_LIST_MAX_BYTES,
            "rpc_timeout_seconds": RPC_TIMEOUT_SECONDS,
            "vc_clock_skew_seconds": VC_CLOCK_SKEW_SECONDS,
            "require_verified_author": REQUIRE_VERIFIED_AUTHOR,
        },
        "sources": {
            "default_rpc_url": DEFAULT_RPC_URL,
            "ipfs_gateway_url": IPFS_GATEWAY_URL,
            "allowed_issuers_file": ALLOWED_ISSUERS_FILE,
            "metadata_schema": METADATA_SCHEMA_SOURCE,
        },
        "issuer_policy": {
            "restriction": policy.restriction.value,
            "issuers": sorted(policy.issuers),
        },
        "environment": {
            "log_level": logging.getLogger().getEffectiveLevel(),
            "log_level_name": logging.getLevelName(logging.getLogger().getEffectiveLevel()),
        },
    }
