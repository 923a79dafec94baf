"""Shared builders for provenance verification tests."""

from .builders import (
    CONTRACT,
    RPC_URL,
    b64,
    b64url,
    did_key_for,
    digest_hex,
    keypair,
    make_status_list,
    make_vc_jwt,
    signed_metadata,
)
from .stubs import StubFetcher, StubLedger

__all__ = [
    "CONTRACT",
    "RPC_URL",
    "b64",
    "b64url",
    "did_key_for",
    "digest_hex",
    "keypair",
    "make_status_list",
    "make_vc_jwt",
    "signed_metadata",
    "StubFetcher",
    "StubLedger",
]
