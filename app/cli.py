"""Command-line verification.

Commands:
    provenance-verify verify --file F --contract ADDR --token ID [--rpc URL]

Exit codes:
    0  content verified
    1  usage or argument error
    2  verification failed (a verdict was reached)
    3  verification could not complete (ledger, network or configuration)
"""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
import typer

from app.core.config import ALLOWED_ISSUERS_FILE, DEFAULT_RPC_URL, METADATA_SCHEMA_SOURCE
from app.logging_config import configure_logging
from app.provenance.exceptions import ProvenanceError
from app.provenance.ledger import JsonRpcLedgerReader, parse_token_id
from app.provenance.policy import load_issuer_policy
from app.provenance.schema import load_metadata_schema
from app.provenance.verify import VerificationPipeline

EXIT_OK = 0
EXIT_USAGE_ERROR = 1
EXIT_VERIFICATION_FAILURE = 2
EXIT_INFRASTRUCTURE_ERROR = 3

log = logging.getLogger(__name__)

app = typer.Typer(
    name="provenance-verify",
    help="Verify files against on-chain provenance records.",
    no_args_is_help=True,
)


def _print_json(data: dict) -> None:
    typer.echo(json.dumps(data, indent=2))


def _fail_usage(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(code=EXIT_USAGE_ERROR)


@app.command("verify")
def verify_cmd(
    file: Path = typer.Option(
        ...,
        "--file",
        "-f",
        help="Path to the content file",
    ),
    contract: str = typer.Option(
        ...,
        "--contract",
        "-c",
        help="Provenance contract address",
    ),
    token: str = typer.Option(
        ...,
        "--token",
        "-t",
        help="Token id (decimal or 0x-hex)",
    ),
    rpc: Optional[str] = typer.Option(
        None,
        "--rpc",
        help="JSON-RPC endpoint (default: PROVENANCE_RPC_URL)",
    ),
    schema: Optional[str] = typer.Option(
        None,
        "--schema",
        help="Metadata JSON Schema path or URL (default: PROVENANCE_METADATA_SCHEMA)",
    ),
    allowed_issuers: Optional[str] = typer.Option(
        None,
        "--allowed-issuers",
        help="Issuer allow-list JSON file (default: PROVENANCE_ALLOWED_ISSUERS_FILE)",
    ),
) -> None:
    """Verify FILE against token TOKEN on CONTRACT.

    Prints the verification result as JSON.

    Examples:
        provenance-verify verify -f photo.jpg -c 0xAbC... -t 42 --rpc https://rpc.example
    """
    rpc_url = rpc or DEFAULT_RPC_URL
    if not rpc_url:
        _fail_usage("Missing RPC endpoint: pass --rpc or set PROVENANCE_RPC_URL")

    if not file.is_file():
        _fail_usage(f"File not found: {file}")

    try:
        token_id = parse_token_id(token)
        ledger = JsonRpcLedgerReader(rpc_url, contract)
    except ValueError as e:
        _fail_usage(str(e))

    content = file.read_bytes()

    async def run():
        issuer_policy = load_issuer_policy(allowed_issuers or ALLOWED_ISSUERS_FILE)
        metadata_schema = await load_metadata_schema(schema or METADATA_SCHEMA_SOURCE)
        pipeline = VerificationPipeline(
            ledger,
            issuer_policy=issuer_policy,
            metadata_schema=metadata_schema,
        )
        return await pipeline.verify(content, token_id)

    try:
        result = asyncio.run(run())
    except ProvenanceError as e:
        _print_json({"ok": False, "reason": e.message, "code": e.code})
        raise typer.Exit(code=EXIT_INFRASTRUCTURE_ERROR)

    _print_json(result.to_response())
    raise typer.Exit(code=EXIT_OK if result.ok else EXIT_VERIFICATION_FAILURE)


@app.callback()
def main_callback() -> None:
    """Provenance verification tools."""


def main() -> None:
    """Console entry point.

    Click reports usage errors with exit code 2, which is reserved here for
    verification failures, so they are remapped to EXIT_USAGE_ERROR.
    """
    configure_logging(stream=sys.stderr)
    command = typer.main.get_command(app)
    try:
        code = command.main(standalone_mode=False)
    except click.exceptions.Exit as e:
        code = e.exit_code
    except click.UsageError as e:
        e.show()
        code = EXIT_USAGE_ERROR
    except click.Abort:
        typer.echo("Aborted!", err=True)
        code = EXIT_USAGE_ERROR
    sys.exit(code or EXIT_OK)


if __name__ == "__main__":
    main()
