# trustfeed/cli/main.py
"""
CLI for minting, importing and auditing feed signatures.
"""

import logging
import os
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from trustfeed.config import ENV_SECRET_KEY, ENV_STORAGE, ENV_TRUST_KEY, default_storage_uri
from trustfeed.core.errors import TrustFeedError
from trustfeed.crypto.keys import TrustKeyPair
from trustfeed.gate.replication import ReplicationGate
from trustfeed.storage import create_storage
from trustfeed.store.signatures import SignatureStore
from trustfeed.verify.verifier import StoreVerifier

app = typer.Typer(
    name="trustfeed",
    help="Mint, import and audit feed signatures for signature-gated replication",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(soft_wrap=True)


def get_store_uri(store_flag: Optional[str] = None) -> str:
    """Resolve signature storage in this order:
    1. --store flag
    2. TRUSTFEED_STORAGE environment variable
    3. Default: ~/.trustfeed/signatures.json
    """
    return store_flag or os.environ.get(ENV_STORAGE) or default_storage_uri()


def get_trust_key(key_flag: Optional[str] = None) -> str:
    key = key_flag or os.environ.get(ENV_TRUST_KEY)
    if not key:
        console.print("[red]No trust key given.[/]")
        console.print(f"  Pass --trust-key or set {ENV_TRUST_KEY}")
        raise typer.Exit(1)
    return key


def store_exists(uri: str) -> bool:
    if "://" in uri and not uri.startswith("file://"):
        return True
    return Path(uri[len("file://"):] if uri.startswith("file://") else uri).expanduser().exists()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Manage the signature store of a trustfeed node."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def keygen():
    """Generate a new trust key pair."""
    pair = TrustKeyPair.generate()
    console.print(f"[bold]public[/]  {pair.public_key_hex()}")
    console.print(f"[bold]secret[/]  {pair.secret_key_hex()}")
    console.print("[yellow]Share the public key with every node; keep the secret on signing nodes only.[/]")


@app.command()
def sign(
    feed_key: str = typer.Argument(..., help="Hex public key of the feed to sign"),
    store: Optional[str] = typer.Option(None, "--store", help="Signature storage path or URI"),
    trust_key: Optional[str] = typer.Option(None, "--trust-key", help="Hex trust public key"),
    secret: Optional[str] = typer.Option(None, "--secret", help="Hex secret key (or TRUSTFEED_SECRET_KEY)"),
):
    """Sign a feed key with the secret and store the signature."""
    secret = secret or os.environ.get(ENV_SECRET_KEY)
    if not secret:
        console.print("[red]No secret key given.[/]")
        console.print(f"  Pass --secret or set {ENV_SECRET_KEY}")
        raise typer.Exit(1)

    try:
        gate = ReplicationGate(get_trust_key(trust_key), get_store_uri(store), secret)
        signature = gate.sign_feed(feed_key)
    except TrustFeedError as e:
        console.print(f"[red]Signing failed: {str(e)}[/]")
        raise typer.Exit(1)

    console.print(f"[green]✓ Signed feed {feed_key.lower()}[/]")
    console.print(f"  {signature.hex()}")


@app.command()
def add(
    feed_key: str = typer.Argument(..., help="Hex public key of the feed"),
    signature: str = typer.Argument(..., help="Hex signature of the feed key"),
    store: Optional[str] = typer.Option(None, "--store", help="Signature storage path or URI"),
    trust_key: Optional[str] = typer.Option(None, "--trust-key", help="Hex trust public key"),
):
    """Import a signature obtained out of band (it must verify)."""
    try:
        gate = ReplicationGate(get_trust_key(trust_key), get_store_uri(store))
        gate.set_signature(feed_key, signature)
    except TrustFeedError as e:
        console.print(f"[red]Import failed: {str(e)}[/]")
        raise typer.Exit(1)

    console.print(f"[green]✓ Stored signature for feed {feed_key.lower()}[/]")


@app.command(name="list")
def list_signatures(
    store: Optional[str] = typer.Option(None, "--store", help="Signature storage path or URI"),
):
    """List stored feed signatures."""
    uri = get_store_uri(store)
    if not store_exists(uri):
        console.print(f"[red]Signature store not found: {uri}[/]")
        console.print("[yellow]To get started:[/]")
        console.print("  • Sign a feed: trustfeed sign <feed-key> --secret ... --trust-key ...")
        console.print(f"  • Or point at an existing store with --store or {ENV_STORAGE}")
        raise typer.Exit(1)

    try:
        record = SignatureStore(create_storage(uri)).load()
    except TrustFeedError as e:
        console.print(f"[red]Failed to load signatures: {str(e)}[/]")
        raise typer.Exit(1)

    if not record:
        console.print("[yellow]No signatures stored yet.[/]")
        return

    table = Table(title="Feed Signatures")
    table.add_column("Feed Key")
    table.add_column("Signature")
    for feed_key in sorted(record):
        sig = record[feed_key]
        table.add_row(feed_key, f"{sig[:16]}…{sig[-16:]}" if len(sig) > 32 else sig)

    console.print(table)
    console.print(f"{len(record)} signature(s)")


@app.command()
def verify(
    store: Optional[str] = typer.Option(None, "--store", help="Signature storage path or URI"),
    trust_key: Optional[str] = typer.Option(None, "--trust-key", help="Hex trust public key"),
):
    """Check every stored signature against the trust key."""
    uri = get_store_uri(store)
    key = get_trust_key(trust_key)

    try:
        verifier = StoreVerifier(key)
        storage = create_storage(uri)
    except (TrustFeedError, ValueError) as e:
        console.print(f"[red]Verification failed: {str(e)}[/]")
        raise typer.Exit(1)

    result = verifier.verify_from_storage(storage)

    if result.is_valid:
        console.print("[green]✓ Signature store is valid[/]")
        console.print(f"  {result.message}")
    else:
        console.print(f"[red]✗ Verification failed for {uri}[/]")
        for failure in result.failures:
            console.print(f"  • [{failure.index}] {failure.category}: {failure.feed_key} {failure.message}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
