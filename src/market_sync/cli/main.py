"""CLI commands for inspecting books and verifying action signatures."""

import json
import logging
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from market_sync.config import MarketSyncConfig, load_config, read_private_key
from market_sync.core.errors import KeyFormatError
from market_sync.core.models import BookSide, ExchangeName
from market_sync.orderbook.deltas import snapshot_commands
from market_sync.orderbook.engine import (
    aggregate_by_tick,
    copy_side,
    mid_price,
    spread,
    to_quote_currency,
)
from market_sync.signing.action_signer import ActionSigner, frame_action, generate_action_hash
from market_sync.store.patch_store import PatchStore
from market_sync.store.paths import order_book_path

app = typer.Typer(
    name="market-sync",
    help="Order book inspection and action signing tools",
    add_completion=False,
)
console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to YAML config file"),
]


def _setup(config: Optional[Path]) -> MarketSyncConfig:
    cfg = load_config(config)
    logging.basicConfig(
        level=cfg.log_level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    return cfg


def _level_pairs(raw_levels: list[Any]) -> list[tuple[float, float]]:
    """Accept [price, amount] pairs or {"price", "amount"|"size"} objects."""
    pairs = []
    for item in raw_levels:
        if isinstance(item, dict):
            pairs.append((float(item["price"]), float(item.get("amount", item.get("size", 0)))))
        else:
            pairs.append((float(item[0]), float(item[1])))
    return pairs


def _load_action(path: Path) -> dict[str, Any]:
    with open(path) as f:
        action = json.load(f)
    if not isinstance(action, dict):
        raise typer.BadParameter("Action file must contain a JSON object", param_hint="ACTION")
    return action


@app.command()
def book(
    snapshot: Annotated[
        Path,
        typer.Argument(help="JSON book snapshot: {bids: [[price, amount], ...], asks: [...]}"),
    ],
    side: Annotated[
        Optional[BookSide],
        typer.Option("--side", help="Show only one side"),
    ] = None,
    tick_size: Annotated[
        Optional[float],
        typer.Option("--tick-size", "-t", help="Aggregate levels into buckets of this width"),
    ] = None,
    quote: Annotated[
        bool,
        typer.Option("--quote", "-q", help="Show amounts in quote currency"),
    ] = False,
    depth: Annotated[
        int,
        typer.Option("--depth", "-n", help="Levels shown per side"),
    ] = 10,
    exchange: Annotated[
        ExchangeName,
        typer.Option("--exchange", "-e", help="Exchange subtree to load the book into"),
    ] = ExchangeName.BYBIT,
    symbol: Annotated[
        str,
        typer.Option("--symbol", help="Symbol to load the book under"),
    ] = "SNAPSHOT",
    config: ConfigOption = None,
) -> None:
    """Load a book snapshot, normalize it and print the requested view."""
    cfg = _setup(config)
    if exchange not in cfg.exchanges:
        cfg.exchanges.append(exchange)

    with open(snapshot) as f:
        raw = json.load(f)

    store = PatchStore.from_config(cfg)
    book_path = order_book_path(exchange, symbol)
    store.apply_changes(
        snapshot_commands(
            book_path,
            bids=_level_pairs(raw.get("bids", [])),
            asks=_level_pairs(raw.get("asks", [])),
        )
    )
    stored = store.get(book_path)

    tick = tick_size if tick_size is not None else cfg.orderbook.tick_size
    sides = [side] if side else [BookSide.ASKS, BookSide.BIDS]

    for direction in sides:
        view = copy_side(stored[direction.value])
        if tick is not None:
            view = aggregate_by_tick(tick, view)
        if quote:
            to_quote_currency(view, cfg.orderbook.quote_decimals)

        color = "red" if direction is BookSide.ASKS else "green"
        table = Table(show_header=True, header_style="bold", title=direction.value.upper())
        table.add_column("Price", justify="right")
        table.add_column("Value" if quote else "Amount", justify="right")
        table.add_column("Total", justify="right")
        for level in view[:depth]:
            table.add_row(
                f"[{color}]{level['price']}[/{color}]",
                f"{level['amount']}",
                f"{level['total']}",
            )
        console.print(table)

    book_spread = spread(stored)
    if book_spread is not None:
        rprint(f"\n[bold]Spread:[/bold] {book_spread}   [bold]Mid:[/bold] {mid_price(stored)}")


@app.command("hash-action")
def hash_action(
    action_file: Annotated[Path, typer.Argument(help="JSON file with the action payload")],
    nonce: Annotated[int, typer.Option("--nonce", "-n", help="Action nonce")],
    vault_address: Annotated[
        Optional[str],
        typer.Option("--vault-address", help="Vault address (0x...)"),
    ] = None,
    expires_after: Annotated[
        Optional[int],
        typer.Option("--expires-after", help="Expiry timestamp (ms)"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Also show the framed payload size"),
    ] = False,
) -> None:
    """Print the action hash an exchange verifier expects."""
    action = _load_action(action_file)
    digest = generate_action_hash(action, nonce, vault_address, expires_after)
    rprint(f"0x{digest.hex()}")

    if verbose:
        framed = frame_action(action, nonce, vault_address, expires_after)
        rprint(f"[blue]Framed payload: {len(framed)} bytes[/blue]")


@app.command("sign-action")
def sign_action(
    action_file: Annotated[Path, typer.Argument(help="JSON file with the action payload")],
    nonce: Annotated[int, typer.Option("--nonce", "-n", help="Action nonce")],
    vault_address: Annotated[
        Optional[str],
        typer.Option("--vault-address", help="Vault address (0x...)"),
    ] = None,
    expires_after: Annotated[
        Optional[int],
        typer.Option("--expires-after", help="Expiry timestamp (ms)"),
    ] = None,
    testnet: Annotated[
        bool,
        typer.Option("--testnet", help="Sign for testnet"),
    ] = False,
    config: ConfigOption = None,
) -> None:
    """Sign an action with the key from the environment."""
    cfg = _setup(config)
    action = _load_action(action_file)

    key = read_private_key(cfg)
    if not key:
        rprint(f"[red]Set {cfg.signing.private_key_env} to sign actions[/red]")
        raise typer.Exit(code=1)

    try:
        signer = ActionSigner(key, is_testnet=testnet or cfg.signing.is_testnet)
    except KeyFormatError as exc:
        rprint(f"[red]Invalid private key: {exc}[/red]")
        raise typer.Exit(code=1)

    signed = signer.sign_action(action, nonce, vault_address, expires_after)
    rprint(f"[bold]signer:[/bold] {signer.address}")
    rprint(f"[bold]hash:[/bold] {signed.action_hash_hex}")
    rprint(f"[bold]r:[/bold] {signed.signature.r}")
    rprint(f"[bold]s:[/bold] {signed.signature.s}")
    rprint(f"[bold]v:[/bold] {signed.signature.v}")


@app.callback()
def main() -> None:
    """market-sync developer tools."""
    pass


if __name__ == "__main__":
    app()
