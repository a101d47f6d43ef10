"""Command-line explorer for blocks, transactions, addresses and market data.

Each section is fetched and rendered on its own; a failed section prints a
one-line error and the remaining sections are still shown.

Usage:
    chainview blocks --count 5
    chainview tx 0x5c504ed432cb51138bcf09aa5e8a410dd4a1e204ef84bfed1be16dfba1b22060
    chainview address 0xde0B295669a9FD93d5F28D9Ec85E40f4cb697BAe --count 10
    chainview market
    chainview dashboard
"""

import argparse
import asyncio
from collections.abc import Awaitable, Callable
import sys

from typing import Any

from rich.console import Console
from rich.table import Table

from chainview.data.chain.models import Address, Block, Transaction
from chainview.data.market.models import (
    EthPrice,
    EthSupply,
    GlobalMarketData,
    TrendingCoin,
)
from chainview.helpers.constants import DEFAULT_TOP_COINS, MAX_LATEST_BLOCKS
from chainview.helpers.http_models import Err, Ok
from chainview.helpers.logging import get_logger, set_log_stream
from chainview.service import BlockchainService


logger = get_logger(__name__)

DASHBOARD_BLOCKS = 5
DASHBOARD_TRANSACTIONS = 5


def _short(value: str | None, width: int = 10) -> str:
    if not value:
        return "-"
    if len(value) <= 2 * width:
        return value
    return f"{value[:width]}...{value[-4:]}"


def _text(value: Any) -> str:
    return "-" if value is None else str(value)


def blocks_table(blocks: list[Block]) -> Table:
    table = Table(title="Latest Blocks", show_header=True, header_style="bold magenta")
    table.add_column("Block", justify="right")
    table.add_column("Age")
    table.add_column("Txns", justify="right")
    table.add_column("Gas Used %", justify="right")
    table.add_column("Miner")
    for block in blocks:
        table.add_row(
            str(block.number),
            block.formatted_time,
            _text(block.transaction_count),
            _text(block.gas_utilization),
            _short(block.miner),
        )
    return table


def transactions_table(
    transactions: list[Transaction], title: str = "Transactions"
) -> Table:
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Hash")
    table.add_column("Type")
    table.add_column("From")
    table.add_column("To")
    table.add_column("Value", justify="right")
    table.add_column("Age")
    for tx in transactions:
        table.add_row(
            _short(tx.hash),
            tx.transaction_type,
            _short(tx.from_address),
            _short(tx.to_address),
            tx.formatted_value,
            tx.formatted_time,
        )
    return table


def transaction_table(tx: Transaction) -> Table:
    table = Table(title="Transaction", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Hash", tx.hash)
    table.add_row("Type", tx.transaction_type)
    table.add_row("Block", _text(tx.block_number))
    utc = tx.timestamp_utc
    time_label = tx.formatted_time
    if utc is not None:
        time_label = f"{utc:%Y-%m-%d %H:%M:%S} UTC ({tx.formatted_time})"
    table.add_row("Time", time_label)
    table.add_row("From", _text(tx.from_address))
    table.add_row("To", _text(tx.to_address))
    table.add_row("Value", tx.formatted_value)
    table.add_row("Gas", _text(tx.gas_used))
    table.add_row("Gas Price (wei)", _text(tx.gas_price))
    return table


def address_table(address: Address) -> Table:
    table = Table(title="Address", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Address", address.address)
    balance = address.balance_eth
    table.add_row("Balance", "-" if balance is None else f"{balance:f} ETH")
    table.add_row("Transactions sent", _text(address.transaction_count))
    return table


def market_table(price: EthPrice) -> Table:
    table = Table(title="ETH Price", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Price", price.formatted_price)
    table.add_row("24h Change", price.formatted_change)
    table.add_row("Market Cap", _text(price.market_cap))
    table.add_row("24h Volume", _text(price.volume_24h))
    return table


def supply_table(supply: EthSupply) -> Table:
    table = Table(title="ETH Supply", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Circulating", supply.formatted_short_supply)
    table.add_row("Max", supply.formatted_max_supply)
    return table


def global_table(data: GlobalMarketData) -> Table:
    table = Table(title="Global Market", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Total Market Cap", data.formatted_total_market_cap)
    table.add_row("24h Volume", data.formatted_total_volume)
    table.add_row("Market Cap Change", data.formatted_market_cap_change)
    table.add_row("Cryptocurrencies", _text(data.active_cryptocurrencies))
    table.add_row("Markets", _text(data.markets))
    return table


def coins_table(coins: list[TrendingCoin], title: str) -> Table:
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Rank", justify="right")
    table.add_column("Coin")
    table.add_column("Price", justify="right")
    table.add_column("24h", justify="right")
    table.add_column("Market Cap", justify="right")
    for coin in coins:
        table.add_row(
            _text(coin.market_cap_rank),
            f"{_text(coin.name)} ({_text(coin.symbol)})",
            coin.formatted_price,
            coin.formatted_change,
            coin.formatted_market_cap,
        )
    return table


def render_section(
    console: Console,
    title: str,
    result: Ok[Any] | Err,
    render: Callable[[Any], Table | str],
) -> bool:
    """Print one section, or a one-line failure for it.

    Returns:
        True if the section rendered, False if it failed
    """
    if isinstance(result, Err):
        console.print(f"[bold red]✗ {title}:[/bold red] {result.user_message}")
        return False
    console.print(render(result.value))
    return True


def _not_found(label: str, render: Callable[[Any], Table]) -> Callable[[Any], Table | str]:
    def _render(value: Any) -> Table | str:
        return f"[yellow]{label} not found[/yellow]" if value is None else render(value)

    return _render


def _tps_line(tps: float) -> str:
    return f"[bold]Estimated TPS:[/bold] {tps:.2f}"


async def run_command(
    args: argparse.Namespace, service: BlockchainService, console: Console
) -> int:
    """Run one sub-command against the service.

    Returns:
        Exit code (0 when every section rendered, 1 otherwise)
    """
    sections: list[tuple[str, Awaitable[Ok[Any] | Err], Callable[[Any], Table | str]]]

    if args.command == "blocks":
        sections = [
            ("Latest Blocks", service.get_latest_blocks(args.count), blocks_table),
        ]
    elif args.command == "tx":
        sections = [
            (
                "Transaction",
                service.get_transaction_by_hash(args.hash),
                _not_found("Transaction", transaction_table),
            ),
        ]
    elif args.command == "address":
        sections = [
            ("Address", service.get_address_details(args.address), address_table),
            (
                "Address Transactions",
                service.get_address_transactions(args.address, args.count),
                lambda txs: transactions_table(txs, "Address Transactions"),
            ),
        ]
    elif args.command == "market":
        sections = [
            ("ETH Price", service.get_eth_price(), market_table),
            ("ETH Supply", service.get_eth_supply(), supply_table),
            ("Global Market", service.get_global_market_data(), global_table),
        ]
    elif args.command == "trending":
        sections = [
            (
                "Trending Coins",
                service.get_trending_coins(),
                lambda coins: coins_table(coins, "Trending Coins"),
            ),
        ]
    elif args.command == "top":
        sections = [
            (
                "Top Coins",
                service.get_top_coins(args.limit),
                lambda coins: coins_table(coins, "Top Coins"),
            ),
        ]
    elif args.command == "dashboard":
        sections = [
            ("Latest Blocks", service.get_latest_blocks(DASHBOARD_BLOCKS), blocks_table),
            (
                "Latest Transactions",
                service.get_latest_transactions(DASHBOARD_TRANSACTIONS),
                lambda txs: transactions_table(txs, "Latest Transactions"),
            ),
            ("TPS", service.calculate_tps(), _tps_line),
            ("ETH Price", service.get_eth_price(), market_table),
            ("Global Market", service.get_global_market_data(), global_table),
        ]
    else:
        msg = f"Unknown command: {args.command}"
        raise ValueError(msg)

    results = await asyncio.gather(*[fetch for _, fetch, _ in sections])

    failures = 0
    for (title, _, render), result in zip(sections, results, strict=True):
        if not render_section(console, title, result, render):
            failures += 1

    if failures:
        logger.warning("%d of %d sections failed", failures, len(sections))
    return 1 if failures else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chainview",
        description="Explore Ethereum blocks, transactions and market data",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    blocks = subparsers.add_parser("blocks", help="Show the latest blocks")
    blocks.add_argument(
        "--count",
        type=int,
        default=MAX_LATEST_BLOCKS,
        help=f"Number of blocks (max {MAX_LATEST_BLOCKS})",
    )

    tx = subparsers.add_parser("tx", help="Show a transaction")
    tx.add_argument("hash", help="Transaction hash")

    address = subparsers.add_parser("address", help="Show an address")
    address.add_argument("address", help="Account address")
    address.add_argument(
        "--count", type=int, default=10, help="Number of recent transactions"
    )

    subparsers.add_parser("market", help="Show ETH price, supply and global market")
    subparsers.add_parser("trending", help="Show trending coins")

    top = subparsers.add_parser("top", help="Show top coins by market cap")
    top.add_argument(
        "--limit", type=int, default=DEFAULT_TOP_COINS, help="Number of coins"
    )

    subparsers.add_parser("dashboard", help="Show an overview of chain and market")
    return parser


async def _run(args: argparse.Namespace, console: Console) -> int:
    async with BlockchainService.from_settings() as service:
        return await run_command(args, service, console)


def main(argv: list[str] | None = None) -> None:
    """Command-line interface entry point."""
    args = build_parser().parse_args(argv)
    set_log_stream("stderr")

    try:
        exit_code = asyncio.run(_run(args, Console()))
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        exit_code = 1
    except KeyboardInterrupt:
        exit_code = 130
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
