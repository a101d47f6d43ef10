"""Multi-block fetches composed from single Etherscan calls."""

import asyncio

from chainview.data.chain.client import EtherscanClient
from chainview.data.chain.models import Block
from chainview.helpers.constants import AVERAGE_BLOCK_TIME_SECONDS, MAX_LATEST_BLOCKS
from chainview.helpers.http_models import Err, Ok
from chainview.helpers.logging import get_logger


logger = get_logger(__name__)

# Multiple of the initial stagger to wait before reading the newest block
TPS_SETTLE_FACTOR = 5


def latest_block_numbers(latest: int, count: int) -> list[int]:
    """Block numbers ``latest, latest - 1, ...`` capped and never below 1.

    Example:
        >>> latest_block_numbers(3, 5)
        [3, 2, 1]
    """
    count = min(count, MAX_LATEST_BLOCKS)
    return [number for number in range(latest, latest - count, -1) if number >= 1]


async def fetch_latest_blocks(chain: EtherscanClient, count: int) -> Ok[list[Block]] | Err:
    """Fetch the newest blocks concurrently.

    The latest block number is resolved first; its failure is returned as-is.
    Individual block failures are logged and dropped, so the result may hold
    fewer than ``count`` blocks.

    Args:
        chain: Etherscan adapter
        count: Number of blocks wanted (capped at MAX_LATEST_BLOCKS)

    Returns:
        Ok with blocks sorted by number, newest first
    """
    latest = await chain.get_latest_block_number()
    if isinstance(latest, Err):
        return latest

    numbers = latest_block_numbers(latest.value, count)
    if not numbers:
        return Ok(value=[])

    logger.info("Fetching %d blocks from %d", len(numbers), latest.value)
    results = await asyncio.gather(
        *[chain.get_block_by_number(number) for number in numbers],
        return_exceptions=True,
    )

    blocks = []
    for number, result in zip(numbers, results, strict=True):
        if isinstance(result, BaseException):
            logger.error("Block %d fetch raised: %s", number, result)
        elif isinstance(result, Err):
            logger.warning("Skipping block %d: %s", number, result.message)
        elif result.value is None:
            logger.warning("Skipping block %d: not found", number)
        else:
            blocks.append(result.value)

    blocks.sort(key=lambda block: block.number, reverse=True)
    return Ok(value=blocks)


async def calculate_tps(
    chain: EtherscanClient, settle_delay: float | None = None
) -> Ok[float] | Err:
    """Estimate transactions per second from the newest block.

    Args:
        chain: Etherscan adapter
        settle_delay: Seconds to wait between resolving the latest number and
            reading the block (default: 5x the adapter's initial stagger)

    Returns:
        Ok with the block's transaction count divided by the average block
        time, Ok(0.0) when the count is unknown
    """
    if settle_delay is None:
        settle_delay = TPS_SETTLE_FACTOR * chain.initial_delay_ms / 1000

    latest = await chain.get_latest_block_number()
    if isinstance(latest, Err):
        return latest

    if settle_delay > 0 and not await chain.executor.pause(round(settle_delay * 1000)):
        return Err.interrupted()

    block = await chain.get_block_by_number(latest.value)
    if isinstance(block, Err):
        return block

    if block.value is None or block.value.transaction_count is None:
        return Ok(value=0.0)
    return Ok(value=block.value.transaction_count / AVERAGE_BLOCK_TIME_SECONDS)


__all__ = [
    "TPS_SETTLE_FACTOR",
    "calculate_tps",
    "fetch_latest_blocks",
    "latest_block_numbers",
]
