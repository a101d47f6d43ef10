"""Blockchain data service wiring both providers behind one facade.

A single ``httpx.AsyncClient`` and a single ``RateLimiter`` are shared by the
Etherscan and CoinGecko adapters, so every outbound request is paced by the
same gate. ``BackgroundLoop`` runs the service on a dedicated event loop
thread for callers (a UI thread) that must never block on network waits.

Usage:
    ```python
    from chainview.service import BackgroundLoop, BlockchainService

    loop = BackgroundLoop()
    service = BlockchainService.from_settings()
    future = loop.submit(service.get_latest_blocks(5))
    result = future.result()
    ```
"""

import asyncio
from collections.abc import Coroutine
import concurrent.futures
import threading

from typing import Any, Self, TypeVar

import httpx

from chainview.data.chain.batch import calculate_tps, fetch_latest_blocks
from chainview.data.chain.client import EtherscanClient
from chainview.data.chain.models import Address, Block, BlockchainStats, Transaction
from chainview.data.market.client import CoinGeckoClient
from chainview.data.market.models import (
    EthPrice,
    EthSupply,
    GlobalMarketData,
    TrendingCoin,
)
from chainview.helpers.config import Settings, load_settings
from chainview.helpers.constants import DEFAULT_TOP_COINS
from chainview.helpers.http import RequestExecutor, create_http_client
from chainview.helpers.http_models import Err, Ok
from chainview.helpers.logging import get_logger
from chainview.helpers.rate_limit import RateLimiter


logger = get_logger(__name__)

T = TypeVar("T")


class BlockchainService:
    """Facade over the chain and market adapters.

    Every operation returns ``Ok`` or ``Err``. The service owns its HTTP
    client unless one is passed in; close it with ``aclose`` or use the
    service as an async context manager.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            settings: Provider configuration (default: built-in defaults)
            client: Shared HTTP client (default: one created and owned here)
            rate_limiter: Shared limiter (default: one spaced per settings)
        """
        self.settings = settings or Settings()
        self._owns_client = client is None
        self.client = client or create_http_client(timeout=self.settings.request_timeout)
        self.rate_limiter = rate_limiter or RateLimiter(
            self.settings.rate_limit_delay_ms
        )
        self.executor = RequestExecutor(
            self.client,
            self.rate_limiter,
            max_retries=self.settings.max_retries,
            timeout=self.settings.request_timeout,
        )
        self.chain = EtherscanClient(
            self.executor,
            api_key=self.settings.etherscan_api_key,
            base_url=self.settings.etherscan_api_url,
            chain_id=self.settings.chain_id,
            initial_delay_ms=self.settings.initial_delay_ms,
        )
        self.market = CoinGeckoClient(
            self.executor,
            api_key=self.settings.coingecko_api_key,
            base_url=self.settings.coingecko_api_url,
        )

    @classmethod
    def from_settings(cls) -> Self:
        """Create a service configured from the environment."""
        return cls(load_settings())

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    # Chain data

    async def get_latest_block_number(self) -> Ok[int] | Err:
        return await self.chain.get_latest_block_number()

    async def get_block_by_number(self, block_number: int) -> Ok[Block | None] | Err:
        return await self.chain.get_block_by_number(block_number)

    async def get_latest_blocks(self, count: int) -> Ok[list[Block]] | Err:
        return await fetch_latest_blocks(self.chain, count)

    async def get_transaction_by_hash(self, tx_hash: str) -> Ok[Transaction | None] | Err:
        return await self.chain.get_transaction_by_hash(tx_hash)

    async def get_latest_transactions(self, count: int) -> Ok[list[Transaction]] | Err:
        return await self.chain.get_latest_transactions(count)

    async def get_address_details(self, address: str) -> Ok[Address] | Err:
        return await self.chain.get_address_details(address)

    async def get_address_transactions(
        self, address: str, count: int
    ) -> Ok[list[Transaction]] | Err:
        return await self.chain.get_address_transactions(address, count)

    async def get_transaction_count(self, address: str) -> Ok[int | None] | Err:
        return await self.chain.get_transaction_count(address)

    async def calculate_tps(self, settle_delay: float | None = None) -> Ok[float] | Err:
        return await calculate_tps(self.chain, settle_delay)

    async def get_blockchain_stats(self) -> Ok[BlockchainStats] | Err:
        """Get aggregate chain statistics.

        Only ``latest_block`` is populated; the remaining fields would need
        a full scan the providers do not offer.
        """
        latest = await self.chain.get_latest_block_number()
        if isinstance(latest, Err):
            return latest
        return Ok(value=BlockchainStats(latest_block=latest.value))

    # Market data

    async def get_eth_price(self) -> Ok[EthPrice] | Err:
        return await self.market.get_eth_price()

    async def get_eth_supply(self) -> Ok[EthSupply] | Err:
        return await self.market.get_eth_supply()

    async def get_global_market_data(self) -> Ok[GlobalMarketData] | Err:
        return await self.market.get_global_market_data()

    async def get_trending_coins(self) -> Ok[list[TrendingCoin]] | Err:
        return await self.market.get_trending_coins()

    async def get_top_coins(self, limit: int = DEFAULT_TOP_COINS) -> Ok[list[TrendingCoin]] | Err:
        return await self.market.get_top_coins(limit)


class BackgroundLoop:
    """Event loop running on a daemon thread.

    Coroutines submitted from any other thread run on this loop and hand
    back a ``concurrent.futures.Future``. Cancelling that future cancels the
    task; a request waiting on the limiter or a backoff sleep then resolves
    to an INTERRUPTED ``Err``.
    """

    def __init__(self, name: str = "chainview-loop") -> None:
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()
        logger.debug("Started background loop thread %s", name)

    def _run(self) -> None:
        asyncio.set_event_loop(self.loop)
        self.loop.run_forever()

    @property
    def running(self) -> bool:
        return self._thread.is_alive()

    def submit(self, coro: Coroutine[Any, Any, T]) -> concurrent.futures.Future[T]:
        """Schedule ``coro`` on the background loop.

        Raises:
            RuntimeError: If the loop has been closed
        """
        if self.loop.is_closed():
            coro.close()
            msg = "Background loop is closed"
            raise RuntimeError(msg)
        return asyncio.run_coroutine_threadsafe(coro, self.loop)

    def close(self, timeout: float | None = 5.0) -> None:
        """Stop the loop, join the thread and close the loop."""
        if self.loop.is_closed():
            return
        self.loop.call_soon_threadsafe(self.loop.stop)
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning("Background loop thread did not stop within %ss", timeout)
            return
        self.loop.close()


__all__ = [
    "BackgroundLoop",
    "BlockchainService",
]
