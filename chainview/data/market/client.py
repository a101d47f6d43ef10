"""CoinGecko v3 API adapter for prices, supply and market overviews."""

import asyncio
from decimal import ROUND_HALF_UP, Decimal

from typing import Any

import httpx

from chainview.data.market.models import (
    EthPrice,
    EthSupply,
    GlobalMarketData,
    TrendingCoin,
)
from chainview.helpers.constants import (
    COINGECKO_API_URL,
    COINGECKO_KEY_HEADER,
    DEFAULT_TOP_COINS,
    MAX_TRENDING_COINS,
)
from chainview.helpers.http import RequestExecutor, classify_status, decode_json
from chainview.helpers.http_models import (
    Err,
    JsonResponse,
    Ok,
    OutcomeApiError,
    OutcomeRateLimited,
    OutcomeSuccess,
    RequestOutcome,
)
from chainview.helpers.logging import get_logger
from chainview.helpers.parsers import normalize_decimal, parse_optional_int


logger = get_logger(__name__)


def classify_coingecko_response(status_code: int, body: str) -> RequestOutcome:
    """Classify a CoinGecko response.

    CoinGecko signals throttling with HTTP 429 and, on some plans, with a
    ``{"status": {"error_code": 429, "error_message": ...}}`` body. The
    numeric code is used instead of matching message text.

    Args:
        status_code: HTTP status code
        body: Response body text

    Returns:
        RequestOutcome for the retry state machine
    """
    outcome = classify_status(status_code, body)
    if not isinstance(outcome, OutcomeSuccess):
        return outcome

    data = decode_json(body)
    if not isinstance(data, dict):
        return outcome

    status = data.get("status")
    if isinstance(status, dict) and "error_code" in status:
        code = parse_optional_int(status.get("error_code"))
        message = status.get("error_message")
        message = message if isinstance(message, str) else "API returned error"
        if code == httpx.codes.TOO_MANY_REQUESTS:
            return OutcomeRateLimited(message=message)
        return OutcomeApiError(code=code, message=f"API Error: {message}")

    error = data.get("error")
    if isinstance(error, str):
        return OutcomeApiError(message=f"API Error: {error}")

    return outcome


def _field(data: dict[str, Any], key: str) -> Decimal | None:
    return normalize_decimal(data.get(key))


def _usd(data: dict[str, Any], key: str) -> Decimal | None:
    nested = data.get(key)
    return normalize_decimal(nested.get("usd")) if isinstance(nested, dict) else None


def _upper(value: Any) -> str | None:
    return value.upper() if isinstance(value, str) else None


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def parse_market_coin(coin: dict[str, Any]) -> TrendingCoin:
    """Build a TrendingCoin from a ``/coins/markets`` entry."""
    return TrendingCoin(
        id=_text(coin.get("id")),
        name=_text(coin.get("name")),
        symbol=_upper(coin.get("symbol")),
        market_cap_rank=parse_optional_int(coin.get("market_cap_rank")),
        price=_field(coin, "current_price"),
        price_change_24h=_field(coin, "price_change_24h"),
        price_change_percent_24h=_field(coin, "price_change_percentage_24h"),
        market_cap=_field(coin, "market_cap"),
        volume_24h=_field(coin, "total_volume"),
        image_url=_text(coin.get("image")),
    )


def parse_trending_item(item: dict[str, Any]) -> TrendingCoin:
    """Build a TrendingCoin (without prices) from a ``/search/trending`` item."""
    return TrendingCoin(
        id=_text(item.get("id")),
        name=_text(item.get("name")),
        symbol=_upper(item.get("symbol")),
        market_cap_rank=parse_optional_int(item.get("market_cap_rank")),
        image_url=_text(item.get("small")),
    )


def price_change_from_percent(
    price: Decimal | None, percent: Decimal | None
) -> Decimal | None:
    """Absolute 24h change derived from the percentage, two decimal places."""
    if price is None or percent is None:
        return None
    return (percent * price / 100).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


class CoinGeckoClient:
    """Market-data adapter over the CoinGecko v3 API.

    Every public method returns ``Ok`` or ``Err``; expected failures are
    never raised.
    """

    def __init__(
        self,
        executor: RequestExecutor,
        *,
        api_key: str = "",
        base_url: str = COINGECKO_API_URL,
    ) -> None:
        """Initialize the adapter.

        Args:
            executor: Request executor shared with other adapters
            api_key: Optional CoinGecko demo API key
            base_url: CoinGecko v3 base URL

        Raises:
            ValueError: If base_url is empty
        """
        if not base_url:
            msg = "CoinGecko base URL cannot be empty"
            raise ValueError(msg)

        self.executor = executor
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    @property
    def headers(self) -> dict[str, str]:
        return {COINGECKO_KEY_HEADER: self.api_key} if self.api_key else {}

    async def _request(
        self, path: str, params: dict[str, Any] | None = None
    ) -> Ok[JsonResponse] | Err:
        """Execute one API call and decode the JSON body."""
        response = await self.executor.execute(
            f"{self.base_url}{path}",
            params=params,
            headers=self.headers,
            classify=classify_coingecko_response,
        )
        if isinstance(response, Err):
            return response

        data = decode_json(response.value)
        if data is None:
            logger.error("Invalid CoinGecko response for %s: not JSON", path)
            return Err.decode(f"Invalid CoinGecko response for {path}")
        return Ok(value=data)

    async def _container(
        self, path: str, key: str, params: dict[str, Any] | None = None
    ) -> Ok[dict[str, Any]] | Err:
        """Fetch ``path`` and return the object stored under ``key``."""
        response = await self._request(path, params)
        if isinstance(response, Err):
            return response

        data = response.value
        container = data.get(key) if isinstance(data, dict) else None
        if not isinstance(container, dict):
            logger.error("Invalid CoinGecko response for %s: missing %s", path, key)
            return Err.decode(f"Invalid CoinGecko response for {path}: missing {key}")
        return Ok(value=container)

    async def get_eth_price(self) -> Ok[EthPrice] | Err:
        """Get the ETH spot price with 24h change, market cap and volume."""
        response = await self._container(
            "/simple/price",
            "ethereum",
            {
                "ids": "ethereum",
                "vs_currencies": "usd",
                "include_24hr_change": "true",
                "include_market_cap": "true",
                "include_24hr_vol": "true",
            },
        )
        if isinstance(response, Err):
            return response

        eth = response.value
        price = _field(eth, "usd")
        percent = _field(eth, "usd_24h_change")
        return Ok(
            value=EthPrice(
                price=price,
                price_change_24h=price_change_from_percent(price, percent),
                price_change_percent_24h=percent,
                market_cap=_field(eth, "usd_market_cap"),
                volume_24h=_field(eth, "usd_24h_vol"),
            )
        )

    async def get_eth_supply(self) -> Ok[EthSupply] | Err:
        """Get circulating, total and max ETH supply."""
        response = await self._container(
            "/coins/ethereum",
            "market_data",
            {
                "localization": "false",
                "tickers": "false",
                "community_data": "false",
                "developer_data": "false",
            },
        )
        if isinstance(response, Err):
            return response

        market_data = response.value
        return Ok(
            value=EthSupply(
                circulating_supply=_field(market_data, "circulating_supply"),
                total_supply=_field(market_data, "total_supply"),
                max_supply=_field(market_data, "max_supply"),
            )
        )

    async def get_global_market_data(self) -> Ok[GlobalMarketData] | Err:
        """Get total market cap, volume and market counts."""
        response = await self._container("/global", "data")
        if isinstance(response, Err):
            return response

        data = response.value
        return Ok(
            value=GlobalMarketData(
                total_market_cap=_usd(data, "total_market_cap"),
                total_volume_24h=_usd(data, "total_volume"),
                market_cap_change_percent_24h=_field(
                    data, "market_cap_change_percentage_24h_usd"
                ),
                active_cryptocurrencies=parse_optional_int(
                    data.get("active_cryptocurrencies")
                ),
                markets=parse_optional_int(data.get("markets")),
            )
        )

    async def _enrich_with_market_data(self, coin: TrendingCoin) -> TrendingCoin:
        """Fill price fields from ``/coins/markets``; keep the coin as-is on failure."""
        if not coin.id:
            return coin

        response = await self._request(
            "/coins/markets", {"vs_currency": "usd", "ids": coin.id, "per_page": 1}
        )
        if isinstance(response, Err):
            logger.warning(
                "Could not fetch market data for %s: %s", coin.id, response.message
            )
            return coin

        entries = response.value
        if not isinstance(entries, list) or not entries or not isinstance(entries[0], dict):
            logger.warning("No market data for %s", coin.id)
            return coin

        market = parse_market_coin(entries[0])
        return coin.model_copy(
            update={
                "price": market.price,
                "price_change_24h": market.price_change_24h,
                "price_change_percent_24h": market.price_change_percent_24h,
                "market_cap": market.market_cap,
                "volume_24h": market.volume_24h,
                "market_cap_rank": market.market_cap_rank or coin.market_cap_rank,
            }
        )

    async def get_trending_coins(self) -> Ok[list[TrendingCoin]] | Err:
        """Get trending coins, each enriched with its market data.

        The trending endpoint lacks reliable prices, so one ``/coins/markets``
        call per coin fills them in. A failed per-coin call leaves that
        coin's price fields empty without affecting the rest of the list.
        """
        response = await self._request("/search/trending")
        if isinstance(response, Err):
            return response

        data = response.value
        entries = data.get("coins") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            return Err.decode("Invalid CoinGecko trending response: missing coins")

        coins = []
        for entry in entries[:MAX_TRENDING_COINS]:
            item = entry.get("item") if isinstance(entry, dict) else None
            if isinstance(item, dict):
                coins.append(parse_trending_item(item))

        enriched = await asyncio.gather(
            *[self._enrich_with_market_data(coin) for coin in coins]
        )
        return Ok(value=list(enriched))

    async def get_top_coins(self, limit: int = DEFAULT_TOP_COINS) -> Ok[list[TrendingCoin]] | Err:
        """Get the top coins by market cap.

        Args:
            limit: Number of coins to fetch

        Returns:
            Ok with the coins in market cap order
        """
        if limit <= 0:
            return Ok(value=[])

        response = await self._request(
            "/coins/markets",
            {
                "vs_currency": "usd",
                "order": "market_cap_desc",
                "per_page": limit,
                "page": 1,
                "sparkline": "false",
            },
        )
        if isinstance(response, Err):
            return response

        entries = response.value
        if not isinstance(entries, list):
            return Err.decode("Invalid CoinGecko markets response: expected a list")

        return Ok(
            value=[parse_market_coin(coin) for coin in entries if isinstance(coin, dict)]
        )


__all__ = [
    "CoinGeckoClient",
    "classify_coingecko_response",
    "parse_market_coin",
    "parse_trending_item",
    "price_change_from_percent",
]
